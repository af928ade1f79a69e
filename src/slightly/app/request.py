"""WSGI request, as seen by templates."""

from __future__ import annotations

import json
from dataclasses import dataclass
from http.cookies import SimpleCookie
from io import BytesIO
from typing import Any, Mapping
from urllib.parse import parse_qs

from multipart import MultipartParser, parse_options_header


WSGIEnviron = Mapping[str, Any]

FORM_URLENCODED = "application/x-www-form-urlencoded"
FORM_MULTIPART = "multipart/form-data"


@dataclass(frozen=True)
class Upload:
    """A file field of a multipart/form-data body."""
    filename: str
    content_type: str | None
    size: int
    data: bytes

    def text(self, encoding: str = "utf-8") -> str:
        return self.data.decode(encoding, errors="replace")


class Request:
    """
    HTTP request built from a WSGI environ.

    Bound into every template as ``request``:

        ${request.method}
        ${request.param("id", "0")}
        ${request.upload("avatar").filename}

    Notes:
    - header keys are lower-cased
    - the body is read once and cached; urlencoded and multipart forms are
      both exposed through form() and param()
    - multipart bodies are parsed with the ``multipart`` package
    """

    DEFAULT_MAX_BODY_SIZE = 10 * 1024 * 1024  # 10MB

    def __init__(self, environ: WSGIEnviron, *, max_body_size: int | None = None) -> None:
        self.environ: WSGIEnviron = environ
        self.max_body_size = self.DEFAULT_MAX_BODY_SIZE if max_body_size is None else int(max_body_size)

        self.method: str = str(environ.get("REQUEST_METHOD", "GET")).upper()
        self.path: str = str(environ.get("PATH_INFO", "")).lstrip("/")
        self.query: dict[str, list[str]] = parse_qs(str(environ.get("QUERY_STRING", "")))

        self.headers: dict[str, str] = {
            k[5:].replace("_", "-").lower(): v
            for k, v in environ.items()
            if k.startswith("HTTP_") and isinstance(v, str)
        }
        for key in ("CONTENT_TYPE", "CONTENT_LENGTH"):
            value = environ.get(key)
            if isinstance(value, str) and value:
                self.headers[key.replace("_", "-").lower()] = value

        self.cookie: dict[str, str] = _parse_cookies(environ.get("HTTP_COOKIE"))

        self._body: bytes | None = None
        self._fields: dict[str, list[str]] | None = None
        self._uploads: dict[str, Upload] = {}

    @property
    def content_type(self) -> str:
        """Mime type without parameters, lower-cased."""
        return parse_options_header(self.headers.get("content-type", ""))[0].lower()

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)

    def param(self, name: str, default: str | None = None) -> str | None:
        """
        First value of a query or form parameter.

        Query string values win over form values. Form values are only
        consulted for POST.
        """
        values = self.query.get(name)
        if not values and self.method == "POST":
            values = (self.form() or {}).get(name)
        return values[0] if values else default

    # -------------------------
    # body
    # -------------------------

    def read_body(self) -> bytes:
        """
        Read and cache the request body.

        Raises:
            ValueError: If the body exceeds ``max_body_size``.
        """
        if self._body is not None:
            return self._body

        stream = self.environ.get("wsgi.input")
        length = _content_length(self.environ.get("CONTENT_LENGTH"))
        if stream is None or length == 0:
            self._body = b""
            return self._body

        if length is not None and length > self.max_body_size:
            raise ValueError(f"Request body too large (Content-Length={length}, max={self.max_body_size})")

        data = stream.read(length if length is not None else self.max_body_size + 1)
        if len(data) > self.max_body_size:
            raise ValueError(f"Request body too large (no valid Content-Length, max={self.max_body_size})")
        self._body = data
        return self._body

    @property
    def body(self) -> bytes:
        return self.read_body()

    def json(self) -> Any | None:
        """
        Parsed application/json body, or None for other bodies.

        Raises:
            json.JSONDecodeError: If the body is declared JSON but invalid.
        """
        if self.content_type != "application/json" or not self.body:
            return None
        return json.loads(self.body.decode("utf-8"))

    def form(self) -> dict[str, list[str]] | None:
        """
        Text fields of an urlencoded or multipart form.

        Returns:
            dict[str, list[str]], or None when the body is not a form.
        """
        if self._fields is not None:
            return self._fields

        if self.content_type == FORM_URLENCODED:
            self._fields = parse_qs(self.body.decode("utf-8"))
        elif self.content_type == FORM_MULTIPART:
            self._parse_multipart()
        else:
            return None
        return self._fields

    def files(self) -> dict[str, Upload]:
        """File fields of a multipart form, keyed by field name."""
        if self.content_type == FORM_MULTIPART and self._fields is None:
            self._parse_multipart()
        return self._uploads

    def upload(self, name: str) -> Upload | None:
        return self.files().get(name)

    def _parse_multipart(self) -> None:
        options = parse_options_header(self.headers.get("content-type", ""))[1]
        boundary = options.get("boundary")
        if not boundary:
            raise ValueError("multipart/form-data boundary not found")

        fields: dict[str, list[str]] = {}
        self._fields = fields
        if not self.body:
            return

        parser = MultipartParser(BytesIO(self.body), boundary, content_length=len(self.body))
        for part in parser:
            if not part.name:
                continue
            if part.filename:
                data = part.raw
                self._uploads[part.name] = Upload(
                    filename=part.filename,
                    content_type=part.content_type or None,
                    size=len(data),
                    data=data,
                )
            else:
                fields.setdefault(part.name, []).append(part.value)


def _parse_cookies(header: str | None) -> dict[str, str]:
    if not header:
        return {}
    jar = SimpleCookie()
    jar.load(header)
    return {key: morsel.value for key, morsel in jar.items()}


def _content_length(raw: Any) -> int | None:
    try:
        n = int(raw)
    except (TypeError, ValueError):
        return None
    return n if n >= 0 else None
