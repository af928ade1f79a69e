from __future__ import annotations

from typing import Iterable

from .http_status_codes import http_status_codes


Header = tuple[str, str]


class Response:
    """
    Represents an HTTP response.
    """

    def __init__(
        self,
        body: str | bytes = b"",
        status: int = 200,
        headers: Iterable[Header] | None = None,
        content_type: str = "text/html",
        charset: str = "utf-8",
        include_charset: bool = False
    ) -> None:
        self.charset: str = charset
        self.include_charset: bool = include_charset

        if isinstance(body, str):
            self.body: bytes = body.encode(charset)
            self.is_text: bool = True
        else:
            self.body = body
            self.is_text = False

        self.status_code: int = status
        self.status_text: str = f"{status} {http_status_codes.get(status, '')}".strip()

        ct = content_type
        if include_charset and ct.startswith("text/"):
            ct = f"{ct}; charset={charset}"

        self.headers: list[Header] = list(headers) if headers else [("Content-Type", ct)]

        # ---- auto Content-Length (if not already present) ----
        has_len = any(k.lower() == "content-length" for k, _ in self.headers)
        if not has_len:
            self.headers.append(("Content-Length", str(len(self.body))))

    def __iter__(self):
        """
        Allow Response to be returned directly from WSGI apps.
        """
        yield self.body


class HtmlResponse(Response):
    """HTML response; the charset is always part of Content-Type."""

    def __init__(
        self,
        body: str | bytes = b"",
        status: int = 200,
        headers: Iterable[Header] | None = None,
        *,
        charset: str = "utf-8",
    ) -> None:
        super().__init__(
            body=body,
            status=status,
            headers=headers,
            content_type="text/html",
            charset=charset,
            include_charset=True,
        )


class ErrorResponse(HtmlResponse):
    """
    HTML error response whose body is the message itself.
    """

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message, status=status)
