"""Template document loading."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path as _Path

from ..core.error import DocumentNotFoundError


@dataclass(frozen=True)
class LoadedDocument:
    """Raw template bytes and the charset they are encoded in."""
    path: _Path
    content: bytes
    charset: str


class DocumentLoader:
    """
    Loads template documents from a root directory, keyed by request path.

    - "" and "/" map to the index document
    - a directory maps to its index document
    - paths resolving outside the root are reported as not found
    """

    def __init__(self, root: str | os.PathLike[str], *, index: str = "index.html", charset: str = "utf-8") -> None:
        self._root = _Path(root).resolve()
        self.index: str = index
        self.charset: str = charset

    @property
    def root(self) -> _Path:
        return self._root

    def resolve(self, url_path: str) -> _Path:
        """
        Resolve a request path to a file under the root.

        Raises:
            DocumentNotFoundError: If no such document exists.
        """
        rel = url_path.strip("/") or self.index

        try:
            target = (self._root / rel).resolve()
        except (OSError, RuntimeError):
            raise DocumentNotFoundError(url_path)

        if not target.is_relative_to(self._root):
            raise DocumentNotFoundError(url_path)

        if target.is_dir():
            target = (target / self.index).resolve()

        if not target.exists() or not target.is_file():
            raise DocumentNotFoundError(url_path or "/")

        return target

    def load(self, url_path: str) -> LoadedDocument:
        target = self.resolve(url_path)
        try:
            data = target.read_bytes()
        except OSError:
            raise DocumentNotFoundError(url_path)
        return LoadedDocument(path=target, content=data, charset=self.charset)
