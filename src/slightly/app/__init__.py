"""Application-layer public API for Slightly."""

# ---- Request / Response ----
from .request import Request, Upload
from .response import (
    Response,
    HtmlResponse,
    ErrorResponse,
)

# ---- Loading ----
from .loader import DocumentLoader, LoadedDocument

# ---- WSGI ----
from .processor import TemplateProcessor, create_app


__all__ = [
    # request / response
    "Request",
    "Upload",
    "Response",
    "HtmlResponse",
    "ErrorResponse",

    # loading
    "DocumentLoader",
    "LoadedDocument",

    # wsgi
    "TemplateProcessor",
    "create_app",
]
