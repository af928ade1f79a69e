"""
SLIGHTLY - Server-side HTML template expansion.

Top-level public API exports the most commonly used types.
"""

from __future__ import annotations

from .app import (
    Request,
    Response,
    HtmlResponse,
    ErrorResponse,
    DocumentLoader,
    TemplateProcessor,
    create_app,
)
from .core.config import ProcessorConfig
from .engine import ExpansionPipeline, ExpansionResult

__all__ = [
    "Request",
    "Response",
    "HtmlResponse",
    "ErrorResponse",
    "DocumentLoader",
    "TemplateProcessor",
    "create_app",
    "ProcessorConfig",
    "ExpansionPipeline",
    "ExpansionResult",
    "__version__",
]

__version__ = "0.1.0"
