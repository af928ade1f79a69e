from __future__ import annotations
from typing import Final


class SlightlyError(Exception):
    """
    Base exception class for all Slightly errors.

    Attributes:
        code: Stable error code for programmatic handling.
        message: Human-readable error message.
    """

    def __init__(self, code: str, message: str) -> None:
        self.code: str = code
        self.message: str = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.code} -> {self.message}"


# =========================
# Error categories
# =========================

PAGE_NOT_FOUND: Final = "Page Not Found"
SCRIPT_ERROR: Final = "Script Error"
GENERAL_ERROR: Final = "General Error"


def category_for(error: BaseException) -> str:
    """Map an exception to the category shown in place of the page."""
    if isinstance(error, DocumentNotFoundError):
        return PAGE_NOT_FOUND
    if isinstance(error, ScriptError):
        return SCRIPT_ERROR
    return GENERAL_ERROR


def _status_for_category(category: str) -> int:
    return 404 if category == PAGE_NOT_FOUND else 500


# =========================
# Document
# =========================

class DocumentNotFoundError(SlightlyError):
    """Raised when the requested template document does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__("D01", f"This document is not found. '{path}'")


class DocumentParseError(SlightlyError):
    """Raised when raw document bytes cannot be decoded or parsed."""

    def __init__(self, reason: str) -> None:
        super().__init__("D02", f"This document cannot be parsed. {reason}")


# =========================
# Script / Expression
# =========================

class ScriptError(SlightlyError):
    """
    Raised when the embedded server script fails. Aborts the whole page.

    Page scripts are Python statements, so the category shown in place of
    the page is ``(Script Error)`` rather than the ``(Javascript Error)``
    used by script-engine based processors.
    """

    def __init__(self, message: str) -> None:
        super().__init__("S01", message)


class EvaluationError(SlightlyError):
    """
    A single expression failed to evaluate.

    Never escapes the evaluator: it is reported to the request diagnostics
    and the expression evaluates to None.
    """

    def __init__(self, expression: str, reason: str) -> None:
        self.expression: str = expression
        super().__init__("S02", f"{reason} in '{expression}'")


# =========================
# Directive
# =========================

class DirectiveError(SlightlyError):
    """Raised when a directive attribute is malformed."""

    def __init__(self, attribute: str) -> None:
        super().__init__("G01", f"This directive is malformed. '{attribute}'")


# =========================
# Config
# =========================

class ConfigInvalidValueError(SlightlyError):
    """Raised when a configuration value is invalid."""

    def __init__(self, key: str, value: object) -> None:
        super().__init__("CF01", f"This config value is invalid. '{key}={value!r}'")
