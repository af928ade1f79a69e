"""Template expansion engine: document tree, evaluator, passes and pipeline."""

from .document import parse, parse_fragment, serialize
from .evaluator import Diagnostics, ExpressionEvaluator, to_text
from .directives import resolve_conditionals, resolve_repetitions
from .placeholders import substitute_placeholders
from .pipeline import ExpansionError, ExpansionPipeline, ExpansionResult

__all__ = [
    "parse",
    "parse_fragment",
    "serialize",
    "Diagnostics",
    "ExpressionEvaluator",
    "to_text",
    "resolve_conditionals",
    "resolve_repetitions",
    "substitute_placeholders",
    "ExpansionError",
    "ExpansionPipeline",
    "ExpansionResult",
]
