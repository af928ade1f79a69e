"""
Expression evaluation for templates.

Expressions are handed to ``simpleeval`` and never executed as real Python.
The page script is a short list of statements built on the same evaluator:

    <script type="server/python">
        title = "Products"
        items = [p for p in request.param("ids", "").split(",") if p]
        count = len(items)
    </script>
"""

from __future__ import annotations

import ast
import logging
from typing import Any, Callable, Final, Mapping

from simpleeval import DEFAULT_FUNCTIONS, EvalWithCompoundTypes

from ..core.error import EvaluationError, ScriptError

log = logging.getLogger(__name__)

EXPRESSION_PREFIX: Final = "${"
EXPRESSION_SUFFIX: Final = "}"

# script-style literals, so templates can write true/false/null
NAMES: Final[dict[str, Any]] = {
    "true": True,
    "false": False,
    "null": None,
}


def _join(seq: Any, sep: str = ",") -> str:
    return str(sep).join(to_text(x) for x in seq)


FUNCTIONS: Final[dict[str, Callable[..., Any]]] = {
    **DEFAULT_FUNCTIONS,
    "len": len,
    "list": list,
    "range": range,
    "sorted": sorted,
    "min": min,
    "max": max,
    "abs": abs,
    "round": round,
    "bool": bool,
    "join": _join,
}


def to_text(value: Any) -> str:
    """
    Script-style string form of an evaluated value.

    Booleans render as ``true``/``false`` and None as ``null``; lists and
    tuples render as their comma-joined items.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(to_text(x) for x in value)
    return str(value)


def unwrap(code: str) -> str:
    """Strip one enclosing ``${`` ... ``}`` from a directive value."""
    stripped = code.strip()
    if stripped.startswith(EXPRESSION_PREFIX) and stripped.endswith(EXPRESSION_SUFFIX):
        return stripped[len(EXPRESSION_PREFIX):-len(EXPRESSION_SUFFIX)]
    return code


class Diagnostics:
    """Per-request sink for evaluation problems that do not abort the page."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def report(self, message: str) -> None:
        log.warning("%s", message)
        self.messages.append(message)

    def __iter__(self):
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)

    def __bool__(self) -> bool:
        return bool(self.messages)


class ExpressionEvaluator:
    """
    Evaluates template expressions against one request's bindings.

    Notes:
    - one instance per request; it is never shared between threads
    - bindings are held by reference, so script assignments are visible
      to every later expression of the same request
    - evaluate() never raises; failures go to diagnostics and yield None
    """

    def __init__(
        self,
        bindings: dict[str, Any] | None = None,
        diagnostics: Diagnostics | None = None,
        *,
        functions: Mapping[str, Callable[..., Any]] | None = None,
    ) -> None:
        self.bindings: dict[str, Any] = {} if bindings is None else bindings
        self.diagnostics: Diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self._names = _Names(self.bindings)
        self._engine = EvalWithCompoundTypes(
            names=self._names,
            functions={**FUNCTIONS, **(functions or {})},
        )

    def bind(self, name: str, value: Any) -> None:
        self.bindings[name] = value

    def evaluate(self, code: str) -> Any | None:
        """
        Evaluate one expression.

        Returns:
            The value, or None when the expression failed.
        """
        try:
            return self._engine.eval(code.strip())
        except Exception as e:
            error = EvaluationError(code, _describe(e))
            self.diagnostics.report(error.message)
            return None

    def execute(self, script: str) -> None:
        """
        Run the page script.

        Supported statements: ``a = b = expr``, ``a += expr``, bare
        expressions and ``pass``.

        Raises:
            ScriptError: On a syntax error, an unsupported statement or a
                failing expression. The page is not rendered.
        """
        source = _dedent(script)
        if not source.strip():
            return

        try:
            module = ast.parse(source, mode="exec")
        except SyntaxError as e:
            raise ScriptError(f"{e.msg} (line {e.lineno})")

        for stmt in module.body:
            self._run(stmt, source)

    def _run(self, stmt: ast.stmt, source: str) -> None:
        if isinstance(stmt, ast.Pass):
            return

        if isinstance(stmt, ast.Assign):
            if not all(isinstance(t, ast.Name) for t in stmt.targets):
                raise ScriptError(f"Only plain names can be assigned (line {stmt.lineno})")
            value = self._eval_node(stmt.value, source)
            for target in stmt.targets:
                self.bindings[target.id] = value  # type: ignore[attr-defined]
            return

        if isinstance(stmt, ast.AugAssign) and isinstance(stmt.target, ast.Name):
            node = ast.BinOp(
                left=ast.Name(id=stmt.target.id, ctx=ast.Load()),
                op=stmt.op,
                right=stmt.value,
            )
            ast.copy_location(node, stmt)
            self.bindings[stmt.target.id] = self._eval_node(node, source)
            return

        if isinstance(stmt, ast.Expr):
            self._eval_node(stmt.value, source)
            return

        raise ScriptError(f"Unsupported statement '{type(stmt).__name__}' (line {stmt.lineno})")

    def _eval_node(self, node: ast.expr, source: str) -> Any:
        code = ast.get_source_segment(source, node) or ""
        try:
            return self._engine.eval(code, previously_parsed=node)
        except Exception as e:
            raise ScriptError(f"{_describe(e)} (line {node.lineno})")


class _Names:
    """Bindings first, then the script-style literals."""

    def __init__(self, bindings: dict[str, Any]) -> None:
        self.bindings = bindings

    def __getitem__(self, key: str) -> Any:
        if key in self.bindings:
            return self.bindings[key]
        return NAMES[key]

    def __contains__(self, key: object) -> bool:
        return key in self.bindings or key in NAMES


def _describe(error: Exception) -> str:
    return f"{type(error).__name__}: {error}"


def _dedent(script: str) -> str:
    """Remove the common indentation markup puts in front of script lines."""
    lines = script.splitlines()
    indents = [len(line) - len(line.lstrip()) for line in lines if line.strip()]
    cut = min(indents, default=0)
    return "\n".join(line[cut:] for line in lines)
