"""
Expansion pipeline.

Rendering order:
1. Server script (runs once, fills the bindings)
2. data-if
3. data-for-<name>
4. Serialize
5. ${expr} substitution

Any aborting failure replaces the whole output with one diagnostic line.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol

from bs4 import BeautifulSoup

from ..core.config import ProcessorConfig
from ..core.error import SlightlyError, category_for
from .directives import resolve_conditionals, resolve_repetitions
from .document import find_by_attribute_value, inner_html, parse, remove, serialize
from .evaluator import Diagnostics, ExpressionEvaluator
from .placeholders import substitute_placeholders

log = logging.getLogger(__name__)


class Loadable(Protocol):
    content: bytes
    charset: str


class Loader(Protocol):
    def load(self, path: str) -> Loadable: ...


@dataclass(frozen=True)
class ExpansionError:
    """Error descriptor shown in place of the page."""
    kind: str
    message: str

    def render(self) -> str:
        return f"({self.kind}) {self.message}"


@dataclass(frozen=True)
class ExpansionResult:
    """Finished HTML, or the error that replaced it."""
    html: str | None = None
    error: ExpansionError | None = None
    diagnostics: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def output(self) -> str:
        """Text to send: the page, or the single diagnostic line."""
        if self.error is not None:
            return self.error.render()
        return self.html or ""

    @classmethod
    def failed(cls, error: BaseException, diagnostics: Diagnostics | None = None) -> "ExpansionResult":
        message = error.message if isinstance(error, SlightlyError) else (str(error) or type(error).__name__)
        return cls(
            error=ExpansionError(category_for(error), message),
            diagnostics=tuple(diagnostics or ()),
        )


class ExpansionPipeline:
    """
    Expands one template per call.

    The pipeline only holds configuration; the tree, the bindings and the
    evaluator are created per call, so one instance can serve concurrent
    requests.
    """

    def __init__(
        self,
        config: ProcessorConfig | None = None,
        *,
        functions: Mapping[str, Callable[..., Any]] | None = None,
    ) -> None:
        self.config = config or ProcessorConfig()
        self.functions = dict(functions or {})

    def expand(
        self,
        source: bytes | str,
        *,
        charset: str | None = None,
        request: Any = None,
        bindings: Mapping[str, Any] | None = None,
    ) -> ExpansionResult:
        """
        Expand raw template markup.

        Args:
            source: Template bytes or text.
            charset: Charset of ``source`` when given as bytes.
            request: Request object bound under ``config.request_name``.
            bindings: Extra names visible to expressions.
        """
        diagnostics = Diagnostics()
        try:
            html = self._expand(source, charset or self.config.charset, request, bindings, diagnostics)
        except SlightlyError as e:
            log.error("Expansion aborted: %s", e)
            return ExpansionResult.failed(e, diagnostics)
        except Exception as e:
            log.exception("Expansion aborted by an unexpected error")
            return ExpansionResult.failed(e, diagnostics)

        return ExpansionResult(html=html, diagnostics=tuple(diagnostics))

    def render(self, loader: Loader, path: str, **kwargs: Any) -> ExpansionResult:
        """Load ``path`` through ``loader`` and expand it."""
        try:
            document = loader.load(path)
        except Exception as e:
            log.error("Loading '%s' failed: %s", path, e)
            return ExpansionResult.failed(e)

        log.debug("Rendering '%s'", path)
        return self.expand(document.content, charset=document.charset, **kwargs)

    def _expand(
        self,
        source: bytes | str,
        charset: str,
        request: Any,
        bindings: Mapping[str, Any] | None,
        diagnostics: Diagnostics,
    ) -> str:
        cfg = self.config
        tree = parse(source, charset)

        env: dict[str, Any] = dict(bindings or {})
        env[cfg.request_name] = request
        evaluator = ExpressionEvaluator(env, diagnostics, functions=self.functions)

        evaluator.execute(self._take_script(tree))
        resolve_conditionals(tree, evaluator, cfg.if_attribute)
        resolve_repetitions(tree, evaluator, cfg.for_prefix)

        return substitute_placeholders(serialize(tree), evaluator)

    def _take_script(self, tree: BeautifulSoup) -> str:
        """Collect server script text and drop its elements from the tree."""
        cfg = self.config
        elements = find_by_attribute_value(tree, cfg.script_attribute, cfg.script_type)
        code = "\n".join(inner_html(e) for e in elements)
        for e in elements:
            remove(e)
        return code
