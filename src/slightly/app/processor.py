from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping

from ..core.config import ProcessorConfig
from ..core.error import _status_for_category
from ..engine.pipeline import ExpansionPipeline, ExpansionResult
from .loader import DocumentLoader
from .request import Request
from .response import ErrorResponse, HtmlResponse, Response

log = logging.getLogger(__name__)

ALLOWED_METHODS = frozenset({"GET", "POST"})


class TemplateProcessor:
    """
    WSGI application expanding the template found at the request path.

    Every GET or POST loads the document, runs it through the expansion
    pipeline and answers with the result. A failed expansion answers with the
    single diagnostic line as body (404 for a missing document, 500 otherwise).
    """

    def __init__(
        self,
        config: ProcessorConfig | None = None,
        *,
        loader: DocumentLoader | None = None,
        functions: Mapping[str, Callable[..., Any]] | None = None,
    ) -> None:
        self.config = config or ProcessorConfig()
        self.loader = loader or DocumentLoader(
            self.config.document_root,
            index=self.config.index_document,
            charset=self.config.charset,
        )
        self.pipeline = ExpansionPipeline(self.config, functions=functions)

    def render(self, request: Request) -> ExpansionResult:
        """Expand the document addressed by ``request.path``."""
        return self.pipeline.render(self.loader, request.path, request=request)

    def handle(self, request: Request) -> Response:
        if request.method not in ALLOWED_METHODS:
            return ErrorResponse(405, f"Method {request.method} is not allowed.")

        result = self.render(request)
        if result.error is not None:
            return ErrorResponse(_status_for_category(result.error.kind), result.output)

        return HtmlResponse(result.output)

    def __call__(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        """
        WSGI application entrypoint.
        """
        try:
            res = self.handle(Request(environ))
        except Exception as e:
            log.exception("Request failed")
            res = ErrorResponse(500, str(e))

        start_response(res.status_text, res.headers)
        return [res.body]


def create_app(config: ProcessorConfig | None = None) -> TemplateProcessor:
    """WSGI factory, e.g. ``wsgiref`` or any WSGI server: ``slightly.app.processor:create_app()``."""
    return TemplateProcessor(config or ProcessorConfig.from_env())
