from __future__ import annotations

from dataclasses import dataclass, fields
import codecs
import os
from typing import Mapping

from .error import ConfigInvalidValueError


ENV_PREFIX = "SLIGHTLY_"


@dataclass(frozen=True)
class ProcessorConfig:
    """
    Settings shared by the pipeline, the loader and the WSGI processor.

    Attributes:
        document_root: Directory templates are loaded from.
        index_document: Document served for the default path.
        charset: Charset used to decode template files.
        script_attribute: Attribute marking the embedded server script element.
        script_type: Value of ``script_attribute`` marking server script.
        request_name: Binding name of the inbound request object.
        if_attribute: Conditional directive attribute.
        for_prefix: Repetition directive prefix, followed by ``-<identifier>``.
    """
    document_root: str = "."
    index_document: str = "index.html"
    charset: str = "utf-8"
    script_attribute: str = "type"
    script_type: str = "server/python"
    request_name: str = "request"
    if_attribute: str = "data-if"
    for_prefix: str = "data-for"

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigInvalidValueError(f.name, value)

        try:
            codecs.lookup(self.charset)
        except LookupError:
            raise ConfigInvalidValueError("charset", self.charset)

        if not self.request_name.isidentifier():
            raise ConfigInvalidValueError("request_name", self.request_name)

        if self.for_prefix.endswith("-"):
            raise ConfigInvalidValueError("for_prefix", self.for_prefix)

    @property
    def for_attribute_prefix(self) -> str:
        """Prefix including the dash that separates the bound identifier."""
        return f"{self.for_prefix}-"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: str) -> "ProcessorConfig":
        """
        Build a config from ``SLIGHTLY_<FIELD>`` environment variables.

        Explicit keyword overrides win over the environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is not None:
                values[f.name] = raw
        values.update(overrides)
        return cls(**values)
