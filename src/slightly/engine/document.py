"""
Slightly document tree

Templates are parsed with BeautifulSoup (``html.parser`` backend). This module
adds the few tree operations the directive passes need on top of it and the
output formatter used for every serialization.

Output notes:
- ``${...}`` spans are written back unescaped, so ``${a > b}`` survives a
  parse/serialize cycle
- attributes keep their authored order; the first of duplicate attributes wins
- void elements are written HTML style (``<br>``, ``<input disabled>``)
"""

from __future__ import annotations

import re
from typing import Callable, Final

from bs4 import BeautifulSoup, Doctype, PageElement, Tag
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

from ..core.error import DocumentParseError

_EXPRESSION_RE: Final = re.compile(r"(\$\{[^}]*\})")


def _escape_outside_expressions(text: str) -> str:
    parts = _EXPRESSION_RE.split(text)
    # odd indexes are the captured ${...} spans
    return "".join(
        part if i % 2 else EntitySubstitution.substitute_xml(part)
        for i, part in enumerate(parts)
    )


class _TemplateFormatter(HTMLFormatter):
    def attributes(self, tag: Tag):
        return [
            (key, None if self.empty_attributes_are_booleans and value == "" else value)
            for key, value in tag.attrs.items()
        ]


FORMATTER: Final = _TemplateFormatter(
    entity_substitution=_escape_outside_expressions,
    void_element_close_prefix=None,
    empty_attributes_are_booleans=True,
)


class _Doctype(Doctype):
    # bs4 appends a newline after the doctype; authored whitespace is kept instead
    SUFFIX = ">"


# ====================
# Parsing
# ====================

def parse(raw: bytes | str, charset: str = "utf-8") -> BeautifulSoup:
    """
    Parse raw markup into a document tree.

    Args:
        raw: Document bytes (decoded with ``charset``) or text.
        charset: Charset of ``raw`` when given as bytes.

    Raises:
        DocumentParseError: If the charset is unknown or the bytes do not decode.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            text = bytes(raw).decode(charset)
        except LookupError:
            raise DocumentParseError(f"Unknown charset '{charset}'.")
        except UnicodeDecodeError as e:
            raise DocumentParseError(str(e))
    else:
        text = raw

    soup = BeautifulSoup(
        text.removeprefix("\ufeff"),
        "html.parser",
        multi_valued_attributes=None,
        on_duplicate_attribute="ignore",
    )
    for node in list(soup.contents):
        if type(node) is Doctype:
            node.replace_with(_Doctype(str(node)))
    return soup


def parse_fragment(html: str) -> list[PageElement]:
    """Parse markup into a list of sibling nodes, not yet placed in any document."""
    return [node.extract() for node in list(parse(html).contents)]


# ====================
# Queries
# ====================

def _find(root: Tag, match: Callable[[Tag], bool]) -> list[Tag]:
    """Matching descendant elements in document (pre-order) order."""
    return root.find_all(match)


def find_by_attribute(root: Tag, name: str) -> list[Tag]:
    return _find(root, lambda tag: name in tag.attrs)


def find_by_attribute_prefix(root: Tag, prefix: str) -> list[Tag]:
    return _find(root, lambda tag: first_attr_starting(tag, prefix) is not None)


def find_by_attribute_value(root: Tag, name: str, value: str) -> list[Tag]:
    return _find(root, lambda tag: tag.attrs.get(name) == value)


def first_attr_starting(tag: Tag, prefix: str) -> str | None:
    """Key of the first attribute starting with ``prefix``."""
    return next((key for key in tag.attrs if key.startswith(prefix)), None)


# ====================
# Mutation
# ====================

def is_attached(node: PageElement) -> bool:
    """False once the node, or any of its ancestors, has been removed."""
    return not node.decomposed


def remove(tag: Tag) -> None:
    """Drop an element and its subtree. No-op when already removed."""
    if not tag.decomposed:
        tag.decompose()


def insert_before(node: PageElement, html: str) -> None:
    """
    Parse ``html`` and insert the resulting nodes immediately before ``node``.

    Every call inserts directly in front of ``node``, so siblings inserted by
    repeated calls end up in call order. No-op on a removed node.
    """
    if node.decomposed or node.parent is None:
        return
    for piece in parse_fragment(html):
        node.insert_before(piece)


# ====================
# Serialization
# ====================

def outer_html(node: PageElement) -> str:
    if isinstance(node, Tag):
        return node.decode(formatter=FORMATTER)
    return node.output_ready(formatter=FORMATTER)


def inner_html(tag: Tag) -> str:
    return tag.decode_contents(formatter=FORMATTER)


def serialize(document: BeautifulSoup) -> str:
    return document.decode(formatter=FORMATTER)
