"""
Directive passes over the document tree.

- ``data-if``: keep the element when its expression renders as ``true``,
  otherwise drop it with its subtree
- ``data-for-<name>``: repeat the element once per item, replacing the
  literal ``${name}`` in each copy

Each pass takes one snapshot of the matching elements before mutating the
tree. Elements removed earlier in the same sweep are skipped. Repetitions
nested inside a repeated element are not expanded: their attributes are
dropped from the copies and reported.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from bs4 import BeautifulSoup, Tag

from ..core.error import DirectiveError
from .document import (
    find_by_attribute,
    find_by_attribute_prefix,
    first_attr_starting,
    insert_before,
    is_attached,
    outer_html,
    remove,
)
from .evaluator import (
    EXPRESSION_PREFIX,
    EXPRESSION_SUFFIX,
    Diagnostics,
    ExpressionEvaluator,
    to_text,
    unwrap,
)

TRUE_TEXT = "true"


def is_true(value: Any) -> bool:
    """None is false; anything else only if it renders exactly as ``true``."""
    if value is None:
        return False
    return to_text(value) == TRUE_TEXT


def resolve_conditionals(document: BeautifulSoup, evaluator: ExpressionEvaluator, attribute: str = "data-if") -> int:
    """
    Resolve conditional directives in place.

    Returns:
        Number of elements removed.
    """
    removed = 0
    for element in find_by_attribute(document, attribute):
        if not is_attached(element):
            continue

        result = evaluator.evaluate(unwrap(element.get(attribute) or ""))
        if not is_true(result):
            remove(element)
            removed += 1
            continue

        del element[attribute]
    return removed


def bound_identifier(key: str, prefix: str = "data-for") -> str:
    """
    Name bound by a repetition attribute: ``data-for-item`` -> ``item``.

    Raises:
        DirectiveError: If the key carries no identifier.
    """
    head = f"{prefix}-"
    if not key.startswith(head):
        raise DirectiveError(key)
    identifier = key[len(head):].split("-", 1)[0]
    if not identifier:
        raise DirectiveError(key)
    return identifier


def _as_items(value: Any, key: str, diagnostics: Diagnostics) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        diagnostics.report(f"'{key}' expects a sequence, got {type(value).__name__}")
        return []
    return list(value)


def expand_repetition(element: Tag, key: str, items: list[Any], identifier: str) -> None:
    """Insert one copy of ``element`` per item before it, then drop the template."""
    del element[key]
    placeholder = f"{EXPRESSION_PREFIX}{identifier}{EXPRESSION_SUFFIX}"
    template = outer_html(element)
    for item in items:
        insert_before(element, template.replace(placeholder, to_text(item)))
    remove(element)


def _strip_nested(element: Tag, key: str, head: str, diagnostics: Diagnostics) -> None:
    """Drop repetition attributes left inside a template; copies never expand them."""
    for tag in [element, *find_by_attribute_prefix(element, head)]:
        for nested in [k for k in tag.attrs if k.startswith(head) and not (tag is element and k == key)]:
            diagnostics.report(f"'{nested}' inside a repeated element is not expanded")
            del tag[nested]


def resolve_repetitions(document: BeautifulSoup, evaluator: ExpressionEvaluator, prefix: str = "data-for") -> int:
    """
    Resolve repetition directives in place.

    Returns:
        Number of template elements expanded.
    """
    head = f"{prefix}-"
    expanded = 0
    for element in find_by_attribute_prefix(document, head):
        if not is_attached(element):
            continue

        key = first_attr_starting(element, head)
        if key is None:
            continue
        identifier = bound_identifier(key, prefix)

        value = evaluator.evaluate(unwrap(element.get(key) or ""))
        items = _as_items(value, key, evaluator.diagnostics)
        if items:
            _strip_nested(element, key, head, evaluator.diagnostics)
        expand_repetition(element, key, items, identifier)
        expanded += 1
    return expanded
