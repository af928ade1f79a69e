"""Substitution of ``${expr}`` placeholders in serialized output."""

from __future__ import annotations

from .evaluator import EXPRESSION_PREFIX, EXPRESSION_SUFFIX, ExpressionEvaluator, to_text


def substitute_placeholders(html: str, evaluator: ExpressionEvaluator) -> str:
    """
    Replace every ``${expr}`` span with the value of ``expr``.

    The first ``}`` closes a span; braces do not nest. A span whose
    expression evaluates to None is kept literally. An unterminated ``${``
    is kept literally and reported.
    """
    segments = html.split(EXPRESSION_PREFIX)
    out = [segments[0]]

    for segment in segments[1:]:
        end = segment.find(EXPRESSION_SUFFIX)
        if end < 0:
            evaluator.diagnostics.report(f"Unterminated expression '{EXPRESSION_PREFIX}{segment[:40]}'")
            out.append(EXPRESSION_PREFIX + segment)
            continue

        value = evaluator.evaluate(segment[:end])
        if value is None:
            out.append(EXPRESSION_PREFIX + segment)
        else:
            out.append(to_text(value) + segment[end + len(EXPRESSION_SUFFIX):])

    return "".join(out)
