"""Rewrites parenthesised boolean filters for the Clinical Tables ``q`` parameter.

The upstream search handles grouping with parentheses unreliably, so a few
single-level shapes are rewritten into equivalent parenthesis-free (or at least
flatter) forms. This is a small ordered list of regex rewrites, not a boolean
expression parser: nested or multi-group expressions are passed through with a
warning. Warnings are returned to the caller, which decides how to report them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple

_QUOTED = re.compile(r'"[^"]*"')

# A AND (B OR C)
_AND_OR = re.compile(r"([^()]+)\s+(AND)\s+\(([^()]+)\s+(OR)\s+([^()]+)\)", re.IGNORECASE)
# A OR (B AND C)
_OR_AND = re.compile(r"([^()]+)\s+(OR)\s+\(([^()]+)\s+(AND)\s+([^()]+)\)", re.IGNORECASE)
# (A OR B) AND C
_GROUPED_OR_AND = re.compile(r"\(([^()]+)\s+(OR)\s+([^()]+)\)\s+(AND)\s+([^()]+)", re.IGNORECASE)
# (A OR B)
_GROUPED_OR = re.compile(r"\(([^()]+)\s+(OR)\s+([^()]+)\)", re.IGNORECASE)
# (A AND B)
_GROUPED_AND = re.compile(r"\(([^()]+)\s+(AND)\s+([^()]+)\)", re.IGNORECASE)


@dataclass(frozen=True)
class RewrittenQuery:
    """Result of rewriting an ``additionalQuery``; ``query`` is None when nothing should be sent."""

    query: Optional[str]
    warnings: Tuple[str, ...] = field(default_factory=tuple)


def has_problematic_parentheses(query: str) -> bool:
    """True when a parenthesis survives once double-quoted literals are removed."""
    unquoted = _QUOTED.sub("", query)
    return "(" in unquoted or ")" in unquoted


def _distribute_and_over_or(m: re.Match) -> Tuple[str, Optional[str]]:
    left, and_op, middle, or_op, right = (g.strip() for g in m.groups())
    return f"({left} {and_op} {middle}) {or_op.upper()} ({left} {and_op} {right})", None


def _flatten_or_and(m: re.Match) -> Tuple[str, Optional[str]]:
    left, or_op, middle, and_op, right = (g.strip() for g in m.groups())
    # OR does not distribute over AND; drop the parentheses and suggest a split instead
    warning = (
        "Complex OR with AND grouping detected. Consider breaking into separate queries:\n"
        f"Query 1: {left}\n"
        f"Query 2: {middle} {and_op} {right}"
    )
    return f"{left} {or_op} {middle} {and_op} {right}", warning


def _distribute_grouped_or(m: re.Match) -> Tuple[str, Optional[str]]:
    left, or_op, middle, and_op, right = (g.strip() for g in m.groups())
    return f"({left} {and_op} {right}) {or_op.upper()} ({middle} {and_op} {right})", None


def _strip_group(m: re.Match) -> Tuple[str, Optional[str]]:
    left, op, right = (g.strip() for g in m.groups())
    return f"{left} {op} {right}", None


_RULES: List[Tuple[re.Pattern, Callable[[re.Match], Tuple[str, Optional[str]]]]] = [
    (_AND_OR, _distribute_and_over_or),
    (_OR_AND, _flatten_or_and),
    (_GROUPED_OR_AND, _distribute_grouped_or),
    (_GROUPED_OR, _strip_group),
    (_GROUPED_AND, _strip_group),
]


def transform_parentheses(query: str) -> Tuple[str, Optional[str]]:
    """Apply the first matching rewrite rule.

    Returns the (possibly unchanged) query and the rule's own warning, if any.
    """
    for pattern, rewrite in _RULES:
        m = pattern.fullmatch(query)
        if m:
            return rewrite(m)
    return query, None


def rewrite_additional_query(additional_query: Any) -> RewrittenQuery:
    if not additional_query or not isinstance(additional_query, str):
        return RewrittenQuery(None)

    trimmed = additional_query.strip()
    if not trimmed:
        return RewrittenQuery(None)

    if not has_problematic_parentheses(trimmed):
        return RewrittenQuery(trimmed)

    transformed, rule_warning = transform_parentheses(trimmed)
    if transformed != trimmed:
        warning = rule_warning or (
            "NLM Clinical Tables API Warning: Parentheses grouping detected and transformed.\n"
            f"Original: {trimmed}\n"
            f"Transformed: {transformed}\n"
            "Note: The API has limited support for parentheses in boolean expressions."
        )
        return RewrittenQuery(transformed, (warning,))

    warning = (
        "NLM Clinical Tables API Warning: Complex parentheses grouping detected.\n"
        f"Query: {trimmed}\n"
        "Note: This query may not work as expected due to API limitations with parentheses.\n"
        "Consider using simpler boolean expressions without parentheses."
    )
    return RewrittenQuery(trimmed, (warning,))
