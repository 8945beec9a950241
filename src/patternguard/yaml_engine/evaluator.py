"""Condition Evaluator: resolve selectors and apply operators against a HookInvocation.

Regex operators follow grep's line semantics: a pattern is searched in each
line of the subject separately, so ``^``/``$`` anchor to line boundaries and
``\\s`` never spans a newline.
"""

from __future__ import annotations

import logging
import operator
import re
from typing import Any

from patternguard.envelope import HookInvocation

logger = logging.getLogger(__name__)

# Sentinel for "field not found"
_MISSING = object()


def evaluate_expression(expr: dict, invocation: HookInvocation) -> bool | _PolicyError:
    """Evaluate a boolean expression tree against an invocation.

    Returns True if the expression matches, False if it does not.
    Returns a _PolicyError instance on a type mismatch or unknown
    operator; callers treat it as "rule did not fire".
    """
    if "all" in expr:
        return _eval_all(expr["all"], invocation)
    if "any" in expr:
        return _eval_any(expr["any"], invocation)
    if "not" in expr:
        return _eval_not(expr["not"], invocation)

    # Leaf node: exactly one selector key
    return _eval_leaf(expr, invocation)


class _PolicyError:
    """Sentinel indicating a type mismatch or evaluation error."""

    __slots__ = ("message",)

    def __init__(self, message: str) -> None:
        self.message = message

    def __bool__(self) -> bool:
        return False  # Errors never fire a rule (fail-open)


def _eval_all(exprs: list[dict], invocation: HookInvocation) -> bool | _PolicyError:
    for expr in exprs:
        result = evaluate_expression(expr, invocation)
        if isinstance(result, _PolicyError):
            return result
        if not result:
            return False
    return True


def _eval_any(exprs: list[dict], invocation: HookInvocation) -> bool | _PolicyError:
    for expr in exprs:
        result = evaluate_expression(expr, invocation)
        if isinstance(result, _PolicyError):
            return result
        if result:
            return True
    return False


def _eval_not(expr: dict, invocation: HookInvocation) -> bool | _PolicyError:
    result = evaluate_expression(expr, invocation)
    if isinstance(result, _PolicyError):
        return result
    return not result


def _eval_leaf(leaf: dict, invocation: HookInvocation) -> bool | _PolicyError:
    selector = next(iter(leaf))
    operator_block = leaf[selector]

    value = _resolve_selector(selector, invocation)

    op_name = next(iter(operator_block))
    op_value = operator_block[op_name]

    return _apply_operator(op_name, value, op_value, selector)


def _resolve_selector(selector: str, invocation: HookInvocation) -> Any:
    if selector == "content":
        return invocation.content
    if selector == "file_path":
        return invocation.file_path
    if selector == "tool.name":
        return invocation.tool_name
    return _MISSING


def _apply_operator(op: str, field_value: Any, op_value: Any, selector: str) -> bool | _PolicyError:
    """Apply a single operator to a resolved field value."""
    if field_value is _MISSING:
        return _PolicyError(f"Unknown selector: '{selector}'")

    fn = _OPERATORS.get(op)
    if fn is None:
        return _PolicyError(f"Unknown operator: '{op}'")

    try:
        return fn(field_value, op_value)
    except (TypeError, KeyError):
        return _PolicyError(
            f"Type mismatch: operator '{op}' cannot be applied to "
            f"selector '{selector}' value {type(field_value).__name__}"
        )


# --- Helpers ---


def _lines(text: str) -> list[str]:
    return text.split("\n")


def _pattern(p: str | re.Pattern) -> re.Pattern:
    return p if isinstance(p, re.Pattern) else re.compile(p)


def _search_lines(pattern: str | re.Pattern, text: str) -> bool:
    rx = _pattern(pattern)
    return any(rx.search(line) for line in _lines(text))


_COMPARISONS: dict[str, Any] = {
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
    "equals": operator.eq,
}


def _compare(count: int, bounds: dict) -> bool:
    """Apply every comparison key present in *bounds* to *count*."""
    checks = [(name, bounds[name]) for name in _COMPARISONS if name in bounds]
    if not checks:
        raise TypeError
    return all(_COMPARISONS[name](count, bound) for name, bound in checks)


# --- Operator implementations ---


def _op_contains(field_value: Any, op_value: str) -> bool:
    if not isinstance(field_value, str):
        raise TypeError
    return op_value in field_value


def _op_contains_any(field_value: Any, op_value: list[str]) -> bool:
    if not isinstance(field_value, str):
        raise TypeError
    return any(v in field_value for v in op_value)


def _op_ends_with(field_value: Any, op_value: str | list[str]) -> bool:
    if not isinstance(field_value, str):
        raise TypeError
    if isinstance(op_value, list):
        return field_value.endswith(tuple(op_value))
    return field_value.endswith(op_value)


def _op_matches(field_value: Any, op_value: str | re.Pattern) -> bool:
    if not isinstance(field_value, str):
        raise TypeError
    return _search_lines(op_value, field_value)


def _op_matches_any(field_value: Any, op_value: list[str | re.Pattern]) -> bool:
    if not isinstance(field_value, str):
        raise TypeError
    return any(_search_lines(p, field_value) for p in op_value)


def _op_matches_line(field_value: Any, op_value: dict) -> bool:
    """Some line matches ``pattern`` and that same line does not match ``unless``."""
    if not isinstance(field_value, str):
        raise TypeError
    rx = _pattern(op_value["pattern"])
    unless = op_value.get("unless")
    unless_rx = _pattern(unless) if unless is not None else None
    for line in _lines(field_value):
        if rx.search(line) and not (unless_rx and unless_rx.search(line)):
            return True
    return False


def _op_count(field_value: Any, op_value: dict) -> bool:
    """Compare the number of literal occurrences of ``of``."""
    if not isinstance(field_value, str):
        raise TypeError
    return _compare(field_value.count(op_value["of"]), op_value)


def _op_count_lines(field_value: Any, op_value: dict) -> bool:
    """Compare the number of lines matching ``pattern`` (grep -c)."""
    if not isinstance(field_value, str):
        raise TypeError
    rx = _pattern(op_value["pattern"])
    return _compare(sum(1 for line in _lines(field_value) if rx.search(line)), op_value)


_OPERATORS: dict[str, Any] = {
    "contains": _op_contains,
    "contains_any": _op_contains_any,
    "ends_with": _op_ends_with,
    "matches": _op_matches,
    "matches_any": _op_matches_any,
    "matches_line": _op_matches_line,
    "count": _op_count,
    "count_lines": _op_count_lines,
}

BUILTIN_OPERATOR_NAMES = frozenset(_OPERATORS)

# Operators whose values carry regex patterns, and where they sit
REGEX_OPERATORS: dict[str, tuple[str, ...]] = {
    "matches": (),
    "matches_any": (),
    "matches_line": ("pattern", "unless"),
    "count_lines": ("pattern",),
}
