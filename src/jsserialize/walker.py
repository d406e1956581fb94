"""Tree walker — swaps values JSON can't carry for placeholder strings.

The walk builds a JSON-native copy of the input; the input itself is
never mutated.  Every special value is classified once, in a fixed
order, because the categories overlap (a JSMap is a dict, a datetime
is a date, a bool is an int).
"""

from __future__ import annotations
import math
import re
from datetime import date
from typing import Any, Callable

from .collector import Collector
from .types import (
    HOLE,
    MAX_SAFE_INTEGER,
    UNDEFINED,
    JSBigInt,
    JSFunction,
    JSMap,
    JSRegExp,
    Kind,
)

Default = Callable[[Any], Any]


def is_function(value: Any) -> bool:
    return isinstance(value, JSFunction) or (callable(value) and not isinstance(value, type))


def is_sparse(value: Any) -> bool:
    """True for a list/tuple with at least one missing index."""
    return isinstance(value, (list, tuple)) and any(item is HOLE for item in value)


# (kind, predicate) in priority order
_KIND_CHECKS: list[tuple[Kind, Callable[[Any], bool]]] = [
    (Kind.REGEXP, lambda v: isinstance(v, (JSRegExp, re.Pattern))),
    (Kind.DATE, lambda v: isinstance(v, date)),
    (Kind.MAP, lambda v: isinstance(v, JSMap)),
    (Kind.SET, lambda v: isinstance(v, (set, frozenset))),
    (Kind.SPARSE_ARRAY, is_sparse),
    (Kind.FUNCTION, is_function),
    (Kind.UNDEFINED, lambda v: v is UNDEFINED),
    (Kind.INFINITY, lambda v: isinstance(v, float) and not math.isfinite(v)),
    (Kind.BIGINT, lambda v: isinstance(v, JSBigInt) or (
        isinstance(v, int) and not isinstance(v, bool) and abs(v) > MAX_SAFE_INTEGER
    )),
]


def classify(value: Any) -> Kind | None:
    """Return the special kind of ``value``, or None if JSON handles it."""
    for kind, check in _KIND_CHECKS:
        if check(value):
            return kind
    return None


def _captured(kind: Kind, value: Any) -> Any:
    """What the collector keeps for a value of ``kind``."""
    if kind is Kind.REGEXP and isinstance(value, re.Pattern):
        return JSRegExp.from_pattern(value)
    if kind is Kind.BIGINT:
        return str(int(value))
    return value


def walk(
    value: Any,
    collector: Collector,
    *,
    ignore_function: bool = False,
    default: Default | None = None,
) -> Any:
    """Return a JSON-encodable copy of ``value`` with placeholders in it."""
    # null, false, 0 and "" go straight through; UNDEFINED is falsy but special
    if value is None or value is False or (type(value) in (int, float, str) and not value):
        return value

    if ignore_function:
        value = strip_functions(value)

    kind = classify(value)
    if kind is not None:
        return collector.push(kind, _captured(kind, value))

    if isinstance(value, dict):
        return {
            k: walk(v, collector, ignore_function=ignore_function, default=default)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [
            walk(v, collector, ignore_function=ignore_function, default=default)
            for v in value
        ]
    if value is None or isinstance(value, (str, int, float)):
        return value
    if value is HOLE:
        # A lone hole outside an array reads back as undefined
        return collector.push(Kind.UNDEFINED, UNDEFINED)

    if default is None:
        raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
    return walk(default(value), collector, ignore_function=ignore_function, default=default)


def strip_functions(value: Any) -> Any:
    """Drop function-valued members from one level of a dict, list or tuple.

    Dict keys are removed; array entries become holes, as deleting an
    array index does in JavaScript.
    """
    if isinstance(value, JSMap):
        return value
    if isinstance(value, dict):
        if not any(is_function(v) for v in value.values()):
            return value
        return {k: v for k, v in value.items() if not is_function(v)}
    if isinstance(value, (list, tuple)):
        if not any(is_function(v) for v in value):
            return value
        return [HOLE if is_function(v) else v for v in value]
    return value
