"""Serializer — the main API.  Two passes: walk to JSON, then rewrite placeholders.

Usage:
    import re
    from datetime import datetime, timezone
    from jsserialize import encode, decode, JSFunction

    text = encode({
        "when": datetime(2024, 1, 2, tzinfo=timezone.utc),
        "pattern": re.compile(r"^a+$", re.I),
        "tags": {"x", "y"},
        "render": JSFunction("render(el) { el.hidden = false }"),
    })
    # {"when":new Date("2024-01-02T00:00:00.000Z"),
    #  "pattern":new RegExp("^a+$", "i"),
    #  "tags":new Set(["x","y"]),
    #  "render":function (el) { el.hidden = false }}

    decode(text)["when"]   # datetime(2024, 1, 2, tzinfo=timezone.utc)

The output is JavaScript, not JSON: embed it in a <script> tag or
evaluate it.  <, >, / and the JS line terminators are escaped unless
``unsafe`` is set.
"""

from __future__ import annotations
import json
import logging
import math
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from typing import Any, Callable

from .collector import Collector
from .errors import UnsupportedValueError
from .functions import normalize_function
from .patterns import PLACEHOLDER, escape_unsafe_chars
from .types import HOLE, UNDEFINED, JSRegExp, Kind
from .walker import is_function, walk

logger = logging.getLogger(__name__)

# JSON.stringify never indents by more than this
MAX_INDENT = 10


@dataclass
class EncodeOptions:
    """Options for encode()."""
    space: int | str | None = None     # indentation, as JSON.stringify's space
    is_json: bool = False              # caller promises plain JSON data: skip the walker
    unsafe: bool = False               # don't escape <, >, /, U+2028, U+2029
    ignore_function: bool = False      # drop functions instead of emitting them
    # Fallback for otherwise unserializable objects, as json.dumps(default=...)
    default: Callable[[Any], Any] | None = None


def encode(
    value: Any,
    options: EncodeOptions | int | str | None = None,
    **overrides: Any,
) -> str:
    """Serialize ``value`` to the text of a JavaScript expression.

    ``options`` may be an EncodeOptions, or an int/str used as ``space``.
    Keyword arguments override individual option fields.

    Raises NativeFunctionError for functions without JavaScript source and
    UnsupportedValueError for regexes and dates JavaScript cannot represent.
    Naive datetimes and plain dates are written as UTC, so they decode as
    aware datetimes.
    """
    opts = _coerce_options(options, overrides)

    if opts.ignore_function and is_function(value):
        value = UNDEFINED
    if value is UNDEFINED:
        return "undefined"

    indent = _indent(opts.space)

    if opts.is_json:
        collector = None
        text = _dumps(value, indent, opts.default)
    else:
        collector = Collector()
        tree = walk(value, collector, ignore_function=opts.ignore_function, default=opts.default)
        text = _dumps(tree, indent)

    if not opts.unsafe:
        text = escape_unsafe_chars(text)

    if collector is None or collector.empty:
        return text

    logger.debug("Resolving placeholders %s", collector.counts())
    return PLACEHOLDER.sub(lambda m: _resolve(m, collector, opts), text)


# ----------------------------------------------------------------------
# Placeholder resolution
# ----------------------------------------------------------------------

def _resolve(match, collector: Collector, options: EncodeOptions) -> str:
    backslash, tag, uid, index = match.groups()
    # Escaped or foreign markers are data, not ours to replace
    if backslash or not collector.owns(uid):
        return match.group()
    kind = Kind(tag)
    return _BUILDERS[kind](collector.get(kind, int(index)), options)


def _build_date(value: date, options: EncodeOptions) -> str:
    return f'new Date("{to_iso_string(value)}")'


def _build_regexp(value: JSRegExp, options: EncodeOptions) -> str:
    return f'new RegExp({encode(value.source, options)}, "{value.flags}")'


def _build_map(value: dict, options: EncodeOptions) -> str:
    return f"new Map({encode([[k, v] for k, v in value.items()], options)})"


def _build_set(value: set, options: EncodeOptions) -> str:
    return f"new Set({encode(list(value), options)})"


def _build_sparse_array(value: list, options: EncodeOptions) -> str:
    obj: dict[str, Any] = {"length": len(value)}
    for i, item in enumerate(value):
        if item is not HOLE:
            obj[str(i)] = item
    return f"Array.prototype.slice.call({encode(obj, options)})"


def _build_undefined(value: Any, options: EncodeOptions) -> str:
    return "undefined"


def _build_infinity(value: float, options: EncodeOptions) -> str:
    if math.isnan(value):
        return "NaN"
    return "Infinity" if value > 0 else "-Infinity"


def _build_bigint(value: str, options: EncodeOptions) -> str:
    return f'BigInt("{value}")'


def _build_function(value: Any, options: EncodeOptions) -> str:
    return normalize_function(value)


_BUILDERS: dict[Kind, Callable[[Any, EncodeOptions], str]] = {
    Kind.DATE: _build_date,
    Kind.REGEXP: _build_regexp,
    Kind.MAP: _build_map,
    Kind.SET: _build_set,
    Kind.SPARSE_ARRAY: _build_sparse_array,
    Kind.UNDEFINED: _build_undefined,
    Kind.INFINITY: _build_infinity,
    Kind.BIGINT: _build_bigint,
    Kind.FUNCTION: _build_function,
}


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def to_iso_string(value: date) -> str:
    """Format like Date.prototype.toISOString: UTC, millisecond precision.

    Naive datetimes are taken as UTC; a plain date is midnight UTC.  decode()
    always returns an aware UTC datetime, so only aware values compare equal
    after a round-trip.

    Raises UnsupportedValueError when the UTC instant falls outside years 1-9999.
    """
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        try:
            value = value.astimezone(timezone.utc)
        except OverflowError as e:
            raise UnsupportedValueError(f"Date out of range in UTC: {value!r}") from e
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
        f".{value.microsecond // 1000:03d}Z"
    )


def _coerce_options(options: EncodeOptions | int | str | None, overrides: dict[str, Any]) -> EncodeOptions:
    if options is None:
        options = EncodeOptions()
    elif isinstance(options, (int, str)):
        options = EncodeOptions(space=options)
    if overrides:
        options = replace(options, **overrides)
    return options


def _indent(space: int | str | None) -> str | None:
    """Translate JSON.stringify's ``space`` into json.dumps' ``indent``."""
    if isinstance(space, bool):
        return None
    if isinstance(space, int):
        return " " * min(space, MAX_INDENT) if space >= 1 else None
    if isinstance(space, str):
        return space[:MAX_INDENT] or None
    return None


def _dumps(value: Any, indent: str | None, default: Callable[[Any], Any] | None = None) -> str:
    if indent is None:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=default)
    return json.dumps(value, ensure_ascii=False, indent=indent, default=default)
