"""Function source normalization.

``Function.prototype.toString`` returns method shorthand (``foo(x) {}``,
``async *gen() {}``) for functions defined in object literals and classes.
That text is not a valid expression on its own, so it is rewritten into
an anonymous function expression before being emitted.
"""

from __future__ import annotations
from typing import Any

from .errors import DecodeError, NativeFunctionError
from .patterns import (
    IS_ASYNC_MARKER,
    IS_CLASS,
    IS_NATIVE_CODE,
    IS_PURE_FUNCTION,
    IS_SIMPLE_ARROW,
    RESERVED_SYMBOLS,
)
from .scanner import find_closing, skip_trivia
from .types import JSFunction


def function_source(fn: Any) -> str:
    """Return the JavaScript source behind ``fn``, or raise NativeFunctionError.

    Python callables have no JavaScript source and count as native code.
    """
    if not isinstance(fn, JSFunction):
        name = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", "") or repr(fn)
        raise NativeFunctionError(name)
    if IS_NATIVE_CODE.search(fn.source):
        raise NativeFunctionError(fn.name or _guess_name(fn.source))
    return fn.source


def normalize_function(fn: Any) -> str:
    """Return ``fn``'s source as a standalone function expression."""
    source = function_source(fn)

    if IS_PURE_FUNCTION.match(source) or IS_CLASS.match(source) or is_arrow(source):
        return source

    # First "(" opens the parameters; a "(" inside a computed key is not skipped
    args_start = source.find("(")
    if args_start == -1:
        return source

    head = source[:args_start].split()
    if not [tok for tok in head if tok not in RESERVED_SYMBOLS]:
        # "async (x) {...}" style leftovers have nothing to discard
        return source

    # Markers may be glued to the name: "*gen", "async*gen"
    is_async = IS_ASYNC_MARKER.search(source[:args_start]) is not None
    is_generator = "*" in "".join(head)
    return (
        ("async " if is_async else "")
        + "function"
        + ("* " if is_generator else " ")
        + source[args_start:]
    )


def is_arrow(source: str) -> bool:
    """True when ``source`` starts as an arrow function: ``x =>`` or ``(...) =>``."""
    if IS_SIMPLE_ARROW.match(source):
        return True
    pos = skip_trivia(source, 0)
    if source.startswith("async", pos):
        pos = skip_trivia(source, pos + len("async"))
    if not source.startswith("(", pos):
        return False
    try:
        pos = find_closing(source, pos)
    except DecodeError:
        return False
    pos = skip_trivia(source, pos)
    return source.startswith("=>", pos)


def _guess_name(source: str) -> str:
    head = source[:source.find("(")] if "(" in source else source
    tokens = [t for t in head.split() if t not in RESERVED_SYMBOLS and t != "function"]
    return tokens[-1].lstrip("*") if tokens else "anonymous"
