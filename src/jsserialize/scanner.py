"""Lexical scanner for JavaScript source spans.

Only answers "where does this bracket / expression end?".  Strings,
template literals, comments and regex literals are skipped so that
brackets inside them are not counted.  Regex-vs-division is decided
from the previous significant character, which is enough for function
bodies produced by ``Function.prototype.toString``.
"""

from __future__ import annotations

from .errors import DecodeError

_PAIRS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(")]}")
_WHITESPACE = frozenset(" \t\n\r\v\f\ufeff\u00a0\u2028\u2029")

# A "/" after one of these starts a regex literal rather than a division
_REGEX_PRECEDERS = frozenset("(,=:[!&|?{};+-*%<>~^")
_REGEX_KEYWORDS = frozenset({
    "return", "typeof", "instanceof", "in", "of", "new", "delete", "void",
    "throw", "case", "do", "else", "yield", "await",
})


def skip_trivia(text: str, pos: int) -> int:
    """Skip whitespace and comments; return the next significant index."""
    n = len(text)
    while pos < n:
        ch = text[pos]
        if ch in _WHITESPACE:
            pos += 1
        elif text.startswith("//", pos):
            end = text.find("\n", pos)
            pos = n if end == -1 else end + 1
        elif text.startswith("/*", pos):
            end = text.find("*/", pos + 2)
            if end == -1:
                raise DecodeError("Unterminated comment", text, pos)
            pos = end + 2
        else:
            break
    return pos


def skip_string(text: str, pos: int) -> int:
    """``pos`` is at a quote; return the index just past the closing quote."""
    quote = text[pos]
    i = pos + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
        elif ch == quote:
            return i + 1
        elif ch in "\r\n":
            break
        else:
            i += 1
    raise DecodeError("Unterminated string literal", text, pos)


def skip_template(text: str, pos: int) -> int:
    """``pos`` is at a backtick; substitutions are scanned recursively."""
    i = pos + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
        elif ch == "`":
            return i + 1
        elif text.startswith("${", i):
            i = find_closing(text, i + 1)
        else:
            i += 1
    raise DecodeError("Unterminated template literal", text, pos)


def skip_regex(text: str, pos: int) -> int:
    """``pos`` is at the opening slash; flags are consumed too."""
    i = pos + 1
    n = len(text)
    in_class = False
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch in "\r\n":
            break
        if ch == "[":
            in_class = True
        elif ch == "]":
            in_class = False
        elif ch == "/" and not in_class:
            i += 1
            while i < n and (text[i].isalnum() or text[i] == "_"):
                i += 1
            return i
        i += 1
    raise DecodeError("Unterminated regular expression literal", text, pos)


def _regex_allowed(text: str, pos: int) -> bool:
    i = pos - 1
    while i >= 0 and text[i] in _WHITESPACE:
        i -= 1
    if i < 0 or text[i] in _REGEX_PRECEDERS:
        return True
    end = i + 1
    while i >= 0 and (text[i].isalnum() or text[i] in "_$"):
        i -= 1
    return text[i + 1:end] in _REGEX_KEYWORDS


def _skip_literal(text: str, pos: int) -> int | None:
    """Skip a string, template, comment or regex starting at ``pos``, if any."""
    ch = text[pos]
    if ch in "\"'":
        return skip_string(text, pos)
    if ch == "`":
        return skip_template(text, pos)
    if ch == "/":
        if text.startswith("//", pos) or text.startswith("/*", pos):
            return skip_trivia(text, pos)
        if _regex_allowed(text, pos):
            return skip_regex(text, pos)
    return None


def find_closing(text: str, pos: int) -> int:
    """``pos`` is at ``(``, ``[`` or ``{``; return the index past its match."""
    closers = [_PAIRS[text[pos]]]
    i = pos + 1
    n = len(text)
    while i < n:
        skipped = _skip_literal(text, i)
        if skipped is not None:
            i = skipped
            continue
        ch = text[i]
        if ch in _PAIRS:
            closers.append(_PAIRS[ch])
        elif ch in _CLOSERS:
            if closers.pop() != ch:
                raise DecodeError(f"Mismatched {ch!r}", text, i)
            if not closers:
                return i + 1
        i += 1
    raise DecodeError(f"Expecting {closers[-1]!r}", text, n)


def find_expression_end(text: str, pos: int) -> int:
    """Return the index of the first ``,`` or unmatched closer at depth zero.

    Used for arrow functions with an expression body, whose extent ends
    where the enclosing array, object or call continues.
    """
    i = pos
    n = len(text)
    while i < n:
        skipped = _skip_literal(text, i)
        if skipped is not None:
            i = skipped
            continue
        ch = text[i]
        if ch == "," or ch in _CLOSERS:
            return i
        if ch in _PAIRS:
            i = find_closing(text, i)
        else:
            i += 1
    return n
