"""Compiled patterns shared by the encoder, the function normalizer and the decoder.

All of these are built once at import time and hold no match state, so
they are safe to share across calls and threads.
"""

from __future__ import annotations
import re

UID_LENGTH = 16     # random bytes; hex-encoded to 32 characters

# "@__<TAG>-<UID>-<INDEX>__@" as it appears inside JSON output (quoted),
# optionally preceded by the backslash of an escaped quote
PLACEHOLDER = re.compile(
    r'(\\)?"@__([FRDMSAUIB])-([0-9a-f]{%d})-(\d+)__@"' % (UID_LENGTH * 2)
)

IS_NATIVE_CODE = re.compile(r"\{\s*\[native code\]\s*\}")

# Conventional function expressions: "function f(", "async function* (", ...
IS_PURE_FUNCTION = re.compile(r"^\s*(?:async\s+)?function\b")

# Arrow functions with a bare identifier parameter: "x => x", "async x => x"
IS_SIMPLE_ARROW = re.compile(r"^\s*(?:async\s+)?[A-Za-z_$][\w$]*\s*=>")

IS_CLASS = re.compile(r"^\s*class\b")

# "async" as a modifier in a method head, not a method named "async"
IS_ASYNC_MARKER = re.compile(r"(?:^|\s)async\b(?=\s*[*\w$\[])")

RESERVED_SYMBOLS = ("*", "async")

UNSAFE_CHARS = re.compile("[<>/\u2028\u2029]")

ESCAPED_CHARS = {
    "<": "\\u003C",
    ">": "\\u003E",
    "/": "\\u002F",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def escape_unsafe_chars(text: str) -> str:
    """Neutralize characters that break out of a <script> tag or a JS line."""
    return UNSAFE_CHARS.sub(lambda m: ESCAPED_CHARS[m.group()], text)
