"""Decoder — evaluates serialized text back into Python values.

Understands the expression language ``encode`` produces: JSON plus
``undefined``, ``NaN``, ``Infinity``, ``new Date(..)``, ``new RegExp(..)``,
``new Map(..)``, ``new Set(..)``, ``BigInt(..)``,
``Array.prototype.slice.call(..)`` and function expressions.  Nothing is
executed: functions come back as JSFunction source text.

Usage:
    from jsserialize import decode

    decode('{"a":new Set([1,2]),"b":undefined}')   # {'a': {1, 2}, 'b': UNDEFINED}
"""

from __future__ import annotations
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from .errors import DecodeError, JSSerializeError
from .scanner import find_closing, find_expression_end, skip_string, skip_trivia
from .types import HOLE, UNDEFINED, JSBigInt, JSFunction, JSMap, JSRegExp

logger = logging.getLogger(__name__)

_IDENT = re.compile(r"[A-Za-z_$][\w$]*")
_NUMBER = re.compile(
    r"(0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+)(n)?"
    r"|((?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)(n)?"
)
_ISO_DATE = re.compile(
    r"([+-]\d{6}|\d{4})-(\d{2})-(\d{2})"
    r"(?:T(\d{2}):(\d{2})(?::(\d{2})(?:\.(\d+))?)?(Z|[+-]\d{2}:\d{2})?)?$"
)
_STRING_ESCAPE = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|.)", re.DOTALL
)
_SIMPLE_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0",
    # line continuations
    "\n": "", "\r": "", "\r\n": "", "\u2028": "", "\u2029": "",
}
_CONSTANTS = {
    "null": None,
    "true": True,
    "false": False,
    "undefined": UNDEFINED,
    "NaN": float("nan"),
    "Infinity": float("inf"),
}
_ARRAY_SLICE = "Array.prototype.slice.call"


def decode(text: str) -> Any:
    """Evaluate ``text`` (the output of ``encode``) and return the value.

    Raises DecodeError on anything outside the supported expression syntax.
    """
    logger.debug("Decoding %d characters", len(text))
    return _Evaluator(text).evaluate()


class _Evaluator:
    """Recursive-descent evaluator over a single source string."""

    __slots__ = ("text", "pos")

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def evaluate(self) -> Any:
        value = self.parse_value()
        self.skip()
        if self.pos != len(self.text):
            raise self.error("Extra data")
        return value

    # ------------------------------------------------------------------
    # Lexing helpers
    # ------------------------------------------------------------------

    def error(self, msg: str, pos: int | None = None) -> DecodeError:
        return DecodeError(msg, self.text, self.pos if pos is None else pos)

    def skip(self) -> None:
        self.pos = skip_trivia(self.text, self.pos)

    def peek(self) -> str:
        self.skip()
        return self.text[self.pos:self.pos + 1]

    def accept(self, token: str) -> bool:
        self.skip()
        if self.text.startswith(token, self.pos):
            self.pos += len(token)
            return True
        return False

    def expect(self, token: str) -> None:
        if not self.accept(token):
            raise self.error(f"Expecting {token!r}")

    def identifier(self) -> str | None:
        self.skip()
        m = _IDENT.match(self.text, self.pos)
        return m.group() if m else None

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def parse_value(self) -> Any:
        ch = self.peek()
        if not ch:
            raise self.error("Expecting value")
        if ch == "{":
            return self.parse_object()
        if ch == "[":
            return self.parse_array()
        if ch in "\"'":
            return self.parse_string()
        if ch == "(":
            return self.parse_parenthesized()
        if ch in "+-":
            return self.parse_unary()
        if ch.isdigit() or ch == ".":
            return self.parse_number()

        word = self.identifier()
        if word is None:
            raise self.error("Expecting value")
        start = self.pos
        self.pos += len(word)

        if word in _CONSTANTS and not self._arrow_follows():
            return _CONSTANTS[word]
        if word == "new":
            return self.parse_new()
        if word == "BigInt":
            return _to_bigint(self.single_argument("BigInt"), self, start)
        if word == "Array":
            self.pos = start
            return self.parse_array_slice()
        if word in ("function", "async", "class") or self._arrow_follows():
            self.pos = start
            return self.parse_function()
        raise self.error(f"Unexpected identifier {word!r}", start)

    def parse_object(self) -> dict[str, Any]:
        self.expect("{")
        obj: dict[str, Any] = {}
        while not self.accept("}"):
            key = self.parse_key()
            self.expect(":")
            obj[key] = self.parse_value()
            if not self.accept(","):
                self.expect("}")
                break
        return obj

    def parse_key(self) -> str:
        ch = self.peek()
        if ch in ("\"", "'"):
            return self.parse_string()
        if ch.isdigit():
            return _number_key(self.parse_number())
        word = self.identifier()
        if word is None:
            raise self.error("Expecting property name")
        self.pos += len(word)
        return word

    def parse_array(self) -> list[Any]:
        self.expect("[")
        items: list[Any] = []
        while True:
            ch = self.peek()
            if ch == "]":
                self.pos += 1
                return items
            if ch == ",":
                # elision: [1, , 3]
                self.pos += 1
                items.append(HOLE)
                continue
            items.append(self.parse_value())
            if not self.accept(","):
                self.expect("]")
                return items

    def parse_string(self) -> str:
        self.skip()
        start = self.pos
        end = skip_string(self.text, start)
        self.pos = end
        try:
            return _unescape(self.text[start + 1:end - 1])
        except ValueError as e:
            raise self.error(f"Invalid escape in string literal: {e}", start) from e

    def parse_number(self) -> int | float:
        self.skip()
        m = _NUMBER.match(self.text, self.pos)
        if not m:
            raise self.error("Expecting number")
        self.pos = m.end()
        radix_literal, radix_big, decimal, decimal_big = m.groups()
        if radix_literal is not None:
            value = int(radix_literal, 0)
            return JSBigInt(value) if radix_big else value
        if decimal_big:
            if not decimal.isdigit():
                raise self.error("Invalid BigInt literal", m.start())
            return JSBigInt(decimal)
        if any(c in decimal for c in ".eE"):
            return float(decimal)
        return int(decimal)

    def parse_unary(self) -> int | float:
        self.skip()
        start = self.pos
        sign = self.text[start]
        self.pos += 1
        operand = self.parse_value()
        if isinstance(operand, bool) or not isinstance(operand, (int, float)):
            raise self.error(f"Unary {sign!r} needs a number", start)
        if sign == "+":
            return operand
        return JSBigInt(-operand) if isinstance(operand, JSBigInt) else -operand

    def parse_parenthesized(self) -> Any:
        self.skip()
        end = find_closing(self.text, self.pos)
        if self.text.startswith("=>", skip_trivia(self.text, end)):
            return self.parse_function()
        self.pos += 1
        value = self.parse_value()
        self.expect(")")
        return value

    def arguments(self) -> list[Any]:
        self.expect("(")
        args: list[Any] = []
        while not self.accept(")"):
            args.append(self.parse_value())
            if not self.accept(","):
                self.expect(")")
                break
        return args

    def single_argument(self, callee: str) -> Any:
        start = self.pos
        args = self.arguments()
        if not args:
            raise self.error(f"{callee} needs an argument", start)
        return args[0]

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    def parse_new(self) -> Any:
        name = self.identifier()
        start = self.pos
        constructor = _CONSTRUCTORS.get(name or "")
        if constructor is None:
            raise self.error(f"Unsupported constructor {name!r}")
        self.pos += len(name)
        args = self.arguments()
        try:
            return constructor(args)
        except JSSerializeError as e:
            raise self.error(str(e), start) from e
        except (TypeError, ValueError, OverflowError) as e:
            raise self.error(f"Invalid arguments to new {name}: {e}", start) from e

    def parse_array_slice(self) -> list[Any]:
        start = self.pos
        for part in _ARRAY_SLICE.split("."):
            if self.identifier() != part:
                raise self.error(f"Expecting {_ARRAY_SLICE}", start)
            self.pos += len(part)
            if part != "call":
                self.expect(".")
        source = self.single_argument(_ARRAY_SLICE)
        if isinstance(source, list):
            return list(source)
        if not isinstance(source, dict):
            raise self.error(f"{_ARRAY_SLICE} needs an array-like object", start)
        return _from_array_like(source, self, start)

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def parse_function(self) -> JSFunction:
        """Capture a function/class expression's source text without running it."""
        self.skip()
        text = self.text
        start = self.pos
        name = ""
        word = self.identifier()

        if word == "class":
            brace = text.find("{", start)
            if brace == -1:
                raise self.error("Expecting class body")
            name_match = _IDENT.match(text, skip_trivia(text, start + len("class")))
            if name_match and name_match.group() != "extends":
                name = name_match.group()
            end = find_closing(text, brace)
            return self._function(start, end, name)

        pos = start
        if word == "async":
            pos = skip_trivia(text, start + len("async"))
            word = _ident_at(text, pos)

        if word == "function":
            pos = skip_trivia(text, pos + len("function"))
            if text.startswith("*", pos):
                pos = skip_trivia(text, pos + 1)
            name = _ident_at(text, pos) or ""
            paren = text.find("(", pos)
            if paren == -1:
                raise self.error("Expecting '('", pos)
            pos = skip_trivia(text, find_closing(text, paren))
            if not text.startswith("{", pos):
                raise self.error("Expecting function body", pos)
            return self._function(start, find_closing(text, pos), name)

        # Arrow function
        if text.startswith("(", pos):
            pos = find_closing(text, pos)
        elif word:
            pos += len(word)
        else:
            raise self.error("Expecting function", pos)
        pos = skip_trivia(text, pos)
        if not text.startswith("=>", pos):
            raise self.error("Expecting '=>'", pos)
        pos = skip_trivia(text, pos + 2)
        if text.startswith("{", pos):
            end = find_closing(text, pos)
        else:
            end = find_expression_end(text, pos)
            while end > pos and text[end - 1].isspace():
                end -= 1
        return self._function(start, end, name)

    def _function(self, start: int, end: int, name: str) -> JSFunction:
        self.pos = end
        return JSFunction(self.text[start:end], name)

    def _arrow_follows(self) -> bool:
        return self.text.startswith("=>", skip_trivia(self.text, self.pos))


# ----------------------------------------------------------------------
# Constructor implementations
# ----------------------------------------------------------------------

def _new_date(args: list[Any]) -> datetime:
    if not args:
        raise ValueError("new Date() without arguments is not reproducible")
    value = args[0]
    if isinstance(value, str):
        return parse_iso_string(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=value)
    if isinstance(value, datetime):
        return value
    raise TypeError(f"cannot build a Date from {type(value).__name__}")


def _new_regexp(args: list[Any]) -> JSRegExp:
    if not args:
        return JSRegExp("(?:)")
    source = args[0]
    flags = args[1] if len(args) > 1 and args[1] is not UNDEFINED else None
    if isinstance(source, JSRegExp):
        return JSRegExp(source.source, source.flags if flags is None else flags)
    if not isinstance(source, str) or not isinstance(flags, (str, type(None))):
        raise TypeError("pattern and flags must be strings")
    return JSRegExp(source, flags or "")


def _new_map(args: list[Any]) -> JSMap:
    result = JSMap()
    entries = args[0] if args and args[0] not in (None, UNDEFINED) else []
    if not isinstance(entries, list):
        raise TypeError(f"{type(entries).__name__} is not iterable")
    for entry in entries:
        if not isinstance(entry, list) or not entry:
            raise TypeError(f"Map entry {entry!r} is not an entry object")
        key = _hashable(_hole_to_undefined(entry[0]))
        value = _hole_to_undefined(entry[1]) if len(entry) > 1 else UNDEFINED
        result[key] = value
    return result


def _new_set(args: list[Any]) -> set:
    items = args[0] if args and args[0] not in (None, UNDEFINED) else []
    if not isinstance(items, (list, str)):
        raise TypeError(f"{type(items).__name__} is not iterable")
    return {_hashable(_hole_to_undefined(item)) for item in items}


_CONSTRUCTORS: dict[str, Callable[[list[Any]], Any]] = {
    "Date": _new_date,
    "RegExp": _new_regexp,
    "Map": _new_map,
    "Set": _new_set,
}


def parse_iso_string(value: str) -> datetime:
    """Parse the Date.prototype.toISOString format (and its shorter forms) as UTC."""
    m = _ISO_DATE.match(value.strip())
    if not m:
        raise ValueError(f"Invalid Date {value!r}")
    year, month, day, hour, minute, second, fraction, offset = m.groups()
    micros = int((fraction or "0")[:3].ljust(3, "0")) * 1000
    result = datetime(
        int(year), int(month), int(day),
        int(hour or 0), int(minute or 0), int(second or 0), micros,
        tzinfo=timezone.utc,
    )
    if offset and offset != "Z":
        sign = 1 if offset[0] == "+" else -1
        hours, minutes = offset[1:].split(":")
        result -= sign * timedelta(hours=int(hours), minutes=int(minutes))
    return result


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def _to_bigint(value: Any, evaluator: _Evaluator, pos: int) -> JSBigInt:
    if isinstance(value, bool):
        return JSBigInt(int(value))
    if isinstance(value, int):
        return JSBigInt(value)
    if isinstance(value, float) and value.is_integer():
        return JSBigInt(int(value))
    if isinstance(value, str):
        digits = value.strip() or "0"
        base = 0 if digits[:2].lower() in ("0x", "0o", "0b") else 10
        try:
            return JSBigInt(int(digits, base))
        except ValueError as e:
            raise evaluator.error(f"Cannot convert {value!r} to a BigInt", pos) from e
    raise evaluator.error(f"Cannot convert {value!r} to a BigInt", pos)


def _from_array_like(obj: dict[str, Any], evaluator: _Evaluator, pos: int) -> list[Any]:
    length = obj.get("length", 0)
    if isinstance(length, bool) or not isinstance(length, (int, float)) or not 0 <= length < 2 ** 32:
        raise evaluator.error(f"Invalid array length {length!r}", pos)
    items: list[Any] = [HOLE] * int(length)
    for key, value in obj.items():
        if key.isdigit() and str(int(key)) == key and int(key) < len(items):
            items[int(key)] = value
    return items


def _hole_to_undefined(value: Any) -> Any:
    return UNDEFINED if value is HOLE else value


def _hashable(value: Any) -> Any:
    """Freeze arrays and Sets used as Map keys or Set members: list -> tuple, set -> frozenset."""
    if isinstance(value, list):
        return tuple(_hashable(_hole_to_undefined(item)) for item in value)
    if isinstance(value, set):
        return frozenset(value)
    return value


def _number_key(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _ident_at(text: str, pos: int) -> str | None:
    m = _IDENT.match(text, pos)
    return m.group() if m else None


def _unescape(body: str) -> str:
    """Resolve JavaScript string escapes (a superset of JSON's)."""
    if "\\" not in body:
        return body

    def replace(m: re.Match) -> str:
        esc = m.group(1)
        if esc[0] == "u" and len(esc) > 1:
            return chr(int(esc[2:-1] if esc[1] == "{" else esc[1:], 16))
        if esc[0] == "x" and len(esc) == 3:
            return chr(int(esc[1:], 16))
        return _SIMPLE_ESCAPES.get(esc, esc)

    result = _STRING_ESCAPE.sub(replace, body)
    if any("\ud800" <= c <= "\udfff" for c in result):
        # Join \uD83D\uDE00-style surrogate pairs; lone halves are kept
        result = result.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "surrogatepass")
    return result
