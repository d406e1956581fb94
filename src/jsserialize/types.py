"""Core types — Python stand-ins for JavaScript values JSON can't carry."""

from __future__ import annotations
import re
from dataclasses import dataclass
from enum import Enum

from .errors import UnsupportedValueError


class Kind(str, Enum):
    """Placeholder tag for each value kind the base format can't represent."""
    FUNCTION = "F"
    REGEXP = "R"
    DATE = "D"
    MAP = "M"
    SET = "S"
    SPARSE_ARRAY = "A"
    UNDEFINED = "U"
    INFINITY = "I"      # also NaN
    BIGINT = "B"


class UndefinedType(Enum):
    """JavaScript ``undefined``."""
    UNDEFINED = "undefined"

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


class HoleType(Enum):
    """A missing index in a sparse array (e.g. the middle of ``[1, , 3]``)."""
    HOLE = "hole"

    def __repr__(self) -> str:
        return "HOLE"

    def __bool__(self) -> bool:
        return False


UNDEFINED = UndefinedType.UNDEFINED
HOLE = HoleType.HOLE


@dataclass(frozen=True, slots=True)
class JSFunction:
    """A JavaScript function, carried as its source text."""
    source: str
    name: str = ""

    def __str__(self) -> str:
        return self.source


# JS flag → Python flag; "g", "y", "d", "u", "v" have no Python equivalent
_FLAG_TO_PY: dict[str, re.RegexFlag] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}
_JS_FLAG_ORDER = "dgimsuvy"


@dataclass(frozen=True, slots=True)
class JSRegExp:
    """A JavaScript regular expression: pattern source plus flag letters."""
    source: str
    flags: str = ""

    def __post_init__(self) -> None:
        # RegExp.prototype.flags always reports flags in alphabetical order
        ordered = "".join(f for f in _JS_FLAG_ORDER if f in self.flags)
        if len(ordered) != len(self.flags):
            raise UnsupportedValueError(f"Invalid regular expression flags: {self.flags!r}")
        object.__setattr__(self, "flags", ordered)

    @classmethod
    def from_pattern(cls, pattern: re.Pattern) -> JSRegExp:
        """Convert a compiled Python pattern. Verbose/locale patterns are rejected."""
        if isinstance(pattern.pattern, bytes):
            raise UnsupportedValueError("Cannot serialize a bytes pattern as a RegExp")
        if pattern.flags & (re.VERBOSE | re.LOCALE):
            raise UnsupportedValueError(
                f"RegExp has no equivalent of re.VERBOSE or re.LOCALE: {pattern.pattern!r}"
            )
        flags = "".join(js for js, py in _FLAG_TO_PY.items() if pattern.flags & py)
        return cls(pattern.pattern, flags)

    def compile(self) -> re.Pattern:
        """Best-effort compile with Python's ``re`` (syntax differences are not translated)."""
        py_flags = 0
        for f in self.flags:
            py_flags |= _FLAG_TO_PY.get(f, 0)
        return re.compile(self.source, py_flags)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, re.Pattern):
            try:
                other = JSRegExp.from_pattern(other)
            except UnsupportedValueError:
                return False
        if not isinstance(other, JSRegExp):
            return NotImplemented
        return self.source == other.source and self.flags == other.flags

    def __hash__(self) -> int:
        return hash((self.source, self.flags))


class JSMap(dict):
    """An ordered JavaScript ``Map``. Unlike a plain dict (an object), keys need not be strings."""

    def __repr__(self) -> str:
        return f"JSMap({dict.__repr__(self)})"


class JSBigInt(int):
    """An integer that always serializes as ``BigInt("...")``."""

    def __repr__(self) -> str:
        return f"JSBigInt({int.__repr__(self)})"


# Integers beyond this can't survive a trip through a JavaScript Number
MAX_SAFE_INTEGER = 2 ** 53 - 1
