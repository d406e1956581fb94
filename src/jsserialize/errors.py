"""Exceptions raised by jsserialize."""

from __future__ import annotations


class JSSerializeError(Exception):
    """Base class for every error jsserialize raises."""


class NativeFunctionError(JSSerializeError, TypeError):
    """A function has no JavaScript source to emit (built-in or Python code)."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Serializing native function: {name}")


class UnsupportedValueError(JSSerializeError, ValueError):
    """A value of a supported kind uses a feature JavaScript can't express."""


class DecodeError(JSSerializeError, ValueError):
    """Text could not be evaluated as a serialized expression.

    Carries the same position details as ``json.JSONDecodeError``.
    """

    def __init__(self, msg: str, doc: str = "", pos: int = 0) -> None:
        self.msg = msg
        self.doc = doc
        self.pos = pos
        self.lineno = doc.count("\n", 0, pos) + 1
        self.colno = pos - doc.rfind("\n", 0, pos)
        super().__init__(f"{msg}: line {self.lineno} column {self.colno} (char {pos})")

    def __reduce__(self):
        return self.__class__, (self.msg, self.doc, self.pos)
