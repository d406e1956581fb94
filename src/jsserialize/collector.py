"""Collector — per-call side tables behind the placeholder strings.

Design goals:
  - Collision-free: every placeholder carries a fresh random UID, so
    genuine string data (or another call's output) is never resolved
  - Stable: a captured value's index never changes once assigned
  - Scoped: one collector per encode call, discarded afterwards
"""

from __future__ import annotations
import secrets
from typing import Any

from .patterns import UID_LENGTH
from .types import Kind


# Placeholder format: "@__F-<uid>-0__@" — embedded in JSON as a plain string
_PLACEHOLDER_FMT = "@__{kind}-{uid}-{idx}__@"


def generate_uid() -> str:
    """Return 32 hex characters from 16 cryptographically random bytes."""
    return secrets.token_hex(UID_LENGTH)


class Collector:
    """Ordered, append-only store of captured values, one list per kind."""

    __slots__ = ("uid", "_values")

    def __init__(self, uid: str | None = None) -> None:
        self.uid = uid or generate_uid()
        self._values: dict[Kind, list[Any]] = {kind: [] for kind in Kind}

    # ------------------------------------------------------------------
    # Core API
    # ------------------------------------------------------------------

    def push(self, kind: Kind, value: Any) -> str:
        """Store a value and return the placeholder that refers to it."""
        values = self._values[kind]
        values.append(value)
        return _PLACEHOLDER_FMT.format(kind=kind.value, uid=self.uid, idx=len(values) - 1)

    def get(self, kind: Kind, index: int) -> Any:
        """Return the value stored at ``index`` for ``kind``."""
        return self._values[kind][index]

    def owns(self, uid: str) -> bool:
        return uid == self.uid

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def empty(self) -> bool:
        return not any(self._values.values())

    def counts(self) -> dict[str, int]:
        """Number of captured values per kind (for debugging)."""
        return {kind.name: len(v) for kind, v in self._values.items() if v}
