"""
Transform results for recform.

A transformer answers every ``(key, value)`` pair with one of:

- ``UNCHANGED`` -- keep the original pair as-is.
- ``Replacement(entries)`` -- replace the original pair with *entries*.
  Zero entries delete the key, one entry renames and/or retypes it, and
  several entries fan the pair out.  The entries need not contain the
  original key.

Mapping a key to ``None`` inside a ``Replacement`` sets that key to absent,
which is different from ``UNCHANGED``.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any


class TransformResult:
    """Base type of ``Unchanged`` and ``Replacement``."""

    __slots__ = ()

    changed: bool = False

    def resolve(self, key: str, value: Any) -> Mapping[str, Any]:
        """Return the entries that stand for ``(key, value)`` after this result."""
        raise NotImplementedError


class Unchanged(TransformResult):
    """The transformer declined; the original pair stands."""

    __slots__ = ()
    _instance: Unchanged | None = None

    def __new__(cls) -> Unchanged:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def resolve(self, key: str, value: Any) -> Mapping[str, Any]:
        return {key: value}

    def __repr__(self) -> str:
        return "UNCHANGED"

    def __reduce__(self):
        return (Unchanged, ())


UNCHANGED = Unchanged()


class Replacement(TransformResult):
    """Entries that replace the original pair."""

    __slots__ = ("_entries",)
    changed = True

    def __init__(self, entries: Mapping[str, Any]) -> None:
        self._entries = MappingProxyType(dict(entries))

    @classmethod
    def of(cls, key: str, value: Any) -> Replacement:
        return cls({key: value})

    @classmethod
    def delete(cls) -> Replacement:
        return cls({})

    @property
    def entries(self) -> Mapping[str, Any]:
        return self._entries

    def resolve(self, key: str, value: Any) -> Mapping[str, Any]:
        return self._entries

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Replacement):
            return dict(self._entries) == dict(other._entries)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(self._entries))

    def __repr__(self) -> str:
        return f"Replacement({dict(self._entries)!r})"
