"""
Value model helpers and merge strategies for recform.

A value flowing through a pipeline is one of:

- ``None`` -- the absence marker.
- a scalar -- ``str``, ``int``, ``float``, ``bool``, a timestamp or a ``Tag``.
- a sequence -- ``list`` or ``tuple`` of values (strings are never sequences).
- a mapping -- ``Mapping[str, Value]``.

Two merge strategies are defined here and used by different call paths:

- **Record merge** (``RecordMerger``): used when per-key results are folded
  back into a record.  A key produced again for the *same* original key is
  upserted; a key produced by a *different* original key accumulates.
- **Concat merge** (``concat_into``): used by ``ForEach``; every produced
  value is appended to a list under its key.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Union

Value = Union[None, str, int, float, bool, datetime, list, tuple, Mapping]
Record = dict[str, Any]


class Tag(str):
    """A string value that should be stored as an opaque tag, not text."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Tag({str.__repr__(self)})"


def is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def is_scalar(value: Any) -> bool:
    """True for any non-absent value that is neither a sequence nor a mapping."""
    return value is not None and not is_sequence(value) and not is_mapping(value)


def _as_list(value: Any) -> list:
    return list(value) if is_sequence(value) else [value]


def accumulate(ours: Any, theirs: Any) -> Any:
    """Combine two values produced for the same key by different sources.

    Two mappings are merged key by key (recursively accumulating collisions).
    Any other combination is concatenated into a list, ``ours`` first.
    """
    if is_mapping(ours) and is_mapping(theirs):
        merged = dict(ours)
        for key, value in theirs.items():
            merged[key] = accumulate(merged[key], value) if key in merged else value
        return merged
    return _as_list(ours) + _as_list(theirs)


def concat_into(target: dict[str, list], key: str, value: Any) -> None:
    """Append *value* (flattened if it is a sequence) to ``target[key]``."""
    target.setdefault(key, []).extend(_as_list(value))


class RecordMerger:
    """Accumulates per-key transformation results into a single record.

    Each call to ``add()`` names the original key the entries were produced
    from.  Collisions with entries from the same origin replace the old value
    entirely; collisions with entries from another origin accumulate.
    Insertion order of first production is preserved.
    """

    __slots__ = ("_record", "_origins")

    def __init__(self) -> None:
        self._record: Record = {}
        self._origins: dict[str, str] = {}

    def add(self, origin: str, entries: Mapping[str, Any]) -> None:
        for key, value in entries.items():
            if key not in self._record:
                self._record[key] = value
                self._origins[key] = origin
            elif self._origins[key] == origin:
                self._record[key] = value
            else:
                self._record[key] = accumulate(self._record[key], value)

    @property
    def record(self) -> Record:
        return self._record
