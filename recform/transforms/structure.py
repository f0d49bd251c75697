"""
Structural primitives for recform: explode, copy, no_op, null_safe.
"""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from typing import Any

from recform.exceptions import UnconvertibleValue
from recform.result import UNCHANGED, Replacement, TransformResult
from recform.transformer import Transformer, TransformFunction, primitive
from recform.values import Record, accumulate

SEPARATOR = "."
MAX_LIST_INDEX = 10_000


def _is_index(segment: str) -> bool:
    return segment.isascii() and segment.isdigit()


def _container_for(segment: str) -> list | dict:
    return [] if _is_index(segment) else {}


def _fits(existing: Any, segment: str) -> bool:
    return isinstance(existing, list) if _is_index(segment) else isinstance(existing, dict)


def _place(existing: Any, path: list[str], value: Any) -> Any:
    """Return *existing* with *value* placed at *path*.

    A leaf that is already occupied, or an intermediate node of the wrong
    shape, accumulates with the new branch instead of being overwritten.
    """
    if not path:
        value = deepcopy(value) if isinstance(value, (list, dict)) else value
        return value if existing is None else accumulate(existing, value)
    segment, rest = path[0], path[1:]
    if existing is None:
        existing = _container_for(segment)
    elif not _fits(existing, segment):
        return accumulate(existing, _place(None, path, value))
    if isinstance(existing, list):
        digits = segment.lstrip("0") or "0"
        if len(digits) > len(str(MAX_LIST_INDEX)) or int(digits) > MAX_LIST_INDEX:
            raise UnconvertibleValue(
                f"List index {segment} exceeds the explode limit of {MAX_LIST_INDEX}"
            )
        index = int(digits)
        existing.extend([None] * (index + 1 - len(existing)))
        existing[index] = _place(existing[index], rest, value)
    else:
        existing[segment] = _place(existing.get(segment), rest, value)
    return existing


def explode_record(record: Mapping[str, Any]) -> Record:
    """Expand dotted keys into nested maps; numeric segments become list indices."""
    exploded: Record = {}
    for key, value in record.items():
        head, *rest = key.split(SEPARATOR)
        exploded[head] = _place(exploded.get(head), rest, value)
    return exploded


class _Explode(Transformer):
    __slots__ = ()

    def transform(self, key: str, value: Any) -> TransformResult:
        if SEPARATOR not in key:
            return UNCHANGED
        return Replacement(explode_record({key: value}))

    def transform_record(self, record: Mapping[str, Any]) -> Record:
        # Siblings that share a path prefix must land in the same container
        if not any(SEPARATOR in key for key in record):
            return dict(record)
        return explode_record(record)


@primitive("explode")
def explode() -> Transformer:
    """Turn ``{"a.b": 1}`` into ``{"a": {"b": 1}}`` and ``{"a.0": 1}`` into
    ``{"a": [1]}``."""
    return _Explode()


@primitive("copy")
def copy(from_key: str, to_key: str) -> TransformFunction:
    """Duplicate the value of *from_key* under *to_key* as well."""

    def transform(key: str, value: Any) -> TransformResult:
        if key != from_key:
            return UNCHANGED
        return Replacement({from_key: value, to_key: value})

    return transform


@primitive("no_op")
def no_op() -> TransformFunction:
    return lambda key, value: UNCHANGED


@primitive("null_safe")
def null_safe(transformer: Transformer) -> TransformFunction:
    """Only invoke *transformer* for values that are not absent."""
    return lambda key, value: UNCHANGED if value is None else transformer.transform(key, value)
