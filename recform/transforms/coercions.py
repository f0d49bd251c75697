"""
Value transforms and type coercions for recform.

The ``value_as_*`` coercions accept an optional list of keys; when given,
only those keys are coerced.  Absent values (``None``) are never coerced.
When the value is a sequence, the coercion is applied to each scalar
element and the transform reports a change only if some element changed.

``value_as_number`` and ``value_as_timestamp`` raise ``UnconvertibleValue``
for input they cannot interpret; the error propagates to the caller of
``transform``.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from typing import Any

import pandas as pd

from recform.exceptions import UnconvertibleValue
from recform.result import UNCHANGED, Replacement, TransformResult
from recform.transformer import TransformFunction, primitive
from recform.transforms.keys import unquote
from recform.values import Tag, is_mapping, is_scalar, is_sequence

_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class SplitOption(str, Enum):
    TRIM_WHITESPACE = "TRIM_WHITESPACE"
    SPLIT_ON_NEWLINE = "SPLIT_ON_NEWLINE"


def _coercion(convert: Callable[[Any], Any], keys: tuple[str, ...]) -> TransformFunction:
    """Build a transform applying *convert* to scalar values of *keys*.

    *convert* returns its argument unchanged (the same object) to decline.
    """
    restrict = frozenset(keys)

    def transform(key: str, value: Any) -> TransformResult:
        if value is None or (restrict and key not in restrict):
            return UNCHANGED
        if is_sequence(value):
            converted = [convert(e) if is_scalar(e) else e for e in value]
            if all(new is old for new, old in zip(converted, value)):
                return UNCHANGED
            return Replacement.of(key, converted)
        if not is_scalar(value):
            return UNCHANGED
        converted = convert(value)
        return UNCHANGED if converted is value else Replacement.of(key, converted)

    return transform


def parse_number(text: str) -> int | float | None:
    """Parse a decimal literal, or return ``None`` if *text* is not one."""
    text = text.strip()
    if not _NUMBER_RE.fullmatch(text):
        return None
    if any(c in text for c in ".eE"):
        return float(text)
    return int(text)


def _to_boolean(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def _to_number(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    number = parse_number(str(value))
    if number is None:
        raise UnconvertibleValue(f"{value!r} cannot be transformed to a number")
    return number


def _to_string(value: Any) -> Any:
    return value if isinstance(value, str) else str(value)


def _to_tag(value: Any) -> Any:
    return value if isinstance(value, Tag) else Tag(str(value))


def _to_timestamp(value: Any) -> Any:
    if isinstance(value, datetime):
        return value
    try:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            # Numbers are microseconds since the epoch
            timestamp = pd.Timestamp(int(value), unit="us", tz="UTC")
        else:
            timestamp = pd.Timestamp(str(value).strip())
    except (ValueError, TypeError, OverflowError) as e:
        raise UnconvertibleValue(f"{value!r} cannot be transformed to a timestamp") from e
    if timestamp is pd.NaT:
        raise UnconvertibleValue(f"{value!r} cannot be transformed to a timestamp")
    return timestamp


def _string_to_native(value: Any) -> Any:
    if not isinstance(value, str) or isinstance(value, Tag):
        return value
    stripped = value.strip()
    lowered = stripped.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    number = parse_number(stripped)
    if number is not None:
        return number
    unquoted = unquote(stripped)
    return value if unquoted is None else unquoted


@primitive("value_as_boolean")
def value_as_boolean(*keys: str) -> TransformFunction:
    """Coerce values to ``bool``; only a case-insensitive "true" is true."""
    return _coercion(_to_boolean, keys)


@primitive("value_as_number")
def value_as_number(*keys: str) -> TransformFunction:
    return _coercion(_to_number, keys)


@primitive("value_as_string")
def value_as_string(*keys: str) -> TransformFunction:
    return _coercion(_to_string, keys)


@primitive("value_as_tag")
def value_as_tag(*keys: str) -> TransformFunction:
    return _coercion(_to_tag, keys)


@primitive("value_as_timestamp")
def value_as_timestamp(*keys: str) -> TransformFunction:
    """Coerce values to timestamps.

    Numbers are read as microseconds since the epoch (UTC); anything else
    is parsed from its string form by pandas.
    """
    return _coercion(_to_timestamp, keys)


@primitive("value_string_to_native")
def value_string_to_native() -> TransformFunction:
    """Turn string values that spell a boolean, a number, or a quoted string
    into that native value."""
    return _coercion(_string_to_native, ())


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if is_sequence(value) or is_mapping(value):
        return len(value) == 0
    return False


@primitive("value_nullify_if_empty")
def value_nullify_if_empty() -> TransformFunction:
    """Set empty (blank string, empty collection) values to absent."""

    def transform(key: str, value: Any) -> TransformResult:
        if value is not None and is_empty(value):
            return Replacement.of(key, None)
        return UNCHANGED

    return transform


@primitive("value_remove_if_empty")
def value_remove_if_empty() -> TransformFunction:
    """Delete keys whose value is absent or empty."""
    return lambda key, value: Replacement.delete() if is_empty(value) else UNCHANGED


@primitive("value_string_split_on_delimiter")
def value_string_split_on_delimiter(delimiter: str, *options: SplitOption) -> TransformFunction:
    """Split string values on *delimiter* into a list.

    Declines when the value is not a string or does not split into more
    than one piece.
    """
    if len(delimiter) != 1:
        raise ValueError(f"Delimiter must be a single character, got {delimiter!r}")
    options = frozenset(SplitOption(o) for o in options)

    def transform(key: str, value: Any) -> TransformResult:
        if not isinstance(value, str) or isinstance(value, Tag):
            return UNCHANGED
        pieces = value.split(delimiter)
        if SplitOption.SPLIT_ON_NEWLINE in options:
            pieces = [line for piece in pieces for line in piece.splitlines()]
        if SplitOption.TRIM_WHITESPACE in options:
            pieces = [piece.strip() for piece in pieces]
        return Replacement.of(key, pieces) if len(pieces) > 1 else UNCHANGED

    return transform
