"""
Key transforms for recform.

Each factory is a registered ``@primitive``: calling it returns a
``Primitive`` carrying the factory's name and arguments.  Every transform
here declines (``UNCHANGED``) when the key would come out identical.
"""

from __future__ import annotations

from typing import Any

from recform.result import UNCHANGED, Replacement, TransformResult
from recform.transformer import Transformer, TransformFunction, primitive
from recform.transforms.casing import CaseFormat, convert, detect

_QUOTES = "'\""


def unquote(text: str) -> str | None:
    """Return *text* without surrounding matching quotes, or ``None``."""
    if len(text) >= 2 and text[0] == text[-1] and text[0] in _QUOTES:
        return text[1:-1]
    return None


def _rekey(new_key: str, key: str, value: Any) -> TransformResult:
    return UNCHANGED if new_key == key else Replacement.of(new_key, value)


@primitive("key_to_lower_case")
def key_to_lower_case() -> TransformFunction:
    return lambda key, value: _rekey(key.lower(), key, value)


@primitive("key_conditional_convert_case_format")
def key_conditional_convert_case_format(
    undesired: CaseFormat, desired: CaseFormat
) -> TransformFunction:
    """Convert keys detected as *undesired* into *desired*; leave others."""
    undesired, desired = CaseFormat(undesired), CaseFormat(desired)

    def transform(key: str, value: Any) -> TransformResult:
        if detect(key) is not undesired:
            return UNCHANGED
        return _rekey(convert(undesired, desired, key), key, value)

    return transform


@primitive("key_ensure_case_format")
def key_ensure_case_format(case_format: CaseFormat) -> TransformFunction:
    """Convert every key to *case_format*, whatever it is detected as."""
    case_format = CaseFormat(case_format)

    def transform(key: str, value: Any) -> TransformResult:
        current = detect(key)
        if current is case_format:
            return UNCHANGED
        return _rekey(convert(current, case_format, key), key, value)

    return transform


@primitive("key_remove_invalid_chars")
def key_remove_invalid_chars(chars: str) -> TransformFunction:
    """Strip every character of *chars* from keys."""
    invalid = frozenset(chars)
    return lambda key, value: _rekey(
        "".join(c for c in key if c not in invalid), key, value
    )


@primitive("key_remove_whitespace")
def key_remove_whitespace() -> TransformFunction:
    return lambda key, value: _rekey("".join(c for c in key if not c.isspace()), key, value)


@primitive("key_rename")
def key_rename(mapping: dict[str, str]) -> TransformFunction:
    """Rename keys found in *mapping*; others are left alone."""
    renames = dict(mapping)

    def transform(key: str, value: Any) -> TransformResult:
        target = renames.get(key)
        return UNCHANGED if target is None else _rekey(target, key, value)

    return transform


@primitive("key_rename")
def key_rename_pair(source: str, target: str) -> Transformer:
    """Rename the single key *source* to *target*."""
    return key_rename({source: target})


@primitive("key_replace_chars")
def key_replace_chars(replacements: dict[str, str]) -> TransformFunction:
    """Replace characters in keys, one for one, according to *replacements*."""
    table = str.maketrans(dict(replacements))
    return lambda key, value: _rekey(key.translate(table), key, value)


@primitive("key_whitespace_to_underscore")
def key_whitespace_to_underscore() -> Transformer:
    return key_replace_chars({" ": "_"})


@primitive("key_value_remove_quotes")
def key_value_remove_quotes() -> TransformFunction:
    """Strip surrounding quotes from the key and from string values."""

    def transform(key: str, value: Any) -> TransformResult:
        new_key = unquote(key)
        new_value = unquote(value) if isinstance(value, str) else None
        if new_key is None and new_value is None:
            return UNCHANGED
        return Replacement.of(
            key if new_key is None else new_key,
            value if new_value is None else new_value,
        )

    return transform
