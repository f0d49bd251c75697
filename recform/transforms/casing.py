"""
Key case formats for recform.

Detects which case convention a key follows and converts between
conventions.  Conversion splits the key into words according to the source
format and re-joins them according to the target format.
"""

from __future__ import annotations

import re
from enum import Enum

_CAMEL_BOUNDARY = re.compile(r"(?=[A-Z])")


class CaseFormat(str, Enum):
    LOWER_HYPHEN = "LOWER_HYPHEN"          # lower-hyphen
    LOWER_UNDERSCORE = "LOWER_UNDERSCORE"  # lower_underscore
    LOWER_CAMEL = "LOWER_CAMEL"            # lowerCamel
    UPPER_CAMEL = "UPPER_CAMEL"            # UpperCamel
    UPPER_UNDERSCORE = "UPPER_UNDERSCORE"  # UPPER_UNDERSCORE


def detect(key: str) -> CaseFormat:
    """Guess the case format of *key*.

    Hyphens win over underscores; underscores split into upper/lower by the
    presence of any uppercase letter; otherwise the first character decides
    between lowerCamel and UpperCamel.
    """
    if "-" in key:
        return CaseFormat.LOWER_HYPHEN
    if "_" in key:
        if any(c.isupper() for c in key):
            return CaseFormat.UPPER_UNDERSCORE
        return CaseFormat.LOWER_UNDERSCORE
    if key[:1].islower():
        return CaseFormat.LOWER_CAMEL
    return CaseFormat.UPPER_CAMEL


def _words(key: str, source: CaseFormat) -> list[str]:
    if source is CaseFormat.LOWER_HYPHEN:
        return key.split("-")
    if source in (CaseFormat.LOWER_UNDERSCORE, CaseFormat.UPPER_UNDERSCORE):
        return key.split("_")
    return [w for w in _CAMEL_BOUNDARY.split(key) if w]


def convert(source: CaseFormat, target: CaseFormat, key: str) -> str:
    """Convert *key* from the *source* case format to *target*."""
    if source is target:
        return key
    words = _words(key, source)
    if target is CaseFormat.LOWER_HYPHEN:
        return "-".join(w.lower() for w in words)
    if target is CaseFormat.LOWER_UNDERSCORE:
        return "_".join(w.lower() for w in words)
    if target is CaseFormat.UPPER_UNDERSCORE:
        return "_".join(w.upper() for w in words)
    camel = "".join(w.capitalize() for w in words)
    if target is CaseFormat.LOWER_CAMEL:
        return camel[:1].lower() + camel[1:]
    return camel
