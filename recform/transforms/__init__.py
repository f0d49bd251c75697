"""
Built-in transform catalog for recform.

Every factory listed in ``CATALOG`` is a ``@primitive`` and is registered in
the default registry on first use (see ``recform.registry``).

Modules:
- casing.py: Case format detection and conversion for keys.
- keys.py: Renaming, case conversion, character stripping, unquoting.
- coercions.py: Value coercions, empty handling, splitting.
- structure.py: explode, copy, no_op, null_safe.
"""

from recform.transforms.casing import CaseFormat
from recform.transforms.coercions import (
    SplitOption,
    value_as_boolean,
    value_as_number,
    value_as_string,
    value_as_tag,
    value_as_timestamp,
    value_nullify_if_empty,
    value_remove_if_empty,
    value_string_split_on_delimiter,
    value_string_to_native,
)
from recform.transforms.keys import (
    key_conditional_convert_case_format,
    key_ensure_case_format,
    key_remove_invalid_chars,
    key_remove_whitespace,
    key_rename,
    key_rename_pair,
    key_replace_chars,
    key_to_lower_case,
    key_value_remove_quotes,
    key_whitespace_to_underscore,
)
from recform.transforms.structure import copy, explode, no_op, null_safe

CATALOG = (
    copy,
    explode,
    no_op,
    null_safe,
    key_conditional_convert_case_format,
    key_ensure_case_format,
    key_remove_invalid_chars,
    key_remove_whitespace,
    key_rename,
    key_rename_pair,
    key_replace_chars,
    key_to_lower_case,
    key_value_remove_quotes,
    key_whitespace_to_underscore,
    value_as_boolean,
    value_as_number,
    value_as_string,
    value_as_tag,
    value_as_timestamp,
    value_nullify_if_empty,
    value_remove_if_empty,
    value_string_split_on_delimiter,
    value_string_to_native,
)

__all__ = [build.__name__ for build in CATALOG] + ["CATALOG", "CaseFormat", "SplitOption"]
