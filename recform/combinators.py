"""
Structural combinators for recform.

These wrappers change *where* an inner transformer is applied, never what
it does:

- ``ForEach(inner)`` applies *inner* to each element of a sequence value and
  concatenates the produced values per output key.
- ``Nest(inner)`` applies *inner* at every depth of nested maps and
  sequences, so a single leaf (e.g. "ensure UpperCamel keys") reaches every
  level of a record produced by ``explode``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from recform.result import UNCHANGED, Replacement, TransformResult
from recform.transformer import NativeTransformer, Transformer
from recform.values import RecordMerger, concat_into, is_mapping, is_sequence
from recform.wire import ByteReader, pack_bytes32


class _Wrapper(NativeTransformer):
    """A native transformer that owns exactly one child."""

    __slots__ = ("_inner",)

    def __init__(self, inner: Transformer) -> None:
        self._inner = inner

    @property
    def inner(self) -> Transformer:
        return self._inner

    def write_native(self, encode: Callable[[Transformer], bytes]) -> bytes:
        return pack_bytes32(encode(self._inner))

    @classmethod
    def read_native(cls, reader: ByteReader, decode: Callable[[bytes], Transformer]):
        return cls(decode(reader.read_bytes32()))

    def __repr__(self) -> str:
        return f"{self.native_name}({self._inner!r})"


class ForEach(_Wrapper):
    """Apply the inner transformer to every element of a sequence value.

    Results are accumulated per output key into lists (concat merge), so
    elements renamed to a new key are gathered under it.  Reports
    ``UNCHANGED`` when no element changed.  Non-sequence values are passed
    straight to the inner transformer.
    """

    __slots__ = ()
    native_name = "for_each"

    def transform(self, key: str, value: Any) -> TransformResult:
        if not is_sequence(value):
            return self._inner.transform(key, value)
        accumulated: dict[str, list] = {}
        changed = False
        for element in value:
            result = self._inner.transform(key, element)
            changed = changed or result.changed
            for k, v in result.resolve(key, element).items():
                concat_into(accumulated, k, v)
        return Replacement(accumulated) if changed else UNCHANGED


class Nest(_Wrapper):
    """Apply the inner transformer recursively through maps and sequences.

    The inner transformer runs on ``(key, value)`` first.  Then, for every
    resulting entry:

    - a mapping is rebuilt by applying ``Nest(inner)`` to each of its
      entries (record merge);
    - a sequence is handed to ``ForEach(Nest(inner))`` under the entry's key;
    - a scalar terminates the recursion.
    """

    __slots__ = ()
    native_name = "nest"

    def transform(self, key: str, value: Any) -> TransformResult:
        result = self._inner.transform(key, value)
        changed = result.changed
        merger = RecordMerger()
        for k, v in result.resolve(key, value).items():
            if is_mapping(v):
                nested = RecordMerger()
                for sub_key, sub_value in v.items():
                    sub_result = self.transform(sub_key, sub_value)
                    changed = changed or sub_result.changed
                    nested.add(sub_key, sub_result.resolve(sub_key, sub_value))
                merger.add(k, {k: nested.record})
            elif is_sequence(v):
                seq_result = ForEach(self).transform(k, v)
                changed = changed or seq_result.changed
                merger.add(k, seq_result.resolve(k, v))
            else:
                merger.add(k, {k: v})
        return Replacement(merger.record) if changed else UNCHANGED


def for_each(transformer: Transformer) -> ForEach:
    return ForEach(transformer)


def nest(transformer: Transformer) -> Nest:
    return Nest(transformer)
