"""
Composite transformer for recform.

Runs an ordered pipeline of transformers.  Two granularities:

1. **Record level** (``transform_record``): plain sequential piping.  The
   record produced by each child is the input record of the next.

2. **Pair level** (``transform``): the first child that replaces the
   original pair establishes a *state* (a sub-record).  From then on each
   child is applied to **every** pair of the state and the results are merged
   into the next state, so later stages see the cumulative effect of earlier
   ones, including fan-out.  A stage that declines on every pair leaves the
   state untouched.

Declaration order is significant and never rearranged.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from recform.combinators import ForEach
from recform.exceptions import InvalidPipeline, MalformedPayload
from recform.result import UNCHANGED, Replacement, TransformResult
from recform.transformer import NativeTransformer, Transformer
from recform.values import Record, RecordMerger
from recform.wire import ByteReader, pack_bytes32, pack_int32

logger = logging.getLogger(__name__)


def _transform_state(transformer: Transformer, state: Record) -> Record:
    """Apply *transformer* to every pair of *state* and merge the results.

    Returns *state* itself when the transformer declines on every pair.
    """
    results = [(key, value, transformer.transform(key, value)) for key, value in state.items()]
    if not any(result.changed for _, _, result in results):
        return state
    merger = RecordMerger()
    for key, value, result in results:
        merger.add(key, result.resolve(key, value))
    return merger.record


class CompositeTransformer(NativeTransformer):
    """A transformer composed of other transformers, applied in order.

    Can be encoded if and only if every child can be encoded.
    """

    __slots__ = ("_transformers",)
    native_name = "composite"

    def __init__(self, transformers: Iterable[Transformer]) -> None:
        transformers = tuple(transformers)
        if not transformers:
            raise InvalidPipeline("A composite transformer needs at least one child")
        self._transformers = transformers

    @property
    def transformers(self) -> tuple[Transformer, ...]:
        return self._transformers

    def transform(self, key: str, value: Any) -> TransformResult:
        state: Record | None = None
        for transformer in self._transformers:
            if state is None:
                # Nothing has replaced the original pair yet
                result = transformer.transform(key, value)
                if result.changed:
                    state = dict(result.resolve(key, value))
            else:
                state = _transform_state(transformer, state)
        return UNCHANGED if state is None else Replacement(state)

    def transform_record(self, record: Mapping[str, Any]) -> Record:
        current: Record = dict(record)
        for transformer in self._transformers:
            current = transformer.transform_record(current)
        return current

    def write_native(self, encode: Callable[[Transformer], bytes]) -> bytes:
        parts = [pack_int32(len(self._transformers))]
        parts.extend(pack_bytes32(encode(t)) for t in self._transformers)
        return b"".join(parts)

    @classmethod
    def read_native(
        cls, reader: ByteReader, decode: Callable[[bytes], Transformer]
    ) -> CompositeTransformer:
        count = reader.read_int32()
        children = [decode(reader.read_bytes32()) for _ in range(count)]
        try:
            return cls(children)
        except InvalidPipeline as e:
            raise MalformedPayload(str(e)) from e

    def __repr__(self) -> str:
        return f"compose({', '.join(repr(t) for t in self._transformers)})"


def compose(*transformers: Transformer) -> CompositeTransformer:
    """Return a composite that invokes each of *transformers* in order.

    Nested composites are flattened, so grouping never changes the result.
    """
    flat: list[Transformer] = []
    for transformer in transformers:
        if isinstance(transformer, CompositeTransformer):
            flat.extend(transformer.transformers)
        else:
            flat.append(transformer)
    logger.debug("Composing %d transformer(s)", len(flat))
    return CompositeTransformer(flat)


def compose_for_each(*transformers: Transformer) -> CompositeTransformer:
    """Like ``compose``, but each transformer is wrapped in ``ForEach``."""
    return CompositeTransformer(ForEach(t) for t in transformers)
