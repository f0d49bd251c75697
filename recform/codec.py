"""
Transformer codec for recform.

Byte layout (big-endian)::

    byte        technique            0 = NATIVE, 1 = DESCRIBED
    --- NATIVE ---
    int16       typeNameLen
    typeNameLen type name (UTF-8): composite | for_each | nest | scripted
    ...         the type's own payload (see ``write_native`` on each type)
    --- DESCRIBED ---
    int32       nameLen
    nameLen B   registry name (UTF-8)
    int32       paramCount
    repeated paramCount times:
      int32     paramLen
      paramLen B  parameter: a nested transformer in this same layout, or
                  any other value as JSON

Self-describing transformers (``NativeTransformer``) are written as NATIVE;
registry-described ones (``Primitive``) as DESCRIBED.  Decoding a DESCRIBED
payload hands the raw parameters to the registry, which matches them against
the declared constructor shapes.

Recursion through nested transformers is bounded by ``MAX_DEPTH``.
"""

from __future__ import annotations

import logging
from enum import IntEnum

from pydantic_core import PydanticSerializationError, to_json

from recform.combinators import ForEach, Nest
from recform.composite import CompositeTransformer
from recform.exceptions import (
    MalformedPayload,
    NestingTooDeep,
    UnserializableTransformer,
    UnsupportedTechnique,
)
from recform.registry import TransformRegistry, default_registry
from recform.scripted import ScriptedTransformer
from recform.transformer import NativeTransformer, Primitive, Transformer
from recform.wire import ByteReader, pack_bytes32, pack_int32, pack_str16, pack_str32

logger = logging.getLogger(__name__)

MAX_DEPTH = 64

_NATIVE_TYPES: dict[str, type[NativeTransformer]] = {
    cls.native_name: cls
    for cls in (CompositeTransformer, ForEach, Nest, ScriptedTransformer)
}


class Technique(IntEnum):
    """Leading discriminator byte of a serialized transformer."""

    NATIVE = 0
    DESCRIBED = 1


def encode(transformer: Transformer, *, max_depth: int = MAX_DEPTH) -> bytes:
    """Serialize *transformer* to bytes.

    Raises:
        UnserializableTransformer: If the transformer (or a nested one) has
            no description, e.g. an ad-hoc ``FunctionTransformer``.
    """
    return _encode(transformer, 0, max_depth)


def _encode(transformer: Transformer, depth: int, max_depth: int) -> bytes:
    if depth > max_depth:
        raise UnserializableTransformer(f"Transformer nesting exceeds {max_depth} levels")

    def encode_child(child: Transformer) -> bytes:
        return _encode(child, depth + 1, max_depth)

    if isinstance(transformer, NativeTransformer):
        if transformer.native_name not in _NATIVE_TYPES:
            raise UnserializableTransformer(
                f"Native type '{transformer.native_name}' is not known to the codec"
            )
        payload = pack_str16(transformer.native_name) + transformer.write_native(encode_child)
        return bytes([Technique.NATIVE]) + payload

    if isinstance(transformer, Primitive):
        descriptor = transformer.descriptor
        parts = [
            bytes([Technique.DESCRIBED]),
            pack_str32(descriptor.name),
            pack_int32(len(descriptor.params)),
        ]
        for param in descriptor.params:
            if isinstance(param, Transformer):
                data = encode_child(param)
            else:
                try:
                    data = to_json(param)
                except PydanticSerializationError as e:
                    raise UnserializableTransformer(
                        f"Parameter {param!r} of '{descriptor.name}' cannot be encoded: {e}"
                    ) from e
            parts.append(pack_bytes32(data))
        return b"".join(parts)

    raise UnserializableTransformer(
        f"{transformer!r} has no description; build it from a registered "
        "primitive or a native transformer type to encode it"
    )


def decode(
    data: bytes,
    registry: TransformRegistry | None = None,
    *,
    max_depth: int = MAX_DEPTH,
) -> Transformer:
    """Rebuild a transformer from bytes produced by ``encode``.

    Decoding only constructs transformers; nothing runs until ``transform``.
    A scripted transformer can only be rebuilt for an engine registered in
    this process, and running it executes whatever its script says.  Do not
    register a general-purpose engine such as ``evaluate_python`` when
    decoding bytes from an untrusted source.

    Raises:
        UnsupportedTechnique: Unknown discriminator byte.
        UnknownTransformer: A described name is not in the registry.
        UndecodableParameters: No constructor accepts the parameters.
        MalformedPayload: Truncated input, trailing bytes, or unknown native type.
        NestingTooDeep: Nested transformers exceed *max_depth*.
    """
    registry = registry if registry is not None else default_registry()
    transformer = _decode(bytes(data), registry, 0, max_depth)
    logger.debug("Decoded %r from %d byte(s)", transformer, len(data))
    return transformer


def _decode(data: bytes, registry: TransformRegistry, depth: int, max_depth: int) -> Transformer:
    if depth > max_depth:
        raise NestingTooDeep(f"Transformer nesting exceeds {max_depth} levels")

    def decode_child(child: bytes) -> Transformer:
        return _decode(child, registry, depth + 1, max_depth)

    reader = ByteReader(data)
    code = reader.read_byte()
    try:
        technique = Technique(code)
    except ValueError:
        raise UnsupportedTechnique(f"Cannot handle serialization technique {code}") from None

    if technique is Technique.NATIVE:
        type_name = reader.read_str16()
        cls = _NATIVE_TYPES.get(type_name)
        if cls is None:
            raise MalformedPayload(f"Unknown native transformer type '{type_name}'")
        transformer = cls.read_native(reader, decode_child)
    else:
        name = reader.read_str32()
        count = reader.read_int32()
        if count < 0:
            raise MalformedPayload(f"Negative parameter count {count}")
        raw_params = [reader.read_bytes32() for _ in range(count)]
        transformer = registry.decode_params(name, raw_params, decode_child)
    reader.expect_end()
    return transformer
