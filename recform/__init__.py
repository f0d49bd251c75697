"""
recform: composable key/value transformers for semi-structured records.

Public API surface:

- ``Transformer`` -- the contract: ``transform(key, value)`` returns a
  ``TransformResult`` (``UNCHANGED`` or a ``Replacement``);
  ``transform_record(record)`` applies it to a whole record.

- ``compose(...)`` / ``compose_for_each(...)`` -- ordered pipelines.
  ``for_each(t)`` / ``nest(t)`` -- structural combinators.

- ``recform.transforms`` -- the built-in catalog of named primitives.
  ``ScriptedTransformer`` -- transformers backed by a script engine.

- ``encode(t)`` / ``decode(data)`` -- portable byte serialization.
  ``load_pipeline(path)`` / ``save_pipeline(t, path)`` -- YAML pipelines.

Example::

    from recform import compose, nest, encode, decode
    from recform.transforms import CaseFormat, explode, key_ensure_case_format

    pipeline = compose(explode(), nest(key_ensure_case_format(CaseFormat.UPPER_CAMEL)))
    pipeline.transform_record({"a.b": 1})   # {"A": {"B": 1}}
    decode(encode(pipeline))                # an equivalent pipeline
"""

from __future__ import annotations

from recform.codec import Technique, decode, encode
from recform.combinators import ForEach, Nest, for_each, nest
from recform.composite import CompositeTransformer, compose, compose_for_each
from recform.config import load_pipeline, save_pipeline
from recform.registry import TransformRegistry, default_registry
from recform.result import UNCHANGED, Replacement, TransformResult, Unchanged
from recform.scripted import PYTHON, ScriptedTransformer, evaluate_python, register_engine
from recform.transformer import (
    Descriptor,
    FunctionTransformer,
    Primitive,
    Transformer,
    function_transformer,
    primitive,
)
from recform.values import Tag

__all__ = [
    "PYTHON",
    "UNCHANGED",
    "CompositeTransformer",
    "Descriptor",
    "ForEach",
    "FunctionTransformer",
    "Nest",
    "Primitive",
    "Replacement",
    "ScriptedTransformer",
    "Tag",
    "Technique",
    "TransformRegistry",
    "TransformResult",
    "Transformer",
    "Unchanged",
    "compose",
    "compose_for_each",
    "decode",
    "default_registry",
    "encode",
    "evaluate_python",
    "for_each",
    "function_transformer",
    "load_pipeline",
    "nest",
    "primitive",
    "register_engine",
    "save_pipeline",
]
