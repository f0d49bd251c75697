"""
The transformer contract for recform.

A ``Transformer`` is a pure function ``(key, value) -> TransformResult``
plus a derived whole-record operation.  Variants:

- ``Primitive``: a named, parameterized leaf built by a ``@primitive``
  factory.  It carries its construction ``Descriptor`` so the codec can
  rebuild it through the registry without inspecting closures.
- ``NativeTransformer``: an explicit type whose own fields describe it
  (composite, combinators, scripted).  It writes and reads its own payload.
- ``FunctionTransformer``: an ad-hoc callable.  Usable anywhere, but it has
  no description and therefore cannot be encoded.

Transformers are immutable after construction and safe to share between
threads.
"""

from __future__ import annotations

import functools
import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from recform.result import TransformResult
from recform.values import Record, RecordMerger

if TYPE_CHECKING:
    from recform.wire import ByteReader

TransformFunction = Callable[[str, Any], TransformResult]


class Transformer(ABC):
    """Abstract base for every transformer."""

    __slots__ = ()

    @abstractmethod
    def transform(self, key: str, value: Any) -> TransformResult:
        """Potentially transform one key/value pair.

        Must be a pure function of its inputs.
        """

    def transform_record(self, record: Mapping[str, Any]) -> Record:
        """Apply ``transform`` to every entry of *record* and merge the results.

        Unchanged entries keep their original key/value.  Keys produced from
        different original keys accumulate rather than overwrite.
        """
        merger = RecordMerger()
        for key, value in record.items():
            merger.add(key, self.transform(key, value).resolve(key, value))
        return merger.record


@dataclass(frozen=True)
class Descriptor:
    """The registry name and ordered parameters a Primitive was built from."""

    name: str
    params: tuple[Any, ...] = ()


class Primitive(Transformer):
    """A registry-described leaf transformer.

    *behavior* is either a plain function of ``(key, value)`` or another
    ``Transformer`` this primitive delegates to (including its record-level
    operation).
    """

    __slots__ = ("_behavior", "_descriptor")

    def __init__(
        self, behavior: TransformFunction | Transformer, descriptor: Descriptor
    ) -> None:
        self._behavior = behavior
        self._descriptor = descriptor

    @property
    def descriptor(self) -> Descriptor:
        return self._descriptor

    def transform(self, key: str, value: Any) -> TransformResult:
        if isinstance(self._behavior, Transformer):
            return self._behavior.transform(key, value)
        return self._behavior(key, value)

    def transform_record(self, record: Mapping[str, Any]) -> Record:
        if isinstance(self._behavior, Transformer):
            return self._behavior.transform_record(record)
        return super().transform_record(record)

    def __repr__(self) -> str:
        args = ", ".join(repr(p) for p in self._descriptor.params)
        return f"{self._descriptor.name}({args})"


class NativeTransformer(Transformer):
    """A transformer whose own fields are its serialized description."""

    __slots__ = ()

    native_name: ClassVar[str]

    @abstractmethod
    def write_native(self, encode: Callable[[Transformer], bytes]) -> bytes:
        """Return this transformer's payload; *encode* serializes children."""

    @classmethod
    @abstractmethod
    def read_native(
        cls, reader: ByteReader, decode: Callable[[bytes], Transformer]
    ) -> NativeTransformer:
        """Rebuild an instance from *reader*; *decode* deserializes children."""


class FunctionTransformer(Transformer):
    """Wraps an ad-hoc ``(key, value) -> TransformResult`` callable."""

    __slots__ = ("_fn",)

    def __init__(self, fn: TransformFunction) -> None:
        self._fn = fn

    def transform(self, key: str, value: Any) -> TransformResult:
        return self._fn(key, value)

    def __repr__(self) -> str:
        return f"FunctionTransformer({getattr(self._fn, '__name__', self._fn)!r})"


def function_transformer(fn: TransformFunction) -> FunctionTransformer:
    """Wrap *fn* as a transformer.  Also usable as a decorator."""
    return FunctionTransformer(fn)


def primitive(name: str) -> Callable[[Callable[..., Any]], Callable[..., Primitive]]:
    """Mark a factory as the registered constructor for *name*.

    The decorated factory returns either a ``(key, value)`` function or a
    ``Transformer``; the wrapper binds the call's arguments (defaults applied,
    ``*args`` flattened) and stamps the result with a ``Descriptor``.
    Registration into a ``TransformRegistry`` happens separately.
    """

    def decorate(factory: Callable[..., Any]) -> Callable[..., Primitive]:
        signature = inspect.signature(factory)

        @functools.wraps(factory)
        def build(*args: Any, **kwargs: Any) -> Primitive:
            bound = signature.bind(*args, **kwargs)
            bound.apply_defaults()
            behavior = factory(*bound.args)
            return Primitive(behavior, Descriptor(name, tuple(bound.args)))

        build.primitive_name = name  # type: ignore[attr-defined]
        build.factory = factory  # type: ignore[attr-defined]
        return build

    return decorate
