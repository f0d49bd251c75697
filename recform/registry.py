"""
Transform registry for recform.

Maps a stable name to the constructor(s) that build a Primitive and to the
parameter shapes each constructor accepts.  Shapes are read once, at
registration, from the factory's type hints; nothing is discovered by
invoking candidate constructors.

A name may have several overloads as long as they differ in arity or
parameter types.  Given a candidate parameter list (either live values or
raw serialized bytes) the registry picks the first overload whose shape
accepts it and invokes that constructor.

Non-transformer parameters are validated with pydantic ``TypeAdapter``s
(``validate_python`` for live values, ``validate_json`` for serialized
ones), which also converts JSON arrays back into tuples, strings back into
enums, and so on.

The process-wide registry is built lazily by ``default_registry()`` from
the built-in catalog and is read-only afterwards.
"""

from __future__ import annotations

import functools
import inspect
import logging
import threading
import typing
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import TypeAdapter, ValidationError

from recform.exceptions import (
    DecodeError,
    UndecodableParameters,
    UnknownTransformer,
)
from recform.transformer import Transformer

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=None)
def _adapter(annotation: Any) -> TypeAdapter:
    return TypeAdapter(annotation)


def _is_transformer_type(annotation: Any) -> bool:
    if typing.get_origin(annotation) is not None:
        return False
    return inspect.isclass(annotation) and issubclass(annotation, Transformer)


@dataclass(frozen=True)
class Parameter:
    """One declared constructor parameter."""

    name: str
    annotation: Any
    variadic: bool = False
    has_default: bool = False

    @property
    def is_transformer(self) -> bool:
        return _is_transformer_type(self.annotation)

    def validate(self, value: Any) -> Any:
        if self.is_transformer:
            if not isinstance(value, self.annotation):
                raise TypeError(f"'{self.name}' expects a transformer, got {type(value).__name__}")
            return value
        return _adapter(self.annotation).validate_python(value)

    def validate_json(self, raw: bytes, decode_nested: Callable[[bytes], Transformer]) -> Any:
        if self.is_transformer:
            return decode_nested(raw)
        return _adapter(self.annotation).validate_json(raw)


class Signature:
    """The ordered parameter shapes of one registered constructor."""

    def __init__(self, parameters: Sequence[Parameter]) -> None:
        self.parameters = tuple(parameters)
        self.variadic = bool(self.parameters) and self.parameters[-1].variadic
        fixed = [p for p in self.parameters if not p.variadic]
        self.min_arity = sum(1 for p in fixed if not p.has_default)
        self.max_arity = None if self.variadic else len(fixed)

    @classmethod
    def of(cls, factory: Callable[..., Any]) -> Signature:
        """Read the signature of *factory* from its declared type hints."""
        hints = typing.get_type_hints(factory)
        parameters = []
        for p in inspect.signature(factory).parameters.values():
            if p.kind in (p.KEYWORD_ONLY, p.VAR_KEYWORD):
                raise ValueError(
                    f"{factory.__name__}: keyword-only parameter '{p.name}' cannot be described"
                )
            if p.name not in hints:
                raise ValueError(f"{factory.__name__}: parameter '{p.name}' has no type hint")
            parameters.append(
                Parameter(
                    name=p.name,
                    annotation=hints[p.name],
                    variadic=p.kind is p.VAR_POSITIONAL,
                    has_default=p.default is not p.empty,
                )
            )
        return cls(parameters)

    def accepts_arity(self, count: int) -> bool:
        if count < self.min_arity:
            return False
        return self.max_arity is None or count <= self.max_arity

    def parameter_at(self, index: int) -> Parameter:
        if index >= len(self.parameters):
            return self.parameters[-1]  # variadic tail
        return self.parameters[index]

    def shape(self) -> tuple:
        return (self.min_arity, self.max_arity, tuple(p.annotation for p in self.parameters))

    def __repr__(self) -> str:
        parts = []
        for p in self.parameters:
            prefix = "*" if p.variadic else ""
            suffix = "=..." if p.has_default else ""
            parts.append(f"{prefix}{p.name}: {p.annotation}{suffix}")
        return f"({', '.join(parts)})"


@dataclass(frozen=True)
class Overload:
    name: str
    build: Callable[..., Transformer]
    signature: Signature


class TransformRegistry:
    """A closed catalog of named Primitive constructors."""

    def __init__(self) -> None:
        self._overloads: dict[str, list[Overload]] = {}

    def register(self, build: Callable[..., Transformer]) -> Callable[..., Transformer]:
        """Register a ``@primitive`` factory under its declared name.

        Raises:
            ValueError: If *build* is not a ``@primitive`` factory, or if it
                has the same arity and parameter types as an existing overload
                of the same name.
        """
        name = getattr(build, "primitive_name", None)
        factory = getattr(build, "factory", None)
        if name is None or factory is None:
            raise ValueError(f"{build!r} is not a @primitive factory")
        signature = Signature.of(factory)
        overloads = self._overloads.setdefault(name, [])
        for existing in overloads:
            if existing.signature.shape() == signature.shape():
                raise ValueError(
                    f"Ambiguous overload for '{name}': {signature!r} duplicates {existing.signature!r}"
                )
        overloads.append(Overload(name, build, signature))
        logger.debug("Registered primitive '%s%r'", name, signature)
        return build

    def names(self) -> list[str]:
        return sorted(self._overloads)

    def signatures(self, name: str) -> list[Signature]:
        return [o.signature for o in self._candidates(name)]

    def __contains__(self, name: object) -> bool:
        return name in self._overloads

    def __len__(self) -> int:
        return len(self._overloads)

    def _candidates(self, name: str) -> list[Overload]:
        try:
            return self._overloads[name]
        except KeyError:
            raise UnknownTransformer(f"No transformer registered as '{name}'") from None

    def resolve(self, name: str, params: Sequence[Any] = ()) -> Transformer:
        """Build the transformer registered as *name* from live *params*.

        Raises:
            UnknownTransformer: If *name* is not registered.
            UndecodableParameters: If no overload accepts *params*.
        """
        return self._construct(name, len(params), lambda p, i: p.validate(params[i]))

    def decode_params(
        self,
        name: str,
        raw_params: Sequence[bytes],
        decode_nested: Callable[[bytes], Transformer],
    ) -> Transformer:
        """Build the transformer registered as *name* from serialized params.

        Transformer-typed parameters are decoded with *decode_nested*; all
        others are parsed as JSON against the declared type.
        """
        return self._construct(
            name,
            len(raw_params),
            lambda p, i: p.validate_json(raw_params[i], decode_nested),
        )

    def _construct(
        self, name: str, count: int, convert: Callable[[Parameter, int], Any]
    ) -> Transformer:
        reasons: list[str] = []
        for overload in self._candidates(name):
            signature = overload.signature
            if not signature.accepts_arity(count):
                reasons.append(f"{signature!r}: arity {count} not accepted")
                continue
            try:
                values = [convert(signature.parameter_at(i), i) for i in range(count)]
                return overload.build(*values)
            except UndecodableParameters as e:
                reasons.append(f"{signature!r}: {e}")
            except DecodeError:
                # A nested transformer failed on its own terms
                raise
            except (ValidationError, TypeError, ValueError) as e:
                reasons.append(f"{signature!r}: {e}")
        raise UndecodableParameters(
            f"No constructor for '{name}' accepts {count} parameter(s):\n  "
            + "\n  ".join(reasons)
        )


_default: TransformRegistry | None = None
_default_lock = threading.Lock()


def default_registry() -> TransformRegistry:
    """Return the process-wide registry, populating it on first use."""
    global _default
    if _default is None:
        with _default_lock:
            if _default is None:
                from recform.transforms import CATALOG

                registry = TransformRegistry()
                for build in CATALOG:
                    registry.register(build)
                logger.info("Transform registry ready: %d name(s)", len(registry))
                _default = registry
    return _default
