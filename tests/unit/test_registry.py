"""
Unit tests for TransformRegistry (recform.registry).

Covers signature extraction, overload selection and the errors raised for
unknown names and unacceptable parameters.
"""

from __future__ import annotations

import pytest

from recform import Replacement, TransformRegistry, default_registry
from recform.exceptions import UndecodableParameters, UnknownTransformer
from recform.registry import Signature
from recform.transformer import Primitive, Transformer, TransformFunction, primitive
from recform.transforms import CATALOG, CaseFormat, explode, key_rename


@primitive("scale")
def _scale(factor: int) -> TransformFunction:
    return lambda key, value: Replacement.of(key, value * factor)


@primitive("scale")
def _scale_twice(factor: int, times: int) -> TransformFunction:
    return lambda key, value: Replacement.of(key, value * factor * times)


@primitive("scale")
def _scale_again(amount: int) -> TransformFunction:
    return lambda key, value: Replacement.of(key, value * amount)


@primitive("keep")
def _keep(*keys: str) -> TransformFunction:
    return lambda key, value: Replacement.of(key, value)


class TestSignature:
    def test_fixed_arity(self):
        signature = Signature.of(_scale.factory)
        assert signature.accepts_arity(1)
        assert not signature.accepts_arity(0)
        assert not signature.accepts_arity(2)

    def test_variadic_arity(self):
        signature = Signature.of(_keep.factory)
        assert signature.variadic
        assert signature.accepts_arity(0)
        assert signature.accepts_arity(5)
        assert signature.parameter_at(3).annotation is str

    def test_missing_hint_rejected(self):
        def untyped(x):
            return None

        with pytest.raises(ValueError):
            Signature.of(untyped)


class TestRegistration:
    def test_overloads_by_arity(self):
        registry = TransformRegistry()
        registry.register(_scale)
        registry.register(_scale_twice)
        assert len(registry.signatures("scale")) == 2
        assert registry.resolve("scale", [2]).transform("k", 3) == Replacement.of("k", 6)
        assert registry.resolve("scale", [2, 2]).transform("k", 3) == Replacement.of("k", 12)

    def test_duplicate_shape_rejected(self):
        registry = TransformRegistry()
        registry.register(_scale)
        with pytest.raises(ValueError, match="Ambiguous"):
            registry.register(_scale_again)

    def test_non_primitive_rejected(self):
        with pytest.raises(ValueError):
            TransformRegistry().register(lambda: None)

    def test_contains_and_names(self):
        registry = TransformRegistry()
        registry.register(_keep)
        assert "keep" in registry
        assert "scale" not in registry
        assert registry.names() == ["keep"]


class TestResolve:
    def test_unknown_name(self):
        with pytest.raises(UnknownTransformer):
            TransformRegistry().resolve("nope", [])

    def test_wrong_arity(self):
        registry = TransformRegistry()
        registry.register(_scale)
        with pytest.raises(UndecodableParameters):
            registry.resolve("scale", [1, 2, 3])

    def test_wrong_type(self):
        registry = TransformRegistry()
        registry.register(_scale)
        with pytest.raises(UndecodableParameters):
            registry.resolve("scale", ["many"])

    def test_resolved_primitive_carries_descriptor(self):
        t = default_registry().resolve("key_remove_invalid_chars", ["."])
        assert isinstance(t, Primitive)
        assert t.descriptor.name == "key_remove_invalid_chars"
        assert t.descriptor.params == (".",)

    def test_enum_parameters_coerced(self):
        t = default_registry().resolve("key_ensure_case_format", ["UPPER_CAMEL"])
        assert t.descriptor.params == (CaseFormat.UPPER_CAMEL,)

    def test_transformer_parameter(self):
        t = default_registry().resolve("null_safe", [explode()])
        assert t.transform("a", None).changed is False

    def test_transformer_parameter_type_checked(self):
        with pytest.raises(UndecodableParameters):
            default_registry().resolve("null_safe", ["explode"])

    def test_key_rename_overloads(self):
        registry = default_registry()
        by_mapping = registry.resolve("key_rename", [{"a": "b"}])
        by_pair = registry.resolve("key_rename", ["a", "b"])
        assert by_mapping.transform("a", 1) == by_pair.transform("a", 1)


class TestDefaultRegistry:
    def test_is_shared(self):
        assert default_registry() is default_registry()

    def test_holds_whole_catalog(self):
        registry = default_registry()
        for build in CATALOG:
            assert build.primitive_name in registry
        assert len(registry.signatures("key_rename")) == 2

    def test_catalog_factories_build_primitives(self):
        assert isinstance(key_rename({"a": "b"}), Transformer)
