"""
Unit tests for CompositeTransformer (recform.composite).

Covers pair-level re-walk semantics, record-level piping, flattening
(associativity), and construction errors.
"""

from __future__ import annotations

import pytest

from recform import (
    UNCHANGED,
    CompositeTransformer,
    Replacement,
    compose,
    compose_for_each,
    function_transformer,
)
from recform.exceptions import InvalidPipeline
from recform.transforms import (
    copy,
    key_to_lower_case,
    value_string_split_on_delimiter,
    value_string_to_native,
)


@function_transformer
def _three_to_bar(key, value):
    return Replacement.of("bar", value) if value == 3 else UNCHANGED


class TestConstruction:
    def test_empty_composite_rejected(self):
        with pytest.raises(InvalidPipeline):
            CompositeTransformer([])

    def test_compose_without_arguments_rejected(self):
        with pytest.raises(InvalidPipeline):
            compose()

    def test_order_preserved(self, declining, doubling):
        composite = compose(declining, doubling)
        assert composite.transformers == (declining, doubling)

    def test_nested_composites_flattened(self, declining, doubling, deleting):
        composite = compose(declining, compose(doubling, deleting))
        assert composite.transformers == (declining, doubling, deleting)

    def test_compose_for_each_wraps_every_child(self, doubling):
        composite = compose_for_each(doubling, doubling)
        assert len(composite.transformers) == 2
        assert all(t.inner is doubling for t in composite.transformers)


class TestPairLevel:
    """Tests for CompositeTransformer.transform()."""

    def test_split_and_convert(self):
        """Lower-case, split on comma, and convert to native numbers."""
        pipeline = compose(
            key_to_lower_case(),
            value_string_split_on_delimiter(","),
            value_string_to_native(),
        )
        result = pipeline.transform("Foo", "1,2,3,4,1")
        assert dict(result.entries) == {"foo": [1, 2, 3, 4, 1]}

    def test_for_each_fan_out_gathers_renamed_elements(self):
        """Elements renamed by a later stage are gathered under the new key."""
        pipeline = compose_for_each(
            key_to_lower_case(),
            value_string_split_on_delimiter(","),
            value_string_to_native(),
            _three_to_bar,
        )
        result = pipeline.transform("Foo", "1,2,3,4,1")
        assert dict(result.entries) == {"foo": [1, 2, 4, 1], "bar": [3]}

    def test_declining_everywhere_is_unchanged(self, declining):
        assert compose(declining, declining).transform("k", 1) is UNCHANGED

    def test_later_declining_stage_keeps_state(self, declining):
        result = compose(key_to_lower_case(), declining).transform("Foo", 1)
        assert result == Replacement.of("foo", 1)

    def test_later_stage_sees_every_fanned_out_pair(self, doubling):
        result = compose(copy("a", "b"), doubling).transform("a", 1)
        assert dict(result.entries) == {"a": 2, "b": 2}

    def test_first_stage_declining_passes_original_pair(self, declining, doubling):
        result = compose(declining, doubling).transform("k", 2)
        assert result == Replacement.of("k", 4)

    def test_delete_empties_state(self, deleting, doubling):
        result = compose(key_to_lower_case(), deleting, doubling).transform("Foo", 1)
        assert result.changed
        assert len(result.entries) == 0

    def test_grouping_does_not_matter(self, doubling):
        a, b, c = key_to_lower_case(), copy("foo", "bar"), doubling
        left = compose(compose(a, b), c).transform("FOO", 1)
        right = compose(a, compose(b, c)).transform("FOO", 1)
        assert left == right == Replacement({"foo": 2, "bar": 2})


class TestRecordLevel:
    """Tests for CompositeTransformer.transform_record()."""

    def test_declining_everywhere_returns_equal_record(self, declining):
        record = {"b": 1, "a": None, "c": [1, 2]}
        out = compose(declining, declining).transform_record(record)
        assert out == record
        assert list(out) == ["b", "a", "c"]

    def test_children_piped_in_order(self, doubling):
        out = compose(doubling, doubling).transform_record({"x": 1, "y": "s"})
        assert out == {"x": 4, "y": "s"}

    def test_deleted_keys_dropped(self, deleting):
        assert compose(deleting).transform_record({"a": 1, "b": 2}) == {}

    def test_cross_key_collision_accumulates(self):
        out = compose(key_to_lower_case()).transform_record({"Foo": 1, "FOO": 2})
        assert out == {"foo": [1, 2]}

    def test_input_not_mutated(self, doubling):
        record = {"x": 1}
        compose(doubling).transform_record(record)
        assert record == {"x": 1}
