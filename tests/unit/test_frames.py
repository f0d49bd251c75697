"""
Unit tests for the pandas adapter (recform.frames).
"""

from __future__ import annotations

import pandas as pd
import pytest

from recform import compose
from recform.exceptions import FrameIOError
from recform.frames import (
    frame_to_records,
    read_frame,
    transform_file,
    transform_frame,
    transform_records,
    write_frame,
)
from recform.transforms import copy, key_to_lower_case, value_as_number, value_remove_if_empty


class TestFrameToRecords:
    def test_missing_cells_become_none(self):
        df = pd.DataFrame({"a": [1.0, float("nan")], "b": ["x", None]})
        assert frame_to_records(df) == [{"a": 1.0, "b": "x"}, {"a": None, "b": None}]


class TestTransformRecords:
    def test_lazy(self, doubling):
        records = iter([{"a": 1}, {"a": 2}])
        out = transform_records(records, doubling)
        assert next(out) == {"a": 2}
        assert list(out) == [{"a": 4}]


class TestTransformFrame:
    def test_rows_transformed(self):
        df = pd.DataFrame({"Code": ["A", "B"], "Price": ["1", "2.5"]})
        out = transform_frame(df, compose(key_to_lower_case(), value_as_number("price")))
        assert list(out.columns) == ["code", "price"]
        assert out["price"].tolist() == [1, 2.5]

    def test_fan_out_adds_columns(self):
        df = pd.DataFrame({"a": [1, 2]})
        out = transform_frame(df, copy("a", "b"))
        assert list(out.columns) == ["a", "b"]
        assert out["b"].tolist() == [1, 2]

    def test_removed_cells_are_missing(self):
        df = pd.DataFrame({"a": ["x", ""], "b": [1, 2]})
        out = transform_frame(df, value_remove_if_empty())
        assert out.loc[0, "a"] == "x"
        assert pd.isna(out.loc[1, "a"])


class TestFiles:
    """Tests for CSV/Parquet read, write, and transform_file."""

    def test_csv_cells_read_as_strings(self, tmp_path):
        path = tmp_path / "in.csv"
        path.write_text("Code,Price\nA,1\nB,\n", encoding="utf-8")
        df = read_frame(path)
        assert df.loc[0, "Price"] == "1"
        assert pd.isna(df.loc[1, "Price"])

    def test_transform_csv_to_parquet(self, tmp_path):
        source = tmp_path / "in.csv"
        source.write_text("Code,Price\nA,1\nB,2.5\n", encoding="utf-8")
        target = tmp_path / "out" / "result.parquet"
        transform_file(source, target, compose(key_to_lower_case(), value_as_number("price")))
        df = read_frame(target)
        assert list(df.columns) == ["code", "price"]
        assert df["price"].tolist() == [1.0, 2.5]

    def test_csv_round_trip(self, tmp_path):
        path = tmp_path / "frame.csv"
        write_frame(pd.DataFrame({"a": ["x", "y"]}), path)
        assert read_frame(path)["a"].tolist() == ["x", "y"]

    def test_unsupported_suffix(self, tmp_path):
        with pytest.raises(FrameIOError):
            read_frame(tmp_path / "in.xlsx")
        with pytest.raises(FrameIOError):
            write_frame(pd.DataFrame({"a": [1]}), tmp_path / "out.json")

    def test_missing_input(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_frame(tmp_path / "missing.csv")
