"""
Integration tests: pipeline files through the full stack.

Tests the cycle: write YAML -> load -> encode -> decode -> run on a frame,
and the encode_pipeline script in both directions.
"""

from __future__ import annotations

import runpy
import sys
from pathlib import Path

import pandas as pd
import pytest

from recform import decode, encode, load_pipeline
from recform.frames import transform_frame

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "encode_pipeline.py"

PIPELINE_YAML = """\
description: normalize partner feed
steps:
  - name: key_whitespace_to_underscore
  - name: key_to_lower_case
  - name: value_string_split_on_delimiter
    params: [",", TRIM_WHITESPACE]
  - for_each:
      name: value_string_to_native
  - name: null_safe
    params:
      - transformer: {name: explode}
  - nest:
      name: key_ensure_case_format
      params: [UPPER_CAMEL]
  - script: "{key: [v * 10 for v in value] if isinstance(value, list) else value * 10} if key == 'UnitPrice' else {key: value}"
"""

RECORD = {"Unit Price": "1, 2", "Owner.First Name": "'Ann'", "Flag": "true", "Empty": None}

EXPECTED = {
    "UnitPrice": [10, 20],
    "Owner": {"FirstName": "Ann"},
    "Flag": True,
    "Empty": None,
}


@pytest.fixture
def pipeline_file(tmp_path) -> Path:
    path = tmp_path / "pipeline.yaml"
    path.write_text(PIPELINE_YAML, encoding="utf-8")
    return path


def _run_script(*args: str) -> int:
    argv = sys.argv
    sys.argv = [str(SCRIPT), *args]
    try:
        with pytest.raises(SystemExit) as exc_info:
            runpy.run_path(str(SCRIPT), run_name="__main__")
    finally:
        sys.argv = argv
    return exc_info.value.code


@pytest.mark.integration
@pytest.mark.usefixtures("python_engine")
class TestPipelineFiles:
    """Tests for YAML pipelines combined with the binary codec."""

    def test_yaml_pipeline_transforms_record(self, pipeline_file):
        pipeline = load_pipeline(pipeline_file)
        assert pipeline.transform_record(RECORD) == EXPECTED

    def test_binary_copy_behaves_identically(self, pipeline_file):
        pipeline = load_pipeline(pipeline_file)
        decoded = decode(encode(pipeline))
        assert decoded.transform_record(RECORD) == pipeline.transform_record(RECORD)

    def test_frame(self, pipeline_file):
        pipeline = load_pipeline(pipeline_file)
        df = pd.DataFrame([RECORD, {"Unit Price": "3", "Owner.First Name": "Bo", "Flag": "no"}])
        out = transform_frame(df, pipeline)
        assert list(out.columns) == ["UnitPrice", "Owner", "Flag", "Empty"]
        assert out.loc[1, "UnitPrice"] == 30
        assert out.loc[1, "Owner"] == {"FirstName": "Bo"}

    def test_script_round_trip(self, pipeline_file, tmp_path):
        binary = tmp_path / "pipeline.tfrm"
        assert _run_script(str(pipeline_file), str(binary), "--python-scripts") == 0
        assert binary.exists()

        restored = tmp_path / "restored.yaml"
        assert _run_script(str(binary), str(restored), "--python-scripts") == 0
        assert load_pipeline(restored).transform_record(RECORD) == EXPECTED

    def test_script_missing_input(self, tmp_path):
        assert _run_script(str(tmp_path / "missing.yaml")) == 1
