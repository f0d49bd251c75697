"""
pandas adapter for recform.

Tabular sources (CSV exports, Parquet files, query results) arrive as
DataFrames.  These helpers run a transformer over each row as a record and
collect the results back into a frame.  Missing cells (``NaN``/``NaT``) are
handed to transformers as ``None``, the absence marker.

Key functions:
- transform_frame(df, transformer) -> DataFrame
- transform_records(records, transformer) -> iterator of records
- transform_file(input_path, output_path, transformer): CSV/Parquet in,
  CSV/Parquet out, chosen by file suffix.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any

import pandas as pd
import pyarrow.parquet as pq

from recform.exceptions import FrameIOError
from recform.transformer import Transformer
from recform.values import Record

logger = logging.getLogger(__name__)

_SUPPORTED_SUFFIXES = {".csv", ".parquet"}


def frame_to_records(frame: pd.DataFrame) -> list[Record]:
    """Convert *frame* to a list of records with ``None`` for missing cells."""
    cleaned = frame.astype(object).where(frame.notna(), None)
    return cleaned.to_dict(orient="records")


def transform_records(
    records: Iterable[Mapping[str, Any]], transformer: Transformer
) -> Iterator[Record]:
    """Lazily apply *transformer* to each record."""
    for record in records:
        yield transformer.transform_record(record)


def transform_frame(frame: pd.DataFrame, transformer: Transformer) -> pd.DataFrame:
    """Apply *transformer* to every row of *frame*.

    The result's columns are the union of all output keys in order of first
    appearance; a key missing from some row is ``NaN`` there.
    """
    records = frame_to_records(frame)
    transformed = list(transform_records(records, transformer))
    logger.info("Transformed %d record(s) with %r", len(transformed), transformer)
    return pd.DataFrame.from_records(transformed)


def _check_suffix(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix not in _SUPPORTED_SUFFIXES:
        raise FrameIOError(
            f"Unsupported file type: '{path.suffix}'. "
            f"Supported: {sorted(_SUPPORTED_SUFFIXES)}"
        )
    return suffix


def read_frame(path: str | Path) -> pd.DataFrame:
    """Read a CSV or Parquet file into a DataFrame.

    CSV cells are read as strings so that coercion is left to the pipeline.
    """
    path = Path(path)
    suffix = _check_suffix(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if suffix == ".csv":
        return pd.read_csv(path, dtype=str, encoding="utf-8-sig")
    return pq.read_table(path).to_pandas()


def write_frame(frame: pd.DataFrame, path: str | Path) -> None:
    """Write *frame* as CSV or Parquet, chosen by the suffix of *path*.

    Raises:
        FrameIOError: If the suffix is unsupported or the write fails
            (e.g. a column mixing scalars and maps cannot be stored as
            Parquet).
    """
    path = Path(path)
    suffix = _check_suffix(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        if suffix == ".csv":
            frame.to_csv(path, index=False, encoding="utf-8-sig")
        else:
            frame.to_parquet(path, index=False, engine="pyarrow")
    except Exception as exc:
        raise FrameIOError(f"Failed to write {path.name}: {exc}") from exc


def transform_file(
    input_path: str | Path, output_path: str | Path, transformer: Transformer
) -> pd.DataFrame:
    """Read *input_path*, transform every row, and write *output_path*.

    Returns the transformed frame.
    """
    frame = read_frame(input_path)
    logger.info("Read %d row(s) from %s", len(frame), input_path)
    out = transform_frame(frame, transformer)
    write_frame(out, output_path)
    logger.info("Wrote %d row(s) to %s", len(out), output_path)
    return out
