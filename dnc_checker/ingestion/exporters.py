"""Export utilities for checked numbers."""
from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import List, MutableMapping, Optional, Union

import pandas as pd

from ..models import BUCKETS, BatchResults
from .loaders import UnsupportedFileTypeError

PathLike = Union[str, Path]

_RESULT_COLUMNS = ["number", "status", "reason", "source", "timestamp"]


class NothingToExportError(ValueError):
    """Raised when the requested bucket holds no numbers."""


def bucket_filename(bucket: str, day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"{bucket}_numbers_{day.isoformat()}.txt"


def bucket_text(results: BatchResults, bucket: str) -> str:
    return "\n".join(results.numbers(bucket))


def export_bucket_text(
    results: BatchResults,
    bucket: str,
    directory: PathLike,
    *,
    day: Optional[date] = None,
) -> Path:
    """Write one bucket as a newline-delimited text file named after the bucket and date."""

    if not results.bucket(bucket):
        raise NothingToExportError(f"No {bucket} numbers to export!")
    destination = Path(directory) / bucket_filename(bucket, day)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(bucket_text(results, bucket), encoding="utf-8")
    return destination


def format_clipboard_text(results: BatchResults) -> str:
    """Render all three buckets as labelled sections."""

    lines: List[str] = []
    for index, bucket in enumerate(BUCKETS):
        if index:
            lines.append("")
        lines.append(f"=== {bucket.upper()} NUMBERS ===")
        lines.extend(results.numbers(bucket))
    return "\n".join(lines)


def results_to_dataframe(results: BatchResults) -> pd.DataFrame:
    """Convert every checked number into a :class:`pandas.DataFrame` row."""

    rows = [result.as_row() for result in results.all()]
    return pd.DataFrame(rows, columns=_RESULT_COLUMNS)


def export_results(
    results: BatchResults,
    path: PathLike,
    *,
    sheet_name: str = "Results",
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    """Write the full result table to a CSV or Excel file."""

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _write_dataframe(results_to_dataframe(results), output_path, sheet_name=sheet_name, exporter_kwargs=exporter_kwargs)
    return output_path


def _write_dataframe(
    dataframe: pd.DataFrame,
    path: Path,
    *,
    sheet_name: str,
    exporter_kwargs: Optional[MutableMapping[str, object]],
) -> None:
    exporter_kwargs = dict(exporter_kwargs or {})
    suffix = path.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            exporter_kwargs.setdefault("sep", "\t")
        dataframe.to_csv(path, index=False, **exporter_kwargs)
        return

    if suffix in {".xlsx", ".xlsm"}:
        engine = exporter_kwargs.pop("engine", None) or "openpyxl"
        dataframe.to_excel(path, index=False, sheet_name=sheet_name, engine=engine, **exporter_kwargs)
        return

    raise UnsupportedFileTypeError(f"Unsupported export file extension: {suffix}")


__all__ = [
    "NothingToExportError",
    "bucket_filename",
    "bucket_text",
    "export_bucket_text",
    "export_results",
    "format_clipboard_text",
    "results_to_dataframe",
]
