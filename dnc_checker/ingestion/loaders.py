"""Utilities for loading phone numbers from text files and spreadsheets."""
from __future__ import annotations

from pathlib import Path
from typing import Any, List, Mapping, MutableMapping, Optional, Sequence, Union

import pandas as pd

from ..phone import parse_numbers

PathLike = Union[str, Path]

_PHONE_COLUMN_SYNONYMS: Sequence[str] = (
    "phone",
    "phone_number",
    "number",
    "mobile",
    "cell",
    "telephone",
)

_TEXT_SUFFIXES = {".txt", ".text", ""}
_CSV_SUFFIXES = {".csv", ".tsv"}
_EXCEL_SUFFIXES = {".xls", ".xlsx", ".xlsm", ".xlsb"}


class UnsupportedFileTypeError(ValueError):
    """Raised when an unsupported file format is passed to the loader."""


def load_numbers(
    path: PathLike,
    *,
    column: Optional[str] = None,
    sheet_name: Union[str, int, None] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> List[str]:
    """Load raw phone number tokens from a file.

    Parameters
    ----------
    path:
        A plain-text file (numbers separated by newlines, commas or spaces)
        or a CSV/TSV/Excel spreadsheet.
    column:
        Spreadsheet column holding the numbers. When omitted the first column
        whose header looks like a phone column is used, falling back to the
        only column of a single-column sheet.
    sheet_name:
        Sheet selector passed to :func:`pandas.read_excel`.
    loader_kwargs:
        Extra keyword arguments forwarded to the pandas reader.

    The tokens are returned as found; canonicalisation is left to
    :func:`dnc_checker.phone.normalize_tokens`.
    """

    path_obj = Path(path)
    if path_obj.suffix.lower() in _TEXT_SUFFIXES:
        return parse_numbers(path_obj.read_text(encoding="utf-8-sig"))

    dataframe = _read_dataframe(path_obj, sheet_name=sheet_name, loader_kwargs=loader_kwargs)
    target = column or _resolve_phone_column(dataframe.columns)
    if target is None:
        raise ValueError(f"Could not find a phone number column in {path_obj.name}; pass one explicitly")
    if target not in dataframe.columns:
        raise ValueError(f"Column '{target}' not found in {path_obj.name}")

    tokens: List[str] = []
    for value in dataframe[target].tolist():
        text = _clean_text(value)
        if text:
            tokens.append(text)
    return tokens


def _read_dataframe(
    path: Path,
    *,
    sheet_name: Union[str, int, None] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> pd.DataFrame:
    loader_kwargs = dict(loader_kwargs or {})
    loader_kwargs.setdefault("dtype", str)
    suffix = path.suffix.lower()

    if suffix in _CSV_SUFFIXES:
        if suffix == ".tsv":
            loader_kwargs.setdefault("sep", "\t")
        return pd.read_csv(path, **loader_kwargs)

    if suffix in _EXCEL_SUFFIXES:
        engine = loader_kwargs.pop("engine", None) or "openpyxl"
        return pd.read_excel(path, sheet_name=sheet_name, engine=engine, **loader_kwargs)

    raise UnsupportedFileTypeError(f"Unsupported file extension: {path.suffix}")


def _resolve_phone_column(columns: Sequence[Any]) -> Optional[str]:
    names = [str(column) for column in columns]
    normalised: Mapping[str, str] = {name: name.strip().lower().replace(" ", "_") for name in names}
    for synonym in _PHONE_COLUMN_SYNONYMS:
        for name in names:
            key = normalised[name]
            if key == synonym or key.startswith(f"{synonym}_"):
                return name
    if len(names) == 1:
        return names[0]
    return None


def _clean_text(value: Any) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


__all__ = ["load_numbers", "UnsupportedFileTypeError"]
