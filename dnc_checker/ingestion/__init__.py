"""Utilities for importing number lists and exporting check results."""

from .exporters import (
    NothingToExportError,
    bucket_filename,
    bucket_text,
    export_bucket_text,
    export_results,
    format_clipboard_text,
    results_to_dataframe,
)
from .loaders import UnsupportedFileTypeError, load_numbers

__all__ = [
    "NothingToExportError",
    "UnsupportedFileTypeError",
    "bucket_filename",
    "bucket_text",
    "export_bucket_text",
    "export_results",
    "format_clipboard_text",
    "load_numbers",
    "results_to_dataframe",
]
