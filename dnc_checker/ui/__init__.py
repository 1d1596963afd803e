"""Desktop user interface for the DNC checker."""

from .app import DncCheckerApp, main  # noqa: F401

__all__ = ["DncCheckerApp", "main"]
