"""Top-level package for the DNC/TCPA batch phone checker."""

from . import models  # noqa: F401
from .lookup import LookupClient, classify_payload  # noqa: F401
from .models import (
    BatchResults,
    BatchState,
    BatchSummary,
    Endpoint,
    LookupResult,
    LookupStatus,
    SavedState,
    ValidationOutcome,
)
from .orchestrator import BatchInProgressError, BatchOrchestrator, CallbackObserver
from .phone import SAMPLE_NUMBERS, normalize_numbers, validate_number

__all__ = [
    "BatchInProgressError",
    "BatchOrchestrator",
    "BatchResults",
    "BatchState",
    "BatchSummary",
    "CallbackObserver",
    "Endpoint",
    "LookupClient",
    "LookupResult",
    "LookupStatus",
    "SAMPLE_NUMBERS",
    "SavedState",
    "ValidationOutcome",
    "classify_payload",
    "normalize_numbers",
    "validate_number",
    "ingestion",
    "orchestrator",
]
