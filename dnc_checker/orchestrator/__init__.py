"""Workflow orchestration for running a batch of number lookups."""

from .service import BatchInProgressError, BatchObserver, BatchOrchestrator, CallbackObserver

__all__ = ["BatchInProgressError", "BatchObserver", "BatchOrchestrator", "CallbackObserver"]
