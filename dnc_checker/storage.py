"""Durable single-slot storage for the batch state."""
from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from .models import BatchResults, BatchState, SavedState, isoformat_utc, parse_timestamp, utc_now

LOGGER = logging.getLogger(__name__)

RESULTS_MAX_AGE = timedelta(hours=1)


class StateStore(Protocol):
    """Key-value slot holding the last batch snapshot."""

    def load(self) -> Optional[Dict[str, Any]]:  # pragma: no cover - runtime protocol
        """Return the saved snapshot, or ``None`` when nothing usable is stored."""

    def save(self, snapshot: Dict[str, Any]) -> None:  # pragma: no cover - runtime protocol
        """Replace the stored snapshot."""

    def clear(self) -> None:  # pragma: no cover - runtime protocol
        """Remove the stored snapshot."""


class InMemoryStateStore:
    def __init__(self) -> None:
        self.snapshot: Optional[Dict[str, Any]] = None
        self.saves = 0

    def load(self) -> Optional[Dict[str, Any]]:
        return json.loads(json.dumps(self.snapshot)) if self.snapshot is not None else None

    def save(self, snapshot: Dict[str, Any]) -> None:
        self.snapshot = json.loads(json.dumps(snapshot))
        self.saves += 1

    def clear(self) -> None:
        self.snapshot = None


class JsonFileStateStore:
    """Keep the snapshot in a JSON file, replaced atomically on every save."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOGGER.warning("Error loading state from %s: %s", self.path, exc)
            return None
        if not isinstance(data, dict):
            LOGGER.warning("Ignoring malformed state in %s", self.path)
            return None
        return data

    def save(self, snapshot: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(snapshot, handle, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


def snapshot_state(state: BatchState, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "numbers": list(state.input_numbers),
        "results": state.results.to_dict(),
        "timestamp": isoformat_utc(now or utc_now()),
    }


def load_saved_state(
    store: StateStore,
    *,
    now: Optional[datetime] = None,
    max_age: timedelta = RESULTS_MAX_AGE,
) -> Optional[SavedState]:
    """Read the stored snapshot.

    Numbers are always restored; results only when the snapshot is younger
    than ``max_age``.
    """

    data = store.load()
    if not data:
        return None

    try:
        numbers = [str(number) for number in data.get("numbers") or []]
        timestamp = parse_timestamp(str(data["timestamp"]))
        results = None
        if (now or utc_now()) - timestamp < max_age and data.get("results"):
            results = BatchResults.from_dict(data["results"])
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        LOGGER.warning("Error loading state: %s", exc)
        return None

    return SavedState(numbers=numbers, results=results, timestamp=timestamp)


__all__ = [
    "InMemoryStateStore",
    "JsonFileStateStore",
    "RESULTS_MAX_AGE",
    "StateStore",
    "load_saved_state",
    "snapshot_state",
]
