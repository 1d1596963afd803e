"""Unified data models for the lookup client, batch orchestrator, and GUI."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_utc(moment: datetime) -> str:
    """Render ``moment`` as an ISO-8601 UTC timestamp with a ``Z`` suffix."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse timestamps written by :func:`isoformat_utc` (or any ISO-8601 text)."""

    moment = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


# --- Lookup Models ---

class LookupStatus(str, Enum):
    """Bucket a checked number ends up in."""

    CLEAN = "clean"
    DNC = "dnc"
    INVALID = "invalid"


BUCKETS = tuple(status.value for status in LookupStatus)


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of the local format check performed before any network call."""

    valid: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationOutcome":
        return cls(valid=True)

    @classmethod
    def invalid(cls, reason: str) -> "ValidationOutcome":
        return cls(valid=False, reason=reason)


@dataclass(frozen=True)
class Endpoint:
    """A named upstream lookup service."""

    name: str
    url: str


@dataclass
class LookupResult:
    """Outcome of checking a single number.

    ``reason`` is set when the result comes from validation or exhaustion,
    ``source`` when an endpoint gave a conclusive answer.
    """

    number: str
    status: LookupStatus
    reason: Optional[str] = None
    source: Optional[str] = None
    data: Any = None
    timestamp: str = field(default_factory=lambda: isoformat_utc(utc_now()))

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "number": self.number,
            "status": self.status.value,
            "timestamp": self.timestamp,
        }
        if self.reason is not None:
            payload["reason"] = self.reason
        if self.source is not None:
            payload["source"] = self.source
        if self.data is not None:
            payload["data"] = self.data
        return payload

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "LookupResult":
        if not isinstance(payload, dict):
            raise TypeError(f"Expected a result mapping, got {type(payload).__name__}")
        return cls(
            number=str(payload["number"]),
            status=LookupStatus(payload["status"]),
            reason=payload.get("reason"),
            source=payload.get("source"),
            data=payload.get("data"),
            timestamp=str(payload.get("timestamp") or isoformat_utc(utc_now())),
        )

    def as_row(self) -> Dict[str, Any]:
        """Return a flat representation for spreadsheet export."""
        return {
            "number": self.number,
            "status": self.status.value,
            "reason": self.reason or "",
            "source": self.source or "",
            "timestamp": self.timestamp,
        }


# --- Batch Models ---

@dataclass
class BatchResults:
    """The three ordered result buckets."""

    clean: List[LookupResult] = field(default_factory=list)
    dnc: List[LookupResult] = field(default_factory=list)
    invalid: List[LookupResult] = field(default_factory=list)

    def add(self, result: LookupResult) -> None:
        self.bucket(result.status.value).append(result)

    def bucket(self, name: str) -> List[LookupResult]:
        if name not in BUCKETS:
            raise ValueError(f"Unknown bucket '{name}'. Expected one of {list(BUCKETS)}")
        return getattr(self, name)

    def numbers(self, name: str) -> List[str]:
        return [result.number for result in self.bucket(name)]

    def counts(self) -> Dict[str, int]:
        return {name: len(self.bucket(name)) for name in BUCKETS}

    def total(self) -> int:
        return sum(self.counts().values())

    def all(self) -> List[LookupResult]:
        return [result for name in BUCKETS for result in self.bucket(name)]

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {name: [result.to_dict() for result in self.bucket(name)] for name in BUCKETS}

    @classmethod
    def from_dict(cls, payload: Dict[str, Iterable[Dict[str, Any]]]) -> "BatchResults":
        if not isinstance(payload, dict):
            raise TypeError(f"Expected a mapping of result buckets, got {type(payload).__name__}")
        results = cls()
        for name in BUCKETS:
            for item in payload.get(name) or []:
                results.bucket(name).append(LookupResult.from_dict(item))
        return results


@dataclass
class BatchCounters:
    total: int = 0
    processed: int = 0


@dataclass
class BatchState:
    """Mutable state of the current (or last) batch run."""

    input_numbers: List[str] = field(default_factory=list)
    results: BatchResults = field(default_factory=BatchResults)
    processing: bool = False
    started_at: Optional[datetime] = None
    counters: BatchCounters = field(default_factory=BatchCounters)

    @classmethod
    def start(cls, numbers: Iterable[str], now: datetime) -> "BatchState":
        numbers = list(numbers)
        return cls(
            input_numbers=numbers,
            processing=True,
            started_at=now,
            counters=BatchCounters(total=len(numbers)),
        )

    def record(self, result: LookupResult) -> None:
        if self.counters.processed >= self.counters.total:
            raise RuntimeError("Batch already recorded a result for every input number")
        self.results.add(result)
        self.counters.processed += 1


@dataclass(frozen=True)
class BatchSummary:
    """Final statistics shown when a batch finishes or is stopped."""

    total: int
    processed: int
    clean: int
    dnc: int
    invalid: int
    clean_rate: int
    elapsed_seconds: int
    cancelled: bool = False

    @classmethod
    def from_state(cls, state: BatchState, now: datetime, *, cancelled: bool = False) -> "BatchSummary":
        counts = state.results.counts()
        processed = state.counters.processed
        clean_rate = round(counts["clean"] / processed * 100) if processed else 0
        elapsed = int((now - state.started_at).total_seconds()) if state.started_at else 0
        return cls(
            total=state.counters.total,
            processed=processed,
            clean=counts["clean"],
            dnc=counts["dnc"],
            invalid=counts["invalid"],
            clean_rate=clean_rate,
            elapsed_seconds=max(elapsed, 0),
            cancelled=cancelled,
        )

    def format_message(self) -> str:
        headline = "Processing stopped" if self.cancelled else "Processing complete!"
        return (
            f"{headline}\n\n"
            "Results:\n"
            f"- Clean: {self.clean}\n"
            f"- DNC: {self.dnc}\n"
            f"- Invalid: {self.invalid}\n\n"
            f"Time: {self.elapsed_seconds} seconds"
        )


@dataclass
class SavedState:
    """Batch data restored from the state store."""

    numbers: List[str]
    results: Optional[BatchResults]
    timestamp: datetime
