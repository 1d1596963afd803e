"""Utilities for applying delays and retry backoff to lookup calls."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

Sleeper = Callable[[float], None]


@dataclass
class DelayPolicy:
    """Fixed pause inserted between consecutive lookups of a batch."""

    delay_seconds: float = 0.15

    def pause(self, sleep: Sleeper = time.sleep) -> None:
        if self.delay_seconds > 0:
            sleep(self.delay_seconds)


@dataclass
class LinearBackoff:
    """Retry delay that grows linearly with the attempt number."""

    base_seconds: float = 0.15

    def delay_for(self, attempt: int) -> float:
        return self.base_seconds * max(attempt, 1)

    def pause(self, attempt: int, sleep: Sleeper = time.sleep) -> None:
        delay = self.delay_for(attempt)
        if delay > 0:
            sleep(delay)
