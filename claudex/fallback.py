"""Per-profile circuit breakers that stop traffic to failing upstreams."""

from __future__ import annotations

import dataclasses
import enum
import logging
import threading
import time
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class CircuitState(enum.Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    """Opens after ``threshold`` failures, retries after ``recovery_timeout`` seconds."""

    threshold: int = 3
    recovery_timeout: float = 30.0
    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    last_failure: float | None = field(default=None)

    def can_attempt(self) -> bool:
        """Whether a request may go through; an expired open circuit turns half-open."""
        if self.state is CircuitState.OPEN:
            if self.last_failure is None:
                return True
            if time.monotonic() - self.last_failure >= self.recovery_timeout:
                self.state = CircuitState.HALF_OPEN
                return True
            return False
        return True

    def record_success(self) -> None:
        self.failure_count = 0
        self.state = CircuitState.CLOSED

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure = time.monotonic()
        if self.failure_count >= self.threshold:
            self.state = CircuitState.OPEN
            logger.warning("circuit breaker opened after %d failures", self.failure_count)

    def is_open(self) -> bool:
        return self.state is CircuitState.OPEN


class CircuitBreakerMap:
    """Thread-safe registry of circuit breakers keyed by profile name."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._breakers: dict[str, CircuitBreaker] = {}

    def get_or_create(self, profile: str) -> CircuitBreaker:
        """Return a copy of the profile's breaker, creating a default one if absent."""
        with self._lock:
            breaker = self._breakers.setdefault(profile, CircuitBreaker())
            return dataclasses.replace(breaker)

    def __len__(self) -> int:
        with self._lock:
            return len(self._breakers)

    def __contains__(self, profile: object) -> bool:
        with self._lock:
            return profile in self._breakers