"""Request counters and recent latencies per profile."""

from __future__ import annotations

import threading
from collections import deque
from datetime import timedelta

_LATENCY_WINDOW = 100


class ProfileMetrics:
    """Counts requests, tokens and outcomes, and keeps the last 100 latencies."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.total_requests = 0
        self.total_tokens = 0
        self.success_count = 0
        self.failure_count = 0
        self.latencies: deque[timedelta] = deque(maxlen=_LATENCY_WINDOW)

    def record_request(self, success: bool, latency: timedelta, tokens: int) -> None:
        with self._lock:
            self.total_requests += 1
            self.total_tokens += tokens
            if success:
                self.success_count += 1
            else:
                self.failure_count += 1
            self.latencies.append(latency)

    def avg_latency(self) -> timedelta | None:
        """Mean of the recorded latencies, or None if there are none."""
        with self._lock:
            if not self.latencies:
                return None
            return sum(self.latencies, timedelta()) / len(self.latencies)

    def success_rate(self) -> float:
        """Percentage of successful requests; 100 when nothing was recorded."""
        with self._lock:
            if self.total_requests == 0:
                return 100.0
            return self.success_count / self.total_requests * 100.0


class MetricsStore:
    """Thread-safe map of profile names to their metrics."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._profiles: dict[str, ProfileMetrics] = {}

    def get_or_create(self, profile: str) -> ProfileMetrics:
        with self._lock:
            return self._profiles.setdefault(profile, ProfileMetrics())

    def snapshot(self) -> dict[str, ProfileMetrics]:
        """A shallow copy of the current profile map."""
        with self._lock:
            return dict(self._profiles)