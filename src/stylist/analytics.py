"""
AI request metrics.

The gateway calls :meth:`RequestCounter.record` once per provider
attempt (retries included), so the counter reflects real provider load
rather than user-visible requests.
"""

import threading
import time
from collections import Counter, deque
from typing import Any, Callable, Deque, Dict, Optional


class RequestCounter:
    """Thread-safe running total plus a sliding per-window rate."""

    def __init__(
        self,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._window = window_seconds
        self._clock = clock
        self._total = 0
        self._by_kind: Counter = Counter()
        self._recent: Deque[float] = deque()
        self._last_request_at: Optional[float] = None
        self._lock = threading.Lock()

    def record(self, kind: str = "text") -> None:
        now = self._clock()
        with self._lock:
            self._total += 1
            self._by_kind[kind] += 1
            self._recent.append(now)
            self._last_request_at = now
            self._trim(now)

    @property
    def total(self) -> int:
        with self._lock:
            return self._total

    def requests_in_window(self) -> int:
        now = self._clock()
        with self._lock:
            self._trim(now)
            return len(self._recent)

    def snapshot(self) -> Dict[str, Any]:
        now = self._clock()
        with self._lock:
            self._trim(now)
            return {
                "total": self._total,
                "by_kind": dict(self._by_kind),
                "in_window": len(self._recent),
                "window_seconds": self._window,
                "last_request_at": self._last_request_at,
            }

    def reset(self) -> None:
        with self._lock:
            self._total = 0
            self._by_kind.clear()
            self._recent.clear()
            self._last_request_at = None

    def _trim(self, now: float) -> None:
        while self._recent and now - self._recent[0] >= self._window:
            self._recent.popleft()
