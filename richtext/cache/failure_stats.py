"""Rolling failed/total ratio over the most recent fetch attempts."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque


@dataclass(frozen=True)
class FailureSnapshot:
    samples: int
    failures: int
    ratio: float
    degraded: bool


class FailureStats:
    """Thread-safe window of attempt outcomes.

    The window counts as degraded once it holds at least `min_samples`
    outcomes and more than `threshold` of them are failures.
    """

    def __init__(self, *, window_size: int = 100, min_samples: int = 10, threshold: float = 0.10):
        self._window: Deque[bool] = deque(maxlen=window_size)
        self._failures = 0
        self._min_samples = min_samples
        self._threshold = threshold
        self._lock = threading.Lock()

    def record(self, success: bool) -> bool:
        """Record one attempt; return True if the degraded flag flipped."""
        with self._lock:
            before = self._degraded_locked()
            if len(self._window) == self._window.maxlen and not self._window[0]:
                self._failures -= 1
            self._window.append(bool(success))
            if not success:
                self._failures += 1
            return self._degraded_locked() != before

    def _degraded_locked(self) -> bool:
        n = len(self._window)
        if n < self._min_samples:
            return False
        return self._failures / n > self._threshold

    @property
    def degraded(self) -> bool:
        with self._lock:
            return self._degraded_locked()

    def snapshot(self) -> FailureSnapshot:
        with self._lock:
            n = len(self._window)
            return FailureSnapshot(
                samples=n,
                failures=self._failures,
                ratio=(self._failures / n) if n else 0.0,
                degraded=self._degraded_locked(),
            )

    def reset(self) -> None:
        with self._lock:
            self._window.clear()
            self._failures = 0
