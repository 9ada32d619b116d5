"""Retry delay schedule.

delay(attempt) = base * factor ** attempt, with factor defaulting to the
golden ratio, so the curve grows more slowly than doubling.
"""

from __future__ import annotations

from typing import List, Optional

from richtext.config import GOLDEN_RATIO


def backoff_delay(
    attempt: int,
    *,
    base: float,
    factor: float = GOLDEN_RATIO,
    max_delay: Optional[float] = None,
) -> float:
    """Delay to wait after failed attempt number `attempt` (1-based)."""
    if attempt < 0:
        raise ValueError("attempt must not be negative")
    delay = base * (factor ** attempt)
    if max_delay is not None:
        delay = min(delay, max_delay)
    return delay


def backoff_schedule(
    max_attempts: int,
    *,
    base: float,
    factor: float = GOLDEN_RATIO,
    max_delay: Optional[float] = None,
) -> List[float]:
    """All delays slept between `max_attempts` attempts (one fewer than attempts)."""
    return [backoff_delay(i, base=base, factor=factor, max_delay=max_delay) for i in range(1, max_attempts)]
