"""
Execution timing for the algorithm dashboard.

Every algorithm body runs behind a short busy-wait so the reported
execution time is visibly non-zero in the UI. The delay carries no
algorithmic meaning; disable it with ``ARTIFICIAL_DELAY_ENABLED=false``.
"""

from __future__ import annotations

import random
import time
from typing import Callable, TypeVar

from config import get_settings

T = TypeVar("T")

# Floor for reported durations when the delay is disabled
MIN_REPORTED_MS = 1e-6


def artificial_delay_ms(rng: random.Random | None = None) -> int:
    """Draw a delay in whole milliseconds from the configured range."""
    low, high = get_settings().get_delay_range()
    if high <= 0:
        return 0
    return (rng or random).randint(low, high)


def measure_execution(fn: Callable[[], T], delay_ms: int | None = None) -> tuple[T, float]:
    """
    Run ``fn`` after the artificial delay and time it.

    Args:
        fn: Zero-argument callable holding the algorithm body
        delay_ms: Explicit delay; drawn from settings when None

    Returns:
        Tuple of (fn result, elapsed milliseconds)
    """
    if delay_ms is None:
        delay_ms = artificial_delay_ms()

    start = time.perf_counter()
    deadline = start + delay_ms / 1000.0
    while time.perf_counter() < deadline:
        pass

    result = fn()
    elapsed = (time.perf_counter() - start) * 1000.0
    return result, max(elapsed, MIN_REPORTED_MS)
