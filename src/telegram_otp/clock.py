"""Wall-clock helpers.  Components take a ``Clock`` so tests can simulate time."""

import time
from collections.abc import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return time.time_ns() // 1_000_000
