"""Time source for session timing. All values are integer milliseconds since epoch."""

import time
from typing import Callable

Clock = Callable[[], int]


def wall_clock() -> int:
    return time.time_ns() // 1_000_000
