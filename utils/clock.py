"""
utils/clock.py
--------------
Time sources. Every schedule operation reads "now" exactly once, in epoch
seconds, from one of these.
"""

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    """Wall-clock time, truncated to whole seconds."""

    def now(self) -> int:
        return int(time.time())


class FixedClock:
    """A clock that only moves when told to. Used by tests and replays."""

    def __init__(self, start: int = 0):
        self.current = start

    def now(self) -> int:
        return self.current

    def set(self, timestamp: int) -> None:
        self.current = timestamp

    def advance(self, seconds: int) -> int:
        self.current += seconds
        return self.current
