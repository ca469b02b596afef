"""Deadline-based tick clock.

Sleeping a fixed interval after the work accumulates drift; instead each
tick sleeps until the next deadline on the wall clock, so ``N`` ticks span
``N`` intervals regardless of how long the work took.
"""

from __future__ import annotations

import math
import time
from typing import Callable


class Ticker:
    def __init__(self, interval_s: float = 1.0, *,
                 clock: Callable[[], float] = time.time,
                 sleep: Callable[[float], None] = time.sleep):
        self.interval_s = interval_s
        self._clock = clock
        self._sleep = sleep
        now = clock()
        # Align to the interval boundary so ticks land on whole seconds.
        self._deadline = math.floor(now / interval_s) * interval_s

    def wait(self) -> float:
        """Sleep until the next deadline and return how long we slept."""
        now = self._clock()
        if now < self._deadline - self.interval_s:
            # Wall clock stepped back; realign instead of sleeping the gap.
            self._deadline = math.floor(now / self.interval_s) * self.interval_s
        self._deadline += self.interval_s
        if self._deadline <= now:
            # Work overran a whole interval; skip missed ticks rather than burst.
            self._deadline = (math.floor(now / self.interval_s) + 1) * self.interval_s
        delay = self._deadline - now
        self._sleep(delay)
        return delay
