#!/usr/bin/env python3
"""
Request schedulers
Every Slack API call waits on a scheduler so the per-workspace rate limit holds
"""

import time


class FixedIntervalScheduler:
    """Spaces calls at least `interval` seconds apart"""

    def __init__(self, interval: float, clock=time.monotonic, sleep=time.sleep):
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last = None

    def wait(self):
        """Block until the next request may be sent"""
        if self._last is not None:
            remaining = self.interval - (self._clock() - self._last)
            if remaining > 0:
                self._sleep(remaining)
        self._last = self._clock()


class NoDelayScheduler:
    """Scheduler that never waits"""

    def wait(self):
        return None
