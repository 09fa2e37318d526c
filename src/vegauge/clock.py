"""Time sources in whole seconds."""

import time


def system_clock() -> int:
    return int(time.time())


class ManualClock:
    """Clock advanced explicitly; used by tests and the simulation runner."""

    def __init__(self, start: int = 0):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"Cannot move clock backwards by {seconds}s")
        self.now += seconds
        return self.now

    def set(self, timestamp: int) -> None:
        if timestamp < self.now:
            raise ValueError(f"Cannot move clock backwards to {timestamp}")
        self.now = timestamp
