"""
Debounce guard for continuous-input scanners.

Handheld and camera scanners fire several reads per swipe. After a value is
accepted, the same value is ignored until the window has passed. A
different value is always accepted, so the next person in line is never
held up. The guard remembers only the most recently accepted value.
"""

import time


class DebounceGuard:
    """
    Per-session guard keyed by (raw value, time of acceptance).

    Usage:
        guard = DebounceGuard(window_seconds=1.5)
        if guard.accept(raw_value):
            ...handle the scan...
    """

    def __init__(self, window_seconds: float, clock=time.monotonic):
        self.window_seconds = window_seconds
        self._clock = clock
        self._last_value = None
        self._last_accepted_at = None

    def is_duplicate(self, value: str) -> bool:
        if self._last_value is None or value != self._last_value:
            return False
        return (self._clock() - self._last_accepted_at) < self.window_seconds

    def accept(self, value: str) -> bool:
        """
        Record ``value`` and return True, or return False for a repeat.

        Dropped repeats do not extend the window.
        """
        if self.is_duplicate(value):
            return False
        self._last_value = value
        self._last_accepted_at = self._clock()
        return True

    def reset(self) -> None:
        self._last_value = None
        self._last_accepted_at = None
