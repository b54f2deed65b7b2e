"""Log entry model and the nanosecond clock that stamps it."""

import threading
import time
from dataclasses import dataclass

from loki_shipper.levels import LogLevel


@dataclass(frozen=True)
class LogEntry:
    timestamp: int
    message: str
    level: LogLevel = LogLevel.INFO


class NanoClock:
    """Wall-clock nanoseconds that never repeat or go backwards.

    If the OS clock returns the same value twice (coarse resolution) or steps
    backwards, the previous reading is bumped by one nanosecond instead.
    """

    def __init__(self, time_func=None):
        self._time_func = time_func or time.time_ns
        self._last = 0
        self._lock = threading.Lock()

    def now_ns(self) -> int:
        with self._lock:
            now = self._time_func()
            if now <= self._last:
                now = self._last + 1
            self._last = now
            return now


def create_log_entry(message: str, level: LogLevel, clock: NanoClock) -> LogEntry:
    """Factory function that stamps a LogEntry with the clock's current time."""
    return LogEntry(timestamp=clock.now_ns(), message=message, level=level)
