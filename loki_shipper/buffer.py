"""Thread-safe accumulator for log entries awaiting a flush."""

import threading

from loki_shipper.models import LogEntry


class LogBuffer:
    """Collects entries under a lock and hands them out in one atomic drain.

    ``batch_size`` is a soft watermark: ``add`` reports when it has been
    reached, but several producers may append before the drain happens, so
    a drained batch can be larger than ``batch_size``.
    """

    def __init__(self, batch_size: int):
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        self._batch_size = batch_size
        self._entries: list[LogEntry] = []
        self._lock = threading.Lock()

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._entries)

    def add(self, entry: LogEntry) -> bool:
        """Append an entry. Returns True if the buffer has reached batch_size."""
        with self._lock:
            self._entries.append(entry)
            return len(self._entries) >= self._batch_size

    def flush(self) -> list[LogEntry]:
        """Swap in an empty list and return everything added so far, in order."""
        with self._lock:
            entries = self._entries
            self._entries = []
            return entries
