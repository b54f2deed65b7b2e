import threading

import pytest

from loki_shipper.config import ClientConfig
from loki_shipper.errors import TransportError
from loki_shipper.payload import encode_push_request


class RecordingSender:
    """In-memory Sender that records every push request it is given."""

    def __init__(self):
        self.requests = []
        self.closed = False
        self._lock = threading.Lock()
        self._sent = threading.Condition(self._lock)

    def send(self, request) -> int:
        with self._sent:
            self.requests.append(request)
            self._sent.notify_all()
        return len(encode_push_request(request))

    def close(self):
        self.closed = True

    def wait_for(self, count: int, timeout: float = 3.0) -> bool:
        """Block until at least *count* requests arrived or timeout."""
        with self._sent:
            return self._sent.wait_for(lambda: len(self.requests) >= count, timeout=timeout)

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.requests)

    def messages(self, index: int = 0) -> list[str]:
        """Messages of one request, in stream order then value order."""
        with self._lock:
            request = self.requests[index]
        return [line for stream in request.streams for _, line in stream.values]


class FailingSender(RecordingSender):
    """Sender that records the attempt and then fails like a 500 response."""

    def send(self, request) -> int:
        super().send(request)
        raise TransportError("unexpected status code: 500", status_code=500)


class SlowSender(RecordingSender):
    """Sender whose send blocks until the test sets *release*."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()
        self.close_count = 0

    def send(self, request) -> int:
        self.entered.set()
        self.release.wait(5)
        return super().send(request)

    def close(self):
        self.close_count += 1
        super().close()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def failing_sender():
    return FailingSender()


@pytest.fixture
def slow_sender():
    return SlowSender()


@pytest.fixture
def make_config():
    def _make_config(**overrides) -> ClientConfig:
        defaults = {
            "url": "http://loki.test:3100",
            "labels": {"job": "test"},
            "batch_size": 100,
            "min_wait_time": 1.0,
            "max_wait_time": 30.0,
            "group_by_level": False,
        }
        defaults.update(overrides)
        return ClientConfig(**defaults)

    return _make_config
