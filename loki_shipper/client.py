"""Loki client — orchestrates level filter, buffer, scheduler, sender, and metrics."""

import logging
import threading
import time

from loki_shipper.buffer import LogBuffer
from loki_shipper.config import ClientConfig, normalize_config
from loki_shipper.errors import SerializationError, ShipperError
from loki_shipper.levels import LogLevel
from loki_shipper.metrics import MetricsCollector
from loki_shipper.models import NanoClock, create_log_entry
from loki_shipper.payload import build_push_request
from loki_shipper.scheduler import FlushScheduler, SchedulerState
from loki_shipper.sender import HTTPSender, Sender

logger = logging.getLogger(__name__)


class LokiClient:
    """Batches log entries in memory and pushes them to Loki.

    Delivery is best effort and at most once: a batch that fails to send is
    logged and discarded, never re-buffered.
    """

    def __init__(
        self,
        config: ClientConfig,
        sender: Sender | None = None,
        clock: NanoClock | None = None,
        time_func=None,
    ):
        self._config = normalize_config(config)
        self._owns_sender = sender is None
        self._sender = sender or HTTPSender(
            self._config.url, timeout=self._config.request_timeout
        )
        self._clock = clock or NanoClock()
        self._metrics = MetricsCollector()
        self._buffer = LogBuffer(self._config.batch_size)
        self._scheduler = FlushScheduler(
            self._flush,
            min_wait=self._config.min_wait_time,
            max_wait=self._config.max_wait_time,
            time_func=time_func,
        )
        # Serializes drain+send so batches reach Loki in drain order.
        self._flush_lock = threading.Lock()
        self._closed = False
        self._warned_stopped = False
        self._warn_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def submit(self, message: str, level: LogLevel = LogLevel.INFO):
        """Queue a message for delivery. Messages below min_level are ignored."""
        if level < self._config.min_level:
            return

        if self._scheduler.state is SchedulerState.STOPPED:
            self._drop_after_stop()
            return

        entry = create_log_entry(message, level, self._clock)
        reached = self._buffer.add(entry)

        if self._scheduler.state is SchedulerState.STOPPED:
            # stop() ran between the check above and the add; its final
            # drain may already be done, so flush this entry ourselves.
            # Once the sender is closed it is counted as dropped instead.
            self._flush("shutdown")
        elif reached:
            self._scheduler.notify_threshold()

    def debug(self, message: str):
        self.submit(message, LogLevel.DEBUG)

    def info(self, message: str):
        self.submit(message, LogLevel.INFO)

    def warn(self, message: str):
        self.submit(message, LogLevel.WARN)

    def error(self, message: str):
        self.submit(message, LogLevel.ERROR)

    def start(self):
        """Start the background flush worker."""
        self._scheduler.start()
        logger.info(
            "Loki client started: url=%s, batch_size=%d, min_level=%s",
            self._config.url,
            self._config.batch_size,
            self._config.min_level.name,
        )

    def stop(self, timeout: float | None = None):
        """Flush remaining entries, stop the worker, and close the sender.

        Safe to call more than once and from several threads; each call
        returns after the final flush has completed.
        """
        self._scheduler.stop(timeout=timeout)
        with self._flush_lock:
            if self._closed:
                return
            self._closed = True
            if self._owns_sender:
                self._sender.close()
        logger.info("Loki client stopped. Metrics: %s", self._metrics.snapshot())

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def pending_count(self) -> int:
        return self._buffer.pending_count

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def state(self) -> SchedulerState:
        return self._scheduler.state

    # ------------------------------------------------------------------
    # Flush callback (called by FlushScheduler and by submitting threads)
    # ------------------------------------------------------------------

    def _flush(self, trigger: str):
        """Drain the buffer, shape the push request, and send it once."""
        with self._flush_lock:
            entries = self._buffer.flush()
            if not entries:
                return
            if self._closed:
                self._drop_after_stop(len(entries))
                return

            request = build_push_request(
                entries, self._config.labels, group_by_level=self._config.group_by_level
            )

            start = time.monotonic()
            try:
                bytes_sent = self._sender.send(request)
            except ShipperError as exc:
                reason = "serialization" if isinstance(exc, SerializationError) else "transport"
                self._metrics.record_failure(len(entries), trigger, reason)
                logger.error(
                    "Dropped batch of %d logs (%s flush): %s", len(entries), trigger, exc
                )
                return
            elapsed_ms = (time.monotonic() - start) * 1000

        self._metrics.record_batch(
            batch_size=len(entries),
            bytes_sent=bytes_sent,
            send_time_ms=elapsed_ms,
            trigger=trigger,
        )
        logger.debug(
            "Sent batch of %d logs in %d stream(s) (%s flush, %d bytes)",
            len(entries),
            len(request.streams),
            trigger,
            bytes_sent,
        )

    def _drop_after_stop(self, count: int = 1):
        self._metrics.record_dropped(count)
        with self._warn_lock:
            if self._warned_stopped:
                return
            self._warned_stopped = True
        logger.warning("Loki client is stopped; dropping submitted logs")
