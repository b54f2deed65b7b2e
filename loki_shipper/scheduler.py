"""Flush scheduler — reconciles size-triggered flushes with a backstop timer.

Two conditions lead to a flush:

* size: the buffer reached ``batch_size``. The submitting thread flushes
  inline, unless the previous flush happened less than ``min_wait`` seconds
  ago; then the flush is deferred to the worker, which runs it as soon as
  ``min_wait`` has elapsed. Entries keep accumulating in the meantime.
* timer: ``max_wait`` seconds passed without any flush.

Stopping the scheduler always runs one last "shutdown" flush.
"""

import enum
import logging
import threading
import time

logger = logging.getLogger(__name__)


class SchedulerState(enum.Enum):
    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"


class FlushScheduler:
    """Owns the flush cadence and the single background worker thread.

    Args:
        flush_func: Callable taking the trigger name ("size", "timer" or
            "shutdown") that drains the buffer and sends its contents.
        min_wait: Minimum seconds between two flushes caused by size.
        max_wait: Maximum seconds entries may wait without any flush.
        time_func: Monotonic clock, injectable for tests.
    """

    def __init__(self, flush_func, min_wait: float, max_wait: float, time_func=None):
        self._flush_func = flush_func
        self._min_wait = min_wait
        self._max_wait = max_wait
        self._time_func = time_func or time.monotonic

        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._finished = threading.Event()
        self._state = SchedulerState.CREATED
        self._started_at = self._time_func()
        self._last_flush: float | None = None
        self._pending = False
        self._thread: threading.Thread | None = None
        self._final_flusher: threading.Thread | None = None

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            return self._state

    @property
    def last_flush(self) -> float | None:
        with self._lock:
            return self._last_flush

    @property
    def has_pending(self) -> bool:
        """True while a throttled size flush is waiting for the worker."""
        with self._lock:
            return self._pending

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self):
        """Launch the worker thread."""
        with self._lock:
            if self._state is SchedulerState.STOPPED:
                raise RuntimeError("FlushScheduler cannot be restarted after stop()")
            if self._state is SchedulerState.RUNNING:
                return
            self._state = SchedulerState.RUNNING
            self._started_at = self._time_func()
            self._thread = threading.Thread(
                target=self._worker, name="loki-flush-worker", daemon=True
            )
            self._thread.start()

        logger.info(
            "Flush scheduler started (min_wait=%.2fs, max_wait=%.2fs)",
            self._min_wait,
            self._max_wait,
        )

    def stop(self, timeout: float | None = None):
        """Run the final flush and wait for the worker to exit.

        The final flush runs once. Every caller, including concurrent and
        repeated ones, returns only after it has finished (or ``timeout``
        expired).
        """
        with self._lock:
            first = self._state is not SchedulerState.STOPPED
            if first:
                if self._state is SchedulerState.CREATED:
                    # No worker ever ran, so the final flush happens here.
                    self._final_flusher = threading.current_thread()
                else:
                    self._final_flusher = self._thread
                self._state = SchedulerState.STOPPED
                # The final flush covers any deferred size flush.
                self._pending = False
            run_inline = first and self._thread is None
            flusher = self._final_flusher
            thread = self._thread

        self._wake.set()

        if run_inline:
            try:
                self._flush_func("shutdown")
            finally:
                self._finished.set()
        elif flusher is not threading.current_thread():
            if not self._finished.wait(timeout):
                logger.warning("Final flush did not finish within %s seconds", timeout)
            elif thread is not None:
                thread.join(timeout=timeout)

        if first:
            logger.info("Flush scheduler stopped")

    # ------------------------------------------------------------------
    # Size trigger (called from submitting threads)
    # ------------------------------------------------------------------

    def notify_threshold(self) -> bool:
        """Handle a buffer that reached batch_size.

        Returns True if the flush ran inline on the calling thread, False if
        it was deferred to the worker because of the min_wait throttle.

        A flush deferred before start() stays pending until the worker runs:
        start() picks it up once min_wait has elapsed, and stop() without a
        start() sends it with the final flush.
        """
        with self._lock:
            now = self._time_func()
            if (
                self._state is not SchedulerState.STOPPED
                and self._last_flush is not None
                and now - self._last_flush < self._min_wait
            ):
                self._pending = True
                self._wake.set()
                return False
            self._mark_flushed(now)

        self._flush_func("size")
        return True

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _worker(self):
        while True:
            with self._lock:
                if self._state is SchedulerState.STOPPED:
                    break
                timeout = self._next_deadline() - self._time_func()

            if timeout > 0:
                self._wake.wait(timeout)
            self._wake.clear()

            trigger = self._take_due_trigger()
            if trigger is not None:
                self._safe_flush(trigger)

        try:
            self._safe_flush("shutdown")
        finally:
            self._finished.set()
        logger.debug("Flush worker exited")

    def _safe_flush(self, trigger: str):
        try:
            self._flush_func(trigger)
        except Exception:
            logger.exception("Flush (%s) raised; worker continues", trigger)

    def _take_due_trigger(self) -> str | None:
        """Return the trigger that is due now and mark it as flushed."""
        with self._lock:
            if self._state is SchedulerState.STOPPED:
                return None
            now = self._time_func()
            if self._pending and now >= self._last_flush + self._min_wait:
                trigger = "size"
            elif now >= self._backstop_deadline():
                trigger = "timer"
            else:
                return None
            self._mark_flushed(now)
            return trigger

    def _next_deadline(self) -> float:
        """Must be called with self._lock held."""
        deadline = self._backstop_deadline()
        if self._pending:
            deadline = min(deadline, self._last_flush + self._min_wait)
        return deadline

    def _backstop_deadline(self) -> float:
        """Must be called with self._lock held."""
        reference = self._last_flush if self._last_flush is not None else self._started_at
        return reference + self._max_wait

    def _mark_flushed(self, now: float):
        """Must be called with self._lock held."""
        self._last_flush = now
        self._pending = False
