from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from queue import Empty, Full, Queue
from typing import Any, Protocol

from .config import DEFAULT_BATCH_SIZE_LIMIT, DEFAULT_PERIOD, DEFAULT_QUEUE_LIMIT
from .events import LogEvent

LOGGER = logging.getLogger(__name__)


class BatchProcessor(Protocol):
    def process_batch(self, events: Sequence[LogEvent]) -> Any: ...


class PeriodicBatcher:
    """Buffers events and hands them to a processor in bounded batches.

    A single daemon thread wakes every ``period`` seconds, or as soon as
    ``batch_size_limit`` events are waiting, and emits everything queued.
    Batches never overlap. A batch whose processing fails is logged and
    dropped; there is no durable retry.
    """

    def __init__(
        self,
        processor: BatchProcessor,
        *,
        batch_size_limit: int = DEFAULT_BATCH_SIZE_LIMIT,
        period: float = DEFAULT_PERIOD,
        queue_limit: int = DEFAULT_QUEUE_LIMIT,
    ) -> None:
        if batch_size_limit <= 0:
            raise ValueError("batch_size_limit must be greater than 0")
        if period <= 0:
            raise ValueError("period must be greater than 0")
        self._processor = processor
        self._batch_size_limit = batch_size_limit
        self._period = period
        self._queue: Queue[LogEvent] = Queue(maxsize=queue_limit)
        self._wakeup = threading.Event()
        self._stopped = threading.Event()
        self._emit_lock = threading.Lock()
        self._thread_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._local = threading.local()
        self.dropped = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def delivering(self) -> bool:
        """True while the calling thread is inside ``process_batch``."""
        return getattr(self._local, "delivering", False)

    def start(self) -> None:
        """Start the worker thread; calling it again while running is a no-op."""
        with self._thread_lock:
            if self._stopped.is_set():
                return
            if self._thread is not None and self._thread.is_alive():
                return
            self._thread = threading.Thread(target=self._run, name="teamsink-batcher", daemon=True)
            self._thread.start()

    def enqueue(self, event: LogEvent) -> bool:
        """Queue ``event``; returns False when the event was dropped.

        Events are dropped when the buffer is full or the batcher was stopped.
        """
        if self._stopped.is_set():
            return False
        self.start()
        try:
            self._queue.put_nowait(event)
        except Full:
            self.dropped += 1
            if self.dropped == 1 or self.dropped % 1000 == 0:
                LOGGER.warning("Teams sink queue is full; %d event(s) dropped so far", self.dropped)
            return False

        if self._queue.qsize() >= self._batch_size_limit:
            self._wakeup.set()
        return True

    def flush(self) -> None:
        """Emit the events queued when the call starts, on the calling thread.

        Events queued while flushing wait for the next flush.
        """
        with self._emit_lock:
            remaining = self._queue.qsize()
            while remaining > 0:
                batch = self._drain(min(remaining, self._batch_size_limit))
                if not batch:
                    return
                remaining -= len(batch)
                self._emit(batch)

    def stop(self, *, flush: bool = True, timeout: float = 5.0) -> None:
        self._stopped.set()
        self._wakeup.set()
        thread = self._thread
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        if flush:
            self.flush()

    def _run(self) -> None:
        while not self._stopped.is_set():
            self._wakeup.wait(self._period)
            self._wakeup.clear()
            if self._stopped.is_set():
                break
            self.flush()

    def _drain(self, limit: int) -> list[LogEvent]:
        batch: list[LogEvent] = []
        while len(batch) < limit:
            try:
                batch.append(self._queue.get_nowait())
            except Empty:
                break
        return batch

    def _emit(self, batch: list[LogEvent]) -> None:
        self._local.delivering = True
        try:
            self._processor.process_batch(batch)
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Dropping batch of %d event(s) after failed delivery: %s", len(batch), exc)
        finally:
            self._local.delivering = False
