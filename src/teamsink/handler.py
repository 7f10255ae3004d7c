from __future__ import annotations

import logging
from logging import Handler, LogRecord
from typing import Optional

from .batching import PeriodicBatcher
from .config import SinkOptions
from .events import LogEvent
from .sink import TeamsSink

# Loggers that write while a card is being delivered.
_DELIVERY_LOGGERS = (__name__.partition(".")[0], "httpx", "httpcore")


def _is_delivery_record(record: LogRecord) -> bool:
    return any(record.name == name or record.name.startswith(name + ".") for name in _DELIVERY_LOGGERS)


class TeamsHandler(Handler):
    """
    Logging handler that converts records to LogEvents and batches them to Teams.

    Records from this package and its HTTP stack, and any record logged
    while the batcher is delivering, are ignored so delivery diagnostics
    never loop back into the sink.
    """

    def __init__(
        self,
        options: SinkOptions,
        *,
        sink: Optional[TeamsSink] = None,
        batcher: Optional[PeriodicBatcher] = None,
    ) -> None:
        super().__init__(level=options.minimum_level.to_logging())
        self.options = options
        self._sink = sink if sink is not None else TeamsSink(options)
        if batcher is None:
            batcher = PeriodicBatcher(
                self._sink,
                batch_size_limit=options.batch_size_limit,
                period=options.period,
                queue_limit=options.queue_limit,
            )
        self._batcher = batcher

    def emit(self, record: LogRecord) -> None:
        if self._batcher.delivering or _is_delivery_record(record):
            return
        try:
            self._batcher.enqueue(LogEvent.from_record(record))
        except Exception:
            # Never break application logging.
            self.handleError(record)

    def flush(self) -> None:
        self._batcher.flush()

    def close(self) -> None:
        try:
            self._batcher.stop(flush=True)
            self._sink.close()
        finally:
            super().close()


def attach_handler(options: SinkOptions, logger: Optional[logging.Logger] = None) -> TeamsHandler:
    """
    Attach a TeamsHandler to ``logger`` (the root logger by default).

    Existing handlers are kept. If the logger already has a TeamsHandler it
    is returned instead of adding a second one.
    """
    target_logger = logger or logging.getLogger()

    for existing in target_logger.handlers:
        if isinstance(existing, TeamsHandler):
            return existing

    handler = TeamsHandler(options)
    target_logger.addHandler(handler)
    return handler
