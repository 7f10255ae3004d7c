from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from .events import LogEvent, LogLevel
from .templates import ValueFormatter

LOGGER = logging.getLogger(__name__)

AggregationKey = tuple[str, str]


@dataclass
class AggregatedEvent:
    """One distinct event of a batch plus the span over which it recurred."""

    event: LogEvent
    first_occurrence: dt.datetime
    last_occurrence: dt.datetime
    count: int = 1

    @classmethod
    def start(cls, event: LogEvent) -> AggregatedEvent:
        return cls(event=event, first_occurrence=event.timestamp, last_occurrence=event.timestamp)

    @property
    def recurred(self) -> bool:
        return self.first_occurrence != self.last_occurrence

    def merge(self, event: LogEvent) -> None:
        """Widen the occurrence range; the representative event is kept."""
        if event.timestamp < self.first_occurrence:
            self.first_occurrence = event.timestamp
        if event.timestamp > self.last_occurrence:
            self.last_occurrence = event.timestamp
        self.count += 1


def aggregation_key(event: LogEvent, formatter: Optional[ValueFormatter] = None) -> AggregationKey:
    """Return the deduplication key for ``event``.

    Events carrying an exception group by the exception message. Events
    without one fall back to their rendered message text.
    """
    if event.exception is not None:
        return ("exception", event.exception.message)
    return ("message", event.render_message(formatter))


def aggregate_events(
    events: Iterable[LogEvent],
    minimum_level: LogLevel = LogLevel.VERBOSE,
    formatter: Optional[ValueFormatter] = None,
) -> list[AggregatedEvent]:
    groups: dict[AggregationKey, AggregatedEvent] = {}
    skipped = 0
    for event in events:
        if event.level < minimum_level:
            skipped += 1
            continue

        key = aggregation_key(event, formatter)
        existing = groups.get(key)
        if existing is None:
            groups[key] = AggregatedEvent.start(event)
        else:
            existing.merge(event)

    LOGGER.debug(
        "Aggregated batch into %d group(s); %d event(s) below %s skipped",
        len(groups),
        skipped,
        minimum_level.display_name,
    )
    return list(groups.values())
