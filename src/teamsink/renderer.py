from __future__ import annotations

import datetime as dt
from collections.abc import Iterator

from .aggregation import AggregatedEvent
from .cards import MessageCard, MessageFact, MessageSection
from .config import SinkOptions
from .events import LogLevel

PROPERTIES_SECTION_TITLE = "Properties"

_LEVEL_COLORS = {
    LogLevel.INFORMATION: "5bc0de",
    LogLevel.WARNING: "f0ad4e",
    LogLevel.ERROR: "d9534f",
    LogLevel.FATAL: "d9534f",
}
_DEFAULT_COLOR = "777777"


def level_color(level: LogLevel) -> str:
    return _LEVEL_COLORS.get(level, _DEFAULT_COLOR)


def format_timestamp(value: dt.datetime) -> str:
    """Format as ``dd.MM.yyyy HH:mm:ss+hh:mm``; naive values are taken as local time."""
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.astimezone()
    offset = value.utcoffset() or dt.timedelta(0)
    sign = "-" if offset < dt.timedelta(0) else "+"
    total_minutes = abs(int(offset.total_seconds())) // 60
    hours, minutes = divmod(total_minutes, 60)
    return f"{value.strftime('%d.%m.%Y %H:%M:%S')}{sign}{hours:02d}:{minutes:02d}"


def build_facts(aggregated: AggregatedEvent, options: SinkOptions) -> Iterator[MessageFact]:
    event = aggregated.event
    yield MessageFact(name="Level", value=event.level.display_name)
    yield MessageFact(name="MessageTemplate", value=event.message_template)

    if event.exception is not None:
        yield MessageFact(name="Exception", value=event.exception.description)

    for name, value in event.properties.items():
        yield MessageFact(name=str(name), value=options.formatter.format(value))

    if aggregated.recurred:
        yield MessageFact(name="First occurrence", value=format_timestamp(aggregated.first_occurrence))
        yield MessageFact(name="Last occurrence", value=format_timestamp(aggregated.last_occurrence))
    else:
        yield MessageFact(name="Occured on", value=format_timestamp(aggregated.first_occurrence))


def render_card(aggregated: AggregatedEvent, options: SinkOptions) -> MessageCard:
    event = aggregated.event
    sections: list[MessageSection] | None = None
    if not options.omit_properties_section:
        sections = [
            MessageSection(
                title=PROPERTIES_SECTION_TITLE,
                facts=list(build_facts(aggregated, options)),
            )
        ]

    return MessageCard(
        title=options.title,
        text=event.render_message(options.formatter),
        color=level_color(event.level),
        sections=sections,
    )
