from __future__ import annotations

import datetime as dt

from teamsink.aggregation import AggregatedEvent, aggregate_events, aggregation_key
from teamsink.events import ExceptionInfo, LogEvent, LogLevel

T0 = dt.datetime(2024, 3, 5, 14, 0, 0, tzinfo=dt.timezone.utc)


def _at(minutes: int) -> dt.datetime:
    return T0 + dt.timedelta(minutes=minutes)


def _event(
    level: LogLevel,
    minutes: int,
    *,
    error: str | None = None,
    template: str = "Something happened",
    properties: dict | None = None,
) -> LogEvent:
    exception = None
    if error is not None:
        exception = ExceptionInfo(type_name="RuntimeError", message=error, description=f"RuntimeError: {error}")
    return LogEvent(
        level=level,
        message_template=template,
        properties=properties or {},
        timestamp=_at(minutes),
        exception=exception,
    )


def test_groups_by_exception_message_and_tracks_range() -> None:
    events = [
        _event(LogLevel.ERROR, 1, error="divide by zero"),
        _event(LogLevel.ERROR, 2, error="divide by zero"),
        _event(LogLevel.WARNING, 3, error="disk low"),
    ]

    groups = aggregate_events(events, LogLevel.INFORMATION)

    assert len(groups) == 2
    first, second = groups
    assert (first.first_occurrence, first.last_occurrence) == (_at(1), _at(2))
    assert first.count == 2
    assert first.recurred
    assert second.first_occurrence == second.last_occurrence == _at(3)
    assert not second.recurred


def test_events_below_threshold_contribute_nothing() -> None:
    events = [
        _event(LogLevel.ERROR, 5, error="boom"),
        _event(LogLevel.DEBUG, 1, error="boom"),
        _event(LogLevel.VERBOSE, 9, error="other"),
    ]

    groups = aggregate_events(events, LogLevel.INFORMATION)

    assert len(groups) == 1
    assert groups[0].first_occurrence == groups[0].last_occurrence == _at(5)
    assert groups[0].count == 1


def test_out_of_order_timestamps_widen_both_ends() -> None:
    events = [
        _event(LogLevel.ERROR, 3, error="boom"),
        _event(LogLevel.ERROR, 1, error="boom"),
        _event(LogLevel.ERROR, 7, error="boom"),
        _event(LogLevel.ERROR, 2, error="boom"),
    ]

    (group,) = aggregate_events(events)

    assert group.first_occurrence == _at(1)
    assert group.last_occurrence == _at(7)
    assert group.first_occurrence <= group.last_occurrence


def test_representative_event_is_never_replaced() -> None:
    first = _event(LogLevel.ERROR, 1, error="boom", template="First {Id}", properties={"Id": 1})
    later = _event(LogLevel.FATAL, 2, error="boom", template="Later {Id}", properties={"Id": 2})

    (group,) = aggregate_events([first, later])

    assert group.event is first


def test_output_keeps_first_seen_order() -> None:
    events = [
        _event(LogLevel.ERROR, 1, error="b"),
        _event(LogLevel.ERROR, 2, error="a"),
        _event(LogLevel.ERROR, 3, error="b"),
        _event(LogLevel.ERROR, 4, error="c"),
    ]

    groups = aggregate_events(events)

    assert [group.event.exception.message for group in groups] == ["b", "a", "c"]


def test_events_without_exception_group_by_rendered_message() -> None:
    events = [
        _event(LogLevel.WARNING, 1, template="Disk {Drive} low", properties={"Drive": "C"}),
        _event(LogLevel.WARNING, 2, template="Disk {Drive} low", properties={"Drive": "C"}),
        _event(LogLevel.WARNING, 3, template="Disk {Drive} low", properties={"Drive": "D"}),
    ]

    groups = aggregate_events(events)

    assert len(groups) == 2
    assert groups[0].count == 2
    assert groups[0].last_occurrence == _at(2)


def test_exception_and_message_keys_do_not_collide() -> None:
    with_exception = _event(LogLevel.ERROR, 1, error="boom")
    without_exception = _event(LogLevel.ERROR, 2, template="boom")

    assert aggregation_key(with_exception) == ("exception", "boom")
    assert aggregation_key(without_exception) == ("message", "boom")
    assert len(aggregate_events([with_exception, without_exception])) == 2


def test_empty_batch() -> None:
    assert aggregate_events([], LogLevel.ERROR) == []


def test_start_uses_event_timestamp() -> None:
    event = _event(LogLevel.ERROR, 4, error="boom")
    group = AggregatedEvent.start(event)
    assert group.first_occurrence == group.last_occurrence == _at(4)
    assert group.count == 1


def test_naive_and_aware_timestamps_aggregate_together() -> None:
    naive = dt.datetime(2024, 3, 5, 9, 0, 0)
    exception = ExceptionInfo(type_name="RuntimeError", message="boom", description="RuntimeError: boom")
    events = [
        LogEvent(LogLevel.ERROR, "Failed", timestamp=naive, exception=exception),
        LogEvent(LogLevel.ERROR, "Failed", exception=exception),
    ]

    (group,) = aggregate_events(events)

    assert group.count == 2
    assert group.first_occurrence == naive.astimezone()
    assert group.first_occurrence <= group.last_occurrence
