from __future__ import annotations

import dataclasses
import textwrap

import pytest

from teamsink.config import (
    DEFAULT_BATCH_SIZE_LIMIT,
    DEFAULT_PERIOD,
    SinkOptions,
    build_options,
    load_options,
    options_from_env,
)
from teamsink.events import LogLevel
from teamsink.templates import ValueFormatter

WEBHOOK = "https://teams.test/webhook"


def test_build_options_defaults() -> None:
    options = build_options({"webhook_url": WEBHOOK})

    assert options.webhook_url == WEBHOOK
    assert options.minimum_level is LogLevel.VERBOSE
    assert options.batch_size_limit == DEFAULT_BATCH_SIZE_LIMIT
    assert options.period == DEFAULT_PERIOD
    assert options.proxy is None
    assert options.title is None
    assert options.omit_properties_section is False
    assert options.formatter == ValueFormatter()


def test_build_options_parses_all_fields() -> None:
    options = build_options(
        {
            "webhook_url": WEBHOOK,
            "minimum_level": "warn",
            "batch_size_limit": "25",
            "period": "00:01:30",
            "proxy": "http://proxy.local:3128",
            "title": "  Order service  ",
            "omit_properties_section": "yes",
            "queue_limit": 500,
        }
    )

    assert options.minimum_level is LogLevel.WARNING
    assert options.batch_size_limit == 25
    assert options.period == 90.0
    assert options.proxy == "http://proxy.local:3128"
    assert options.title == "Order service"
    assert options.omit_properties_section is True
    assert options.queue_limit == 500


@pytest.mark.parametrize(("raw", "expected"), [(5, 5.0), ("2.5", 2.5), ("2:30", 150.0), ("1:00:00", 3600.0)])
def test_period_formats(raw, expected) -> None:
    assert build_options({"webhook_url": WEBHOOK, "period": raw}).period == expected


@pytest.mark.parametrize(
    ("data", "message"),
    [
        ({}, "'webhook_url' is required"),
        ({"webhook_url": "not-a-url"}, "'webhook_url' must be an http"),
        ({"webhook_url": WEBHOOK, "minimum_level": "loud"}, "'minimum_level' is not a known level"),
        ({"webhook_url": WEBHOOK, "period": "soon"}, "'period' must be a number of seconds"),
        ({"webhook_url": WEBHOOK, "period": "00:75"}, "'period' contains out-of-range values"),
        ({"webhook_url": WEBHOOK, "period": 0}, "'period' must be greater than 0"),
        ({"webhook_url": WEBHOOK, "batch_size_limit": "many"}, "'batch_size_limit' must be an integer"),
        ({"webhook_url": WEBHOOK, "batch_size_limit": 0}, "'batch_size_limit' must be greater than 0"),
        ({"webhook_url": WEBHOOK, "proxy": "proxy.local"}, "'proxy' must be an http"),
        ({"webhook_url": WEBHOOK, "omit_properties_section": "maybe"}, "'omit_properties_section' must be a boolean"),
        ({"webhook_url": WEBHOOK, "title": 5}, "'title' must be a string"),
    ],
)
def test_build_options_rejects_invalid_values(data, message) -> None:
    with pytest.raises(ValueError, match=message):
        build_options(data)


def test_blank_proxy_is_treated_as_absent() -> None:
    assert build_options({"webhook_url": WEBHOOK, "proxy": "   "}).proxy is None
    assert SinkOptions(webhook_url=WEBHOOK, proxy="  ").proxy is None


def test_webhook_can_come_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("TEAMS_ALERTS_HOOK", WEBHOOK)
    options = build_options({"webhook_url_env": "TEAMS_ALERTS_HOOK"})
    assert options.webhook_url == WEBHOOK


def test_missing_webhook_environment_variable(monkeypatch) -> None:
    monkeypatch.delenv("TEAMS_ALERTS_HOOK", raising=False)
    with pytest.raises(ValueError, match="unset environment variable 'TEAMS_ALERTS_HOOK'"):
        build_options({"webhook_url_env": "TEAMS_ALERTS_HOOK"})


def test_options_are_read_only() -> None:
    options = SinkOptions(webhook_url=WEBHOOK)
    with pytest.raises(dataclasses.FrozenInstanceError):
        options.title = "Changed"  # type: ignore[misc]


def test_load_options_from_yaml_section(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("TEAMS_HOOK", WEBHOOK)
    path = tmp_path / "teams.yaml"
    path.write_text(
        textwrap.dedent(
            """
            teams:
              webhook_url: ${TEAMS_HOOK}
              minimum_level: Error
              title: Alerts
            """
        ),
        encoding="utf-8",
    )

    options = load_options(path)

    assert options.webhook_url == WEBHOOK
    assert options.minimum_level is LogLevel.ERROR
    assert options.title == "Alerts"


def test_load_options_reports_section_path(tmp_path) -> None:
    path = tmp_path / "teams.yaml"
    path.write_text("teams:\n  webhook_url: nope\n  period: later\n", encoding="utf-8")

    with pytest.raises(ValueError, match="'teams.period'"):
        load_options(path)


def test_load_options_from_top_level_mapping(tmp_path) -> None:
    path = tmp_path / "teams.yaml"
    path.write_text(f"webhook_url: {WEBHOOK}\nperiod: 10\n", encoding="utf-8")

    options = load_options(path)

    assert options.period == 10.0


def test_options_from_env() -> None:
    environ = {
        "TEAMSINK_WEBHOOK_URL": WEBHOOK,
        "TEAMSINK_MINIMUM_LEVEL": "information",
        "TEAMSINK_OMIT_PROPERTIES_SECTION": "true",
        "TEAMSINK_PROXY": "",
        "UNRELATED": "ignored",
    }

    options = options_from_env(environ=environ)

    assert options.minimum_level is LogLevel.INFORMATION
    assert options.omit_properties_section is True
    assert options.proxy is None
