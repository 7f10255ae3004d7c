from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .events import LogLevel
from .templates import ValueFormatter
from .utils import is_blank, load_yaml_file, parse_bool, validate_url

DEFAULT_BATCH_SIZE_LIMIT = 1000
DEFAULT_PERIOD = 30.0
DEFAULT_QUEUE_LIMIT = 100_000

_ENV_KEYS = (
    "webhook_url",
    "minimum_level",
    "batch_size_limit",
    "period",
    "proxy",
    "title",
    "omit_properties_section",
    "queue_limit",
)


@dataclass(frozen=True)
class SinkOptions:
    """Settings for one sink instance; read once, never mutated."""

    webhook_url: str
    minimum_level: LogLevel = LogLevel.VERBOSE
    batch_size_limit: int = DEFAULT_BATCH_SIZE_LIMIT
    period: float = DEFAULT_PERIOD  # seconds between flushes
    proxy: str | None = None
    title: str | None = None
    omit_properties_section: bool = False
    formatter: ValueFormatter = field(default_factory=ValueFormatter)
    queue_limit: int = DEFAULT_QUEUE_LIMIT

    def __post_init__(self) -> None:
        if not validate_url(self.webhook_url):
            raise ValueError(f"'webhook_url' must be an http(s) URL, got {self.webhook_url!r}")
        object.__setattr__(self, "minimum_level", LogLevel.parse(self.minimum_level))
        if self.batch_size_limit <= 0:
            raise ValueError("'batch_size_limit' must be greater than 0")
        if self.period <= 0:
            raise ValueError("'period' must be greater than 0")
        if self.queue_limit <= 0:
            raise ValueError("'queue_limit' must be greater than 0")
        if is_blank(self.proxy):
            object.__setattr__(self, "proxy", None)
        elif not validate_url(self.proxy.strip()):
            raise ValueError(f"'proxy' must be an http(s) URL, got {self.proxy!r}")
        else:
            object.__setattr__(self, "proxy", self.proxy.strip())


def _parse_period(value: Any, *, field_name: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"'{field_name}' must be a number of seconds or HH:MM:SS")
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        raise ValueError(f"'{field_name}' must be a number of seconds or HH:MM:SS")

    text = value.strip()
    parts = text.split(":")
    if len(parts) == 1:
        try:
            return float(text)
        except ValueError as exc:
            raise ValueError(f"'{field_name}' must be a number of seconds or HH:MM:SS") from exc
    if len(parts) not in {2, 3}:
        raise ValueError(f"'{field_name}' must be formatted as MM:SS or HH:MM:SS")

    try:
        numbers = [float(part) for part in parts]
    except ValueError as exc:  # noqa: PERF203
        raise ValueError(f"'{field_name}' components must be numbers") from exc
    if len(numbers) == 2:
        numbers.insert(0, 0.0)
    hours, minutes, seconds = numbers
    if not (0 <= minutes < 60 and 0 <= seconds < 60) or hours < 0:
        raise ValueError(f"'{field_name}' contains out-of-range values")
    return hours * 3600 + minutes * 60 + seconds


def _parse_int(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"'{field_name}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"'{field_name}' must be an integer") from exc


def _optional_string(value: Any, *, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'{field_name}' must be a string")
    cleaned = value.strip()
    return cleaned or None


def _resolve_webhook(data: Mapping[str, Any], prefix: str) -> str:
    webhook = _optional_string(data.get("webhook_url"), field_name=f"{prefix}webhook_url")
    if webhook:
        return webhook

    env_name = data.get("webhook_url_env")
    if env_name is None:
        raise ValueError(f"'{prefix}webhook_url' is required")
    env_key = str(env_name).strip()
    value = os.environ.get(env_key, "").strip() if env_key else ""
    if not value:
        raise ValueError(f"'{prefix}webhook_url_env' points at unset environment variable '{env_key}'")
    return value


def build_options(
    data: Mapping[str, Any],
    *,
    formatter: ValueFormatter | None = None,
    field_prefix: str = "",
) -> SinkOptions:
    """Build :class:`SinkOptions` from a plain mapping (YAML section, env, dict)."""
    if not isinstance(data, Mapping):
        raise ValueError(f"'{field_prefix.rstrip('.') or 'options'}' must be provided as a mapping")
    prefix = field_prefix

    minimum_raw = data.get("minimum_level")
    try:
        minimum_level = LogLevel.parse(minimum_raw) if minimum_raw is not None else LogLevel.VERBOSE
    except ValueError as exc:
        raise ValueError(f"'{prefix}minimum_level' is not a known level: {minimum_raw!r}") from exc

    kwargs: dict[str, Any] = {
        "webhook_url": _resolve_webhook(data, prefix),
        "minimum_level": minimum_level,
        "proxy": _optional_string(data.get("proxy"), field_name=f"{prefix}proxy"),
        "title": _optional_string(data.get("title"), field_name=f"{prefix}title"),
    }
    if data.get("batch_size_limit") is not None:
        kwargs["batch_size_limit"] = _parse_int(data["batch_size_limit"], field_name=f"{prefix}batch_size_limit")
    if data.get("period") is not None:
        kwargs["period"] = _parse_period(data["period"], field_name=f"{prefix}period")
    if data.get("queue_limit") is not None:
        kwargs["queue_limit"] = _parse_int(data["queue_limit"], field_name=f"{prefix}queue_limit")
    if data.get("omit_properties_section") is not None:
        kwargs["omit_properties_section"] = parse_bool(
            data["omit_properties_section"],
            field_name=f"{prefix}omit_properties_section",
        )
    if formatter is not None:
        kwargs["formatter"] = formatter

    return SinkOptions(**kwargs)


def load_options(path: Path, *, section: str = "teams", formatter: ValueFormatter | None = None) -> SinkOptions:
    """Load options from a YAML file, either under ``section`` or at the top level."""
    data = load_yaml_file(path)
    if section in data:
        section_data = data.get(section) or {}
        return build_options(section_data, formatter=formatter, field_prefix=f"{section}.")
    return build_options(data, formatter=formatter)


def options_from_env(
    prefix: str = "TEAMSINK_",
    *,
    environ: Mapping[str, str] | None = None,
    formatter: ValueFormatter | None = None,
) -> SinkOptions:
    """Load options from ``<PREFIX><KEY>`` environment variables (e.g. ``TEAMSINK_WEBHOOK_URL``)."""
    source = os.environ if environ is None else environ
    data: dict[str, Any] = {}
    for key in _ENV_KEYS:
        raw = source.get(f"{prefix}{key.upper()}")
        if raw is not None and raw.strip():
            data[key] = raw
    return build_options(data, formatter=formatter, field_prefix=prefix)
