"""Message-template rendering and property value formatting.

Templates use named holes in braces: ``"Disk {Drive} is at {Usage:0.0%}"``.
A hole may carry a ``@``/``$`` capture prefix, an alignment
(``{Name,10}`` / ``{Name,-10}``) and a format spec after ``:``. ``{{`` and
``}}`` render as literal braces. Holes with no matching property are left
in the output unchanged.
"""

from __future__ import annotations

import datetime as dt
import enum
import re
from collections.abc import Mapping, Set
from dataclasses import dataclass
from typing import Any, Optional

_TOKEN_PATTERN = re.compile(
    r"\{\{|\}\}|\{(?P<capture>[@$]?)(?P<name>[A-Za-z0-9_]+)(?:,(?P<align>-?\d+))?(?::(?P<format>[^{}]+))?\}"
)


@dataclass(frozen=True)
class ValueFormatter:
    """Turns property values into display text.

    This plays the part of the configurable format provider: subclass it (or
    tweak the flags) to change how values show up in card text and facts.
    Strings are quoted unless ``quote_strings`` is off or the hole uses the
    ``l`` (literal) format.
    """

    quote_strings: bool = True
    null_text: str = "null"

    def format(self, value: Any, format_spec: Optional[str] = None) -> str:
        if value is None:
            return self.null_text
        if isinstance(value, str):
            if format_spec == "l" or not self.quote_strings:
                return value
            return '"' + value.replace('"', '\\"') + '"'
        if isinstance(value, bool):
            return "True" if value else "False"
        if isinstance(value, enum.Enum):
            return value.name
        if isinstance(value, (dt.datetime, dt.date, dt.time)):
            if format_spec:
                return format(value, format_spec)
            return value.isoformat()
        if isinstance(value, Mapping):
            items = ", ".join(f"{self.format(key)}: {self.format(item)}" for key, item in value.items())
            return "{" + items + "}"
        if isinstance(value, (list, tuple, Set)):
            return "[" + ", ".join(self.format(item) for item in value) + "]"
        if format_spec:
            try:
                return format(value, format_spec)
            except (TypeError, ValueError):
                return str(value)
        return str(value)


DEFAULT_FORMATTER = ValueFormatter()


def _align(text: str, alignment: Optional[int]) -> str:
    if alignment is None:
        return text
    if alignment < 0:
        return text.ljust(-alignment)
    return text.rjust(alignment)


def render_template(
    template: str,
    properties: Mapping[str, Any],
    formatter: Optional[ValueFormatter] = None,
) -> str:
    formatter = formatter or DEFAULT_FORMATTER

    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if token == "{{":
            return "{"
        if token == "}}":
            return "}"
        name = match.group("name")
        if name not in properties:
            return token
        align = match.group("align")
        text = formatter.format(properties[name], match.group("format"))
        return _align(text, int(align) if align is not None else None)

    return _TOKEN_PATTERN.sub(_replace, template)
