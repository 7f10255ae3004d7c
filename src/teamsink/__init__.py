"""Batch log events into Microsoft Teams message cards.

The package is organized into small modules, leaf-first:

- **events**: ``LogEvent``, ``LogLevel`` and the stdlib ``LogRecord`` adapter
- **templates**: message-template rendering and the ``ValueFormatter``
- **cards**: pydantic models for the webhook payload and its serializer
- **aggregation**: per-batch deduplication with first/last occurrence tracking
- **renderer**: turns an aggregated event into a ``MessageCard``
- **delivery**: sync and async httpx clients posting cards to the webhook
- **sink**: ``TeamsSink.process_batch``, the entry point a scheduler calls
- **batching** / **handler**: periodic batching and ``logging`` integration

Typical use is ``attach_handler(load_options(path))``; ``TeamsSink`` can also
be driven directly by any scheduler.
"""

from .aggregation import AggregatedEvent, aggregate_events
from .batching import PeriodicBatcher
from .cards import MessageCard, MessageFact, MessageSection
from .config import SinkOptions, build_options, load_options, options_from_env
from .errors import DeliveryFailed, MalformedEventError, TeamsSinkError, TransportError
from .events import ExceptionInfo, LogEvent, LogLevel
from .handler import TeamsHandler, attach_handler
from .renderer import render_card
from .sink import AsyncTeamsSink, TeamsSink
from .templates import ValueFormatter
from .version import __version__

__all__ = [
    "__version__",
    # Events
    "ExceptionInfo",
    "LogEvent",
    "LogLevel",
    "ValueFormatter",
    # Pipeline
    "AggregatedEvent",
    "aggregate_events",
    "MessageCard",
    "MessageFact",
    "MessageSection",
    "render_card",
    "TeamsSink",
    "AsyncTeamsSink",
    # Configuration
    "SinkOptions",
    "build_options",
    "load_options",
    "options_from_env",
    # Harness
    "PeriodicBatcher",
    "TeamsHandler",
    "attach_handler",
    # Errors
    "TeamsSinkError",
    "TransportError",
    "DeliveryFailed",
    "MalformedEventError",
]
