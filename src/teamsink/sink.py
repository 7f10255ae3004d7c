"""Batch entry points that tie aggregation, rendering and delivery together."""

from __future__ import annotations

import logging
import types
from collections.abc import Iterable

from .aggregation import aggregate_events
from .config import SinkOptions
from .delivery import AsyncDeliveryClient, DeliveryClient
from .errors import TeamsSinkError
from .events import LogEvent
from .renderer import render_card

LOGGER = logging.getLogger(__name__)


class TeamsSink:
    """Delivers batches of log events as Teams message cards.

    ``process_batch`` is meant to be driven by an external scheduler (see
    :class:`teamsink.batching.PeriodicBatcher`). Within one call, events are
    aggregated first, then each group is rendered and posted in order. The
    first delivery failure stops the batch and is raised to the caller.
    """

    def __init__(self, options: SinkOptions, *, client: DeliveryClient | None = None) -> None:
        self.options = options
        self._client = client if client is not None else DeliveryClient(options.webhook_url, proxy=options.proxy)

    def process_batch(self, events: Iterable[LogEvent]) -> int:
        """Send one card per distinct event; returns the number of cards delivered."""
        groups = aggregate_events(events, self.options.minimum_level, self.options.formatter)
        sent = 0
        for group in groups:
            card = render_card(group, self.options)
            try:
                self._client.send(card)
            except TeamsSinkError as exc:
                LOGGER.warning(
                    "Delivery to Microsoft Teams failed after %d of %d card(s): %s",
                    sent,
                    len(groups),
                    exc,
                )
                raise
            sent += 1

        LOGGER.debug("Delivered %d card(s) to Microsoft Teams", sent)
        return sent

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> TeamsSink:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        self.close()


class AsyncTeamsSink:
    """``asyncio`` variant of :class:`TeamsSink`; each POST is awaited before the next card is rendered."""

    def __init__(self, options: SinkOptions, *, client: AsyncDeliveryClient | None = None) -> None:
        self.options = options
        self._client = client if client is not None else AsyncDeliveryClient(options.webhook_url, proxy=options.proxy)

    async def process_batch(self, events: Iterable[LogEvent]) -> int:
        groups = aggregate_events(events, self.options.minimum_level, self.options.formatter)
        sent = 0
        for group in groups:
            card = render_card(group, self.options)
            try:
                await self._client.send(card)
            except TeamsSinkError as exc:
                LOGGER.warning(
                    "Delivery to Microsoft Teams failed after %d of %d card(s): %s",
                    sent,
                    len(groups),
                    exc,
                )
                raise
            sent += 1

        LOGGER.debug("Delivered %d card(s) to Microsoft Teams", sent)
        return sent

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AsyncTeamsSink:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        await self.aclose()
