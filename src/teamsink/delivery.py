"""HTTP delivery of rendered cards to the Teams webhook."""

from __future__ import annotations

import logging
import types

import httpx

from .cards import DEFAULT_SERIALIZATION, CardSerialization, MessageCard, serialize_card
from .errors import DeliveryFailed, TransportError
from .utils import excerpt_response, is_blank

LOGGER = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


def _client_kwargs(proxy: str | None) -> dict[str, object]:
    if is_blank(proxy):
        return {}
    return {"proxy": proxy.strip()}


def _check_response(response: httpx.Response) -> httpx.Response:
    if not response.is_success:
        LOGGER.debug("Teams webhook responded with %s: %s", response.status_code, excerpt_response(response))
        raise DeliveryFailed(response.status_code, excerpt_response(response))
    return response


class DeliveryClient:
    """Posts message cards to a single webhook.

    The underlying ``httpx.Client`` is opened once and reused for every card
    until :meth:`close`. When a proxy is configured all requests go through
    it; credentials in the proxy URL authenticate against the proxy.
    Redirects from the webhook are followed.
    """

    def __init__(
        self,
        webhook_url: str,
        *,
        proxy: str | None = None,
        serialization: CardSerialization = DEFAULT_SERIALIZATION,
        client: httpx.Client | None = None,
    ) -> None:
        self.webhook_url = webhook_url
        self.proxy = None if is_blank(proxy) else proxy.strip()
        self._serialization = serialization
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(**_client_kwargs(self.proxy))

    def send(self, card: MessageCard) -> httpx.Response:
        """POST one card.

        Raises:
            TransportError: If the request could not be completed.
            DeliveryFailed: If the webhook answered with a non-2xx status.
        """
        body = serialize_card(card, self._serialization)
        try:
            response = self._client.post(
                self.webhook_url,
                content=body,
                headers={"Content-Type": JSON_CONTENT_TYPE},
                follow_redirects=True,
            )
        except httpx.RequestError as exc:
            raise TransportError(f"Failed to post card to Microsoft Teams: {exc}") from exc
        return _check_response(response)

    def close(self) -> None:
        """Close the HTTP client."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> DeliveryClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        self.close()


class AsyncDeliveryClient:
    """``asyncio`` counterpart of :class:`DeliveryClient`."""

    def __init__(
        self,
        webhook_url: str,
        *,
        proxy: str | None = None,
        serialization: CardSerialization = DEFAULT_SERIALIZATION,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.webhook_url = webhook_url
        self.proxy = None if is_blank(proxy) else proxy.strip()
        self._serialization = serialization
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(**_client_kwargs(self.proxy))

    async def send(self, card: MessageCard) -> httpx.Response:
        body = serialize_card(card, self._serialization)
        try:
            response = await self._client.post(
                self.webhook_url,
                content=body,
                headers={"Content-Type": JSON_CONTENT_TYPE},
                follow_redirects=True,
            )
        except httpx.RequestError as exc:
            raise TransportError(f"Failed to post card to Microsoft Teams: {exc}") from exc
        return _check_response(response)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncDeliveryClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        await self.aclose()
