"""Outbound message transport.

The sync engine only needs two operations: send a new message and edit an
existing one. BaseTransport fixes that contract; TelegramTransport implements
it over the Bot API.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import requests

if TYPE_CHECKING:
    from fcpbot_core.render import RenderedMessage

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"
DEFAULT_TIMEOUT = 30

# Telegram refuses edits that would leave the message unchanged.
_NOT_MODIFIED = "message is not modified"


class TransportError(Exception):
    """Raised when a send or edit fails for one channel."""


class BaseTransport(ABC):
    @abstractmethod
    def send(self, channel: str, message: RenderedMessage) -> int:
        """Post a new message to channel and return its message id."""

    @abstractmethod
    def edit(self, channel: str, message_id: int, message: RenderedMessage) -> None:
        """Replace the text and entities of an existing message."""


class TelegramTransport(BaseTransport):
    """Bot API transport. Channels are chat ids or public "@username"s."""

    def __init__(
        self,
        token: str,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        api_base: str = TELEGRAM_API_BASE,
    ):
        self._token = token
        self._session = session or requests.Session()
        self._timeout = timeout
        self._api_base = api_base.rstrip("/")

    def send(self, channel: str, message: RenderedMessage) -> int:
        result = self._call(
            "sendMessage",
            {"chat_id": channel, "text": message.text, "entities": message.entities()},
        )
        try:
            return int(result["message_id"])
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"sendMessage to {channel} returned no message_id") from e

    def edit(self, channel: str, message_id: int, message: RenderedMessage) -> None:
        payload = {
            "chat_id": channel,
            "message_id": message_id,
            "text": message.text,
            "entities": message.entities(),
        }
        try:
            self._call("editMessageText", payload)
        except TransportError as e:
            if _NOT_MODIFIED in str(e):
                logger.debug("Message %s in %s already up to date", message_id, channel)
                return
            raise

    def _call(self, method: str, payload: dict):
        url = f"{self._api_base}/bot{self._token}/{method}"
        try:
            response = self._session.post(url, json=payload, timeout=self._timeout)
        except requests.exceptions.RequestException as e:
            # The URL carries the token; never let it reach the logs.
            raise TransportError(f"{method} failed: {type(e).__name__}") from e

        try:
            body = response.json()
        except ValueError:
            raise TransportError(f"{method} returned HTTP {response.status_code} with a non-JSON body")

        if not isinstance(body, dict):
            raise TransportError(f"{method} returned HTTP {response.status_code} with an unexpected body")

        if not body.get("ok"):
            description = body.get("description") or f"HTTP {response.status_code}"
            raise TransportError(f"{method} failed: {description}")
        return body.get("result")
