"""Realtime event channel over the OpenAI websocket connection."""
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, Optional

from openai import AsyncOpenAI, OpenAIError
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK, WebSocketException

from coffee_cashier.core.config import settings
from coffee_cashier.core.errors import ChannelClosedError, RealtimeConnectionError

logger = logging.getLogger(__name__)


class EventChannel(ABC):
    """Bidirectional JSON event channel for one realtime session."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether events can currently be sent."""
        pass

    @abstractmethod
    async def send(self, event: Dict[str, Any]) -> None:
        """Send one client event."""
        pass

    @abstractmethod
    def events(self) -> AsyncIterator[Dict[str, Any]]:
        """
        Iterate inbound server events in arrival order.

        Ends normally on a clean close; raises ChannelClosedError when the
        connection drops.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the channel. Safe to call more than once."""
        pass


class RealtimeConnector(ABC):
    """Opens realtime sessions."""

    @abstractmethod
    async def open(self, token: str) -> EventChannel:
        """
        Negotiate a session authenticated with a short-lived token.

        Raises:
            RealtimeConnectionError: if negotiation fails
        """
        pass


class OpenAIRealtimeChannel(EventChannel):
    """EventChannel backed by the OpenAI SDK realtime connection."""

    def __init__(self, connection: Any):
        self._connection = connection
        self._closed = False

    @property
    def is_open(self) -> bool:
        return not self._closed

    async def send(self, event: Dict[str, Any]) -> None:
        if self._closed:
            logger.debug(f"[REALTIME] Dropping {event.get('type')} on closed channel")
            return
        try:
            await self._connection.send(event)
        except WebSocketException as e:
            self._closed = True
            raise ChannelClosedError(f"Voice connection lost: {e}") from e

    async def events(self) -> AsyncIterator[Dict[str, Any]]:
        while not self._closed:
            try:
                raw = await self._connection.recv_bytes()
            except ConnectionClosedOK:
                self._closed = True
                return
            except ConnectionClosedError as e:
                self._closed = True
                raise ChannelClosedError(f"Voice connection lost: {e}") from e

            try:
                event = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.error(f"[REALTIME] Failed to parse event: {e}")
                continue
            if isinstance(event, dict):
                yield event

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._connection.close()
        except WebSocketException as e:
            logger.debug(f"[REALTIME] Error while closing channel: {e}")


class OpenAIRealtimeConnector(RealtimeConnector):
    """Connects to the OpenAI Realtime API over websockets."""

    def __init__(self, model: Optional[str] = None, base_url: Optional[str] = None):
        self.model = model or settings.openai_realtime_model
        self.base_url = base_url or settings.openai_base_url

    async def open(self, token: str) -> EventChannel:
        client = AsyncOpenAI(api_key=token, base_url=self.base_url)
        try:
            connection = await client.realtime.connect(model=self.model).enter()
        except (OpenAIError, WebSocketException, OSError) as e:
            logger.error(f"[REALTIME] Negotiation failed: {type(e).__name__}: {e}")
            raise RealtimeConnectionError("Failed to establish voice connection") from e
        logger.info(f"[REALTIME] Connected to {self.model}")
        return OpenAIRealtimeChannel(connection)
