"""Customer microphone sources for realtime sessions."""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, Awaitable, Callable, Optional

from coffee_cashier.core.errors import MicrophoneDeniedError, MicrophoneUnavailableError

logger = logging.getLogger(__name__)


class AudioSource(ABC):
    """A microphone track owned by one connect/disconnect cycle."""

    @abstractmethod
    async def acquire(self) -> None:
        """
        Ask for microphone access.

        Raises:
            MicrophoneDeniedError: if the customer refused access
            MicrophoneUnavailableError: for any other failure
        """
        pass

    @abstractmethod
    def chunks(self) -> AsyncIterator[bytes]:
        """Yield PCM16 audio chunks until released."""
        pass

    @abstractmethod
    async def release(self) -> None:
        """Stop the track. Safe to call more than once."""
        pass


class BrowserMicrophone(AudioSource):
    """
    Microphone living in the customer's browser.

    Permission is requested over the browser websocket; the endpoint reading
    that websocket resolves the request and feeds audio frames in.
    """

    def __init__(
        self,
        request_permission: Callable[[], Awaitable[None]],
        timeout: float = 30.0,
    ):
        self._request_permission = request_permission
        self._timeout = timeout
        self._permission: Optional[asyncio.Future] = None
        self._queue: asyncio.Queue = asyncio.Queue()
        self.active = False

    async def acquire(self) -> None:
        loop = asyncio.get_running_loop()
        self._permission = loop.create_future()
        await self._request_permission()
        try:
            granted = await asyncio.wait_for(self._permission, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise MicrophoneUnavailableError() from e
        finally:
            self._permission = None
        if not granted:
            raise MicrophoneDeniedError()
        self._queue = asyncio.Queue()
        self.active = True
        logger.info("[MICROPHONE] Browser microphone granted")

    def resolve_permission(self, granted: bool) -> None:
        """Record the browser's answer to a pending permission request."""
        if self._permission is not None and not self._permission.done():
            self._permission.set_result(granted)

    def feed(self, chunk: bytes) -> None:
        """Queue an audio frame received from the browser."""
        if self.active and chunk:
            self._queue.put_nowait(chunk)

    async def chunks(self) -> AsyncIterator[bytes]:
        while self.active:
            chunk = await self._queue.get()
            if chunk is None:
                return
            yield chunk

    async def release(self) -> None:
        if self._permission is not None and not self._permission.done():
            self._permission.set_exception(
                MicrophoneUnavailableError("Microphone request was cancelled.")
            )
        if self.active:
            self.active = False
            self._queue.put_nowait(None)
            logger.info("[MICROPHONE] Browser microphone released")
