"""Realtime voice session state machine.

    idle --connect()--> connecting --(channel open)--> connected
    connecting | connected --(failure)--> error --connect()--> connecting
    any --disconnect()--> idle

Inbound events are handled one at a time on the reader task, so the cart
slot has a single writer and needs no lock. The microphone and the event
channel belong to one connect/disconnect cycle and are released on every
exit path.
"""
import asyncio
import base64
import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from coffee_cashier.core.config import settings
from coffee_cashier.core.errors import (
    ChannelClosedError,
    MicrophoneDeniedError,
    MicrophoneUnavailableError,
    RealtimeConnectionError,
    TokenMintingError,
)
from coffee_cashier.services.agent.prompt import get_instructions
from coffee_cashier.services.agent.tools import build_order_tools
from coffee_cashier.services.catalog.base import Catalog, CatalogConfigProvider
from coffee_cashier.services.catalog.in_memory_catalog import (
    InMemoryCatalogConfigProvider,
    get_catalog,
)
from coffee_cashier.services.ordering.engine import apply_tool_call
from coffee_cashier.services.ordering.models import (
    CartLine,
    FinalizeSignal,
    ToolCall,
    cart_to_dicts,
)
from coffee_cashier.services.ordering.parser import parse_tool_arguments
from coffee_cashier.services.realtime.audio import AudioSource
from coffee_cashier.services.realtime.transport import EventChannel, RealtimeConnector

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str]]

AUDIO_DELTA_EVENTS = ("response.audio.delta", "response.output_audio.delta")


class ConnectionState(str, Enum):
    """Connection lifecycle of a realtime session."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


class SessionObserver:
    """Receives session notifications. Override what you need."""

    async def on_state_change(self, session: "RealtimeSession") -> None:
        pass

    async def on_activity(self, session: "RealtimeSession") -> None:
        """Speaking flags changed."""
        pass

    async def on_cart_update(self, cart: List[CartLine]) -> None:
        pass

    async def on_finalize(self, signal: FinalizeSignal, cart: List[CartLine]) -> None:
        pass

    async def on_audio_delta(self, delta: str) -> None:
        """Base64 audio from the agent."""
        pass


class RealtimeSession:
    """One customer's voice session with the realtime agent."""

    def __init__(
        self,
        token_provider: TokenProvider,
        connector: RealtimeConnector,
        microphone: AudioSource,
        observer: Optional[SessionObserver] = None,
        config_provider: Optional[CatalogConfigProvider] = None,
        catalog: Optional[Catalog] = None,
        cart: Optional[Sequence[CartLine]] = None,
    ):
        self.token_provider = token_provider
        self.connector = connector
        self.microphone = microphone
        self.observer = observer or SessionObserver()
        self.config_provider = config_provider or InMemoryCatalogConfigProvider()
        self.catalog = catalog or get_catalog()

        self.state = ConnectionState.IDLE
        self.error: Optional[str] = None
        self.mic_denied = False
        self.is_speaking = False
        self.is_user_speaking = False
        self.cart: List[CartLine] = list(cart or [])

        self._channel: Optional[EventChannel] = None
        self._reader: Optional[asyncio.Task] = None
        self._uplink: Optional[asyncio.Task] = None
        self._greeted = False
        self._closing = False

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    async def __aenter__(self) -> "RealtimeSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open a session: mint a token, negotiate, take the microphone."""
        if self.state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            logger.warning(f"[REALTIME] connect() ignored while {self.state}")
            return

        self.error = None
        self.mic_denied = False
        self._greeted = False
        self._closing = False
        await self._set_state(ConnectionState.CONNECTING)

        try:
            token = await self.token_provider()
            self._channel = await self.connector.open(token)
            await self.microphone.acquire()
        except MicrophoneDeniedError as e:
            self.mic_denied = True
            await self._fail(str(e))
            return
        except (TokenMintingError, RealtimeConnectionError, MicrophoneUnavailableError) as e:
            await self._fail(str(e))
            return
        except Exception as e:
            logger.error(f"[REALTIME] Connection error: {type(e).__name__}: {e}", exc_info=True)
            await self._fail("Failed to connect")
            return

        if self.state is not ConnectionState.CONNECTING:
            # disconnect() ran while we were negotiating
            await self._release_resources()
            return

        self._reader = asyncio.create_task(self._read_events())
        self._uplink = asyncio.create_task(self._stream_microphone())
        await self._handle_channel_open()

    async def disconnect(self) -> None:
        """Release everything and return to idle. Safe from any state."""
        await self._release_resources()
        self.error = None
        self.mic_denied = False
        self._greeted = False
        await self._set_state(ConnectionState.IDLE)

    async def _handle_channel_open(self) -> None:
        await self._set_state(ConnectionState.CONNECTED)
        await self._send(await self._session_update())

    async def _session_update(self) -> Dict[str, Any]:
        instructions = await get_instructions(self.config_provider, self.catalog, voice=True)
        return {
            "type": "session.update",
            "session": {
                "type": "realtime",
                "model": settings.openai_realtime_model,
                "instructions": instructions,
                "output_modalities": ["audio"],
                "audio": {
                    "input": {
                        "format": {"type": "audio/pcm", "rate": 24000},
                        "turn_detection": {"type": settings.realtime_turn_detection},
                    },
                    "output": {
                        "format": {"type": "audio/pcm", "rate": 24000},
                        "voice": settings.openai_realtime_voice,
                    },
                },
                "tools": build_order_tools(self.catalog),
            },
        }

    async def _fail(self, message: str) -> None:
        await self._release_resources()
        if self.state not in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            return
        logger.error(f"[REALTIME] Session error: {message}")
        self.error = message
        await self._set_state(ConnectionState.ERROR)

    async def _release_resources(self) -> None:
        self._closing = True
        current = asyncio.current_task()
        tasks = [
            task
            for task in (self._uplink, self._reader)
            if task is not None and task is not current and not task.done()
        ]
        self._uplink = self._reader = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        await self.microphone.release()
        if self._channel is not None:
            channel, self._channel = self._channel, None
            await channel.close()

        self.is_speaking = False
        self.is_user_speaking = False

    async def _set_state(self, state: ConnectionState) -> None:
        if state is self.state:
            return
        logger.info(f"[REALTIME] State {self.state} -> {state}")
        self.state = state
        await self.observer.on_state_change(self)

    # ------------------------------------------------------------------
    # Channel I/O
    # ------------------------------------------------------------------

    async def _send(self, event: Dict[str, Any]) -> None:
        if self._channel is None or not self._channel.is_open:
            return
        try:
            await self._channel.send(event)
        except ChannelClosedError as e:
            logger.warning(f"[REALTIME] Send of {event.get('type')} failed: {e}")

    async def _read_events(self) -> None:
        channel = self._channel
        try:
            async for event in channel.events():
                try:
                    await self.handle_event(event)
                except Exception as e:
                    logger.error(
                        f"[REALTIME] Failed to handle {event.get('type')}: {type(e).__name__}: {e}",
                        exc_info=True,
                    )
        except ChannelClosedError as e:
            if not self._closing:
                await self._fail(str(e))
            return
        if not self._closing:
            await self._fail("Voice connection closed unexpectedly")

    async def _stream_microphone(self) -> None:
        async for chunk in self.microphone.chunks():
            await self._send(
                {
                    "type": "input_audio_buffer.append",
                    "audio": base64.b64encode(chunk).decode("ascii"),
                }
            )

    # ------------------------------------------------------------------
    # Inbound events
    # ------------------------------------------------------------------

    async def handle_event(self, event: Dict[str, Any]) -> None:
        """Dispatch one server event."""
        event_type = event.get("type") or ""

        if event_type == "session.created":
            logger.info("[REALTIME] Session created")

        elif event_type == "session.updated":
            if not self._greeted:
                logger.info("[REALTIME] Session configured, triggering greeting")
                self._greeted = True
                await self._send({"type": "response.create"})

        elif event_type == "input_audio_buffer.speech_started":
            self.is_user_speaking = True
            await self.observer.on_activity(self)

        elif event_type == "input_audio_buffer.speech_stopped":
            self.is_user_speaking = False
            await self.observer.on_activity(self)

        elif event_type in AUDIO_DELTA_EVENTS:
            if not self.is_speaking:
                self.is_speaking = True
                await self.observer.on_activity(self)
            await self.observer.on_audio_delta(event.get("delta") or "")

        elif event_type == "response.done":
            self.is_speaking = False
            await self.observer.on_activity(self)

        elif event_type == "response.function_call_arguments.done":
            await self._handle_tool_call(event)

        elif event_type == "error":
            error = event.get("error")
            message = error.get("message") if isinstance(error, dict) else None
            await self._fail(message or "An error occurred")

        else:
            logger.debug(f"[REALTIME] {event_type}")

    async def _handle_tool_call(self, event: Dict[str, Any]) -> None:
        call = ToolCall(
            name=event.get("name") or "",
            arguments=parse_tool_arguments(event.get("arguments")),
            call_id=event.get("call_id"),
        )
        logger.info(f"[REALTIME] Tool call {call.name}: {call.arguments}")

        result = apply_tool_call(self.cart, call.name, call.arguments, self.catalog)
        self.cart = result.cart
        await self.observer.on_cart_update(self.cart)
        if result.finalize is not None:
            await self.observer.on_finalize(result.finalize, self.cart)

        await self._send(
            {
                "type": "conversation.item.create",
                "item": {
                    "type": "function_call_output",
                    "call_id": call.call_id,
                    "output": json.dumps({"success": True, "cart": cart_to_dicts(self.cart)}),
                },
            }
        )
        await self._send({"type": "response.create"})
