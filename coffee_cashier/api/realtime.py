"""Realtime voice endpoints: ephemeral credentials and the browser voice bridge."""
import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from coffee_cashier.core.dependencies import (
    get_catalog_config_provider,
    get_realtime_connector,
    get_token_service,
)
from coffee_cashier.core.errors import TokenMintingError
from coffee_cashier.services.catalog.base import CatalogConfigProvider
from coffee_cashier.services.ordering.engine import reprice_cart
from coffee_cashier.services.ordering.models import CartLine, FinalizeSignal, cart_to_dicts
from coffee_cashier.services.realtime.audio import BrowserMicrophone
from coffee_cashier.services.realtime.session import (
    ConnectionState,
    RealtimeSession,
    SessionObserver,
)
from coffee_cashier.services.realtime.token import RealtimeTokenService
from coffee_cashier.services.realtime.transport import RealtimeConnector

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/api/realtime/token")
async def create_realtime_token(
    request: Request,
    token_service: RealtimeTokenService = Depends(get_token_service),
):
    """Mint a short-lived key for one realtime voice session."""
    logger.info(
        f"[REALTIME TOKEN] Request received - Client: {request.client.host if request.client else 'unknown'}"
    )
    try:
        key = await token_service.mint()
    except TokenMintingError as e:
        return JSONResponse(status_code=500, content={"error": str(e)})
    return {"key": key}


class BrowserSessionObserver(SessionObserver):
    """Pushes session notifications to the customer's browser as JSON messages."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    async def _push(self, message: Dict[str, Any]) -> None:
        try:
            await self.websocket.send_json(message)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug(f"[VOICE WS] Dropping {message.get('type')} message: {e}")

    async def on_state_change(self, session: RealtimeSession) -> None:
        await self._push(
            {
                "type": "state",
                "state": str(session.state),
                "error": session.error,
                "mic_denied": session.mic_denied,
            }
        )

    async def on_activity(self, session: RealtimeSession) -> None:
        await self._push(
            {
                "type": "activity",
                "is_speaking": session.is_speaking,
                "is_user_speaking": session.is_user_speaking,
            }
        )

    async def on_cart_update(self, cart: List[CartLine]) -> None:
        await self._push({"type": "cart", "cart": cart_to_dicts(cart)})

    async def on_finalize(self, signal: FinalizeSignal, cart: List[CartLine]) -> None:
        await self._push(
            {
                "type": "finalize",
                "customer_name": signal.customer_name,
                "cart": cart_to_dicts(cart),
            }
        )

    async def on_audio_delta(self, delta: str) -> None:
        await self._push({"type": "audio", "delta": delta})


def _parse_control(text: Optional[str]) -> Dict[str, Any]:
    if not text:
        return {}
    try:
        message = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("[VOICE WS] Ignoring malformed control message")
        return {}
    return message if isinstance(message, dict) else {}


@router.websocket("/ws/voice")
async def voice_session(
    websocket: WebSocket,
    token_service: RealtimeTokenService = Depends(get_token_service),
    connector: RealtimeConnector = Depends(get_realtime_connector),
    config_provider: CatalogConfigProvider = Depends(get_catalog_config_provider),
):
    """
    Bridge one browser to a realtime voice session.

    Binary frames are PCM16 microphone audio. Text frames are JSON control
    messages: connect (optionally carrying the current cart), disconnect,
    microphone.granted and microphone.denied.
    """
    await websocket.accept()
    logger.info("[VOICE WS] Browser connected")

    async def request_permission() -> None:
        await websocket.send_json({"type": "microphone.request"})

    microphone = BrowserMicrophone(request_permission=request_permission)
    session = RealtimeSession(
        token_provider=token_service.mint,
        connector=connector,
        microphone=microphone,
        observer=BrowserSessionObserver(websocket),
        config_provider=config_provider,
    )
    connect_task: Optional[asyncio.Task] = None

    async with session:
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break

                if message.get("bytes"):
                    microphone.feed(message["bytes"])
                    continue

                control = _parse_control(message.get("text"))
                kind = control.get("type")

                if kind == "connect":
                    if session.state in (ConnectionState.IDLE, ConnectionState.ERROR):
                        if isinstance(control.get("cart"), list):
                            session.cart = reprice_cart(control["cart"])
                    # connect() waits on the permission answer this loop delivers
                    connect_task = asyncio.create_task(session.connect())
                elif kind == "disconnect":
                    await session.disconnect()
                elif kind == "microphone.granted":
                    microphone.resolve_permission(True)
                elif kind == "microphone.denied":
                    microphone.resolve_permission(False)
                elif kind:
                    logger.debug(f"[VOICE WS] Unknown control message: {kind}")
        except WebSocketDisconnect:
            logger.info("[VOICE WS] Browser went away")
        finally:
            if connect_task is not None and not connect_task.done():
                connect_task.cancel()
                await asyncio.gather(connect_task, return_exceptions=True)

    logger.info("[VOICE WS] Session closed")
