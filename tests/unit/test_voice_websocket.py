"""Unit tests for the /ws/voice browser bridge."""
import asyncio

from coffee_cashier.core.dependencies import get_realtime_connector
from coffee_cashier.core.errors import TokenMintingError
from coffee_cashier.main import app
from coffee_cashier.services.realtime.transport import EventChannel, RealtimeConnector


class IdleChannel(EventChannel):
    """Channel that stays open and never produces server events."""

    def __init__(self):
        self.sent = []
        self.closed = False
        self._done = asyncio.Event()

    @property
    def is_open(self):
        return not self.closed

    async def send(self, event):
        self.sent.append(event)

    async def events(self):
        await self._done.wait()
        return
        yield

    async def close(self):
        self.closed = True
        self._done.set()


class IdleConnector(RealtimeConnector):
    def __init__(self):
        self.channels = []

    async def open(self, token):
        channel = IdleChannel()
        self.channels.append(channel)
        return channel


def receive_state(ws):
    """Skip non-state messages until the next state change."""
    while True:
        message = ws.receive_json()
        if message["type"] == "state":
            return message


class TestVoiceWebSocket:
    """Test the voice session bridge."""

    def test_token_failure_reports_error(self, test_client, mock_token_service):
        mock_token_service.mint.side_effect = TokenMintingError("Failed to create session token: 500")

        with test_client.websocket_connect("/ws/voice") as ws:
            ws.send_json({"type": "connect"})

            assert receive_state(ws)["state"] == "connecting"
            error = receive_state(ws)
            assert error["state"] == "error"
            assert error["error"] == "Failed to create session token: 500"
            assert error["mic_denied"] is False

    def test_microphone_denied(self, test_client):
        connector = IdleConnector()
        app.dependency_overrides[get_realtime_connector] = lambda: connector

        with test_client.websocket_connect("/ws/voice") as ws:
            ws.send_json({"type": "connect"})
            assert receive_state(ws)["state"] == "connecting"

            assert ws.receive_json() == {"type": "microphone.request"}
            ws.send_json({"type": "microphone.denied"})

            error = receive_state(ws)
            assert error["state"] == "error"
            assert error["mic_denied"] is True

        assert connector.channels[0].closed

    def test_connect_and_disconnect(self, test_client):
        connector = IdleConnector()
        app.dependency_overrides[get_realtime_connector] = lambda: connector

        with test_client.websocket_connect("/ws/voice") as ws:
            ws.send_json({"type": "connect", "cart": [{"name": "Latte", "price": 0.01}]})
            assert receive_state(ws)["state"] == "connecting"

            assert ws.receive_json() == {"type": "microphone.request"}
            ws.send_json({"type": "microphone.granted"})
            assert receive_state(ws)["state"] == "connected"

            ws.send_json({"type": "disconnect"})
            assert receive_state(ws)["state"] == "idle"

        channel = connector.channels[0]
        assert channel.closed
        assert channel.sent[0]["type"] == "session.update"

    def test_malformed_control_messages_ignored(self, test_client, mock_token_service):
        mock_token_service.mint.side_effect = TokenMintingError("nope")

        with test_client.websocket_connect("/ws/voice") as ws:
            ws.send_text("{not json")
            ws.send_json({"type": "dance"})
            ws.send_json({"type": "connect"})

            assert receive_state(ws)["state"] == "connecting"
            assert receive_state(ws)["state"] == "error"
