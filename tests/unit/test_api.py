"""Unit tests for HTTP endpoints."""
import pytest
from openai import OpenAIError

from coffee_cashier.core.config import settings
from coffee_cashier.core.errors import TokenMintingError


LATTE = {"name": "Latte", "size": "12oz", "milk": "Whole Milk", "temperature": "Hot", "quantity": 1}


class TestHealthAPI:
    """Test health endpoint."""

    def test_health(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestMenuAPI:
    """Test menu endpoint."""

    def test_get_menu(self, test_client):
        response = test_client.get("/api/menu")

        assert response.status_code == 200
        data = response.json()
        assert len(data["items"]) == 13
        assert data["categories"] == ["coffee", "tea", "pastry"]
        latte = next(item for item in data["items"] if item["name"] == "Latte")
        assert latte["small_price"] == 4.0
        assert latte["large_price"] == 5.0
        assert latte["accepts_milk"] is True
        assert data["milk_surcharges"]["oat milk"] == 0.5


class TestChatAPI:
    """Test POST /api/chat."""

    def test_text_reply(self, test_client):
        response = test_client.post(
            "/api/chat", json={"messages": [{"role": "user", "content": "hi"}], "cart": []}
        )

        assert response.status_code == 200
        assert response.json() == {"text": "Hi! What can I get you?", "cart": []}

    def test_client_cart_is_repriced(self, test_client):
        response = test_client.post(
            "/api/chat",
            json={"messages": [], "cart": [{**LATTE, "price": 0.01}]},
        )

        assert response.status_code == 200
        assert response.json()["cart"][0]["price"] == 4.0

    def test_tool_calls_and_finalize(self, test_client, mock_openai, openai_items):
        mock_openai.responses.create.side_effect = [
            openai_items.response(
                openai_items.function_call("add_item", '{"name": "Mocha", "size": "Large", "milk": "Oat Milk"}', "c1"),
                openai_items.function_call("finalize_order", '{"customer_name": "Alex"}', "c2"),
            ),
            openai_items.response(openai_items.message("Thanks Alex, that's $6.00.")),
        ]

        response = test_client.post(
            "/api/chat", json={"messages": [{"role": "user", "content": "large oat mocha, Alex"}], "cart": []}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["text"] == "Thanks Alex, that's $6.00."
        assert data["cart"][0]["name"] == "Mocha"
        assert data["cart"][0]["price"] == 6.0
        assert data["finalize"] == {"customer_name": "Alex"}

    def test_missing_api_key(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "openai_api_key", "")

        response = test_client.post("/api/chat", json={"messages": [], "cart": []})

        assert response.status_code == 500
        assert response.json() == {"error": "OPENAI_API_KEY is not configured"}

    def test_agent_failure_is_generic(self, test_client, mock_openai):
        mock_openai.responses.create.side_effect = OpenAIError("upstream exploded")

        response = test_client.post("/api/chat", json={"messages": [], "cart": [LATTE]})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to process chat request"}


class TestRealtimeTokenAPI:
    """Test POST /api/realtime/token."""

    def test_mints_key(self, test_client):
        response = test_client.post("/api/realtime/token")

        assert response.status_code == 200
        assert response.json() == {"key": "ek_test"}

    def test_upstream_failure(self, test_client, mock_token_service):
        mock_token_service.mint.side_effect = TokenMintingError(
            "Failed to create session token: 401", status_code=401
        )

        response = test_client.post("/api/realtime/token")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to create session token: 401"}


class TestOrdersAPI:
    """Test order endpoints."""

    def _create(self, test_client, **overrides):
        body = {"customer_name": "Alex", "items": [LATTE], **overrides}
        return test_client.post("/api/orders", json=body)

    def test_create_order(self, test_client):
        response = self._create(test_client)

        assert response.status_code == 201
        data = response.json()
        assert data["id"] is not None
        assert data["customer_name"] == "Alex"
        assert data["status"] == "placed"
        assert data["items"][0]["name"] == "Latte"

    def test_prices_are_rederived(self, test_client):
        response = self._create(test_client, items=[{**LATTE, "size": "16oz", "price": 0.01}])

        assert response.status_code == 201
        assert response.json()["items"][0]["price"] == 5.0

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_customer_name_required(self, test_client, name):
        response = self._create(test_client, customer_name=name)
        assert response.status_code == 400

    def test_items_required(self, test_client):
        assert self._create(test_client, items=[]).status_code == 400

    def test_off_menu_only_order_rejected(self, test_client):
        response = self._create(test_client, items=[{"name": "Cappuccino", "quantity": 1}])
        assert response.status_code == 400

    def test_get_order(self, test_client):
        order_id = self._create(test_client).json()["id"]

        response = test_client.get(f"/api/orders/{order_id}")

        assert response.status_code == 200
        assert response.json()["id"] == order_id

    def test_get_unknown_order(self, test_client):
        assert test_client.get("/api/orders/999").status_code == 404

    def test_status_transitions(self, test_client):
        order_id = self._create(test_client).json()["id"]

        response = test_client.patch(f"/api/orders/{order_id}", json={"status": "in_progress"})
        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"

        response = test_client.patch(f"/api/orders/{order_id}", json={"status": "ready"})
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    def test_invalid_status(self, test_client):
        order_id = self._create(test_client).json()["id"]

        response = test_client.patch(f"/api/orders/{order_id}", json={"status": "shipped"})

        assert response.status_code == 400

    def test_update_unknown_order(self, test_client):
        response = test_client.patch("/api/orders/999", json={"status": "canceled"})
        assert response.status_code == 404
