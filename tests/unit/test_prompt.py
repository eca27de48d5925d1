"""Unit tests for cashier instructions and the tool schema."""
import pytest

from coffee_cashier.services.agent.prompt import get_add_ons_text, get_instructions, get_menu_text
from coffee_cashier.services.agent.tools import build_order_tools
from coffee_cashier.services.catalog.base import CatalogConfigProvider, CustomizationOption
from coffee_cashier.services.catalog.in_memory_catalog import InMemoryCatalogConfigProvider


class StaticConfigProvider(CatalogConfigProvider):
    def __init__(self, customizations):
        self.customizations = customizations

    async def get_customizations(self):
        return self.customizations


class TestMenuText:
    """Test the rendered price list."""

    def test_lists_every_item(self, catalog):
        text = get_menu_text(catalog)
        for name in catalog.item_names:
            assert name in text

    def test_prices_and_temperatures(self, catalog):
        text = get_menu_text(catalog)
        assert "- Latte (Hot/Iced): $4.00 / $5.00" in text
        assert "- Cold Brew (Iced only): $4.00 / $5.00" in text
        assert "- Banana Bread: $3.00" in text


class TestAddOnsText:
    """Test the rendered add-ons."""

    def test_surcharges(self, catalog):
        text = get_add_ons_text(
            [
                CustomizationOption(category="milk", options=["Oat Milk", "Whole Milk"]),
                CustomizationOption(category="extra_shot", options=["Extra Espresso Shot"]),
                CustomizationOption(category="syrup", options=["Caramel Syrup"]),
            ],
            catalog,
        )
        assert "- Oat Milk: $0.50" in text
        assert "- Whole Milk: $0.00" in text
        assert "- Extra Espresso Shot: $1.50" in text
        assert "- 1 Pump Caramel Syrup: $0.50" in text

    def test_disabled_category_is_omitted(self, catalog):
        text = get_add_ons_text(
            [CustomizationOption(category="syrup", enabled=False, options=["Caramel Syrup"])],
            catalog,
        )
        assert "Caramel" not in text


class TestInstructions:
    """Test instruction assembly."""

    @pytest.mark.asyncio
    async def test_uses_enabled_customizations_only(self, catalog):
        provider = StaticConfigProvider(
            [
                CustomizationOption(category="milk", options=["Almond Milk"]),
                CustomizationOption(category="ice", enabled=False, options=["Extra Ice"]),
            ]
        )
        text = await get_instructions(provider, catalog)
        assert "- Almond Milk: $0.75" in text
        assert "Extra Ice" not in text

    @pytest.mark.asyncio
    async def test_voice_variant(self, catalog):
        provider = InMemoryCatalogConfigProvider()
        text_mode = await get_instructions(provider, catalog)
        voice_mode = await get_instructions(provider, catalog, voice=True)
        assert "voice interaction" in voice_mode
        assert "voice interaction" not in text_mode

    @pytest.mark.asyncio
    async def test_packaged_customizations(self):
        provider = InMemoryCatalogConfigProvider()
        categories = [c.category for c in await provider.get_enabled_customizations()]
        assert categories == ["milk", "syrup", "extra_shot", "sweetness", "ice"]


class TestOrderTools:
    """Test the function tool schema."""

    def test_four_tools(self, catalog):
        tools = build_order_tools(catalog)
        assert [tool["name"] for tool in tools] == [
            "add_item", "modify_item", "remove_item", "finalize_order"
        ]
        assert all(tool["type"] == "function" for tool in tools)

    def test_add_item_name_enum(self, catalog):
        add_item = build_order_tools(catalog)[0]
        assert add_item["parameters"]["properties"]["name"]["enum"] == catalog.item_names
        assert add_item["parameters"]["required"] == ["name"]
