"""Cashier instructions for the text and voice agents."""
from typing import List, Optional

from coffee_cashier.core.config import settings
from coffee_cashier.services.catalog.base import Catalog, CatalogConfigProvider, CustomizationOption
from coffee_cashier.services.catalog.in_memory_catalog import get_catalog


def get_menu_text(catalog: Optional[Catalog] = None) -> str:
    """Render the catalog as a price list for the agent."""
    catalog = catalog or get_catalog()
    small, large = catalog.sizes.small[-1], catalog.sizes.large[-1]
    lines = ["Menu:"]
    for category in catalog.categories:
        items = [item for item in catalog.items if item.category == category]
        if not items:
            continue
        if all(item.food for item in items):
            lines.append(f"\n{category.title()}:")
        else:
            lines.append(f"\n{category.title()} ({small} Small / {large} Large):")
        for item in items:
            if item.food:
                lines.append(f"- {item.name}: ${item.small_price:.2f}")
                continue
            temps = "Iced only" if item.iced_only else "Hot/Iced"
            lines.append(
                f"- {item.name} ({temps}): "
                f"${item.small_price:.2f} / ${item.base_price(large=True):.2f}"
            )
    return "\n".join(lines)


def get_add_ons_text(
    customizations: List[CustomizationOption], catalog: Optional[Catalog] = None
) -> str:
    """Render the enabled customizations with their surcharges."""
    catalog = catalog or get_catalog()
    add_ons = catalog.add_ons
    lines = ["Add-ons / substitutions:"]
    for customization in customizations:
        if not customization.enabled:
            continue
        for option in customization.options:
            key = option.lower()
            if customization.category == "milk":
                cost = add_ons.milk_surcharges.get(key, 0.0)
                lines.append(f"- {option}: ${cost:.2f}")
            elif customization.category == "syrup":
                lines.append(f"- 1 Pump {option}: ${add_ons.cost_per_pump:.2f}")
            elif customization.category == "extra_shot":
                fixed = next((f for f in add_ons.fixed_extras if f.label.lower() == key), None)
                cost = f": ${fixed.cost:.2f}" if fixed else ""
                lines.append(f"- {option}{cost}")
            else:
                lines.append(f"- {option}")
    return "\n".join(lines)


def get_system_prompt(
    customizations: List[CustomizationOption],
    catalog: Optional[Catalog] = None,
    voice: bool = False,
) -> str:
    """Generate the cashier instructions."""
    catalog = catalog or get_catalog()
    small_pumps = catalog.add_ons.default_pump_count(large=False)
    large_pumps = catalog.add_ons.default_pump_count(large=True)
    style = (
        "Keep responses short and conversational - this is a voice interaction, not a text chat."
        if voice
        else "Keep responses short and clear."
    )

    return f"""You are a friendly, efficient NYC coffee shop cashier at {settings.shop_name}.

Your goals:
- Take accurate orders quickly.
- Ask clarifying questions when required.
- Keep responses concise and natural.
- Use tool calls to update the cart in real time.
- Only finalize after explicit customer confirmation.

{get_menu_text(catalog)}

{get_add_ons_text(customizations, catalog)}

Important rules:
- Coffee Frappuccino and Cold Brew are iced-only (never hot).
- Pastries are fixed items only (no customizations).
- Milk for tea is allowed only for Matcha Latte by default.
- Do not add extra espresso shot to tea by default; if requested, clarify and confirm.
- At most {catalog.add_ons.max_extra_shots} extra shots per drink; tell the customer if they ask for more.
- Syrups default to {small_pumps} pumps for small and {large_pumps} pumps for large.
- If a user gives multiple items in one message, add all of them.
- If size or temperature is missing, ask a brief clarification question.
- If customer asks for unavailable/off-menu items, politely decline and offer nearby alternatives.
- {style}

Tool behavior:
- add_item for new cart entries.
- modify_item for changing an existing entry via cart index.
- remove_item for deleting an existing entry via cart index.
- finalize_order only when customer clearly confirms they are done.

When finalizing:
- Read back a short order summary and ask for final confirmation if not yet explicit.
- Call finalize_order with customer_name."""


async def get_instructions(
    config_provider: CatalogConfigProvider,
    catalog: Optional[Catalog] = None,
    voice: bool = False,
) -> str:
    """Build instructions from the customizations the shop currently offers."""
    customizations = await config_provider.get_enabled_customizations()
    return get_system_prompt(customizations, catalog=catalog, voice=voice)


def get_cart_context(cart_json: str) -> str:
    """System message grounding the agent in the real cart."""
    return f"Current cart JSON: {cart_json}"
