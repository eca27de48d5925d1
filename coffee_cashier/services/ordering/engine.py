"""Cart mutation engine.

Applies one agent tool call to a cart snapshot. Shared by the text-mode
orchestrator and the realtime session, so both transports converge on the
same cart. The input cart is never mutated; a new list is always returned.
Bad input of any shape degrades to a no-op instead of raising.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from coffee_cashier.services.catalog.base import Catalog, CatalogItem
from coffee_cashier.services.catalog.in_memory_catalog import get_catalog
from coffee_cashier.services.catalog.pricing import calculate_price, normalize_syrup_extras
from coffee_cashier.services.ordering.models import CartLine, FinalizeSignal, MutationResult
from coffee_cashier.services.ordering.parser import (
    clean_line_fields,
    coerce_index,
    coerce_text,
    normalize_modify_arguments,
)

logger = logging.getLogger(__name__)

DEFAULT_CUSTOMER_NAME = "Guest"


def apply_drink_defaults(
    fields: Dict[str, Any], item: CatalogItem, catalog: Catalog
) -> Dict[str, Any]:
    """Fill size, temperature and milk the catalog implies when they are absent."""
    if not item.is_drink:
        return fields
    resolved = dict(fields)
    if not resolved.get("size"):
        resolved["size"] = catalog.sizes.default
    if not resolved.get("temperature"):
        key = "iced" if item.iced_only else "hot"
        resolved["temperature"] = catalog.temperatures[key]
    if item.accepts_milk and not resolved.get("milk"):
        resolved["milk"] = catalog.default_milk
    return resolved


def build_line(fields: Dict[str, Any], catalog: Catalog) -> CartLine:
    """
    Resolve defaults, normalize syrups and price a line.

    ``fields`` must already be cleaned and name a catalog item.
    """
    item = catalog.get_item(fields["name"])
    resolved = apply_drink_defaults(fields, item, catalog)
    resolved["name"] = item.name
    resolved["extras"] = normalize_syrup_extras(
        resolved.get("extras"), resolved.get("size"), catalog
    )
    resolved["price"] = calculate_price(
        resolved["name"],
        size=resolved.get("size"),
        milk=resolved.get("milk"),
        extras=resolved["extras"],
        catalog=catalog,
    )
    return CartLine(**resolved)


def _add_item(
    cart: List[CartLine], args: Dict[str, Any], catalog: Catalog
) -> MutationResult:
    fields = clean_line_fields(args)
    if catalog.get_item(fields.get("name")) is None:
        logger.warning(f"[CART] Rejected off-menu add_item: {args.get('name')!r}")
        return MutationResult(cart=cart)

    fields.setdefault("quantity", 1)
    line = build_line(fields, catalog)
    logger.info(f"[CART] Added {line.quantity}x {line.name} at ${line.price:.2f}")
    return MutationResult(cart=[*cart, line])


def _modify_item(
    cart: List[CartLine], args: Dict[str, Any], catalog: Catalog
) -> MutationResult:
    index, changes = normalize_modify_arguments(args)
    if index is None or not 0 <= index < len(cart):
        logger.warning(f"[CART] modify_item index out of range: {args.get('cart_index')!r}")
        return MutationResult(cart=cart)

    current = cart[index]
    merged = clean_line_fields({**current.model_dump(exclude={"price"}), **changes})
    if catalog.get_item(merged.get("name")) is None:
        logger.warning(f"[CART] Rejected modify_item to off-menu name: {merged.get('name')!r}")
        return MutationResult(cart=cart)

    updated = build_line(merged, catalog)
    logger.info(f"[CART] Modified line {index}: {updated.name} now ${updated.price:.2f}")
    return MutationResult(
        cart=[updated if i == index else line for i, line in enumerate(cart)]
    )


def _remove_item(cart: List[CartLine], args: Dict[str, Any]) -> MutationResult:
    index = coerce_index(args.get("cart_index"))
    if index is None or not 0 <= index < len(cart):
        logger.warning(f"[CART] remove_item index out of range: {args.get('cart_index')!r}")
        return MutationResult(cart=cart)

    logger.info(f"[CART] Removed line {index}: {cart[index].name}")
    return MutationResult(cart=[line for i, line in enumerate(cart) if i != index])


def _finalize_order(cart: List[CartLine], args: Dict[str, Any]) -> MutationResult:
    customer_name = coerce_text(args.get("customer_name")) or DEFAULT_CUSTOMER_NAME
    logger.info(f"[CART] Finalize requested for {customer_name} ({len(cart)} lines)")
    return MutationResult(cart=cart, finalize=FinalizeSignal(customer_name=customer_name))


def apply_tool_call(
    cart: Sequence[CartLine],
    name: str,
    args: Optional[Dict[str, Any]] = None,
    catalog: Optional[Catalog] = None,
) -> MutationResult:
    """
    Apply one tool call to a cart.

    Args:
        cart: Current cart; left untouched
        name: Tool name (add_item, modify_item, remove_item, finalize_order)
        args: Decoded tool arguments
        catalog: Catalog to validate and price against

    Returns:
        MutationResult with the new cart and, for finalize_order, the signal
    """
    catalog = catalog or get_catalog()
    snapshot = list(cart)
    if not isinstance(args, dict):
        args = {}

    if name == "add_item":
        return _add_item(snapshot, args, catalog)
    if name == "modify_item":
        return _modify_item(snapshot, args, catalog)
    if name == "remove_item":
        return _remove_item(snapshot, args)
    if name == "finalize_order":
        return _finalize_order(snapshot, args)

    logger.warning(f"[CART] Ignoring unknown tool call: {name!r}")
    return MutationResult(cart=snapshot)


def reprice_cart(
    lines: Sequence[Dict[str, Any]], catalog: Optional[Catalog] = None
) -> List[CartLine]:
    """
    Rebuild a cart received from an untrusted client.

    Known items are re-priced from the catalog; unknown names keep their
    fields but carry no price.
    """
    catalog = catalog or get_catalog()
    cart = []
    for raw in lines:
        if not isinstance(raw, dict):
            continue
        fields = clean_line_fields(raw)
        if not fields.get("name"):
            continue
        fields.setdefault("quantity", 1)
        if catalog.get_item(fields["name"]) is None:
            cart.append(CartLine(**fields))
        else:
            cart.append(build_line(fields, catalog))
    return cart
