"""Function-tool schema shared by the text and voice transports."""
from typing import Any, Dict, List, Optional

from coffee_cashier.services.catalog.base import Catalog
from coffee_cashier.services.catalog.in_memory_catalog import get_catalog


def build_order_tools(catalog: Optional[Catalog] = None) -> List[Dict[str, Any]]:
    """
    Build the add/modify/remove/finalize tool definitions.

    The item-name enum is only a hint to the model; the mutation engine
    validates names against the catalog regardless.
    """
    catalog = catalog or get_catalog()
    return [
        {
            "type": "function",
            "name": "add_item",
            "description": "Add an item to the cart",
            "parameters": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "name": {"type": "string", "enum": catalog.item_names},
                    "size": {"type": "string"},
                    "milk": {"type": "string"},
                    "temperature": {"type": "string"},
                    "extras": {"type": "array", "items": {"type": "string"}},
                    "quantity": {"type": "number"},
                    "price": {"type": "number"},
                },
                "required": ["name"],
            },
        },
        {
            "type": "function",
            "name": "modify_item",
            "description": "Modify an existing cart item by index",
            "parameters": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "cart_index": {"type": "number"},
                    "changes": {"type": "object"},
                },
                "required": ["cart_index", "changes"],
            },
        },
        {
            "type": "function",
            "name": "remove_item",
            "description": "Remove a cart item by index",
            "parameters": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "cart_index": {"type": "number"},
                },
                "required": ["cart_index"],
            },
        },
        {
            "type": "function",
            "name": "finalize_order",
            "description": "Finalize the order after customer confirms",
            "parameters": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "customer_name": {"type": "string"},
                },
                "required": ["customer_name"],
            },
        },
    ]
