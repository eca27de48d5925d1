"""Tolerant parsing of agent-supplied tool arguments.

The agent does not always follow its own schema. These helpers turn whatever
it sent into a single canonical shape and never raise.
"""
import json
import logging
import math
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


def parse_tool_arguments(raw: Any) -> Dict[str, Any]:
    """
    Decode a tool call's arguments.

    Args:
        raw: JSON string, already-decoded dict, or anything else

    Returns:
        The arguments dict, or an empty dict if they could not be parsed
    """
    if isinstance(raw, dict):
        return raw
    if raw is None or raw == "":
        return {}
    if isinstance(raw, (str, bytes)):
        try:
            parsed = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"[PARSER] Malformed tool arguments, using empty: {e}")
            return {}
        if isinstance(parsed, dict):
            return parsed
    logger.warning(f"[PARSER] Unexpected tool arguments type: {type(raw).__name__}")
    return {}


def coerce_index(value: Any) -> Optional[int]:
    """Cart index as an int, or None if the value is not an integral number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def coerce_quantity(value: Any) -> int:
    """Quantity of at least 1; anything unusable becomes 1."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 1
    if isinstance(value, float) and not math.isfinite(value):
        return 1
    return max(1, int(value))


def coerce_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def coerce_extras(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [extra.strip() for extra in value if isinstance(extra, str) and extra.strip()]


def normalize_modify_arguments(args: Dict[str, Any]) -> Tuple[Optional[int], Dict[str, Any]]:
    """
    Split modify_item arguments into (cart_index, changes).

    Prefers a nested ``changes`` object, falling back to any top-level fields
    besides ``cart_index`` when the agent flattened its output.
    """
    index = coerce_index(args.get("cart_index"))
    changes = args.get("changes")
    if not isinstance(changes, dict) or not changes:
        flat = {k: v for k, v in args.items() if k not in ("cart_index", "changes")}
        changes = flat if flat else {}
    return index, dict(changes)


def clean_line_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Keep only known cart-line fields with usable values.

    Agent-supplied prices are dropped here; a price is only ever computed.
    """
    cleaned: Dict[str, Any] = {}
    for key in ("name", "size", "milk", "temperature"):
        if key in fields:
            text = coerce_text(fields[key])
            if text is not None:
                cleaned[key] = text
    if "extras" in fields:
        cleaned["extras"] = coerce_extras(fields["extras"])
    if "quantity" in fields:
        cleaned["quantity"] = coerce_quantity(fields["quantity"])
    return cleaned
