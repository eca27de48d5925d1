"""Catalog validation and pricing.

Everything here is pure: the same inputs always give the same answer and no
function raises for bad input. An unrecognised item prices to ``None``.
"""
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional

from coffee_cashier.services.catalog.base import Catalog, FixedExtraCost, SyrupRule
from coffee_cashier.services.catalog.in_memory_catalog import get_catalog

_PUMP_COUNT = re.compile(r"(\d+)\s*pump", re.IGNORECASE)
_CENT = Decimal("0.01")


def is_valid_item(name: Optional[str], catalog: Optional[Catalog] = None) -> bool:
    """Case-insensitive, whitespace-trimmed catalog membership test."""
    catalog = catalog or get_catalog()
    return catalog.get_item(name) is not None


def is_large(size: Optional[str], catalog: Optional[Catalog] = None) -> bool:
    """Whether a size string selects the large tier. Absent means small."""
    if not isinstance(size, str):
        return False
    catalog = catalog or get_catalog()
    normalized = "".join(size.lower().split())
    return normalized in catalog.sizes.large


def round_price(amount: float) -> float:
    """Round half-up to cents so float drift never leaks into the cart."""
    return float(Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP))


def _match_syrup(extra: str, catalog: Catalog) -> Optional[SyrupRule]:
    for syrup in catalog.add_ons.syrups:
        if re.search(syrup.pattern, extra, re.IGNORECASE):
            return syrup
    return None


def _matching_syrups(extra: str, catalog: Catalog) -> List[SyrupRule]:
    return [s for s in catalog.add_ons.syrups if re.search(s.pattern, extra, re.IGNORECASE)]


def _match_fixed_extra(extra: str, catalog: Catalog) -> Optional[FixedExtraCost]:
    for fixed in catalog.add_ons.fixed_extras:
        if re.search(fixed.pattern, extra, re.IGNORECASE):
            return fixed
    return None


def pump_count(extra: str, large: bool, catalog: Optional[Catalog] = None) -> int:
    """
    Number of syrup pumps an extra string asks for.

    A missing count, or a count of exactly 1, falls back to the size default
    (2 small, 3 large). The agent tends to echo the "1 Pump" menu wording
    verbatim, so 1 is treated as "unspecified".
    """
    catalog = catalog or get_catalog()
    match = _PUMP_COUNT.search(extra)
    if match:
        count = int(match.group(1))
        if count != 1:
            return count
    return catalog.add_ons.default_pump_count(large)


def normalize_syrup_extras(
    extras: Optional[Iterable[str]],
    size: Optional[str] = None,
    catalog: Optional[Catalog] = None,
) -> List[str]:
    """Rewrite syrup extras to the canonical "<N> Pumps <Flavor> Syrup" form."""
    catalog = catalog or get_catalog()
    if isinstance(extras, str):
        extras = [extras]
    large = is_large(size, catalog)

    normalized = []
    for extra in extras or []:
        if not isinstance(extra, str):
            continue
        syrups = [] if _match_fixed_extra(extra, catalog) else _matching_syrups(extra, catalog)
        # one extra naming two flavors is kept verbatim so neither is lost
        if len(syrups) != 1:
            normalized.append(extra)
            continue
        syrup = syrups[0]
        count = pump_count(extra, large, catalog)
        unit = "Pump" if count == 1 else "Pumps"
        normalized.append(f"{count} {unit} {syrup.flavor} Syrup")
    return normalized


def calculate_price(
    name: Optional[str],
    size: Optional[str] = None,
    milk: Optional[str] = None,
    extras: Optional[Iterable[str]] = None,
    catalog: Optional[Catalog] = None,
) -> Optional[float]:
    """
    Unit price for an item with its customizations.

    Returns:
        Price rounded to cents, or None if the item is not on the menu
    """
    catalog = catalog or get_catalog()
    item = catalog.get_item(name)
    if item is None:
        return None

    large = is_large(size, catalog)
    total = item.base_price(large)
    add_ons = catalog.add_ons

    if isinstance(milk, str):
        total += add_ons.milk_surcharges.get(milk.strip().lower(), 0.0)

    if extras and not isinstance(extras, str):
        for extra in extras:
            if not isinstance(extra, str):
                continue
            fixed = _match_fixed_extra(extra, catalog)
            if fixed is not None:
                total += fixed.cost
                continue
            if _match_syrup(extra, catalog) is not None:
                total += pump_count(extra, large, catalog) * add_ons.cost_per_pump

    return round_price(total)
