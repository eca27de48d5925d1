"""YAML-backed catalog loading."""
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from coffee_cashier.services.catalog.base import (
    AddOnCost,
    Catalog,
    CatalogConfigProvider,
    CatalogItem,
    CustomizationOption,
    SizeLabels,
)

logger = logging.getLogger(__name__)

DEFAULT_MENU_FILE = Path(__file__).parent / "data" / "menu.yaml"


def _read_menu_file(menu_file: Path) -> Dict[str, Any]:
    with open(menu_file, "r") as f:
        return yaml.safe_load(f) or {}


def load_catalog(menu_file: Optional[str] = None) -> Catalog:
    """Build a Catalog from a menu YAML file."""
    path = Path(menu_file) if menu_file else DEFAULT_MENU_FILE
    data = _read_menu_file(path)

    items = [CatalogItem(**item) for item in data.get("items", [])]
    catalog = Catalog(
        items=items,
        categories=data.get("categories", []),
        add_ons=AddOnCost(**data.get("add_ons", {})),
        sizes=SizeLabels(**data.get("sizes", {})),
        temperatures=data.get("temperatures", {"hot": "Hot", "iced": "Iced"}),
        default_milk=data.get("default_milk", "Whole Milk"),
    )
    logger.info(f"[CATALOG] Loaded {len(items)} items from {path.name}")
    return catalog


@lru_cache(maxsize=1)
def get_catalog() -> Catalog:
    """Get the process-wide catalog, loaded once from the packaged menu."""
    return load_catalog()


class InMemoryCatalogConfigProvider(CatalogConfigProvider):
    """Customization settings read from the menu YAML file."""

    def __init__(self, menu_file: Optional[str] = None):
        self.menu_file = Path(menu_file) if menu_file else DEFAULT_MENU_FILE
        self._customizations: Optional[List[CustomizationOption]] = None

    async def get_customizations(self) -> List[CustomizationOption]:
        if self._customizations is None:
            data = _read_menu_file(self.menu_file).get("customizations", {})
            self._customizations = [
                CustomizationOption(category=category, **config)
                for category, config in data.items()
            ]
        return self._customizations
