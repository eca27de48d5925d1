"""Catalog models and the catalog-configuration interface."""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class CatalogItem(BaseModel):
    """A purchasable menu item. Never mutated after load."""

    model_config = ConfigDict(frozen=True)

    name: str
    category: str
    small_price: float
    large_price: Optional[float] = None  # None for flat-priced food
    food: bool = False
    iced_only: bool = False
    accepts_milk: bool = False
    shot_flavor: Optional[str] = None

    @property
    def accepts_shots(self) -> bool:
        return self.shot_flavor is not None

    @property
    def is_drink(self) -> bool:
        return not self.food

    def base_price(self, large: bool = False) -> float:
        """Base price for the requested size tier; food ignores size."""
        if self.food or self.large_price is None:
            return self.small_price
        return self.large_price if large else self.small_price


class FixedExtraCost(BaseModel):
    """Extra with a flat cost, matched case-insensitively by regex."""

    model_config = ConfigDict(frozen=True)

    label: str
    pattern: str
    cost: float


class SyrupRule(BaseModel):
    """Syrup flavor priced per pump."""

    model_config = ConfigDict(frozen=True)

    flavor: str
    pattern: str


class AddOnCost(BaseModel):
    """Pricing rules for milk, fixed extras and syrups."""

    model_config = ConfigDict(frozen=True)

    milk_surcharges: Dict[str, float] = {}
    fixed_extras: List[FixedExtraCost] = []
    syrups: List[SyrupRule] = []
    cost_per_pump: float = 0.50
    default_pumps: Dict[str, int] = {"small": 2, "large": 3}
    max_extra_shots: int = 2

    def default_pump_count(self, large: bool) -> int:
        return self.default_pumps["large" if large else "small"]


class SizeLabels(BaseModel):
    """Accepted spellings for each size tier."""

    model_config = ConfigDict(frozen=True)

    small: List[str] = ["small", "12oz"]
    large: List[str] = ["large", "16oz"]
    default: str = "12oz"


class Catalog(BaseModel):
    """The full static catalog."""

    model_config = ConfigDict(frozen=True)

    items: List[CatalogItem]
    categories: List[str] = []
    add_ons: AddOnCost = AddOnCost()
    sizes: SizeLabels = SizeLabels()
    temperatures: Dict[str, str] = {"hot": "Hot", "iced": "Iced"}
    default_milk: str = "Whole Milk"

    def get_item(self, name: Optional[str]) -> Optional[CatalogItem]:
        """Look up an item by case-insensitive, whitespace-trimmed name."""
        if not isinstance(name, str):
            return None
        key = name.strip().lower()
        for item in self.items:
            if item.name.lower() == key:
                return item
        return None

    @property
    def item_names(self) -> List[str]:
        return [item.name for item in self.items]


class CustomizationOption(BaseModel):
    """One customization category and whether it is currently offered."""

    category: str
    enabled: bool = True
    options: List[str] = []


class CatalogConfigProvider(ABC):
    """Source of the customizations the shop currently offers."""

    @abstractmethod
    async def get_customizations(self) -> List[CustomizationOption]:
        """Get every customization category, enabled or not."""
        pass

    async def get_enabled_customizations(self) -> List[CustomizationOption]:
        """Get only the categories that are currently enabled."""
        return [c for c in await self.get_customizations() if c.enabled]
