"""Menu API endpoints."""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from coffee_cashier.services.catalog.in_memory_catalog import get_catalog

router = APIRouter()
logger = logging.getLogger(__name__)


class MenuItemResponse(BaseModel):
    """Menu item response model."""
    name: str
    category: str
    small_price: float
    large_price: Optional[float] = None
    food: bool = False
    iced_only: bool = False
    accepts_milk: bool = False
    accepts_shots: bool = False


class MenuResponse(BaseModel):
    """Menu response model."""
    items: List[MenuItemResponse]
    categories: List[str] = []
    milk_surcharges: Dict[str, float] = {}


@router.get("/api/menu", response_model=MenuResponse)
async def get_menu(request: Request):
    """Get the full menu."""
    logger.info(
        f"[MENU] Request received - Client: {request.client.host if request.client else 'unknown'}"
    )
    catalog = get_catalog()
    return MenuResponse(
        items=[
            MenuItemResponse(
                name=item.name,
                category=item.category,
                small_price=item.small_price,
                large_price=item.large_price,
                food=item.food,
                iced_only=item.iced_only,
                accepts_milk=item.accepts_milk,
                accepts_shots=item.accepts_shots,
            )
            for item in catalog.items
        ],
        categories=catalog.categories,
        milk_surcharges=catalog.add_ons.milk_surcharges,
    )
