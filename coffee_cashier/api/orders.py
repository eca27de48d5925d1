"""Order API endpoints."""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from coffee_cashier.db.database import get_db
from coffee_cashier.db.models import Order
from coffee_cashier.services.catalog.in_memory_catalog import get_catalog
from coffee_cashier.services.ordering.engine import reprice_cart
from coffee_cashier.services.ordering.models import cart_to_dicts
from coffee_cashier.services.persistence.orders import OrderPersistenceService

router = APIRouter()
logger = logging.getLogger(__name__)


class CreateOrderRequest(BaseModel):
    """Finalized cart submitted by the customer."""
    customer_name: Optional[str] = None
    items: List[Dict[str, Any]] = []


class UpdateOrderRequest(BaseModel):
    """Status change request."""
    status: Optional[str] = None


class OrderResponse(BaseModel):
    """Order response model."""
    id: int
    customer_name: str
    items: List[Dict[str, Any]] = []
    status: str
    created_at: str
    updated_at: Optional[str] = None


def _to_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        customer_name=order.customer_name,
        items=order.items or [],
        status=order.status,
        created_at=order.created_at.isoformat() if order.created_at else "",
        updated_at=order.updated_at.isoformat() if order.updated_at else None,
    )


@router.post("/api/orders", response_model=OrderResponse, status_code=201)
async def create_order(
    request: Request,
    body: CreateOrderRequest,
    db: AsyncSession = Depends(get_db),
):
    """Store a finalized order. Prices are re-derived from the catalog."""
    logger.info(
        f"[ORDERS] Create request - {len(body.items)} lines, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )

    customer_name = (body.customer_name or "").strip()
    if not customer_name:
        raise HTTPException(status_code=400, detail="Customer name is required")

    catalog = get_catalog()
    cart = [line for line in reprice_cart(body.items, catalog) if line.price is not None]
    if len(cart) < len(body.items):
        logger.warning(f"[ORDERS] Dropped {len(body.items) - len(cart)} unpriceable lines")
    if not cart:
        raise HTTPException(status_code=400, detail="Order must contain at least one item")

    order = await OrderPersistenceService(db).create_order(customer_name, cart_to_dicts(cart))
    return _to_response(order)


@router.get("/api/orders/{order_id}", response_model=OrderResponse)
async def get_order(order_id: int, db: AsyncSession = Depends(get_db)):
    """Get a stored order."""
    order = await OrderPersistenceService(db).get_order_by_id(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return _to_response(order)


@router.patch("/api/orders/{order_id}", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    body: UpdateOrderRequest,
    db: AsyncSession = Depends(get_db),
):
    """Move an order through in_progress, completed (or ready) and canceled."""
    logger.info(f"[ORDERS] Status update - order: {order_id}, status: {body.status}")
    try:
        order = await OrderPersistenceService(db).update_status(order_id, body.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return _to_response(order)
