"""Order persistence service."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coffee_cashier.db.models import ORDER_STATUSES, Order

logger = logging.getLogger(__name__)

# Kitchen screens send "ready" for a finished order
STATUS_ALIASES = {"ready": "completed"}


class OrderPersistenceService:
    """Service for persisting finalized orders."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_order(
        self, customer_name: str, items: List[Dict[str, Any]]
    ) -> Order:
        """Store a finalized order and return it with its identifier."""
        order = Order(
            customer_name=customer_name,
            items=items,
            status="placed",
        )
        self.db.add(order)
        await self.db.commit()
        await self.db.refresh(order)
        logger.info(f"[ORDERS] Stored order {order.id} for {customer_name} ({len(items)} lines)")
        return order

    async def get_order_by_id(self, order_id: int) -> Optional[Order]:
        """Get order by ID."""
        result = await self.db.execute(select(Order).where(Order.id == order_id))
        return result.scalar_one_or_none()

    async def update_status(self, order_id: int, status: str) -> Optional[Order]:
        """
        Move an order to a new status.

        Raises:
            ValueError: if the status is not one of in_progress, completed, canceled
        """
        status = STATUS_ALIASES.get(status, status)
        if status not in ORDER_STATUSES or status == "placed":
            raise ValueError(f"Invalid status: {status}")

        order = await self.get_order_by_id(order_id)
        if order:
            order.status = status
            order.updated_at = datetime.utcnow()
            await self.db.commit()
            await self.db.refresh(order)
        return order
