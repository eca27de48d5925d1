"""Cart and tool-call models."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CartLine(BaseModel):
    """One purchasable entry in the in-progress order."""

    model_config = ConfigDict(extra="ignore")

    name: str
    size: Optional[str] = None
    milk: Optional[str] = None
    temperature: Optional[str] = None
    extras: List[str] = []
    quantity: int = Field(default=1, ge=1)
    price: Optional[float] = None  # always derived from the catalog

    def to_dict(self) -> Dict[str, Any]:
        """Serialize without unset optional customizations."""
        return self.model_dump(exclude_none=True)


class FinalizeSignal(BaseModel):
    """Customer confirmed the order; carries the name to file it under."""

    customer_name: str = "Guest"


class ToolCall(BaseModel):
    """A structured instruction emitted by the agent."""

    name: str
    arguments: Dict[str, Any] = {}
    call_id: Optional[str] = None


class MutationResult(BaseModel):
    """Outcome of applying one tool call to a cart."""

    cart: List[CartLine]
    finalize: Optional[FinalizeSignal] = None


def cart_to_dicts(cart: List[CartLine]) -> List[Dict[str, Any]]:
    """Serialize a cart for the agent or the browser."""
    return [line.to_dict() for line in cart]
