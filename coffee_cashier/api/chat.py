"""Text-mode ordering endpoint."""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from coffee_cashier.core.config import settings
from coffee_cashier.core.dependencies import get_agent_service
from coffee_cashier.services.agent.agent import AgentService, ChatMessage
from coffee_cashier.services.ordering.engine import reprice_cart
from coffee_cashier.services.ordering.models import FinalizeSignal, cart_to_dicts

router = APIRouter()
logger = logging.getLogger(__name__)


class ChatRequest(BaseModel):
    """Chat request model."""
    messages: List[ChatMessage] = []
    cart: List[Dict[str, Any]] = []


class ChatResponse(BaseModel):
    """Chat response model."""
    text: str
    cart: List[Dict[str, Any]]
    finalize: Optional[FinalizeSignal] = None


@router.post("/api/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(
    request: Request,
    body: ChatRequest,
    agent_service: AgentService = Depends(get_agent_service),
):
    """Run one customer turn through the agent and return the updated cart."""
    logger.info(
        f"[CHAT] Request received - {len(body.messages)} messages, {len(body.cart)} cart lines, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )

    if not settings.openai_api_key:
        return JSONResponse(status_code=500, content={"error": "OPENAI_API_KEY is not configured"})

    cart = reprice_cart(body.cart)

    try:
        result = await agent_service.run_turn(body.messages, cart)
    except Exception as e:
        logger.error(
            f"[CHAT] Error processing chat request - Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        return JSONResponse(status_code=500, content={"error": "Failed to process chat request"})

    logger.info(
        f"[CHAT] Turn complete - {len(result.cart)} cart lines, "
        f"finalize: {result.finalize.customer_name if result.finalize else 'no'}"
    )
    return ChatResponse(
        text=result.text,
        cart=cart_to_dicts(result.cart),
        finalize=result.finalize,
    )
