"""Text-mode agent orchestration.

One customer turn is driven through the OpenAI Responses API until the agent
stops calling tools or the iteration ceiling is reached. Every tool call is
applied through the shared mutation engine and echoed back with the real cart.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel

from coffee_cashier.core.config import settings
from coffee_cashier.core.errors import AgentTransportError
from coffee_cashier.services.agent.prompt import get_cart_context, get_instructions
from coffee_cashier.services.agent.tools import build_order_tools
from coffee_cashier.services.catalog.base import Catalog, CatalogConfigProvider
from coffee_cashier.services.catalog.in_memory_catalog import (
    InMemoryCatalogConfigProvider,
    get_catalog,
)
from coffee_cashier.services.ordering.engine import apply_tool_call
from coffee_cashier.services.ordering.models import (
    CartLine,
    FinalizeSignal,
    ToolCall,
    cart_to_dicts,
)
from coffee_cashier.services.ordering.parser import parse_tool_arguments

logger = logging.getLogger(__name__)

ALLOWED_ROLES = ("system", "user", "assistant")


class ChatMessage(BaseModel):
    """One entry of the conversation history."""

    role: str
    content: str


class TurnResult(BaseModel):
    """What a customer turn produced."""

    text: str = ""
    cart: List[CartLine] = []
    finalize: Optional[FinalizeSignal] = None


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def parse_response(response: Any) -> Tuple[str, List[ToolCall]]:
    """
    Split a Responses API result into free text and tool calls.

    Output items of any other shape are ignored. Malformed tool arguments
    become an empty dict.
    """
    tool_calls: List[ToolCall] = []
    text = ""

    for item in _field(response, "output", None) or []:
        item_type = _field(item, "type")
        if item_type == "function_call":
            tool_calls.append(
                ToolCall(
                    name=_field(item, "name", "") or "",
                    arguments=parse_tool_arguments(_field(item, "arguments")),
                    call_id=_field(item, "call_id"),
                )
            )
        elif item_type == "message":
            content = _field(item, "content")
            if not isinstance(content, list):
                continue
            for part in content:
                if _field(part, "type") == "output_text" and _field(part, "text"):
                    text += _field(part, "text")

    return text.strip(), tool_calls


def tool_acknowledgement(call: ToolCall, cart: List[CartLine]) -> Dict[str, Any]:
    """function_call_output item echoing the post-mutation cart."""
    return {
        "type": "function_call_output",
        "call_id": call.call_id,
        "output": json.dumps({"success": True, "cart": cart_to_dicts(cart)}),
    }


class AgentService:
    """Drives one text-mode turn against the conversational agent."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        config_provider: Optional[CatalogConfigProvider] = None,
        catalog: Optional[Catalog] = None,
        max_iterations: Optional[int] = None,
    ):
        self.client = client or AsyncOpenAI(
            api_key=settings.openai_api_key, base_url=settings.openai_base_url
        )
        self.config_provider = config_provider or InMemoryCatalogConfigProvider()
        self.catalog = catalog or get_catalog()
        self.max_iterations = max_iterations or settings.max_tool_iterations
        self.tools = build_order_tools(self.catalog)

    async def _create_response(self, **payload: Any) -> Any:
        request: Dict[str, Any] = {
            "model": settings.openai_text_model,
            "tools": self.tools,
            **payload,
        }
        if settings.openai_stored_prompt_id:
            request["prompt"] = {"id": settings.openai_stored_prompt_id}
        try:
            return await self.client.responses.create(**request)
        except OpenAIError as e:
            raise AgentTransportError(f"Agent request failed: {e}") from e

    async def _seed_input(
        self, messages: Sequence[ChatMessage], cart: List[CartLine]
    ) -> List[Dict[str, str]]:
        instructions = await get_instructions(self.config_provider, self.catalog)
        history = [
            {"role": m.role, "content": m.content}
            for m in messages
            if m.role in ALLOWED_ROLES
        ]
        return [
            {"role": "system", "content": instructions},
            {"role": "system", "content": get_cart_context(json.dumps(cart_to_dicts(cart)))},
            *history,
        ]

    async def run_turn(
        self, messages: Sequence[ChatMessage], cart: Sequence[CartLine]
    ) -> TurnResult:
        """
        Process one customer turn.

        Args:
            messages: Conversation history, oldest first
            cart: Cart as the customer currently sees it

        Returns:
            TurnResult with the agent's text, the resulting cart and any
            finalize signal

        Raises:
            AgentTransportError: if the agent could not be reached
        """
        current_cart = list(cart)
        finalize: Optional[FinalizeSignal] = None
        texts: List[str] = []

        response = await self._create_response(
            input=await self._seed_input(messages, current_cart)
        )

        for iteration in range(1, self.max_iterations + 1):
            text, tool_calls = parse_response(response)
            if text:
                texts.append(text)
            if not tool_calls:
                break

            acknowledgements = []
            for call in tool_calls:
                logger.info(f"[AGENT] Tool call {call.name}: {call.arguments}")
                result = apply_tool_call(current_cart, call.name, call.arguments, self.catalog)
                current_cart = result.cart
                if result.finalize is not None:
                    finalize = result.finalize
                acknowledgements.append(tool_acknowledgement(call, current_cart))

            if iteration == self.max_iterations:
                logger.warning(
                    f"[AGENT] Iteration cap ({self.max_iterations}) reached, returning current cart"
                )
                break

            response = await self._create_response(
                previous_response_id=_field(response, "id"),
                input=acknowledgements,
            )

        return TurnResult(text=" ".join(texts), cart=current_cart, finalize=finalize)
