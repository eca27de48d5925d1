"""FastAPI dependencies."""
from fastapi import Depends

from coffee_cashier.services.agent.agent import AgentService
from coffee_cashier.services.catalog.base import CatalogConfigProvider
from coffee_cashier.services.catalog.in_memory_catalog import InMemoryCatalogConfigProvider
from coffee_cashier.services.realtime.token import RealtimeTokenService
from coffee_cashier.services.realtime.transport import OpenAIRealtimeConnector, RealtimeConnector


def get_catalog_config_provider() -> CatalogConfigProvider:
    """Get the provider of currently enabled customizations."""
    return InMemoryCatalogConfigProvider()


def get_agent_service(
    config_provider: CatalogConfigProvider = Depends(get_catalog_config_provider),
) -> AgentService:
    """Get text-mode agent service."""
    return AgentService(config_provider=config_provider)


def get_token_service() -> RealtimeTokenService:
    """Get realtime credential minting service."""
    return RealtimeTokenService()


def get_realtime_connector() -> RealtimeConnector:
    """Get realtime session connector."""
    return OpenAIRealtimeConnector()
