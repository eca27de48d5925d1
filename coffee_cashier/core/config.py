"""Application configuration."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_text_model: str = "gpt-5.2"
    openai_stored_prompt_id: Optional[str] = None

    # Realtime voice
    openai_realtime_model: str = "gpt-realtime-mini"
    openai_realtime_voice: str = "marin"
    realtime_turn_detection: str = "semantic_vad"

    # Text-mode tool loop ceiling
    max_tool_iterations: int = 6

    # Database
    database_url: str = "sqlite+aiosqlite:///./coffee_cashier.db"

    # Shop
    shop_name: str = "Coffee Rooom"

    # Logging
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
