"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="info", description="Root log level")
    log_json: bool = Field(default=True, description="Emit logs as JSON lines")

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="HTTP server host")
    api_port: int = Field(default=8080, description="HTTP server port")

    # ======================
    # Chain endpoints
    # ======================
    aptos_indexer_url: str = Field(
        default="https://api.mainnet.aptoslabs.com/v1/graphql",
        description="Aptos indexer GraphQL URL",
    )
    fuel_graphql_url: str = Field(
        default="https://mainnet.fuel.network/v1/graphql",
        description="Fuel node GraphQL URL",
    )
    mira_api_url: str = Field(
        default="https://prod.api.mira.ly", description="Mira DEX routing API URL"
    )
    http_timeout: float = Field(default=10.0, description="Timeout for outbound HTTP calls (s)")

    # ======================
    # Telegram
    # ======================
    telegram_bot_token: str = Field(default="", description="Telegram bot token from BotFather")
    telegram_chat_id: str = Field(default="", description="Chat receiving notifications")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def has_telegram(self) -> bool:
        """Check if Telegram notifications are configured."""
        return bool(self.telegram_bot_token and self.telegram_chat_id)

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "log_level": self.log_level,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "endpoints": {
                "aptos_indexer": self.aptos_indexer_url,
                "fuel_graphql": self.fuel_graphql_url,
                "mira_api": self.mira_api_url,
            },
            "telegram_bot_token": "***" if self.telegram_bot_token else "(not set)",
            "telegram_chat_id": self.telegram_chat_id or "(not set)",
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
