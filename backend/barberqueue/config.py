"""
Application configuration using Pydantic Settings.
Loads from environment variables and .env file.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "BarberQueue"
    app_env: str = "development"  # development, staging, production
    debug: bool = True
    log_level: str = "INFO"

    # Storage
    store_backend: str = "sql"  # sql, memory
    database_url: str = "postgresql://localhost:5432/barberqueue"

    # Shop
    shop_timezone: str = "Europe/Berlin"

    # Frontend apps allowed to connect
    cors_origins: list[str] = [
        "http://localhost:3000",  # Local web dev
        "http://localhost:8081",  # Expo web
        "http://localhost:19006",  # Expo web alt
    ]

    @property
    def async_database_url(self) -> str:
        """Database URL rewritten for the async driver."""
        if self.database_url.startswith("postgresql://"):
            return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return self.database_url

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
