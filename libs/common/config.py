from decimal import Decimal
from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production", "test"] = "local"
    LOG_LEVEL: str = "INFO"
    SERVICE_NAME: str = "merch"

    # Database (durable key-value snapshot store)
    DATABASE_URL: str = "sqlite+aiosqlite:///./merch.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800
    KV_NAMESPACE: str = "merch"

    # Auth
    SUPABASE_JWT_SECRET: str = "test-jwt-secret"

    # Notifications
    COMMUNICATIONS_SERVICE_URL: str = "http://communications-service:8004"
    ORDER_NOTIFICATIONS_ENABLED: bool = False

    # Checkout
    CHECKOUT_PLATFORM_FEE_PERCENT: Decimal = Decimal("15")
    TAX_RATE_PERCENT: Decimal = Decimal("8.75")  # regional average, not geography-aware
    STANDARD_SHIPPING_USD: Decimal = Decimal("4.99")
    EXPRESS_SHIPPING_USD: Decimal = Decimal("9.99")

    # Catalog pricing
    DEFAULT_MARKUP_PERCENT: Decimal = Decimal("30")
    DEFAULT_POD_PROVIDER: Literal["printify", "printful", "gelato"] = "printify"

    # Fee structure defaults
    DEFAULT_PLATFORM_FEE_PERCENT: Decimal = Decimal("12")
    DEFAULT_STREAMER_TRIAL_DAYS: int = 60
    DEFAULT_SUPERFAN_TRIAL_DAYS: int = 60

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
