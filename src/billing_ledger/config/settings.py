"""Configuration settings for the billing ledger engine."""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Flat settings read from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Billing backend
    billing_api_url: str = Field(
        default="http://localhost:5000", validation_alias="BILLING_API_URL"
    )
    billing_api_token: SecretStr | None = Field(
        default=None, validation_alias="BILLING_API_TOKEN"
    )
    billing_email: str | None = Field(default=None, validation_alias="BILLING_EMAIL")
    billing_password: SecretStr | None = Field(
        default=None, validation_alias="BILLING_PASSWORD"
    )
    billing_timeout: float = Field(default=30.0, validation_alias="BILLING_TIMEOUT")
    # Applies to reads only; writes are sent at most once
    billing_max_retries: int = Field(default=2, validation_alias="BILLING_MAX_RETRIES")

    # Tax defaults, used when the backend settings are not fetched
    tax_enabled: bool = Field(default=False, validation_alias="TAX_ENABLED")
    tax_rate: Decimal = Field(default=Decimal("10"), ge=0, validation_alias="TAX_RATE")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="LOG_FORMAT"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
