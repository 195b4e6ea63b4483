"""
Provider settings using Pydantic.

Provides environment-based configuration loading with the ZIA_ prefix.
OneAPI credentials keep their ZSCALER_ names.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import structlog
from pydantic import AliasChoices, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()

_TRUE_VALUES = {"1", "t", "T", "true", "TRUE", "True"}
_FALSE_VALUES = {"0", "f", "F", "false", "FALSE", "False"}


def parse_bool_flag(value: Any, *, name: str) -> bool:
    """Parse a boolean-like flag.

    Accepts the conventional spellings only (``1``, ``t``, ``true``, ``TRUE``,
    ``True`` and their false counterparts); mixed case such as ``tRuE`` and
    any other value count as false.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    text = str(value).strip()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES or text == "":
        return False
    logger.warning("invalid_boolean_flag", name=name, value=str(value))
    return False


class Settings(BaseSettings):
    """Provider settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ZIA_",
        extra="ignore",
        populate_by_name=True,
    )

    # Legacy credentials (ZIA_USERNAME, ZIA_PASSWORD, ZIA_API_KEY, ZIA_CLOUD)
    username: str | None = None
    password: str | None = None
    api_key: str | None = None
    cloud: str | None = None

    # OneAPI credentials
    client_id: str | None = Field(
        default=None, validation_alias=AliasChoices("ZSCALER_CLIENT_ID", "ZIA_CLIENT_ID")
    )
    client_secret: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ZSCALER_CLIENT_SECRET", "ZIA_CLIENT_SECRET"),
    )
    vanity_domain: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ZSCALER_VANITY_DOMAIN", "ZIA_VANITY_DOMAIN"),
    )
    zscaler_cloud: str | None = Field(default=None, validation_alias="ZSCALER_CLOUD")
    use_legacy_client: bool = Field(
        default=False,
        validation_alias=AliasChoices("ZSCALER_USE_LEGACY_CLIENT", "ZIA_USE_LEGACY_CLIENT"),
    )

    # Explicit API base URL, overrides the cloud-derived one
    base_url: str | None = None

    # Activation
    activation: bool = False
    activation_delay_seconds: float = 2.0
    activation_poll_timeout_seconds: float = 0.0
    activation_poll_interval_seconds: float = 2.0

    # HTTP client settings
    http_timeout: float = 60.0
    http_max_retries: int = 5
    edit_lock_retries: int = 3
    edit_lock_retry_interval_seconds: float = 10.0
    user_agent: str = "ziaprovider/0.1.0"

    # Logging
    log_level: str = "INFO"

    @field_validator("activation", "use_legacy_client", mode="before")
    @classmethod
    def _parse_flag(cls, value: Any, info: ValidationInfo) -> bool:
        return parse_bool_flag(value, name=info.field_name)

    @field_validator("activation_delay_seconds", "activation_poll_timeout_seconds")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must not be negative")
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
