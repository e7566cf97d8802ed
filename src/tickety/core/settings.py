"""Application settings and configuration.

This module defines all configuration options for the Tickety backend.
Settings are loaded from environment variables with sensible defaults.
"""

import json
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _split_csv(value: object) -> object:
    """Accept comma-separated strings in addition to JSON lists."""
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.startswith("["):
            return json.loads(stripped)
        return [item.strip() for item in stripped.split(",") if item.strip()]
    return value


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    All durations are expressed in seconds except the access token lifetime,
    which keeps the conventional minutes unit.
    """

    # Application metadata
    app_name: str = Field(default="Tickety", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration (admin allow-list lives here)
    database_url: str = Field(default="sqlite:///./tickety.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Nonce storage for the sign-in handshake
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")
    nonce_backend: Literal["memory", "redis"] = Field(default="memory", alias="NONCE_BACKEND")
    nonce_ttl_seconds: int = Field(default=300, gt=0, alias="NONCE_TTL_SECONDS")
    nonce_sweep_interval_seconds: float = Field(
        default=60.0,
        alias="NONCE_SWEEP_INTERVAL_SECONDS",
    )

    # JWT session settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    session_cookie_name: str = Field(default="tickety_session", alias="SESSION_COOKIE_NAME")
    session_cookie_secure: bool = Field(default=False, alias="SESSION_COOKIE_SECURE")

    # Sign-in message binding; empty values disable the corresponding check
    siwe_domain: str | None = Field(default=None, alias="SIWE_DOMAIN")
    siwe_chain_ids: Annotated[list[int], NoDecode] = Field(
        default_factory=list,
        alias="SIWE_CHAIN_IDS",
    )

    # Administrator allow-list (merged with the admin_wallet table)
    admin_addresses: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        alias="ADMIN_ADDRESSES",
    )
    admin_cache_ttl_seconds: float = Field(default=30.0, alias="ADMIN_CACHE_TTL_SECONDS")

    # CORS configuration for the single-page frontend
    cors_origins: list[str] = Field(
        default=["http://localhost:5173", "http://127.0.0.1:5173"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["Content-Type", "Authorization", "x-wallet-address"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("admin_addresses", mode="before")
    @classmethod
    def _parse_admin_addresses(cls, value: object) -> object:
        parsed = _split_csv(value)
        if isinstance(parsed, list):
            return [str(item).strip().lower() for item in parsed if str(item).strip()]
        return parsed

    @field_validator("siwe_chain_ids", mode="before")
    @classmethod
    def _parse_chain_ids(cls, value: object) -> object:
        return _split_csv(value)


settings = Settings()
