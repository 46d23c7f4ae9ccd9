"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_auth_settings() -> "AuthSettings":
    """Build auth settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return AuthSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    See _build_auth_settings() for rationale about the type ignore.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class AuthSettings(BaseSettings):
    """Bearer token verification configuration.

    Tokens are issued by the hosted auth provider and signed with a shared
    secret; the verifier only checks them, it never issues any.
    """

    jwt_secret: str | None = Field(
        None,
        description="Shared secret used to verify access token signatures",
    )
    jwt_algorithm: str = Field(
        "HS256",
        description="Signature algorithm of access tokens",
    )
    jwt_audience: str | None = Field(
        "authenticated",
        description="Expected 'aud' claim (empty to skip the audience check)",
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    store_backend: str = Field(
        "memory",
        description="Quote record store backend (currently: memory)",
    )
    cors_allow_origin: str = Field(
        "*",
        description="Value of Access-Control-Allow-Origin on the update-quote endpoint",
    )

    quote_update_min_chars: int = Field(
        10,
        description="Minimum quote length (after trimming) accepted when editing",
        ge=1,
    )
    quote_update_max_chars: int = Field(
        280,
        description="Maximum quote length (after trimming) accepted when editing",
        ge=1,
    )
    quote_create_max_chars: int = Field(
        500,
        description="Maximum quote length accepted when submitting a new quote",
        ge=1,
    )
    author_max_chars: int = Field(
        100,
        description="Author names longer than this are clamped",
        ge=1,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable rate limiting of mutating calls per user",
    )
    rate_limit_requests: int = Field(
        10,
        description="Maximum number of mutating requests allowed per window (per user)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read/propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    auth: AuthSettings = Field(default_factory=_build_auth_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
