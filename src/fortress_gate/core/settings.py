"""Application settings and configuration.

This module defines all configuration options for the Fortress Gate service.
Settings are loaded from environment variables (or an `.env` file) with
sensible defaults; secrets have no default and must be provided.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Fortress Gate", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Operator credential and session signing
    admin_password: str = Field(alias="ADMIN_PASSWORD")
    auth_secret: str = Field(alias="AUTH_SECRET")
    session_cookie_name: str = Field(default="fortress_auth", alias="SESSION_COOKIE_NAME")
    session_cookie_secure: bool = Field(default=False, alias="SESSION_COOKIE_SECURE")
    session_max_age_seconds: int = Field(
        default=60 * 60 * 24 * 7,
        alias="SESSION_MAX_AGE_SECONDS",
    )

    # Login brute-force protection
    login_max_attempts: int = Field(default=5, alias="LOGIN_MAX_ATTEMPTS")
    login_window_seconds: int = Field(default=15 * 60, alias="LOGIN_WINDOW_SECONDS")
    login_sweep_interval_seconds: float = Field(
        default=5 * 60,
        alias="LOGIN_SWEEP_INTERVAL_SECONDS",
    )

    # Fortress control-plane API (proxy upstream)
    fortress_api_url: str = Field(default="http://127.0.0.1:9090", alias="FORTRESS_API_URL")
    fortress_api_key: str = Field(default="", alias="FORTRESS_API_KEY")
    fortress_api_prefix: str = Field(default="/api/fortress", alias="FORTRESS_API_PREFIX")
    fortress_api_key_header: str = Field(
        default="X-Fortress-Key",
        alias="FORTRESS_API_KEY_HEADER",
    )
    fortress_api_timeout_seconds: float = Field(
        default=30.0,
        alias="FORTRESS_API_TIMEOUT_SECONDS",
    )
    proxy_require_session: bool = Field(default=True, alias="PROXY_REQUIRE_SESSION")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
