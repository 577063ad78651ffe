"""Application settings and configuration.

This module defines all configuration options for the keygate relay.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Keygate Relay", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./keygate.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, alias="LOG_FILE")
    log_max_bytes: int = Field(default=5 * 1024 * 1024, alias="LOG_MAX_BYTES")
    log_backup_count: int = Field(default=3, alias="LOG_BACKUP_COUNT")

    # Link issuing and callback flow
    public_base_url: str = Field(default="http://localhost:8000", alias="PUBLIC_BASE_URL")
    # Template containing "{callback_url}", e.g. https://ads.example/go?dest={callback_url}
    ad_network_url: str | None = Field(default=None, alias="AD_NETWORK_URL")
    success_redirect_url: str | None = Field(default=None, alias="SUCCESS_REDIRECT_URL")

    # Callback authentication (disabled when no secret is configured)
    callback_secret: str | None = Field(default=None, alias="CALLBACK_SECRET")
    callback_token_ttl_minutes: int = Field(
        default=60 * 24,
        alias="CALLBACK_TOKEN_TTL_MINUTES",
    )
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")

    # Bearer token guarding the stats endpoint
    admin_token: str | None = Field(default=None, alias="ADMIN_TOKEN")

    # Default cutoff for the purge-pending script
    pending_retention_hours: int = Field(default=72, alias="PENDING_RETENTION_HOURS")

    # CORS configuration for the key-gate frontend
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def callback_auth_enabled(self) -> bool:
        """Return True when callbacks must carry a signed token."""
        return bool(self.callback_secret)

    @property
    def callback_url_base(self) -> str:
        """Absolute URL of the callback endpoint, without query string."""
        return f"{self.public_base_url.rstrip('/')}/api/v1/callback"


settings = Settings()
