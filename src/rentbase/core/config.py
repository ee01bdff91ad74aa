"""Configuration management for RentBase.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded at application
startup and is immutable during runtime.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "change-me-in-production-use-openssl-rand-hex-32"


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RENTBASE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "RentBase"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1

    # Database Settings
    database_url: str = "sqlite+aiosqlite:///./rb_data/rentbase.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_echo: bool = False

    # Security Settings
    secret_key: str = Field(
        default=DEFAULT_SECRET_KEY,
        description="Secret key for JWT token signing",
    )
    access_token_expire_minutes: int = 60

    # CORS Settings
    cors_origins: list[str] = Field(default=["http://localhost:3000", "http://localhost:5173"])
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = Field(default=["*"])
    cors_allow_headers: list[str] = Field(default=["*"])

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Authorization Settings
    permission_cache_ttl_seconds: int = 300  # 5 minutes
    tenant_guard_mode: Literal["strict", "permissive"] = Field(
        default="strict",
        description="strict rejects tenant-scoped statements without a tenant filter, "
        "permissive logs a warning and lets them run",
    )

    # Tenant context headers
    tenant_header: str = "X-Tenant-Id"
    business_unit_header: str = "X-Business-Unit-Id"
    trusted_context_paths: list[str] = Field(
        default=["/api/v1/system"],
        description="Path prefixes where the tenant context is taken from the tenant header",
    )

    # Notification provider (see rentbase.infrastructure.notifications)
    notification_provider: str = "console"

    # Provision the permission catalog and system roles on startup
    auto_provision: bool = True

    # Superadmin Settings
    superadmin_email: str | None = Field(
        default=None,
        description="Email for initial superadmin creation (auto-created on startup if set)",
    )
    superadmin_password: str | None = Field(
        default=None,
        description="Password for initial superadmin creation (auto-created on startup if set)",
    )

    @field_validator("cors_origins", "trusted_context_paths", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: str | list[str]) -> list[str]:
        """Parse list settings from a comma-separated string or list."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("trusted_context_paths")
    @classmethod
    def validate_trusted_paths(cls, v: list[str]) -> list[str]:
        """Trusted paths must be absolute prefixes and never the root."""
        for path in v:
            if not path.startswith("/") or path == "/":
                raise ValueError(
                    f"Trusted context path '{path}' must be an absolute prefix other than '/'"
                )
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"

    @property
    def uses_sqlite(self) -> bool:
        """Check if the configured database is SQLite."""
        return self.database_url.startswith("sqlite")

    @model_validator(mode="after")
    def validate_sqlite_workers(self) -> "Settings":
        """Validate that SQLite is not used with multiple workers."""
        if self.workers > 1 and self.uses_sqlite:
            raise ValueError(
                "SQLite does not support multiple worker processes. "
                f"Requested {self.workers} workers, but SQLite requires workers=1. "
                "Either use --workers 1 or switch to PostgreSQL."
            )
        return self

    @model_validator(mode="after")
    def validate_production_secret(self) -> "Settings":
        """Refuse the placeholder signing key in production."""
        if self.is_production and self.secret_key == DEFAULT_SECRET_KEY:
            raise ValueError("RENTBASE_SECRET_KEY must be set in production")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Used by entry points (CLI, ASGI module) that have no explicit settings
    object. The application factory takes its settings as a parameter.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
