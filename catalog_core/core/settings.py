from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application-level settings for the catalog service.

    This is separate from catalog_core.db.config.Settings, which focuses on the database layer.
    """

    # FastAPI metadata
    APP_NAME: str = Field(default="Catalog API")
    APP_DESCRIPTION: str = Field(
        default=(
            "Backend API for a multi-tenant content and property catalog. "
            "Provides taxonomies, cross-references and SEO/custom field attachments."
        )
    )
    APP_VERSION: str = Field(default="0.1.0")

    # CORS
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Comma-separated list or JSON array of allowed origins. Default: *",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True)
    CORS_ALLOW_METHODS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_HEADERS: List[str] = Field(default_factory=lambda: ["*"])

    # Startup behavior
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(
        default=True,
        description="If true, run Alembic migrations (upgrade head) at app startup.",
    )
    AUTO_SEED: bool = Field(
        default=False,
        description="If true, seed the default taxonomies after migrations.",
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Root log level name (DEBUG, INFO, ...)")

    # Slugs
    SLUG_MAX_LENGTH: int = Field(
        default=255, ge=8, description="Maximum slug length (matches the slug column width)."
    )
    SLUG_MAX_ATTEMPTS: int = Field(
        default=5,
        ge=1,
        description="Insert attempts before a slug collision is reported as a conflict.",
    )

    # Tenancy defaults (used by seeding)
    DEFAULT_TENANT_SLUG: str = Field(default="demo")
    DEFAULT_TENANT_NAME: str = Field(default="Demo Realty")

    # Environment label
    ENVIRONMENT: Optional[str] = Field(
        default=None, description="Environment label (dev/test/prod)"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """
        Accept both JSON array format and comma-separated formats for CORS origins.
        """
        if v is None:
            return ["*"]
        if isinstance(v, str):
            parts = [p.strip() for p in v.split(",") if p.strip()]
            return parts or ["*"]
        if isinstance(v, list):
            return v or ["*"]
        return ["*"]


# PUBLIC_INTERFACE
def get_app_settings() -> AppSettings:
    """Return a new AppSettings instance populated from environment variables."""
    return AppSettings()
