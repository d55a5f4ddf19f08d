from __future__ import annotations

import re
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Database settings for the catalog store.

    Reads from environment variables (or .env via pydantic-settings):
      - POSTGRES_URL (takes precedence when set)
      - POSTGRES_USER / POSTGRES_PASSWORD / POSTGRES_DB
      - POSTGRES_HOST / POSTGRES_PORT
    """

    POSTGRES_URL: Optional[str] = Field(
        default=None, description="If provided, full PostgreSQL connection URL."
    )
    POSTGRES_USER: Optional[str] = Field(default=None, description="DB username")
    POSTGRES_PASSWORD: Optional[str] = Field(default=None, description="DB password")
    POSTGRES_DB: Optional[str] = Field(default=None, description="Database name")
    POSTGRES_PORT: Optional[int] = Field(
        default=5432, description="Database port (default 5432)"
    )
    POSTGRES_HOST: Optional[str] = Field(
        default="localhost", description="Database host (default localhost)"
    )

    # SQLAlchemy engine options
    SQL_ECHO: bool = Field(
        default=False, description="Echo SQL statements for debugging (default False)"
    )
    DB_POOL_SIZE: int = Field(default=5, ge=1, description="Connection pool size")
    DB_COMMAND_TIMEOUT: Optional[float] = Field(
        default=30.0,
        description="asyncpg per-statement timeout in seconds; None disables it.",
    )

    ENVIRONMENT: Optional[str] = Field(
        default=None, description="Environment label (dev/test/prod)"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @property
    def database_url(self) -> str:
        """
        Compute the base (sync-neutral) database URL. Will prefer POSTGRES_URL
        if present, otherwise construct from individual POSTGRES_* variables.
        """
        if self.POSTGRES_URL:
            return self.POSTGRES_URL

        if not all([self.POSTGRES_USER, self.POSTGRES_PASSWORD, self.POSTGRES_DB]):
            raise ValueError(
                "Database configuration missing. Ensure POSTGRES_URL or "
                "POSTGRES_USER, POSTGRES_PASSWORD, and POSTGRES_DB are set in the environment."
            )
        host = self.POSTGRES_HOST or "localhost"
        port = self.POSTGRES_PORT or 5432
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{host}:{port}/{self.POSTGRES_DB}"

    @property
    def async_database_url(self) -> str:
        """Database URL rewritten to the asyncpg driver used by the AsyncEngine."""
        url = self.database_url
        if url.startswith("postgresql+asyncpg://"):
            return url
        return re.sub(r"^postgresql(\+\w+)?://", "postgresql+asyncpg://", url)

    @property
    def sync_database_url(self) -> str:
        """Driverless postgresql:// URL for Alembic offline mode."""
        return re.sub(r"^postgresql\+\w+://", "postgresql://", self.database_url)

    @property
    def connect_args(self) -> dict:
        """Driver connect arguments (asyncpg command timeout)."""
        if self.DB_COMMAND_TIMEOUT is None:
            return {}
        return {"command_timeout": self.DB_COMMAND_TIMEOUT}


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return a settings object populated from the environment."""
    return Settings()
