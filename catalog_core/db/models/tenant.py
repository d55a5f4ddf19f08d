from __future__ import annotations

from sqlalchemy import Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column

from catalog_core.db.base import Base, UUIDPkMixin, TimestampMixin


class Tenant(UUIDPkMixin, TimestampMixin, Base):
    """Client organization; every scoped record hangs off one."""
    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
