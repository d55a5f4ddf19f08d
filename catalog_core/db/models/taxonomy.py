from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from catalog_core.db.base import Base, UUIDPkMixin, TimestampMixin, nulls_match

# Uniqueness only binds active rows, so a soft-deleted record frees its name/slug.
# NULL parent/tenant columns are indexed through nulls_match() so root and global rows collide too.
_ACTIVE_PG = text("is_active")
_ACTIVE_SQLITE = text("is_active = 1")

MAX_CATEGORY_LEVEL = 1


class Category(UUIDPkMixin, TimestampMixin, Base):
    """Dropdown category (e.g. property_types); level 0 root or level 1 sub-category."""
    __tablename__ = "categories"
    __table_args__ = (
        CheckConstraint(f"level >= 0 AND level <= {MAX_CATEGORY_LEVEL}", name="level_range"),
        Index(
            "uq_categories_name_parent_active",
            "name",
            nulls_match("parent_id"),
            unique=True,
            postgresql_where=_ACTIVE_PG,
            sqlite_where=_ACTIVE_SQLITE,
        ),
        Index("ix_categories_parent_id", "parent_id"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    parent_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=True
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    # Whether tenants may add their own values next to the global ones.
    is_customizable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")


class Value(UUIDPkMixin, TimestampMixin, Base):
    """Selectable item inside a category; tenant_id NULL means shared by all tenants."""
    __tablename__ = "values"
    __table_args__ = (
        Index(
            "uq_values_category_tenant_slug_active",
            "category_id",
            nulls_match("tenant_id"),
            "slug",
            unique=True,
            postgresql_where=_ACTIVE_PG,
            sqlite_where=_ACTIVE_SQLITE,
        ),
        Index("ix_values_category_id", "category_id"),
        Index("ix_values_tenant_id", "tenant_id"),
        Index("ix_values_parent_id", "parent_id"),
    )

    category_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False
    )
    tenant_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True
    )
    parent_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("values.id", ondelete="RESTRICT"), nullable=True
    )
    value: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
