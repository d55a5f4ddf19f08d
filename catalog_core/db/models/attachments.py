from __future__ import annotations

import enum
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import JSON, Boolean, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from catalog_core.db.base import Base, UUIDPkMixin, TimestampMixin, TenantMixin


class EntityType(str, enum.Enum):
    """Closed set of owner kinds an attachment may point at."""

    PROPERTY = "property"
    CONTENT = "content"
    PAGE = "page"
    CATEGORY = "category"
    TAG = "tag"
    POST = "post"


class SeoMetadata(UUIDPkMixin, TenantMixin, TimestampMixin, Base):
    """
    SEO tags for any entity, addressed by (tenant_id, entity_type, entity_id).

    entity_type is plain text at the storage layer; the application validates it
    against EntityType. There is no FK on entity_id.
    """
    __tablename__ = "seo_metadata"
    __table_args__ = (
        UniqueConstraint("tenant_id", "entity_type", "entity_id", name="uq_seo_metadata_tenant_entity"),
        Index("ix_seo_metadata_entity", "entity_type", "entity_id"),
    )

    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    page_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    url_path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    meta_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    meta_description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    meta_keywords: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    og_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    og_description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    og_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    og_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    og_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    twitter_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    twitter_description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    twitter_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    twitter_card: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    schema_markup: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    canonical_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    robots: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    priority: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    change_frequency: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")


class CustomFieldValue(UUIDPkMixin, TenantMixin, TimestampMixin, Base):
    """Free-form field attached to an entity; the key is a Value in the custom_fields category."""
    __tablename__ = "custom_field_values"
    __table_args__ = (
        UniqueConstraint("entity_id", "field_key_id", name="uq_custom_field_values_entity_key"),
        Index("ix_custom_field_values_entity", "entity_type", "entity_id"),
    )

    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    field_key_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("values.id", ondelete="RESTRICT"), nullable=False
    )
    field_value: Mapped[str] = mapped_column(Text, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
