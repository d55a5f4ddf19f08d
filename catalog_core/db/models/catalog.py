"""
Owning entities: the records that carry their own slug and own links/attachments.

Each class registers itself as an EntityKind where it is defined; services look
kinds up by name instead of relying on a central wiring routine.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple, Type
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from catalog_core.db.base import Base, UUIDPkMixin, TimestampMixin, TenantMixin, nulls_match
from .attachments import EntityType


@dataclass(frozen=True)
class EntityKind:
    """How a model participates in slugging and attachment cleanup."""

    name: str
    model: Type[Base]
    text_attr: str
    # Extra column that narrows the slug scope beyond tenant_id (e.g. parent_id).
    parent_attr: Optional[str] = None
    attachment_type: Optional[EntityType] = None

    @property
    def scope_attrs(self) -> Tuple[str, ...]:
        if self.parent_attr:
            return ("tenant_id", self.parent_attr)
        return ("tenant_id",)


ENTITY_KINDS: Dict[str, EntityKind] = {}


def owning_entity(
    name: str,
    *,
    text_attr: str = "title",
    parent_attr: Optional[str] = None,
    attachment_type: Optional[EntityType] = None,
) -> Callable[[Type[Base]], Type[Base]]:
    """Class decorator registering a model as a slugged owning entity."""

    def decorator(cls: Type[Base]) -> Type[Base]:
        ENTITY_KINDS[name] = EntityKind(
            name=name,
            model=cls,
            text_attr=text_attr,
            parent_attr=parent_attr,
            attachment_type=attachment_type,
        )
        return cls

    return decorator


@owning_entity("property", attachment_type=EntityType.PROPERTY)
class Property(UUIDPkMixin, TenantMixin, TimestampMixin, Base):
    """Real-estate project/listing."""
    __tablename__ = "properties"
    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_properties_tenant_slug"),)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    property_type_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("values.id", ondelete="SET NULL"), nullable=True)
    status_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("values.id", ondelete="SET NULL"), nullable=True)
    city_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("values.id", ondelete="SET NULL"), nullable=True)
    area_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("values.id", ondelete="SET NULL"), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")


@owning_entity("blog_post", attachment_type=EntityType.POST)
class BlogPost(UUIDPkMixin, TenantMixin, TimestampMixin, Base):
    """Blog article."""
    __tablename__ = "blog_posts"
    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_blog_posts_tenant_slug"),)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    excerpt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft", server_default="draft")
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


@owning_entity("blog_category", text_attr="name", attachment_type=EntityType.CATEGORY)
class BlogCategory(UUIDPkMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "blog_categories"
    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_blog_categories_tenant_slug"),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


@owning_entity("blog_tag", text_attr="name", attachment_type=EntityType.TAG)
class BlogTag(UUIDPkMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "blog_tags"
    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_blog_tags_tenant_slug"),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)


class BlogVideo(UUIDPkMixin, TenantMixin, TimestampMixin, Base):
    """Embeddable video; linked to posts, never addressed by slug."""
    __tablename__ = "blog_videos"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(500), nullable=False)


@owning_entity("career_job")
class CareerJob(UUIDPkMixin, TenantMixin, TimestampMixin, Base):
    """Job opening; department, job type and city are dropdown values."""
    __tablename__ = "career_jobs"
    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_career_jobs_tenant_slug"),)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    department_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("values.id", ondelete="SET NULL"), nullable=True)
    job_type_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("values.id", ondelete="SET NULL"), nullable=True)
    city_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("values.id", ondelete="SET NULL"), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")


@owning_entity("content_item", attachment_type=EntityType.CONTENT)
class ContentItem(UUIDPkMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "content_items"
    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_content_items_tenant_slug"),)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft", server_default="draft")


@owning_entity(
    "content_category",
    text_attr="name",
    parent_attr="parent_id",
    attachment_type=EntityType.CATEGORY,
)
class ContentCategory(UUIDPkMixin, TenantMixin, TimestampMixin, Base):
    """Content category; slugs are unique among siblings."""
    __tablename__ = "content_categories"
    __table_args__ = (
        Index(
            "uq_content_categories_tenant_parent_slug",
            "tenant_id",
            nulls_match("parent_id"),
            "slug",
            unique=True,
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("content_categories.id", ondelete="CASCADE"), nullable=True
    )


@owning_entity("content_tag", text_attr="name", attachment_type=EntityType.TAG)
class ContentTag(UUIDPkMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "content_tags"
    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_content_tags_tenant_slug"),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)


@owning_entity("faq_category", text_attr="name", attachment_type=EntityType.CATEGORY)
class FaqCategory(UUIDPkMixin, TenantMixin, TimestampMixin, Base):
    __tablename__ = "faq_categories"
    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_faq_categories_tenant_slug"),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")


@owning_entity("project_carousel", text_attr="name")
class ProjectCarousel(UUIDPkMixin, TenantMixin, TimestampMixin, Base):
    """Curated, ordered list of properties, optionally pinned to a city/area."""
    __tablename__ = "project_carousels"
    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_project_carousels_tenant_slug"),)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    city_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("values.id", ondelete="SET NULL"), nullable=True)
    area_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("values.id", ondelete="SET NULL"), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
