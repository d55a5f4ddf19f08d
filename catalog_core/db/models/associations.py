"""
Junction tables for many-to-many links.

Every junction declares a unique constraint over its link columns and
ON DELETE CASCADE on both foreign keys, so deleting either owner removes its
links at the storage level. Each class registers its Association descriptor
where it is defined.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Type
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from catalog_core.db.base import Base, UUIDPkMixin, TimestampMixin
from .catalog import BlogCategory, BlogPost, BlogTag, BlogVideo, ContentCategory, ContentItem, ContentTag, ProjectCarousel, Property
from .taxonomy import Value


@dataclass(frozen=True)
class Association:
    """Shape of one junction: which columns link which models, and what metadata rides along."""

    name: str
    model: Type[Base]
    left_key: str
    right_key: str
    left_model: Type[Base]
    right_model: Type[Base]
    metadata_fields: Tuple[str, ...] = ()
    sort_field: Optional[str] = None
    # When the right side is a dropdown Value, the category it must belong to.
    right_category: Optional[str] = None

    @property
    def left_column(self) -> Any:
        return getattr(self.model, self.left_key)

    @property
    def right_column(self) -> Any:
        return getattr(self.model, self.right_key)


ASSOCIATIONS: Dict[str, Association] = {}


def association(
    name: str,
    *,
    left: Type[Base],
    right: Type[Base],
    left_key: str,
    right_key: str,
    metadata_fields: Tuple[str, ...] = (),
    sort_field: Optional[str] = None,
    right_category: Optional[str] = None,
) -> Callable[[Type[Base]], Type[Base]]:
    """Class decorator registering a junction model."""

    def decorator(cls: Type[Base]) -> Type[Base]:
        ASSOCIATIONS[name] = Association(
            name=name,
            model=cls,
            left_key=left_key,
            right_key=right_key,
            left_model=left,
            right_model=right,
            metadata_fields=metadata_fields,
            sort_field=sort_field,
            right_category=right_category,
        )
        return cls

    return decorator


def _fk(target: str) -> Any:
    return mapped_column(Uuid, ForeignKey(target, ondelete="CASCADE"), nullable=False, index=True)


@association(
    "property-amenities",
    left=Property,
    right=Value,
    left_key="property_id",
    right_key="amenity_id",
    right_category="amenities",
)
class PropertyAmenity(UUIDPkMixin, TimestampMixin, Base):
    __tablename__ = "property_amenities"
    __table_args__ = (UniqueConstraint("property_id", "amenity_id", name="uq_property_amenities_pair"),)

    property_id: Mapped[UUID] = _fk("properties.id")
    amenity_id: Mapped[UUID] = _fk("values.id")


@association(
    "property-configurations",
    left=Property,
    right=Value,
    left_key="property_id",
    right_key="configuration_id",
    right_category="configurations",
)
class PropertyConfiguration(UUIDPkMixin, TimestampMixin, Base):
    __tablename__ = "property_configurations"
    __table_args__ = (
        UniqueConstraint("property_id", "configuration_id", name="uq_property_configurations_pair"),
    )

    property_id: Mapped[UUID] = _fk("properties.id")
    configuration_id: Mapped[UUID] = _fk("values.id")


@association(
    "property-price-ranges",
    left=Property,
    right=Value,
    left_key="property_id",
    right_key="price_range_id",
    right_category="price_ranges",
)
class PropertyPriceRange(UUIDPkMixin, TimestampMixin, Base):
    __tablename__ = "property_price_ranges"
    __table_args__ = (
        UniqueConstraint("property_id", "price_range_id", name="uq_property_price_ranges_pair"),
    )

    property_id: Mapped[UUID] = _fk("properties.id")
    price_range_id: Mapped[UUID] = _fk("values.id")


@association(
    "blog-post-categories",
    left=BlogPost,
    right=BlogCategory,
    left_key="post_id",
    right_key="category_id",
)
class BlogPostCategory(UUIDPkMixin, TimestampMixin, Base):
    __tablename__ = "blog_post_categories"
    __table_args__ = (UniqueConstraint("post_id", "category_id", name="uq_blog_post_categories_pair"),)

    post_id: Mapped[UUID] = _fk("blog_posts.id")
    category_id: Mapped[UUID] = _fk("blog_categories.id")


@association(
    "blog-post-tags",
    left=BlogPost,
    right=BlogTag,
    left_key="post_id",
    right_key="tag_id",
)
class BlogPostTag(UUIDPkMixin, TimestampMixin, Base):
    __tablename__ = "blog_post_tags"
    __table_args__ = (UniqueConstraint("post_id", "tag_id", name="uq_blog_post_tags_pair"),)

    post_id: Mapped[UUID] = _fk("blog_posts.id")
    tag_id: Mapped[UUID] = _fk("blog_tags.id")


@association(
    "blog-post-videos",
    left=BlogPost,
    right=BlogVideo,
    left_key="post_id",
    right_key="video_id",
    metadata_fields=("display_order",),
    sort_field="display_order",
)
class BlogPostVideo(UUIDPkMixin, TimestampMixin, Base):
    __tablename__ = "blog_post_videos"
    __table_args__ = (UniqueConstraint("post_id", "video_id", name="uq_blog_post_videos_pair"),)

    post_id: Mapped[UUID] = _fk("blog_posts.id")
    video_id: Mapped[UUID] = _fk("blog_videos.id")
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")


@association(
    "project-carousel-items",
    left=ProjectCarousel,
    right=Property,
    left_key="carousel_id",
    right_key="property_id",
    metadata_fields=("sort_order", "is_active"),
    sort_field="sort_order",
)
class ProjectCarouselItem(UUIDPkMixin, TimestampMixin, Base):
    __tablename__ = "project_carousel_items"
    __table_args__ = (
        UniqueConstraint("carousel_id", "property_id", name="uq_project_carousel_items_pair"),
    )

    carousel_id: Mapped[UUID] = _fk("project_carousels.id")
    property_id: Mapped[UUID] = _fk("properties.id")
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")


@association(
    "content-categories",
    left=ContentItem,
    right=ContentCategory,
    left_key="content_item_id",
    right_key="content_category_id",
)
class ContentCategoryMapping(UUIDPkMixin, TimestampMixin, Base):
    __tablename__ = "content_category_mappings"
    __table_args__ = (
        UniqueConstraint("content_item_id", "content_category_id", name="uq_content_category_mappings_pair"),
    )

    content_item_id: Mapped[UUID] = _fk("content_items.id")
    content_category_id: Mapped[UUID] = _fk("content_categories.id")


@association(
    "content-tags",
    left=ContentItem,
    right=ContentTag,
    left_key="content_item_id",
    right_key="content_tag_id",
)
class ContentTagMapping(UUIDPkMixin, TimestampMixin, Base):
    __tablename__ = "content_tag_mappings"
    __table_args__ = (
        UniqueConstraint("content_item_id", "content_tag_id", name="uq_content_tag_mappings_pair"),
    )

    content_item_id: Mapped[UUID] = _fk("content_items.id")
    content_tag_id: Mapped[UUID] = _fk("content_tags.id")
