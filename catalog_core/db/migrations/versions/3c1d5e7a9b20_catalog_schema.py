"""Catalog schema: tenants, dropdown taxonomy, owning entities, junctions, attachments.

- tenants
- categories, values (partial unique indexes on active rows)
- properties, blog_posts, blog_categories, blog_tags, blog_videos, career_jobs,
  content_items, content_categories, content_tags, faq_categories, project_carousels
- property_amenities, property_configurations, property_price_ranges,
  blog_post_categories, blog_post_tags, blog_post_videos, project_carousel_items,
  content_category_mappings, content_tag_mappings
- seo_metadata, custom_field_values
"""

from typing import List, Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1d5e7a9b20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# NULL parents/tenants are indexed as this id so root and global rows collide in unique indexes.
NIL_UUID = "00000000-0000-0000-0000-000000000000"


def _nulls_match(column: str) -> sa.TextClause:
    return sa.text(f"coalesce({column}, '{NIL_UUID}')")


def _id() -> sa.Column:
    return sa.Column("id", sa.UUID(), primary_key=True, server_default=sa.text("uuid_generate_v4()"))


def _timestamps() -> List[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _tenant() -> List[sa.schema.SchemaItem]:
    return [
        sa.Column("tenant_id", sa.UUID(), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
    ]


def _value_ref(column: str, table: str) -> List[sa.schema.SchemaItem]:
    return [
        sa.Column(column, sa.UUID(), nullable=True),
        sa.ForeignKeyConstraint([column], ["values.id"], ondelete="SET NULL", name=f"fk_{table}_{column}_values"),
    ]


def _flag(name: str, default: str = "true") -> sa.Column:
    return sa.Column(name, sa.Boolean(), server_default=sa.text(default), nullable=False)


def _int(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), server_default=sa.text("0"), nullable=False)


# (table, left column, left target, right column, right target, extra columns)
JUNCTIONS = [
    ("property_amenities", "property_id", "properties", "amenity_id", "values", []),
    ("property_configurations", "property_id", "properties", "configuration_id", "values", []),
    ("property_price_ranges", "property_id", "properties", "price_range_id", "values", []),
    ("blog_post_categories", "post_id", "blog_posts", "category_id", "blog_categories", []),
    ("blog_post_tags", "post_id", "blog_posts", "tag_id", "blog_tags", []),
    ("blog_post_videos", "post_id", "blog_posts", "video_id", "blog_videos", ["display_order"]),
    ("project_carousel_items", "carousel_id", "project_carousels", "property_id", "properties", ["sort_order", "is_active"]),
    ("content_category_mappings", "content_item_id", "content_items", "content_category_id", "content_categories", []),
    ("content_tag_mappings", "content_item_id", "content_items", "content_tag_id", "content_tags", []),
]

TENANT_TABLES = [
    "properties",
    "blog_posts",
    "blog_categories",
    "blog_tags",
    "blog_videos",
    "career_jobs",
    "content_items",
    "content_categories",
    "content_tags",
    "faq_categories",
    "project_carousels",
    "seo_metadata",
    "custom_field_values",
]


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp";')

    op.create_table(
        "tenants",
        _id(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False),
        _flag("is_active"),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_tenants_name"),
        sa.UniqueConstraint("slug", name="uq_tenants_slug"),
    )

    # Dropdown taxonomy
    op.create_table(
        "categories",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("parent_id", sa.UUID(), nullable=True),
        _int("level"),
        _int("sort_order"),
        _flag("is_active"),
        _flag("is_customizable"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["parent_id"], ["categories.id"], ondelete="RESTRICT"),
        sa.CheckConstraint("level >= 0 AND level <= 1", name="ck_categories_level_range"),
    )
    op.create_index("ix_categories_parent_id", "categories", ["parent_id"])
    op.create_index(
        "uq_categories_name_parent_active",
        "categories",
        ["name", _nulls_match("parent_id")],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )

    op.create_table(
        "values",
        _id(),
        sa.Column("category_id", sa.UUID(), nullable=False),
        sa.Column("tenant_id", sa.UUID(), nullable=True),
        sa.Column("parent_id", sa.UUID(), nullable=True),
        sa.Column("value", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("color", sa.String(7), nullable=True),
        sa.Column("icon", sa.String(100), nullable=True),
        _int("sort_order"),
        _flag("is_active"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["parent_id"], ["values.id"], ondelete="RESTRICT"),
    )
    op.create_index("ix_values_category_id", "values", ["category_id"])
    op.create_index("ix_values_tenant_id", "values", ["tenant_id"])
    op.create_index("ix_values_parent_id", "values", ["parent_id"])
    op.create_index(
        "uq_values_category_tenant_slug_active",
        "values",
        ["category_id", _nulls_match("tenant_id"), "slug"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )

    # Owning entities
    op.create_table(
        "properties",
        _id(),
        *_tenant(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_value_ref("property_type_id", "properties"),
        *_value_ref("status_id", "properties"),
        *_value_ref("city_id", "properties"),
        *_value_ref("area_id", "properties"),
        _int("sort_order"),
        _flag("is_active"),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_properties_tenant_slug"),
    )
    op.create_table(
        "blog_posts",
        _id(),
        *_tenant(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), server_default=sa.text("'draft'"), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_blog_posts_tenant_slug"),
    )
    op.create_table(
        "blog_categories",
        _id(),
        *_tenant(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_blog_categories_tenant_slug"),
    )
    op.create_table(
        "blog_tags",
        _id(),
        *_tenant(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_blog_tags_tenant_slug"),
    )
    op.create_table(
        "blog_videos",
        _id(),
        *_tenant(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("url", sa.String(500), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "career_jobs",
        _id(),
        *_tenant(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_value_ref("department_id", "career_jobs"),
        *_value_ref("job_type_id", "career_jobs"),
        *_value_ref("city_id", "career_jobs"),
        _int("sort_order"),
        _flag("is_active"),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_career_jobs_tenant_slug"),
    )
    op.create_table(
        "content_items",
        _id(),
        *_tenant(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), server_default=sa.text("'draft'"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_content_items_tenant_slug"),
    )
    op.create_table(
        "content_categories",
        _id(),
        *_tenant(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("parent_id", sa.UUID(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["parent_id"], ["content_categories.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "uq_content_categories_tenant_parent_slug",
        "content_categories",
        ["tenant_id", _nulls_match("parent_id"), "slug"],
        unique=True,
    )
    op.create_table(
        "content_tags",
        _id(),
        *_tenant(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_content_tags_tenant_slug"),
    )
    op.create_table(
        "faq_categories",
        _id(),
        *_tenant(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        _int("sort_order"),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_faq_categories_tenant_slug"),
    )
    op.create_table(
        "project_carousels",
        _id(),
        *_tenant(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        *_value_ref("city_id", "project_carousels"),
        *_value_ref("area_id", "project_carousels"),
        _flag("is_active"),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_project_carousels_tenant_slug"),
    )

    # Junctions: both sides cascade, one row per pair
    for table, left, left_target, right, right_target, extras in JUNCTIONS:
        extra_columns = [_flag(name) if name == "is_active" else _int(name) for name in extras]
        op.create_table(
            table,
            _id(),
            sa.Column(left, sa.UUID(), nullable=False),
            sa.Column(right, sa.UUID(), nullable=False),
            *extra_columns,
            *_timestamps(),
            sa.ForeignKeyConstraint([left], [f"{left_target}.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint([right], [f"{right_target}.id"], ondelete="CASCADE"),
            sa.UniqueConstraint(left, right, name=f"uq_{table}_pair"),
        )
        op.create_index(f"ix_{table}_{left}", table, [left])
        op.create_index(f"ix_{table}_{right}", table, [right])

    # Polymorphic attachments (no FK on entity_id)
    op.create_table(
        "seo_metadata",
        _id(),
        *_tenant(),
        sa.Column("entity_type", sa.String(32), nullable=False),
        sa.Column("entity_id", sa.UUID(), nullable=False),
        sa.Column("page_type", sa.String(100), nullable=True),
        sa.Column("url_path", sa.String(500), nullable=True),
        sa.Column("meta_title", sa.String(255), nullable=True),
        sa.Column("meta_description", sa.String(500), nullable=True),
        sa.Column("meta_keywords", sa.String(500), nullable=True),
        sa.Column("og_title", sa.String(255), nullable=True),
        sa.Column("og_description", sa.String(500), nullable=True),
        sa.Column("og_image", sa.String(500), nullable=True),
        sa.Column("og_url", sa.String(500), nullable=True),
        sa.Column("og_type", sa.String(50), nullable=True),
        sa.Column("twitter_title", sa.String(255), nullable=True),
        sa.Column("twitter_description", sa.String(500), nullable=True),
        sa.Column("twitter_image", sa.String(500), nullable=True),
        sa.Column("twitter_card", sa.String(32), nullable=True),
        sa.Column("schema_markup", sa.JSON(), nullable=True),
        sa.Column("canonical_url", sa.String(500), nullable=True),
        sa.Column("robots", sa.String(100), nullable=True),
        sa.Column("priority", sa.Float(), nullable=True),
        sa.Column("change_frequency", sa.String(16), nullable=True),
        _flag("is_active"),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "entity_type", "entity_id", name="uq_seo_metadata_tenant_entity"),
    )
    op.create_index("ix_seo_metadata_entity", "seo_metadata", ["entity_type", "entity_id"])

    op.create_table(
        "custom_field_values",
        _id(),
        *_tenant(),
        sa.Column("entity_type", sa.String(32), nullable=False),
        sa.Column("entity_id", sa.UUID(), nullable=False),
        sa.Column("field_key_id", sa.UUID(), nullable=False),
        sa.Column("field_value", sa.Text(), nullable=False),
        _int("sort_order"),
        _flag("is_active"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["field_key_id"], ["values.id"], ondelete="RESTRICT"),
        sa.UniqueConstraint("entity_id", "field_key_id", name="uq_custom_field_values_entity_key"),
    )
    op.create_index("ix_custom_field_values_entity", "custom_field_values", ["entity_type", "entity_id"])

    for table in TENANT_TABLES:
        op.create_index(f"ix_{table}_tenant_id", table, ["tenant_id"])


def downgrade() -> None:
    for table in TENANT_TABLES:
        op.drop_index(f"ix_{table}_tenant_id", table_name=table)

    op.drop_table("custom_field_values")
    op.drop_table("seo_metadata")
    for table, *_ in reversed(JUNCTIONS):
        op.drop_table(table)
    for table in [
        "project_carousels",
        "faq_categories",
        "content_tags",
        "content_categories",
        "content_items",
        "career_jobs",
        "blog_videos",
        "blog_tags",
        "blog_categories",
        "blog_posts",
        "properties",
        "values",
        "categories",
        "tenants",
    ]:
        op.drop_table(table)
