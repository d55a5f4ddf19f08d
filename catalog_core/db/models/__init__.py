"""
ORM models for tenants, the dropdown taxonomy, owning catalog entities,
junction tables and polymorphic attachments.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage, and that every owning entity kind and
association is registered in its lookup table.
"""

from .tenant import Tenant  # noqa: F401
from .taxonomy import (  # noqa: F401
    MAX_CATEGORY_LEVEL,
    Category,
    Value,
)
from .attachments import (  # noqa: F401
    EntityType,
    SeoMetadata,
    CustomFieldValue,
)
from .catalog import (  # noqa: F401
    ENTITY_KINDS,
    EntityKind,
    Property,
    BlogPost,
    BlogCategory,
    BlogTag,
    BlogVideo,
    CareerJob,
    ContentItem,
    ContentCategory,
    ContentTag,
    FaqCategory,
    ProjectCarousel,
)
from .associations import (  # noqa: F401
    ASSOCIATIONS,
    Association,
    PropertyAmenity,
    PropertyConfiguration,
    PropertyPriceRange,
    BlogPostCategory,
    BlogPostTag,
    BlogPostVideo,
    ProjectCarouselItem,
    ContentCategoryMapping,
    ContentTagMapping,
)
