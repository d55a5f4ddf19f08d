from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .attachments import SeoFields


class EntityRead(BaseModel):
    """Any owning entity, reduced to its slugged identity."""
    id: UUID
    kind: str
    tenant_id: UUID
    text: str = Field(..., description="Title or name the slug is derived from")
    slug: str
    parent_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime


class EntityCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=255)
    parent_id: Optional[UUID] = Field(None, description="Parent record for kinds that nest (content categories)")


class EntityRename(BaseModel):
    text: str = Field(..., min_length=1, max_length=255)


class PropertyCreate(BaseModel):
    """Create a property with its links and attachments in one request."""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    property_type_id: Optional[UUID] = None
    status_id: Optional[UUID] = None
    city_id: Optional[UUID] = None
    area_id: Optional[UUID] = None
    sort_order: int = 0
    amenity_ids: List[UUID] = Field(default_factory=list)
    configuration_ids: List[UUID] = Field(default_factory=list)
    price_range_ids: List[UUID] = Field(default_factory=list)
    seo: Optional[SeoFields] = None
    custom_fields: Dict[UUID, str] = Field(default_factory=dict)


class PropertyRead(BaseModel):
    id: UUID
    tenant_id: UUID
    title: str
    slug: str
    description: Optional[str] = None
    property_type_id: Optional[UUID] = None
    status_id: Optional[UUID] = None
    city_id: Optional[UUID] = None
    area_id: Optional[UUID] = None
    sort_order: int = 0
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
