from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SeoFields(BaseModel):
    """
    SEO tag fields. Every field is optional: on upsert only the fields present
    in the payload are written.
    """
    page_type: Optional[str] = Field(None, max_length=100)
    url_path: Optional[str] = Field(None, max_length=500)
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = Field(None, max_length=500)
    meta_keywords: Optional[str] = Field(None, max_length=500)
    og_title: Optional[str] = Field(None, max_length=255)
    og_description: Optional[str] = Field(None, max_length=500)
    og_image: Optional[str] = Field(None, max_length=500)
    og_url: Optional[str] = Field(None, max_length=500)
    og_type: Optional[str] = Field(None, max_length=50)
    twitter_title: Optional[str] = Field(None, max_length=255)
    twitter_description: Optional[str] = Field(None, max_length=500)
    twitter_image: Optional[str] = Field(None, max_length=500)
    twitter_card: Optional[str] = Field(None, max_length=32)
    schema_markup: Optional[Dict[str, Any]] = Field(None, description="JSON-LD document")
    canonical_url: Optional[str] = Field(None, max_length=500)
    robots: Optional[str] = Field(None, max_length=100)
    priority: Optional[float] = Field(None, ge=0.0, le=1.0, description="Sitemap priority")
    change_frequency: Optional[str] = Field(None, max_length=16)
    is_active: Optional[bool] = Field(None)


class SeoRead(SeoFields):
    """Stored SEO attachment plus resolved values."""
    id: UUID
    tenant_id: UUID
    entity_type: str
    entity_id: UUID
    created_at: datetime
    updated_at: datetime
    effective: Dict[str, Optional[str]] = Field(
        default_factory=dict, description="Tag values after fallbacks (meta -> OG -> Twitter, default robots)"
    )

    class Config:
        from_attributes = True


class CustomFieldRead(BaseModel):
    id: UUID
    entity_type: str
    entity_id: UUID
    field_key_id: UUID
    field_value: str
    sort_order: int = 0
    is_active: bool = True

    class Config:
        from_attributes = True


class CustomFieldSet(BaseModel):
    """Upsert one custom field."""
    field_value: str = Field(..., min_length=1)
    sort_order: Optional[int] = Field(None)


class CustomFieldReplace(BaseModel):
    """Replace all custom fields of an entity: field key id -> value."""
    fields: Dict[UUID, str] = Field(default_factory=dict)
