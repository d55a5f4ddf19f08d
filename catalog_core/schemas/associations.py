from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AssociationInfo(BaseModel):
    """A registered junction and what it connects."""
    name: str = Field(..., description="Association name used in URLs")
    left: str = Field(..., description="Left-side table")
    right: str = Field(..., description="Right-side table")
    metadata_fields: List[str] = Field(default_factory=list)
    sort_field: Optional[str] = Field(None, description="Metadata column that orders the links, if any")
    right_category: Optional[str] = Field(None, description="Required dropdown category of right-side values")


class LinkRead(BaseModel):
    """One junction row."""
    left_id: UUID
    right_id: UUID
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class LinkCreate(BaseModel):
    """Link payload; metadata keys must be declared by the association."""
    right_id: UUID
    metadata: Dict[str, Any] = Field(default_factory=dict)


class LinkSet(BaseModel):
    """Full ordered list of right-side ids (replace and reorder)."""
    right_ids: List[UUID] = Field(default_factory=list)
