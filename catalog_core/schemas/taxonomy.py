from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CategoryRead(BaseModel):
    """Dropdown category read model."""
    id: UUID = Field(..., description="Category ID")
    name: str = Field(..., description="Category name (unique per parent among active categories)")
    description: Optional[str] = Field(None)
    parent_id: Optional[UUID] = Field(None, description="Parent category for level 1")
    level: int = Field(..., description="0 = root, 1 = sub-category")
    sort_order: int = Field(0)
    is_active: bool = Field(..., description="Active flag")
    is_customizable: bool = Field(..., description="Whether tenants may add their own values")
    created_at: datetime = Field(..., description="Created at")
    updated_at: datetime = Field(..., description="Updated at")

    class Config:
        from_attributes = True


class CategoryNode(BaseModel):
    """Category with nested sub-categories (tree view)."""
    id: UUID
    name: str
    level: int
    sort_order: int = 0
    is_active: bool = True
    is_customizable: bool = True
    children: List["CategoryNode"] = Field(default_factory=list)

    class Config:
        from_attributes = True


CategoryNode.model_rebuild()


class CategoryCreate(BaseModel):
    """Create category payload."""
    name: str = Field(..., min_length=2, max_length=100)
    parent_id: Optional[UUID] = Field(None, description="Root category id to create a sub-category")
    is_customizable: bool = Field(True)
    description: Optional[str] = Field(None)
    sort_order: int = Field(0)


class CategoryUpdate(BaseModel):
    """Partial category update."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None)
    sort_order: Optional[int] = Field(None)
    is_customizable: Optional[bool] = Field(None)


class ValueRead(BaseModel):
    """Dropdown value read model."""
    id: UUID = Field(..., description="Value ID")
    category_id: UUID = Field(..., description="Owning category")
    tenant_id: Optional[UUID] = Field(None, description="Owning tenant; null for global values")
    parent_id: Optional[UUID] = Field(None, description="Parent value (e.g. the city of an area)")
    value: str = Field(..., description="Display text")
    slug: str = Field(..., description="Slug unique within (category, tenant)")
    color: Optional[str] = Field(None)
    icon: Optional[str] = Field(None)
    sort_order: int = Field(0)
    is_active: bool = Field(...)
    created_at: datetime = Field(...)
    updated_at: datetime = Field(...)

    class Config:
        from_attributes = True


class ValueCreate(BaseModel):
    """Create value payload; tenant comes from the X-Tenant-ID header when scoped."""
    value: str = Field(..., min_length=1, max_length=255)
    parent_id: Optional[UUID] = Field(None)
    tenant_scoped: bool = Field(False, description="Create for the calling tenant instead of globally")
    sort_order: int = Field(0)
    color: Optional[str] = Field(None, pattern=r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
    icon: Optional[str] = Field(None, max_length=100)


class ValueUpdate(BaseModel):
    """Partial value update; a changed `value` regenerates the slug."""
    value: Optional[str] = Field(None, min_length=1, max_length=255)
    sort_order: Optional[int] = Field(None)
    color: Optional[str] = Field(None, pattern=r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
    icon: Optional[str] = Field(None, max_length=100)


class ValueReorder(BaseModel):
    """Ordered value ids; each id's position becomes its sort_order."""
    value_ids: List[UUID] = Field(..., min_length=1)


GroupedValues = Dict[str, List[ValueRead]]
