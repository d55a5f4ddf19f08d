"""
Dropdown taxonomy: categories (two levels) and their values (two levels,
optionally tenant scoped).

Records are only ever soft-deleted. Reactivation is an explicit administrative
override that re-validates uniqueness, since another record may have claimed
the freed name or slug in the meantime.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from catalog_core.core.errors import ConflictError, NotFoundError, ValidationError
from catalog_core.db.models.taxonomy import MAX_CATEGORY_LEVEL, Category, Value
from catalog_core.db.models.tenant import Tenant
from catalog_core.repositories.taxonomy import CategoryRepository, ValueRepository
from catalog_core.schemas.taxonomy import CategoryNode
from catalog_core.services.base import BaseService
from catalog_core.services.slugs import SlugScope, UniquenessResolver

logger = logging.getLogger(__name__)


def value_scope(category_id: UUID, tenant_id: Optional[UUID]) -> SlugScope:
    """Values compete for slugs only within (category, tenant) among active rows."""
    return SlugScope.of(Value, active_only=True, category_id=category_id, tenant_id=tenant_id)


class TaxonomyService(BaseService):
    """
    Category management.

    Level is derived from the parent: no parent means level 0, an active level-0
    parent means level 1. Anything deeper is rejected.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.categories = CategoryRepository(session)
        self.values = ValueRepository(session)

    async def get_category(self, category_id: UUID) -> Category:
        category = await self.categories.get_category(category_id)
        if category is None:
            raise NotFoundError("category not found", details={"id": str(category_id)})
        return category

    async def get_category_by_name(self, name: str, parent_id: Optional[UUID] = None) -> Category:
        category = await self.categories.find_active_by_name(name, parent_id)
        if category is None:
            raise NotFoundError("category not found", details={"name": name})
        return category

    async def _level_for_parent(self, parent_id: Optional[UUID]) -> int:
        if parent_id is None:
            return 0
        parent = await self.categories.get_category(parent_id)
        if parent is None:
            raise ValidationError("parent category does not exist", details={"parent_id": str(parent_id)})
        if not parent.is_active:
            raise ValidationError("parent category is inactive", details={"parent_id": str(parent_id)})
        if parent.level >= MAX_CATEGORY_LEVEL:
            raise ValidationError(
                "parent category must be a root category",
                details={"parent_id": str(parent_id), "parent_level": parent.level},
            )
        return parent.level + 1

    async def _ensure_name_free(
        self, name: str, parent_id: Optional[UUID], exclude_id: Optional[UUID] = None
    ) -> None:
        existing = await self.categories.find_active_by_name(name, parent_id, exclude_id=exclude_id)
        if existing is not None:
            raise ConflictError(
                "category already exists",
                details={"name": name, "parent_id": str(parent_id) if parent_id else None},
            )

    # PUBLIC_INTERFACE
    async def create_category(
        self,
        name: str,
        parent_id: Optional[UUID] = None,
        is_customizable: bool = True,
        *,
        description: Optional[str] = None,
        sort_order: int = 0,
    ) -> Category:
        """Create a root or sub-category; (name, parent) must be free among active categories."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("category name is required")
        level = await self._level_for_parent(parent_id)
        await self._ensure_name_free(name, parent_id)
        category = await self.categories.create_category(
            name=name,
            parent_id=parent_id,
            level=level,
            is_customizable=is_customizable,
            description=description,
            sort_order=sort_order,
        )
        logger.info("Created category %s (level %d)", name, level)
        return category

    # PUBLIC_INTERFACE
    async def list_categories(
        self,
        *,
        level: Optional[int] = None,
        parent_id: Optional[UUID] = None,
        active_only: bool = True,
    ) -> List[Category]:
        """Categories ordered by sort_order then name."""
        return await self.categories.list_categories(
            level=level, parent_id=parent_id, active_only=active_only
        )

    async def update_category(
        self,
        category_id: UUID,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        sort_order: Optional[int] = None,
        is_customizable: Optional[bool] = None,
    ) -> Category:
        category = await self.get_category(category_id)
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("category name is required")
            if name != category.name:
                if category.is_active:
                    await self._ensure_name_free(name, category.parent_id, exclude_id=category.id)
                category.name = name
        if description is not None:
            category.description = description
        if sort_order is not None:
            category.sort_order = sort_order
        if is_customizable is not None:
            category.is_customizable = is_customizable
        await self.categories.flush()
        return category

    async def category_tree(self, *, active_only: bool = True) -> List[CategoryNode]:
        """Root categories with their sub-categories nested, both in display order."""
        rows = await self.categories.list_categories(active_only=active_only)
        nodes: Dict[UUID, CategoryNode] = OrderedDict()
        for row in rows:
            if row.level == 0:
                nodes[row.id] = CategoryNode.model_validate(row)
        for row in rows:
            if row.level == 1 and row.parent_id in nodes:
                nodes[row.parent_id].children.append(CategoryNode.model_validate(row))
        return list(nodes.values())

    # PUBLIC_INTERFACE
    async def deactivate_category(self, category_id: UUID, *, cascade: bool = True) -> Category:
        """
        Soft-delete a category.

        With cascade, its sub-categories and every value below them are deactivated
        too. Without cascade, active dependants make this a ConflictError.
        """
        category = await self.get_category(category_id)
        if not category.is_active:
            return category

        child_ids = await self.categories.list_active_children_ids(category.id)
        affected = [category.id, *child_ids]
        if not cascade:
            value_count = await self.categories.count_active_values(affected)
            if child_ids or value_count:
                raise ConflictError(
                    "category is still referenced",
                    details={"active_subcategories": len(child_ids), "active_values": value_count},
                )

        await self.values.deactivate_for_categories(affected)
        await self.categories.deactivate(affected)
        await self.session.refresh(category)
        logger.info("Deactivated category %s with %d sub-categories", category.name, len(child_ids))
        return category

    async def reactivate_category(self, category_id: UUID) -> Category:
        """Administrative override: bring a category back if its name and parent still allow it."""
        category = await self.get_category(category_id)
        if category.is_active:
            return category
        if category.parent_id is not None:
            parent = await self.get_category(category.parent_id)
            if not parent.is_active:
                raise ValidationError("parent category is inactive", details={"parent_id": str(parent.id)})
        await self._ensure_name_free(category.name, category.parent_id, exclude_id=category.id)
        category.is_active = True
        await self.categories.flush()
        logger.info("Reactivated category %s", category.name)
        return category


class ValueService(BaseService):
    """Dropdown values: scoped slugs, city > area style parent links, ordering."""

    def __init__(self, session: AsyncSession, resolver: Optional[UniquenessResolver] = None) -> None:
        super().__init__(session)
        self.categories = CategoryRepository(session)
        self.values = ValueRepository(session)
        self.resolver = resolver or UniquenessResolver(session)

    async def get_value(self, value_id: UUID) -> Value:
        value = await self.values.get_value(value_id)
        if value is None:
            raise NotFoundError("value not found", details={"id": str(value_id)})
        return value

    async def _validate_parent(
        self, parent_id: UUID, category_id: UUID, tenant_id: Optional[UUID]
    ) -> Value:
        parent = await self.values.get_value(parent_id)
        if parent is None:
            raise NotFoundError("parent value not found", details={"parent_id": str(parent_id)})
        if parent.category_id != category_id:
            raise ValidationError(
                "parent value belongs to a different category",
                details={"parent_category_id": str(parent.category_id), "category_id": str(category_id)},
            )
        if parent.parent_id is not None:
            raise ValidationError("parent value is itself a child", details={"parent_id": str(parent_id)})
        if parent.tenant_id is not None and parent.tenant_id != tenant_id:
            raise ValidationError("parent value belongs to another tenant", details={"parent_id": str(parent_id)})
        if not parent.is_active:
            raise ValidationError("parent value is inactive", details={"parent_id": str(parent_id)})
        return parent

    # PUBLIC_INTERFACE
    async def create_value(
        self,
        category_id: UUID,
        text: str,
        tenant_id: Optional[UUID] = None,
        parent_id: Optional[UUID] = None,
        *,
        sort_order: int = 0,
        color: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> Value:
        """Create a value with a slug unique within (category, tenant)."""
        text = (text or "").strip()
        base = self.resolver.base_slug(text)

        category = await self.categories.get_category(category_id)
        if category is None:
            raise NotFoundError("category not found", details={"id": str(category_id)})
        if not category.is_active:
            raise ValidationError("category is inactive", details={"category_id": str(category_id)})
        if tenant_id is not None and await self.session.get(Tenant, tenant_id) is None:
            raise NotFoundError("tenant not found", details={"tenant_id": str(tenant_id)})
        if tenant_id is not None and not category.is_customizable:
            raise ValidationError(
                "category does not accept tenant-specific values",
                details={"category": category.name},
            )
        if parent_id is not None:
            await self._validate_parent(parent_id, category_id, tenant_id)

        row = Value(
            category_id=category_id,
            tenant_id=tenant_id,
            parent_id=parent_id,
            value=text,
            sort_order=sort_order,
            color=color,
            icon=icon,
            is_active=True,
        )
        await self.resolver.assign(row, base, value_scope(category_id, tenant_id))
        logger.info("Created value %r in %s as %s", text, category.name, row.slug)
        return row

    # PUBLIC_INTERFACE
    async def rename_value(self, value_id: UUID, new_text: str) -> Value:
        """
        Change the text of a value. The slug is regenerated only when the text
        actually changed, and the value's own row never counts as a collision.
        """
        value = await self.get_value(value_id)
        new_text = (new_text or "").strip()
        if new_text == value.value:
            return value
        base = self.resolver.base_slug(new_text)
        scope = value_scope(value.category_id, value.tenant_id)
        await self.resolver.assign(value, base, scope, changes={"value": new_text})
        return value

    async def update_value(
        self,
        value_id: UUID,
        *,
        sort_order: Optional[int] = None,
        color: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> Value:
        value = await self.get_value(value_id)
        if sort_order is not None:
            value.sort_order = sort_order
        if color is not None:
            value.color = color
        if icon is not None:
            value.icon = icon
        await self.values.flush()
        return value

    # PUBLIC_INTERFACE
    async def resolve_path(self, value_id: UUID) -> List[Value]:
        """Root-to-leaf chain for breadcrumbs such as "City > Area"."""
        value = await self.get_value(value_id)
        if value.parent_id is None:
            return [value]
        parent = await self.get_value(value.parent_id)
        return [parent, value]

    async def list_values(
        self,
        category_id: UUID,
        *,
        tenant_id: Optional[UUID] = None,
        include_global: bool = True,
        parent_id: Optional[UUID] = None,
        roots_only: bool = False,
        active_only: bool = True,
    ) -> List[Value]:
        return await self.values.list_values(
            category_id=category_id,
            tenant_id=tenant_id,
            include_global=include_global,
            parent_id=parent_id,
            roots_only=roots_only,
            active_only=active_only,
        )

    async def list_values_by_category_name(
        self, name: str, *, tenant_id: Optional[UUID] = None, parent_id: Optional[UUID] = None
    ) -> List[Value]:
        category = await self.categories.find_active_by_name(name, None)
        if category is None:
            raise NotFoundError("category not found", details={"name": name})
        return await self.list_values(category.id, tenant_id=tenant_id, parent_id=parent_id)

    async def list_children(self, parent_id: UUID) -> List[Value]:
        await self.get_value(parent_id)
        return await self.values.list_children(parent_id)

    async def reorder_values(
        self, value_ids: Sequence[UUID], category_id: Optional[UUID] = None
    ) -> List[Value]:
        """Set sort_order to each id's position in `value_ids`."""
        found = {v.id: v for v in await self.values.list_by_ids(value_ids)}
        missing = [str(v) for v in value_ids if v not in found]
        if missing:
            raise NotFoundError("values not found", details={"ids": missing})
        if category_id is not None:
            foreign = [str(v.id) for v in found.values() if v.category_id != category_id]
            if foreign:
                raise ValidationError("values belong to another category", details={"ids": foreign})
        for index, value_id in enumerate(value_ids):
            found[value_id].sort_order = index
        await self.values.flush()
        return [found[v] for v in value_ids]

    async def deactivate_value(self, value_id: UUID) -> Value:
        """Soft-delete a value and its children."""
        value = await self.get_value(value_id)
        if not value.is_active:
            return value
        await self.values.deactivate_children(value.id)
        value.is_active = False
        await self.values.flush()
        return value

    async def reactivate_value(self, value_id: UUID) -> Value:
        """
        Administrative override. If another active value took the slug while this one
        was inactive, a fresh slug is resolved from the value text.
        """
        value = await self.get_value(value_id)
        if value.is_active:
            return value
        category = await self.categories.get_category(value.category_id)
        if category is None or not category.is_active:
            raise ValidationError("category is inactive", details={"category_id": str(value.category_id)})
        if value.parent_id is not None:
            parent = await self.get_value(value.parent_id)
            if not parent.is_active:
                raise ValidationError("parent value is inactive", details={"parent_id": str(parent.id)})
        scope = value_scope(value.category_id, value.tenant_id)
        base = value.slug
        if await self.resolver.repo.slug_taken(scope, value.slug, value.id):
            base = self.resolver.base_slug(value.value)
        await self.resolver.assign(value, base, scope, changes={"is_active": True})
        logger.info("Reactivated value %s as %s", value.id, value.slug)
        return value

    async def grouped_values(self, tenant_id: Optional[UUID] = None) -> Dict[str, List[Value]]:
        """Public dropdown payload: category name -> values visible to the tenant."""
        grouped: Dict[str, List[Value]] = OrderedDict()
        for category, value in await self.values.list_visible(tenant_id):
            grouped.setdefault(category.name, []).append(value)
        return grouped
