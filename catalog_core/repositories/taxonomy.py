from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select, update

from catalog_core.db.models.taxonomy import Category, Value
from .base import BaseRepository, eq_or_null


class CategoryRepository(BaseRepository):
    """Repository for dropdown categories."""

    async def get_category(self, category_id: UUID) -> Optional[Category]:
        return await self.get(Category, category_id)

    async def find_active_by_name(
        self, name: str, parent_id: Optional[UUID], *, exclude_id: Optional[UUID] = None
    ) -> Optional[Category]:
        stmt = select(Category).where(
            Category.name == name,
            eq_or_null(Category.parent_id, parent_id),
            Category.is_active.is_(True),
        )
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)
        return await self.scalar_one_or_none(stmt.limit(1))

    async def list_categories(
        self,
        *,
        level: Optional[int] = None,
        parent_id: Optional[UUID] = None,
        active_only: bool = True,
    ) -> List[Category]:
        stmt = select(Category)
        if level is not None:
            stmt = stmt.where(Category.level == level)
        if parent_id is not None:
            stmt = stmt.where(Category.parent_id == parent_id)
        if active_only:
            stmt = stmt.where(Category.is_active.is_(True))
        stmt = stmt.order_by(Category.sort_order.asc(), Category.name.asc())
        return list(await self.scalars(stmt))

    async def list_active_children_ids(self, category_id: UUID) -> List[UUID]:
        stmt = select(Category.id).where(
            Category.parent_id == category_id, Category.is_active.is_(True)
        )
        return list(await self.scalars(stmt))

    async def count_active_values(self, category_ids: Sequence[UUID]) -> int:
        if not category_ids:
            return 0
        stmt = select(func.count(Value.id)).where(
            Value.category_id.in_(list(category_ids)), Value.is_active.is_(True)
        )
        result = await self.execute(stmt)
        return int(result.scalar_one())

    async def deactivate(self, category_ids: Sequence[UUID]) -> None:
        if not category_ids:
            return
        stmt = (
            update(Category)
            .where(Category.id.in_(list(category_ids)))
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        await self.execute(stmt)

    async def create_category(
        self,
        *,
        name: str,
        parent_id: Optional[UUID],
        level: int,
        is_customizable: bool,
        description: Optional[str],
        sort_order: int,
    ) -> Category:
        row = Category(
            name=name,
            parent_id=parent_id,
            level=level,
            is_customizable=is_customizable,
            description=description,
            sort_order=sort_order,
            is_active=True,
        )
        await self.add(row)
        return row


class ValueRepository(BaseRepository):
    """Repository for dropdown values."""

    async def get_value(self, value_id: UUID) -> Optional[Value]:
        return await self.get(Value, value_id)

    async def list_values(
        self,
        *,
        category_id: UUID,
        tenant_id: Optional[UUID] = None,
        include_global: bool = True,
        parent_id: Optional[UUID] = None,
        roots_only: bool = False,
        active_only: bool = True,
    ) -> List[Value]:
        stmt = select(Value).where(Value.category_id == category_id)
        if tenant_id is None:
            stmt = stmt.where(Value.tenant_id.is_(None))
        elif include_global:
            stmt = stmt.where(or_(Value.tenant_id.is_(None), Value.tenant_id == tenant_id))
        else:
            stmt = stmt.where(Value.tenant_id == tenant_id)
        if parent_id is not None:
            stmt = stmt.where(Value.parent_id == parent_id)
        elif roots_only:
            stmt = stmt.where(Value.parent_id.is_(None))
        if active_only:
            stmt = stmt.where(Value.is_active.is_(True))
        stmt = stmt.order_by(Value.sort_order.asc(), Value.value.asc())
        return list(await self.scalars(stmt))

    async def list_children(self, parent_id: UUID, *, active_only: bool = True) -> List[Value]:
        stmt = select(Value).where(Value.parent_id == parent_id)
        if active_only:
            stmt = stmt.where(Value.is_active.is_(True))
        stmt = stmt.order_by(Value.sort_order.asc(), Value.value.asc())
        return list(await self.scalars(stmt))

    async def list_by_ids(self, value_ids: Iterable[UUID]) -> List[Value]:
        ids = list(value_ids)
        if not ids:
            return []
        return list(await self.scalars(select(Value).where(Value.id.in_(ids))))

    async def list_visible(self, tenant_id: Optional[UUID]) -> List[Tuple[Category, Value]]:
        """Active values of active categories visible to a tenant (global + its own)."""
        stmt = select(Category, Value).join(Value, Value.category_id == Category.id).where(
            Category.is_active.is_(True), Value.is_active.is_(True)
        )
        if tenant_id is None:
            stmt = stmt.where(Value.tenant_id.is_(None))
        else:
            stmt = stmt.where(or_(Value.tenant_id.is_(None), Value.tenant_id == tenant_id))
        stmt = stmt.order_by(
            Category.sort_order.asc(), Category.name.asc(), Value.sort_order.asc(), Value.value.asc()
        )
        result = await self.execute(stmt)
        return [(c, v) for c, v in result.all()]

    async def deactivate_for_categories(self, category_ids: Sequence[UUID]) -> None:
        if not category_ids:
            return
        stmt = (
            update(Value)
            .where(Value.category_id.in_(list(category_ids)), Value.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        await self.execute(stmt)

    async def deactivate_children(self, parent_id: UUID) -> None:
        stmt = (
            update(Value)
            .where(Value.parent_id == parent_id, Value.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        await self.execute(stmt)
