from __future__ import annotations

from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import select

from catalog_core.db.models.catalog import EntityKind
from .base import BaseRepository, eq_or_null


class EntityRepository(BaseRepository):
    """Lookups shared by every registered owning entity kind."""

    def __init__(self, session, kind: EntityKind) -> None:
        super().__init__(session)
        self.kind = kind
        self.model = kind.model

    async def get_by_slug(self, tenant_id: UUID, slug: str, parent_id: Optional[UUID] = None) -> Optional[Any]:
        stmt = select(self.model).where(self.model.tenant_id == tenant_id, self.model.slug == slug)
        if self.kind.parent_attr:
            stmt = stmt.where(eq_or_null(getattr(self.model, self.kind.parent_attr), parent_id))
        return await self.scalar_one_or_none(stmt)

    async def list_for_tenant(self, tenant_id: UUID) -> List[Any]:
        stmt = select(self.model).where(self.model.tenant_id == tenant_id).order_by(self.model.created_at.asc())
        return list(await self.scalars(stmt))

    async def list_child_ids(self, parent_ids: List[UUID]) -> List[UUID]:
        parent_column = getattr(self.model, self.kind.parent_attr)
        stmt = select(self.model.id).where(parent_column.in_(parent_ids))
        return list(await self.scalars(stmt))
