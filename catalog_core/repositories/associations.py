from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, func, select

from catalog_core.db.models.associations import Association
from .base import BaseRepository


class AssociationRepository(BaseRepository):
    """Data access for one registered junction table."""

    def __init__(self, session, association: Association) -> None:
        super().__init__(session)
        self.association = association
        self.model = association.model

    def _order_by(self, fields: Optional[Sequence[str]] = None) -> list:
        """Explicit `fields` ('-name' for descending) win over the sort column; creation time breaks ties."""
        assoc = self.association
        order = []
        if fields:
            for name in fields:
                column = getattr(self.model, name.lstrip("-"))
                order.append(column.desc() if name.startswith("-") else column.asc())
        elif assoc.sort_field:
            order.append(getattr(self.model, assoc.sort_field).asc())
        order.append(self.model.created_at.asc())
        return order

    async def get_link(self, left_id: UUID, right_id: UUID) -> Optional[Any]:
        assoc = self.association
        stmt = select(self.model).where(assoc.left_column == left_id, assoc.right_column == right_id)
        return await self.scalar_one_or_none(stmt)

    def build_link(self, left_id: UUID, right_id: UUID, metadata: Dict[str, Any]) -> Any:
        assoc = self.association
        return self.model(**{assoc.left_key: left_id, assoc.right_key: right_id}, **metadata)

    async def delete_link(self, left_id: UUID, right_id: UUID) -> int:
        assoc = self.association
        stmt = delete(self.model).where(assoc.left_column == left_id, assoc.right_column == right_id)
        result = await self.execute(stmt)
        return result.rowcount or 0

    async def list_for_left(self, left_id: UUID, order_by: Optional[Sequence[str]] = None) -> List[Any]:
        stmt = (
            select(self.model)
            .where(self.association.left_column == left_id)
            .order_by(*self._order_by(order_by))
        )
        return list(await self.scalars(stmt))

    async def list_for_right(self, right_id: UUID, order_by: Optional[Sequence[str]] = None) -> List[Any]:
        stmt = (
            select(self.model)
            .where(self.association.right_column == right_id)
            .order_by(*self._order_by(order_by))
        )
        return list(await self.scalars(stmt))

    async def next_sort_value(self, left_id: UUID) -> int:
        sort_column = getattr(self.model, self.association.sort_field)
        stmt = select(func.max(sort_column)).where(self.association.left_column == left_id)
        current = (await self.execute(stmt)).scalar_one()
        return 0 if current is None else int(current) + 1
