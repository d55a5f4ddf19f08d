"""
Many-to-many links through registered junction tables.

One AssociationGraph instance serves one junction (e.g. "property-amenities").
Cascading deletes are left to the storage foreign keys; nothing here has to
run when an owner disappears.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_core.core.errors import ConflictError, NotFoundError, ValidationError
from catalog_core.db.models.associations import ASSOCIATIONS, Association
from catalog_core.db.models.taxonomy import Category, Value
from catalog_core.repositories.associations import AssociationRepository
from catalog_core.services.base import BaseService

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def get_association(name: str) -> Association:
    """Look up a registered junction by name."""
    try:
        return ASSOCIATIONS[name]
    except KeyError:
        raise NotFoundError("unknown association", details={"name": name, "known": sorted(ASSOCIATIONS)})


class AssociationGraph(BaseService):
    """Symmetric link operations over one junction table."""

    def __init__(self, session: AsyncSession, association: Union[Association, str]) -> None:
        super().__init__(session)
        if isinstance(association, str):
            association = get_association(association)
        self.association = association
        self.repo = AssociationRepository(session, association)

    def _clean_metadata(self, metadata: Dict[str, Any]) -> Dict[str, Any]:
        unknown = sorted(set(metadata) - set(self.association.metadata_fields))
        if unknown:
            raise ValidationError(
                "unsupported link metadata",
                details={"association": self.association.name, "fields": unknown},
            )
        return {k: v for k, v in metadata.items() if v is not None}

    async def _check_sides(self, left_id: UUID, right_id: UUID) -> None:
        assoc = self.association
        left = await self.session.get(assoc.left_model, left_id)
        if left is None:
            raise NotFoundError(
                f"{assoc.left_model.__tablename__} record not found", details={"id": str(left_id)}
            )
        right = await self.session.get(assoc.right_model, right_id)
        if right is None:
            raise NotFoundError(
                f"{assoc.right_model.__tablename__} record not found", details={"id": str(right_id)}
            )

        if assoc.right_category is not None and isinstance(right, Value):
            category = await self.session.get(Category, right.category_id)
            if category is None or category.name != assoc.right_category:
                raise ValidationError(
                    f"value must belong to the {assoc.right_category} category",
                    details={"value_id": str(right_id)},
                )
            if not right.is_active:
                raise ValidationError("value is inactive", details={"value_id": str(right_id)})

        left_tenant = getattr(left, "tenant_id", None)
        right_tenant = getattr(right, "tenant_id", None)
        if left_tenant is not None and right_tenant is not None and left_tenant != right_tenant:
            raise ValidationError(
                "cannot link records of different tenants",
                details={"left_id": str(left_id), "right_id": str(right_id)},
            )

    async def _insert(self, left_id: UUID, right_id: UUID, metadata: Dict[str, Any]) -> Any:
        if self.association.sort_field and self.association.sort_field not in metadata:
            metadata[self.association.sort_field] = await self.repo.next_sort_value(left_id)
        row = self.repo.build_link(left_id, right_id, metadata)
        async with self.session.begin_nested():
            self.session.add(row)
            await self.session.flush()
        return row

    # PUBLIC_INTERFACE
    async def link(self, left_id: UUID, right_id: UUID, **metadata: Any) -> Any:
        """Create a link; an existing pair is a ConflictError."""
        metadata = self._clean_metadata(metadata)
        await self._check_sides(left_id, right_id)
        if await self.repo.get_link(left_id, right_id) is not None:
            raise ConflictError(
                "link already exists",
                details={"association": self.association.name, "left_id": str(left_id), "right_id": str(right_id)},
            )
        try:
            return await self._insert(left_id, right_id, metadata)
        except IntegrityError:
            raise ConflictError(
                "link already exists",
                details={"association": self.association.name, "left_id": str(left_id), "right_id": str(right_id)},
            )

    # PUBLIC_INTERFACE
    async def upsert_link(self, left_id: UUID, right_id: UUID, **metadata: Any) -> Any:
        """Create a link, or update only its metadata when the pair already exists."""
        metadata = self._clean_metadata(metadata)
        existing = await self.repo.get_link(left_id, right_id)
        if existing is None:
            await self._check_sides(left_id, right_id)
            try:
                return await self._insert(left_id, right_id, dict(metadata))
            except IntegrityError:
                # A concurrent writer created the pair first; fall through to the update.
                existing = await self.repo.get_link(left_id, right_id)
                if existing is None:
                    raise
        for name, value in metadata.items():
            setattr(existing, name, value)
        await self.repo.flush()
        return existing

    # PUBLIC_INTERFACE
    async def unlink(self, left_id: UUID, right_id: UUID) -> bool:
        """Remove a link. Returns whether a row was deleted; absence is not an error."""
        deleted = await self.repo.delete_link(left_id, right_id)
        return deleted > 0

    def _order_fields(self, order_by: Optional[Sequence[str]]) -> Optional[List[str]]:
        if not order_by:
            return None
        assoc = self.association
        allowed = {assoc.left_key, assoc.right_key, "created_at", *assoc.metadata_fields}
        unknown = sorted(name for name in order_by if name.lstrip("-") not in allowed)
        if unknown:
            raise ValidationError(
                "unsupported link ordering",
                details={"association": assoc.name, "fields": unknown, "allowed": sorted(allowed)},
            )
        return list(order_by)

    # PUBLIC_INTERFACE
    async def list_right(self, left_id: UUID, order_by: Optional[Sequence[str]] = None) -> List[Any]:
        """
        Links of a left record.

        Ordered by the sort metadata when the junction has it, else by creation
        order. `order_by` overrides that with link columns ('-name' descending).
        """
        return await self.repo.list_for_left(left_id, self._order_fields(order_by))

    async def list_left(self, right_id: UUID, order_by: Optional[Sequence[str]] = None) -> List[Any]:
        return await self.repo.list_for_right(right_id, self._order_fields(order_by))

    async def replace_links(self, left_id: UUID, right_ids: Sequence[UUID]) -> List[Any]:
        """
        Make the left record's links exactly `right_ids`.

        Links that survive keep their metadata; on sortable junctions the sort
        value follows the position in `right_ids`.
        """
        wanted = list(dict.fromkeys(right_ids))
        current = {getattr(row, self.association.right_key): row for row in await self.repo.list_for_left(left_id)}
        for right_id in set(current) - set(wanted):
            await self.repo.delete_link(left_id, right_id)

        sort_field = self.association.sort_field
        for position, right_id in enumerate(wanted):
            row = current.get(right_id)
            if row is None:
                await self._check_sides(left_id, right_id)
                metadata = {sort_field: position} if sort_field else {}
                await self._insert(left_id, right_id, metadata)
            elif sort_field:
                setattr(row, sort_field, position)
        await self.repo.flush()
        logger.info(
            "Replaced %s links for %s: %d linked", self.association.name, left_id, len(wanted)
        )
        return await self.repo.list_for_left(left_id)

    async def reorder(self, left_id: UUID, right_ids: Sequence[UUID]) -> List[Any]:
        """Rewrite sort values so that links follow `right_ids`; the set must match exactly."""
        sort_field = self.association.sort_field
        if not sort_field:
            raise ValidationError("association is not ordered", details={"association": self.association.name})
        rows = {getattr(row, self.association.right_key): row for row in await self.repo.list_for_left(left_id)}
        if len(set(right_ids)) != len(right_ids) or set(right_ids) != set(rows):
            raise ValidationError(
                "reorder must list every linked record exactly once",
                details={"expected": len(rows), "received": len(right_ids)},
            )
        for position, right_id in enumerate(right_ids):
            setattr(rows[right_id], sort_field, position)
        await self.repo.flush()
        return await self.repo.list_for_left(left_id)
