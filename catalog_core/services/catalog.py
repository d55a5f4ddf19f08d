"""
Owning entities: creation with a scoped slug, explicit rename, lookup by slug and
deletion that also removes the entity's attachments.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from catalog_core.core.errors import NotFoundError, ValidationError
from catalog_core.db.models.catalog import ENTITY_KINDS, EntityKind, Property
from catalog_core.db.models.taxonomy import Value
from catalog_core.db.models.tenant import Tenant
from catalog_core.repositories.catalog import EntityRepository
from catalog_core.services.associations import AssociationGraph
from catalog_core.services.attachments import AttachmentResolver, CustomFieldService
from catalog_core.services.base import BaseService
from catalog_core.services.slugs import SlugScope, UniquenessResolver

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def get_entity_kind(name: str) -> EntityKind:
    """Look up a registered owning entity kind by name."""
    try:
        return ENTITY_KINDS[name]
    except KeyError:
        raise NotFoundError("unknown entity kind", details={"name": name, "known": sorted(ENTITY_KINDS)})


class EntityService(BaseService):
    """Slug-aware CRUD for one owning entity kind."""

    def __init__(
        self,
        session: AsyncSession,
        kind: Union[EntityKind, str],
        resolver: Optional[UniquenessResolver] = None,
    ) -> None:
        super().__init__(session)
        self.kind = get_entity_kind(kind) if isinstance(kind, str) else kind
        self.repo = EntityRepository(session, self.kind)
        self.resolver = resolver or UniquenessResolver(session)

    def _scope(self, row: Any) -> SlugScope:
        return SlugScope.of(self.kind.model, **{attr: getattr(row, attr) for attr in self.kind.scope_attrs})

    async def _check_refs(self, tenant_id: UUID, attrs: Dict[str, Any]) -> None:
        if await self.session.get(Tenant, tenant_id) is None:
            raise NotFoundError("tenant not found", details={"tenant_id": str(tenant_id)})
        columns = self.kind.model.__table__.c
        for name, value_id in attrs.items():
            if value_id is None or name not in columns:
                continue
            if any(fk.column.table is Value.__table__ for fk in columns[name].foreign_keys):
                if await self.session.get(Value, value_id) is None:
                    raise NotFoundError("dropdown value not found", details={name: str(value_id)})

    async def _check_parent(self, tenant_id: UUID, parent_id: Optional[UUID]) -> None:
        if parent_id is None:
            return
        parent = await self.session.get(self.kind.model, parent_id)
        if parent is None:
            raise NotFoundError(f"parent {self.kind.name} not found", details={"parent_id": str(parent_id)})
        if parent.tenant_id != tenant_id:
            raise ValidationError(
                f"parent {self.kind.name} belongs to another tenant", details={"parent_id": str(parent_id)}
            )

    # PUBLIC_INTERFACE
    async def get(self, entity_id: UUID) -> Any:
        row = await self.session.get(self.kind.model, entity_id)
        if row is None:
            raise NotFoundError(f"{self.kind.name} not found", details={"id": str(entity_id)})
        return row

    # PUBLIC_INTERFACE
    async def get_by_slug(self, tenant_id: UUID, slug: str, parent_id: Optional[UUID] = None) -> Any:
        row = await self.repo.get_by_slug(tenant_id, slug, parent_id)
        if row is None:
            raise NotFoundError(f"{self.kind.name} not found", details={"slug": slug})
        return row

    # PUBLIC_INTERFACE
    async def create(self, tenant_id: UUID, text: str, **attrs: Any) -> Any:
        """Create a row of this kind; the slug is derived from `text` and made unique in scope."""
        text = (text or "").strip()
        base = self.resolver.base_slug(text)
        await self._check_refs(tenant_id, attrs)
        if self.kind.parent_attr:
            await self._check_parent(tenant_id, attrs.get(self.kind.parent_attr))
        row = self.kind.model(tenant_id=tenant_id, **{self.kind.text_attr: text}, **attrs)
        await self.resolver.assign(row, base, self._scope(row))
        logger.info("Created %s %s with slug %r", self.kind.name, row.id, row.slug)
        return row

    # PUBLIC_INTERFACE
    async def rename(self, entity_id: UUID, new_text: str) -> Any:
        """Change the display text and regenerate the slug; unchanged text is a no-op."""
        row = await self.get(entity_id)
        new_text = (new_text or "").strip()
        if new_text == getattr(row, self.kind.text_attr):
            return row
        base = self.resolver.base_slug(new_text)
        await self.resolver.assign(row, base, self._scope(row), changes={self.kind.text_attr: new_text})
        return row

    async def _subtree_ids(self, entity_id: UUID) -> List[UUID]:
        ids = [entity_id]
        frontier = [entity_id]
        while frontier:
            frontier = await self.repo.list_child_ids(frontier)
            ids.extend(frontier)
        return ids

    # PUBLIC_INTERFACE
    async def delete(self, entity_id: UUID) -> None:
        """
        Delete the row. Links go with it through the junction foreign keys;
        attachments of the row (and of any rows removed by a parent cascade) are
        purged explicitly.
        """
        row = await self.get(entity_id)
        tenant_id = row.tenant_id
        if self.kind.attachment_type is not None:
            ids = await self._subtree_ids(entity_id) if self.kind.parent_attr else [entity_id]
            attachments = AttachmentResolver(self.session)
            for owned_id in ids:
                await attachments.purge_entity(tenant_id, self.kind.attachment_type, owned_id)
        await self.session.delete(row)
        await self.repo.flush()
        logger.info("Deleted %s %s", self.kind.name, entity_id)


class PropertyService(BaseService):
    """Composite property writes."""

    def __init__(self, session: AsyncSession, resolver: Optional[UniquenessResolver] = None) -> None:
        super().__init__(session)
        self.entities = EntityService(session, "property", resolver=resolver)

    # PUBLIC_INTERFACE
    async def create_property(
        self,
        tenant_id: UUID,
        title: str,
        *,
        amenity_ids: Sequence[UUID] = (),
        configuration_ids: Sequence[UUID] = (),
        price_range_ids: Sequence[UUID] = (),
        seo: Optional[Mapping[str, Any]] = None,
        custom_fields: Optional[Mapping[UUID, str]] = None,
        **attrs: Any,
    ) -> Property:
        """
        Create a property with its amenities, configurations, price ranges, SEO
        tags and custom fields. Runs inside a SAVEPOINT: any failure leaves none
        of it behind.
        """
        async with self.session.begin_nested():
            prop = await self.entities.create(tenant_id, title, **attrs)
            links: Dict[str, Sequence[UUID]] = {
                "property-amenities": amenity_ids,
                "property-configurations": configuration_ids,
                "property-price-ranges": price_range_ids,
            }
            for name, right_ids in links.items():
                if right_ids:
                    await AssociationGraph(self.session, name).replace_links(prop.id, right_ids)
            if seo:
                await AttachmentResolver(self.session).upsert_attachment(
                    tenant_id, self.entities.kind.attachment_type, prop.id, seo
                )
            if custom_fields:
                await CustomFieldService(self.session).replace_fields(
                    tenant_id, self.entities.kind.attachment_type, prop.id, custom_fields
                )
        return prop
