"""
Polymorphic attachments: SEO metadata and custom field values addressed by
(tenant_id, entity_type, entity_id).

entity_id carries no foreign key, so the owner's existence is not checked here;
owning-entity delete paths call purge_entity() in the same transaction instead.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_core.core.errors import ConflictError, NotFoundError, ValidationError
from catalog_core.db.models.attachments import CustomFieldValue, EntityType, SeoMetadata
from catalog_core.db.models.taxonomy import Category, Value
from catalog_core.repositories.attachments import CustomFieldRepository, SeoMetadataRepository
from catalog_core.services.base import BaseService

logger = logging.getLogger(__name__)

CUSTOM_FIELDS_CATEGORY = "custom_fields"
DEFAULT_ROBOTS = "index, follow"

_ADDRESS_COLUMNS = {"id", "tenant_id", "entity_type", "entity_id", "created_at", "updated_at"}
SEO_FIELDS = frozenset(c.key for c in SeoMetadata.__table__.columns if c.key not in _ADDRESS_COLUMNS)


# PUBLIC_INTERFACE
def coerce_entity_type(entity_type: Union[EntityType, str]) -> EntityType:
    """Validate an entity type against the closed set."""
    try:
        return EntityType(entity_type)
    except ValueError:
        raise ValidationError(
            "unknown entity type",
            details={"entity_type": str(entity_type), "allowed": [e.value for e in EntityType]},
        )


# PUBLIC_INTERFACE
def effective_seo(row: SeoMetadata) -> Dict[str, Optional[str]]:
    """Resolved tag values with the usual fallbacks applied."""
    title = row.meta_title or row.og_title
    description = row.meta_description or row.og_description
    return {
        "title": title,
        "description": description,
        "og_title": row.og_title or row.meta_title,
        "og_description": row.og_description or row.meta_description,
        "twitter_title": row.twitter_title or row.og_title or row.meta_title,
        "twitter_description": row.twitter_description or row.og_description or row.meta_description,
        "twitter_image": row.twitter_image or row.og_image,
        "robots": row.robots or DEFAULT_ROBOTS,
    }


class AttachmentResolver(BaseService):
    """Get, upsert and delete the SEO attachment of an entity."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = SeoMetadataRepository(session)

    # PUBLIC_INTERFACE
    async def get_attachment(
        self, tenant_id: UUID, entity_type: Union[EntityType, str], entity_id: UUID
    ) -> Optional[SeoMetadata]:
        kind = coerce_entity_type(entity_type)
        return await self.repo.get_for(tenant_id, kind.value, entity_id)

    # PUBLIC_INTERFACE
    async def upsert_attachment(
        self,
        tenant_id: UUID,
        entity_type: Union[EntityType, str],
        entity_id: UUID,
        fields: Mapping[str, Any],
    ) -> SeoMetadata:
        """Create the attachment, or merge only the provided fields into the existing one."""
        kind = coerce_entity_type(entity_type)
        unknown = sorted(set(fields) - SEO_FIELDS)
        if unknown:
            raise ValidationError("unknown SEO field", details={"fields": unknown})

        row = await self.repo.get_for(tenant_id, kind.value, entity_id)
        if row is None:
            row = SeoMetadata(tenant_id=tenant_id, entity_type=kind.value, entity_id=entity_id, **fields)
            try:
                async with self.session.begin_nested():
                    self.session.add(row)
                    await self.session.flush()
                logger.info("Created SEO metadata for %s %s", kind.value, entity_id)
                return row
            except IntegrityError:
                # A concurrent writer created the attachment first; merge into theirs.
                row = await self.repo.get_for(tenant_id, kind.value, entity_id)
                if row is None:
                    raise
        for name, value in fields.items():
            setattr(row, name, value)
        await self.repo.flush()
        return row

    # PUBLIC_INTERFACE
    async def delete_attachment(
        self, tenant_id: UUID, entity_type: Union[EntityType, str], entity_id: UUID
    ) -> bool:
        """Delete the attachment; deleting a missing one is not an error."""
        kind = coerce_entity_type(entity_type)
        return (await self.repo.delete_for(tenant_id, kind.value, entity_id)) > 0

    # PUBLIC_INTERFACE
    async def purge_entity(
        self, tenant_id: UUID, entity_type: Union[EntityType, str], entity_id: UUID
    ) -> int:
        """Delete every attachment (SEO and custom fields) of an entity."""
        kind = coerce_entity_type(entity_type)
        removed = await self.repo.delete_for(tenant_id, kind.value, entity_id)
        removed += await CustomFieldRepository(self.session).delete_for(tenant_id, kind.value, entity_id)
        if removed:
            logger.info("Purged %d attachments of %s %s", removed, kind.value, entity_id)
        return removed


class CustomFieldService(BaseService):
    """Key/value fields attached to an entity; keys are values of the custom_fields category."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = CustomFieldRepository(session)

    async def _field_key(self, tenant_id: UUID, field_key_id: UUID) -> Value:
        key = await self.session.get(Value, field_key_id)
        if key is None:
            raise NotFoundError("custom field key not found", details={"field_key_id": str(field_key_id)})
        category = await self.session.get(Category, key.category_id)
        if category is None or category.name != CUSTOM_FIELDS_CATEGORY:
            raise ValidationError(
                "field key must be a custom_fields value", details={"field_key_id": str(field_key_id)}
            )
        if not key.is_active:
            raise ValidationError("custom field key is inactive", details={"field_key_id": str(field_key_id)})
        if key.tenant_id is not None and key.tenant_id != tenant_id:
            raise ValidationError(
                "custom field key belongs to another tenant", details={"field_key_id": str(field_key_id)}
            )
        return key

    async def list_fields(
        self, tenant_id: UUID, entity_type: Union[EntityType, str], entity_id: UUID
    ) -> List[CustomFieldValue]:
        kind = coerce_entity_type(entity_type)
        return await self.repo.list_for(tenant_id, kind.value, entity_id)

    # PUBLIC_INTERFACE
    async def set_field(
        self,
        tenant_id: UUID,
        entity_type: Union[EntityType, str],
        entity_id: UUID,
        field_key_id: UUID,
        field_value: str,
        *,
        sort_order: Optional[int] = None,
    ) -> CustomFieldValue:
        """Upsert one field of an entity."""
        kind = coerce_entity_type(entity_type)
        await self._field_key(tenant_id, field_key_id)
        row = await self.repo.get_field(entity_id, field_key_id)
        if row is not None and (row.tenant_id != tenant_id or row.entity_type != kind.value):
            # entity_id alone keys the row; never overwrite a field of another tenant or entity type.
            raise ConflictError(
                "custom field belongs to another entity",
                details={"entity_id": str(entity_id), "field_key_id": str(field_key_id)},
            )
        if row is None:
            row = CustomFieldValue(
                tenant_id=tenant_id,
                entity_type=kind.value,
                entity_id=entity_id,
                field_key_id=field_key_id,
                field_value=field_value,
                sort_order=sort_order or 0,
            )
            await self.repo.add(row)
            return row
        row.field_value = field_value
        if sort_order is not None:
            row.sort_order = sort_order
        await self.repo.flush()
        return row

    async def replace_fields(
        self,
        tenant_id: UUID,
        entity_type: Union[EntityType, str],
        entity_id: UUID,
        fields: Mapping[UUID, str],
    ) -> List[CustomFieldValue]:
        """Make the entity's fields exactly `fields`; sort order follows mapping order."""
        kind = coerce_entity_type(entity_type)
        for row in await self.repo.list_for(tenant_id, kind.value, entity_id):
            if row.field_key_id not in fields:
                await self.repo.delete_field(tenant_id, kind.value, entity_id, row.field_key_id)
        for position, (field_key_id, field_value) in enumerate(fields.items()):
            await self.set_field(tenant_id, kind, entity_id, field_key_id, field_value, sort_order=position)
        return await self.repo.list_for(tenant_id, kind.value, entity_id)

    async def remove_field(
        self, tenant_id: UUID, entity_type: Union[EntityType, str], entity_id: UUID, field_key_id: UUID
    ) -> bool:
        kind = coerce_entity_type(entity_type)
        return (await self.repo.delete_field(tenant_id, kind.value, entity_id, field_key_id)) > 0
