from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select

from catalog_core.db.models.attachments import CustomFieldValue, SeoMetadata
from .base import BaseRepository


class SeoMetadataRepository(BaseRepository):
    """SEO rows addressed by (tenant_id, entity_type, entity_id)."""

    async def get_for(self, tenant_id: UUID, entity_type: str, entity_id: UUID) -> Optional[SeoMetadata]:
        stmt = select(SeoMetadata).where(
            SeoMetadata.tenant_id == tenant_id,
            SeoMetadata.entity_type == entity_type,
            SeoMetadata.entity_id == entity_id,
        )
        return await self.scalar_one_or_none(stmt)

    async def delete_for(self, tenant_id: UUID, entity_type: str, entity_id: UUID) -> int:
        stmt = delete(SeoMetadata).where(
            SeoMetadata.tenant_id == tenant_id,
            SeoMetadata.entity_type == entity_type,
            SeoMetadata.entity_id == entity_id,
        )
        result = await self.execute(stmt)
        return result.rowcount or 0


class CustomFieldRepository(BaseRepository):
    """Custom field values of one entity."""

    async def list_for(self, tenant_id: UUID, entity_type: str, entity_id: UUID) -> List[CustomFieldValue]:
        stmt = (
            select(CustomFieldValue)
            .where(
                CustomFieldValue.tenant_id == tenant_id,
                CustomFieldValue.entity_type == entity_type,
                CustomFieldValue.entity_id == entity_id,
            )
            .order_by(CustomFieldValue.sort_order.asc(), CustomFieldValue.created_at.asc())
        )
        return list(await self.scalars(stmt))

    async def get_field(self, entity_id: UUID, field_key_id: UUID) -> Optional[CustomFieldValue]:
        stmt = select(CustomFieldValue).where(
            CustomFieldValue.entity_id == entity_id,
            CustomFieldValue.field_key_id == field_key_id,
        )
        return await self.scalar_one_or_none(stmt)

    async def delete_field(self, tenant_id: UUID, entity_type: str, entity_id: UUID, field_key_id: UUID) -> int:
        stmt = delete(CustomFieldValue).where(
            CustomFieldValue.tenant_id == tenant_id,
            CustomFieldValue.entity_type == entity_type,
            CustomFieldValue.entity_id == entity_id,
            CustomFieldValue.field_key_id == field_key_id,
        )
        result = await self.execute(stmt)
        return result.rowcount or 0

    async def delete_for(self, tenant_id: UUID, entity_type: str, entity_id: UUID) -> int:
        stmt = delete(CustomFieldValue).where(
            CustomFieldValue.tenant_id == tenant_id,
            CustomFieldValue.entity_type == entity_type,
            CustomFieldValue.entity_id == entity_id,
        )
        result = await self.execute(stmt)
        return result.rowcount or 0
