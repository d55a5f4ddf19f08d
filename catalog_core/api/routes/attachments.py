from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_core.core.deps import get_tenant_id, get_tenant_session
from catalog_core.core.errors import NotFoundError
from catalog_core.db.models.attachments import SeoMetadata
from catalog_core.db.session import transactional
from catalog_core.schemas.attachments import (
    CustomFieldRead,
    CustomFieldReplace,
    CustomFieldSet,
    SeoFields,
    SeoRead,
)
from catalog_core.schemas.common import ErrorResponse, MessageResponse
from catalog_core.services.attachments import AttachmentResolver, CustomFieldService, effective_seo

router = APIRouter(
    prefix="/attachments",
    tags=["Attachments"],
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)


def _seo_read(row: SeoMetadata) -> SeoRead:
    return SeoRead.model_validate(row).model_copy(update={"effective": effective_seo(row)})


# PUBLIC_INTERFACE
@router.get("/{entity_type}/{entity_id}/seo", response_model=SeoRead, summary="Get SEO metadata")
async def get_seo(
    entity_type: str = Path(..., description="property, content, page, category, tag or post"),
    entity_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_tenant_session),
) -> SeoRead:
    row = await AttachmentResolver(session).get_attachment(tenant_id, entity_type, entity_id)
    if row is None:
        raise NotFoundError("SEO metadata not found", details={"entity_type": entity_type, "entity_id": str(entity_id)})
    return _seo_read(row)


# PUBLIC_INTERFACE
@router.put(
    "/{entity_type}/{entity_id}/seo",
    response_model=SeoRead,
    summary="Create or merge SEO metadata",
    description="Only fields present in the body are written; others keep their stored value.",
)
async def upsert_seo(
    payload: SeoFields,
    entity_type: str = Path(...),
    entity_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_tenant_session),
) -> SeoRead:
    async with transactional(session):
        row = await AttachmentResolver(session).upsert_attachment(
            tenant_id, entity_type, entity_id, payload.model_dump(exclude_unset=True)
        )
    return _seo_read(row)


# PUBLIC_INTERFACE
@router.delete("/{entity_type}/{entity_id}/seo", response_model=MessageResponse, summary="Delete SEO metadata")
async def delete_seo(
    entity_type: str = Path(...),
    entity_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_tenant_session),
) -> MessageResponse:
    async with transactional(session):
        deleted = await AttachmentResolver(session).delete_attachment(tenant_id, entity_type, entity_id)
    return MessageResponse(message="Deleted" if deleted else "Nothing to delete", details={"deleted": deleted})


# PUBLIC_INTERFACE
@router.get(
    "/{entity_type}/{entity_id}/custom-fields",
    response_model=List[CustomFieldRead],
    summary="List custom fields",
)
async def list_custom_fields(
    entity_type: str = Path(...),
    entity_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_tenant_session),
) -> List[CustomFieldRead]:
    rows = await CustomFieldService(session).list_fields(tenant_id, entity_type, entity_id)
    return [CustomFieldRead.model_validate(x) for x in rows]


# PUBLIC_INTERFACE
@router.put(
    "/{entity_type}/{entity_id}/custom-fields",
    response_model=List[CustomFieldRead],
    summary="Replace custom fields",
)
async def replace_custom_fields(
    payload: CustomFieldReplace,
    entity_type: str = Path(...),
    entity_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_tenant_session),
) -> List[CustomFieldRead]:
    async with transactional(session):
        rows = await CustomFieldService(session).replace_fields(tenant_id, entity_type, entity_id, payload.fields)
    return [CustomFieldRead.model_validate(x) for x in rows]


# PUBLIC_INTERFACE
@router.put(
    "/{entity_type}/{entity_id}/custom-fields/{field_key_id}",
    response_model=CustomFieldRead,
    summary="Set one custom field",
)
async def set_custom_field(
    payload: CustomFieldSet,
    entity_type: str = Path(...),
    entity_id: UUID = Path(...),
    field_key_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_tenant_session),
) -> CustomFieldRead:
    async with transactional(session):
        row = await CustomFieldService(session).set_field(
            tenant_id, entity_type, entity_id, field_key_id, payload.field_value, sort_order=payload.sort_order
        )
    return CustomFieldRead.model_validate(row)


# PUBLIC_INTERFACE
@router.delete(
    "/{entity_type}/{entity_id}/custom-fields/{field_key_id}",
    response_model=MessageResponse,
    summary="Remove one custom field",
)
async def remove_custom_field(
    entity_type: str = Path(...),
    entity_id: UUID = Path(...),
    field_key_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_tenant_session),
) -> MessageResponse:
    async with transactional(session):
        deleted = await CustomFieldService(session).remove_field(tenant_id, entity_type, entity_id, field_key_id)
    return MessageResponse(message="Deleted" if deleted else "Nothing to delete", details={"deleted": deleted})
