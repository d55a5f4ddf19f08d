from __future__ import annotations

from typing import Any, List
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_core.core.deps import get_tenant_id, get_tenant_session
from catalog_core.core.errors import NotFoundError
from catalog_core.db.session import transactional
from catalog_core.schemas.catalog import EntityCreate, EntityRead, EntityRename, PropertyCreate, PropertyRead
from catalog_core.schemas.common import ErrorResponse, MessageResponse
from catalog_core.services.catalog import EntityService, PropertyService

router = APIRouter(
    tags=["Catalog"],
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)


def _entity_read(svc: EntityService, row: Any) -> EntityRead:
    kind = svc.kind
    return EntityRead(
        id=row.id,
        kind=kind.name,
        tenant_id=row.tenant_id,
        text=getattr(row, kind.text_attr),
        slug=row.slug,
        parent_id=getattr(row, kind.parent_attr) if kind.parent_attr else None,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


async def _owned(svc: EntityService, tenant_id: UUID, entity_id: UUID) -> Any:
    row = await svc.get(entity_id)
    if row.tenant_id != tenant_id:
        raise NotFoundError(f"{svc.kind.name} not found", details={"id": str(entity_id)})
    return row


# PUBLIC_INTERFACE
@router.post(
    "/properties",
    response_model=PropertyRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create property",
    description="Creates the property with its amenities, configurations, price ranges, SEO and custom fields "
    "in one transaction.",
)
async def create_property(
    payload: PropertyCreate,
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_tenant_session),
) -> PropertyRead:
    data = payload.model_dump(exclude={"title", "amenity_ids", "configuration_ids", "price_range_ids", "seo", "custom_fields"})
    async with transactional(session):
        prop = await PropertyService(session).create_property(
            tenant_id,
            payload.title,
            amenity_ids=payload.amenity_ids,
            configuration_ids=payload.configuration_ids,
            price_range_ids=payload.price_range_ids,
            seo=payload.seo.model_dump(exclude_unset=True) if payload.seo else None,
            custom_fields=payload.custom_fields,
            **data,
        )
    return PropertyRead.model_validate(prop)


# PUBLIC_INTERFACE
@router.post(
    "/entities/{kind}",
    response_model=EntityRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create an owning entity",
    description="Creates a blog post, tag, content category, ... with a slug unique for the tenant.",
)
async def create_entity(
    payload: EntityCreate,
    kind: str = Path(..., description="Registered entity kind, e.g. blog_post"),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_tenant_session),
) -> EntityRead:
    svc = EntityService(session, kind)
    attrs = {svc.kind.parent_attr: payload.parent_id} if svc.kind.parent_attr else {}
    async with transactional(session):
        row = await svc.create(tenant_id, payload.text, **attrs)
    return _entity_read(svc, row)


# PUBLIC_INTERFACE
@router.get("/entities/{kind}/by-slug/{slug}", response_model=EntityRead, summary="Get entity by slug")
async def get_entity_by_slug(
    kind: str = Path(...),
    slug: str = Path(...),
    parent_id: UUID | None = Query(None),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_tenant_session),
) -> EntityRead:
    svc = EntityService(session, kind)
    return _entity_read(svc, await svc.get_by_slug(tenant_id, slug, parent_id))


# PUBLIC_INTERFACE
@router.patch(
    "/entities/{kind}/{entity_id}",
    response_model=EntityRead,
    summary="Rename entity",
    description="Changes the title/name and regenerates the slug.",
)
async def rename_entity(
    payload: EntityRename,
    kind: str = Path(...),
    entity_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_tenant_session),
) -> EntityRead:
    svc = EntityService(session, kind)
    async with transactional(session):
        await _owned(svc, tenant_id, entity_id)
        row = await svc.rename(entity_id, payload.text)
    return _entity_read(svc, row)


# PUBLIC_INTERFACE
@router.delete(
    "/entities/{kind}/{entity_id}",
    response_model=MessageResponse,
    summary="Delete entity",
    description="Deletes the row, its links and its SEO/custom field attachments.",
)
async def delete_entity(
    kind: str = Path(...),
    entity_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_tenant_session),
) -> MessageResponse:
    svc = EntityService(session, kind)
    async with transactional(session):
        await _owned(svc, tenant_id, entity_id)
        await svc.delete(entity_id)
    return MessageResponse(message="Deleted", details={"id": str(entity_id)})


# PUBLIC_INTERFACE
@router.get("/entities/{kind}", response_model=List[EntityRead], summary="List entities of the tenant")
async def list_entities(
    kind: str = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_tenant_session),
) -> List[EntityRead]:
    svc = EntityService(session, kind)
    return [_entity_read(svc, x) for x in await svc.repo.list_for_tenant(tenant_id)]
