from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_core.core.deps import get_tenant_session
from catalog_core.db.models.associations import ASSOCIATIONS, Association
from catalog_core.db.session import transactional
from catalog_core.schemas.associations import AssociationInfo, LinkCreate, LinkRead, LinkSet
from catalog_core.schemas.common import ErrorResponse, MessageResponse
from catalog_core.services.associations import AssociationGraph

router = APIRouter(
    prefix="/associations",
    tags=["Associations"],
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)


def _link_read(association: Association, row: Any) -> LinkRead:
    return LinkRead(
        left_id=getattr(row, association.left_key),
        right_id=getattr(row, association.right_key),
        metadata={name: getattr(row, name) for name in association.metadata_fields},
        created_at=row.created_at,
    )


def _split(order_by: Optional[str]) -> Optional[List[str]]:
    if not order_by:
        return None
    return [part.strip() for part in order_by.split(",") if part.strip()]


# PUBLIC_INTERFACE
@router.get("", response_model=List[AssociationInfo], summary="List registered associations")
async def list_associations() -> List[AssociationInfo]:
    return [
        AssociationInfo(
            name=a.name,
            left=a.left_model.__tablename__,
            right=a.right_model.__tablename__,
            metadata_fields=list(a.metadata_fields),
            sort_field=a.sort_field,
            right_category=a.right_category,
        )
        for a in ASSOCIATIONS.values()
    ]


# PUBLIC_INTERFACE
@router.get(
    "/{name}/{left_id}/links",
    response_model=List[LinkRead],
    summary="List links of a left record",
    description=(
        "Ordered by the association's sort column when it has one, else by creation time. "
        "order_by takes comma-separated link columns, '-' prefix for descending."
    ),
)
async def list_right(
    name: str = Path(...),
    left_id: UUID = Path(...),
    order_by: Optional[str] = Query(None, description="e.g. -sort_order,created_at"),
    session: AsyncSession = Depends(get_tenant_session),
) -> List[LinkRead]:
    graph = AssociationGraph(session, name)
    rows = await graph.list_right(left_id, _split(order_by))
    return [_link_read(graph.association, x) for x in rows]


# PUBLIC_INTERFACE
@router.get("/{name}/reverse/{right_id}", response_model=List[LinkRead], summary="List links of a right record")
async def list_left(
    name: str = Path(...),
    right_id: UUID = Path(...),
    order_by: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_tenant_session),
) -> List[LinkRead]:
    graph = AssociationGraph(session, name)
    rows = await graph.list_left(right_id, _split(order_by))
    return [_link_read(graph.association, x) for x in rows]


# PUBLIC_INTERFACE
@router.post(
    "/{name}/{left_id}/links",
    response_model=LinkRead,
    status_code=status.HTTP_201_CREATED,
    summary="Link two records",
    description="409 when the pair is already linked.",
)
async def link(
    payload: LinkCreate,
    name: str = Path(...),
    left_id: UUID = Path(...),
    session: AsyncSession = Depends(get_tenant_session),
) -> LinkRead:
    graph = AssociationGraph(session, name)
    async with transactional(session):
        row = await graph.link(left_id, payload.right_id, **payload.metadata)
    return _link_read(graph.association, row)


# PUBLIC_INTERFACE
@router.put(
    "/{name}/{left_id}/links/{right_id}",
    response_model=LinkRead,
    summary="Create or update a link",
    description="Creates the link if missing; otherwise updates only its metadata.",
)
async def upsert_link(
    name: str = Path(...),
    left_id: UUID = Path(...),
    right_id: UUID = Path(...),
    metadata: Dict[str, Any] = Body(default_factory=dict),
    session: AsyncSession = Depends(get_tenant_session),
) -> LinkRead:
    graph = AssociationGraph(session, name)
    async with transactional(session):
        row = await graph.upsert_link(left_id, right_id, **metadata)
    return _link_read(graph.association, row)


# PUBLIC_INTERFACE
@router.delete("/{name}/{left_id}/links/{right_id}", response_model=MessageResponse, summary="Unlink")
async def unlink(
    name: str = Path(...),
    left_id: UUID = Path(...),
    right_id: UUID = Path(...),
    session: AsyncSession = Depends(get_tenant_session),
) -> MessageResponse:
    async with transactional(session):
        deleted = await AssociationGraph(session, name).unlink(left_id, right_id)
    return MessageResponse(message="Unlinked" if deleted else "Not linked", details={"deleted": deleted})


# PUBLIC_INTERFACE
@router.put(
    "/{name}/{left_id}/links",
    response_model=List[LinkRead],
    summary="Replace links",
    description="Makes the left record's links exactly the given ids, in that order.",
)
async def replace_links(
    payload: LinkSet,
    name: str = Path(...),
    left_id: UUID = Path(...),
    session: AsyncSession = Depends(get_tenant_session),
) -> List[LinkRead]:
    graph = AssociationGraph(session, name)
    async with transactional(session):
        rows = await graph.replace_links(left_id, payload.right_ids)
    return [_link_read(graph.association, x) for x in rows]


# PUBLIC_INTERFACE
@router.put("/{name}/{left_id}/order", response_model=List[LinkRead], summary="Reorder links")
async def reorder(
    payload: LinkSet,
    name: str = Path(...),
    left_id: UUID = Path(...),
    session: AsyncSession = Depends(get_tenant_session),
) -> List[LinkRead]:
    graph = AssociationGraph(session, name)
    async with transactional(session):
        rows = await graph.reorder(left_id, payload.right_ids)
    return [_link_read(graph.association, x) for x in rows]
