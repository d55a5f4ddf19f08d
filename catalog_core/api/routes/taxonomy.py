from __future__ import annotations

from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_core.core.deps import get_optional_tenant_id
from catalog_core.db.session import get_async_session, transactional
from catalog_core.schemas.common import ErrorResponse
from catalog_core.schemas.taxonomy import (
    CategoryCreate,
    CategoryNode,
    CategoryRead,
    CategoryUpdate,
    ValueCreate,
    ValueRead,
    ValueReorder,
    ValueUpdate,
)
from catalog_core.services.taxonomy import TaxonomyService, ValueService

router = APIRouter(
    prefix="/dropdowns",
    tags=["Dropdowns"],
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=Dict[str, List[ValueRead]],
    summary="Grouped dropdown values",
    description="Active values of every active category, keyed by category name. "
    "Global values plus those of the tenant in X-Tenant-ID, if sent.",
)
async def grouped_values(
    tenant_id: Optional[UUID] = Depends(get_optional_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> Dict[str, List[ValueRead]]:
    grouped = await ValueService(session).grouped_values(tenant_id)
    return {name: [ValueRead.model_validate(v) for v in values] for name, values in grouped.items()}


# PUBLIC_INTERFACE
@router.get(
    "/categories",
    response_model=List[CategoryRead],
    summary="List categories",
    description="Categories ordered by sort order then name.",
)
async def list_categories(
    session: AsyncSession = Depends(get_async_session),
    level: int | None = Query(None, ge=0, le=1),
    parent_id: UUID | None = Query(None),
    active_only: bool = Query(True),
) -> List[CategoryRead]:
    rows = await TaxonomyService(session).list_categories(
        level=level, parent_id=parent_id, active_only=active_only
    )
    return [CategoryRead.model_validate(x) for x in rows]


# PUBLIC_INTERFACE
@router.get(
    "/categories/tree",
    response_model=List[CategoryNode],
    summary="Category tree",
    description="Root categories with their sub-categories nested.",
)
async def category_tree(
    session: AsyncSession = Depends(get_async_session),
    active_only: bool = Query(True),
) -> List[CategoryNode]:
    return await TaxonomyService(session).category_tree(active_only=active_only)


# PUBLIC_INTERFACE
@router.post(
    "/categories",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
    description="Create a root category, or a sub-category when parent_id names an active root.",
)
async def create_category(
    payload: CategoryCreate,
    session: AsyncSession = Depends(get_async_session),
) -> CategoryRead:
    async with transactional(session):
        created = await TaxonomyService(session).create_category(
            payload.name,
            payload.parent_id,
            payload.is_customizable,
            description=payload.description,
            sort_order=payload.sort_order,
        )
    return CategoryRead.model_validate(created)


# PUBLIC_INTERFACE
@router.get("/categories/{category_id}", response_model=CategoryRead, summary="Get category")
async def get_category(
    category_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> CategoryRead:
    return CategoryRead.model_validate(await TaxonomyService(session).get_category(category_id))


# PUBLIC_INTERFACE
@router.patch("/categories/{category_id}", response_model=CategoryRead, summary="Update category")
async def update_category(
    payload: CategoryUpdate,
    category_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> CategoryRead:
    async with transactional(session):
        updated = await TaxonomyService(session).update_category(
            category_id, **payload.model_dump(exclude_unset=True)
        )
    return CategoryRead.model_validate(updated)


# PUBLIC_INTERFACE
@router.delete(
    "/categories/{category_id}",
    response_model=CategoryRead,
    summary="Deactivate category",
    description="Soft-delete. With cascade=false, active sub-categories or values make this a 409.",
)
async def deactivate_category(
    category_id: UUID = Path(...),
    cascade: bool = Query(True),
    session: AsyncSession = Depends(get_async_session),
) -> CategoryRead:
    async with transactional(session):
        category = await TaxonomyService(session).deactivate_category(category_id, cascade=cascade)
    return CategoryRead.model_validate(category)


# PUBLIC_INTERFACE
@router.post("/categories/{category_id}/reactivate", response_model=CategoryRead, summary="Reactivate category")
async def reactivate_category(
    category_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> CategoryRead:
    async with transactional(session):
        category = await TaxonomyService(session).reactivate_category(category_id)
    return CategoryRead.model_validate(category)


# PUBLIC_INTERFACE
@router.get(
    "/categories/{category_id}/values",
    response_model=List[ValueRead],
    summary="List values of a category",
)
async def list_values(
    category_id: UUID = Path(...),
    tenant_id: Optional[UUID] = Depends(get_optional_tenant_id),
    parent_id: UUID | None = Query(None, description="Only children of this value"),
    roots_only: bool = Query(False),
    include_global: bool = Query(True),
    active_only: bool = Query(True),
    session: AsyncSession = Depends(get_async_session),
) -> List[ValueRead]:
    rows = await ValueService(session).list_values(
        category_id,
        tenant_id=tenant_id,
        include_global=include_global,
        parent_id=parent_id,
        roots_only=roots_only,
        active_only=active_only,
    )
    return [ValueRead.model_validate(x) for x in rows]


# PUBLIC_INTERFACE
@router.post(
    "/categories/{category_id}/values",
    response_model=ValueRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create value",
    description="Create a global value, or a tenant value when tenant_scoped is set (requires X-Tenant-ID).",
)
async def create_value(
    payload: ValueCreate,
    category_id: UUID = Path(...),
    tenant_id: Optional[UUID] = Depends(get_optional_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> ValueRead:
    if payload.tenant_scoped and tenant_id is None:
        raise HTTPException(status_code=400, detail="X-Tenant-ID header is required for tenant values.")
    async with transactional(session):
        created = await ValueService(session).create_value(
            category_id,
            payload.value,
            tenant_id if payload.tenant_scoped else None,
            payload.parent_id,
            sort_order=payload.sort_order,
            color=payload.color,
            icon=payload.icon,
        )
    return ValueRead.model_validate(created)


# PUBLIC_INTERFACE
@router.put(
    "/categories/{category_id}/values/order",
    response_model=List[ValueRead],
    summary="Reorder values",
)
async def reorder_values(
    payload: ValueReorder,
    category_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> List[ValueRead]:
    async with transactional(session):
        rows = await ValueService(session).reorder_values(payload.value_ids, category_id)
    return [ValueRead.model_validate(x) for x in rows]


# PUBLIC_INTERFACE
@router.get(
    "/by-name/{name}",
    response_model=List[ValueRead],
    summary="List values by category name",
)
async def list_values_by_category_name(
    name: str = Path(...),
    parent_id: UUID | None = Query(None),
    tenant_id: Optional[UUID] = Depends(get_optional_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> List[ValueRead]:
    rows = await ValueService(session).list_values_by_category_name(name, tenant_id=tenant_id, parent_id=parent_id)
    return [ValueRead.model_validate(x) for x in rows]


# PUBLIC_INTERFACE
@router.get("/values/{value_id}", response_model=ValueRead, summary="Get value")
async def get_value(
    value_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ValueRead:
    return ValueRead.model_validate(await ValueService(session).get_value(value_id))


# PUBLIC_INTERFACE
@router.patch(
    "/values/{value_id}",
    response_model=ValueRead,
    summary="Update value",
    description="A changed value text regenerates the slug within (category, tenant).",
)
async def update_value(
    payload: ValueUpdate,
    value_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ValueRead:
    svc = ValueService(session)
    changes = payload.model_dump(exclude_unset=True)
    async with transactional(session):
        new_text = changes.pop("value", None)
        if new_text is not None:
            await svc.rename_value(value_id, new_text)
        value = await svc.update_value(value_id, **changes)
    return ValueRead.model_validate(value)


# PUBLIC_INTERFACE
@router.delete("/values/{value_id}", response_model=ValueRead, summary="Deactivate value (and its children)")
async def deactivate_value(
    value_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ValueRead:
    async with transactional(session):
        value = await ValueService(session).deactivate_value(value_id)
    return ValueRead.model_validate(value)


# PUBLIC_INTERFACE
@router.post("/values/{value_id}/reactivate", response_model=ValueRead, summary="Reactivate value")
async def reactivate_value(
    value_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ValueRead:
    async with transactional(session):
        value = await ValueService(session).reactivate_value(value_id)
    return ValueRead.model_validate(value)


# PUBLIC_INTERFACE
@router.get("/values/{value_id}/children", response_model=List[ValueRead], summary="List child values")
async def list_children(
    value_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> List[ValueRead]:
    return [ValueRead.model_validate(x) for x in await ValueService(session).list_children(value_id)]


# PUBLIC_INTERFACE
@router.get(
    "/values/{value_id}/path",
    response_model=List[ValueRead],
    summary="Value path",
    description="Root-to-leaf chain, e.g. [city, area].",
)
async def resolve_path(
    value_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> List[ValueRead]:
    return [ValueRead.model_validate(x) for x in await ValueService(session).resolve_path(value_id)]
