from __future__ import annotations

import logging
from typing import AsyncGenerator, Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_core.db.session import get_async_session, tenant_context

logger = logging.getLogger(__name__)


def _parse_tenant(raw: str) -> UUID:
    try:
        return UUID(raw)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-ID header must be a valid UUID string.",
        )


# PUBLIC_INTERFACE
async def get_tenant_id(x_tenant_id: str | None = Header(default=None, alias="X-Tenant-ID")) -> UUID:
    """
    Extract and validate the tenant id from the X-Tenant-ID header.

    Raises:
        HTTPException: 400 Bad Request if header missing or invalid UUID.
    Returns:
        UUID: tenant identifier
    """
    if not x_tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-ID header is required.",
        )
    return _parse_tenant(x_tenant_id)


# PUBLIC_INTERFACE
async def get_optional_tenant_id(
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-ID"),
) -> Optional[UUID]:
    """Tenant id when the header is sent; None for global (tenant-less) dropdown reads and writes."""
    if not x_tenant_id:
        return None
    return _parse_tenant(x_tenant_id)


# PUBLIC_INTERFACE
async def get_tenant_session(
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield an AsyncSession with the tenant bound to the logging context."""
    async with tenant_context(session, tenant_id):
        yield session
