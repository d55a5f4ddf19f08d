from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from catalog_core.core.logging import tenant_id_var
from .config import get_settings

logger = logging.getLogger(__name__)

_SETTINGS = get_settings()
_ENGINE: AsyncEngine | None = None
_SESSION_MAKER: async_sessionmaker[AsyncSession] | None = None


def _ensure_engine_initialized() -> None:
    """
    Lazily initialize the AsyncEngine and session maker.
    """
    global _ENGINE, _SESSION_MAKER
    if _ENGINE is None:
        _ENGINE = create_async_engine(
            _SETTINGS.async_database_url,
            echo=_SETTINGS.SQL_ECHO,
            pool_pre_ping=True,
            pool_size=_SETTINGS.DB_POOL_SIZE,
            connect_args=_SETTINGS.connect_args,
        )
    if _SESSION_MAKER is None:
        _SESSION_MAKER = make_session_factory(_ENGINE)


# PUBLIC_INTERFACE
def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory with the options every unit of work relies on."""
    return async_sessionmaker(
        bind=engine, expire_on_commit=False, autoflush=False, autocommit=False
    )


# PUBLIC_INTERFACE
def get_engine() -> AsyncEngine:
    """Return the global AsyncEngine instance."""
    _ensure_engine_initialized()
    assert _ENGINE is not None
    return _ENGINE


# PUBLIC_INTERFACE
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield an AsyncSession suitable for FastAPI dependency injection.
    Ensures engine/session factory is initialized.
    """
    _ensure_engine_initialized()
    assert _SESSION_MAKER is not None
    async with _SESSION_MAKER() as session:
        yield session


# PUBLIC_INTERFACE
@asynccontextmanager
async def transactional(session: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    All-or-nothing unit of work.

    Services only flush; the caller wraps a multi-step write (e.g. create a property,
    link its amenities, upsert its SEO record) in this block so that it commits once
    or not at all.

    Usage:
        async with transactional(session):
            prop = await PropertyService(session).create_property(...)
    """
    try:
        yield session
        await session.commit()
    except Exception:
        logger.warning("Rolling back unit of work", exc_info=True)
        await session.rollback()
        raise


# PUBLIC_INTERFACE
@asynccontextmanager
async def tenant_context(
    session: AsyncSession, tenant_id: Union[str, UUID]
) -> AsyncGenerator[AsyncSession, None]:
    """
    Bind the tenant id to the logging context while the session is used.

    Tenant scoping itself is explicit in every query (values may be global with a
    NULL tenant), so nothing is set on the connection.
    """
    token = tenant_id_var.set(str(tenant_id))
    try:
        yield session
    finally:
        tenant_id_var.reset(token)
