from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional
from uuid import UUID

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from catalog_core.db import Base, make_session_factory
from catalog_core.db.models import Category, Tenant, Value

Scenario = Callable[[AsyncSession], Awaitable[Any]]


def make_engine(url: str = "sqlite+aiosqlite://") -> AsyncEngine:
    """SQLite engine with foreign keys enforced and SAVEPOINT support."""
    # File databases get a fresh connection per session so they survive across event loops.
    engine = create_async_engine(url, poolclass=StaticPool if url.endswith("://") else NullPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Driver-level implicit transactions off; BEGIN comes from the "begin" hook below.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def run_scenario(scenario: Scenario) -> Any:
    """Run `scenario(session)` against a fresh in-memory database."""

    async def _run() -> Any:
        engine = make_engine()
        try:
            await create_schema(engine)
            async with make_session_factory(engine)() as session:
                return await scenario(session)
        finally:
            await engine.dispose()

    return asyncio.run(_run())


@pytest.fixture
def db() -> Callable[[Scenario], Any]:
    return run_scenario


async def make_tenant(session: AsyncSession, slug: str = "acme") -> Tenant:
    tenant = Tenant(name=slug.title(), slug=slug, is_active=True)
    session.add(tenant)
    await session.flush()
    return tenant


async def make_category(session: AsyncSession, name: str, *, customizable: bool = True) -> Category:
    category = Category(name=name, level=0, is_customizable=customizable, is_active=True)
    session.add(category)
    await session.flush()
    return category


async def make_value(
    session: AsyncSession, category: Category, text: str, slug: str, tenant_id: Optional[UUID] = None
) -> Value:
    value = Value(category_id=category.id, tenant_id=tenant_id, value=text, slug=slug, is_active=True)
    session.add(value)
    await session.flush()
    return value
