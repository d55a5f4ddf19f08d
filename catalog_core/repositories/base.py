from __future__ import annotations

from typing import Any, Iterable, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import Executable
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_core.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository:
    """
    Base class for repositories providing common helpers.

    Note:
      Repositories never commit. Writes are flushed so that ids, defaults and
      constraint violations surface immediately; the caller owns the transaction
      (see catalog_core.db.session.transactional).
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def execute(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute a SQLAlchemy statement."""
        return await self.session.execute(statement, params or {})

    async def scalars(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return scalars."""
        result = await self.execute(statement, params)
        return result.scalars()

    async def scalar_one_or_none(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return a single scalar or None."""
        result = await self.execute(statement, params)
        return result.scalar_one_or_none()

    async def get(self, model: Type[ModelT], pk: UUID) -> Optional[ModelT]:
        """Load a row by primary key."""
        return await self.session.get(model, pk)

    async def flush(self) -> None:
        """Flush pending changes without committing."""
        await self.session.flush()

    async def add_all(self, entities: Iterable[Any]) -> None:
        """Add multiple entities to session and flush."""
        self.session.add_all(list(entities))
        await self.flush()

    async def add(self, entity: Any) -> None:
        """Add a single entity to session and flush."""
        self.session.add(entity)
        await self.flush()


def eq_or_null(column: Any, value: Any) -> Any:
    """`column = value`, or `column IS NULL` when value is None (SQL NULL never compares equal)."""
    if value is None:
        return column.is_(None)
    return column == value
