from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession


class BaseService:
    """
    Base class for services. Holds a session shared by the repositories a
    service orchestrates.

    Services keep the domain rules (hierarchy, scoping, merge semantics) and
    delegate data access to repositories. They flush but never commit.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
