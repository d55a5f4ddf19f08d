"""
Slug derivation and scoped uniqueness.

slugify() is a pure function. UniquenessResolver queries the database for a free
candidate (`base`, `base-1`, `base-2`, ...) and assign() writes the row inside a
SAVEPOINT so a concurrent writer that wins the race only costs a retry; the
storage unique index stays the authoritative guard.
"""
from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Collection, Dict, Optional, Tuple, Type
from uuid import UUID

from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_core.core.errors import ConflictError, ValidationError
from catalog_core.core.settings import get_app_settings
from catalog_core.db.base import Base
from catalog_core.repositories.base import BaseRepository, eq_or_null
from catalog_core.services.base import BaseService

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

DEFAULT_MAX_LENGTH = 255


# PUBLIC_INTERFACE
def slugify(text: Optional[str], max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """
    Derive a URL-safe slug: lower-case ASCII, runs of anything else collapsed
    to one hyphen, no leading/trailing hyphens.

    Returns an empty string when the text has no alphanumeric characters.
    """
    if not text:
        return ""
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = _NON_ALNUM.sub("-", folded.lower()).strip("-")
    if len(slug) > max_length:
        slug = slug[:max_length].rstrip("-")
    return slug


# PUBLIC_INTERFACE
def require_slug(text: Optional[str], max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """slugify() that treats an empty result as a validation failure."""
    slug = slugify(text, max_length=max_length)
    if not slug:
        raise ValidationError("cannot derive slug from empty text", details={"text": text})
    return slug


@dataclass(frozen=True)
class SlugScope:
    """
    The rows a slug must be unique among: `model` rows matching every
    (column, value) pair in `columns`. NULL values match NULL.
    """

    model: Type[Base]
    columns: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)
    active_only: bool = False

    @classmethod
    def of(cls, model: Type[Base], *, active_only: bool = False, **columns: Any) -> "SlugScope":
        return cls(model=model, columns=tuple(columns.items()), active_only=active_only)

    def criteria(self) -> list:
        model = self.model
        clauses = [eq_or_null(getattr(model, name), value) for name, value in self.columns]
        if self.active_only:
            clauses.append(getattr(model, "is_active").is_(True))
        return clauses


class SlugRepository(BaseRepository):
    """Existence check used by the resolver."""

    async def slug_taken(self, scope: SlugScope, slug: str, exclude_id: Optional[UUID]) -> bool:
        model = scope.model
        stmt = select(getattr(model, "id")).where(getattr(model, "slug") == slug, *scope.criteria())
        if exclude_id is not None:
            stmt = stmt.where(getattr(model, "id") != exclude_id)
        return (await self.scalar_one_or_none(stmt.limit(1))) is not None


class UniquenessResolver(BaseService):
    """Finds a non-colliding slug within a scope and writes it race-safely."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        max_attempts: Optional[int] = None,
        max_length: Optional[int] = None,
    ) -> None:
        super().__init__(session)
        settings = get_app_settings()
        self.max_attempts = max_attempts or settings.SLUG_MAX_ATTEMPTS
        self.max_length = max_length or settings.SLUG_MAX_LENGTH
        self.repo = SlugRepository(session)

    def base_slug(self, text: Optional[str]) -> str:
        return require_slug(text, max_length=self.max_length)

    def _candidate(self, base_slug: str, counter: int) -> str:
        suffix = f"-{counter}"
        return base_slug[: self.max_length - len(suffix)].rstrip("-") + suffix

    # PUBLIC_INTERFACE
    async def resolve(
        self,
        base_slug: str,
        scope: SlugScope,
        exclude_id: Optional[UUID] = None,
        skip: Collection[str] = (),
    ) -> str:
        """
        Return `base_slug` if free in `scope`, else the first free `base_slug-N`.

        Candidates in `skip` count as taken (they lost an insert race). The counter
        only moves forward; a numeric suffix already present in the base is plain text.
        """
        candidate = base_slug
        counter = 1
        while candidate in skip or await self.repo.slug_taken(scope, candidate, exclude_id):
            candidate = self._candidate(base_slug, counter)
            counter += 1
        return candidate

    # PUBLIC_INTERFACE
    async def assign(
        self,
        row: Base,
        base_slug: str,
        scope: SlugScope,
        *,
        changes: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Resolve a slug for `row`, apply `changes` plus the slug, and flush inside a
        SAVEPOINT. When the write fails and the candidate turns out to be taken (a
        concurrent writer won), the candidate is skipped and the resolution repeated,
        up to max_attempts times. Any other IntegrityError propagates.

        Works for new rows (inserted) and persistent rows (updated); a rolled-back
        savepoint expires the row, so `changes` are re-applied on every attempt.
        """
        skipped: set[str] = set()
        row_id = getattr(row, "id", None)
        for attempt in range(1, self.max_attempts + 1):
            candidate = await self.resolve(base_slug, scope, exclude_id=row_id, skip=skipped)
            try:
                async with self.session.begin_nested():
                    for name, value in (changes or {}).items():
                        setattr(row, name, value)
                    setattr(row, "slug", candidate)
                    self.session.add(row)
                    await self.session.flush()
            except IntegrityError:
                if inspect(row).persistent:
                    await self.session.refresh(row)
                if not await self.repo.slug_taken(scope, candidate, row_id):
                    # Some other constraint failed (foreign key, not-null); not a slug race.
                    raise
                logger.warning(
                    "Slug %r collided on write for %s (attempt %d/%d); retrying",
                    candidate,
                    scope.model.__tablename__,
                    attempt,
                    self.max_attempts,
                )
                skipped.add(candidate)
                continue
            return candidate
        raise ConflictError(
            "could not allocate a unique slug",
            details={"base_slug": base_slug, "tried": sorted(skipped)},
        )
