from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import MetaData, DateTime, ForeignKey, Uuid, func, text
from sqlalchemy.sql.elements import TextClause
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# Standardized naming convention for alembic-friendly constraints/indexes.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Stand-in for NULL in unique index expressions; no real row carries this id.
NIL_UUID = "00000000-0000-0000-0000-000000000000"


def nulls_match(column: str) -> TextClause:
    """Index expression under which NULLs in `column` collide like equal values."""
    return text(f"coalesce({column}, '{NIL_UUID}')")


def utcnow() -> datetime:
    """Timezone-aware current time; microsecond precision keeps creation order stable."""
    return datetime.now(tz=timezone.utc)


class Base(DeclarativeBase):
    """Declarative base class with metadata naming conventions."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class UUIDPkMixin:
    """Mixin that provides a UUID primary key generated client-side."""
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)


class TimestampMixin:
    """Mixin that provides created_at and updated_at timestamp columns."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )


class TenantMixin:
    """Mixin that provides tenant scoping and FK to tenants.id."""
    tenant_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
