"""
Module: pos_kernel.db.base
Responsibility: Declarative base and column types shared by every table of
    the stock-take schema.
Architecture position: Kernel > DB.  Imported by ORM modules; imports
    nothing from the rest of the project.

Conventions:
    - Primary keys are uuid4 values stored as ``String(36)`` so the same
      schema runs on PostgreSQL and SQLite.
    - Every ``datetime`` column is ``UTCDateTime``: written in UTC, read back
      timezone-aware even from SQLite, which drops tzinfo.
    - Every ``int`` column is ``BigInteger``; stock quantities are whole
      units.
    - ``TrackedBase`` rows record who created them and when.
"""

from datetime import datetime, timezone
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UUIDString(TypeDecorator):
    """``uuid.UUID`` in Python, ``VARCHAR(36)`` in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime normalized to UTC in both directions."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return _as_utc(value)

    def process_result_value(self, value, dialect):
        return _as_utc(value)


class Base(DeclarativeBase):
    """Declarative base; every model gets a uuid4 ``id``."""

    type_annotation_map: ClassVar[dict] = {
        datetime: UTCDateTime(),
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class TrackedBase(Base):
    """
    Abstract base for rows with an author.

    ``created_at`` defaults to the database clock; models whose creation time
    is part of the domain (a stock take's start) pass it explicitly.
    ``created_by_id`` is mandatory.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), onupdate=func.now(), nullable=False,
    )
    created_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    updated_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
