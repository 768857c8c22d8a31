"""ORM base class and mixins — all models inherit from Base."""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Declarative base — shared MetaData registry for all models."""

    pass


class TimeSeriesMixin:
    """BIGSERIAL PK + ingestion timestamp for high-volume sensor tables.

    The sensor ``timestamp`` column IS the record time; ``ingested_at``
    tracks when the row reached the store.
    """

    id: Mapped[int] = mapped_column(
        BigInteger,
        primary_key=True,
        autoincrement=True,
    )
    ingested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )


class AppendOnlyMixin:
    """BIGSERIAL PK + ``created_at`` for audit-style tables that never update.

    "Current" is the newest row by ``(created_at, id)``; the serial id breaks
    ties between rows written in the same transaction.
    """

    id: Mapped[int] = mapped_column(
        BigInteger,
        primary_key=True,
        autoincrement=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
