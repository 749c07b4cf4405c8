"""SQLAlchemy ORM models for the system of record and the outbox."""
from __future__ import annotations

import datetime

from sqlalchemy import BigInteger, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
_BigId = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass


class PermissionTypeRow(Base):
    __tablename__ = "permission_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    description: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)


class PermissionRow(Base):
    """One employee permission; ``version`` guards against lost updates."""

    __tablename__ = "permissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    forename: Mapped[str] = mapped_column(String(100), nullable=False)
    surname: Mapped[str] = mapped_column(String(100), nullable=False)
    permission_type_id: Mapped[int] = mapped_column(
        ForeignKey("permission_types.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    permission_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        Index("ix_permissions_employee", "forename", "surname"),
        Index("ix_permissions_date", "permission_date"),
    )


class OutboxMessageRow(Base):
    """Pending propagation to the search index or the event stream.

    Deliberately no foreign key to ``permissions``: messages outlive the rows
    they describe (a ``deleted`` message is written as the row goes away).
    """

    __tablename__ = "outbox_messages"

    id: Mapped[int] = mapped_column(_BigId, primary_key=True, autoincrement=True)
    aggregate_id: Mapped[int] = mapped_column(Integer, nullable=False)
    destination: Mapped[str] = mapped_column(String(32), nullable=False)
    operation: Mapped[str] = mapped_column(String(16), nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    next_eligible_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    lease_owner: Mapped[str | None] = mapped_column(String(128), nullable=True, default=None)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    dispatched_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    __table_args__ = (
        Index("ix_outbox_status_next_eligible", "status", "next_eligible_at"),
        Index("ix_outbox_aggregate_created", "aggregate_id", "created_at"),
    )


__all__ = ["Base", "OutboxMessageRow", "PermissionRow", "PermissionTypeRow"]
