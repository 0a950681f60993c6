"""
tsg.db.models

Persistence schema for accounts and service groups.

Responsibilities:
- Define ORM models:
  - AccountRow: tenant identity, soft-deleted via `archived`
  - GroupRow: service group owned by exactly one account
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid as SAUuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from tsg.db.base import Base


def _utcnow() -> datetime:
    # Persist naive UTC timestamps for simplicity; production systems may use tz-aware types.
    return datetime.utcnow()


class AccountRow(Base):
    __tablename__ = "tsg_accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    account_name: Mapped[str] = mapped_column(String(256), nullable=False)
    external_identity_ref: Mapped[str] = mapped_column(String(256), nullable=False)
    # Reference into the key store; NULL when no key is attached.
    key_id: Mapped[uuid.UUID | None] = mapped_column(SAUuid(as_uuid=True), nullable=True)
    archived: Mapped[bool] = mapped_column(nullable=False, default=False, index=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)

    # Names are unique among active accounts only; archived names can be reused.
    __table_args__ = (
        Index(
            "uq_accounts_active_name",
            "account_name",
            unique=True,
            sqlite_where=text("archived = 0"),
            postgresql_where=text("NOT archived"),
        ),
    )


class GroupRow(Base):
    __tablename__ = "tsg_groups"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    group_name: Mapped[str] = mapped_column(String(256), nullable=False)
    template_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    account_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("tsg_accounts.id"), nullable=False
    )
    capacity: Mapped[int] = mapped_column(nullable=False, default=0)
    health_check_interval: Mapped[int] = mapped_column(nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("account_id", "group_name", name="uq_groups_account_name"),
        CheckConstraint("capacity >= 0", name="ck_groups_capacity"),
        CheckConstraint("health_check_interval >= 0", name="ck_groups_health_check_interval"),
        Index("ix_groups_account_id", "account_id", "id"),
    )


# --- Module Notes -----------------------------------------------------------
# Deleting an account row does not cascade to groups; groups are removed one by
# one through the lifecycle service so each removal reaches the orchestrator.
