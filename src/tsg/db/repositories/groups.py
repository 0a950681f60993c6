"""
tsg.db.repositories.groups

Repository for service group rows (`tsg_groups`).

Responsibilities:
- Scope every read and write to the owning account; foreign ids read as missing.
- Insert or update a group and return the stored snapshot.
- List groups in a stable (id) order.
- Remove groups idempotently.
- Map driver failures, including out-of-range integers, to `PersistenceError`.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Select, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tsg.db.models import GroupRow
from tsg.entities import ServiceGroup
from tsg.errors import NotFoundError, PersistenceError


def _to_entity(row: GroupRow) -> ServiceGroup:
    return ServiceGroup(
        id=row.id,
        group_name=row.group_name,
        template_id=row.template_id,
        account_id=row.account_id,
        capacity=row.capacity,
        health_check_interval=row.health_check_interval,
    )


class GroupRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_id(self, account_id: uuid.UUID, group_id: int) -> ServiceGroup | None:
        row = await self._get_row(account_id, group_id)
        return _to_entity(row) if row is not None else None

    async def find_by_name(self, account_id: uuid.UUID, group_name: str) -> ServiceGroup | None:
        stmt = select(GroupRow).where(
            GroupRow.account_id == account_id, GroupRow.group_name == group_name
        )
        try:
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError("failed to find group by name") from e
        return _to_entity(row) if row is not None else None

    async def list(self, account_id: uuid.UUID) -> list[ServiceGroup]:
        stmt = select(GroupRow).where(GroupRow.account_id == account_id).order_by(GroupRow.id)
        try:
            rows = (await self._session.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceError("failed to list groups") from e
        return [_to_entity(r) for r in rows]

    async def save(self, account_id: uuid.UUID, group: ServiceGroup) -> ServiceGroup:
        try:
            if group.id is None:
                row = GroupRow(
                    group_name=group.group_name,
                    template_id=group.template_id,
                    account_id=account_id,
                    capacity=group.capacity,
                    health_check_interval=group.health_check_interval,
                )
                self._session.add(row)
            else:
                # Row lookup is account-scoped, so a foreign id reads as missing.
                stmt = self._row_query(account_id, group.id).with_for_update()
                row = (await self._session.execute(stmt)).scalar_one_or_none()
                if row is None:
                    await self._session.rollback()
                    raise NotFoundError(f"group {group.id} not found")
                row.group_name = group.group_name
                row.template_id = group.template_id
                row.capacity = group.capacity
                row.health_check_interval = group.health_check_interval
            await self._session.flush()
            stored = _to_entity(row)
            await self._session.commit()
        # The driver raises OverflowError for integers wider than the column.
        except (SQLAlchemyError, OverflowError) as e:
            await self._session.rollback()
            raise PersistenceError("failed to save group") from e
        return stored

    async def remove(self, account_id: uuid.UUID, group_id: int) -> None:
        stmt = delete(GroupRow).where(GroupRow.account_id == account_id, GroupRow.id == group_id)
        try:
            await self._session.execute(stmt)
            await self._session.commit()
        except (SQLAlchemyError, OverflowError) as e:
            await self._session.rollback()
            raise PersistenceError("failed to remove group") from e

    async def _get_row(self, account_id: uuid.UUID, group_id: int) -> GroupRow | None:
        try:
            return (
                await self._session.execute(self._row_query(account_id, group_id))
            ).scalar_one_or_none()
        except (SQLAlchemyError, OverflowError) as e:
            raise PersistenceError("failed to find group") from e

    @staticmethod
    def _row_query(account_id: uuid.UUID, group_id: int) -> Select[tuple[GroupRow]]:
        return select(GroupRow).where(GroupRow.account_id == account_id, GroupRow.id == group_id)
