"""
tsg.db.repositories.accounts

Repository for account rows (`tsg_accounts`).

Responsibilities:
- Insert accounts and reconcile the store-assigned id/timestamps by name.
- Save full account state by id.
- Answer existence checks by id or name over non-archived rows.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import insert, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tsg.db.models import AccountRow
from tsg.entities import Account
from tsg.errors import AmbiguousLookupError, MissingIdentifierError, NotFoundError, PersistenceError


def _to_entity(row: AccountRow) -> Account:
    return Account(
        id=row.id,
        account_name=row.account_name,
        external_identity_ref=row.external_identity_ref,
        key_id=row.key_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class AccountRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def insert(self, account: Account) -> None:
        """
        Insert a new account, then re-read it by name to learn the assigned id
        and timestamps. The unique name constraint makes the re-read unambiguous.
        """

        now = datetime.utcnow()
        stmt = insert(AccountRow).values(
            id=uuid.uuid4(),
            account_name=account.account_name,
            external_identity_ref=account.external_identity_ref,
            archived=False,
            created_at=now,
            updated_at=now,
        )
        try:
            await self._session.execute(stmt)
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise PersistenceError("failed to insert account") from e

        stored = await self.find_by_name(account.account_name)
        if stored is None:
            raise NotFoundError("failed to find account after insert")

        account.id = stored.id
        account.created_at = stored.created_at
        account.updated_at = stored.updated_at

    async def save(self, account: Account) -> None:
        if account.id is None:
            raise MissingIdentifierError("missing identifier for save")

        updated_at = datetime.utcnow()
        stmt = (
            update(AccountRow)
            .where(AccountRow.id == account.id)
            .values(
                account_name=account.account_name,
                external_identity_ref=account.external_identity_ref,
                key_id=account.key_id,
                updated_at=updated_at,
            )
        )
        try:
            result = await self._session.execute(stmt)
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise PersistenceError("failed to save account") from e

        if result.rowcount == 0:
            raise NotFoundError(f"account {account.id} not found")
        account.updated_at = updated_at

    async def exists(self, account: Account) -> bool:
        if account.id is None and not account.account_name:
            raise AmbiguousLookupError("can't check existence without id or name")

        # Only identifiers that are actually set take part in the match.
        matches = []
        if account.id is not None:
            matches.append(AccountRow.id == account.id)
        if account.account_name:
            matches.append(AccountRow.account_name == account.account_name)

        stmt = (
            select(AccountRow.id)
            .where(or_(*matches), AccountRow.archived.is_(False))
            .limit(1)
        )
        try:
            found = (await self._session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError("failed to check account existence") from e
        return found is not None

    async def find_by_id(self, account_id: uuid.UUID) -> Account | None:
        return await self._find_one(AccountRow.id == account_id)

    async def find_by_name(self, account_name: str) -> Account | None:
        return await self._find_one(AccountRow.account_name == account_name)

    async def archive(self, account_id: uuid.UUID) -> None:
        stmt = (
            update(AccountRow)
            .where(AccountRow.id == account_id)
            .values(archived=True, updated_at=datetime.utcnow())
        )
        try:
            await self._session.execute(stmt)
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise PersistenceError("failed to archive account") from e

    async def _find_one(self, clause) -> Account | None:
        stmt = select(AccountRow).where(clause, AccountRow.archived.is_(False))
        try:
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError("failed to find account") from e
        return _to_entity(row) if row is not None else None


# --- Module Notes -----------------------------------------------------------
# Each write commits on its own; there is no transaction spanning calls.
