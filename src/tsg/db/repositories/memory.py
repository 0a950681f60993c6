"""
tsg.db.repositories.memory

In-memory repositories honoring the same contracts as the SQLAlchemy ones.

Responsibilities:
- Back unit tests of services without a database.
- Mirror store semantics: names unique among active accounts, soft-deleted
  accounts, account scoping, idempotent group removal.
"""

from __future__ import annotations

import itertools
import uuid
from dataclasses import replace
from datetime import datetime

from tsg.entities import Account, ServiceGroup
from tsg.errors import AmbiguousLookupError, MissingIdentifierError, NotFoundError, PersistenceError


class InMemoryAccountRepo:
    def __init__(self) -> None:
        self._rows: dict[uuid.UUID, Account] = {}
        self._archived: set[uuid.UUID] = set()

    async def insert(self, account: Account) -> None:
        if any(a.account_name == account.account_name for a in self._active()):
            raise PersistenceError("failed to insert account")

        now = datetime.utcnow()
        row = Account(
            id=uuid.uuid4(),
            account_name=account.account_name,
            external_identity_ref=account.external_identity_ref,
            created_at=now,
            updated_at=now,
        )
        self._rows[row.id] = row

        stored = await self.find_by_name(account.account_name)
        if stored is None:
            raise NotFoundError("failed to find account after insert")
        account.id = stored.id
        account.created_at = stored.created_at
        account.updated_at = stored.updated_at

    async def save(self, account: Account) -> None:
        if account.id is None:
            raise MissingIdentifierError("missing identifier for save")
        row = self._rows.get(account.id)
        if row is None:
            raise NotFoundError(f"account {account.id} not found")
        if any(
            a.account_name == account.account_name and a.id != account.id
            for a in self._active()
        ):
            raise PersistenceError("failed to save account")

        account.updated_at = datetime.utcnow()
        row.account_name = account.account_name
        row.external_identity_ref = account.external_identity_ref
        row.key_id = account.key_id
        row.updated_at = account.updated_at

    async def exists(self, account: Account) -> bool:
        if account.id is None and not account.account_name:
            raise AmbiguousLookupError("can't check existence without id or name")
        for a in self._active():
            if account.id is not None and a.id == account.id:
                return True
            if account.account_name and a.account_name == account.account_name:
                return True
        return False

    async def find_by_id(self, account_id: uuid.UUID) -> Account | None:
        return next((replace(a) for a in self._active() if a.id == account_id), None)

    async def find_by_name(self, account_name: str) -> Account | None:
        return next(
            (replace(a) for a in self._active() if a.account_name == account_name), None
        )

    async def archive(self, account_id: uuid.UUID) -> None:
        if account_id in self._rows:
            self._archived.add(account_id)

    def _active(self):
        return (a for a in self._rows.values() if a.id not in self._archived)


class InMemoryGroupRepo:
    def __init__(self) -> None:
        self._rows: dict[int, ServiceGroup] = {}
        self._ids = itertools.count(1)

    async def find_by_id(self, account_id: uuid.UUID, group_id: int) -> ServiceGroup | None:
        row = self._rows.get(group_id)
        if row is None or row.account_id != account_id:
            return None
        return replace(row)

    async def find_by_name(self, account_id: uuid.UUID, group_name: str) -> ServiceGroup | None:
        for row in self._rows.values():
            if row.account_id == account_id and row.group_name == group_name:
                return replace(row)
        return None

    async def list(self, account_id: uuid.UUID) -> list[ServiceGroup]:
        return [replace(r) for _, r in sorted(self._rows.items()) if r.account_id == account_id]

    async def save(self, account_id: uuid.UUID, group: ServiceGroup) -> ServiceGroup:
        if group.id is not None and await self.find_by_id(account_id, group.id) is None:
            raise NotFoundError(f"group {group.id} not found")
        clash = await self.find_by_name(account_id, group.group_name)
        if clash is not None and clash.id != group.id:
            raise PersistenceError("failed to save group")

        group_id = group.id if group.id is not None else next(self._ids)
        stored = replace(group, id=group_id, account_id=account_id)
        self._rows[group_id] = stored
        return replace(stored)

    async def remove(self, account_id: uuid.UUID, group_id: int) -> None:
        row = self._rows.get(group_id)
        if row is not None and row.account_id == account_id:
            del self._rows[group_id]
