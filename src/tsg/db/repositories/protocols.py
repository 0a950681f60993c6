"""
tsg.db.repositories.protocols

Storage-agnostic repository contracts.

Responsibilities:
- Describe the account and group operations services depend on, so the
  SQLAlchemy repositories and the in-memory doubles are interchangeable.
"""

from __future__ import annotations

import uuid
from typing import Protocol

from tsg.entities import Account, ServiceGroup


class AccountRepository(Protocol):
    async def insert(self, account: Account) -> None: ...

    async def save(self, account: Account) -> None: ...

    async def exists(self, account: Account) -> bool: ...

    async def find_by_id(self, account_id: uuid.UUID) -> Account | None: ...

    async def find_by_name(self, account_name: str) -> Account | None: ...

    async def archive(self, account_id: uuid.UUID) -> None: ...


class GroupRepository(Protocol):
    async def find_by_id(self, account_id: uuid.UUID, group_id: int) -> ServiceGroup | None: ...

    async def find_by_name(
        self, account_id: uuid.UUID, group_name: str
    ) -> ServiceGroup | None: ...

    async def list(self, account_id: uuid.UUID) -> list[ServiceGroup]: ...

    async def save(self, account_id: uuid.UUID, group: ServiceGroup) -> ServiceGroup: ...

    async def remove(self, account_id: uuid.UUID, group_id: int) -> None: ...
