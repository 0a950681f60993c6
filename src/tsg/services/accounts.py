"""
tsg.services.accounts

Account registration and profile updates on top of the account repository.
"""

from __future__ import annotations

import uuid

from tsg.db.repositories.protocols import AccountRepository
from tsg.entities import Account
from tsg.errors import DuplicateAccountError, NotFoundError
from tsg.observability.logging import get_logger

log = get_logger(__name__)


class AccountService:
    def __init__(self, *, accounts: AccountRepository) -> None:
        self._accounts = accounts

    async def register(self, *, account_name: str, external_identity_ref: str) -> Account:
        account = Account(account_name=account_name, external_identity_ref=external_identity_ref)
        if await self._accounts.exists(account):
            raise DuplicateAccountError(f"account {account_name!r} already exists")

        await self._accounts.insert(account)
        log.info("account_registered", account_id=str(account.id))
        return account

    async def get(self, account_id: uuid.UUID) -> Account:
        account = await self._accounts.find_by_id(account_id)
        if account is None:
            raise NotFoundError(f"account {account_id} not found")
        return account

    async def update(
        self,
        account: Account,
        *,
        account_name: str,
        external_identity_ref: str,
        key_id: uuid.UUID | None,
    ) -> Account:
        if account_name != account.account_name:
            if await self._accounts.exists(Account(account_name=account_name)):
                raise DuplicateAccountError(f"account {account_name!r} already exists")

        account.account_name = account_name
        account.external_identity_ref = external_identity_ref
        account.key_id = key_id
        await self._accounts.save(account)
        log.info("account_saved", account_id=str(account.id))
        return account
