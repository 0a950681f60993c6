"""
tests.test_account_repo

Account repository contract, checked against both the SQLAlchemy repository and
the in-memory double.
"""

from __future__ import annotations

import uuid

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError

from tsg.db.repositories.accounts import AccountRepo
from tsg.db.repositories.memory import InMemoryAccountRepo
from tsg.entities import Account
from tsg.errors import AmbiguousLookupError, MissingIdentifierError, NotFoundError, PersistenceError
from tsg.services.accounts import AccountService


@pytest_asyncio.fixture(params=["sql", "memory"])
async def accounts(request, session):
    if request.param == "sql":
        return AccountRepo(session)
    return InMemoryAccountRepo()


class _UnusableSession:
    """Stands in for a session whose every statement fails."""

    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc
        self.statements = 0

    async def execute(self, *args, **kwargs):
        self.statements += 1
        if self.exc is not None:
            raise self.exc
        raise AssertionError("store must not be queried")

    async def commit(self) -> None:
        pass

    async def rollback(self) -> None:
        pass


async def _insert(accounts, name: str = "acct-1") -> Account:
    account = Account(account_name=name, external_identity_ref=str(uuid.uuid4()))
    await accounts.insert(account)
    return account


@pytest.mark.asyncio
async def test_insert_assigns_id_and_timestamps(accounts) -> None:
    account = await _insert(accounts)

    assert account.id is not None
    assert account.created_at is not None and account.updated_at is not None
    assert account.created_at <= account.updated_at

    found = await accounts.find_by_name("acct-1")
    assert found is not None
    assert found.id == account.id
    assert found.external_identity_ref == account.external_identity_ref


@pytest.mark.asyncio
async def test_insert_duplicate_name_fails(accounts) -> None:
    await _insert(accounts)
    with pytest.raises(PersistenceError):
        await _insert(accounts)


@pytest.mark.asyncio
async def test_save_without_id_fails_without_writing(accounts) -> None:
    await _insert(accounts, "existing")
    draft = Account(account_name="existing", external_identity_ref="changed")

    with pytest.raises(MissingIdentifierError):
        await accounts.save(draft)

    stored = await accounts.find_by_name("existing")
    assert stored.external_identity_ref != "changed"


@pytest.mark.asyncio
async def test_save_replaces_fields_and_refreshes_updated_at(accounts) -> None:
    account = await _insert(accounts)
    before = account.updated_at
    key_id = uuid.uuid4()

    account.account_name = "acct-renamed"
    account.external_identity_ref = "ref-2"
    account.key_id = key_id
    await accounts.save(account)

    stored = await accounts.find_by_id(account.id)
    assert stored.account_name == "acct-renamed"
    assert stored.external_identity_ref == "ref-2"
    assert stored.key_id == key_id
    assert stored.updated_at >= before
    assert await accounts.find_by_name("acct-1") is None


@pytest.mark.asyncio
async def test_save_clears_key_id(accounts) -> None:
    account = await _insert(accounts)
    account.key_id = uuid.uuid4()
    await accounts.save(account)

    account.key_id = None
    await accounts.save(account)

    stored = await accounts.find_by_id(account.id)
    assert stored.key_id is None


@pytest.mark.asyncio
async def test_save_unknown_id_is_not_found(accounts) -> None:
    ghost = Account(id=uuid.uuid4(), account_name="ghost", external_identity_ref="x")
    with pytest.raises(NotFoundError):
        await accounts.save(ghost)


@pytest.mark.asyncio
async def test_exists_by_id_or_name(accounts) -> None:
    account = await _insert(accounts)

    assert await accounts.exists(Account(id=account.id))
    assert await accounts.exists(Account(account_name="acct-1"))
    # Either identifier matching is enough.
    assert await accounts.exists(Account(id=uuid.uuid4(), account_name="acct-1"))
    assert await accounts.exists(Account(id=account.id, account_name="other"))


@pytest.mark.asyncio
async def test_exists_unset_id_never_matches_a_stored_row(accounts) -> None:
    await _insert(accounts)
    assert not await accounts.exists(Account(account_name="someone-else"))
    assert not await accounts.exists(Account(id=uuid.uuid4()))


@pytest.mark.asyncio
async def test_exists_ignores_archived_accounts(accounts) -> None:
    account = await _insert(accounts)
    await accounts.archive(account.id)

    assert not await accounts.exists(Account(id=account.id))
    assert not await accounts.exists(Account(account_name="acct-1"))
    assert await accounts.find_by_id(account.id) is None


@pytest.mark.asyncio
async def test_archived_name_can_be_registered_again(accounts) -> None:
    old = await _insert(accounts)
    await accounts.archive(old.id)

    fresh = await AccountService(accounts=accounts).register(
        account_name="acct-1", external_identity_ref="new-ref"
    )

    assert fresh.id is not None and fresh.id != old.id
    found = await accounts.find_by_name("acct-1")
    assert found is not None
    assert found.id == fresh.id
    assert found.external_identity_ref == "new-ref"

    # Still unique among active accounts.
    with pytest.raises(PersistenceError):
        await _insert(accounts)


@pytest.mark.asyncio
async def test_exists_without_identifiers_never_queries() -> None:
    session = _UnusableSession()
    with pytest.raises(AmbiguousLookupError):
        await AccountRepo(session).exists(Account())
    assert session.statements == 0

    with pytest.raises(AmbiguousLookupError):
        await InMemoryAccountRepo().exists(Account())


@pytest.mark.asyncio
async def test_store_failures_surface_as_persistence_errors() -> None:
    down = OperationalError("SELECT 1", {}, Exception("connection refused"))
    repo = AccountRepo(_UnusableSession(down))

    with pytest.raises(PersistenceError):
        await repo.exists(Account(account_name="acct-1"))
    with pytest.raises(PersistenceError):
        await repo.insert(Account(account_name="acct-1", external_identity_ref="x"))
    with pytest.raises(PersistenceError):
        await repo.save(Account(id=uuid.uuid4(), account_name="acct-1"))
