"""
tsg.api.routers.accounts

Account endpoints.

Responsibilities:
- Register accounts (admin only).
- Read and replace the caller's own account.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from tsg.api.deps import current_account, db_session
from tsg.auth.deps import require_roles
from tsg.db.repositories.accounts import AccountRepo
from tsg.entities import Account
from tsg.services.accounts import AccountService

router = APIRouter(prefix="/v1/accounts", tags=["accounts"])


class AccountCreateRequest(BaseModel):
    account_name: str = Field(min_length=1, max_length=256)
    external_identity_ref: str = Field(min_length=1, max_length=256)


class AccountUpdateRequest(AccountCreateRequest):
    # Omitted or null detaches the key.
    key_id: uuid.UUID | None = None


class AccountResponse(BaseModel):
    id: uuid.UUID
    account_name: str
    external_identity_ref: str
    key_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, account: Account) -> AccountResponse:
        return cls(
            id=account.id,
            account_name=account.account_name,
            external_identity_ref=account.external_identity_ref,
            key_id=account.key_id,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


@router.post(
    "",
    response_model=AccountResponse,
    status_code=HTTP_201_CREATED,
    dependencies=[Depends(require_roles("admin"))],
)
async def create_account(
    body: AccountCreateRequest,
    session: AsyncSession = Depends(db_session),
) -> AccountResponse:
    svc = AccountService(accounts=AccountRepo(session))
    account = await svc.register(
        account_name=body.account_name,
        external_identity_ref=body.external_identity_ref,
    )
    return AccountResponse.from_entity(account)


@router.get("/me", response_model=AccountResponse)
async def get_my_account(account: Account = Depends(current_account)) -> AccountResponse:
    return AccountResponse.from_entity(account)


@router.put("/me", response_model=AccountResponse)
async def update_my_account(
    body: AccountUpdateRequest,
    account: Account = Depends(current_account),
    session: AsyncSession = Depends(db_session),
) -> AccountResponse:
    svc = AccountService(accounts=AccountRepo(session))
    saved = await svc.update(
        account,
        account_name=body.account_name,
        external_identity_ref=body.external_identity_ref,
        key_id=body.key_id,
    )
    return AccountResponse.from_entity(saved)
