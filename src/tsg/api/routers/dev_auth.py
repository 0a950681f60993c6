"""
tsg.api.routers.dev_auth

Development-only token minting.

Responsibilities:
- Issue short-lived JWTs for local testing, with caller-chosen roles.
- Resolve an account name to its id so the token authenticates as that account.
- Stay hidden (404) when running with `env=prod`.
"""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_404_NOT_FOUND

from tsg.api.deps import db_session
from tsg.auth.jwt import config_from_settings, issue_token
from tsg.db.repositories.accounts import AccountRepo
from tsg.settings import Settings, get_settings

router = APIRouter(prefix="/v1/dev", tags=["dev"])


class DevTokenRequest(BaseModel):
    # Without an account name the token carries a non-account subject (e.g. for admins).
    account_name: str | None = Field(default=None, min_length=1, max_length=256)
    subject: str = Field(default="dev", min_length=1, max_length=256)
    roles: list[str] = Field(default_factory=list)
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)


class DevTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/token", response_model=DevTokenResponse)
async def mint_dev_token(
    body: DevTokenRequest,
    settings: Settings = Depends(get_settings),
    session: AsyncSession = Depends(db_session),
) -> DevTokenResponse:
    if settings.env == "prod":
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not found")

    subject = body.subject
    if body.account_name is not None:
        account = await AccountRepo(session).find_by_name(body.account_name)
        if account is None:
            raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Account not found")
        subject = str(account.id)

    token = issue_token(
        cfg=config_from_settings(settings),
        subject=subject,
        roles=body.roles,
        ttl=timedelta(minutes=body.ttl_minutes),
    )
    return DevTokenResponse(access_token=token)
