"""
tsg.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide DB sessions and the orchestrator HTTP client per request.
- Resolve the calling account from the authenticated principal.
- Build the lifecycle service from request-scoped collaborators.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator

import httpx
import structlog
from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.status import HTTP_401_UNAUTHORIZED

from tsg.auth.deps import get_principal
from tsg.auth.models import Principal
from tsg.db.repositories.accounts import AccountRepo
from tsg.db.repositories.groups import GroupRepo
from tsg.entities import Account
from tsg.orchestrator.client import HttpOrchestratorClient
from tsg.services.group_lifecycle import GroupLifecycleService
from tsg.settings import Settings, get_settings


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # The sessionmaker is created on app startup in `tsg.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Repositories commit each write themselves.
    async with session_factory() as session:
        yield session


async def orchestrator_http(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[httpx.AsyncClient]:
    timeout = httpx.Timeout(settings.orchestrator_timeout_seconds)
    if settings.orchestrator_base_url is None:
        # In-process job API: real HTTP semantics without a network hop.
        transport = httpx.ASGITransport(app=request.app)
        async with httpx.AsyncClient(
            transport=transport,
            base_url=str(request.base_url).rstrip("/"),
            timeout=timeout,
        ) as http:
            yield http
        return

    async with httpx.AsyncClient(base_url=settings.orchestrator_base_url, timeout=timeout) as http:
        yield http


async def current_account(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> Account:
    try:
        account_id = uuid.UUID(principal.subject)
    except ValueError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Unknown account") from e

    # Archived accounts resolve to None and lose access.
    account = await AccountRepo(session).find_by_id(account_id)
    if account is None:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Unknown account")

    structlog.contextvars.bind_contextvars(account_id=str(account.id))
    return account


def group_service(
    session: AsyncSession = Depends(db_session),
    http: httpx.AsyncClient = Depends(orchestrator_http),
    settings: Settings = Depends(get_settings),
) -> GroupLifecycleService:
    return GroupLifecycleService(
        groups=GroupRepo(session),
        orchestrator=HttpOrchestratorClient(settings=settings, http=http),
    )


# --- Module Notes -----------------------------------------------------------
# FastAPI caches dependencies per request, so `current_account` and
# `group_service` share one session.
