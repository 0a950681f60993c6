"""
tests.conftest

Shared fixtures: SQLite-backed sessions, a recording orchestrator, token
headers and an API client running the app lifespan.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field, replace
from datetime import timedelta

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from tsg.api.app import create_app
from tsg.auth.jwt import config_from_settings, issue_token
from tsg.db.init_db import init_db
from tsg.db.session import create_engine, create_sessionmaker
from tsg.entities import Account, ServiceGroup
from tsg.errors import OrchestratorError
from tsg.settings import Settings

MEMORY_DB = "sqlite+aiosqlite:///:memory:"


@dataclass
class RecordingOrchestrator:
    """Orchestrator double: records calls, fails the ops listed in `fail_on`."""

    calls: list[tuple[str, ServiceGroup]] = field(default_factory=list)
    fail_on: set[str] = field(default_factory=set)

    async def _call(self, op: str, group: ServiceGroup) -> None:
        self.calls.append((op, replace(group)))
        if op in self.fail_on:
            raise OrchestratorError(f"orchestrator {op} failed with status 503", status=503)

    async def submit(self, account: Account, group: ServiceGroup) -> None:
        await self._call("submit", group)

    async def update(self, account: Account, group: ServiceGroup) -> None:
        await self._call("update", group)

    async def delete(self, account: Account, group: ServiceGroup) -> None:
        await self._call("delete", group)

    def ops(self) -> list[str]:
        return [op for op, _ in self.calls]


@pytest.fixture
def settings() -> Settings:
    return Settings(env="test", database_url=MEMORY_DB)


@pytest.fixture
def orchestrator() -> RecordingOrchestrator:
    return RecordingOrchestrator()


@pytest_asyncio.fixture
async def engine(settings: Settings) -> AsyncIterator[AsyncEngine]:
    engine = create_engine(settings)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    async with create_sessionmaker(engine)() as session:
        yield session


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings=settings)


@pytest_asyncio.fixture
async def app_client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    # httpx ASGITransport does not run the lifespan; drive it explicitly.
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest.fixture
def bearer(settings: Settings):
    def _make(subject: str, *roles: str) -> dict[str, str]:
        token = issue_token(
            cfg=config_from_settings(settings),
            subject=subject,
            roles=list(roles),
            ttl=timedelta(minutes=5),
        )
        return {"Authorization": f"Bearer {token}"}

    return _make
