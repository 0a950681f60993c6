"""
tests.test_orchestrator_client

HTTP contract of `HttpOrchestratorClient` against a mocked transport.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import replace

import httpx
import pytest

from tsg.auth.jwt import config_from_settings, decode_and_validate
from tsg.entities import Account, ServiceGroup
from tsg.errors import MissingIdentifierError, OrchestratorError
from tsg.orchestrator.client import HttpOrchestratorClient

ACCOUNT = Account(id=uuid.uuid4(), account_name="acct-1", external_identity_ref="ref")
GROUP = ServiceGroup(
    id=12,
    group_name="web",
    template_id=7,
    account_id=ACCOUNT.id,
    capacity=3,
    health_check_interval=30,
)
JOB_PATH = f"/internal/v1/jobs/tsg-{ACCOUNT.id}-12"


def _client(settings, handler) -> HttpOrchestratorClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://orch")
    return HttpOrchestratorClient(settings=settings, http=http)


@pytest.mark.asyncio
async def test_submit_posts_job_payload(settings) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={})

    await _client(settings, handler).submit(ACCOUNT, GROUP)

    (request,) = seen
    assert request.method == "POST"
    assert request.url.path == "/internal/v1/jobs"
    assert request.headers["x-account-id"] == str(ACCOUNT.id)

    body = json.loads(request.content)
    assert body["job_id"] == f"tsg-{ACCOUNT.id}-12"
    assert body["group_name"] == "web"
    assert body["capacity"] == 3

    token = request.headers["authorization"].removeprefix("Bearer ")
    claims = decode_and_validate(cfg=config_from_settings(settings), token=token)
    assert claims["roles"] == ["internal_system"]


@pytest.mark.asyncio
async def test_update_and_delete_target_the_job(settings) -> None:
    seen: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        return httpx.Response(204 if request.method == "DELETE" else 200)

    client = _client(settings, handler)
    await client.update(ACCOUNT, GROUP)
    await client.delete(ACCOUNT, GROUP)

    assert seen == [("PUT", JOB_PATH), ("DELETE", JOB_PATH)]


@pytest.mark.asyncio
async def test_error_status_is_surfaced_without_retry(settings) -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(503, json={"detail": "busy"})

    with pytest.raises(OrchestratorError) as exc:
        await _client(settings, handler).submit(ACCOUNT, GROUP)

    assert exc.value.status == 503
    assert calls == 1


@pytest.mark.asyncio
async def test_transport_failure_has_no_status(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(OrchestratorError) as exc:
        await _client(settings, handler).delete(ACCOUNT, GROUP)

    assert exc.value.status is None
    assert isinstance(exc.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_unsaved_group_is_rejected_before_sending(settings) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    client = _client(settings, handler)
    unsaved = replace(GROUP, id=None)

    for call in (client.submit, client.update, client.delete):
        with pytest.raises(MissingIdentifierError):
            await call(ACCOUNT, unsaved)
    with pytest.raises(MissingIdentifierError):
        await client.submit(replace(ACCOUNT, id=None), GROUP)
    assert seen == []
