"""
tests.test_api

End-to-end checks through the FastAPI app, with the in-process job API standing
in for the orchestrator.
"""

from __future__ import annotations

import uuid

import httpx
import pytest

from tsg.api.routers.internal.jobs import JobSpec

WEB = {"group_name": "web", "template_id": 7, "capacity": 3, "health_check_interval": 30}


async def _register(client: httpx.AsyncClient, bearer, name: str) -> tuple[dict, dict]:
    r = await client.post(
        "/v1/accounts",
        headers=bearer("ops", "admin"),
        json={"account_name": name, "external_identity_ref": str(uuid.uuid4())},
    )
    assert r.status_code == 201, r.text
    account = r.json()

    r = await client.post("/v1/dev/token", json={"account_name": name})
    assert r.status_code == 200, r.text
    headers = {"Authorization": f"Bearer {r.json()['access_token']}"}
    return account, headers


@pytest.mark.asyncio
async def test_health_endpoints(app_client: httpx.AsyncClient) -> None:
    r = await app_client.get("/healthz")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"

    r = await app_client.get("/readyz")
    assert r.status_code == 200
    assert r.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_group_lifecycle_over_http(app, app_client, bearer) -> None:
    account, headers = await _register(app_client, bearer, "acct-1")

    r = await app_client.post("/v1/groups", headers=headers, json=WEB)
    assert r.status_code == 201, r.text
    assert r.headers["location"] == "/v1/groups/web"
    group = r.json()
    assert group["account_id"] == account["id"]
    assert isinstance(group["id"], int)

    job_id = f"tsg-{account['id']}-{group['id']}"
    assert [j.job_id for j in app.state.jobs.all()] == [job_id]

    r = await app_client.put(
        f"/v1/groups/{group['id']}", headers=headers, json={**WEB, "capacity": 6}
    )
    assert r.status_code == 200, r.text
    assert r.json()["capacity"] == 6
    assert app.state.jobs.get(job_id).capacity == 6

    r = await app_client.get("/v1/groups", headers=headers)
    assert [g["id"] for g in r.json()] == [group["id"]]

    r = await app_client.delete(f"/v1/groups/{group['id']}", headers=headers)
    assert r.status_code == 204
    assert app.state.jobs.all() == []

    r = await app_client.delete(f"/v1/groups/{group['id']}", headers=headers)
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_malformed_identifier_is_bad_request(app_client, bearer) -> None:
    _, headers = await _register(app_client, bearer, "acct-1")

    r = await app_client.get("/v1/groups/not-a-number", headers=headers)
    assert r.status_code == 400
    assert r.json()["error"] == "bad_request"


@pytest.mark.asyncio
async def test_out_of_range_integers_are_rejected(app_client, bearer) -> None:
    _, headers = await _register(app_client, bearer, "acct-1")

    r = await app_client.get(f"/v1/groups/{2**70}", headers=headers)
    assert r.status_code == 400
    assert r.json()["error"] == "bad_request"

    for field in ("template_id", "capacity", "health_check_interval"):
        r = await app_client.post("/v1/groups", headers=headers, json={**WEB, field: 2**70})
        assert r.status_code == 422, field

    r = await app_client.get("/v1/groups", headers=headers)
    assert r.json() == []


@pytest.mark.asyncio
async def test_groups_are_invisible_to_other_accounts(app_client, bearer) -> None:
    _, owner = await _register(app_client, bearer, "owner")
    _, intruder = await _register(app_client, bearer, "intruder")

    r = await app_client.post("/v1/groups", headers=owner, json=WEB)
    group_id = r.json()["id"]

    assert (await app_client.get(f"/v1/groups/{group_id}", headers=intruder)).status_code == 404
    assert (await app_client.delete(f"/v1/groups/{group_id}", headers=intruder)).status_code == 404
    assert (await app_client.get("/v1/groups", headers=intruder)).json() == []
    assert (await app_client.get(f"/v1/groups/{group_id}", headers=owner)).status_code == 200


@pytest.mark.asyncio
async def test_failed_submit_is_reported_and_row_kept(app, app_client, bearer) -> None:
    account, headers = await _register(app_client, bearer, "acct-1")
    # Occupy the job id the first group will get so the orchestrator answers 409.
    app.state.jobs.put(
        JobSpec(
            job_id=f"tsg-{account['id']}-1",
            account_id=account["id"],
            account_name="acct-1",
            group_id=1,
            group_name="leftover",
            template_id=1,
            capacity=0,
            health_check_interval=0,
        )
    )

    r = await app_client.post("/v1/groups", headers=headers, json=WEB)
    assert r.status_code == 500
    assert r.json()["error"] == "server_error"

    listed = (await app_client.get("/v1/groups", headers=headers)).json()
    assert [g["group_name"] for g in listed] == ["web"]


@pytest.mark.asyncio
async def test_account_endpoints(app_client, bearer) -> None:
    account, headers = await _register(app_client, bearer, "acct-1")

    r = await app_client.get("/v1/accounts/me", headers=headers)
    assert r.status_code == 200
    assert r.json()["id"] == account["id"]
    assert r.json()["key_id"] is None

    key_id = str(uuid.uuid4())
    r = await app_client.put(
        "/v1/accounts/me",
        headers=headers,
        json={"account_name": "acct-1", "external_identity_ref": "ref-2", "key_id": key_id},
    )
    assert r.status_code == 200, r.text
    assert r.json()["key_id"] == key_id
    assert r.json()["updated_at"] >= r.json()["created_at"]

    r = await app_client.post(
        "/v1/accounts",
        headers=bearer("ops", "admin"),
        json={"account_name": "acct-1", "external_identity_ref": "dup"},
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_unauthenticated_and_unknown_callers(app_client, bearer) -> None:
    assert (await app_client.get("/v1/groups")).status_code == 401
    assert (await app_client.get("/v1/groups", headers=bearer(str(uuid.uuid4())))).status_code == 401
    assert (
        await app_client.post(
            "/v1/accounts",
            headers=bearer("someone"),
            json={"account_name": "x", "external_identity_ref": "y"},
        )
    ).status_code == 403
