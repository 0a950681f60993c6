"""
tsg.orchestrator.client

HTTP client boundary used to mirror service groups as orchestrator jobs.

Responsibilities:
- Submit, update and delete one job per service group.
- Attach short-lived JWT credentials (role=internal_system).
- Normalize every remote failure into `OrchestratorError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Protocol

import httpx

from tsg.auth.jwt import config_from_settings, issue_token
from tsg.entities import Account, ServiceGroup
from tsg.errors import OrchestratorError
from tsg.observability.logging import get_logger
from tsg.orchestrator.jobs import job_id, job_payload
from tsg.settings import Settings

log = get_logger(__name__)


class OrchestratorClient(Protocol):
    async def submit(self, account: Account, group: ServiceGroup) -> None: ...

    async def update(self, account: Account, group: ServiceGroup) -> None: ...

    async def delete(self, account: Account, group: ServiceGroup) -> None: ...


@dataclass(frozen=True, slots=True)
class OrchestratorAuth:
    # Identity used for job calls; subject is an internal service identity.
    subject: str = "tsg-service"
    roles: tuple[str, ...] = ("internal_system",)


class HttpOrchestratorClient:
    """
    One HTTP request per call and no retries; timeouts are whatever the
    injected `httpx.AsyncClient` is configured with.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        http: httpx.AsyncClient,
        auth: OrchestratorAuth | None = None,
    ) -> None:
        self._settings = settings
        self._http = http
        self._auth = auth or OrchestratorAuth()

    def _headers(self, account: Account) -> dict[str, str]:
        token = issue_token(
            cfg=config_from_settings(self._settings),
            subject=self._auth.subject,
            roles=list(self._auth.roles),
            ttl=timedelta(minutes=5),
        )
        return {"Authorization": f"Bearer {token}", "x-account-id": str(account.id)}

    async def submit(self, account: Account, group: ServiceGroup) -> None:
        await self._send(
            "POST", "/internal/v1/jobs", account, json=job_payload(account, group), op="submit"
        )

    async def update(self, account: Account, group: ServiceGroup) -> None:
        await self._send(
            "PUT",
            f"/internal/v1/jobs/{job_id(account, group)}",
            account,
            json=job_payload(account, group),
            op="update",
        )

    async def delete(self, account: Account, group: ServiceGroup) -> None:
        await self._send(
            "DELETE", f"/internal/v1/jobs/{job_id(account, group)}", account, op="delete"
        )

    async def _send(
        self,
        method: str,
        url: str,
        account: Account,
        *,
        op: str,
        json: dict[str, Any] | None = None,
    ) -> None:
        try:
            r = await self._http.request(method, url, headers=self._headers(account), json=json)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            log.warning("orchestrator_call_failed", op=op, url=url, status=status)
            raise OrchestratorError(
                f"orchestrator {op} failed with status {status}", status=status
            ) from e
        except httpx.HTTPError as e:
            log.warning("orchestrator_unreachable", op=op, url=url, error=str(e))
            raise OrchestratorError(f"orchestrator {op} failed: {e}") from e


# --- Module Notes -----------------------------------------------------------
# No dedup key is sent: repeating a call after an ambiguous failure is the
# caller's decision.
