"""
tsg.orchestrator.jobs

Job identity and payload derived from a service group snapshot.
"""

from __future__ import annotations

from typing import Any

from tsg.entities import Account, ServiceGroup
from tsg.errors import MissingIdentifierError


def job_id(account: Account, group: ServiceGroup) -> str:
    if account.id is None or group.id is None:
        raise MissingIdentifierError("job id needs stored account and group ids")
    # Keyed by id, not name, so renaming a group updates the same job.
    return f"tsg-{account.id}-{group.id}"


def job_payload(account: Account, group: ServiceGroup) -> dict[str, Any]:
    return {
        "job_id": job_id(account, group),
        "account_id": str(account.id),
        "account_name": account.account_name,
        "group_id": group.id,
        "group_name": group.group_name,
        "template_id": group.template_id,
        "capacity": group.capacity,
        "health_check_interval": group.health_check_interval,
    }
