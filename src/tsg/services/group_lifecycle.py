"""
tsg.services.group_lifecycle

Service group lifecycle: keeps the store and the orchestrator in step.

Responsibilities:
- Run create/update/delete as fixed, ordered steps across the group store and
  the orchestrator (no shared transaction, no compensation).
- Re-read persisted state before answering create/update.
- Surface every failure to the caller with the step that produced it logged.
- Finish a started create/update/delete even when the caller is cancelled.

Failure outcomes:
- create: store write fails -> nothing happened. Submit fails -> row exists,
  job does not.
- update: store write fails -> nothing happened. Job update fails -> row holds
  the new values, job holds the old ones.
- delete: lookup misses -> nothing happened. Job delete fails -> row is gone,
  job is orphaned.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import replace
from typing import TypeVar

from tsg.db.repositories.protocols import GroupRepository
from tsg.entities import Account, ServiceGroup
from tsg.errors import MissingIdentifierError, NotFoundError, OrchestratorError
from tsg.observability.logging import get_logger
from tsg.orchestrator.client import OrchestratorClient

log = get_logger(__name__)

T = TypeVar("T")


class GroupLifecycleService:
    def __init__(
        self,
        *,
        groups: GroupRepository,
        orchestrator: OrchestratorClient,
    ) -> None:
        self._groups = groups
        self._orchestrator = orchestrator

    async def get(self, account: Account, group_id: int) -> ServiceGroup:
        group = await self._groups.find_by_id(_account_id(account), group_id)
        if group is None:
            raise NotFoundError(f"group {group_id} not found")
        return group

    async def list(self, account: Account) -> list[ServiceGroup]:
        return await self._groups.list(_account_id(account))

    async def create(self, account: Account, group: ServiceGroup) -> ServiceGroup:
        return await _run_to_completion(self._create(account, group), op="create")

    async def update(self, account: Account, group_id: int, group: ServiceGroup) -> ServiceGroup:
        return await _run_to_completion(self._update(account, group_id, group), op="update")

    async def delete(self, account: Account, group_id: int) -> None:
        await _run_to_completion(self._delete(account, group_id), op="delete")

    async def _create(self, account: Account, group: ServiceGroup) -> ServiceGroup:
        account_id = _account_id(account)
        draft = replace(group, id=None, account_id=account_id)

        stored = await self._groups.save(account_id, draft)
        log.info("group_persisted", op="create", group_id=stored.id, group_name=stored.group_name)

        try:
            await self._orchestrator.submit(account, stored)
        except OrchestratorError as e:
            # The row stays; the job was never created.
            log.error("group_job_submit_failed", group_id=stored.id, status=e.status)
            raise
        log.info("group_job_submitted", group_id=stored.id)

        current = await self._groups.find_by_name(account_id, stored.group_name)
        if current is None:
            log.error("group_missing_after_write", op="create", group_id=stored.id)
            raise NotFoundError(f"group {stored.group_name!r} not found after create")
        return current

    async def _update(self, account: Account, group_id: int, group: ServiceGroup) -> ServiceGroup:
        account_id = _account_id(account)
        draft = replace(group, id=group_id, account_id=account_id)

        # Raises NotFoundError before any remote call when the id is not ours.
        stored = await self._groups.save(account_id, draft)
        log.info("group_persisted", op="update", group_id=stored.id)

        try:
            await self._orchestrator.update(account, stored)
        except OrchestratorError as e:
            # The row already holds the new values; the job does not.
            log.error("group_job_update_failed", group_id=stored.id, status=e.status)
            raise
        log.info("group_job_updated", group_id=stored.id)

        current = await self._groups.find_by_id(account_id, group_id)
        if current is None:
            log.error("group_missing_after_write", op="update", group_id=group_id)
            raise NotFoundError(f"group {group_id} not found after update")
        return current

    async def _delete(self, account: Account, group_id: int) -> None:
        account_id = _account_id(account)

        group = await self._groups.find_by_id(account_id, group_id)
        if group is None:
            raise NotFoundError(f"group {group_id} not found")

        # Store first: the store decides whether the group exists for the tenant.
        await self._groups.remove(account_id, group_id)
        log.info("group_removed", group_id=group_id)

        try:
            await self._orchestrator.delete(account, group)
        except OrchestratorError as e:
            log.error("group_job_delete_failed", group_id=group_id, status=e.status)
            raise
        log.info("group_job_deleted", group_id=group_id)


def _account_id(account: Account):
    if account.id is None:
        raise MissingIdentifierError("account id required for group operations")
    return account.id


async def _run_to_completion(steps: Awaitable[T], *, op: str) -> T:
    """
    Run a mutation's steps to the end even if the caller is cancelled.

    A cancellation that lands between the store write and the orchestrator call
    would otherwise leave a row without its job. The steps run in their own task
    behind `asyncio.shield`; the caller waits for that task to settle and only
    then sees the `CancelledError`.
    """
    task = asyncio.ensure_future(steps)
    try:
        return await asyncio.shield(task)
    except asyncio.CancelledError:
        log.warning("group_operation_cancel_deferred", op=op)
        while not task.done():
            try:
                await asyncio.wait([task])
            except asyncio.CancelledError:
                continue
        if not task.cancelled() and task.exception() is not None:
            log.error("group_operation_failed_after_cancel", op=op, error=repr(task.exception()))
        raise


# --- Module Notes -----------------------------------------------------------
# Nothing here retries or rolls back. A failed step is logged and re-raised so the
# caller (and an operator reading the logs) sees exactly where the sequence stopped.
