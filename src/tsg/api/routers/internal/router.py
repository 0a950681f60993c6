"""
tsg.api.routers.internal.router

Internal router aggregator.

Responsibilities:
- Mount internal routers under `/internal/v1`.
"""

from __future__ import annotations

from fastapi import APIRouter

from tsg.api.routers.internal import jobs

router = APIRouter(prefix="/internal/v1", tags=["internal"])

## Each included router is protected by RBAC role `internal_system`.
router.include_router(jobs.router, prefix="/jobs")


# --- Module Notes -----------------------------------------------------------
# The job API follows the same contract as the external orchestrator, so setting
# `TSG_ORCHESTRATOR_BASE_URL` swaps it out without touching services.
