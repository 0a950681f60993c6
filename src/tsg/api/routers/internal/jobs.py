"""
tsg.api.routers.internal.jobs

Simulated orchestrator job API.

Responsibilities:
- Register, update and deregister jobs keyed by `job_id`.
- Answer with the status codes a real orchestrator would (409/404 on conflicts).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field
from starlette.status import (
    HTTP_201_CREATED,
    HTTP_204_NO_CONTENT,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
)

from tsg.auth.deps import require_roles

router = APIRouter(dependencies=[Depends(require_roles("internal_system"))])


class JobSpec(BaseModel):
    job_id: str = Field(min_length=1)
    account_id: str
    account_name: str
    group_id: int
    group_name: str
    template_id: int
    capacity: int = Field(ge=0)
    health_check_interval: int = Field(ge=0)


class JobRegistry:
    """Job state for the in-process orchestrator, one instance per app."""

    def __init__(self) -> None:
        self._jobs: dict[str, JobSpec] = {}

    def get(self, job_id: str) -> JobSpec | None:
        return self._jobs.get(job_id)

    def put(self, spec: JobSpec) -> None:
        self._jobs[spec.job_id] = spec

    def pop(self, job_id: str) -> JobSpec | None:
        return self._jobs.pop(job_id, None)

    def all(self) -> list[JobSpec]:
        return list(self._jobs.values())


def _registry(request: Request) -> JobRegistry:
    return request.app.state.jobs  # type: ignore[attr-defined]


@router.get("", response_model=list[JobSpec])
async def list_jobs(registry: JobRegistry = Depends(_registry)) -> list[JobSpec]:
    return registry.all()


@router.post("", response_model=JobSpec, status_code=HTTP_201_CREATED)
async def submit_job(spec: JobSpec, registry: JobRegistry = Depends(_registry)) -> JobSpec:
    if registry.get(spec.job_id) is not None:
        raise HTTPException(status_code=HTTP_409_CONFLICT, detail="Job already exists")
    registry.put(spec)
    return spec


@router.put("/{job_id}", response_model=JobSpec)
async def update_job(
    job_id: str, spec: JobSpec, registry: JobRegistry = Depends(_registry)
) -> JobSpec:
    if registry.get(job_id) is None or spec.job_id != job_id:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Job not found")
    registry.put(spec)
    return spec


@router.delete("/{job_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_job(job_id: str, registry: JobRegistry = Depends(_registry)) -> Response:
    if registry.pop(job_id) is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Job not found")
    return Response(status_code=HTTP_204_NO_CONTENT)
