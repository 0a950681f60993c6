"""
tsg.api.routers.groups

Service group endpoints for the calling account.

Responsibilities:
- Parse identifiers and bodies, then delegate to `GroupLifecycleService`.
- Encode groups as JSON; errors are mapped by `tsg.api.errors`.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, Field
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from tsg.api.deps import current_account, group_service
from tsg.entities import Account, ServiceGroup
from tsg.errors import InvalidIdentifierError
from tsg.services.group_lifecycle import GroupLifecycleService

router = APIRouter(prefix="/v1/groups", tags=["groups"])

# Column widths: BIGINT for ids and templates, INTEGER for the rest.
BIGINT_MIN, BIGINT_MAX = -(2**63), 2**63 - 1
INT_MAX = 2**31 - 1


class GroupRequest(BaseModel):
    group_name: str = Field(min_length=1, max_length=256)
    template_id: int = Field(ge=BIGINT_MIN, le=BIGINT_MAX)
    capacity: int = Field(default=0, ge=0, le=INT_MAX)
    health_check_interval: int = Field(default=0, ge=0, le=INT_MAX)

    def to_entity(self) -> ServiceGroup:
        return ServiceGroup(
            group_name=self.group_name,
            template_id=self.template_id,
            capacity=self.capacity,
            health_check_interval=self.health_check_interval,
        )


class GroupResponse(BaseModel):
    id: int
    group_name: str
    template_id: int
    account_id: uuid.UUID
    capacity: int
    health_check_interval: int

    @classmethod
    def from_entity(cls, group: ServiceGroup) -> GroupResponse:
        return cls(
            id=group.id,
            group_name=group.group_name,
            template_id=group.template_id,
            account_id=group.account_id,
            capacity=group.capacity,
            health_check_interval=group.health_check_interval,
        )


def parse_group_id(identifier: str) -> int:
    try:
        group_id = int(identifier)
    except ValueError as e:
        raise InvalidIdentifierError(f"invalid group identifier {identifier!r}") from e
    if not BIGINT_MIN <= group_id <= BIGINT_MAX:
        raise InvalidIdentifierError(f"group identifier {identifier!r} out of range")
    return group_id


@router.get("", response_model=list[GroupResponse])
async def list_groups(
    account: Account = Depends(current_account),
    svc: GroupLifecycleService = Depends(group_service),
) -> list[GroupResponse]:
    return [GroupResponse.from_entity(g) for g in await svc.list(account)]


@router.get("/{identifier}", response_model=GroupResponse)
async def get_group(
    identifier: str,
    account: Account = Depends(current_account),
    svc: GroupLifecycleService = Depends(group_service),
) -> GroupResponse:
    group = await svc.get(account, parse_group_id(identifier))
    return GroupResponse.from_entity(group)


@router.post("", response_model=GroupResponse, status_code=HTTP_201_CREATED)
async def create_group(
    request: Request,
    response: Response,
    body: GroupRequest,
    account: Account = Depends(current_account),
    svc: GroupLifecycleService = Depends(group_service),
) -> GroupResponse:
    group = await svc.create(account, body.to_entity())
    response.headers["Location"] = f"{request.url.path}/{group.group_name}"
    return GroupResponse.from_entity(group)


@router.put("/{identifier}", response_model=GroupResponse)
async def update_group(
    identifier: str,
    body: GroupRequest,
    account: Account = Depends(current_account),
    svc: GroupLifecycleService = Depends(group_service),
) -> GroupResponse:
    group_id = parse_group_id(identifier)
    group = await svc.update(account, group_id, body.to_entity())
    return GroupResponse.from_entity(group)


@router.delete("/{identifier}", status_code=HTTP_204_NO_CONTENT)
async def delete_group(
    identifier: str,
    account: Account = Depends(current_account),
    svc: GroupLifecycleService = Depends(group_service),
) -> Response:
    await svc.delete(account, parse_group_id(identifier))
    return Response(status_code=HTTP_204_NO_CONTENT)
