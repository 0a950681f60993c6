"""
tsg.entities

Plain domain records exchanged between repositories, services and the API.

Responsibilities:
- Define `Account` and `ServiceGroup` independent of the storage backend.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class Account:
    # `id` stays None until the store assigns one; there is no placeholder id.
    account_name: str = ""
    external_identity_ref: str = ""
    key_id: uuid.UUID | None = None
    id: uuid.UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(slots=True)
class ServiceGroup:
    group_name: str
    template_id: int
    account_id: uuid.UUID | None = None
    capacity: int = 0
    health_check_interval: int = 0
    id: int | None = None


# --- Module Notes -----------------------------------------------------------
# Repositories return copies of these records; mutating a returned record never
# writes through to the store.
