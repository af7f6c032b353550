"""Read-only views of backend-owned workflow data."""
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StageType(str, Enum):
    PREPARATION = "PREPARATION"
    ASSEMBLY = "ASSEMBLY"
    DELIVERY = "DELIVERY"


class StageState(str, Enum):
    BLOCKED = "BLOCKED"
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    EXCEPTION = "EXCEPTION"
    SKIPPED = "SKIPPED"
    REWORK = "REWORK"


class BackendModel(BaseModel):
    """Backend payloads are camelCase; unknown fields are ignored."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ChecklistItem(BackendModel):
    id: str
    label: str = ""
    required: bool = False
    completed: bool = False


class StageSnapshot(BackendModel):
    """Per-stage status of an order.

    ``stage`` and ``state`` stay plain strings so that a stage or state the
    backend adds later is still rendered instead of failing the whole context.
    """
    id: Optional[int] = None
    stage: str
    state: str
    assignee: Optional[str] = None
    claimed_at: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    service_time_minutes: Optional[int] = None
    notes: Optional[str] = None
    exception_reason: Optional[str] = None
    supervisor_notes: Optional[str] = None
    approved_by: Optional[str] = None
    updated_at: Optional[str] = None
    checklist: List[ChecklistItem] = Field(default_factory=list)


class OrderSnapshot(BackendModel):
    id: int
    order_number: Optional[str] = None
    priority: Optional[int] = None
    current_stage: str
    overall_state: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    notes: Optional[str] = None
    stages: List[StageSnapshot] = Field(default_factory=list)


class CallerProfile(BackendModel):
    """Shape of GET /auth/me."""
    username: str
    roles: List[str] = Field(default_factory=list)
