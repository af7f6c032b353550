"""Tool specifications - input schemas for each registry action.

Identifiers and numbers are strict: the planner must send JSON integers, a
string such as "42" is rejected rather than coerced. Stage and state names are
accepted in any case. Keys an action does not declare are dropped.
"""
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool, StrictInt, field_validator
from pydantic.alias_generators import to_camel

from workflow_agent.schemas.workflow import StageState, StageType


class ActionArguments(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
        frozen=True,
    )


class NoArguments(ActionArguments):
    pass


class OrderArguments(ActionArguments):
    order_id: StrictInt = Field(..., ge=1)


class StageArguments(OrderArguments):
    stage: StageType

    @field_validator("stage", mode="before")
    @classmethod
    def _normalize_stage(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value


class ListOrdersArguments(ActionArguments):
    limit: Optional[StrictInt] = Field(default=None, ge=1, le=25)
    stage: Optional[StageType] = None
    states: Optional[List[StageState]] = None

    @field_validator("stage", mode="before")
    @classmethod
    def _normalize_stage(cls, value):
        if isinstance(value, str):
            return value.strip().upper() or None
        return value

    @field_validator("states", mode="before")
    @classmethod
    def _normalize_states(cls, value):
        if isinstance(value, str):
            value = [value]
        if isinstance(value, list):
            return [item.strip().upper() if isinstance(item, str) else item for item in value]
        return value


class GetOrderArguments(OrderArguments):
    pass


class CreateOrderArguments(ActionArguments):
    order_number: str = Field(..., min_length=1)
    priority: Optional[StrictInt] = None
    notes: Optional[str] = None


class UpdatePriorityArguments(OrderArguments):
    priority: StrictInt


class ClaimStageArguments(StageArguments):
    assignee: Optional[str] = None


class CompleteStageArguments(StageArguments):
    service_time_minutes: Optional[StrictInt] = Field(default=None, ge=0)
    notes: Optional[str] = None


class FlagExceptionArguments(StageArguments):
    reason: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("reason", "exceptionReason", "exception_reason"),
    )
    notes: Optional[str] = None


class ChecklistArguments(StageArguments):
    task_id: str = Field(..., min_length=1)
    completed: StrictBool


class SupervisorDecisionArguments(StageArguments):
    notes: Optional[str] = None
