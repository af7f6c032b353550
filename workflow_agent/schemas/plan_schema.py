"""Schema definitions for agent plans, execution logs and API requests/responses."""
from enum import Enum
from typing import List, Dict, Any, Optional, Literal
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PlannedAction(BaseModel):
    """A single action proposed by the planner."""
    name: str = Field(..., description="Registry action name to execute")
    rationale: Optional[str] = Field(default=None, description="Why the planner chose this action")
    arguments: Dict[str, Any] = Field(
        default_factory=dict,
        description="Untyped arguments; validated per action at execution time",
    )


class AgentPlan(BaseModel):
    """The JSON plan output by the planner."""
    intent: str = Field(..., description="User intent summary")
    reasoning: Optional[str] = Field(default=None, description="Planner reasoning")
    notes: Optional[str] = Field(default=None, description="Free-form planner notes")
    actions: List[PlannedAction] = Field(
        default_factory=list,
        description="Ordered actions; empty means no operation is required",
    )


class ActionStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


class AgentActionResult(BaseModel):
    """Outcome of one planned action. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    name: str
    status: ActionStatus
    summary: str = Field(..., description="Human-readable one-liner")
    data: Optional[Any] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, name: str, summary: str, data: Any = None) -> "AgentActionResult":
        return cls(name=name, status=ActionStatus.SUCCESS, summary=summary, data=data)

    @classmethod
    def failure(cls, name: str, summary: str, error: str) -> "AgentActionResult":
        return cls(name=name, status=ActionStatus.ERROR, summary=summary, error=error)

    @classmethod
    def skipped(cls, name: str, summary: str, data: Any = None) -> "AgentActionResult":
        return cls(name=name, status=ActionStatus.SKIPPED, summary=summary, data=data)


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AssistantRequest(BaseModel):
    """Request model for the /assistant endpoint and the streaming channel."""
    question: Optional[str] = Field(default=None, description="Operator or supervisor question")
    credential: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("credential", "token"),
        description="Caller's workflow backend credential",
    )


class AssistantResponse(CamelModel):
    """Response model for the /assistant endpoint."""
    answer: str = Field(..., description="Natural language answer grounded in context and execution log")
    model: str = Field(..., description="Model identifier reported by the completion service")
    context_summary: str = Field(..., description="Operational context shown to the model")
    context_warning: Optional[str] = Field(default=None, description="Why context could not be gathered")
    plan: Optional[AgentPlan] = Field(default=None, description="Plan proposed by the planner, if any")
    actions: List[AgentActionResult] = Field(default_factory=list, description="Execution log")


class TokenEvent(CamelModel):
    """Incremental answer fragment on the streaming channel."""
    type: Literal["token"] = "token"
    delta: str


class ConversationEvent(CamelModel):
    """Terminal success event carrying the final response."""
    type: Literal["conversation"] = "conversation"
    final_state: AssistantResponse


class ErrorEvent(CamelModel):
    """Terminal failure event."""
    type: Literal["error"] = "error"
    message: str
