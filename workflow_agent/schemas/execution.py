"""Types shared by the action registry, its handlers and the plan runner."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, FrozenSet, Type

from pydantic import BaseModel

from workflow_agent.schemas.plan_schema import AgentActionResult


class Role(str, Enum):
    OPERATOR = "operator"
    SUPERVISOR = "supervisor"


ALL_ROLES: FrozenSet[Role] = frozenset(Role)
SUPERVISOR_ONLY: FrozenSet[Role] = frozenset({Role.SUPERVISOR})


@dataclass(frozen=True)
class ExecutionContext:
    """Per-request execution context. Never shared across requests."""
    credential: str
    username: str
    backend: Any


ActionHandler = Callable[[BaseModel, ExecutionContext], AgentActionResult]


@dataclass(frozen=True)
class ActionDefinition:
    """A registry entry: what the planner sees and what the runner calls."""
    name: str
    description: str
    parameter_summary: str
    roles: FrozenSet[Role]
    input_schema: Type[BaseModel]
    handler: ActionHandler

    def catalog_line(self) -> str:
        return f"- {self.name}: {self.description}. Params: {self.parameter_summary}"
