"""Action registry - the fixed catalog of operations the planner may use.

Built once at import time. Role gating is a static property of each entry.
"""
from types import MappingProxyType
from typing import Collection, Iterable, List, Mapping

from workflow_agent.schemas.execution import (
    ALL_ROLES,
    SUPERVISOR_ONLY,
    ActionDefinition,
    Role,
)
from workflow_agent.tools import orders, stages
from workflow_agent.tools.tool_specs import (
    ChecklistArguments,
    ClaimStageArguments,
    CompleteStageArguments,
    CreateOrderArguments,
    FlagExceptionArguments,
    GetOrderArguments,
    ListOrdersArguments,
    NoArguments,
    SupervisorDecisionArguments,
    UpdatePriorityArguments,
)

_STAGE = "stage (PREPARATION | ASSEMBLY | DELIVERY)"

ACTION_DEFINITIONS = (
    ActionDefinition(
        name="list_orders",
        description="List orders visible to the caller, optionally only one stage's work queue",
        parameter_summary=(
            f"limit (optional integer 1-25), {_STAGE} optional, "
            "states (optional list of BLOCKED, PENDING, IN_PROGRESS, COMPLETED, EXCEPTION, SKIPPED, REWORK)"
        ),
        roles=ALL_ROLES,
        input_schema=ListOrdersArguments,
        handler=orders.list_orders,
    ),
    ActionDefinition(
        name="get_order_details",
        description="Fetch one order with all of its stage statuses",
        parameter_summary="orderId (integer)",
        roles=ALL_ROLES,
        input_schema=GetOrderArguments,
        handler=orders.get_order_details,
    ),
    ActionDefinition(
        name="create_order",
        description="Create a new order",
        parameter_summary="orderNumber (string), priority (optional integer), notes (optional string)",
        roles=SUPERVISOR_ONLY,
        input_schema=CreateOrderArguments,
        handler=orders.create_order,
    ),
    ActionDefinition(
        name="update_order_priority",
        description="Change the priority of an existing order",
        parameter_summary="orderId (integer), priority (integer)",
        roles=SUPERVISOR_ONLY,
        input_schema=UpdatePriorityArguments,
        handler=orders.update_order_priority,
    ),
    ActionDefinition(
        name="claim_stage",
        description="Claim a stage of an order; the assignee defaults to the caller",
        parameter_summary=f"orderId (integer), {_STAGE}, assignee (optional string)",
        roles=ALL_ROLES,
        input_schema=ClaimStageArguments,
        handler=stages.claim_stage,
    ),
    ActionDefinition(
        name="complete_stage",
        description="Mark a claimed stage of an order as completed",
        parameter_summary=f"orderId (integer), {_STAGE}, serviceTimeMinutes (optional integer), notes (optional string)",
        roles=ALL_ROLES,
        input_schema=CompleteStageArguments,
        handler=stages.complete_stage,
    ),
    ActionDefinition(
        name="flag_stage_exception",
        description="Flag an exception that blocks a stage of an order",
        parameter_summary=f"orderId (integer), {_STAGE}, reason (string), notes (optional string)",
        roles=ALL_ROLES,
        input_schema=FlagExceptionArguments,
        handler=stages.flag_stage_exception,
    ),
    ActionDefinition(
        name="update_checklist_item",
        description="Tick or untick a checklist task on a stage of an order",
        parameter_summary=f"orderId (integer), {_STAGE}, taskId (string), completed (boolean)",
        roles=ALL_ROLES,
        input_schema=ChecklistArguments,
        handler=stages.update_checklist_item,
    ),
    ActionDefinition(
        name="approve_stage_skip",
        description="Approve skipping a stage of an order",
        parameter_summary=f"orderId (integer), {_STAGE}, notes (optional string)",
        roles=SUPERVISOR_ONLY,
        input_schema=SupervisorDecisionArguments,
        handler=stages.approve_stage_skip,
    ),
    ActionDefinition(
        name="request_stage_rework",
        description="Send a stage of an order back for rework",
        parameter_summary=f"orderId (integer), {_STAGE}, notes (optional string)",
        roles=SUPERVISOR_ONLY,
        input_schema=SupervisorDecisionArguments,
        handler=stages.request_stage_rework,
    ),
    ActionDefinition(
        name="get_wip_summary",
        description="Summarize work in progress per stage across all orders",
        parameter_summary="none",
        roles=SUPERVISOR_ONLY,
        input_schema=NoArguments,
        handler=orders.get_wip_summary,
    ),
)


def build_registry(definitions: Iterable[ActionDefinition]) -> Mapping[str, ActionDefinition]:
    """Index definitions by name; duplicate names are a programming error."""
    registry = {}
    for definition in definitions:
        if definition.name in registry:
            raise ValueError(f"Duplicate action name in registry: {definition.name}")
        registry[definition.name] = definition
    return MappingProxyType(registry)


ACTION_REGISTRY: Mapping[str, ActionDefinition] = build_registry(ACTION_DEFINITIONS)


def allowed_actions(
    roles: Collection[Role],
    registry: Mapping[str, ActionDefinition] = ACTION_REGISTRY,
) -> List[ActionDefinition]:
    """Registry entries the given roles may see and execute, in catalog order."""
    granted = set(roles)
    return [definition for definition in registry.values() if definition.roles & granted]
