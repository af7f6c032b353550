"""Stage-level actions for operators and supervisors."""
from workflow_agent.schemas.execution import ExecutionContext
from workflow_agent.schemas.plan_schema import AgentActionResult
from workflow_agent.tools.handler_utils import backend_action, stage_state
from workflow_agent.tools.tool_specs import (
    ChecklistArguments,
    ClaimStageArguments,
    CompleteStageArguments,
    FlagExceptionArguments,
    SupervisorDecisionArguments,
)


def _where(args) -> str:
    return f"{args.stage.value.lower()} stage of order {args.order_id}"


@backend_action("claim_stage")
def claim_stage(args: ClaimStageArguments, ctx: ExecutionContext) -> AgentActionResult:
    assignee = args.assignee or ctx.username
    status = ctx.backend.claim_stage(args.order_id, args.stage.value, assignee)
    return AgentActionResult.success(
        "claim_stage",
        f"Claimed the {_where(args)} for {assignee}; stage is now {stage_state(status)}.",
        data=status,
    )


@backend_action("complete_stage")
def complete_stage(args: CompleteStageArguments, ctx: ExecutionContext) -> AgentActionResult:
    status = ctx.backend.complete_stage(
        args.order_id,
        args.stage.value,
        ctx.username,
        service_time_minutes=args.service_time_minutes,
        notes=args.notes,
    )
    summary = f"Completed the {_where(args)} as {ctx.username}; stage is now {stage_state(status)}."
    if args.service_time_minutes is not None:
        summary = summary[:-1] + f" (service time {args.service_time_minutes} min)."
    return AgentActionResult.success("complete_stage", summary, data=status)


@backend_action("flag_stage_exception")
def flag_stage_exception(args: FlagExceptionArguments, ctx: ExecutionContext) -> AgentActionResult:
    status = ctx.backend.flag_exception(
        args.order_id,
        args.stage.value,
        ctx.username,
        args.reason,
        notes=args.notes,
    )
    return AgentActionResult.success(
        "flag_stage_exception",
        f"Flagged an exception on the {_where(args)}: {args.reason}; stage is now {stage_state(status)}.",
        data=status,
    )


@backend_action("update_checklist_item")
def update_checklist_item(args: ChecklistArguments, ctx: ExecutionContext) -> AgentActionResult:
    status = ctx.backend.update_checklist_item(args.order_id, args.stage.value, args.task_id, args.completed)
    marked = "completed" if args.completed else "not completed"
    return AgentActionResult.success(
        "update_checklist_item",
        f"Marked checklist item {args.task_id} on the {_where(args)} as {marked}.",
        data=status,
    )


@backend_action("approve_stage_skip")
def approve_stage_skip(args: SupervisorDecisionArguments, ctx: ExecutionContext) -> AgentActionResult:
    result = ctx.backend.approve_skip(args.order_id, args.stage.value, ctx.username, notes=args.notes)
    return AgentActionResult.success(
        "approve_stage_skip",
        f"Approved skipping the {_where(args)} as {ctx.username}.",
        data=result,
    )


@backend_action("request_stage_rework")
def request_stage_rework(args: SupervisorDecisionArguments, ctx: ExecutionContext) -> AgentActionResult:
    result = ctx.backend.request_rework(args.order_id, args.stage.value, ctx.username, notes=args.notes)
    return AgentActionResult.success(
        "request_stage_rework",
        f"Requested rework of the {_where(args)} as {ctx.username}.",
        data=result,
    )
