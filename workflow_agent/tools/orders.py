"""Order-level actions: listing, details, creation, priority and WIP summary."""
from typing import Any, Dict, List

from workflow_agent.schemas.execution import ExecutionContext
from workflow_agent.schemas.plan_schema import AgentActionResult
from workflow_agent.tools.context import format_order, parse_orders, sort_orders
from workflow_agent.tools.handler_utils import backend_action, lower
from workflow_agent.tools.tool_specs import (
    CreateOrderArguments,
    GetOrderArguments,
    ListOrdersArguments,
    NoArguments,
    UpdatePriorityArguments,
)
from workflow_agent.schemas.workflow import OrderSnapshot

DEFAULT_LIST_LIMIT = 10


def _order_view(order: OrderSnapshot) -> Dict[str, Any]:
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "priority": order.priority,
        "currentStage": order.current_stage,
        "overallState": order.overall_state,
    }


def _queue_item_line(item: Dict[str, Any]) -> str:
    priority = item.get("priority")
    assignee = item.get("assignee") or "unassigned"
    return (
        f"{item.get('orderNumber') or 'unknown'} (id={item.get('orderId')}, "
        f"priority {priority if priority is not None else 'n/a'}, "
        f"{lower(item.get('stageState'))}, {assignee})"
    )


@backend_action("list_orders")
def list_orders(args: ListOrdersArguments, ctx: ExecutionContext) -> AgentActionResult:
    """
    List orders, optionally restricted to one stage's work queue and a set of states.

    With a stage, the operator queue endpoint is used and ``states`` filters
    the stage state. Without a stage, all visible orders are listed and
    ``states`` filters their overall state.
    """
    limit = args.limit or DEFAULT_LIST_LIMIT
    states = [state.value for state in args.states or []]

    if args.stage is not None:
        items: List[Dict[str, Any]] = ctx.backend.operator_queue(args.stage.value, states)
        shown = items[:limit]
        listing = ", ".join(_queue_item_line(item) for item in shown) or "none"
        return AgentActionResult.success(
            "list_orders",
            f"Found {len(items)} order(s) in the {args.stage.value.lower()} queue; showing {len(shown)}: {listing}.",
            data=shown,
        )

    orders = parse_orders(ctx.backend.list_orders())
    if states:
        orders = [order for order in orders if order.overall_state.upper() in states]
    shown_orders = sort_orders(orders)[:limit]
    listing = ", ".join(
        f"{order.order_number or 'unknown'} (id={order.id}, priority "
        f"{order.priority if order.priority is not None else 'n/a'}, {order.overall_state.lower()})"
        for order in shown_orders
    ) or "none"
    return AgentActionResult.success(
        "list_orders",
        f"Found {len(orders)} order(s); showing {len(shown_orders)}: {listing}.",
        data=[_order_view(order) for order in shown_orders],
    )


@backend_action("get_order_details")
def get_order_details(args: GetOrderArguments, ctx: ExecutionContext) -> AgentActionResult:
    order = OrderSnapshot.model_validate(ctx.backend.get_order(args.order_id))
    return AgentActionResult.success(
        "get_order_details",
        format_order(order),
        data=order.model_dump(by_alias=True),
    )


@backend_action("create_order")
def create_order(args: CreateOrderArguments, ctx: ExecutionContext) -> AgentActionResult:
    created = ctx.backend.create_order(args.order_number, args.priority, args.notes) or {}
    priority = created.get("priority", args.priority)
    return AgentActionResult.success(
        "create_order",
        f"Created order {created.get('orderNumber', args.order_number)} (id={created.get('id', 'unknown')}) "
        f"with priority {priority if priority is not None else 'n/a'}.",
        data=created,
    )


@backend_action("update_order_priority")
def update_order_priority(args: UpdatePriorityArguments, ctx: ExecutionContext) -> AgentActionResult:
    current = ctx.backend.get_order(args.order_id) or {}
    label = current.get("orderNumber") or "unknown"
    previous = current.get("priority")
    if previous == args.priority:
        return AgentActionResult.skipped(
            "update_order_priority",
            f"Order {label} (id={args.order_id}) already has priority {args.priority}; no change made.",
            data=current,
        )

    updated = ctx.backend.update_priority(args.order_id, args.priority) or {}
    new_priority = updated.get("priority", args.priority)
    return AgentActionResult.success(
        "update_order_priority",
        f"Priority for order {label} (id={args.order_id}) changed from "
        f"{previous if previous is not None else 'n/a'} to {new_priority}.",
        data=updated,
    )


@backend_action("get_wip_summary")
def get_wip_summary(args: NoArguments, ctx: ExecutionContext) -> AgentActionResult:
    wip = ctx.backend.wip_summary() or {}
    stage_parts = [
        f"{lower(stage.get('stage'))}: {stage.get('pending', 0)} pending, "
        f"{stage.get('inProgress', 0)} in progress, {stage.get('exceptions', 0)} exceptions, "
        f"{stage.get('completed', 0)} completed"
        for stage in wip.get("stages", [])
    ]
    summary = (
        f"WIP: {wip.get('totalOrders', 0)} orders, {wip.get('completedOrders', 0)} completed, "
        f"{wip.get('exceptionOrders', 0)} with exceptions."
    )
    if stage_parts:
        summary += " " + "; ".join(stage_parts) + "."
    return AgentActionResult.success("get_wip_summary", summary, data=wip)
