"""Operational context summarizer.

Fetches the caller's orders from the workflow backend and renders a compact,
deterministic text block used to ground both model calls. Failures never
abort the request: they produce an empty summary plus a warning.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from workflow_agent.config import MAX_CONTEXT_ORDERS
from workflow_agent.db.backend import BackendError
from workflow_agent.schemas.workflow import OrderSnapshot, StageSnapshot, StageType

logger = logging.getLogger(__name__)

NO_ORDERS_SUMMARY = "No orders are currently available to the signed-in user."
NO_TOKEN_WARNING = "No workflow token supplied; context is empty."

STAGE_ORDER = [StageType.PREPARATION, StageType.ASSEMBLY, StageType.DELIVERY]
STAGE_RANK = {stage.value: index for index, stage in enumerate(STAGE_ORDER)}

_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


@dataclass(frozen=True)
class WorkflowContext:
    summary: str
    warning: Optional[str] = None


def parse_timestamp(value: Optional[str]) -> float:
    """Epoch seconds for an ISO-8601 timestamp; missing or unparsable sorts as earliest."""
    if not value or not isinstance(value, str):
        return float("-inf")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _EXCESS_FRACTION.sub(r"\1", text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return float("-inf")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def _order_sort_key(order: OrderSnapshot):
    return (-(order.priority or 0), -parse_timestamp(order.created_at))


def sort_orders(orders: Iterable[OrderSnapshot]) -> List[OrderSnapshot]:
    """Priority descending, then newest first."""
    return sorted(orders, key=_order_sort_key)


def rank_stage(stage: str) -> int:
    return STAGE_RANK.get(str(stage).upper(), len(STAGE_RANK))


def format_stage(stage: StageSnapshot) -> str:
    parts = [f"{stage.stage.lower()}: {stage.state.lower()}"]
    if stage.assignee:
        parts.append(f"assignee {stage.assignee}")
    if stage.exception_reason:
        parts.append(f"exception {stage.exception_reason}")
    if stage.notes:
        parts.append(f"notes {stage.notes}")
    return " | ".join(parts)


def format_order(order: OrderSnapshot) -> str:
    priority = order.priority if order.priority is not None else "n/a"
    header = (
        f"Order {order.order_number or 'unknown'} (id={order.id}) priority {priority} - "
        f"current stage {order.current_stage.lower()} / overall {order.overall_state.lower()}"
    )
    stages = sorted(order.stages, key=lambda s: rank_stage(s.stage))
    stage_summaries = "; ".join(format_stage(stage) for stage in stages)
    return f"{header}. Stage details: {stage_summaries or 'no recorded stages.'}"


def summarize_orders(orders: List[OrderSnapshot], limit: int = MAX_CONTEXT_ORDERS) -> str:
    if not orders:
        return NO_ORDERS_SUMMARY
    limited = sort_orders(orders)[:limit]
    lines = [
        f"Total orders available: {len(orders)}. "
        f"Showing top {len(limited)} by priority and creation."
    ]
    lines.extend(format_order(order) for order in limited)
    return "\n".join(lines)


def parse_orders(raw: Any) -> List[OrderSnapshot]:
    if not isinstance(raw, list):
        raise ValueError("expected a list of orders")
    return [OrderSnapshot.model_validate(item) for item in raw]


def build_workflow_context(backend, limit: int = MAX_CONTEXT_ORDERS) -> WorkflowContext:
    """Fetch visible orders and summarize them for the model."""
    if backend is None:
        return WorkflowContext(summary="", warning=NO_TOKEN_WARNING)
    try:
        orders = parse_orders(backend.list_orders())
    except BackendError as e:
        logger.warning("Could not build workflow context: %s", e)
        return WorkflowContext(summary="", warning=str(e))
    except (ValidationError, ValueError) as e:
        logger.warning("Workflow backend returned malformed orders: %s", e)
        return WorkflowContext(
            summary="",
            warning="Unable to read workflow context: the backend returned orders in an unexpected format.",
        )
    return WorkflowContext(summary=summarize_orders(orders, limit))
