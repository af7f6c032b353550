import copy
from typing import Any, Dict, List, Optional

import pytest

from workflow_agent.db.backend import BackendError
from workflow_agent.llm.client import Completion, CompletionStream
from workflow_agent.middleware.rate_limit import rate_limit_store


def make_order(
    order_id: int,
    number: str,
    priority: Optional[int] = None,
    created_at: Optional[str] = "2024-05-01T08:00:00Z",
    current_stage: str = "PREPARATION",
    overall_state: str = "PENDING",
    stages: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    return {
        "id": order_id,
        "orderNumber": number,
        "priority": priority,
        "currentStage": current_stage,
        "overallState": overall_state,
        "createdAt": created_at,
        "updatedAt": created_at,
        "notes": None,
        "stages": stages if stages is not None else [
            {"stage": "DELIVERY", "state": "BLOCKED"},
            {"stage": "PREPARATION", "state": overall_state, "assignee": None},
            {"stage": "ASSEMBLY", "state": "BLOCKED"},
        ],
    }


class FakeBackend:
    """In-memory stand-in for WorkflowBackendClient; records every call."""

    def __init__(self, username="olivia", roles=("ROLE_OPERATOR",), orders=None, me_error=None, orders_error=None):
        self.username = username
        self.roles = list(roles)
        self.orders = {o["id"]: copy.deepcopy(o) for o in (orders or [])}
        self.me_error = me_error
        self.orders_error = orders_error
        self.calls: List[tuple] = []

    def _order(self, order_id):
        if order_id not in self.orders:
            raise BackendError(f"Backend responded with 404: Order {order_id} not found", status_code=404)
        return self.orders[order_id]

    def me(self):
        self.calls.append(("me",))
        if self.me_error:
            raise self.me_error
        return {"username": self.username, "roles": self.roles}

    def list_orders(self):
        self.calls.append(("list_orders",))
        if self.orders_error:
            raise self.orders_error
        return [copy.deepcopy(o) for o in self.orders.values()]

    def get_order(self, order_id):
        self.calls.append(("get_order", order_id))
        return copy.deepcopy(self._order(order_id))

    def create_order(self, order_number, priority=None, notes=None):
        self.calls.append(("create_order", order_number, priority, notes))
        new_id = max(self.orders, default=0) + 1
        self.orders[new_id] = make_order(new_id, order_number, priority)
        return copy.deepcopy(self.orders[new_id])

    def update_priority(self, order_id, priority):
        self.calls.append(("update_priority", order_id, priority))
        self._order(order_id)["priority"] = priority
        return copy.deepcopy(self.orders[order_id])

    def operator_queue(self, stage, states=None):
        self.calls.append(("operator_queue", stage, list(states or [])))
        return [
            {
                "orderId": o["id"],
                "orderNumber": o["orderNumber"],
                "priority": o["priority"],
                "stage": stage,
                "stageState": "PENDING",
                "assignee": None,
            }
            for o in self.orders.values()
        ]

    def claim_stage(self, order_id, stage, assignee):
        self.calls.append(("claim_stage", order_id, stage, assignee))
        self._order(order_id)
        return {"stage": stage, "state": "IN_PROGRESS", "assignee": assignee}

    def complete_stage(self, order_id, stage, assignee, service_time_minutes=None, notes=None):
        self.calls.append(("complete_stage", order_id, stage, assignee, service_time_minutes, notes))
        self._order(order_id)
        return {"stage": stage, "state": "COMPLETED", "assignee": assignee}

    def flag_exception(self, order_id, stage, assignee, exception_reason, notes=None):
        self.calls.append(("flag_exception", order_id, stage, assignee, exception_reason, notes))
        self._order(order_id)
        return {"stage": stage, "state": "EXCEPTION", "exceptionReason": exception_reason}

    def update_checklist_item(self, order_id, stage, task_id, completed):
        self.calls.append(("update_checklist_item", order_id, stage, task_id, completed))
        self._order(order_id)
        return {"stage": stage, "state": "IN_PROGRESS"}

    def wip_summary(self):
        self.calls.append(("wip_summary",))
        return {
            "totalOrders": len(self.orders),
            "completedOrders": 0,
            "exceptionOrders": 0,
            "stages": [{"stage": "PREPARATION", "pending": len(self.orders), "inProgress": 0, "exceptions": 0, "completed": 0}],
        }

    def approve_skip(self, order_id, stage, approver, notes=None):
        self.calls.append(("approve_skip", order_id, stage, approver, notes))
        self._order(order_id)
        return {"stage": stage, "state": "SKIPPED", "approvedBy": approver}

    def request_rework(self, order_id, stage, approver, notes=None):
        self.calls.append(("request_rework", order_id, stage, approver, notes))
        self._order(order_id)
        return {"stage": stage, "state": "REWORK"}

    def mutating_calls(self):
        read_only = {"me", "list_orders", "get_order", "operator_queue", "wip_summary"}
        return [call for call in self.calls if call[0] not in read_only]


class FakeLLM:
    """Scripted completion service: returns queued replies in order and records the messages."""

    def __init__(self, replies=None, model="fake-model", reported_model="fake-model-001"):
        self.replies = list(replies or [])
        self.model = model
        self.reported_model = reported_model
        self.calls: List[List[Dict[str, str]]] = []

    def _next(self):
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        return reply

    def complete(self, messages):
        self.calls.append(messages)
        return Completion(text=self._next(), model=self.reported_model)

    def stream(self, messages):
        self.calls.append(messages)
        text = self._next()
        chunks = iter([(text[i:i + 8], self.reported_model) for i in range(0, len(text), 8)])
        return CompletionStream(chunks, self.model)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    rate_limit_store.clear()
    yield
    rate_limit_store.clear()


@pytest.fixture
def orders():
    return [
        make_order(1, "PO-100", priority=1, created_at="2024-05-01T08:00:00Z"),
        make_order(2, "PO-200", priority=5, created_at="2024-05-02T08:00:00Z"),
        make_order(3, "PO-300", priority=None, created_at="2024-05-03T08:00:00Z"),
    ]


@pytest.fixture
def operator_backend(orders):
    return FakeBackend(username="olivia", roles=["ROLE_OPERATOR"], orders=orders)


@pytest.fixture
def supervisor_backend(orders):
    return FakeBackend(username="sam", roles=["ROLE_SUPERVISOR"], orders=orders)


@pytest.fixture
def fake_backend_cls():
    return FakeBackend


@pytest.fixture
def fake_llm_cls():
    return FakeLLM


@pytest.fixture
def order_factory():
    return make_order
