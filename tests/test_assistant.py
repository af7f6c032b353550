import json

import pytest

from workflow_agent.assistant import InvalidQuestionError, WorkflowAssistant
from workflow_agent.db.backend import BackendError
from workflow_agent.executor.validator import PlanParseError
from workflow_agent.llm.client import LLMError
from workflow_agent.middleware.auth import AuthenticationError
from workflow_agent.schemas.plan_schema import ActionStatus
from workflow_agent.tools.context import NO_ORDERS_SUMMARY, NO_TOKEN_WARNING


def _plan(*actions, intent="handle request"):
    return json.dumps({"intent": intent, "actions": list(actions)})


def _assistant(llm, backend):
    return WorkflowAssistant(llm, backend_factory=lambda credential: backend)


class TestWorkflowAssistant:
    @pytest.mark.parametrize("question", [None, "", "   \n"])
    def test_blank_question_rejected_before_any_call(self, fake_llm_cls, operator_backend, question):
        llm = fake_llm_cls()
        with pytest.raises(InvalidQuestionError):
            _assistant(llm, operator_backend).answer(question, "cred")
        assert llm.calls == []
        assert operator_backend.calls == []

    def test_supervisor_priority_bump(self, fake_llm_cls, supervisor_backend):
        llm = fake_llm_cls(replies=[
            "```json\n" + _plan({"name": "update_order_priority", "arguments": {"orderId": 1, "priority": 9}}) + "\n```",
            "Order PO-100 now has priority 9.",
        ])

        response = _assistant(llm, supervisor_backend).answer("Make PO-100 top priority (9)", "cred")

        assert response.answer == "Order PO-100 now has priority 9."
        assert response.model == "fake-model-001"
        assert [a.status for a in response.actions] == [ActionStatus.SUCCESS]
        assert supervisor_backend.orders[1]["priority"] == 9
        answer_prompt = "\n".join(m["content"] for m in llm.calls[1])
        assert "- update_order_priority [SUCCESS] Priority for order PO-100 (id=1) changed from 1 to 9." in answer_prompt

    def test_operator_cannot_create_orders(self, fake_llm_cls, operator_backend):
        llm = fake_llm_cls(replies=[
            _plan({"name": "create_order", "arguments": {"orderNumber": "PO-999"}}),
            "I could not create the order.",
        ])

        response = _assistant(llm, operator_backend).answer("Create order PO-999", "cred")

        assert "create_order" not in llm.calls[0][0]["content"]
        assert response.actions[0].status is ActionStatus.ERROR
        assert response.actions[0].error == "not supported"
        assert operator_backend.mutating_calls() == []

    def test_malformed_action_does_not_block_later_ones(self, fake_llm_cls, operator_backend):
        llm = fake_llm_cls(replies=[
            _plan(
                {"name": "claim_stage", "arguments": {"orderId": "1", "stage": "PREPARATION"}},
                {"name": "claim_stage", "arguments": {"orderId": 2, "stage": "PREPARATION"}},
            ),
            "Claimed one of two.",
        ])

        response = _assistant(llm, operator_backend).answer("Claim prep on 1 and 2", "cred")

        assert [a.status for a in response.actions] == [ActionStatus.ERROR, ActionStatus.SUCCESS]
        assert operator_backend.mutating_calls() == [("claim_stage", 2, "PREPARATION", "olivia")]

    def test_no_orders(self, fake_llm_cls, fake_backend_cls):
        backend = fake_backend_cls(roles=["ROLE_OPERATOR"], orders=[])
        llm = fake_llm_cls(replies=[_plan(intent="list work"), "You have no orders right now."])

        response = _assistant(llm, backend).answer("What should I work on?", "cred")

        assert response.context_summary == NO_ORDERS_SUMMARY
        assert response.actions == []
        assert response.plan.intent == "list work"
        assert len(llm.calls) == 2
        assert "No actions were executed." in llm.calls[1][2]["content"]

    def test_caller_without_roles_gets_single_grounded_call(self, fake_llm_cls, fake_backend_cls, orders):
        backend = fake_backend_cls(roles=["ROLE_VIEWER"], orders=orders)
        llm = fake_llm_cls(replies=["PO-200 has the highest priority."])

        response = _assistant(llm, backend).answer("Which order is most urgent?", "cred")

        assert len(llm.calls) == 1
        assert "workflow dashboard" in llm.calls[0][0]["content"]
        assert response.plan is None
        assert response.actions == []
        assert response.context_summary.startswith("Total orders available: 3.")

    def test_missing_credential_runs_without_backend(self, fake_llm_cls):
        created = []
        llm = fake_llm_cls(replies=["I have no data."])
        assistant = WorkflowAssistant(llm, backend_factory=lambda c: created.append(c))

        response = assistant.answer("Anything new?", None)

        assert created == []
        assert response.context_warning == NO_TOKEN_WARNING
        assert response.context_summary == "No contextual data was available."

    def test_context_failure_degrades(self, fake_llm_cls, fake_backend_cls):
        backend = fake_backend_cls(orders_error=BackendError("Workflow backend unreachable: timeout"))
        llm = fake_llm_cls(replies=[_plan(), "The workflow backend could not be reached."])

        response = _assistant(llm, backend).answer("Status?", "cred")

        assert response.context_warning == "Workflow backend unreachable: timeout"
        assert response.answer == "The workflow backend could not be reached."

    def test_rejected_credential(self, fake_llm_cls, fake_backend_cls):
        backend = fake_backend_cls(me_error=BackendError("Backend responded with 401: Unauthorized", status_code=401))
        llm = fake_llm_cls()
        with pytest.raises(AuthenticationError):
            _assistant(llm, backend).answer("Status?", "bad")
        assert llm.calls == []

    def test_unparsable_plan_is_fatal(self, fake_llm_cls, operator_backend):
        llm = fake_llm_cls(replies=["I think you should claim order 1."])
        with pytest.raises(PlanParseError):
            _assistant(llm, operator_backend).answer("Claim order 1", "cred")
        assert operator_backend.mutating_calls() == []
        assert len(llm.calls) == 1

    def test_answer_call_failure_is_fatal(self, fake_llm_cls, operator_backend):
        llm = fake_llm_cls(replies=[_plan(), LLMError("model unreachable")])
        with pytest.raises(LLMError):
            _assistant(llm, operator_backend).answer("Status?", "cred")

    def test_empty_answer(self, fake_llm_cls, operator_backend):
        llm = fake_llm_cls(replies=[_plan(), ""])
        response = _assistant(llm, operator_backend).answer("Status?", "cred")
        assert response.answer == "The model did not return any content."
