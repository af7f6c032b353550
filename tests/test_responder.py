import json

from workflow_agent.llm.responder import (
    EMPTY_ANSWER,
    NO_ACTIONS,
    NO_PLAN,
    ResponseGenerator,
    render_execution_log,
    render_plan,
)
from workflow_agent.schemas.plan_schema import AgentActionResult, AgentPlan


class TestRendering:
    def test_no_plan_no_actions(self):
        assert render_plan(None) == NO_PLAN
        assert render_execution_log([]) == NO_ACTIONS

    def test_plan_is_serialized_json(self):
        plan = AgentPlan(intent="check queue")
        assert json.loads(render_plan(plan)) == {"intent": "check queue", "actions": []}

    def test_log_lines(self):
        log = render_execution_log([
            AgentActionResult.success("list_orders", "Found 2 order(s)."),
            AgentActionResult.failure("create_order", "Action 'create_order' is not supported for this user.", "not supported"),
            AgentActionResult.skipped("update_order_priority", "Already priority 5."),
        ])
        assert log.split("\n") == [
            "- list_orders [SUCCESS] Found 2 order(s).",
            "- create_order [ERROR] Action 'create_order' is not supported for this user. (error: not supported)",
            "- update_order_priority [SKIPPED] Already priority 5.",
        ]


class TestResponseGenerator:
    def test_grounded_messages(self, fake_llm_cls):
        responder = ResponseGenerator(fake_llm_cls())
        results = [AgentActionResult.success("list_orders", "Found 2 order(s).")]
        messages = responder.build_messages("What changed?", "ctx", AgentPlan(intent="look"), results)

        assert messages[0]["role"] == "system"
        assert "authoritative" in messages[0]["content"]
        assert messages[1]["content"] == "Operational context:\nctx"
        assert "- list_orders [SUCCESS] Found 2 order(s)." in messages[2]["content"]
        assert messages[-1] == {"role": "user", "content": "What changed?"}

    def test_empty_context_marker(self, fake_llm_cls):
        messages = ResponseGenerator(fake_llm_cls()).build_messages("q", "", None, [])
        assert messages[1]["content"] == "Operational context:\nNo contextual data was available."
        assert f"Plan:\n{NO_PLAN}" in messages[2]["content"]
        assert f"Execution log:\n{NO_ACTIONS}" in messages[2]["content"]

    def test_fallback_messages(self, fake_llm_cls):
        messages = ResponseGenerator(fake_llm_cls()).build_fallback_messages("q", "")
        assert "workflow dashboard" in messages[0]["content"]
        assert messages[1]["content"] == "Operational context:\nNo orders are accessible for the current user."

    def test_empty_answer_replaced(self, fake_llm_cls):
        completion = ResponseGenerator(fake_llm_cls(replies=["   "])).generate([{"role": "user", "content": "q"}])
        assert completion.text == EMPTY_ANSWER
        assert completion.model == "fake-model-001"

    def test_model_falls_back_to_configured(self, fake_llm_cls):
        llm = fake_llm_cls(replies=["Hello"], reported_model="")
        assert ResponseGenerator(llm).generate([{"role": "user", "content": "q"}]).model == "fake-model"
