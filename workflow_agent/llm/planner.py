"""Workflow planner - first LLM call, produces a JSON action plan."""
import logging
from typing import List, Sequence

from workflow_agent.config import MAX_QUESTION_CHARS
from workflow_agent.executor.validator import validate_plan
from workflow_agent.llm.client import LLMClient, Message
from workflow_agent.llm.prompts import get_context_message, get_planner_system_prompt
from workflow_agent.schemas.execution import ActionDefinition
from workflow_agent.schemas.plan_schema import AgentPlan

logger = logging.getLogger(__name__)


def trim_question(question: str, limit: int = MAX_QUESTION_CHARS) -> str:
    return question.strip()[:limit]


class WorkflowPlanner:
    """LLM-based planner restricted to the caller's allowed actions."""

    def __init__(self, llm_client: LLMClient):
        self.llm_client = llm_client

    def build_messages(
        self,
        question: str,
        context_summary: str,
        allowed: Sequence[ActionDefinition],
    ) -> List[Message]:
        return [
            {"role": "system", "content": get_planner_system_prompt(allowed)},
            {"role": "system", "content": get_context_message(context_summary)},
            {"role": "user", "content": trim_question(question)},
        ]

    def generate_plan(
        self,
        question: str,
        context_summary: str,
        allowed: Sequence[ActionDefinition],
    ) -> AgentPlan:
        """
        Ask the model for a plan and validate its shape.

        Raises:
            LLMError: If the completion service fails
            PlanParseError: If the output is not a valid plan
        """
        completion = self.llm_client.complete(self.build_messages(question, context_summary, allowed))
        logger.debug("Planner output from %s: %s", completion.model, completion.text)
        plan = validate_plan(completion.text)
        logger.info("Plan generated: intent=%r with %d action(s)", plan.intent, len(plan.actions))
        return plan
