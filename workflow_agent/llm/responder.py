"""Response generator - second LLM call, phrases the answer from context and the execution log.

The execution log is the only source of truth about what happened; the model
only phrases it.
"""
import json
from typing import List, Optional, Sequence

from workflow_agent.llm.client import Completion, CompletionStream, LLMClient, Message
from workflow_agent.llm.planner import trim_question
from workflow_agent.llm.prompts import (
    ANSWER_SYSTEM_PROMPT,
    FALLBACK_SYSTEM_PROMPT,
    get_context_message,
    get_fallback_context_message,
)
from workflow_agent.schemas.plan_schema import AgentActionResult, AgentPlan

NO_PLAN = "No plan was generated."
NO_ACTIONS = "No actions were executed."
EMPTY_ANSWER = "The model did not return any content."


def render_plan(plan: Optional[AgentPlan]) -> str:
    if plan is None:
        return NO_PLAN
    return json.dumps(plan.model_dump(exclude_none=True), indent=2)


def render_execution_log(results: Sequence[AgentActionResult]) -> str:
    if not results:
        return NO_ACTIONS
    lines = []
    for result in results:
        line = f"- {result.name} [{result.status.value.upper()}] {result.summary}"
        if result.error:
            line += f" (error: {result.error})"
        lines.append(line)
    return "\n".join(lines)


def answer_text(text: Optional[str]) -> str:
    return text.strip() if text and text.strip() else EMPTY_ANSWER


class ResponseGenerator:
    """Builds the grounded answer call and runs it, blocking or streaming."""

    def __init__(self, llm_client: LLMClient):
        self.llm = llm_client

    def build_messages(
        self,
        question: str,
        context_summary: str,
        plan: Optional[AgentPlan],
        results: Sequence[AgentActionResult],
    ) -> List[Message]:
        return [
            {"role": "system", "content": ANSWER_SYSTEM_PROMPT},
            {"role": "system", "content": get_context_message(context_summary)},
            {
                "role": "system",
                "content": (
                    f"Plan:\n{render_plan(plan)}\n\n"
                    f"Execution log:\n{render_execution_log(results)}"
                ),
            },
            {"role": "user", "content": trim_question(question)},
        ]

    def build_fallback_messages(self, question: str, context_summary: str) -> List[Message]:
        """Question answering only, for callers with no allowed actions."""
        return [
            {"role": "system", "content": FALLBACK_SYSTEM_PROMPT},
            {"role": "system", "content": get_fallback_context_message(context_summary)},
            {"role": "user", "content": trim_question(question)},
        ]

    def generate(self, messages: List[Message]) -> Completion:
        """
        Raises:
            LLMError: If the completion service fails
        """
        completion = self.llm.complete(messages)
        return Completion(
            text=answer_text(completion.text),
            model=completion.model or self.llm.model,
        )

    def stream(self, messages: List[Message]) -> CompletionStream:
        return self.llm.stream(messages)
