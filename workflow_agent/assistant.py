"""Request orchestration: roles, context, plan, execution and the grounded answer."""
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Optional, Tuple

from workflow_agent.config import MAX_CONTEXT_ORDERS
from workflow_agent.db.backend import WorkflowBackendClient
from workflow_agent.executor.runner import PlanRunner
from workflow_agent.llm.client import LLMClient, Message
from workflow_agent.llm.planner import WorkflowPlanner
from workflow_agent.llm.prompts import NO_CONTEXT
from workflow_agent.llm.responder import ResponseGenerator, answer_text
from workflow_agent.schemas.execution import ActionDefinition, ExecutionContext
from workflow_agent.schemas.plan_schema import AgentActionResult, AgentPlan, AssistantResponse
from workflow_agent.tools.context import WorkflowContext, build_workflow_context
from workflow_agent.tools.registry import ACTION_REGISTRY, allowed_actions
from workflow_agent.tools.users import resolve_caller

logger = logging.getLogger(__name__)


class InvalidQuestionError(ValueError):
    """The question is missing or blank."""


@dataclass(frozen=True)
class PreparedTurn:
    """Everything gathered before the answer call."""
    question: str
    context: WorkflowContext
    plan: Optional[AgentPlan]
    actions: Tuple[AgentActionResult, ...]
    answer_messages: List[Message] = field(default_factory=list)


def require_question(question: Optional[str]) -> str:
    if question is None or not question.strip():
        raise InvalidQuestionError("A non-empty question is required.")
    return question.strip()


class WorkflowAssistant:
    """Runs one request end to end. Holds no per-request state."""

    def __init__(
        self,
        llm_client: LLMClient,
        backend_factory: Callable[[str], object] = WorkflowBackendClient,
        registry: Mapping[str, ActionDefinition] = ACTION_REGISTRY,
        context_limit: int = MAX_CONTEXT_ORDERS,
    ):
        self.llm_client = llm_client
        self.backend_factory = backend_factory
        self.registry = registry
        self.context_limit = context_limit
        self.planner = WorkflowPlanner(llm_client)
        self.runner = PlanRunner()
        self.responder = ResponseGenerator(llm_client)

    def prepare(self, question: Optional[str], credential: Optional[str]) -> PreparedTurn:
        """
        Resolve roles, build context, plan and execute; stop short of the answer call.

        Raises:
            InvalidQuestionError: If the question is blank (before any external call)
            AuthenticationError: If the backend rejects the credential
            PlanParseError: If the planning output is unusable
            LLMError: If the completion service fails
        """
        question = require_question(question)
        backend = self.backend_factory(credential) if credential else None

        username, roles = resolve_caller(backend) if backend is not None else ("", frozenset())

        context = build_workflow_context(backend, self.context_limit)
        if context.warning:
            logger.warning("ContextFailed: %s", context.warning)
        else:
            logger.debug("ContextBuilt for %s", username or "anonymous caller")

        allowed = allowed_actions(roles, self.registry)
        if not allowed:
            logger.info("PlanSkipped: caller has no allowed actions")
            return PreparedTurn(
                question=question,
                context=context,
                plan=None,
                actions=(),
                answer_messages=self.responder.build_fallback_messages(question, context.summary),
            )

        plan = self.planner.generate_plan(question, context.summary, allowed)
        logger.info("PlanGenerated: %d action(s) planned", len(plan.actions))

        ctx = ExecutionContext(credential=credential, username=username, backend=backend)
        results = self.runner.execute(plan, allowed, ctx)
        logger.info("Executed: %d result(s)", len(results))

        return PreparedTurn(
            question=question,
            context=context,
            plan=plan,
            actions=results,
            answer_messages=self.responder.build_messages(question, context.summary, plan, results),
        )

    def build_response(self, turn: PreparedTurn, answer: Optional[str], model: Optional[str]) -> AssistantResponse:
        return AssistantResponse(
            answer=answer_text(answer),
            model=model or self.llm_client.model,
            context_summary=turn.context.summary or NO_CONTEXT,
            context_warning=turn.context.warning,
            plan=turn.plan,
            actions=list(turn.actions),
        )

    def answer(self, question: Optional[str], credential: Optional[str]) -> AssistantResponse:
        """Blocking variant: prepare the turn, then one answer call."""
        turn = self.prepare(question, credential)
        completion = self.responder.generate(turn.answer_messages)
        logger.info("AnswerSynthesized with model %s", completion.model)
        return self.build_response(turn, completion.text, completion.model)
