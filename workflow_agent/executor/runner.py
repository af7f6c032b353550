"""Plan executor that runs planned actions sequentially."""
import logging
from typing import Iterable, Mapping, Tuple

from pydantic import ValidationError

from workflow_agent.schemas.execution import ActionDefinition, ExecutionContext
from workflow_agent.schemas.plan_schema import AgentActionResult, AgentPlan, PlannedAction

logger = logging.getLogger(__name__)

NOT_SUPPORTED = "not supported"


def describe_validation_error(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}" for err in error.errors()
    )


class PlanRunner:
    """Executes validated plans against the caller's allowed actions.

    Every planned action yields exactly one result, in plan order. A failing
    action is recorded and never stops the actions after it; nothing already
    done is rolled back.
    """

    def execute(
        self,
        plan: AgentPlan,
        allowed: Iterable[ActionDefinition],
        ctx: ExecutionContext,
    ) -> Tuple[AgentActionResult, ...]:
        permitted = {definition.name: definition for definition in allowed}
        results = tuple(self._execute_action(action, permitted, ctx) for action in plan.actions)
        logger.info(
            "Executed %d action(s): %s",
            len(results),
            ", ".join(f"{r.name}={r.status.value}" for r in results) or "none",
        )
        return results

    def _execute_action(
        self,
        action: PlannedAction,
        permitted: Mapping[str, ActionDefinition],
        ctx: ExecutionContext,
    ) -> AgentActionResult:
        """Execute a single action; never raises."""
        definition = permitted.get(action.name)
        if definition is None:
            logger.warning("Rejected action %r: not in the caller's allowed actions", action.name)
            return AgentActionResult.failure(
                action.name,
                f"Action '{action.name}' is not supported for this user.",
                NOT_SUPPORTED,
            )

        try:
            arguments = definition.input_schema.model_validate(action.arguments)
        except ValidationError as e:
            detail = describe_validation_error(e)
            logger.warning("Invalid arguments for %s: %s", action.name, detail)
            return AgentActionResult.failure(
                action.name,
                f"Invalid arguments for {action.name}.",
                detail,
            )

        try:
            result = definition.handler(arguments, ctx)
        except Exception as e:
            logger.exception("Action %s raised an unexpected error", action.name)
            return AgentActionResult.failure(
                action.name,
                f"{action.name} failed with an unexpected error.",
                str(e) or e.__class__.__name__,
            )

        if not isinstance(result, AgentActionResult):
            logger.error("Action %s returned %s instead of a result", action.name, type(result).__name__)
            return AgentActionResult.failure(
                action.name,
                f"{action.name} did not return a result.",
                f"handler returned {type(result).__name__}",
            )

        logger.debug("Action %s finished with %s", action.name, result.status.value)
        return result
