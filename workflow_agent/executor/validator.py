"""Plan validator: pulls the JSON plan out of raw model output and checks its shape.

Extraction is permissive (the model may wrap the plan in prose or a fenced
block); validation is strict. Argument checking happens later, per action,
in the runner.
"""
import json
import re

from pydantic import ValidationError

from workflow_agent.schemas.plan_schema import AgentPlan

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


class PlanParseError(Exception):
    """The planning output could not be turned into a valid AgentPlan."""


def extract_plan_json(text: str) -> str:
    """
    Locate the JSON candidate inside model output.

    The first fenced code block wins; otherwise the substring from the first
    ``{`` to the last ``}``.

    Raises:
        PlanParseError: If no candidate can be found
    """
    if not text or not text.strip():
        raise PlanParseError("The model returned an empty plan.")

    match = _FENCED_BLOCK.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise PlanParseError("No JSON object found in the planning output.")
    return text[start:end + 1]


def validate_plan(text: str) -> AgentPlan:
    """
    Extract, parse and validate a plan from raw model output.

    Raises:
        PlanParseError: On missing JSON, invalid JSON or a shape mismatch
    """
    candidate = extract_plan_json(text)
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise PlanParseError(f"Planning output is not valid JSON: {e.msg} at position {e.pos}") from e

    if not isinstance(payload, dict):
        raise PlanParseError("Planning output must be a JSON object.")

    try:
        return AgentPlan.model_validate(payload)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'plan'}: {err['msg']}" for err in e.errors()
        )
        raise PlanParseError(f"Planning output does not match the plan format: {problems}") from e
