"""Helpers shared by action handlers."""
import functools
import logging
from typing import Any, Optional

from workflow_agent.db.backend import BackendError
from workflow_agent.schemas.plan_schema import AgentActionResult

logger = logging.getLogger(__name__)


def backend_action(name: str):
    """Turn a BackendError raised inside a handler into an ``error`` result."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(args, ctx):
            try:
                return func(args, ctx)
            except BackendError as e:
                logger.warning("Action %s failed against the backend: %s", name, e)
                return AgentActionResult.failure(name, f"{name} was rejected by the workflow backend.", str(e))

        return wrapper

    return decorator


def lower(value: Optional[Any], default: str = "unknown") -> str:
    if value is None:
        return default
    return str(getattr(value, "value", value)).lower()


def stage_state(payload: Any) -> str:
    """Best-effort state of a stage status payload returned by the backend."""
    if isinstance(payload, dict) and payload.get("state"):
        return lower(payload["state"])
    return "unknown"
