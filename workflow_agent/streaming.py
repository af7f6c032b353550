"""Streaming adapter: turns one assistant request into a sequence of channel events.

Zero or more ``token`` events are followed by exactly one terminal event,
``conversation`` on success or ``error`` on failure.
"""
import logging
from typing import Any, AsyncIterator, Dict, Optional

from starlette.concurrency import iterate_in_threadpool, run_in_threadpool

from workflow_agent.assistant import InvalidQuestionError, WorkflowAssistant
from workflow_agent.executor.validator import PlanParseError
from workflow_agent.llm.client import LLMError
from workflow_agent.middleware.auth import AuthenticationError
from workflow_agent.schemas.plan_schema import ConversationEvent, ErrorEvent, TokenEvent

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "The assistant failed unexpectedly. Please try again."


def error_event(message: str) -> Dict[str, Any]:
    return ErrorEvent(message=message).model_dump(by_alias=True)


async def stream_assistant_events(
    assistant: WorkflowAssistant,
    question: Optional[str],
    credential: Optional[str],
) -> AsyncIterator[Dict[str, Any]]:
    """Yield JSON-ready events for one request.

    Blocking work runs in the threadpool. If the consumer stops iterating,
    nothing further is produced; actions already executed stay executed.
    """
    try:
        turn = await run_in_threadpool(assistant.prepare, question, credential)
        stream = await run_in_threadpool(assistant.responder.stream, turn.answer_messages)
        async for delta in iterate_in_threadpool(iter(stream)):
            yield TokenEvent(delta=delta).model_dump(by_alias=True)
        response = assistant.build_response(turn, stream.text, stream.model)
    except (InvalidQuestionError, AuthenticationError, PlanParseError, LLMError) as e:
        logger.warning("Streaming request failed: %s", e)
        yield error_event(str(e))
        return
    except Exception:
        logger.exception("Streaming request failed unexpectedly")
        yield error_event(UNEXPECTED_ERROR)
        return

    yield ConversationEvent(final_state=response).model_dump(by_alias=True, mode="json")
