"""FastAPI application exposing the workflow assistant."""
import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from workflow_agent.assistant import InvalidQuestionError, WorkflowAssistant, require_question
from workflow_agent.config import ALLOWED_ORIGINS, LOG_LEVEL, PORT
from workflow_agent.executor.validator import PlanParseError
from workflow_agent.llm.client import LLMClient, LLMError
from workflow_agent.middleware.auth import (
    AuthenticationError,
    get_authorization_header,
    require_credential,
    resolve_credential,
)
from workflow_agent.middleware.rate_limit import EXEMPT_PREFIXES, check_rate_limit
from workflow_agent.schemas.plan_schema import AssistantRequest, AssistantResponse
from workflow_agent.streaming import error_event, stream_assistant_events

logger = logging.getLogger(__name__)

tags_metadata = [
    {
        "name": "API Info",
        "description": "High-level API information.",
    },
    {
        "name": "Assistant",
        "description": "**POST /assistant** - plans, executes and explains workflow actions for the caller.",
    },
    {
        "name": "Health",
        "description": "Health and readiness checks for deployment.",
    },
]

app = FastAPI(
    title="Workflow Assistant",
    description="Agentic assistant that plans and executes order workflow actions",
    version="1.0.0",
    openapi_tags=tags_metadata,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
)


def error_response(exc: StarletteHTTPException) -> JSONResponse:
    """Error body carrying the message under both `message` and `detail`."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail, "detail": exc.detail},
        headers=exc.headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc)


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """Apply rate limiting to all HTTP requests except docs and health checks."""
    if request.url.path.startswith(EXEMPT_PREFIXES):
        return await call_next(request)

    try:
        check_rate_limit(request)
    except HTTPException as exc:
        return error_response(exc)

    return await call_next(request)


@app.on_event("startup")
async def startup_event():
    """Configure logging and validate configuration on application startup."""
    from workflow_agent.config import validate_config

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # Fail fast if the provider's API key is missing
    validate_config()
    logger.info("Workflow assistant started")


@lru_cache
def get_assistant() -> WorkflowAssistant:
    return WorkflowAssistant(LLMClient())


@app.get("/healthz", tags=["Health"], summary="Health check")
async def healthz():
    """Lightweight health check; touches neither the backend nor the model."""
    return {"status": "ok"}


@app.get("/", tags=["API Info"], summary="API info")
async def root():
    return {
        "message": "Workflow Assistant API",
        "version": "1.0.0",
        "endpoints": {
            "assistant": "POST /assistant",
            "assistant_stream": "WS /assistant/stream",
            "health": "GET /healthz",
        },
    }


@app.post(
    "/assistant",
    response_model=AssistantResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    tags=["Assistant"],
    summary="Plan, execute and explain workflow actions",
)
async def assistant_endpoint(
    request: AssistantRequest,
    authorization: Optional[str] = Depends(get_authorization_header),
    assistant: WorkflowAssistant = Depends(get_assistant),
) -> AssistantResponse:
    """
    Orchestrates one request:
    - Role resolution and operational context
    - Planner (first LLM call), when the caller may run any action
    - Executor (sequential, per-action error isolation)
    - Responder (second LLM call, grounded in the execution log)
    """
    try:
        question = require_question(request.question)
    except InvalidQuestionError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    credential = require_credential(resolve_credential(request.credential, authorization))

    try:
        return await run_in_threadpool(assistant.answer, question, credential)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except (PlanParseError, LLMError) as e:
        logger.warning("Assistant request failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e)) from e
    except Exception as e:
        logger.exception("Unhandled error while answering")
        raise HTTPException(status_code=502, detail=f"Unexpected assistant failure: {e}") from e


@app.websocket("/assistant/stream")
async def assistant_stream(websocket: WebSocket, assistant: WorkflowAssistant = Depends(get_assistant)):
    """Receive one ``{question, credential}`` message, stream tokens, then one terminal event."""
    await websocket.accept()
    try:
        try:
            request = AssistantRequest.model_validate(await websocket.receive_json())
        except ValueError as e:
            await websocket.send_json(error_event(f"Invalid request message: {e}"))
            await websocket.close()
            return

        credential = resolve_credential(request.credential, websocket.headers.get("authorization"))
        if request.question is None or not request.question.strip():
            await websocket.send_json(error_event("A non-empty question is required."))
        elif not credential:
            await websocket.send_json(error_event("A workflow credential is required."))
        else:
            events = stream_assistant_events(assistant, request.question, credential)
            try:
                async for event in events:
                    await websocket.send_json(event)
            finally:
                await events.aclose()
        await websocket.close()
    except WebSocketDisconnect:
        logger.info("Streaming client disconnected")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=PORT)
