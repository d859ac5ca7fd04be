"""Local chat proxy: ``POST /api/chat`` in front of the RAG backend.

Run with any ASGI server, e.g. ``uvicorn ptsp_chat.server:app``.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from ptsp_chat.config import Settings, get_settings
from ptsp_chat.errors import BackendError, UnreachableError, ValidationError
from ptsp_chat.models.chat import ChatReply, ChatRequest
from ptsp_chat.transport.http import RequestOrchestrator

logger = logging.getLogger(__name__)

UNREACHABLE_DETAIL = "The answering service could not be reached. Please try again later."

_orchestrator: Optional[RequestOrchestrator] = None


def get_orchestrator() -> RequestOrchestrator:
    """Return the process-wide RequestOrchestrator."""
    global _orchestrator
    if _orchestrator is None:
        settings = get_settings()
        _orchestrator = RequestOrchestrator(settings.rag_api_url, deadline=settings.chat_timeout)
    return _orchestrator


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    global _orchestrator
    logger.info("Chat proxy using RAG backend base URL: %s", get_settings().rag_api_url)
    yield
    if _orchestrator is not None:
        await _orchestrator.close()
        _orchestrator = None


router = APIRouter()


async def _parse_request(request: Request) -> ChatRequest:
    try:
        payload = await request.json()
    except ValueError as e:
        raise ValidationError("Invalid messages payload") from e
    if not isinstance(payload, dict) or not isinstance(payload.get("messages"), list):
        raise ValidationError("Invalid messages payload")
    try:
        return ChatRequest.model_validate(payload)
    except ValueError as e:
        raise ValidationError("Invalid messages payload", {"errors": str(e)}) from e


@router.post("/chat")
async def chat(
    request: Request,
    orchestrator: RequestOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    try:
        chat_request = await _parse_request(request)
    except ValidationError as e:
        return JSONResponse({"error": str(e)}, status_code=e.status_code)

    try:
        response = await orchestrator.send(chat_request.messages)
    except UnreachableError as e:
        # Transport detail stays in the log
        logger.error("RAG backend unreachable: %s", (e.details or {}).get("detail"))
        return JSONResponse({"error": "RAG backend unreachable", "detail": UNREACHABLE_DETAIL}, status_code=503)
    except BackendError as e:
        return JSONResponse({"error": "RAG backend error"}, status_code=e.status)
    except Exception:
        logger.exception("Chat API error")
        return JSONResponse({"error": "Failed to process chat request"}, status_code=500)

    return JSONResponse(ChatReply.from_response(response).model_dump())


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)) -> dict[str, Any]:
    return {"status": "ok", "backend": settings.rag_api_url}


app = FastAPI(
    title="PTSP Chat Proxy",
    description="Local proxy between the chat front end and the RAG backend",
    version="0.1.0",
    lifespan=lifespan,
)
app.include_router(router, prefix="/api")
