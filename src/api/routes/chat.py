"""Chat endpoints: one assistant turn, as a JSON response or a Server-Sent Events stream."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from src.api.dependencies import get_orchestrator
from src.api.models import ChatRequest, ChatResponse, ErrorResponse, chat_response_body
from src.chat.completion import CompletionError
from src.chat.orchestrator import ChatOrchestrator
from src.intent.models import ConversationContext

logger = logging.getLogger(__name__)

router = APIRouter()

COMPLETION_FAILED = "Language model request failed"


def _context(request: ChatRequest) -> ConversationContext | None:
    return request.context.to_domain() if request.context is not None else None


@router.post(
    "/api/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def chat(
    request: ChatRequest,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Run one chat turn.

    The reply text is returned verbatim in ``content``; cards embedded in it
    are also returned parsed in ``cards``. ``context`` is a patch the caller
    merges into its own conversation context.
    """
    try:
        result = await orchestrator.handle_turn(request.message, _context(request))
    except CompletionError:
        logger.exception("Chat turn failed calling the language model")
        return JSONResponse(status_code=500, content={"error": COMPLETION_FAILED})

    return JSONResponse(content=chat_response_body(result))


def _sse(event: str, data: dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


async def _stream_turn(
    orchestrator: ChatOrchestrator,
    message: str,
    context: ConversationContext | None,
) -> AsyncIterator[str]:
    try:
        async for event in orchestrator.iter_turn(message, context):
            if event.result is None:
                yield _sse("status", {"status": event.status.value, "message": event.message})
            else:
                yield _sse("result", chat_response_body(event.result))
    except CompletionError:
        logger.exception("Streaming chat turn failed calling the language model")
        yield _sse("error", {"error": COMPLETION_FAILED})
    except Exception:
        # Headers are already sent; report the failure in-band.
        logger.exception("Streaming chat turn failed")
        yield _sse("error", {"error": "Internal server error"})


@router.post("/api/chat/stream")
async def chat_stream(
    request: ChatRequest,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> StreamingResponse:
    """Run one chat turn, streaming a status event per phase and then the result."""
    return StreamingResponse(
        _stream_turn(orchestrator, request.message, _context(request)),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
