"""Streaming reply endpoint.

Relays the agent's chunks to the client as Server-Sent Events. Each event
carries one JSON-encoded ``StreamChunk``; the last one has ``done=true``
and, when generation failed, an ``error`` message.
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from persona_chat.agent import PersonaAgentService
from persona_chat.api.dependencies import get_agent
from persona_chat.models import ChatStreamRequest, StreamChunk, StreamStatus
from persona_chat.sessions.errors import ProviderError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


def format_sse(chunk: StreamChunk) -> str:
    return f"data: {chunk.model_dump_json()}\n\n"


async def _reply_events(
    request: ChatStreamRequest,
    agent_service: PersonaAgentService,
) -> AsyncGenerator[str]:
    yield format_sse(StreamChunk(content="", done=False, status=StreamStatus.RECEIVED))
    try:
        async for content in agent_service.stream_response(
            request.persona, request.message, request.history
        ):
            yield format_sse(
                StreamChunk(content=content, done=False, status=StreamStatus.GENERATING)
            )
    except ProviderError as e:
        logger.warning(f"Reply as {request.persona.name} failed: {e}")
        yield format_sse(
            StreamChunk(content="", done=True, status=StreamStatus.ERROR, error=str(e))
        )
        return

    yield format_sse(StreamChunk(content="", done=True, status=StreamStatus.COMPLETE))


@router.post("/stream")
async def stream_chat(
    request: ChatStreamRequest,
    agent_service: PersonaAgentService = Depends(get_agent),
) -> StreamingResponse:
    """Stream an in-character reply.

    Args:
        request: Persona, new user message and prior history.

    Returns:
        text/event-stream of StreamChunk JSON payloads.
    """
    logger.info(f"Streaming reply as {request.persona.name} ({len(request.history)} history messages)")
    return StreamingResponse(
        _reply_events(request, agent_service),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
