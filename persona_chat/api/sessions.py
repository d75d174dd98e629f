"""Session document endpoints.

Exposes the document store to the UI process: per-user metadata queries,
point reads of either document, upserts of both documents together,
deletes, and a Server-Sent Events subscription delivering the user's
whole metadata set on every change. Ownership is checked by the client.
"""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import StreamingResponse

from persona_chat.models import SessionDocuments
from persona_chat.sessions.ports import Document
from persona_chat.store import InMemoryDocumentStore, get_document_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])

# Comment line sent when no snapshot arrived, keeps proxies from closing the stream
KEEPALIVE_SECONDS = 15.0


@router.get("")
async def list_sessions(
    user_id: str = Query(..., min_length=1),
    store: InMemoryDocumentStore = Depends(get_document_store),
) -> list[Document]:
    """Return the metadata documents owned by ``user_id``."""
    return await store.query_metadata(user_id)


async def _snapshot_events(
    request: Request,
    queue: asyncio.Queue[list[Document]],
) -> AsyncGenerator[str]:
    while not await request.is_disconnected():
        try:
            snapshot = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
        except TimeoutError:
            yield ": keepalive\n\n"
            continue
        yield f"data: {json.dumps(snapshot)}\n\n"


@router.get("/stream")
async def stream_sessions(
    request: Request,
    user_id: str = Query(..., min_length=1),
    store: InMemoryDocumentStore = Depends(get_document_store),
) -> StreamingResponse:
    """Subscribe to the metadata set of ``user_id`` (initial state included)."""
    queue: asyncio.Queue[list[Document]] = asyncio.Queue()
    unsubscribe = store.watch(user_id, queue.put_nowait)
    logger.info(f"Session subscription opened for {user_id}")

    async def event_stream() -> AsyncGenerator[str]:
        try:
            async for event in _snapshot_events(request, queue):
                yield event
        finally:
            unsubscribe()
            logger.info(f"Session subscription closed for {user_id}")

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("/{chat_id}/metadata")
async def get_metadata(
    chat_id: str,
    store: InMemoryDocumentStore = Depends(get_document_store),
) -> Document:
    doc = await store.get_metadata(chat_id)
    if doc is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
    return doc


@router.get("/{chat_id}/data")
async def get_data(
    chat_id: str,
    store: InMemoryDocumentStore = Depends(get_document_store),
) -> Document:
    doc = await store.get_data(chat_id)
    if doc is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
    return doc


@router.put("/{chat_id}", status_code=status.HTTP_204_NO_CONTENT)
async def put_session(
    chat_id: str,
    documents: SessionDocuments,
    store: InMemoryDocumentStore = Depends(get_document_store),
) -> Response:
    """Create or replace both documents of a chat."""
    if documents.metadata.id != chat_id or documents.data.id != chat_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Document ids must match the chat id",
        )
    await store.put(
        chat_id,
        documents.metadata.model_dump(mode="json"),
        documents.data.model_dump(mode="json"),
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{chat_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    chat_id: str,
    store: InMemoryDocumentStore = Depends(get_document_store),
) -> Response:
    await store.delete(chat_id)
    logger.info(f"Deleted chat {chat_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
