"""Bridge between the session core and the remote document store.

Converts sessions to and from the two documents the store keeps per chat
(metadata for list rendering, data for the full history), enforces the
ownership check on reads and sorts list snapshots newest first.

Failures are raised to the caller as ``RemoteStoreError`` and never
retried here; retry policy belongs to the SessionController.
"""

import logging
from collections.abc import Callable

from pydantic import ValidationError

from persona_chat.models import ChatDataDocument, ChatSession, SessionMetadata
from persona_chat.sessions.errors import RemoteStoreError
from persona_chat.sessions.ports import Document, DocumentStore, Unsubscribe

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[list[SessionMetadata]], None]


def _parse_metadata_list(documents: list[Document]) -> list[SessionMetadata]:
    """Validate metadata documents, dropping malformed ones, newest first."""
    parsed: list[SessionMetadata] = []
    for doc in documents:
        try:
            parsed.append(SessionMetadata.model_validate(doc))
        except ValidationError as e:
            logger.warning(f"Skipping malformed metadata document {doc.get('id')!r}: {e}")
    # sorted() is stable, ties keep store order
    return sorted(parsed, key=lambda meta: meta.updated_at, reverse=True)


class RemoteSessionFeed:
    """Session-level operations over a ``DocumentStore``."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def load_list(self, user_id: str) -> list[SessionMetadata]:
        """Load the user's session index sorted by ``updated_at`` descending."""
        try:
            documents = await self._store.query_metadata(user_id)
        except RemoteStoreError as e:
            logger.error(f"Error getting chat list for {user_id}: {e}")
            raise
        return _parse_metadata_list(documents)

    def subscribe(self, user_id: str, callback: SnapshotCallback) -> Unsubscribe:
        """Deliver the sorted session index now and after every change.

        Returns:
            Handle that stops delivery when called.
        """

        def on_snapshot(documents: list[Document]) -> None:
            callback(_parse_metadata_list(documents))

        return self._store.watch(user_id, on_snapshot)

    async def load_full(self, chat_id: str, user_id: str) -> ChatSession | None:
        """Load a complete session, or None when missing or owned by someone else."""
        try:
            metadata_doc = await self._store.get_metadata(chat_id)
            data_doc = await self._store.get_data(chat_id)
        except RemoteStoreError as e:
            logger.error(f"Error getting chat {chat_id}: {e}")
            raise

        if metadata_doc is None or data_doc is None:
            return None

        try:
            metadata = SessionMetadata.model_validate(metadata_doc)
            data = ChatDataDocument.model_validate(data_doc)
        except ValidationError as e:
            raise RemoteStoreError(f"Malformed documents for chat {chat_id}: {e}") from e

        if metadata.user_id != user_id:
            logger.warning(f"Chat {chat_id} is not owned by {user_id}")
            return None

        return ChatSession(
            id=metadata.id,
            title=metadata.title,
            persona=metadata.persona,
            user_id=metadata.user_id,
            messages=data.messages,
            created_at=metadata.created_at,
            updated_at=metadata.updated_at,
            temporary=False,
        )

    async def exists(self, chat_id: str, user_id: str) -> bool:
        """Check that the session is persisted and owned by ``user_id``.

        Connectivity failures are reported as ``False``.
        """
        try:
            metadata_doc = await self._store.get_metadata(chat_id)
        except RemoteStoreError as e:
            logger.error(f"Error checking if chat {chat_id} exists: {e}")
            return False
        if metadata_doc is None:
            return False
        return metadata_doc.get("user_id") == user_id

    async def create(self, session: ChatSession) -> None:
        """First write of a session (upsert, safe to retry)."""
        await self._write(session, action="creating")

    async def update(self, session: ChatSession) -> None:
        """Subsequent writes of a session (upsert, safe to retry)."""
        await self._write(session, action="updating")

    async def delete(self, chat_id: str) -> None:
        try:
            await self._store.delete(chat_id)
        except RemoteStoreError as e:
            logger.error(f"Error deleting chat {chat_id}: {e}")
            raise

    async def _write(self, session: ChatSession, *, action: str) -> None:
        metadata = SessionMetadata.from_session(session).model_dump(mode="json")
        data = ChatDataDocument.from_session(session).model_dump(mode="json")
        try:
            await self._store.put(session.id, metadata, data)
        except RemoteStoreError as e:
            logger.error(f"Error {action} chat {session.id}: {e}")
            raise
