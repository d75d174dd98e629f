"""In-memory document store backing the sessions API.

Mirrors a two-collection document database: ``metadata`` documents index
a user's chats, ``data`` documents carry the message bodies. Listeners
registered with ``watch`` receive the user's full metadata set right away
and after every write or delete touching one of that user's documents.
"""

import copy
import logging
from collections import defaultdict

from persona_chat.sessions.ports import Document, SnapshotListener, Unsubscribe

logger = logging.getLogger(__name__)


class InMemoryDocumentStore:
    """Document store kept in process memory."""

    def __init__(self) -> None:
        self._metadata: dict[str, Document] = {}
        self._data: dict[str, Document] = {}
        self._listeners: dict[str, list[SnapshotListener]] = defaultdict(list)

    async def get_metadata(self, chat_id: str) -> Document | None:
        doc = self._metadata.get(chat_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def get_data(self, chat_id: str) -> Document | None:
        doc = self._data.get(chat_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def put(self, chat_id: str, metadata: Document, data: Document) -> None:
        previous_owner = self._owner(chat_id)
        self._metadata[chat_id] = copy.deepcopy(metadata)
        self._data[chat_id] = copy.deepcopy(data)
        owners = {metadata.get("user_id"), previous_owner}
        self._broadcast(owner for owner in owners if owner)

    async def delete(self, chat_id: str) -> None:
        owner = self._owner(chat_id)
        self._metadata.pop(chat_id, None)
        self._data.pop(chat_id, None)
        if owner:
            self._broadcast([owner])

    async def query_metadata(self, user_id: str) -> list[Document]:
        return self._snapshot(user_id)

    def watch(self, user_id: str, listener: SnapshotListener) -> Unsubscribe:
        self._listeners[user_id].append(listener)
        listener(self._snapshot(user_id))

        def unsubscribe() -> None:
            listeners = self._listeners.get(user_id, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def _owner(self, chat_id: str) -> str | None:
        doc = self._metadata.get(chat_id)
        return doc.get("user_id") if doc is not None else None

    def _snapshot(self, user_id: str) -> list[Document]:
        return [copy.deepcopy(doc) for doc in self._metadata.values() if doc.get("user_id") == user_id]

    def _broadcast(self, user_ids) -> None:
        for user_id in user_ids:
            snapshot = self._snapshot(user_id)
            for listener in list(self._listeners.get(user_id, [])):
                try:
                    listener(snapshot)
                except Exception as e:
                    logger.error(f"Snapshot listener for {user_id} failed: {e}")


# Module-level singleton instance
_document_store: InMemoryDocumentStore | None = None


def get_document_store() -> InMemoryDocumentStore:
    """Get or create the global document store."""
    global _document_store
    if _document_store is None:
        _document_store = InMemoryDocumentStore()
    return _document_store
