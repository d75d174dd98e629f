"""Remote document store used by the sessions API.

Responsibilities:
    - Metadata and data collections keyed by chat id
    - Per-user metadata queries
    - Whole-snapshot change notifications for subscribers
"""

from persona_chat.store.memory import InMemoryDocumentStore, get_document_store

__all__ = ["InMemoryDocumentStore", "get_document_store"]
