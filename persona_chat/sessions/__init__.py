"""Client-side chat session lifecycle.

Keeps optimistic local sessions and the remote session store consistent
while replies stream in.

Components:
    - LocalSessionCache: sessions not yet confirmed remotely
    - RemoteSessionFeed: session-level access to the document store
    - StreamAccumulator: builds one persona reply from streamed chunks
    - ReconciliationEngine: merged, de-duplicated list for display
    - SessionController: orchestrates the user intents
"""

from persona_chat.sessions.accumulator import FALLBACK_RESPONSE_TEXT, StreamAccumulator, StreamState
from persona_chat.sessions.controller import SessionController, build_welcome_message
from persona_chat.sessions.errors import ChatIssue, ProviderError, RemoteStoreError
from persona_chat.sessions.local_cache import LocalSessionCache
from persona_chat.sessions.ports import DocumentStore, ResponseProvider
from persona_chat.sessions.reconciliation import ReconciliationEngine
from persona_chat.sessions.remote_feed import RemoteSessionFeed

__all__ = [
    "FALLBACK_RESPONSE_TEXT",
    "ChatIssue",
    "DocumentStore",
    "LocalSessionCache",
    "ProviderError",
    "ReconciliationEngine",
    "RemoteSessionFeed",
    "RemoteStoreError",
    "ResponseProvider",
    "SessionController",
    "StreamAccumulator",
    "StreamState",
    "build_welcome_message",
]
