"""Pydantic models for the chat domain and the HTTP API.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - Message, Persona, ChatSession: in-memory chat state
    - SessionMetadata, ChatDataDocument: remote store documents
    - AIGeneratedPersona: validated persona suggestion
    - ChatStreamRequest, StreamChunk: streaming endpoint payloads
"""

from persona_chat.models.schemas import (
    ChatStreamRequest,
    HistoryEntry,
    PersonaPrompt,
    PersonaSearchRequest,
    SessionDocuments,
    StreamChunk,
    StreamStatus,
)
from persona_chat.models.session import (
    DEFAULT_CHAT_TITLE,
    WELCOME_MESSAGE_ID,
    AIGeneratedPersona,
    ChatDataDocument,
    ChatSession,
    Message,
    Persona,
    Sender,
    SessionMetadata,
    generate_chat_id,
    generate_message_id,
    utc_now,
)

__all__ = [
    "DEFAULT_CHAT_TITLE",
    "WELCOME_MESSAGE_ID",
    "AIGeneratedPersona",
    "ChatDataDocument",
    "ChatSession",
    "ChatStreamRequest",
    "HistoryEntry",
    "Message",
    "Persona",
    "PersonaPrompt",
    "PersonaSearchRequest",
    "Sender",
    "SessionDocuments",
    "SessionMetadata",
    "StreamChunk",
    "StreamStatus",
    "generate_chat_id",
    "generate_message_id",
    "utc_now",
]
