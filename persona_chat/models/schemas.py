from enum import Enum

from pydantic import BaseModel, Field, field_validator

from persona_chat.models.session import ChatDataDocument, Persona, Sender, SessionMetadata


class StreamStatus(str, Enum):
    """Status values for streaming updates."""

    RECEIVED = "received"
    GENERATING = "generating"
    COMPLETE = "complete"
    ERROR = "error"


class HistoryEntry(BaseModel):
    """One prior message passed to the provider as conversation context."""

    sender: Sender
    text: str


class PersonaPrompt(BaseModel):
    """The persona fields the provider needs to stay in character."""

    name: str = Field(..., min_length=1)
    description: str = ""
    category: str = "custom"

    @classmethod
    def from_persona(cls, persona: Persona) -> "PersonaPrompt":
        return cls(name=persona.name, description=persona.description, category=persona.category)


class ChatStreamRequest(BaseModel):
    """Request payload for the streaming generation endpoint.

    Attributes:
        persona: Persona to answer as.
        message: The user's new message.
        history: Earlier messages of the conversation, oldest first.
    """

    persona: PersonaPrompt
    message: str = Field(..., min_length=1)
    history: list[HistoryEntry] = Field(default_factory=list)

    @field_validator("message", mode="before")
    @classmethod
    def strip_message(cls, v: str) -> str:
        """Strip whitespace from message before validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class StreamChunk(BaseModel):
    """A chunk of streamed response data.

    Attributes:
        content: The text content of this chunk.
        done: Whether this is the final chunk.
        status: Current processing status (received, generating, complete, error).
        error: Error message if something went wrong.
    """

    content: str
    done: bool
    status: StreamStatus | None = None
    error: str | None = None


class SessionDocuments(BaseModel):
    """Both remote documents of one session, written together."""

    metadata: SessionMetadata
    data: ChatDataDocument


class PersonaSearchRequest(BaseModel):
    """Request payload for AI persona suggestions."""

    search_term: str = Field(..., min_length=3)

    @field_validator("search_term", mode="before")
    @classmethod
    def strip_term(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v
