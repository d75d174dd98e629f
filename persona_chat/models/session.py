"""Chat domain models shared by the session core, the API and the UI.

Messages, personas and chat sessions as held in memory, plus the two
document shapes the remote store persists for every confirmed session:
a lightweight metadata record used for list rendering and a data record
carrying the full message history.
"""

import random
import string
import time
import uuid
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

DEFAULT_CHAT_TITLE = "New Chat"
WELCOME_MESSAGE_ID = "1"

_ID_ALPHABET = string.ascii_lowercase + string.digits


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def generate_chat_id() -> str:
    """Generate a client-side chat id (``chat_<epoch-ms>_<9 chars>``)."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"chat_{int(time.time() * 1000)}_{suffix}"


def generate_message_id() -> str:
    """Generate a fresh, globally unique message id."""
    return uuid.uuid4().hex


class Sender(str, Enum):
    """Author of a chat message."""

    USER = "user"
    PERSONA = "persona"


class Message(BaseModel):
    """A single chat message.

    Attributes:
        id: Message identifier, unique within its session.
        text: Message body. Only the streaming placeholder is mutated.
        sender: Who wrote the message.
        timestamp: Creation time.
    """

    id: str = Field(default_factory=generate_message_id)
    text: str = ""
    sender: Sender
    timestamp: datetime = Field(default_factory=utc_now)


class Persona(BaseModel):
    """A character the user can chat with.

    Attributes:
        id: Catalog identifier.
        name: Display name, also used in prompts.
        description: Short description, also used in prompts.
        avatar_url: Portrait URL, empty until one is generated.
        category: Free-form catalog category.
    """

    id: str
    name: str = Field(..., min_length=1)
    description: str = ""
    avatar_url: str = ""
    category: str = "custom"


class ChatSession(BaseModel):
    """A conversation between the user and one persona.

    A session without a persona never carries messages. ``temporary``
    sessions are never written to the remote store.
    """

    id: str = Field(default_factory=generate_chat_id)
    title: str = DEFAULT_CHAT_TITLE
    persona: Persona | None = None
    user_id: str
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    temporary: bool = False

    def touch(self) -> None:
        """Advance ``updated_at`` without ever moving it backwards."""
        now = utc_now()
        if now > self.updated_at:
            self.updated_at = now

    def has_user_messages(self) -> bool:
        return any(msg.sender is Sender.USER for msg in self.messages)


class SessionMetadata(BaseModel):
    """Remote index record for a confirmed session (no message bodies)."""

    id: str
    title: str
    persona: Persona | None = None
    user_id: str
    message_count: int = Field(default=0, ge=0)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_session(cls, session: ChatSession) -> "SessionMetadata":
        return cls(
            id=session.id,
            title=session.title,
            persona=session.persona,
            user_id=session.user_id,
            message_count=len(session.messages),
            created_at=session.created_at,
            updated_at=session.updated_at,
        )

    def to_display_session(self) -> ChatSession:
        """Project into a display-shaped session with an empty history."""
        return ChatSession(
            id=self.id,
            title=self.title,
            persona=self.persona,
            user_id=self.user_id,
            messages=[],
            created_at=self.created_at,
            updated_at=self.updated_at,
            temporary=False,
        )


class ChatDataDocument(BaseModel):
    """Remote body record holding the full message history of a session."""

    id: str
    messages: list[Message] = Field(default_factory=list)
    user_id: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_session(cls, session: ChatSession) -> "ChatDataDocument":
        return cls(
            id=session.id,
            messages=[msg.model_copy() for msg in session.messages],
            user_id=session.user_id,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


class AIGeneratedPersona(BaseModel):
    """Persona suggestion returned by the language model.

    Validated at the boundary; entries failing validation are dropped.
    """

    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)

    @field_validator("name", "description", "category", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Strip whitespace before length validation."""
        if isinstance(v, str):
            return v.strip()
        return v
