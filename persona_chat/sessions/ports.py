"""Collaborator interfaces consumed by the session core.

The core only depends on these shapes. Concrete implementations live in
``persona_chat.agent`` / ``persona_chat.clients`` (response provider) and
``persona_chat.store`` / ``persona_chat.clients`` (document store).
"""

from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol

from persona_chat.models import HistoryEntry, PersonaPrompt

Document = dict[str, Any]
ChunkSink = Callable[[str], None]
SnapshotListener = Callable[[list[Document]], None]
Unsubscribe = Callable[[], None]


class ResponseProvider(Protocol):
    """Streaming text generator answering in character.

    Invokes ``on_chunk`` zero or more times with non-empty fragments in
    generation order, then returns. Raises on failure.
    """

    def stream_generate(
        self,
        persona: PersonaPrompt,
        user_message: str,
        history: Sequence[HistoryEntry],
        on_chunk: ChunkSink,
    ) -> Awaitable[None]: ...


class DocumentStore(Protocol):
    """Eventually consistent key/value store with two collections.

    ``metadata`` documents index a user's sessions; ``data`` documents carry
    message bodies. Both are keyed by session id.
    """

    async def get_metadata(self, chat_id: str) -> Document | None: ...

    async def get_data(self, chat_id: str) -> Document | None: ...

    async def put(self, chat_id: str, metadata: Document, data: Document) -> None: ...

    async def delete(self, chat_id: str) -> None: ...

    async def query_metadata(self, user_id: str) -> list[Document]: ...

    def watch(self, user_id: str, listener: SnapshotListener) -> Unsubscribe:
        """Push the user's metadata set to ``listener`` now and on every change."""
        ...
