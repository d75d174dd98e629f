import logging
from collections.abc import Callable

from persona_chat.models import ChatSession, SessionMetadata
from persona_chat.sessions.local_cache import LocalSessionCache

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """Merges local-only sessions with the latest remote snapshot.

    Every pass produces the single list the UI renders and retires local
    entries the remote store has confirmed, so each id shows up once.
    """

    def __init__(
        self,
        cache: LocalSessionCache,
        on_change: Callable[[list[ChatSession]], None] | None = None,
    ) -> None:
        self._cache = cache
        self._on_change = on_change
        self._remote: list[SessionMetadata] = []
        self._merged: list[ChatSession] = []

    @property
    def merged(self) -> list[ChatSession]:
        return list(self._merged)

    def apply_remote(self, snapshot: list[SessionMetadata]) -> list[ChatSession]:
        """Replace the remote snapshot and run a pass."""
        self._remote = list(snapshot)
        return self.reconcile()

    def forget(self, chat_id: str) -> list[ChatSession]:
        """Drop ``chat_id`` from the remote snapshot ahead of the next echo."""
        self._remote = [meta for meta in self._remote if meta.id != chat_id]
        return self.reconcile()

    def reconcile(self) -> list[ChatSession]:
        combined: list[ChatSession] = []
        seen: set[str] = set()
        for meta in self._remote:
            # at-least-once delivery may repeat a record
            if meta.id in seen:
                continue
            seen.add(meta.id)
            combined.append(meta.to_display_session())

        confirmed: list[str] = []
        for session in self._cache.list_all():
            if session.id in seen:
                confirmed.append(session.id)
            else:
                combined.insert(0, session)

        combined.sort(key=lambda session: session.updated_at, reverse=True)

        for chat_id in confirmed:
            logger.debug(f"Chat {chat_id} confirmed remotely, retiring local copy")
            self._cache.remove(chat_id)

        self._merged = combined
        if self._on_change:
            self._on_change(self.merged)
        return self.merged
