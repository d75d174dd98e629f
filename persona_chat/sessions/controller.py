"""Session orchestration for one signed-in user.

The controller is the only component that mutates the local cache, talks
to the remote feed and drives the response provider. Sessions are created
locally and only written to the remote store when the user sends the first
message ("lazy creation"); the remote subscription later confirms them and
the reconciliation pass retires the local copy.

No intent raises to the caller. Invalid input is ignored, missing chats
fall back to the default view, and remote or provider failures are logged
and reported through ``on_issue``.
"""

import logging
from collections.abc import Callable

from persona_chat.models import (
    WELCOME_MESSAGE_ID,
    ChatSession,
    HistoryEntry,
    Message,
    Persona,
    PersonaPrompt,
    Sender,
    SessionMetadata,
)
from persona_chat.sessions.accumulator import StreamAccumulator, StreamState
from persona_chat.sessions.errors import ChatIssue, RemoteStoreError
from persona_chat.sessions.local_cache import LocalSessionCache
from persona_chat.sessions.ports import ResponseProvider, Unsubscribe
from persona_chat.sessions.reconciliation import ReconciliationEngine
from persona_chat.sessions.remote_feed import RemoteSessionFeed

logger = logging.getLogger(__name__)

WELCOME_TEMPLATE = "Hello! I'm {name}. {description} How can I help you today?"
TITLE_TEMPLATE = "Chat with {name}"


def build_welcome_message(persona: Persona) -> Message:
    return Message(
        id=WELCOME_MESSAGE_ID,
        text=WELCOME_TEMPLATE.format(name=persona.name, description=persona.description),
        sender=Sender.PERSONA,
    )


class SessionController:
    """Orchestrates the chat sessions of ``user_id``.

    Args:
        user_id: Owner of every session created here.
        feed: Remote session store bridge.
        provider: Streaming response generator.
        on_change: Called after any state change the UI should render.
        on_issue: Called with each non-fatal issue.
    """

    def __init__(
        self,
        user_id: str,
        feed: RemoteSessionFeed,
        provider: ResponseProvider,
        *,
        on_change: Callable[[], None] | None = None,
        on_issue: Callable[[ChatIssue], None] | None = None,
    ) -> None:
        self.user_id = user_id
        self._feed = feed
        self._provider = provider
        self._on_change = on_change
        self._on_issue = on_issue

        self.local_cache = LocalSessionCache()
        self._engine = ReconciliationEngine(self.local_cache)
        self._active: ChatSession | None = None
        self._unsubscribe: Unsubscribe | None = None
        # id -> session with a reply still streaming
        self._in_flight: dict[str, ChatSession] = {}
        self._awaiting_first_chunk: set[str] = set()
        # chats deleted while their reply was streaming; never written back
        self._deleted_in_flight: set[str] = set()
        self.is_loading_chats = True

    # === Lifetime ===

    async def start(self) -> None:
        """Load the session index once, then follow the live subscription."""
        try:
            snapshot = await self._feed.load_list(self.user_id)
            self._engine.apply_remote(snapshot)
        except RemoteStoreError as e:
            logger.error(f"Error loading chats for {self.user_id}: {e}")
        finally:
            self.is_loading_chats = False

        self._unsubscribe = self._feed.subscribe(self.user_id, self._on_remote_snapshot)
        self._notify()

    def close(self) -> None:
        """Stop the subscription and drop all local state."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.local_cache.clear()
        self._engine.apply_remote([])
        self._active = None
        self.is_loading_chats = True

    def _on_remote_snapshot(self, snapshot: list[SessionMetadata]) -> None:
        self._engine.apply_remote(snapshot)
        self._notify()

    # === State for the presentation layer ===

    @property
    def active(self) -> ChatSession | None:
        return self._active

    @property
    def sessions(self) -> list[ChatSession]:
        """Merged, de-duplicated session list, newest first."""
        return self._engine.merged

    @property
    def is_loading(self) -> bool:
        """True while the active session waits for the first reply chunk."""
        return self._active is not None and self._active.id in self._awaiting_first_chunk

    def is_streaming(self, chat_id: str) -> bool:
        return chat_id in self._in_flight

    @property
    def can_toggle_temporary(self) -> bool:
        session = self._active
        return (
            session is not None
            and session.persona is not None
            and len(session.messages) == 1
            and session.messages[0].sender is Sender.PERSONA
        )

    # === Intents ===

    def create_session(self) -> ChatSession:
        """Select the pending empty session, or start a new local-only one."""
        for session in self.local_cache.list_all():
            if session.persona is None and not session.has_user_messages():
                self._active = session
                self._notify()
                return session

        session = ChatSession(user_id=self.user_id)
        self.local_cache.put(session)
        self._active = session
        logger.info(f"Created local chat {session.id}")
        self._refresh()
        return session

    def select_persona(self, persona: Persona) -> None:
        session = self._active
        if session is None:
            self._report(ChatIssue.NO_ACTIVE_SESSION)
            return
        if session.has_user_messages():
            logger.warning(f"Ignoring persona change on chat {session.id} with user messages")
            return

        session.persona = persona
        session.title = TITLE_TEMPLATE.format(name=persona.name)
        session.messages = [build_welcome_message(persona)]
        session.touch()
        if session.id in self.local_cache:
            self.local_cache.put(session)
        self._refresh()

    async def send_message(self, text: str) -> None:
        session = self._active
        if not text or not text.strip():
            self._report(ChatIssue.EMPTY_MESSAGE)
            return
        if session is None:
            self._report(ChatIssue.NO_ACTIVE_SESSION)
            return
        if session.persona is None:
            self._report(ChatIssue.NO_PERSONA)
            return
        if session.id in self._in_flight:
            logger.warning(f"Chat {session.id} is already streaming a reply")
            return

        history = [HistoryEntry(sender=msg.sender, text=msg.text) for msg in session.messages]
        session.messages.append(Message(text=text, sender=Sender.USER))
        session.touch()

        self._in_flight[session.id] = session
        self._awaiting_first_chunk.add(session.id)
        self._refresh()

        try:
            confirmed = False
            if not session.temporary:
                confirmed = await self._confirm(session)

            accumulator = StreamAccumulator(
                session,
                on_first_chunk=lambda: self._awaiting_first_chunk.discard(session.id),
                on_update=lambda _message: self._notify(),
            )
            state = await accumulator.run(
                self._provider,
                PersonaPrompt.from_persona(session.persona),
                text,
                history,
            )
            if state is StreamState.ERRORED:
                self._report(ChatIssue.PROVIDER_ERROR)

            if session.id in self._deleted_in_flight:
                if confirmed:
                    await self._discard_remote(session.id)
            # An error reply is only saved for sessions that already exist remotely
            elif not session.temporary and (state is StreamState.COMPLETE or confirmed):
                try:
                    await self._feed.update(session)
                except RemoteStoreError:
                    self._report(ChatIssue.REMOTE_WRITE_FAILED)
        finally:
            self._in_flight.pop(session.id, None)
            self._awaiting_first_chunk.discard(session.id)
            self._deleted_in_flight.discard(session.id)
            self._refresh()

    async def select_chat(self, chat_id: str) -> ChatSession | None:
        """Make ``chat_id`` active, or fall back to the default view."""
        session = self.local_cache.get(chat_id) or self._in_flight.get(chat_id)
        if session is None and self._active is not None and self._active.id == chat_id:
            session = self._active

        if session is None:
            try:
                session = await self._feed.load_full(chat_id, self.user_id)
            except RemoteStoreError:
                session = None

        if session is None:
            self._active = None
            self._report(ChatIssue.CHAT_NOT_FOUND)
            self._notify()
            return None

        self._active = session
        self._notify()
        return session

    async def delete_chat(self, chat_id: str) -> None:
        streaming = self._in_flight.pop(chat_id, None)
        if streaming is not None:
            self._deleted_in_flight.add(chat_id)

        if chat_id in self.local_cache:
            self.local_cache.remove(chat_id)
            self._engine.reconcile()
        else:
            try:
                await self._feed.delete(chat_id)
            except RemoteStoreError:
                if streaming is not None and chat_id in self._deleted_in_flight:
                    self._deleted_in_flight.discard(chat_id)
                    self._in_flight[chat_id] = streaming
                self._report(ChatIssue.REMOTE_WRITE_FAILED)
                return
            self._engine.forget(chat_id)
        logger.info(f"Deleted chat {chat_id}")

        if self._active is not None and self._active.id == chat_id:
            remaining = [session for session in self._engine.merged if session.id != chat_id]
            self._active = None
            if remaining:
                await self.select_chat(remaining[0].id)
        self._notify()

    def show_default_view(self) -> None:
        """Clear the selection (no active session)."""
        self._active = None
        self._notify()

    def toggle_temporary(self, to_temporary: bool) -> bool:
        """Flip the temporary flag while only the welcome message exists.

        Returns:
            Whether the flag was changed.
        """
        session = self._active
        if session is None or not self.can_toggle_temporary:
            return False
        session.temporary = to_temporary
        self.local_cache.put(session)
        self._refresh()
        return True

    # === Internals ===

    async def _confirm(self, session: ChatSession) -> bool:
        """Write the session remotely unless it already exists there."""
        if await self._feed.exists(session.id, self.user_id):
            return True
        try:
            await self._feed.create(session)
        except RemoteStoreError:
            # Local state stays; the next send re-checks exists()
            self._report(ChatIssue.REMOTE_WRITE_FAILED)
            return False
        logger.info(f"Confirmed chat {session.id} in remote store")
        return True

    async def _discard_remote(self, chat_id: str) -> None:
        """Remove a chat that was deleted while its first write was pending."""
        try:
            await self._feed.delete(chat_id)
        except RemoteStoreError:
            self._report(ChatIssue.REMOTE_WRITE_FAILED)
            return
        self._engine.forget(chat_id)
        logger.info(f"Discarded chat {chat_id} deleted during its reply")

    def _refresh(self) -> None:
        self._engine.reconcile()
        self._notify()

    def _notify(self) -> None:
        if self._on_change:
            self._on_change()

    def _report(self, issue: ChatIssue) -> None:
        logger.info(f"Chat issue for {self.user_id}: {issue.value}")
        if self._on_issue:
            self._on_issue(issue)
