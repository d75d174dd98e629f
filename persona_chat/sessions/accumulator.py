"""Accumulates a streamed provider response into one persona message.

State machine::

    IDLE --start()--> STREAMING --complete()--> COMPLETE
                          |
                          +------fail()-------> ERRORED

``start`` appends an empty persona placeholder to the session. Each chunk
replaces the placeholder text with ``text + chunk``. A failure replaces the
text wholesale with ``FALLBACK_RESPONSE_TEXT``. The accumulator does not
guard against concurrent use; one instance serves one response.
"""

import logging
from collections.abc import Callable, Sequence
from enum import Enum

from persona_chat.models import ChatSession, HistoryEntry, Message, PersonaPrompt, Sender
from persona_chat.sessions.ports import ResponseProvider

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE_TEXT = (
    "I apologize, but I'm having trouble responding right now. Please try again in a moment."
)


class StreamState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETE = "complete"
    ERRORED = "errored"


class StreamAccumulator:
    """Builds the persona reply of ``session`` from incremental chunks.

    Args:
        session: Session receiving the reply.
        on_first_chunk: Called once, when the first chunk arrives.
        on_update: Called after every change to the placeholder text.
    """

    def __init__(
        self,
        session: ChatSession,
        *,
        on_first_chunk: Callable[[], None] | None = None,
        on_update: Callable[[Message], None] | None = None,
    ) -> None:
        self._session = session
        self._on_first_chunk = on_first_chunk
        self._on_update = on_update
        self._message: Message | None = None
        self._received_chunk = False
        self.state = StreamState.IDLE

    @property
    def message(self) -> Message | None:
        """The placeholder message, once streaming has started."""
        return self._message

    @property
    def text(self) -> str:
        return self._message.text if self._message else ""

    def start(self) -> Message:
        if self.state is not StreamState.IDLE:
            raise RuntimeError(f"Cannot start accumulator in state {self.state.value}")
        self._message = Message(text="", sender=Sender.PERSONA)
        self._session.messages.append(self._message)
        self._session.touch()
        self.state = StreamState.STREAMING
        return self._message

    def feed(self, chunk: str) -> None:
        if self.state is not StreamState.STREAMING or self._message is None:
            logger.debug(f"Ignoring chunk for session {self._session.id} in state {self.state.value}")
            return

        if not self._received_chunk:
            self._received_chunk = True
            if self._on_first_chunk:
                self._on_first_chunk()

        self._message.text = self._message.text + chunk
        self._session.touch()
        if self._on_update:
            self._on_update(self._message)

    def complete(self) -> str:
        if self.state is not StreamState.STREAMING:
            raise RuntimeError(f"Cannot complete accumulator in state {self.state.value}")
        self.state = StreamState.COMPLETE
        self._session.touch()
        return self.text

    def fail(self, fallback: str = FALLBACK_RESPONSE_TEXT) -> None:
        if self.state is not StreamState.STREAMING or self._message is None:
            raise RuntimeError(f"Cannot fail accumulator in state {self.state.value}")
        self._message.text = fallback
        self.state = StreamState.ERRORED
        self._session.touch()
        if self._on_update:
            self._on_update(self._message)

    async def run(
        self,
        provider: ResponseProvider,
        persona: PersonaPrompt,
        user_message: str,
        history: Sequence[HistoryEntry],
    ) -> StreamState:
        """Drive one full generation cycle through ``provider``.

        Returns:
            The terminal state, COMPLETE or ERRORED.
        """
        self.start()
        try:
            await provider.stream_generate(persona, user_message, history, self.feed)
        except Exception as e:
            logger.error(f"Error generating response for session {self._session.id}: {e}")
            self.fail()
            return self.state

        self.complete()
        return self.state
