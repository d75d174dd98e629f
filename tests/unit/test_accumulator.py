"""Unit tests for StreamAccumulator."""

import pytest
import pytest_check as check

from persona_chat.models import ChatSession, PersonaPrompt, Sender
from persona_chat.sessions import FALLBACK_RESPONSE_TEXT, StreamAccumulator, StreamState
from persona_chat.sessions.errors import ProviderError


@pytest.fixture
def session() -> ChatSession:
    return ChatSession(user_id="u1")


class TestStreamAccumulatorStates:
    """Tests for the Idle -> Streaming -> Complete/Errored machine."""

    def test_start_appends_empty_persona_placeholder(self, session: ChatSession) -> None:
        accumulator = StreamAccumulator(session)

        message = accumulator.start()

        check.equal(accumulator.state, StreamState.STREAMING)
        check.equal(session.messages, [message])
        check.equal(message.sender, Sender.PERSONA)
        check.equal(message.text, "")

    def test_start_twice_raises(self, session: ChatSession) -> None:
        accumulator = StreamAccumulator(session)
        accumulator.start()

        with pytest.raises(RuntimeError):
            accumulator.start()

    def test_chunks_concatenate_monotonically(self, session: ChatSession) -> None:
        """Text after chunk k equals the concatenation of chunks 1..k."""
        chunks = ["Hel", "lo", ", ", "Wat", "son!"]
        seen: list[str] = []
        accumulator = StreamAccumulator(session, on_update=lambda msg: seen.append(msg.text))
        accumulator.start()

        for chunk in chunks:
            accumulator.feed(chunk)

        expected = ["".join(chunks[: k + 1]) for k in range(len(chunks))]
        check.equal(seen, expected)
        check.equal(accumulator.complete(), "Hello, Watson!")
        check.equal(session.messages[-1].text, "Hello, Watson!")

    def test_first_chunk_signalled_once(self, session: ChatSession) -> None:
        signals: list[bool] = []
        accumulator = StreamAccumulator(session, on_first_chunk=lambda: signals.append(True))
        accumulator.start()

        accumulator.feed("a")
        accumulator.feed("b")

        assert signals == [True]

    def test_chunks_outside_streaming_are_ignored(self, session: ChatSession) -> None:
        accumulator = StreamAccumulator(session)
        accumulator.feed("early")
        accumulator.start()
        accumulator.feed("on time")
        accumulator.complete()
        accumulator.feed("late")

        check.equal(accumulator.text, "on time")
        check.equal(accumulator.state, StreamState.COMPLETE)

    def test_fail_replaces_text_wholesale(self, session: ChatSession) -> None:
        accumulator = StreamAccumulator(session)
        accumulator.start()
        accumulator.feed("partial answ")

        accumulator.fail()

        check.equal(accumulator.state, StreamState.ERRORED)
        check.equal(session.messages[-1].text, FALLBACK_RESPONSE_TEXT)

    def test_complete_requires_streaming(self, session: ChatSession) -> None:
        with pytest.raises(RuntimeError):
            StreamAccumulator(session).complete()

    def test_each_chunk_touches_session(self, session: ChatSession) -> None:
        accumulator = StreamAccumulator(session)
        accumulator.start()
        before = session.updated_at

        accumulator.feed("x")

        assert session.updated_at >= before


class TestStreamAccumulatorRun:
    """Tests for driving a provider through run()."""

    async def test_run_completes(self, session: ChatSession, provider) -> None:
        provider.chunks = ["Hel", "lo!"]
        accumulator = StreamAccumulator(session)

        state = await accumulator.run(provider, PersonaPrompt(name="Ada"), "hi", [])

        check.equal(state, StreamState.COMPLETE)
        check.equal(session.messages[-1].text, "Hello!")
        check.equal(len(provider.calls), 1)

    async def test_run_converts_provider_failure(self, session: ChatSession, provider) -> None:
        provider.chunks = ["Hel"]
        provider.error = ProviderError("model unavailable")
        accumulator = StreamAccumulator(session)

        state = await accumulator.run(provider, PersonaPrompt(name="Ada"), "hi", [])

        check.equal(state, StreamState.ERRORED)
        check.equal(session.messages[-1].text, FALLBACK_RESPONSE_TEXT)
        check.equal(len(session.messages), 1)

    async def test_run_with_no_chunks(self, session: ChatSession, provider) -> None:
        """A provider may produce zero chunks and still complete."""
        provider.chunks = []
        accumulator = StreamAccumulator(session)

        state = await accumulator.run(provider, PersonaPrompt(name="Ada"), "hi", [])

        check.equal(state, StreamState.COMPLETE)
        check.equal(accumulator.text, "")
