"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - user_id: Consistent user id for tests
    - store: Fresh in-memory document store (with failure switches)
    - feed: RemoteSessionFeed over ``store``
    - provider: Scripted response provider
    - issues: Issues reported by the controller
    - controller: SessionController wired to the fixtures above
    - agent_service: Scripted stand-in for the Agno agent service
    - async_client: HTTPX client for API testing
"""

import asyncio
from collections.abc import AsyncGenerator, Callable, Sequence

import pytest
from httpx import ASGITransport, AsyncClient

from persona_chat.api import app
from persona_chat.api.dependencies import get_agent
from persona_chat.models import AIGeneratedPersona, HistoryEntry, Persona, PersonaPrompt
from persona_chat.personas import PersonaCatalog, get_persona_catalog
from persona_chat.sessions import ChatIssue, RemoteSessionFeed, SessionController
from persona_chat.sessions.errors import ProviderError, RemoteStoreError
from persona_chat.sessions.ports import Document
from persona_chat.store import InMemoryDocumentStore, get_document_store


class FlakyDocumentStore(InMemoryDocumentStore):
    """In-memory store whose operations can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_reads = False
        self.fail_writes = False
        # (chat_id, message count) per put, failed ones included
        self.put_calls: list[tuple[str, int]] = []

    async def get_metadata(self, chat_id: str) -> Document | None:
        if self.fail_reads:
            raise RemoteStoreError("store offline")
        return await super().get_metadata(chat_id)

    async def get_data(self, chat_id: str) -> Document | None:
        if self.fail_reads:
            raise RemoteStoreError("store offline")
        return await super().get_data(chat_id)

    async def query_metadata(self, user_id: str) -> list[Document]:
        if self.fail_reads:
            raise RemoteStoreError("store offline")
        return await super().query_metadata(user_id)

    async def put(self, chat_id: str, metadata: Document, data: Document) -> None:
        self.put_calls.append((chat_id, len(data.get("messages", []))))
        if self.fail_writes:
            raise RemoteStoreError("write rejected")
        await super().put(chat_id, metadata, data)

    async def delete(self, chat_id: str) -> None:
        if self.fail_writes:
            raise RemoteStoreError("write rejected")
        await super().delete(chat_id)


class ScriptedProvider:
    """Response provider replaying ``chunks``, then optionally failing.

    When ``gate`` is set, the provider waits on it after the first chunk so
    tests can act while a reply is still streaming.
    """

    def __init__(self, chunks: Sequence[str] = ("Hello", " there")) -> None:
        self.chunks = list(chunks)
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple[PersonaPrompt, str, list[HistoryEntry]]] = []

    async def stream_generate(
        self,
        persona: PersonaPrompt,
        user_message: str,
        history: Sequence[HistoryEntry],
        on_chunk: Callable[[str], None],
    ) -> None:
        self.calls.append((persona, user_message, list(history)))
        for index, chunk in enumerate(self.chunks):
            on_chunk(chunk)
            if index == 0 and self.gate is not None:
                await self.gate.wait()
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error


class ScriptedAgentService:
    """Stand-in for PersonaAgentService used through dependency overrides."""

    def __init__(self) -> None:
        self.chunks = ["Elementary", ", my dear friend."]
        self.error: ProviderError | None = None
        self.suggestions: list[AIGeneratedPersona] = []
        self.requests: list[tuple[PersonaPrompt, str, list[HistoryEntry]]] = []

    async def stream_response(
        self,
        persona: PersonaPrompt,
        message: str,
        history: Sequence[HistoryEntry] = (),
    ) -> AsyncGenerator[str]:
        self.requests.append((persona, message, list(history)))
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def generate_personas(self, search_term: str) -> list[AIGeneratedPersona]:
        if self.error is not None:
            raise self.error
        return self.suggestions


@pytest.fixture
def user_id() -> str:
    """Consistent user id for tests."""
    return "user-123"


@pytest.fixture
def sherlock() -> Persona:
    return Persona(
        id="sherlock-holmes",
        name="Sherlock Holmes",
        description="The consulting detective.",
        category="Fictional Character",
    )


@pytest.fixture
def store() -> FlakyDocumentStore:
    return FlakyDocumentStore()


@pytest.fixture
def feed(store: FlakyDocumentStore) -> RemoteSessionFeed:
    return RemoteSessionFeed(store)


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def issues() -> list[ChatIssue]:
    return []


@pytest.fixture
async def controller(
    user_id: str,
    feed: RemoteSessionFeed,
    provider: ScriptedProvider,
    issues: list[ChatIssue],
) -> AsyncGenerator[SessionController]:
    """Started controller; closed after the test."""
    ctrl = SessionController(user_id, feed, provider, on_issue=issues.append)
    await ctrl.start()
    yield ctrl
    ctrl.close()


@pytest.fixture
def agent_service() -> ScriptedAgentService:
    return ScriptedAgentService()


@pytest.fixture
async def async_client(
    store: FlakyDocumentStore,
    agent_service: ScriptedAgentService,
) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    The agent, document store and persona catalog are replaced with fresh
    per-test instances.

    Yields:
        Configured AsyncClient for making test requests.
    """
    catalog = PersonaCatalog()
    app.dependency_overrides[get_agent] = lambda: agent_service
    app.dependency_overrides[get_document_store] = lambda: store
    app.dependency_overrides[get_persona_catalog] = lambda: catalog

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
