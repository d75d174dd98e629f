"""Unit tests for PersonaAgentService and AgentConfig.

Tests configuration validation, agent initialization and suggestion parsing.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import pytest_check as check
from pydantic import ValidationError

from persona_chat.agent import AgentConfig, parse_persona_suggestions
from persona_chat.models import HistoryEntry, PersonaPrompt, Sender
from persona_chat.sessions.errors import ProviderError


class TestAgentConfig:
    """Tests for AgentConfig validation."""

    def test_valid_config_with_all_fields(self) -> None:
        """Config accepts valid values for all fields."""
        config = AgentConfig(
            api_key="sk-test-key-12345",
            base_url="http://localhost:11434/v1",
            model_name="gpt-4o",
            temperature=0.5,
            max_tokens=2048,
            history_messages=8,
        )

        check.equal(config.api_key, "sk-test-key-12345")
        check.equal(config.base_url, "http://localhost:11434/v1")
        check.equal(config.model_name, "gpt-4o")
        check.equal(config.temperature, 0.5)
        check.equal(config.max_tokens, 2048)
        check.equal(config.history_messages, 8)

    def test_config_with_default_values(self) -> None:
        """Config uses sensible defaults when only API key provided."""
        with patch.dict("os.environ", {"LLM_MODEL": "gpt-4o-mini", "LLM_BASE_URL": ""}):
            config = AgentConfig(api_key="sk-test-key")

        check.equal(config.model_name, "gpt-4o-mini")
        check.is_none(config.base_url)
        check.equal(config.temperature, 0.7)
        check.equal(config.max_tokens, 1024)
        check.equal(config.history_messages, 5)
        check.equal(config.max_persona_suggestions, 5)

    def test_config_fails_with_missing_api_key(self) -> None:
        """Config raises ValueError when API key is missing."""
        with pytest.raises(ValidationError) as exc_info:
            AgentConfig(api_key="")

        assert "API key required" in str(exc_info.value)

    def test_config_fails_with_whitespace_api_key(self) -> None:
        """Config rejects whitespace-only API key."""
        with pytest.raises(ValidationError):
            AgentConfig(api_key="   ")

    def test_config_strips_api_key_whitespace(self) -> None:
        """Config strips leading/trailing whitespace from API key."""
        config = AgentConfig(api_key="  sk-test-key  ")

        assert config.api_key == "sk-test-key"

    def test_config_rejects_out_of_range_temperature(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            AgentConfig(api_key="sk-test", temperature=2.5)

        assert "temperature" in str(exc_info.value).lower()

    def test_config_rejects_negative_history(self) -> None:
        with pytest.raises(ValidationError):
            AgentConfig(api_key="sk-test", history_messages=-1)

    def test_config_reads_environment(self) -> None:
        """LLM_API_KEY wins over OPENAI_API_KEY."""
        env = {"LLM_API_KEY": "sk-llm", "OPENAI_API_KEY": "sk-openai", "LLM_MODEL": "gpt-4o"}
        with patch.dict("os.environ", env):
            config = AgentConfig()

        check.equal(config.api_key, "sk-llm")
        check.equal(config.model_name, "gpt-4o")

    def test_config_falls_back_to_openai_key(self) -> None:
        with patch.dict("os.environ", {"LLM_API_KEY": "", "OPENAI_API_KEY": "sk-openai"}):
            config = AgentConfig()

        assert config.api_key == "sk-openai"


class TestParsePersonaSuggestions:
    """Tests for validating model-produced persona JSON."""

    def test_parses_valid_array(self) -> None:
        raw = '[{"name": "Nikola Tesla", "description": "Inventor.", "category": "Scientist/Inventor"}]'

        personas = parse_persona_suggestions(raw)

        check.equal(len(personas), 1)
        check.equal(personas[0].name, "Nikola Tesla")

    def test_strips_code_fences(self) -> None:
        raw = '```json\n[{"name": "Zeus", "description": "King of the gods.", "category": "Mythological Figure"}]\n```'

        assert [p.name for p in parse_persona_suggestions(raw)] == ["Zeus"]

    def test_drops_invalid_entries(self) -> None:
        raw = """[
            {"name": "Athena", "description": "Goddess of wisdom.", "category": "Mythological Figure"},
            {"name": "", "description": "Nameless.", "category": "Other"},
            {"name": "Hermes"},
            "not an object"
        ]"""

        assert [p.name for p in parse_persona_suggestions(raw)] == ["Athena"]

    def test_respects_limit(self) -> None:
        entry = '{"name": "N%d", "description": "d", "category": "c"}'
        raw = "[" + ",".join(entry % i for i in range(8)) + "]"

        assert len(parse_persona_suggestions(raw, limit=3)) == 3

    def test_rejects_non_json(self) -> None:
        with pytest.raises(ProviderError):
            parse_persona_suggestions("Here are some personas: Zeus, Athena")

    def test_rejects_non_array(self) -> None:
        with pytest.raises(ProviderError):
            parse_persona_suggestions('{"name": "Zeus"}')


class TestPersonaAgentServiceInit:
    """Tests for PersonaAgentService initialization."""

    @patch("persona_chat.agent.persona_agent.OpenAIChat")
    def test_service_passes_config_to_model(self, mock_openai_chat: MagicMock) -> None:
        """PersonaAgentService passes config values to OpenAIChat."""
        from persona_chat.agent.persona_agent import PersonaAgentService

        config = AgentConfig(
            api_key="sk-custom-key",
            base_url=None,
            model_name="gpt-4o",
            temperature=0.3,
            max_tokens=4096,
        )

        service = PersonaAgentService(config=config)

        mock_openai_chat.assert_called_once_with(
            id="gpt-4o",
            api_key="sk-custom-key",
            base_url=None,
            temperature=0.3,
            max_tokens=4096,
        )
        assert service._config == config

    @patch("persona_chat.agent.persona_agent.OpenAIChat")
    @patch("persona_chat.agent.persona_agent.Agent")
    def test_agent_gets_persona_instructions(
        self,
        mock_agent_class: MagicMock,
        mock_openai_chat: MagicMock,
    ) -> None:
        from persona_chat.agent.persona_agent import PersonaAgentService

        service = PersonaAgentService(config=AgentConfig(api_key="sk-test"))
        service._create_agent("You are Ada.")

        call_kwargs = mock_agent_class.call_args.kwargs
        check.equal(call_kwargs["instructions"], "You are Ada.")
        check.is_true(call_kwargs["markdown"])
        check.is_(call_kwargs["model"], mock_openai_chat.return_value)


class TestPersonaAgentServiceStreaming:
    """Tests for streaming through a mocked Agno agent."""

    @pytest.fixture
    def service(self):
        with patch("persona_chat.agent.persona_agent.OpenAIChat"):
            from persona_chat.agent.persona_agent import PersonaAgentService

            yield PersonaAgentService(config=AgentConfig(api_key="sk-test", history_messages=2))

    async def test_stream_response_yields_text_chunks(self, service) -> None:
        async def fake_run(content: str, stream: bool = False):
            for text in ["Hel", "", None, "lo!"]:
                yield SimpleNamespace(content=text)

        agent = MagicMock()
        agent.arun = fake_run
        history = [
            HistoryEntry(sender=Sender.PERSONA, text="Welcome"),
            HistoryEntry(sender=Sender.USER, text="one"),
            HistoryEntry(sender=Sender.PERSONA, text="two"),
        ]

        with patch.object(service, "_create_agent", return_value=agent) as create_agent:
            chunks = [c async for c in service.stream_response(PersonaPrompt(name="Ada"), "hi", history)]

        check.equal(chunks, ["Hel", "lo!"])
        check.is_in("You are Ada", create_agent.call_args.args[0])

    async def test_stream_generate_pushes_into_sink(self, service) -> None:
        async def fake_run(content: str, stream: bool = False):
            yield SimpleNamespace(content="Hello")

        agent = MagicMock()
        agent.arun = fake_run
        received: list[str] = []

        with patch.object(service, "_create_agent", return_value=agent):
            await service.stream_generate(PersonaPrompt(name="Ada"), "hi", [], received.append)

        assert received == ["Hello"]

    async def test_stream_failure_raises_provider_error(self, service) -> None:
        async def fake_run(content: str, stream: bool = False):
            yield SimpleNamespace(content="Hel")
            raise RuntimeError("rate limited")

        agent = MagicMock()
        agent.arun = fake_run

        with (
            patch.object(service, "_create_agent", return_value=agent),
            pytest.raises(ProviderError),
        ):
            async for _ in service.stream_response(PersonaPrompt(name="Ada"), "hi"):
                pass

    async def test_generate_personas_parses_response(self, service) -> None:
        agent = MagicMock()

        async def fake_run(prompt: str):
            return SimpleNamespace(
                content='[{"name": "Odin", "description": "Allfather.", "category": "Mythological Figure"}]'
            )

        agent.arun = fake_run

        with patch.object(service, "_create_agent", return_value=agent):
            personas = await service.generate_personas("norse gods")

        assert [p.name for p in personas] == ["Odin"]

    async def test_generate_personas_model_failure(self, service) -> None:
        agent = MagicMock()

        async def fake_run(prompt: str):
            raise RuntimeError("timeout")

        agent.arun = fake_run

        with (
            patch.object(service, "_create_agent", return_value=agent),
            pytest.raises(ProviderError),
        ):
            await service.generate_personas("norse gods")


class TestGetAgentService:
    """Tests for get_agent_service singleton function."""

    def test_singleton_returns_same_instance(self) -> None:
        """get_agent_service returns the same instance on multiple calls."""
        import persona_chat.agent.persona_agent as persona_agent_module

        # Reset singleton
        persona_agent_module._agent_service = None

        with patch.object(persona_agent_module, "PersonaAgentService") as mock_service:
            mock_instance = MagicMock()
            mock_service.return_value = mock_instance

            first = persona_agent_module.get_agent_service()
            second = persona_agent_module.get_agent_service()

            assert first is second
            mock_service.assert_called_once()

        persona_agent_module._agent_service = None
