"""Agno agent service answering in character, with streaming support.

Core module for generating persona replies and persona suggestions.

Architecture decisions:

1. **Stateless agent** - The client owns the conversation and sends the
   relevant history with every request, so no agent storage is attached.
   A fresh Agent is built per request because the system instruction
   depends on the persona; the model client is shared.

2. **Failures raise** - Unlike a chat UI that can print an inline error,
   the session core needs to know a reply failed so it can substitute the
   fallback message. Every failure surfaces as ``ProviderError``.

3. **Validated suggestions** - Persona suggestions come back as JSON text.
   Each entry is validated with pydantic; invalid entries are dropped.
"""

import json
import logging
import re
from collections.abc import AsyncGenerator, Callable, Sequence

from agno.agent import Agent
from agno.models.openai import OpenAIChat
from pydantic import ValidationError

from persona_chat.agent.config import AgentConfig, get_agent_config
from persona_chat.agent.prompts import (
    build_chat_content,
    build_persona_search_prompt,
    build_system_instruction,
)
from persona_chat.models import AIGeneratedPersona, HistoryEntry, PersonaPrompt
from persona_chat.sessions.errors import ProviderError

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


def parse_persona_suggestions(raw: str, limit: int = 5) -> list[AIGeneratedPersona]:
    """Parse model output into validated persona suggestions.

    Args:
        raw: Model output, expected to be a JSON array (code fences allowed).
        limit: Maximum number of suggestions to return.

    Returns:
        Valid suggestions in model order; invalid entries are dropped.

    Raises:
        ProviderError: If the output is not a JSON array.
    """
    text = _CODE_FENCE.sub("", raw.strip())
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProviderError(f"Persona suggestions are not valid JSON: {e}") from e

    if not isinstance(payload, list):
        raise ProviderError("Persona suggestions must be a JSON array")

    personas: list[AIGeneratedPersona] = []
    for item in payload:
        try:
            personas.append(AIGeneratedPersona.model_validate(item))
        except ValidationError:
            logger.warning(f"Dropping invalid persona suggestion: {item!r}")
    return personas[:limit]


class PersonaAgentService:
    """Service wrapping Agno for persona replies.

    Satisfies the session core's response provider contract through
    ``stream_generate``.
    """

    def __init__(self, config: AgentConfig | None = None) -> None:
        """Initialize the agent service.

        Args:
            config: Optional agent configuration.
                    Loads from environment if not provided.
        """
        self._config = config or get_agent_config()
        self._model = self._create_model()

    def _create_model(self) -> OpenAIChat:
        return OpenAIChat(
            id=self._config.model_name,
            api_key=self._config.api_key,
            base_url=self._config.base_url,
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
        )

    def _create_agent(self, instructions: str) -> Agent:
        return Agent(
            model=self._model,
            instructions=instructions,
            # Output as markdown for rich formatting in UI
            markdown=True,
        )

    async def stream_response(
        self,
        persona: PersonaPrompt,
        message: str,
        history: Sequence[HistoryEntry] = (),
    ) -> AsyncGenerator[str]:
        """Stream reply chunks for a message.

        Args:
            persona: Persona to answer as.
            message: The user's message.
            history: Earlier messages, oldest first.

        Yields:
            Non-empty response text chunks as they arrive.

        Raises:
            ProviderError: If generation fails.
        """
        agent = self._create_agent(build_system_instruction(persona))
        content = build_chat_content(message, history, self._config.history_messages)
        try:
            async for chunk in agent.arun(content, stream=True):
                if hasattr(chunk, "content") and isinstance(chunk.content, str) and chunk.content:
                    yield chunk.content
        except Exception as e:
            logger.error(f"Error generating stream response as {persona.name}: {e}")
            raise ProviderError(str(e)) from e

    async def stream_generate(
        self,
        persona: PersonaPrompt,
        user_message: str,
        history: Sequence[HistoryEntry],
        on_chunk: Callable[[str], None],
    ) -> None:
        """Push reply chunks into ``on_chunk``, then return."""
        async for chunk in self.stream_response(persona, user_message, history):
            on_chunk(chunk)

    async def generate_personas(self, search_term: str) -> list[AIGeneratedPersona]:
        """Suggest personas matching a search term.

        Raises:
            ProviderError: If the model fails or returns unusable output.
        """
        limit = self._config.max_persona_suggestions
        agent = self._create_agent("You produce strictly formatted JSON.")
        try:
            response = await agent.arun(build_persona_search_prompt(search_term, limit))
        except Exception as e:
            logger.error(f"Error generating personas for {search_term!r}: {e}")
            raise ProviderError(str(e)) from e

        return parse_persona_suggestions(response.content or "", limit)


# Module-level singleton instance
_agent_service: PersonaAgentService | None = None


def get_agent_service() -> PersonaAgentService:
    """Get or create the global agent service.

    Returns:
        The PersonaAgentService instance.
    """
    global _agent_service
    if _agent_service is None:
        _agent_service = PersonaAgentService()
    return _agent_service
