"""Agno agent logic for persona replies.

Responsibilities:
    - Agent initialization with OpenAI-compatible models
    - In-character system instructions and history windowing
    - Streaming token generation for the session core
    - Validated AI persona suggestions

Maintains clean separation from the HTTP layer.
"""

from persona_chat.agent.config import AgentConfig, get_agent_config
from persona_chat.agent.persona_agent import (
    PersonaAgentService,
    get_agent_service,
    parse_persona_suggestions,
)

__all__ = [
    "AgentConfig",
    "PersonaAgentService",
    "get_agent_config",
    "get_agent_service",
    "parse_persona_suggestions",
]
