"""Shared FastAPI dependencies."""

import logging

from fastapi import HTTPException, status

from persona_chat.agent import PersonaAgentService, get_agent_service

logger = logging.getLogger(__name__)


def get_agent() -> PersonaAgentService:
    """Resolve the agent service, reporting missing configuration as 503."""
    try:
        return get_agent_service()
    except ValueError as e:
        logger.error(f"Agent service unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Response provider is not configured",
        ) from e
