"""Persona catalog endpoints, including AI-generated suggestions."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from persona_chat.agent import PersonaAgentService
from persona_chat.api.dependencies import get_agent
from persona_chat.models import AIGeneratedPersona, Persona, PersonaSearchRequest
from persona_chat.personas import PersonaCatalog, get_persona_catalog
from persona_chat.sessions.errors import ProviderError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/personas", tags=["personas"])


@router.get("", response_model=list[Persona])
async def list_personas(
    category: str | None = None,
    q: str | None = None,
    catalog: PersonaCatalog = Depends(get_persona_catalog),
) -> list[Persona]:
    """List catalog personas, filtered by category and search term."""
    return catalog.find(category=category, term=q)


@router.get("/categories", response_model=list[str])
async def list_categories(
    catalog: PersonaCatalog = Depends(get_persona_catalog),
) -> list[str]:
    return catalog.categories()


@router.post("", response_model=Persona, status_code=status.HTTP_201_CREATED)
async def add_persona(
    persona: Persona,
    catalog: PersonaCatalog = Depends(get_persona_catalog),
) -> Persona:
    return catalog.add(persona)


@router.post("/generated", response_model=Persona, status_code=status.HTTP_201_CREATED)
async def add_generated_persona(
    suggestion: AIGeneratedPersona,
    catalog: PersonaCatalog = Depends(get_persona_catalog),
) -> Persona:
    """Add an AI suggestion to the catalog under a fresh id."""
    return catalog.add_generated(suggestion)


@router.post("/generate", response_model=list[AIGeneratedPersona])
async def generate_personas(
    request: PersonaSearchRequest,
    agent_service: PersonaAgentService = Depends(get_agent),
) -> list[AIGeneratedPersona]:
    """Ask the model for personas matching a search term.

    Raises:
        502: The model failed or returned unusable output.
    """
    try:
        return await agent_service.generate_personas(request.search_term)
    except ProviderError as e:
        logger.warning(f"Persona generation for {request.search_term!r} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to generate personas",
        ) from e
