import logging

import httpx

from persona_chat.clients.config import ClientConfig, get_client_config
from persona_chat.models import AIGeneratedPersona, Persona

logger = logging.getLogger(__name__)


class HttpPersonaCatalog:
    """Read and extend the persona catalog through the API.

    Catalog failures are not fatal to chatting: reads degrade to empty
    lists and are logged.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or get_client_config()
        self._client = client or httpx.AsyncClient(
            base_url=self._config.api_base_url,
            timeout=self._config.request_timeout,
        )

    async def find(self, category: str | None = None, term: str | None = None) -> list[Persona]:
        params = {k: v for k, v in {"category": category, "q": term}.items() if v}
        try:
            response = await self._client.get("/personas", params=params)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Error loading personas: {e}")
            return []
        return [Persona.model_validate(item) for item in response.json()]

    async def categories(self) -> list[str]:
        try:
            response = await self._client.get("/personas/categories")
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Error loading persona categories: {e}")
            return []
        return list(response.json())

    async def suggest(self, search_term: str) -> list[AIGeneratedPersona]:
        """Ask the API for AI persona suggestions; empty on failure."""
        try:
            response = await self._client.post(
                "/personas/generate", json={"search_term": search_term}
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Error generating personas for {search_term!r}: {e}")
            return []
        return [AIGeneratedPersona.model_validate(item) for item in response.json()]

    async def add_generated(self, suggestion: AIGeneratedPersona) -> Persona | None:
        try:
            response = await self._client.post("/personas/generated", json=suggestion.model_dump())
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Error saving persona {suggestion.name!r}: {e}")
            return None
        return Persona.model_validate(response.json())

    async def aclose(self) -> None:
        await self._client.aclose()
