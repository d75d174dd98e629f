"""Response provider consuming the ``/chat/stream`` SSE endpoint."""

import logging
from collections.abc import Callable, Sequence

import httpx

from persona_chat.clients.config import ClientConfig, get_client_config
from persona_chat.clients.sse import iter_sse_data
from persona_chat.models import ChatStreamRequest, HistoryEntry, PersonaPrompt, StreamChunk
from persona_chat.sessions.errors import ProviderError

logger = logging.getLogger(__name__)


class HttpResponseProvider:
    """Streams persona replies from the API into a chunk callback."""

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

    async def stream_generate(
        self,
        persona: PersonaPrompt,
        user_message: str,
        history: Sequence[HistoryEntry],
        on_chunk: Callable[[str], None],
    ) -> None:
        """Consume the SSE stream, pushing content chunks into ``on_chunk``.

        Raises:
            ProviderError: On transport errors, HTTP errors, error chunks, or
                a stream that ends without a final chunk.
        """
        payload = ChatStreamRequest(
            persona=persona, message=user_message, history=list(history)
        ).model_dump(mode="json")
        try:
            async with self._client.stream(
                "POST",
                "/chat/stream",
                json=payload,
                headers={"Accept": "text/event-stream"},
            ) as response:
                response.raise_for_status()
                async for data in iter_sse_data(response.aiter_lines()):
                    chunk = StreamChunk.model_validate(data)
                    if chunk.error:
                        raise ProviderError(chunk.error)
                    if chunk.content:
                        on_chunk(chunk.content)
                    if chunk.done:
                        return
        except httpx.HTTPStatusError as e:
            raise ProviderError(f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise ProviderError(f"Connection failed: {e}") from e

        raise ProviderError("Reply stream ended before completion")

    async def aclose(self) -> None:
        await self._client.aclose()
