"""Document store client speaking to the sessions API over HTTP.

Point operations map one-to-one onto the ``/sessions`` endpoints. The
subscription runs as a background task reading the SSE snapshot stream
and reopens it after ``reconnect_delay`` when the connection drops.
Transport and HTTP failures surface as ``RemoteStoreError``.
"""

import asyncio
import json
import logging

import httpx

from persona_chat.clients.config import ClientConfig, get_client_config
from persona_chat.clients.sse import iter_sse_data
from persona_chat.sessions.errors import RemoteStoreError
from persona_chat.sessions.ports import Document, SnapshotListener, Unsubscribe

logger = logging.getLogger(__name__)


class HttpDocumentStore:
    """``DocumentStore`` backed by the Persona Chat API."""

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
        self._watchers: set[asyncio.Task[None]] = set()

    async def get_metadata(self, chat_id: str) -> Document | None:
        return await self._get_optional(f"/sessions/{chat_id}/metadata")

    async def get_data(self, chat_id: str) -> Document | None:
        return await self._get_optional(f"/sessions/{chat_id}/data")

    async def put(self, chat_id: str, metadata: Document, data: Document) -> None:
        await self._request("PUT", f"/sessions/{chat_id}", json={"metadata": metadata, "data": data})

    async def delete(self, chat_id: str) -> None:
        await self._request("DELETE", f"/sessions/{chat_id}")

    async def query_metadata(self, user_id: str) -> list[Document]:
        response = await self._request("GET", "/sessions", params={"user_id": user_id})
        return response.json()

    def watch(self, user_id: str, listener: SnapshotListener) -> Unsubscribe:
        task = asyncio.get_running_loop().create_task(self._watch(user_id, listener))
        self._watchers.add(task)
        task.add_done_callback(self._watchers.discard)

        def unsubscribe() -> None:
            task.cancel()

        return unsubscribe

    async def aclose(self) -> None:
        """Cancel subscriptions and close the HTTP client."""
        tasks = list(self._watchers)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self._client.aclose()

    async def _watch(self, user_id: str, listener: SnapshotListener) -> None:
        timeout = httpx.Timeout(self._config.request_timeout, read=None)
        while True:
            try:
                async with self._client.stream(
                    "GET",
                    "/sessions/stream",
                    params={"user_id": user_id},
                    headers={"Accept": "text/event-stream"},
                    timeout=timeout,
                ) as response:
                    response.raise_for_status()
                    async for snapshot in iter_sse_data(response.aiter_lines()):
                        try:
                            listener(snapshot)
                        except Exception as e:
                            logger.error(f"Session listener for {user_id} failed: {e}")
                logger.info(f"Session subscription for {user_id} ended, reconnecting")
            except (httpx.HTTPError, json.JSONDecodeError) as e:
                logger.warning(f"Session subscription for {user_id} dropped: {e}")
            await asyncio.sleep(self._config.reconnect_delay)

    async def _get_optional(self, path: str) -> Document | None:
        try:
            response = await self._client.get(path)
        except httpx.RequestError as e:
            raise RemoteStoreError(f"Connection failed: {e}") from e
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        self._raise_for_status(response)
        return response.json()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            raise RemoteStoreError(f"Connection failed: {e}") from e
        self._raise_for_status(response)
        return response

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RemoteStoreError(f"HTTP {e.response.status_code}") from e
