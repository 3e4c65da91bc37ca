"""HTTP client the UI uses to reach the MistralHub API."""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from mistral_hub.client.stream import StreamResult, consume_stream
from mistral_hub.errors import ApiError
from mistral_hub.models.schemas import ContentResponse, DocumentResponse

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {response.status_code}"


class ChatApiClient:
    """Client for the chat, vision and document endpoints.

    A fresh ``httpx.AsyncClient`` is opened per request; ``transport`` lets
    tests route requests straight into the ASGI app.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def stream_chat(
        self,
        messages: list[dict[str, str]],
        model: str,
        on_chunk: Callable[[str], None] | None = None,
    ) -> StreamResult:
        """Post a chat turn and consume the SSE response.

        Raises:
            ApiError: If the relay rejected the request or was unreachable.
            StreamParseError: If the stream turned out to be corrupt.
        """
        async with self._client() as client:
            try:
                async with client.stream(
                    "POST",
                    "/chat",
                    json={"messages": messages, "model": model},
                    headers={"Accept": "text/event-stream"},
                ) as response:
                    if response.is_error:
                        await response.aread()
                        raise ApiError(_error_message(response), response.status_code)
                    return await consume_stream(response.aiter_lines(), on_chunk)
            except httpx.RequestError as e:
                raise ApiError(f"Connection failed: {e}") from e

    async def _post_json(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        async with self._client() as client:
            try:
                response = await client.post(path, json=payload)
            except httpx.RequestError as e:
                raise ApiError(f"Connection failed: {e}") from e
        if response.is_error:
            raise ApiError(_error_message(response), response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"Invalid response from {path}: {e}", response.status_code) from e

    def _parse(self, model: type[ResponseT], data: Any, path: str) -> ResponseT:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ApiError(f"Unexpected response from {path}: {e.error_count()} invalid fields") from e

    async def analyze_image(
        self,
        image: str,
        prompt: str | None = None,
        model: str | None = None,
    ) -> str:
        """Send a base64 image to the vision endpoint and return its answer."""
        data = await self._post_json(
            "/vision", {"image": image, "prompt": prompt, "model": model}
        )
        return self._parse(ContentResponse, data, "/vision").content

    async def analyze_document(
        self,
        document: str,
        prompt: str | None = None,
        model: str | None = None,
    ) -> DocumentResponse:
        """Send a base64 document to the document endpoint."""
        data = await self._post_json(
            "/document", {"document": document, "prompt": prompt, "model": model}
        )
        return self._parse(DocumentResponse, data, "/document")
