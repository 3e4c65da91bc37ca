"""Mistral API client used by the chat relay and the modal endpoints.

Wraps ``openai.AsyncOpenAI`` pointed at Mistral's OpenAI-compatible API:

1. **Explicit construction** - One client per process, built from
   ``UpstreamConfig`` in the FastAPI lifespan and injected into handlers.
   Tests construct their own with a fake transport client.

2. **Two-phase streaming** - ``open_chat_stream`` awaits the upstream request
   before returning, so connection and model errors surface while the HTTP
   response can still carry a status code. Only the returned generator runs
   once streaming has begun.

3. **Error wrapping** - SDK exceptions become ``UpstreamError``; successful
   calls without usable text become ``EmptyResultError``.
"""

import logging
from collections.abc import AsyncGenerator, Sequence
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from mistral_hub.errors import EmptyResultError, UpstreamError
from mistral_hub.models.catalog import (
    DEFAULT_DOCUMENT_MODEL,
    DEFAULT_VISION_MODEL,
    OCR_MODEL,
)
from mistral_hub.upstream.config import UpstreamConfig, get_upstream_config

logger = logging.getLogger(__name__)

DEFAULT_VISION_PROMPT = "Describe this image in detail. What do you see?"
OCR_PROMPT = (
    "Extract all the text content from this document. "
    "Preserve the structure and formatting as much as possible."
)
DOCUMENT_SYSTEM_PROMPT = (
    "You are a helpful assistant analyzing a document. "
    "Answer questions based on the document content provided."
)


def _content_text(content: Any) -> str | None:
    """Normalize message/delta content to plain text.

    Mistral may return either a string or a list of typed content chunks.
    """
    if content is None or isinstance(content, str):
        return content
    parts = []
    for part in content:
        text = part.get("text") if isinstance(part, dict) else getattr(part, "text", None)
        if text:
            parts.append(text)
    return "".join(parts)


def _image_part(data_url: str) -> dict[str, Any]:
    return {"type": "image_url", "image_url": {"url": data_url}}


class UpstreamClient:
    """Client for streaming chat, vision and document requests."""

    def __init__(
        self,
        config: UpstreamConfig | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize the upstream client.

        Args:
            config: Optional configuration. Loads from environment if not provided.
            client: Optional pre-built SDK client, used by tests.
        """
        if client is None:
            self._config = config or get_upstream_config()
            client = AsyncOpenAI(
                api_key=self._config.api_key,
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                max_retries=self._config.max_retries,
            )
        else:
            self._config = config
        self._client = client

    async def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        await self._client.close()

    async def open_chat_stream(
        self,
        model: str,
        messages: Sequence[dict[str, Any]],
    ) -> AsyncGenerator[str]:
        """Open a streaming completion and return a generator of text deltas.

        Args:
            model: Upstream model identifier.
            messages: Chat history as ``{"role", "content"}`` dicts.

        Returns:
            Async generator yielding non-empty deltas in arrival order.

        Raises:
            UpstreamError: If the request fails before any chunk is received.
        """
        try:
            stream = await self._client.chat.completions.create(
                model=model,
                messages=list(messages),
                stream=True,
            )
        except OpenAIError as e:
            logger.error(f"Failed to open chat stream for {model}: {e}")
            raise UpstreamError(str(e)) from e

        logger.debug(f"Opened chat stream for {model} ({len(messages)} messages)")
        return self._iter_deltas(stream)

    async def _iter_deltas(self, stream: Any) -> AsyncGenerator[str]:
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = _content_text(chunk.choices[0].delta.content)
                if delta:
                    yield delta
        except OpenAIError as e:
            logger.error(f"Chat stream failed mid-flight: {e}")
            raise UpstreamError(str(e)) from e
        finally:
            # Runs on normal end, on error and when the consumer disconnects
            await stream.close()

    async def complete(
        self,
        model: str,
        messages: Sequence[dict[str, Any]],
    ) -> str | None:
        """Run a single-shot completion.

        Returns:
            The first choice's text, or None if the model returned nothing.

        Raises:
            UpstreamError: If the request fails.
        """
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=list(messages),
            )
        except OpenAIError as e:
            logger.error(f"Completion request to {model} failed: {e}")
            raise UpstreamError(str(e)) from e

        if not response.choices:
            return None
        return _content_text(response.choices[0].message.content) or None

    async def describe_image(
        self,
        image: str,
        prompt: str | None = None,
        model: str | None = None,
    ) -> str:
        """Ask a vision model about a base64-encoded image.

        Raises:
            EmptyResultError: If the model returned no content.
        """
        content = await self.complete(
            model or DEFAULT_VISION_MODEL,
            [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt or DEFAULT_VISION_PROMPT},
                        _image_part(f"data:image/jpeg;base64,{image}"),
                    ],
                }
            ],
        )
        if not content:
            raise EmptyResultError("No response from vision model")
        return content

    async def extract_document_text(self, document: str) -> str:
        """Run the OCR pass over a base64-encoded document.

        Always uses the vision-capable OCR model regardless of the caller's
        model choice.

        Raises:
            EmptyResultError: If no text was extracted.
        """
        text = await self.complete(
            OCR_MODEL,
            [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": OCR_PROMPT},
                        _image_part(f"data:application/pdf;base64,{document}"),
                    ],
                }
            ],
        )
        if not text:
            raise EmptyResultError("Failed to extract text from document")
        return text

    async def answer_from_document(
        self,
        extracted_text: str,
        prompt: str,
        model: str | None = None,
    ) -> str | None:
        """Answer a question using previously extracted document text."""
        return await self.complete(
            model or DEFAULT_DOCUMENT_MODEL,
            [
                {"role": "system", "content": DOCUMENT_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": (
                        f"Document content:\n\n{extracted_text}\n\n---\n\nQuestion: {prompt}"
                    ),
                },
            ],
        )
