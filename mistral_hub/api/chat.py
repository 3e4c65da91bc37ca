"""Streaming chat relay.

Pumps one upstream completion stream into one SSE response. Failures before
the stream opens are ordinary JSON error responses; failures after it opens
become a single in-band error frame, so every stream ends with a terminal
frame the client can act on.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import aclosing
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from mistral_hub.api.dependencies import get_upstream_client
from mistral_hub.errors import MissingFieldError
from mistral_hub.models.schemas import ChatRequest, ErrorResponse, StreamChunk, StreamError
from mistral_hub.sse import DONE_FRAME, SSE_HEADERS, format_frame
from mistral_hub.upstream import UpstreamClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


async def relay_frames(deltas: AsyncGenerator[str]) -> AsyncGenerator[str]:
    """Convert upstream text deltas into SSE frames.

    Yields one content frame per delta, in arrival order, then ``[DONE]``.
    If the upstream fails mid-stream, yields one error frame instead of the
    sentinel. Closing this generator closes the upstream stream.

    Args:
        deltas: Generator returned by ``UpstreamClient.open_chat_stream``.

    Yields:
        Encoded SSE frames.
    """
    async with aclosing(deltas):
        try:
            async for delta in deltas:
                if delta:
                    yield format_frame(StreamChunk(content=delta))
        except Exception as e:
            logger.error(f"Relay stream aborted: {e}")
            yield format_frame(StreamError(error=str(e) or "Stream error"))
            return

    yield DONE_FRAME


@router.post(
    "",
    response_class=StreamingResponse,
    responses={
        200: {"content": {"text/event-stream": {}}},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def chat(
    request: ChatRequest,
    upstream: Annotated[UpstreamClient, Depends(get_upstream_client)],
) -> StreamingResponse:
    """Stream a chat completion as Server-Sent Events.

    Frames are ``data: {"content": ...}`` per fragment, terminated by
    ``data: [DONE]``, or by ``data: {"error": ...}`` if the model fails
    mid-stream.

    Raises:
        400: ``messages`` or ``model`` missing.
        500: Upstream request failed before streaming began.
    """
    if not request.messages or not request.model:
        logger.warning("Rejected chat request with missing fields")
        raise MissingFieldError("Missing required fields: messages, model")

    deltas = await upstream.open_chat_stream(
        request.model,
        [m.model_dump() for m in request.messages],
    )

    return StreamingResponse(
        relay_frames(deltas),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
