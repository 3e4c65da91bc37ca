"""SSE stream consumer for the chat relay.

Takes the response as decoded lines (``httpx.Response.aiter_lines`` keeps
multi-byte characters split across reads intact) and applies whole ``data:``
frames in arrival order. Lines that fail to parse are skipped; too many in a
row means the stream is corrupt and raises ``StreamParseError``.
"""

import json
import logging
from collections.abc import AsyncIterable, Callable
from dataclasses import dataclass

from mistral_hub.errors import StreamParseError
from mistral_hub.sse import DATA_PREFIX, DONE_SENTINEL

logger = logging.getLogger(__name__)

MAX_CONSECUTIVE_PARSE_FAILURES = 50


@dataclass
class StreamResult:
    """Outcome of consuming one relay stream.

    Attributes:
        content: Concatenation of every applied fragment.
        done: Whether the ``[DONE]`` sentinel was received.
        error: Message of an in-band error frame, if one arrived.
    """

    content: str = ""
    done: bool = False
    error: str | None = None


async def consume_stream(
    lines: AsyncIterable[str],
    on_chunk: Callable[[str], None] | None = None,
    max_parse_failures: int = MAX_CONSECUTIVE_PARSE_FAILURES,
) -> StreamResult:
    """Consume relay frames, accumulating content.

    Args:
        lines: Decoded response lines, e.g. ``response.aiter_lines()``.
        on_chunk: Called with each fragment, in order, as it is applied.
        max_parse_failures: Consecutive unparseable frames tolerated.

    Returns:
        StreamResult with the accumulated text and how the stream ended.

    Raises:
        StreamParseError: If more than ``max_parse_failures`` frames in a row
            could not be parsed.
    """
    result = StreamResult()
    failures = 0

    async for line in lines:
        if not line.startswith(DATA_PREFIX):
            continue

        payload = line[len(DATA_PREFIX) :]
        if payload == DONE_SENTINEL:
            result.done = True
            break

        try:
            data = json.loads(payload)
        except json.JSONDecodeError:
            failures += 1
            logger.debug(f"Skipping unparseable frame ({failures} in a row)")
            if failures > max_parse_failures:
                raise StreamParseError(
                    f"Stream corrupted: {failures} consecutive unreadable frames"
                ) from None
            continue

        failures = 0
        if not isinstance(data, dict):
            continue
        if error := data.get("error"):
            result.error = str(error)
            break
        content = data.get("content")
        if isinstance(content, str) and content:
            result.content += content
            if on_chunk is not None:
                on_chunk(content)

    return result
