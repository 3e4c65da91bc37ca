"""Server-Sent-Events framing shared by the relay and the stream consumer.

Every frame is ``data: <payload>\\n\\n``. Content and error payloads are JSON
objects; the completion sentinel is the bare string ``[DONE]`` so that it can
never be confused with an empty content fragment.
"""

from pydantic import BaseModel

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"
FRAME_TERMINATOR = "\n\n"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def format_frame(payload: BaseModel | str) -> str:
    """Encode one payload as an SSE data frame."""
    if isinstance(payload, BaseModel):
        payload = payload.model_dump_json()
    return f"{DATA_PREFIX}{payload}{FRAME_TERMINATOR}"


DONE_FRAME = format_frame(DONE_SENTINEL)
