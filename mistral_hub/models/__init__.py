"""Pydantic models for the catalog, stored conversations and API payloads.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - ModelInfo: Catalog entry with capability flags
    - Conversation / Message / Attachment: Records kept in browser storage
    - ChatRequest / VisionRequest / DocumentRequest: Endpoint payloads
    - StreamChunk / StreamError: SSE frame payloads
"""

from mistral_hub.models.catalog import (
    DEFAULT_DOCUMENT_MODEL,
    DEFAULT_MODEL,
    DEFAULT_VISION_MODEL,
    MODELS,
    OCR_MODEL,
    ModelId,
    ModelInfo,
    get_model,
)
from mistral_hub.models.conversation import (
    Attachment,
    Conversation,
    Message,
    generate_id,
    now_ms,
)
from mistral_hub.models.schemas import (
    ChatMessage,
    ChatRequest,
    ContentResponse,
    DocumentRequest,
    DocumentResponse,
    ErrorResponse,
    StreamChunk,
    StreamError,
    VisionRequest,
)

__all__ = [
    "DEFAULT_DOCUMENT_MODEL",
    "DEFAULT_MODEL",
    "DEFAULT_VISION_MODEL",
    "MODELS",
    "OCR_MODEL",
    "Attachment",
    "ChatMessage",
    "ChatRequest",
    "ContentResponse",
    "Conversation",
    "DocumentRequest",
    "DocumentResponse",
    "ErrorResponse",
    "Message",
    "ModelId",
    "ModelInfo",
    "StreamChunk",
    "StreamError",
    "VisionRequest",
    "generate_id",
    "get_model",
    "now_ms",
]
