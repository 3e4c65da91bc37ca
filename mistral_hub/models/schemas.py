from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ChatMessage(BaseModel):
    """A single message of the history forwarded to the model.

    Attributes:
        role: The speaker identifier (user, assistant, or system).
        content: The message text.
    """

    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Request payload for the streaming chat relay.

    Both fields are optional at the schema level so that their absence is
    reported as a missing field rather than a generic validation failure.

    Attributes:
        messages: Conversation history in chronological order.
        model: Upstream model identifier.
    """

    messages: list[ChatMessage] | None = None
    model: str | None = None


class VisionRequest(BaseModel):
    """Request payload for single-shot image analysis.

    Attributes:
        image: Base64 image payload, without the data URL prefix.
        prompt: Optional question about the image.
        model: Optional vision model override.
    """

    image: str | None = None
    prompt: str | None = None
    model: str | None = None


class DocumentRequest(BaseModel):
    """Request payload for document OCR and optional Q&A.

    Attributes:
        document: Base64 document payload, without the data URL prefix.
        prompt: Optional question answered from the extracted text.
        model: Optional model for the question-answering stage.
    """

    document: str | None = None
    prompt: str | None = None
    model: str | None = None

    @field_validator("prompt", mode="before")
    @classmethod
    def strip_prompt(cls, v: str | None) -> str | None:
        """Strip whitespace so that blank prompts count as absent."""
        if isinstance(v, str):
            return v.strip() or None
        return v


class StreamChunk(BaseModel):
    """Payload of one content frame in the SSE stream."""

    content: str


class StreamError(BaseModel):
    """Payload of the terminal in-band error frame."""

    error: str


class ContentResponse(BaseModel):
    """Response from the vision endpoint."""

    content: str


class DocumentResponse(BaseModel):
    """Response from the document endpoint.

    Attributes:
        extracted_text: Text recovered by the OCR stage.
        answer: Answer to the prompt, or None when no prompt was given.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    extracted_text: str
    answer: str | None = Field(default=None)


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""

    error: str
