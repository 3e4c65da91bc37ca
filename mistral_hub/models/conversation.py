"""Conversation records persisted in browser-scoped storage.

Field names serialize in camelCase (``isStreaming``, ``createdAt``...) so the
stored JSON keeps the same shape the web client has always written.
"""

import random
import string
import time
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mistral_hub.models.catalog import ModelId

_ID_ALPHABET = string.digits + string.ascii_lowercase


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def generate_id() -> str:
    """Generate an id of the form ``<epoch-millis>-<9 base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{now_ms()}-{suffix}"


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Attachment(_Record):
    """A file attached to a message.

    Attributes:
        id: Attachment identifier.
        type: ``image`` or ``document``.
        name: Original file name.
        url: Transient handle URL; only valid while the handle is held.
        mime_type: MIME type reported for the upload.
        base64: Encoded payload sent to the vision/document endpoints.
    """

    id: str = Field(default_factory=generate_id)
    type: Literal["image", "document"]
    name: str
    url: str
    mime_type: str
    base64: str | None = None


class Message(_Record):
    """A single chat message.

    Attributes:
        id: Message identifier.
        role: ``user`` or ``assistant``.
        content: Message text (Markdown for assistant replies).
        timestamp: Creation time in epoch milliseconds.
        attachments: Files attached by the user.
        is_streaming: True while an assistant reply is still arriving.
    """

    id: str = Field(default_factory=generate_id)
    role: Literal["user", "assistant"]
    content: str = ""
    timestamp: int = Field(default_factory=now_ms)
    attachments: list[Attachment] | None = None
    is_streaming: bool | None = None


class Conversation(_Record):
    """A titled, ordered sequence of messages bound to one model.

    Attributes:
        id: Conversation identifier.
        title: Sidebar title, derived from the first user message.
        messages: Messages in chronological order.
        model: Model used for new turns.
        created_at: Creation time in epoch milliseconds.
        updated_at: Last mutation time in epoch milliseconds.
    """

    id: str = Field(default_factory=generate_id)
    title: str = "New Chat"
    messages: list[Message] = Field(default_factory=list)
    model: ModelId
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)

    def find_message(self, message_id: str) -> Message | None:
        return next((m for m in self.messages if m.id == message_id), None)

    def touch(self) -> None:
        """Refresh ``updated_at``; call after every mutation."""
        self.updated_at = max(now_ms(), self.updated_at)

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
