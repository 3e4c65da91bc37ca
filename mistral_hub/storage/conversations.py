"""Conversation store over a key-value backend.

The store is the only durable owner of conversations. Every write serializes
the full list, so callers write through after each mutation. An unreachable
backend is not an error: reads return nothing and writes are dropped.
"""

import json
import logging
import re

from pydantic import ValidationError

from mistral_hub.errors import StorageUnavailableError
from mistral_hub.models.catalog import ModelId
from mistral_hub.models.conversation import Conversation, now_ms
from mistral_hub.storage.backends import KeyValueStore

logger = logging.getLogger(__name__)

CONVERSATIONS_KEY = "mistralhub_conversations"
CURRENT_CONVERSATION_KEY = "mistralhub_current_conversation"

TITLE_MAX_WORDS = 6
TITLE_MAX_LENGTH = 40
DEFAULT_TITLE = "New Chat"


def create_conversation(model: ModelId) -> Conversation:
    """Create an empty, untitled conversation for a model."""
    now = now_ms()
    return Conversation(model=model, title=DEFAULT_TITLE, created_at=now, updated_at=now)


def generate_title(content: str) -> str:
    """Derive a sidebar title from the first user message.

    Markdown markers and newlines become spaces, the first six words are
    kept, and anything past 40 characters is cut and suffixed with ``...``.
    """
    cleaned = re.sub(r"[#*`\n]", " ", content).strip()
    title = " ".join(cleaned.split()[:TITLE_MAX_WORDS])
    if not title:
        return DEFAULT_TITLE
    if len(title) > TITLE_MAX_LENGTH:
        return title[:TITLE_MAX_LENGTH] + "..."
    return title


class ConversationStore:
    """CRUD over the stored conversation list plus the current pointer."""

    def __init__(self, backend: KeyValueStore) -> None:
        self._backend = backend

    def _read(self, key: str) -> str | None:
        try:
            return self._backend.get(key)
        except StorageUnavailableError as e:
            logger.debug(f"Read of {key} skipped: {e}")
            return None

    def _write(self, key: str, value: str | None) -> None:
        try:
            if value is None:
                self._backend.delete(key)
            else:
                self._backend.set(key, value)
        except StorageUnavailableError as e:
            logger.debug(f"Write of {key} skipped: {e}")

    def list_conversations(self) -> list[Conversation]:
        """Return stored conversations in stored order.

        Unparseable data reads as an empty list; individual invalid entries
        are skipped.
        """
        data = self._read(CONVERSATIONS_KEY)
        if not data:
            return []

        try:
            raw = json.loads(data)
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding unreadable conversation list: {e}")
            return []
        if not isinstance(raw, list):
            return []

        conversations: list[Conversation] = []
        for item in raw:
            try:
                conversations.append(Conversation.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping invalid stored conversation: {e.error_count()} errors")
        return conversations

    def save_conversations(self, conversations: list[Conversation]) -> None:
        self._write(
            CONVERSATIONS_KEY,
            json.dumps([c.to_storage() for c in conversations]),
        )

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        return next(
            (c for c in self.list_conversations() if c.id == conversation_id),
            None,
        )

    def save_conversation(self, conversation: Conversation) -> None:
        """Replace the conversation with the same id, or prepend it."""
        conversations = self.list_conversations()
        for index, existing in enumerate(conversations):
            if existing.id == conversation.id:
                conversations[index] = conversation
                break
        else:
            conversations.insert(0, conversation)
        self.save_conversations(conversations)

    def delete_conversation(self, conversation_id: str) -> None:
        """Delete a conversation, clearing the current pointer if it was current."""
        conversations = self.list_conversations()
        self.save_conversations([c for c in conversations if c.id != conversation_id])
        if self.get_current_conversation_id() == conversation_id:
            self.set_current_conversation_id(None)

    def get_current_conversation_id(self) -> str | None:
        return self._read(CURRENT_CONVERSATION_KEY) or None

    def set_current_conversation_id(self, conversation_id: str | None) -> None:
        self._write(CURRENT_CONVERSATION_KEY, conversation_id or None)
