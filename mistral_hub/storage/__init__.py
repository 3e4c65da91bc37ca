"""Browser-scoped conversation persistence.

Responsibilities:
    - Pluggable key-value backends (NiceGUI user storage, in-memory)
    - Conversation list upsert / delete and the current-conversation pointer
    - Title derivation for new conversations

Best effort: an unavailable backend degrades to empty reads and dropped writes.
"""

from mistral_hub.storage.backends import (
    BrowserKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    create_backend,
)
from mistral_hub.storage.conversations import (
    CONVERSATIONS_KEY,
    CURRENT_CONVERSATION_KEY,
    ConversationStore,
    create_conversation,
    generate_title,
)

__all__ = [
    "CONVERSATIONS_KEY",
    "CURRENT_CONVERSATION_KEY",
    "BrowserKeyValueStore",
    "ConversationStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "create_backend",
    "create_conversation",
    "generate_title",
]
