"""Per-page chat state and turn handling.

Holds the page's transient copies of conversations and writes every mutation
through to the ``ConversationStore``. One turn may be in flight at a time;
``is_loading`` guards submission and is always reset when the turn settles.
Contains no NiceGUI code so the whole flow is testable without a browser.
"""

import logging
from collections.abc import Callable

from mistral_hub.client import ChatApiClient
from mistral_hub.errors import MistralHubError
from mistral_hub.models.catalog import DEFAULT_MODEL, DEFAULT_VISION_MODEL, ModelInfo, get_model
from mistral_hub.models.conversation import Attachment, Conversation, Message
from mistral_hub.storage import ConversationStore, create_conversation, generate_title
from mistral_hub.uploads import AttachmentHandle, AttachmentRegistry, encode_file

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_PROMPT = "Describe this image in detail."


class ChatController:
    """Conversation list, selection, attachments and message sending."""

    def __init__(
        self,
        store: ConversationStore,
        api: ChatApiClient,
        registry: AttachmentRegistry,
    ) -> None:
        self.store = store
        self.api = api
        self.registry = registry
        self.conversations: list[Conversation] = store.list_conversations()
        self.current: Conversation | None = None
        self.selected_model: ModelInfo = DEFAULT_MODEL
        self.pending_attachments: list[Attachment] = []
        self.is_loading: bool = False
        self._handles: dict[str, AttachmentHandle] = {}

        current_id = store.get_current_conversation_id()
        if current_id:
            self._activate(current_id)

    @property
    def title(self) -> str:
        return self.current.title if self.current else "New Chat"

    def _activate(self, conversation_id: str) -> bool:
        conversation = next((c for c in self.conversations if c.id == conversation_id), None)
        if conversation is None:
            return False
        self.current = conversation
        model = get_model(conversation.model)
        if model is not None:
            self.selected_model = model
        return True

    def _persist(self, conversation: Conversation) -> None:
        """Write a conversation through to the store and the in-memory list."""
        self.store.save_conversation(conversation)
        for index, existing in enumerate(self.conversations):
            if existing.id == conversation.id:
                self.conversations[index] = conversation
                return
        self.conversations.insert(0, conversation)

    def sorted_conversations(self) -> list[Conversation]:
        """Conversations ordered most recently updated first."""
        return sorted(self.conversations, key=lambda c: c.updated_at, reverse=True)

    def new_conversation(self) -> Conversation:
        conversation = create_conversation(self.selected_model.id)
        self.current = conversation
        self.store.set_current_conversation_id(conversation.id)
        self._persist(conversation)
        return conversation

    def select_conversation(self, conversation_id: str) -> None:
        if self._activate(conversation_id):
            self.store.set_current_conversation_id(conversation_id)

    def delete_conversation(self, conversation_id: str) -> None:
        self.store.delete_conversation(conversation_id)
        self.conversations = [c for c in self.conversations if c.id != conversation_id]
        if self.current is not None and self.current.id == conversation_id:
            self.current = None

    def change_model(self, model_id: str) -> None:
        model = get_model(model_id)
        if model is None:
            raise ValueError(f"Unknown model: {model_id}")
        self.selected_model = model
        if self.current is not None:
            self.current.model = model.id
            self.current.touch()
            self._persist(self.current)

    def attach(self, name: str, mime_type: str, data: bytes) -> Attachment:
        """Encode a file and queue it for the next message.

        Raises:
            AttachmentError: If the file is rejected.
        """
        attachment, handle = encode_file(name, mime_type, data, self.registry)
        self._handles[attachment.id] = handle
        self.pending_attachments.append(attachment)
        return attachment

    def remove_attachment(self, attachment_id: str) -> None:
        """Drop a queued attachment and release its handle."""
        self.pending_attachments = [
            a for a in self.pending_attachments if a.id != attachment_id
        ]
        handle = self._handles.pop(attachment_id, None)
        if handle is not None:
            handle.release()

    def close(self) -> None:
        """Release every handle this page acquired."""
        for handle in self._handles.values():
            handle.release()
        self._handles.clear()
        self.pending_attachments.clear()

    async def send_message(
        self,
        content: str,
        on_refresh: Callable[[], None] | None = None,
        on_fragment: Callable[[Message], None] | None = None,
    ) -> None:
        """Run one turn: record the user message, fetch the reply, persist.

        Images go to the vision endpoint, documents to the document endpoint,
        anything else streams through the chat relay.

        Args:
            content: The user's text.
            on_refresh: Called when messages are added or finalized.
            on_fragment: Called with the assistant message after each streamed
                fragment is appended.
        """
        content = content.strip()
        attachments = list(self.pending_attachments)
        if self.is_loading or (not content and not attachments):
            return

        self.is_loading = True
        conversation = self.current or self.new_conversation()
        self.pending_attachments = []

        user_message = Message(
            role="user",
            content=content,
            attachments=[a.model_copy(update={"base64": None}) for a in attachments] or None,
        )
        assistant_message = Message(role="assistant", content="", is_streaming=True)

        if not conversation.messages:
            conversation.title = generate_title(content) if content else attachments[0].name
        conversation.messages.extend([user_message, assistant_message])
        conversation.touch()
        self._persist(conversation)
        if on_refresh:
            on_refresh()

        try:
            assistant_message.content = await self._fetch_reply(
                conversation, assistant_message, content, attachments, on_fragment
            )
        except MistralHubError as e:
            logger.warning(f"Turn failed in conversation {conversation.id}: {e.message}")
            assistant_message.content = f"Error: {e.message}"
        except Exception as e:
            logger.exception(f"Unexpected failure in conversation {conversation.id}")
            assistant_message.content = f"Error: {str(e) or 'Something went wrong'}"
        finally:
            assistant_message.is_streaming = False
            conversation.touch()
            self._persist(conversation)
            self.is_loading = False
            if on_refresh:
                on_refresh()

    async def _fetch_reply(
        self,
        conversation: Conversation,
        assistant_message: Message,
        content: str,
        attachments: list[Attachment],
        on_fragment: Callable[[Message], None] | None,
    ) -> str:
        model = self.selected_model

        image = next((a for a in attachments if a.type == "image" and a.base64), None)
        if image is not None:
            vision_model = model.id if model.supports_vision else DEFAULT_VISION_MODEL
            return await self.api.analyze_image(
                image.base64, prompt=content or DEFAULT_IMAGE_PROMPT, model=vision_model
            )

        document = next((a for a in attachments if a.type == "document" and a.base64), None)
        if document is not None:
            result = await self.api.analyze_document(
                document.base64, prompt=content, model=model.id
            )
            return result.answer or result.extracted_text

        history = [
            {"role": m.role, "content": m.content}
            for m in conversation.messages
            if m.id != assistant_message.id
        ]

        def append(fragment: str) -> None:
            assistant_message.content += fragment
            if on_fragment:
                on_fragment(assistant_message)

        result = await self.api.stream_chat(history, model.id, on_chunk=append)
        if result.error:
            partial = f"{result.content}\n\n" if result.content else ""
            return f"{partial}Error: {result.error}"
        return result.content

