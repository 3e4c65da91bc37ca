"""Unit tests for the chat page controller."""

import io
from collections.abc import Callable
from typing import Any

import pytest
import pytest_check as check
from pypdf import PdfWriter

from mistral_hub.client import StreamResult
from mistral_hub.errors import ApiError
from mistral_hub.models.schemas import DocumentResponse
from mistral_hub.storage import ConversationStore, MemoryKeyValueStore
from mistral_hub.ui.controller import DEFAULT_IMAGE_PROMPT, ChatController
from mistral_hub.uploads import AttachmentRegistry

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-data"


class FakeApi:
    """Records calls and replays a scripted reply for each endpoint."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.fragments: list[str] = []
        self.stream_error: str | None = None
        self.failure: Exception | None = None
        self.image_reply = "An image."
        self.document_reply = DocumentResponse(extracted_text="Extracted", answer=None)

    async def stream_chat(
        self,
        messages: list[dict[str, str]],
        model: str,
        on_chunk: Callable[[str], None] | None = None,
    ) -> StreamResult:
        self.calls.append(("chat", {"messages": messages, "model": model}))
        if self.failure is not None:
            raise self.failure
        for fragment in self.fragments:
            if on_chunk:
                on_chunk(fragment)
        return StreamResult(
            content="".join(self.fragments),
            done=self.stream_error is None,
            error=self.stream_error,
        )

    async def analyze_image(self, image: str, prompt: str | None = None, model: str | None = None) -> str:
        self.calls.append(("vision", {"image": image, "prompt": prompt, "model": model}))
        return self.image_reply

    async def analyze_document(
        self, document: str, prompt: str | None = None, model: str | None = None
    ) -> DocumentResponse:
        self.calls.append(("document", {"document": document, "prompt": prompt, "model": model}))
        return self.document_reply


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def registry() -> AttachmentRegistry:
    return AttachmentRegistry()


@pytest.fixture
def controller(store: ConversationStore, api: FakeApi, registry: AttachmentRegistry) -> ChatController:
    return ChatController(store, api, registry)


class TestSendMessage:
    """Tests for a streamed chat turn."""

    async def test_streamed_reply_is_persisted(
        self, controller: ChatController, store: ConversationStore, api: FakeApi
    ) -> None:
        """Fragments accumulate in the placeholder, which is then finalized."""
        api.fragments = ["Hel", "lo!"]
        seen: list[str] = []

        await controller.send_message(
            "Say hello", on_fragment=lambda message: seen.append(message.content)
        )

        stored = store.get_conversation(controller.current.id)
        user, assistant = stored.messages
        check.equal(seen, ["Hel", "Hello!"])
        check.equal(user.content, "Say hello")
        check.equal(assistant.content, "Hello!")
        check.is_false(assistant.is_streaming)
        check.equal(stored.title, "Say hello")
        check.is_false(controller.is_loading)
        check.equal(store.get_current_conversation_id(), stored.id)

    async def test_history_excludes_placeholder(
        self, controller: ChatController, api: FakeApi
    ) -> None:
        api.fragments = ["one"]
        await controller.send_message("first")
        await controller.send_message("second")

        _, payload = api.calls[-1]
        check.equal(
            payload["messages"],
            [
                {"role": "user", "content": "first"},
                {"role": "assistant", "content": "one"},
                {"role": "user", "content": "second"},
            ],
        )
        check.equal(payload["model"], "mistral-large-latest")

    async def test_refresh_called_before_and_after(
        self, controller: ChatController, api: FakeApi
    ) -> None:
        """The placeholder is shown streaming, then shown finalized."""
        states: list[bool | None] = []

        await controller.send_message(
            "hi",
            on_refresh=lambda: states.append(controller.current.messages[-1].is_streaming),
        )

        assert states == [True, False]

    async def test_blank_message_without_attachments_ignored(
        self, controller: ChatController, api: FakeApi
    ) -> None:
        await controller.send_message("   ")

        check.equal(api.calls, [])
        check.is_none(controller.current)

    async def test_ignored_while_loading(self, controller: ChatController, api: FakeApi) -> None:
        controller.is_loading = True

        await controller.send_message("hi")

        assert api.calls == []

    async def test_request_failure_becomes_error_message(
        self, controller: ChatController, store: ConversationStore, api: FakeApi
    ) -> None:
        """A failed request ends the turn with an error reply and unlocks input."""
        api.failure = ApiError("Failed to get response from Mistral", 500)

        await controller.send_message("hi")

        assistant = store.get_conversation(controller.current.id).messages[-1]
        check.equal(assistant.content, "Error: Failed to get response from Mistral")
        check.is_false(assistant.is_streaming)
        check.is_false(controller.is_loading)

    async def test_unexpected_failure_becomes_error_message(
        self, controller: ChatController, store: ConversationStore, api: FakeApi
    ) -> None:
        """Failures outside the error taxonomy still finalize the reply."""
        api.failure = ValueError("unreadable body")

        await controller.send_message("hi")

        assistant = store.get_conversation(controller.current.id).messages[-1]
        check.equal(assistant.content, "Error: unreadable body")
        check.is_false(assistant.is_streaming)
        check.is_false(controller.is_loading)

    async def test_messageless_failure_gets_fallback_text(
        self, controller: ChatController, api: FakeApi
    ) -> None:
        api.failure = KeyError()

        await controller.send_message("hi")

        assert controller.current.messages[-1].content == "Error: Something went wrong"

    async def test_in_band_error_keeps_partial_text(
        self, controller: ChatController, api: FakeApi
    ) -> None:
        api.fragments = ["Partial"]
        api.stream_error = "Stream error"

        await controller.send_message("hi")

        assert controller.current.messages[-1].content == "Partial\n\nError: Stream error"


class TestAttachments:
    """Tests for attachment routing and handle release."""

    async def test_image_routes_to_vision_default_model(
        self, controller: ChatController, api: FakeApi
    ) -> None:
        """A non-vision model falls back to the default vision model."""
        controller.attach("cat.png", "image/png", PNG_BYTES)

        await controller.send_message("")

        endpoint, payload = api.calls[0]
        user = controller.current.messages[0]
        check.equal(endpoint, "vision")
        check.equal(payload["model"], "pixtral-large-latest")
        check.equal(payload["prompt"], DEFAULT_IMAGE_PROMPT)
        check.equal(controller.current.messages[-1].content, "An image.")
        check.equal(controller.current.title, "cat.png")
        check.is_none(user.attachments[0].base64)
        check.equal(controller.pending_attachments, [])

    async def test_pdf_routes_to_document_endpoint(
        self, controller: ChatController, api: FakeApi
    ) -> None:
        """Without an answer the extracted text becomes the reply."""
        writer = PdfWriter()
        writer.add_blank_page(width=72, height=72)
        buffer = io.BytesIO()
        writer.write(buffer)
        controller.attach("report.pdf", "application/pdf", buffer.getvalue())

        await controller.send_message("Summarize")

        endpoint, payload = api.calls[0]
        check.equal(endpoint, "document")
        check.equal(payload["prompt"], "Summarize")
        check.equal(payload["model"], "mistral-large-latest")
        check.equal(controller.current.messages[-1].content, "Extracted")

    async def test_remove_attachment_releases_handle(
        self, controller: ChatController, registry: AttachmentRegistry
    ) -> None:
        attachment = controller.attach("cat.png", "image/png", PNG_BYTES)

        controller.remove_attachment(attachment.id)

        check.equal(controller.pending_attachments, [])
        check.equal(len(registry), 0)

    def test_close_releases_all_handles(
        self, controller: ChatController, registry: AttachmentRegistry
    ) -> None:
        controller.attach("a.png", "image/png", PNG_BYTES)
        controller.attach("b.png", "image/png", PNG_BYTES)

        controller.close()

        assert len(registry) == 0


class TestConversations:
    """Tests for selection, deletion and model changes."""

    def test_restores_current_pointer(self, store: ConversationStore, api: FakeApi) -> None:
        first = ChatController(store, api, AttachmentRegistry())
        conversation = first.new_conversation()
        first.change_model("codestral-latest")

        restored = ChatController(store, api, AttachmentRegistry())

        check.equal(restored.current.id, conversation.id)
        check.equal(restored.selected_model.id, "codestral-latest")

    def test_delete_current_clears_selection(
        self, controller: ChatController, store: ConversationStore
    ) -> None:
        conversation = controller.new_conversation()

        controller.delete_conversation(conversation.id)

        check.is_none(controller.current)
        check.equal(controller.conversations, [])
        check.is_none(store.get_current_conversation_id())
        check.equal(controller.title, "New Chat")

    def test_select_switches_and_persists_pointer(
        self, controller: ChatController, store: ConversationStore
    ) -> None:
        first = controller.new_conversation()
        controller.new_conversation()

        controller.select_conversation(first.id)

        check.equal(controller.current.id, first.id)
        check.equal(store.get_current_conversation_id(), first.id)

    def test_unknown_model_rejected(self, controller: ChatController) -> None:
        with pytest.raises(ValueError, match="Unknown model"):
            controller.change_model("gpt-4")

    def test_sorted_by_last_update(self, controller: ChatController) -> None:
        older = controller.new_conversation()
        newer = controller.new_conversation()
        older.updated_at = newer.updated_at + 1

        assert [c.id for c in controller.sorted_conversations()] == [older.id, newer.id]

    def test_memory_backend_is_shared(self, api: FakeApi) -> None:
        """Two controllers over one backend see the same conversations."""
        backend = MemoryKeyValueStore()
        first = ChatController(ConversationStore(backend), api, AttachmentRegistry())
        conversation = first.new_conversation()

        second = ChatController(ConversationStore(backend), api, AttachmentRegistry())

        assert [c.id for c in second.conversations] == [conversation.id]
