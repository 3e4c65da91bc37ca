"""NiceGUI chat interface with SSE streaming support."""

import logging
from datetime import datetime

from nicegui import app, events, ui

from mistral_hub.client import ChatApiClient
from mistral_hub.config import AppConfig, get_app_config
from mistral_hub.errors import AttachmentError
from mistral_hub.models.catalog import MODELS
from mistral_hub.models.conversation import Attachment, Message
from mistral_hub.storage import ConversationStore, KeyValueStore, create_backend
from mistral_hub.ui.controller import ChatController
from mistral_hub.uploads import ACCEPTED_TYPES, MAX_FILE_SIZE, AttachmentRegistry

logger = logging.getLogger(__name__)

EXAMPLE_PROMPTS = ("Explain AI", "Write code", "What is Mistral?")

CUSTOM_CSS = """
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600&display=swap"
      rel="stylesheet">
<style>
    * { font-family: 'Inter', sans-serif; }

    body { background: #0f0f14; color: #e5e7eb; }

    .sidebar { background: #16161d; border-right: 1px solid #262633; }
    .conversation-item { border-radius: 8px; cursor: pointer; }
    .conversation-item:hover { background: #23232e; }
    .conversation-active { background: #2a2a38; }

    .header { background: rgba(15, 15, 20, 0.8); border-bottom: 1px solid #262633; }

    .message-user {
        background: linear-gradient(135deg, #ff7000 0%, #e10500 100%);
        color: white;
        border-radius: 18px 18px 4px 18px;
    }

    .message-assistant {
        background: #1c1c25;
        color: #e5e7eb;
        border-radius: 18px 18px 18px 4px;
    }
    .message-streaming { border: 1px solid #ff7000; }

    .typing-dot {
        width: 8px; height: 8px;
        background: #ff7000;
        border-radius: 50%;
        animation: bounce 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.2s; }
    .typing-dot:nth-child(3) { animation-delay: 0.4s; }

    @keyframes bounce {
        0%, 60%, 100% { transform: translateY(0); }
        30% { transform: translateY(-6px); }
    }

    .input-box {
        background: #1c1c25;
        border: 1px solid #262633;
        border-radius: 12px;
    }
    .input-box:focus-within { border-color: #ff7000; }

    .send-btn { background: linear-gradient(135deg, #ff7000 0%, #e10500 100%) !important; }
</style>
"""


def _format_time(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%I:%M %p")


def register_pages(
    config: AppConfig | None = None,
    registry: AttachmentRegistry | None = None,
    backend: KeyValueStore | None = None,
) -> None:
    """Register the chat page and the attachment handle route with NiceGUI.

    Args:
        config: Application configuration. Loads from environment if not provided.
        registry: Attachment handle registry shared by all pages.
        backend: Storage backend; selected by ``config.storage_backend`` if not
            provided.
    """
    config = config or get_app_config()
    registry = registry or AttachmentRegistry()
    backend = backend or create_backend(config.storage_backend)
    app.include_router(registry.router())

    logger.info(f"Chat UI using {config.storage_backend} storage, API at {config.api_base_url}")

    @ui.page("/")
    def chat_page() -> None:
        """Main chat page."""
        ui.add_head_html(CUSTOM_CSS)
        controller = ChatController(
            store=ConversationStore(backend),
            api=ChatApiClient(config.api_base_url, timeout=config.request_timeout),
            registry=registry,
        )
        ui.context.client.on_disconnect(controller.close)

        message_views: dict[str, ui.markdown] = {}

        def render_message(msg: Message) -> None:
            is_user = msg.role == "user"
            align = "justify-end" if is_user else "justify-start"
            bubble = "message-user" if is_user else "message-assistant"
            if msg.is_streaming:
                bubble += " message-streaming"

            with ui.row().classes(f"w-full {align}"):
                with ui.column().classes("max-w-[75%] gap-1"):
                    for attachment in msg.attachments or []:
                        render_attachment(attachment)
                    with ui.element("div").classes(f"px-4 py-3 {bubble}"):
                        if msg.is_streaming and not msg.content:
                            with ui.row().classes("gap-1"):
                                for _ in range(3):
                                    ui.element("div").classes("typing-dot")
                        view = ui.markdown(msg.content).classes("text-sm leading-relaxed")
                        message_views[msg.id] = view
                    ui.label(_format_time(msg.timestamp)).classes(
                        f"text-[10px] text-gray-500 {'self-end' if is_user else 'self-start'}"
                    )

        def render_attachment(attachment: Attachment) -> None:
            handle_id = attachment.url.rsplit("/", 1)[-1]
            if attachment.type == "image" and registry.contains(handle_id):
                ui.image(attachment.url).classes("w-48 rounded-lg")
            else:
                with ui.row().classes("items-center gap-2 text-xs text-gray-400"):
                    ui.icon("description")
                    ui.label(attachment.name)

        @ui.refreshable
        def sidebar() -> None:
            ui.button("New chat", icon="add", on_click=new_chat).props(
                "unelevated color=orange"
            ).classes("w-full")
            with ui.column().classes("w-full gap-1 mt-4"):
                for conversation in controller.sorted_conversations():
                    active = controller.current and controller.current.id == conversation.id
                    css = "conversation-item conversation-active" if active else "conversation-item"
                    with ui.row().classes(f"w-full items-center justify-between px-3 py-2 {css}"):
                        ui.label(conversation.title).classes("text-sm truncate flex-grow").on(
                            "click", lambda _, cid=conversation.id: select_chat(cid)
                        )
                        ui.button(
                            icon="delete",
                            on_click=lambda _, cid=conversation.id: delete_chat(cid),
                        ).props("flat round dense size=sm color=grey")

        @ui.refreshable
        def messages() -> None:
            message_views.clear()
            conversation = controller.current
            if conversation is None or not conversation.messages:
                with ui.column().classes("w-full h-96 items-center justify-center gap-3"):
                    ui.icon("auto_awesome").classes("text-5xl text-orange-500")
                    ui.label("Welcome to MistralHub").classes("text-2xl font-semibold")
                    ui.label("Your AI assistant powered by Mistral AI").classes("text-gray-400")
                    with ui.row().classes("gap-2 mt-4"):
                        for prompt in EXAMPLE_PROMPTS:
                            ui.button(
                                prompt, on_click=lambda _, p=prompt: send(p)
                            ).props("outline color=grey no-caps")
                return
            for msg in conversation.messages:
                render_message(msg)

        @ui.refreshable
        def pending_attachments() -> None:
            with ui.row().classes("w-full gap-2"):
                for attachment in controller.pending_attachments:
                    with ui.row().classes("items-center gap-1 px-2 py-1 rounded bg-gray-800"):
                        ui.icon("image" if attachment.type == "image" else "description")
                        ui.label(attachment.name).classes("text-xs")
                        ui.button(
                            icon="close",
                            on_click=lambda _, aid=attachment.id: remove_attachment(aid),
                        ).props("flat round dense size=xs")

        def refresh_all() -> None:
            header_title.set_text(controller.title)
            model_select.value = controller.selected_model.id
            sidebar.refresh()
            messages.refresh()
            scroll.scroll_to(percent=1.0)

        def on_fragment(msg: Message) -> None:
            view = message_views.get(msg.id)
            if view is None:
                messages.refresh()
            else:
                view.set_content(msg.content)
            scroll.scroll_to(percent=1.0)

        async def send(text: str | None = None) -> None:
            content = input_field.value if text is None else text
            if controller.is_loading:
                return
            input_field.value = ""
            await controller.send_message(content, on_refresh=refresh_all, on_fragment=on_fragment)
            pending_attachments.refresh()

        def new_chat() -> None:
            controller.new_conversation()
            refresh_all()

        def select_chat(conversation_id: str) -> None:
            controller.select_conversation(conversation_id)
            refresh_all()

        def delete_chat(conversation_id: str) -> None:
            controller.delete_conversation(conversation_id)
            refresh_all()

        def change_model(e: events.ValueChangeEventArguments) -> None:
            if e.value and e.value != controller.selected_model.id:
                controller.change_model(e.value)
                sidebar.refresh()

        async def handle_upload(e: events.UploadEventArguments) -> None:
            data = await e.file.read()
            try:
                controller.attach(e.file.name, e.file.content_type, data)
            except AttachmentError as err:
                ui.notify(err.message, type="negative")
            pending_attachments.refresh()
            uploader.reset()

        def remove_attachment(attachment_id: str) -> None:
            controller.remove_attachment(attachment_id)
            pending_attachments.refresh()

        # === UI Layout ===
        with ui.left_drawer(value=True).classes("sidebar p-4"):
            sidebar()

        with ui.column().classes("w-full h-screen gap-0"):
            with ui.row().classes("w-full header px-5 py-3 items-center justify-between"):
                header_title = ui.label(controller.title).classes("font-semibold truncate")
                model_select = ui.select(
                    {m.id: m.name for m in MODELS},
                    value=controller.selected_model.id,
                    on_change=change_model,
                ).props("dense dark outlined").classes("w-48")

            with ui.scroll_area().classes("flex-grow w-full") as scroll:
                with ui.column().classes("w-full max-w-3xl mx-auto p-5 gap-4"):
                    messages()

            with ui.column().classes("w-full max-w-3xl mx-auto p-4 gap-2"):
                pending_attachments()
                with ui.row().classes("w-full gap-3 items-end"):
                    uploader = (
                        ui.upload(
                            on_upload=handle_upload,
                            auto_upload=True,
                            max_file_size=MAX_FILE_SIZE,
                            on_rejected=lambda: ui.notify(
                                "File is too large. Max size is 10MB.", type="negative"
                            ),
                        )
                        .props(f'accept="{ACCEPTED_TYPES}" flat dense hide-upload-btn')
                        .classes("w-40")
                    )
                    with ui.element("div").classes("flex-grow input-box px-3 py-2"):
                        input_field = (
                            ui.textarea(placeholder="Message MistralHub...")
                            .props("autogrow borderless dense rows=1 dark")
                            .classes("w-full")
                            .on("keydown.enter.prevent", lambda: send())
                        )
                    (
                        ui.button(icon="send", on_click=lambda: send())
                        .props("round unelevated")
                        .classes("send-btn")
                        .bind_enabled_from(controller, "is_loading", backward=lambda v: not v)
                    )


def main() -> None:
    """Run the UI on its own port, talking to a separately running API."""
    config = get_app_config()
    register_pages(config)
    ui.run(
        title="MistralHub",
        port=config.ui_port,
        reload=False,
        dark=True,
        storage_secret=config.storage_secret,
    )


if __name__ == "__main__":
    main()
