"""NiceGUI chat interface driven by a SessionController."""

import logging
import os
import re

from nicegui import ui

from persona_chat.clients import (
    ClientConfig,
    HttpDocumentStore,
    HttpPersonaCatalog,
    HttpResponseProvider,
    get_client_config,
)
from persona_chat.models import (
    WELCOME_MESSAGE_ID,
    AIGeneratedPersona,
    ChatSession,
    Message,
    Persona,
    Sender,
)
from persona_chat.sessions import ChatIssue, RemoteSessionFeed, SessionController

logger = logging.getLogger(__name__)

ISSUE_MESSAGES = {
    ChatIssue.CHAT_NOT_FOUND: ("Chat not found", "warning"),
    ChatIssue.REMOTE_WRITE_FAILED: ("Could not save the chat, it is kept in this tab", "warning"),
    ChatIssue.PROVIDER_ERROR: ("The persona could not answer", "negative"),
}


def markdown_to_html(text: str) -> str:
    """Convert markdown to HTML for chat display.

    Supports: bold, italic, inline code, code blocks, links, lists.
    """
    # Escape HTML entities first
    text = text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")

    # Code blocks (```code```)
    text = re.sub(
        r"```(\w*)\n?([\s\S]*?)```",
        r'<pre class="bg-gray-800 text-gray-100 rounded-lg p-3 my-2 overflow-x-auto text-xs"><code>\2</code></pre>',
        text,
    )

    # Inline code (`code`)
    text = re.sub(
        r"`([^`]+)`",
        r'<code class="bg-gray-200 text-pink-600 px-1.5 py-0.5 rounded text-xs">\1</code>',
        text,
    )

    # Bold and italic
    text = re.sub(r"\*\*(.+?)\*\*", r"<strong>\1</strong>", text)
    text = re.sub(r"\*([^*]+)\*", r"<em>\1</em>", text)

    # Links [text](url)
    text = re.sub(
        r"\[([^\]]+)\]\(([^)]+)\)",
        r'<a href="\2" class="text-blue-600 underline" target="_blank">\1</a>',
        text,
    )

    # Bulleted (- item) and numbered (1. item) lists
    for pattern, tag in ((r"^[-*]\s+", "ul"), (r"^\d+\.\s+", "ol")):
        style = "list-disc" if tag == "ul" else "list-decimal"
        result: list[str] = []
        in_list = False
        for line in text.split("\n"):
            stripped = line.strip()
            if re.match(pattern, stripped):
                if not in_list:
                    result.append(f'<{tag} class="{style} list-inside my-2 space-y-1">')
                    in_list = True
                result.append(f"<li>{re.sub(pattern, '', stripped)}</li>")
            else:
                if in_list:
                    result.append(f"</{tag}>")
                    in_list = False
                result.append(line)
        if in_list:
            result.append(f"</{tag}>")
        text = "\n".join(result)

    return text.replace("\n", "<br>")


CUSTOM_CSS = """
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600&display=swap"
      rel="stylesheet">
<style>
    * { font-family: 'Inter', sans-serif; }
    body { background: #f5f5f5; min-height: 100vh; }
    .sidebar { background: #111827; color: #e5e7eb; }
    .chat-item { border-radius: 8px; cursor: pointer; }
    .chat-item:hover { background: rgba(255, 255, 255, 0.08); }
    .chat-item-active { background: rgba(102, 126, 234, 0.35); }
    .header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); }
    .message-user {
        background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
        color: white;
        border-radius: 18px 18px 4px 18px;
    }
    .message-persona {
        background: #f3f4f6;
        color: #1f2937;
        border-radius: 18px 18px 18px 4px;
    }
    .typing-dot {
        width: 8px; height: 8px;
        background: #667eea;
        border-radius: 50%;
        animation: bounce 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.2s; }
    .typing-dot:nth-child(3) { animation-delay: 0.4s; }
    @keyframes bounce {
        0%, 60%, 100% { transform: translateY(0); }
        30% { transform: translateY(-6px); }
    }
    .persona-card { border-radius: 12px; cursor: pointer; transition: box-shadow 0.2s; }
    .persona-card:hover { box-shadow: 0 4px 12px rgba(0, 0, 0, 0.12); }
</style>
"""


def is_awaiting_first_chunk(message: Message) -> bool:
    """An empty persona reply (other than the welcome) is still streaming."""
    return message.sender is Sender.PERSONA and not message.text and message.id != WELCOME_MESSAGE_ID


def render_avatar(persona: Persona | None, is_user: bool) -> None:
    if not is_user and persona and persona.avatar_url:
        ui.image(persona.avatar_url).classes("w-9 h-9 rounded-full")
        return
    css = "bg-indigo-500" if is_user else "bg-gray-500"
    with ui.element("div").classes(f"w-9 h-9 rounded-full flex items-center justify-center {css}"):
        ui.icon("person" if is_user else "theater_comedy").classes("text-white text-lg")


def render_typing_indicator(persona: Persona | None) -> None:
    with ui.row().classes("w-full justify-start gap-3 items-end"):
        render_avatar(persona, False)
        with ui.element("div").classes("message-persona px-4 py-3"):
            with ui.row().classes("gap-1"):
                for _ in range(3):
                    ui.element("div").classes("typing-dot")


def render_message(message: Message, persona: Persona | None) -> None:
    if is_awaiting_first_chunk(message):
        render_typing_indicator(persona)
        return

    is_user = message.sender is Sender.USER
    align = "justify-end" if is_user else "justify-start"
    bubble = "message-user" if is_user else "message-persona"
    with ui.row().classes(f"w-full {align} gap-3 items-end"):
        if not is_user:
            render_avatar(persona, False)
        with ui.column().classes("max-w-[70%] gap-1"):
            with ui.element("div").classes(f"px-4 py-3 {bubble}"):
                content = message.text.replace("\n", "<br>") if is_user else markdown_to_html(message.text)
                ui.html(content, sanitize=False).classes("text-sm leading-relaxed")
            ui.label(message.timestamp.astimezone().strftime("%I:%M %p")).classes(
                f"text-[10px] text-gray-400 {'self-end' if is_user else 'self-start'}"
            )
        if is_user:
            render_avatar(persona, True)


class ChatView:
    """One browser tab: a controller plus the containers it renders into."""

    def __init__(self, config: ClientConfig) -> None:
        self.store = HttpDocumentStore(config)
        self.provider = HttpResponseProvider(config)
        self.catalog = HttpPersonaCatalog(config)
        self.controller = SessionController(
            config.user_id,
            RemoteSessionFeed(self.store),
            self.provider,
            on_change=self.refresh,
            on_issue=self.notify_issue,
        )
        self.personas: list[Persona] = []
        self.categories: list[str] = []
        self.category = "all"
        self.suggestions: list[AIGeneratedPersona] = []

        self.sidebar_container: ui.column | None = None
        self.main_container: ui.column | None = None
        self.input_field: ui.textarea | None = None
        self.send_btn: ui.button | None = None

    async def load_personas(self) -> None:
        self.personas = await self.catalog.find()
        self.categories = await self.catalog.categories()

    async def close(self) -> None:
        logger.info(f"Closing chat view for {self.controller.user_id}")
        self.controller.close()
        await self.store.aclose()
        await self.provider.aclose()
        await self.catalog.aclose()

    # === Rendering ===

    def refresh(self) -> None:
        self.refresh_sidebar()
        self.refresh_main()

    def refresh_sidebar(self) -> None:
        if self.sidebar_container is None:
            return
        active_id = self.controller.active.id if self.controller.active else None
        self.sidebar_container.clear()
        with self.sidebar_container:
            if self.controller.is_loading_chats:
                ui.spinner(size="md").classes("self-center")
                return
            sessions = self.controller.sessions
            if not sessions:
                ui.label("No chats yet").classes("text-sm text-gray-400 px-2")
            for session in sessions:
                self.render_chat_item(session, session.id == active_id)

    def render_chat_item(self, session: ChatSession, is_active: bool) -> None:
        css = "chat-item-active" if is_active else ""
        with ui.row().classes(f"chat-item {css} w-full items-center justify-between px-3 py-2 no-wrap"):
            with ui.column().classes("gap-0 min-w-0").on(
                "click", lambda _e, chat_id=session.id: self.on_select_chat(chat_id)
            ):
                ui.label(session.title).classes("text-sm truncate")
                if session.temporary:
                    ui.label("Temporary").classes("text-[10px] text-amber-300")
            ui.button(
                icon="delete",
                on_click=lambda _e, chat_id=session.id: self.on_delete_chat(chat_id),
            ).props("flat round dense size=sm color=grey")

    def refresh_main(self) -> None:
        if self.main_container is None:
            return
        session = self.controller.active
        self.main_container.clear()
        with self.main_container:
            if session is None:
                with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                    ui.icon("forum").classes("text-5xl text-gray-300")
                    ui.label("Start a new chat to talk to a persona").classes("text-lg text-gray-400")
                    ui.button("New Chat", icon="add", on_click=self.on_new_chat)
            elif session.persona is None:
                self.render_persona_picker()
            else:
                self.render_conversation(session)
        self.update_input_state()

    def render_persona_picker(self) -> None:
        ui.label("Choose Your Chat Persona").classes("text-xl font-semibold")
        options = ["all", *self.categories]
        ui.select(options, value=self.category, on_change=self.on_category_change).classes("w-64")
        shown = [p for p in self.personas if self.category == "all" or p.category == self.category]
        with ui.grid(columns=3).classes("w-full gap-3"):
            for persona in shown:
                with ui.card().classes("persona-card").on(
                    "click", lambda _e, p=persona: self.controller.select_persona(p)
                ):
                    with ui.row().classes("items-center gap-3 no-wrap"):
                        render_avatar(persona, False)
                        ui.label(persona.name).classes("font-medium")
                    ui.label(persona.description).classes("text-xs text-gray-500")
                    ui.badge(persona.category).props("outline")

        ui.separator()
        with ui.row().classes("w-full items-center gap-2"):
            search = ui.input(placeholder="Search for anyone (min. 3 characters)").classes("flex-grow")
            ui.button(
                "Find with AI", icon="auto_awesome", on_click=lambda: self.on_suggest(search.value)
            )
        for suggestion in self.suggestions:
            with ui.card().classes("persona-card w-full").on(
                "click", lambda _e, s=suggestion: self.on_pick_suggestion(s)
            ):
                ui.label(suggestion.name).classes("font-medium")
                ui.label(suggestion.description).classes("text-xs text-gray-500")
                ui.badge(suggestion.category).props("outline")

    def render_conversation(self, session: ChatSession) -> None:
        with ui.row().classes("w-full items-center justify-between"):
            ui.label(session.title).classes("text-lg font-semibold")
            if self.controller.can_toggle_temporary:
                ui.switch(
                    "Temporary chat",
                    value=session.temporary,
                    on_change=lambda e: self.controller.toggle_temporary(bool(e.value)),
                )
            elif session.temporary:
                ui.badge("Temporary").props("color=amber")
        for message in session.messages:
            render_message(message, session.persona)

    def update_input_state(self) -> None:
        if self.send_btn is None or self.input_field is None:
            return
        session = self.controller.active
        enabled = (
            session is not None
            and session.persona is not None
            and not self.controller.is_streaming(session.id)
        )
        if enabled:
            self.send_btn.enable()
            self.input_field.enable()
        else:
            self.send_btn.disable()
            self.input_field.disable()

    def notify_issue(self, issue: ChatIssue) -> None:
        if issue not in ISSUE_MESSAGES or self.main_container is None:
            return
        message, kind = ISSUE_MESSAGES[issue]
        with self.main_container:
            ui.notify(message, type=kind)

    # === Event handlers ===

    def on_new_chat(self) -> None:
        self.suggestions = []
        self.controller.create_session()

    def on_category_change(self, event) -> None:
        self.category = event.value
        self.refresh_main()

    async def on_select_chat(self, chat_id: str) -> None:
        await self.controller.select_chat(chat_id)

    async def on_delete_chat(self, chat_id: str) -> None:
        await self.controller.delete_chat(chat_id)

    async def on_suggest(self, term: str) -> None:
        if not term or len(term.strip()) < 3:
            return
        self.suggestions = await self.catalog.suggest(term.strip())
        if not self.suggestions:
            ui.notify("No personas found", type="info")
        self.refresh_main()

    async def on_pick_suggestion(self, suggestion: AIGeneratedPersona) -> None:
        persona = await self.catalog.add_generated(suggestion)
        if persona is None:
            ui.notify("Failed to save persona", type="negative")
            return
        self.personas.append(persona)
        self.suggestions = []
        self.controller.select_persona(persona)

    async def on_send(self) -> None:
        if self.input_field is None:
            return
        text = self.input_field.value or ""
        if not text.strip():
            return
        self.input_field.value = ""
        await self.controller.send_message(text)


async def render_chat_page(chat_id: str | None = None) -> None:
    """Build the layout, start the controller and open ``chat_id`` if given."""
    ui.add_head_html(CUSTOM_CSS)
    view = ChatView(get_client_config())

    with ui.row().classes("w-full h-screen no-wrap gap-0"):
        with ui.column().classes("sidebar w-72 h-full p-3 gap-2"):
            with ui.row().classes("w-full items-center justify-between"):
                ui.label("Persona Chat").classes("text-lg font-semibold")
                ui.button(icon="add", on_click=view.on_new_chat).props("flat round color=white")
            with ui.scroll_area().classes("flex-grow w-full"):
                view.sidebar_container = ui.column().classes("w-full gap-1")

        with ui.column().classes("flex-grow h-full gap-0"):
            with ui.row().classes("w-full header px-5 py-4 items-center"):
                ui.icon("theater_comedy").classes("text-white text-3xl")
                ui.label(f"Signed in as {view.controller.user_id}").classes("text-sm text-white/80")
            with ui.scroll_area().classes("flex-grow w-full bg-gray-50"):
                view.main_container = ui.column().classes("w-full p-5 gap-4")
            with ui.row().classes("w-full p-4 gap-3 items-end bg-white border-t"):
                view.input_field = (
                    ui.textarea(placeholder="Type a message...")
                    .props("autogrow outlined dense rows=1")
                    .classes("flex-grow")
                    .on("keydown.enter.prevent", view.on_send)
                )
                view.send_btn = ui.button(icon="send", on_click=view.on_send).props("round unelevated")

    view.refresh()
    ui.context.client.on_disconnect(view.close)

    await ui.context.client.connected()
    await view.load_personas()
    await view.controller.start()
    if chat_id:
        await view.controller.select_chat(chat_id)


@ui.page("/")
async def chat_page() -> None:
    """Main chat page (default view)."""
    await render_chat_page()


@ui.page("/chat/{chat_id}")
async def chat_page_for(chat_id: str) -> None:
    """Open a specific chat; unknown ids fall back to the default view."""
    await render_chat_page(chat_id)


def main() -> None:
    """Serve the UI alone on UI_PORT (separate run mode)."""
    ui.run(title="Persona Chat", favicon="🎭", port=int(os.getenv("UI_PORT", "8080")), reload=False)


if __name__ == "__main__":
    main()
