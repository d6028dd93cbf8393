"""Textual App — chat screen with history, sources and suggestions."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, ClassVar

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Footer, Header, Input, ListView, Static

from docchat.config import Config
from docchat.history import ChatMessage, latest_sourced_index
from docchat.messages import AskRequest, AskResult, ErrorResult, Request, Response
from docchat.suggestions import SuggestionRotator
from docchat.tui.chat_log import ChatLog, MessageItem
from docchat.tui.help_screen import HelpScreen
from docchat.tui.sources_pane import SourcesPane

if TYPE_CHECKING:
    from collections.abc import Sequence

    from textual.binding import BindingType

POLL_INTERVAL = 0.1


class ChatApp(App[None]):
    """Chat with a document collection."""

    TITLE = "docchat"

    CSS = """
    #main-container {
        height: 1fr;
    }
    #chat-log {
        width: 2fr;
        border-right: solid $primary;
    }
    #sources-pane {
        width: 1fr;
    }
    #loading {
        display: none;
        padding: 0 2;
        text-style: italic;
    }
    #suggestion {
        width: 100%;
        height: auto;
        content-align: center middle;
        text-style: dim;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("ctrl+n", "new_chat", "New Chat", show=True),
        Binding("ctrl+t", "use_suggestion", "Use Suggestion", show=True),
        Binding("f1", "show_help", "Help", show=True),
        Binding("ctrl+q", "quit", "Quit", show=True),
    ]

    def __init__(
        self,
        config: Config | None = None,
        history: Sequence[ChatMessage] = (),
        request_queue: asyncio.Queue[Request] | None = None,
        response_queue: asyncio.Queue[Response] | None = None,
    ) -> None:
        super().__init__()
        self._config = config if config is not None else Config()
        self._request_queue: asyncio.Queue[Request] = (
            request_queue if request_queue is not None else asyncio.Queue()
        )
        self._response_queue: asyncio.Queue[Response] = (
            response_queue if response_queue is not None else asyncio.Queue()
        )
        self._history: list[ChatMessage] = list(history)
        self._selected_index: int | None = latest_sourced_index(self._history)
        self._rotator = SuggestionRotator(tuple(self._config.example_questions))
        self._loading = False
        self._chat_id = 0

    # === State accessors ===

    @property
    def history(self) -> tuple[ChatMessage, ...]:
        """The conversation so far, oldest first."""
        return tuple(self._history)

    @property
    def selected_index(self) -> int | None:
        """Index of the message whose sources are shown, if any."""
        return self._selected_index

    @property
    def current_suggestion(self) -> str:
        """The example question currently offered."""
        return self._rotator.current

    @property
    def is_loading(self) -> bool:
        """Whether a query is waiting for its answer."""
        return self._loading

    # === Layout ===

    def compose(self) -> ComposeResult:
        """Create the two-column layout above the suggestion bar and input."""
        yield Header()
        with Horizontal(id="main-container"):
            yield ChatLog(id="chat-log")
            yield SourcesPane(id="sources-pane")
        yield Static("Thinking…", id="loading")
        yield Static(id="suggestion", markup=True)
        yield Input(placeholder="Ask a question about the documents…", id="query-input")
        yield Footer()

    async def on_mount(self) -> None:
        """Render the initial history and start the poll and rotation timers."""
        self.title = f"Chat with {self._config.document_name}"
        self.set_interval(POLL_INTERVAL, self._poll_responses)
        self.set_interval(self._config.suggestion_interval, self._rotate_suggestion)
        await self._refresh_log()
        self.query_one("#query-input", Input).focus()

    def _selected_message(self) -> ChatMessage | None:
        if self._selected_index is None or self._selected_index >= len(self._history):
            return None
        return self._history[self._selected_index]

    def _auto_select(self) -> None:
        """Select the most recent answer with sources; keep the old selection otherwise."""
        idx = latest_sourced_index(self._history)
        if idx is not None:
            self._selected_index = idx

    async def _refresh_log(self) -> None:
        """Rebuild the chat log and everything derived from the history."""
        self._auto_select()
        await self.query_one(ChatLog).show_history(self._history, self._selected_index)
        self._refresh_selection()
        self._refresh_status()

    def _refresh_selection(self) -> None:
        self.query_one(ChatLog).mark_selected(self._selected_index)
        self.query_one(SourcesPane).show_message(self._selected_message())

    def _refresh_status(self) -> None:
        """Show the thinking line or the suggestion bar, never both."""
        self.query_one("#loading", Static).styles.display = "block" if self._loading else "none"
        query_input = self.query_one("#query-input", Input)
        query_input.disabled = self._loading
        suggestion = self.query_one("#suggestion", Static)
        current = self._rotator.current
        if self._loading or not current:
            suggestion.styles.display = "none"
            suggestion.update("")
        else:
            suggestion.styles.display = "block"
            suggestion.update(f'Try: "{escape(current)}"  [dim](ctrl+t)[/dim]')

    def _rotate_suggestion(self) -> None:
        """Timer tick: move to the next example question."""
        self._rotator = self._rotator.advance()
        self._refresh_status()

    # === Backend responses ===

    async def _poll_responses(self) -> None:
        """Drain the response queue and update the UI."""
        changed = False
        while not self._response_queue.empty():
            try:
                resp = self._response_queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            changed = self._handle_response(resp) or changed
        if changed:
            await self._refresh_log()
            if not self._loading:
                self.query_one("#query-input", Input).focus()

    def _handle_response(self, resp: Response) -> bool:
        """Apply a response to the chat state; return True if the view needs a refresh."""
        if isinstance(resp, AskResult):
            if resp.chat_id != self._chat_id:
                return False
            self._history.append(resp.message)
            self._loading = False
            return True
        if isinstance(resp, ErrorResult):
            if resp.chat_id != self._chat_id:
                return False
            self._loading = False
            self.notify(f"Error ({resp.request_type}): {resp.error}", severity="error")
            return True
        return False

    # === Events ===

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        """Send the question to the backend."""
        query = event.value
        if not query.strip() or self._loading:
            return
        if not self._config.endpoint:
            self.notify("No chat endpoint configured.", severity="error")
            return
        request = AskRequest(query=query, history=tuple(self._history), chat_id=self._chat_id)
        self._history.append(ChatMessage(role="user", text=query))
        event.input.value = ""
        self._loading = True
        self._request_queue.put_nowait(request)
        await self._refresh_log()

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        """Show the sources of the chosen answer."""
        item = event.item
        if isinstance(item, MessageItem) and item.message.has_sources:
            self._selected_index = item.message_index
            self._refresh_selection()

    # === Actions ===

    async def action_new_chat(self) -> None:
        """Drop the conversation and start over."""
        self._chat_id += 1
        self._history.clear()
        self._selected_index = None
        self._loading = False
        await self._refresh_log()
        self.query_one("#query-input", Input).focus()
        self.notify("Started a new chat")

    def action_use_suggestion(self) -> None:
        """Copy the current suggestion into the input."""
        current = self._rotator.current
        if not current or self._loading:
            return
        query_input = self.query_one("#query-input", Input)
        query_input.value = current
        query_input.cursor_position = len(current)
        query_input.focus()

    def action_show_help(self) -> None:
        """Show the help overlay."""
        self.push_screen(HelpScreen())
