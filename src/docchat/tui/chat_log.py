"""Chat log widget — ListView with one entry per message."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from textual.binding import Binding
from textual.widgets import ListItem, ListView, Static

from docchat.history import sources_label
from docchat.markup import markdown_to_rich

if TYPE_CHECKING:
    from collections.abc import Sequence

    from textual.app import ComposeResult
    from textual.binding import BindingType

    from docchat.history import ChatMessage

_ROLE_LABELS = {"user": "You", "model": "Assistant"}


def message_markup(message: ChatMessage) -> str:
    """Rich markup for one message: role label, rendered body, sources hint."""
    parts = [f"[bold]{_ROLE_LABELS.get(message.role, message.role)}[/bold]"]
    body = markdown_to_rich(message.text)
    if body:
        parts.append(body)
    if message.has_sources:
        parts.append(f"[dim]{sources_label(len(message.sources))} Press Enter to view.[/dim]")
    return "\n".join(parts)


class MessageItem(ListItem):
    """A single chat message; model answers with sources can be selected."""

    DEFAULT_CSS = """
    MessageItem {
        padding: 0 1;
        margin-bottom: 1;
    }
    MessageItem.user {
        background: $primary 20%;
    }
    MessageItem.selected {
        border-left: thick $accent;
    }
    """

    def __init__(self, message: ChatMessage, index: int, *, selected: bool = False) -> None:
        classes = message.role + (" selected" if selected else "")
        super().__init__(classes=classes)
        self.message = message
        self.message_index = index
        self.content_markup = message_markup(message)

    def compose(self) -> ComposeResult:
        yield Static(self.content_markup, markup=True)


class ChatLog(ListView):
    """Scrollable chat history, newest message last."""

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("j", "cursor_down", "Cursor down", show=False),
        Binding("k", "cursor_up", "Cursor up", show=False),
    ]

    async def show_history(self, history: Sequence[ChatMessage], selected: int | None) -> None:
        """Rebuild the log from the history and move the cursor to the last message."""
        await self.clear()
        await self.extend(
            MessageItem(message, idx, selected=idx == selected)
            for idx, message in enumerate(history)
        )
        if history:
            self.index = len(history) - 1
            self.scroll_end(animate=False)

    def mark_selected(self, selected: int | None) -> None:
        """Highlight the message whose sources are on display."""
        for item in self.query(MessageItem):
            item.set_class(item.message_index == selected, "selected")
