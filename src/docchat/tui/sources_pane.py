"""Sources pane — retrieved excerpts grounding the selected answer."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from textual.containers import VerticalScroll
from textual.widgets import Static

from docchat.markup import markdown_to_rich

if TYPE_CHECKING:
    from textual.app import ComposeResult

    from docchat.history import ChatMessage

PLACEHOLDER = "Sources for the selected message will appear here."


def sources_markup(message: ChatMessage | None) -> str:
    """Rich markup listing each source of the message, or the placeholder."""
    if message is None or not message.has_sources:
        return f"[dim]{PLACEHOLDER}[/dim]"
    sections: list[str] = []
    for n, source in enumerate(message.sources, start=1):
        heading = f"[bold]Source {n}[/bold]"
        if source.title:
            heading += f" [dim]{escape(source.title)}[/dim]"
        sections.append(f"{heading}\n{markdown_to_rich(source.text)}")
    return "\n\n".join(sections)


class SourcesPane(VerticalScroll):
    """Right-hand column showing the sources of the selected message."""

    DEFAULT_CSS = """
    SourcesPane {
        padding: 0 2;
    }
    SourcesPane > #sources-heading {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    def __init__(self, *, id: str | None = None) -> None:  # noqa: A002
        super().__init__(id=id)
        self.content_markup = sources_markup(None)

    def compose(self) -> ComposeResult:
        yield Static("Sources", id="sources-heading")
        yield Static(self.content_markup, id="sources-content", markup=True)

    def show_message(self, message: ChatMessage | None) -> None:
        """Replace the pane contents with the sources of the given message."""
        self.content_markup = sources_markup(message)
        self.query_one("#sources-content", Static).update(self.content_markup)
        self.scroll_home(animate=False)
