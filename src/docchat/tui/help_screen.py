"""Help screen — modal overlay showing keybindings."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from textual.containers import Center, Middle
from textual.screen import ModalScreen
from textual.widgets import Static

if TYPE_CHECKING:
    from textual.app import ComposeResult
    from textual.binding import BindingType

_HELP = """\
[bold]Chat Keybindings[/bold]

  [bold]Enter[/bold]     Send the question (input)
  [bold]Enter[/bold]     Show sources (chat log)
  [bold]Tab[/bold]       Switch between input and log
  [bold]j / ↓[/bold]     Next message
  [bold]k / ↑[/bold]     Previous message
  [bold]Ctrl+t[/bold]    Use the suggested question
  [bold]Ctrl+n[/bold]    Start a new chat
  [bold]F1[/bold]        This help
  [bold]Ctrl+q[/bold]    Quit

Press [bold]F1[/bold] or [bold]Escape[/bold] to dismiss.
"""


class HelpScreen(ModalScreen[None]):
    """Modal help overlay showing all keybindings."""

    BINDINGS: ClassVar[list[BindingType]] = [
        ("escape", "dismiss_help", "Close"),
        ("f1", "dismiss_help", "Close"),
    ]

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }
    HelpScreen > Center > Middle > Static {
        width: 50;
        padding: 2 4;
        background: $surface;
        border: tall $primary;
    }
    """

    def compose(self) -> ComposeResult:
        """Create the help content."""
        with Center(), Middle():
            yield Static(_HELP, markup=True)

    def action_dismiss_help(self) -> None:
        """Dismiss the help screen."""
        self.dismiss(None)
