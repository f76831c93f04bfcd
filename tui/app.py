from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical, ScrollableContainer
from textual.widgets import Header, Footer, Static, Button
from rich.panel import Panel
from rich.console import Group
from rich.syntax import Syntax

import agent.logger

ACCEPT = "accept"
KEEP = "keep"


class DiffReviewApp(App):
    """Old code beside new code; the user keeps the original or accepts the change."""

    CSS = """
    Screen { background: $surface; }
    .diff-title { text-style: bold; color: magenta; margin-bottom: 1; }
    .diff-buttons { height: 3; align: center middle; dock: bottom; margin-top: 1; }
    Button { margin: 0 2; }
    #diff-scroll { height: 1fr; overflow-y: auto; }
    #instructions { color: $text-muted; margin-top: 1; }
    """

    BINDINGS = [
        ("y", "accept", "Accept"),
        ("n", "keep", "Keep original"),
        ("ctrl+c", "keep", "Quit"),
    ]

    def __init__(self, filename: str, original: str, refactored: str,
                 instructions: str = "", **kwargs):
        super().__init__(**kwargs)
        self.filename = filename
        self.original = original
        self.refactored = refactored
        self.instructions = instructions

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical():
            yield Static(f"Do you accept the changes? {self.filename}", classes="diff-title")
            with ScrollableContainer(id="diff-scroll"):
                yield Static(id="diff-area")
            if self.instructions:
                yield Static(f"Instructions given: {self.instructions}", id="instructions")
            with Horizontal(classes="diff-buttons"):
                yield Button("Accept (y)", id="btn-accept", variant="success")
                yield Button("Keep original (n)", id="btn-keep", variant="error")
        yield Footer()

    def on_mount(self) -> None:
        self.title = "rscribe - review change"
        old = Syntax(self.original or " ", "r", theme="monokai", line_numbers=True, word_wrap=True)
        new = Syntax(self.refactored or " ", "r", theme="monokai", line_numbers=True, word_wrap=True)
        diff_view = Group(
            Panel(old, title="[bold red]Original[/bold red]", border_style="red"),
            Panel(new, title="[bold green]Refactored[/bold green]", border_style="green"),
        )
        self.query_one("#diff-area", Static).update(diff_view)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-accept":
            self.exit(ACCEPT)
        elif event.button.id == "btn-keep":
            self.exit(KEEP)

    def action_accept(self) -> None:
        self.exit(ACCEPT)

    def action_keep(self) -> None:
        self.exit(KEEP)


def show_diff(filename: str, original: str, refactored: str, instructions: str = "") -> str:
    """Run the review app and return "accept" or "keep" (closing the app keeps)."""
    result = DiffReviewApp(filename, original, refactored, instructions).run()
    return result if result in (ACCEPT, KEEP) else KEEP


def install_ui_bridges() -> None:
    """Route approval requests through the review app instead of auto-approving."""
    def _show(filename, original, refactored, instructions=""):
        decision = show_diff(filename, original, refactored, instructions)
        agent.logger.APPROVAL_QUEUE.put(decision == ACCEPT)

    agent.logger.UI_SHOW_DIFF = _show
