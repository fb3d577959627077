"""Rich-based terminal implementation of the IO contract."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from deputy.core.io import IO

_BORDER_STYLES = {
    "You": "blue",
    "Permission": "yellow",
    "Error": "red",
    "debug": "dim",
}


class TerminalIO(IO):
    """Renders each message as a titled panel and reads lines from the console."""

    def __init__(self, console: Console | None = None, assistant_name: str = "Deputy") -> None:
        self.console = console or Console()
        self.assistant_name = assistant_name

    def show_message(self, title: str, text: str) -> None:
        style = _BORDER_STYLES.get(title, "green" if title == self.assistant_name else "cyan")
        self.console.print(Panel(Text(text), title=escape(title), title_align="left", border_style=style))

    def get_user_input(self, prompt: str) -> str | None:
        try:
            line = self.console.input(f"[bold blue]{escape(prompt)}[/bold blue]")
        except (KeyboardInterrupt, EOFError):
            return None
        return line.strip()
