"""Console output utilities using Rich."""

from typing import Optional

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.theme import Theme

from .. import __version__
from ..models.outcome import Outcome

# Custom theme for the J1939 toolkit
J1939_THEME = Theme({
    "info": "cyan",
    "success": "green",
    "warning": "yellow",
    "error": "red bold",
    "critical": "red bold reverse",
    "highlight": "magenta",
    "muted": "dim",
    "outcome.pass": "green bold",
    "outcome.incomplete": "cyan",
    "outcome.warn": "yellow bold",
    "outcome.fail": "red bold",
    "outcome.abort": "red bold reverse",
    "packet.raw": "dim",
    "header": "bold blue",
    "subheader": "bold cyan",
})

OUTCOME_STYLES = {
    Outcome.PASS: "outcome.pass",
    Outcome.INCOMPLETE: "outcome.incomplete",
    Outcome.WARN: "outcome.warn",
    Outcome.FAIL: "outcome.fail",
    Outcome.ABORT: "outcome.abort",
}


class Console:
    """Enhanced console output for the J1939 toolkit."""

    def __init__(self, rich_console: Optional[RichConsole] = None):
        self._console = rich_console or RichConsole(theme=J1939_THEME)

    @property
    def rich_console(self) -> RichConsole:
        """Get the underlying Rich console."""
        return self._console

    def print(self, *args, **kwargs) -> None:
        self._console.print(*args, **kwargs)

    def info(self, message: str, prefix: str = "INFO") -> None:
        self._console.print(f"[info][{prefix}][/info] {message}")

    def success(self, message: str, prefix: str = "OK") -> None:
        self._console.print(f"[success][{prefix}][/success] {message}")

    def warning(self, message: str, prefix: str = "WARN") -> None:
        self._console.print(f"[warning][{prefix}][/warning] {message}")

    def error(self, message: str, prefix: str = "ERROR") -> None:
        self._console.print(f"[error][{prefix}][/error] {message}")

    def header(self, title: str, subtitle: Optional[str] = None) -> None:
        """Print a section header."""
        self._console.print()
        self._console.print(f"[header]{title}[/header]")
        if subtitle:
            self._console.print(f"[muted]{subtitle}[/muted]")
        self._console.print()

    def subheader(self, title: str) -> None:
        self._console.print(f"\n[subheader]{title}[/subheader]")

    def panel(self, content: str, title: Optional[str] = None, style: str = "cyan", expand: bool = False) -> None:
        """Print content in a panel."""
        self._console.print(Panel(content, title=title, style=style, expand=expand))

    def rule(self, title: str = "", style: str = "dim") -> None:
        self._console.rule(title, style=style)

    def print_outcome(self, outcome: Outcome, message: str) -> None:
        """Print an outcome line with its style."""
        style = OUTCOME_STYLES[outcome]
        self._console.print(f"[{style}]{outcome.value}[/{style}]: {message}", markup=True, highlight=False)

    def print_line(self, line: str) -> None:
        """Print a transcript line as plain text."""
        self._console.print(line, markup=False, highlight=False)

    def print_banner(self) -> None:
        """Print the toolkit banner."""
        self._console.print(f"\n[bold cyan]J1939-84 Toolkit[/bold cyan] [dim]v{__version__}[/dim]\n")


# Global console instance
console = Console()
