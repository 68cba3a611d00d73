"""Rich console progress output for publish runs."""

from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.text import Text

if TYPE_CHECKING:
    from sitepub.publish.apply import ActionResult
    from sitepub.publish.orchestrator import PublishState


class PublishLogger:
    """Rich console output for publish operations."""

    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        """Initialize logger.

        Args:
            console: Rich Console instance
            verbose: Enable verbose output
        """
        self.console = console or Console()
        self.verbose = verbose

    def info(self, message: str) -> None:
        """Blue info message."""
        self.console.print(f"[blue]ℹ[/blue] {message}")

    def success(self, message: str) -> None:
        """Green success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        """Yellow warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def error(self, message: str) -> None:
        """Red error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def debug(self, message: str) -> None:
        """Dim message, verbose mode only."""
        if self.verbose:
            self.console.print(f"[dim]  {message}[/dim]")

    def state(self, state: "PublishState") -> None:
        """Announce a state transition."""
        if self.verbose:
            self.console.print(f"[magenta]→[/magenta] {state.value}")

    def upload(self, result: "ActionResult") -> None:
        """Display one finished upload."""
        text = Text()
        if result.success:
            marker = "+" if result.action.action_type.value == "create" else "↑"
            text.append(f"  {marker} ", style="green")
            text.append(result.key, style="cyan")
            if self.verbose and result.attempts > 1:
                text.append(f" ({result.attempts} attempts)", style="dim")
        elif result.cancelled:
            text.append("  ○ ", style="dim")
            text.append(f"{result.key} (cancelled)", style="dim")
        else:
            text.append("  ✗ ", style="red")
            text.append(result.key, style="red bold")
            text.append(f" - {result.error}", style="dim")

        self.console.print(text)
