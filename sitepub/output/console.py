# SITEPUB Console Output
# Rich-based console output for plans, publish results, policies and routes

import json
from collections.abc import Iterable
from typing import Any

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from sitepub.publish.actions import ActionType, SyncAction
from sitepub.publish.orchestrator import PublishResult
from sitepub.publish.routing import ErrorRoute


class Console:
    """
    Console output manager using Rich.

    Provides formatted output for publish operations.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
        """
        self.verbose = verbose
        self._console = RichConsole(no_color=not colored, highlight=colored)

    @property
    def rich(self) -> RichConsole:
        """Underlying Rich console, shared with the progress logger."""
        return self._console

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        """Print error message."""
        self._console.print(f"[red]Error:[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self._console.print(f"[yellow]Warning:[/yellow] {message}")

    def print_success(self, message: str) -> None:
        """Print success message."""
        self._console.print(f"[green]{message}[/green]")

    def print_info(self, message: str) -> None:
        """Print info message."""
        self._console.print(f"[blue]{message}[/blue]")

    def print_plan(self, actions: list[SyncAction], prune_candidates: list[SyncAction]) -> None:
        """
        Print the planned actions as a table.

        Unchanged objects are only listed in verbose mode.
        """
        table = Table(show_header=True, header_style="bold")
        table.add_column("Action")
        table.add_column("Key")
        table.add_column("Content type", style="dim")
        table.add_column("Reason", style="dim")

        shown = 0
        for action in actions:
            if action.action_type == ActionType.SKIP and not self.verbose:
                continue
            content_type = action.asset.content_type if action.asset else ""
            table.add_row(self._action_label(action.action_type), action.key, content_type, action.reason)
            shown += 1

        for action in prune_candidates:
            table.add_row(self._action_label(action.action_type), action.key, "", "not pruned")
            shown += 1

        if shown:
            self._console.print(table)
        else:
            self._console.print("[dim]No changes[/dim]")

    def _action_label(self, action_type: ActionType) -> str:
        labels = {
            ActionType.CREATE: "[green]+ create[/green]",
            ActionType.UPDATE: "[yellow]↑ update[/yellow]",
            ActionType.SKIP: "[dim]○ skip[/dim]",
            ActionType.PRUNE: "[red]× orphan[/red]",
        }
        return labels.get(action_type, action_type.value)

    def print_publish_result(self, result: PublishResult) -> None:
        """
        Print publish result summary.

        Args:
            result: Publish result to display.
        """
        self._console.print()

        for issue in result.failures:
            target = f"{issue.key}: " if issue.key else ""
            attempts = f" ({issue.attempts} attempts)" if issue.attempts > 1 else ""
            self._console.print(f"  [red]✗[/red] {target}{issue.message}{attempts}")

        for issue in result.warnings:
            self._console.print(f"  [yellow]⚠[/yellow] {issue.message}")

        upload_verb = "would upload" if result.dry_run else "uploaded"
        status_text = "Dry run completed" if result.dry_run else "Publish completed"

        lines = [
            f"Distribution: {result.distribution_id or '-'}",
            f"Objects: {result.created} created, {result.updated} updated, {result.skipped} unchanged "
            f"({upload_verb} {result.created + result.updated})",
        ]
        if result.prune_candidates:
            lines.append(f"Orphaned remote objects: {len(result.prune_candidates)} (not pruned)")
        if result.invalidation_id:
            lines.append(f"Invalidation: {result.invalidation_id}")
        if result.error_routes_applied:
            lines.append(f"Error routes applied: {len(result.error_routes)}")

        if result.success:
            self._console.print(
                Panel(
                    f"[green]{status_text}[/green]\n" + "\n".join(lines),
                    title="Summary",
                    border_style="green" if not result.has_issues else "yellow",
                )
            )
        else:
            reason = result.error.message if result.error else "unknown error"
            self._console.print(
                Panel(
                    f"[red]Publish failed: {reason}[/red]\n" + "\n".join(lines),
                    title="Summary",
                    border_style="red",
                )
            )

    def print_policy(self, document: dict[str, Any]) -> None:
        """Print an access policy document as JSON."""
        self._console.print(Syntax(json.dumps(document, indent=2), "json", word_wrap=True))

    def print_routes(self, routes: Iterable[ErrorRoute]) -> None:
        """Print error routes as a table."""
        table = Table(show_header=True, header_style="bold")
        table.add_column("Status")
        table.add_column("Document")
        table.add_column("Response")
        table.add_column("Cache TTL", style="dim")

        for route in routes:
            table.add_row(
                str(route.status_code),
                route.response_page_path,
                str(route.response_code),
                f"{route.cache_ttl}s",
            )

        self._console.print(table)

    def print_config_summary(self, config_path: str, bucket: str, distribution: str) -> None:
        """Print configuration summary."""
        self._console.print(
            Panel(
                f"Config: {config_path}\n" f"Bucket: {bucket}\n" f"Distribution: {distribution}",
                title="SITEPUB Configuration",
                border_style="blue",
            )
        )


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """
    Create a console instance.

    Args:
        verbose: Enable verbose output.
        colored: Enable colored output.

    Returns:
        Console instance.
    """
    return Console(verbose=verbose, colored=colored)
