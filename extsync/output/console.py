# extsync Console Output
# Rich-based console output for user-friendly display

from typing import Optional

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table

from extsync.state import SyncState
from extsync.sync.changes import ChangeRecord, SyncStatus
from extsync.sync.engine import PassOutcome, SyncResult


class Console:
    """
    Console output manager using Rich.

    Provides formatted output for sync operations.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True, console: Optional[RichConsole] = None):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
            console: Optional Rich console to write to.
        """
        self.verbose = verbose
        self._console = console or RichConsole(no_color=not colored)

    @property
    def rich(self) -> RichConsole:
        """Get the underlying Rich console."""
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
        self._console.print(f"[green]✓ {message}[/green]")

    def print_info(self, message: str) -> None:
        """Print info message."""
        self._console.print(f"[blue]{message}[/blue]")

    def notify(self, message: str) -> None:
        """Show a sync notification."""
        self.print_success(message)

    def print_changes(self, changes: list[ChangeRecord], *, title: str = "Pending Changes") -> None:
        """
        Print detected change records as a table.

        Args:
            changes: Records in apply order.
            title: Table title.
        """
        if not changes:
            self._console.print("[green]Everything is in sync[/green]")
            return

        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Change", style="cyan")
        table.add_column("Direction", justify="center")
        table.add_column("Details")

        for index, record in enumerate(changes, start=1):
            table.add_row(
                str(index),
                record.status.value.replace("_", " "),
                self._direction_markup(record.status),
                record.summary or "[dim]full inventory[/dim]",
            )

        self._console.print(table)

    def _direction_markup(self, status: SyncStatus) -> str:
        if status.from_server:
            return f"[blue]{status.direction}[/blue]"
        if status == SyncStatus.NEW_INSTANCE:
            return f"[magenta]{status.direction}[/magenta]"
        return f"[green]{status.direction}[/green]"

    def print_sync_result(self, result: SyncResult) -> None:
        """
        Print sync result summary.

        Args:
            result: Sync result to display.
        """
        if result.outcome == PassOutcome.COALESCED:
            self.print_info("A sync is already running")
            return

        if self.verbose and result.detected:
            self.print_changes(result.detected, title="Detected Changes")

        lines = [
            f"Detected: {len(result.detected)}",
            f"Applied: {result.applied_count}",
        ]
        if result.skipped:
            lines.append(f"Skipped: {len(result.skipped)}")

        if result.success:
            status = "[green]Sync completed[/green]"
            border = "green"
        else:
            status = "[red]Sync failed[/red]"
            border = "red"
            if result.error is not None:
                lines.append(f"[red]Error:[/red] {result.error.message}")
            if result.pending:
                lines.append(f"Not applied: {len(result.pending)} (retried on next sync)")

        self._console.print(Panel("\n".join([status, *lines]), title="Summary", border_style=border))

    def print_state(self, state: SyncState, state_path: str) -> None:
        """Print the local sync state."""
        table = Table(show_header=False, box=None)
        table.add_column("Key", style="bold")
        table.add_column("Value")
        table.add_row("State file", state_path)
        table.add_row("Last update", str(state.last_update) if state.last_update is not None else "[dim]never[/dim]")
        table.add_row("Last sync", state.last_sync or "[dim]never[/dim]")
        table.add_row("Extensions", str(len(state.extensions)))
        table.add_row("Settings hash", (state.settings_hash or "-")[:12])
        self._console.print(Panel(table, title="Sync State", border_style="blue"))

    def print_instances(self, instances: list[int], current: Optional[int] = None) -> None:
        """Print registered instances, active first."""
        if not instances:
            self._console.print("[dim]No running instances[/dim]")
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("PID", justify="right")
        table.add_column("Role")

        for index, pid in enumerate(instances):
            role = "[green]active[/green]" if index == 0 else "[dim]standby[/dim]"
            label = f"{pid} (this process)" if pid == current else str(pid)
            table.add_row(label, role)

        self._console.print(table)

    def print_config_summary(self, config_path: str, remote: str, editor: str) -> None:
        """Print configuration summary."""
        self._console.print(
            Panel(
                f"Config: {config_path}\nEditor: {editor}\nRemote: {remote}",
                title="extsync Configuration",
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
