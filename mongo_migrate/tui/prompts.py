"""Structured prompts for connection details, options and confirmation."""

from collections.abc import Mapping, Sequence

import structlog
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from ..constants import DEFAULT_WORKERS, MAX_WORKERS, MIN_WORKERS
from ..core.config_loader import (
    ConnectionSpec,
    MigrationConfig,
    PredefinedConnection,
    build_connection_spec,
)
from ..core.exceptions import ConfigurationError
from ..utils import mask_connection_string, validate_mongo_uri

logger = structlog.get_logger()

PREDEFINED_METHOD = "predefined"
MANUAL_METHOD = "manual"


class ConnectionPrompter:
    """Gathers migration input with rich prompts. Invalid input re-prompts."""

    def __init__(self, console: Console | None = None, default_workers: int = DEFAULT_WORKERS):
        self.console = console or Console()
        self.default_workers = default_workers

    def prompt_connection(
        self, role: str, predefined: Mapping[str, PredefinedConnection]
    ) -> ConnectionSpec:
        """Ask for one side of the migration, offering predefined connections if any."""
        if predefined:
            method = Prompt.ask(
                f"Select {role} database connection method",
                choices=[PREDEFINED_METHOD, MANUAL_METHOD],
                default=PREDEFINED_METHOD,
                console=self.console,
            )
        else:
            self.console.print(
                "[dim]No predefined connections found. "
                f"Using manual entry for {role} database.[/dim]"
            )
            method = MANUAL_METHOD

        while True:
            if method == PREDEFINED_METHOD:
                uri, label = self._choose_predefined(role, predefined)
            else:
                uri, label = self._ask_uri(role), MANUAL_METHOD
            database = self._ask_database(role)
            try:
                return build_connection_spec(uri, database, label)
            except ConfigurationError as e:
                self.console.print(f"[red]{escape(str(e))}[/red]")

    def _choose_predefined(
        self, role: str, predefined: Mapping[str, PredefinedConnection]
    ) -> tuple[str, str]:
        for name, connection in predefined.items():
            masked = mask_connection_string(connection.uri)
            self.console.print(f"  {escape(name)} ({escape(masked)})")
        name = Prompt.ask(
            f"Select {role} database connection",
            choices=list(predefined),
            console=self.console,
        )
        return predefined[name].uri, name

    def _ask_uri(self, role: str) -> str:
        while True:
            uri = Prompt.ask(f"Enter {role} MongoDB connection URI", console=self.console).strip()
            is_valid, error = validate_mongo_uri(uri)
            if is_valid:
                return uri
            self.console.print(f"[red]{error}[/red]")

    def _ask_database(self, role: str) -> str:
        while True:
            database = Prompt.ask(f"Enter {role} database name", console=self.console).strip()
            if database:
                return database
            self.console.print("[red]Database name is required[/red]")

    def prompt_options(self) -> tuple[bool, int]:
        """Ask whether to drop the destination first and how many workers to run.

        Returns:
            Tuple of (drop_destination_first, worker_count)
        """
        drop = Confirm.ask(
            "Drop destination database before migration?", default=False, console=self.console
        )
        while True:
            workers = IntPrompt.ask(
                "Number of parallel processes for dump/restore operations",
                default=self.default_workers,
                console=self.console,
            )
            if MIN_WORKERS <= workers <= MAX_WORKERS:
                return drop, workers
            self.console.print(
                f"[red]Please enter a number between {MIN_WORKERS} and {MAX_WORKERS}[/red]"
            )

    def confirm(self, config: MigrationConfig, items: Sequence[str]) -> bool:
        """Show the masked migration summary and ask for explicit confirmation."""
        table = Table(title="Migration Summary", show_header=False)
        table.add_column("Setting", style="blue")
        table.add_column("Value")
        table.add_row("Source", escape(config.source.display()))
        table.add_row("Source DB", escape(config.source.database))
        table.add_row("Destination", escape(config.destination.display()))
        table.add_row("Destination DB", escape(config.destination.database))
        table.add_row("Collections", escape(", ".join(items)))
        table.add_row("Drop target", "Yes" if config.drop_destination_first else "No")
        table.add_row("Parallel processes", str(config.worker_count))
        self.console.print(table)

        confirmed = Confirm.ask("Proceed with migration?", default=False, console=self.console)
        logger.info("User response", confirmed=confirmed)
        return confirmed
