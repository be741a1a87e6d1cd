"""Command line entry point for mongo-migrate."""

import argparse
import asyncio
import os
import signal
import sys

from rich.console import Console
from rich.markup import escape

from .constants import EXIT_FAILURE, EXIT_INTERRUPTED, EXIT_SUCCESS
from .core.config_loader import discover_predefined_connections, load_environment
from .core.logging_config import get_logger, setup_logging
from .core.prerequisites import check_prerequisites
from .core.settings import MigrationSettings
from .core.subprocess_manager import cleanup_all, get_subprocess_manager
from .models.enums import MigrationState
from .services.orchestrator import MigrationOrchestrator
from .tui.prompts import ConnectionPrompter
from .tui.selector import InteractiveSelector

console = Console()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments. None are required; input is gathered interactively."""
    parser = argparse.ArgumentParser(
        prog="mongo-migrate",
        description="Interactive MongoDB migration using mongodump and mongorestore",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument("--log-dir", default=None, help="Also write JSON logs to this directory")
    parser.add_argument("--env-file", default=None, help="Path to a .env file")
    parser.add_argument(
        "--check", action="store_true", help="Check that mongodump and mongorestore are available"
    )
    return parser.parse_args(argv)


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt


def setup_signal_handlers() -> None:
    """Turn SIGINT and SIGTERM into KeyboardInterrupt so cleanup runs before exit."""
    signal.signal(signal.SIGINT, _raise_interrupt)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _raise_interrupt)


async def _run_check(settings: MigrationSettings) -> int:
    console.print("[blue]Checking prerequisites...[/blue]\n")
    results = await check_prerequisites(get_subprocess_manager(), settings)
    for executable, available in results.items():
        status = "[green]Available[/green]" if available else "[red]Not found[/red]"
        console.print(f"[blue]{escape(executable)}:[/blue] {status}")

    if all(results.values()):
        console.print("\n[green]All prerequisites are available![/green]")
        return EXIT_SUCCESS

    console.print("\n[red]MongoDB Database Tools are required:[/red]")
    console.print("[yellow]  https://www.mongodb.com/docs/database-tools/installation/[/yellow]")
    return EXIT_FAILURE


async def _run_migration(settings: MigrationSettings) -> int:
    predefined = discover_predefined_connections(os.environ)
    orchestrator = MigrationOrchestrator(
        settings,
        predefined,
        ConnectionPrompter(console, default_workers=settings.default_workers),
        InteractiveSelector(console=console, page_size=settings.selector_page_size),
    )
    try:
        report = await orchestrator.run()
    finally:
        await cleanup_all()

    if report.state is MigrationState.FAILED:
        console.print("\n[red]Migration failed with error:[/red]")
        console.print(f"[red]{escape(report.error or 'unknown error')}[/red]")
    elif report.state is MigrationState.CANCELLED:
        console.print("[yellow]Migration cancelled[/yellow]")
    else:
        console.print("[green]Migration completed successfully![/green]")
    return report.exit_code


def main(argv: list[str] | None = None) -> int:
    """Main entry point. Returns the process exit code."""
    args = parse_args(argv)
    load_environment(args.env_file)
    settings = MigrationSettings()

    setup_logging(
        log_dir=args.log_dir or settings.log_dir,
        log_level=args.log_level or settings.log_level,
    )
    logger = get_logger("cli")
    setup_signal_handlers()

    try:
        if args.check:
            return asyncio.run(_run_check(settings))
        return asyncio.run(_run_migration(settings))
    except KeyboardInterrupt:
        console.print("\n[yellow]Migration interrupted by user[/yellow]")
        logger.warning("Interrupted, exiting", exit_code=EXIT_INTERRUPTED)
        return EXIT_INTERRUPTED


def run() -> None:
    """Console script wrapper."""
    sys.exit(main())


if __name__ == "__main__":
    run()
