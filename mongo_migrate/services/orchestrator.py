"""Migration orchestrator.

Drives one run through its states::

    CONFIGURING -> VALIDATING -> SELECTING_ITEMS -> CONFIRMING -> DUMPING
        -> [DROPPING_DESTINATION] -> RESTORING -> DONE

``FAILED`` is reachable from any state; ``CANCELLED`` from selection and
confirmation. The run's temporary workspace is released on every path,
including interruption.
"""

import asyncio
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError
from structlog.stdlib import BoundLogger

from ..constants import EXIT_FAILURE, EXIT_SUCCESS
from ..core.config_loader import ConnectionSpec, MigrationConfig, PredefinedConnection
from ..core.distribution import distribute
from ..core.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    DropDatabaseError,
    EnumerationError,
    MigrationToolError,
    PhaseFailedError,
    SelectionCancelled,
)
from ..core.mongo_client import MongoGateway, filter_collections
from ..core.settings import MigrationSettings
from ..core.subprocess_manager import SubprocessManager, get_subprocess_manager
from ..core.worker_pool import WorkerPool
from ..core.workspace import MigrationWorkspace
from ..models.enums import MigrationState, Phase
from ..models.results import MigrationReport, PhaseResult
from .dump_restore import MongoToolRunner, locate_source_dump_dir

if TYPE_CHECKING:
    from ..tui.prompts import ConnectionPrompter
    from ..tui.selector import InteractiveSelector

GatewayFactory = Callable[[ConnectionSpec], MongoGateway]


class MigrationOrchestrator:
    """Coordinates configuration, validation, selection and the dump/restore phases."""

    def __init__(
        self,
        settings: MigrationSettings,
        predefined: Mapping[str, PredefinedConnection],
        prompter: "ConnectionPrompter",
        selector: "InteractiveSelector",
        *,
        manager: SubprocessManager | None = None,
        gateway_factory: GatewayFactory | None = None,
        tools: MongoToolRunner | None = None,
        pool: WorkerPool | None = None,
    ):
        self.settings = settings
        self.predefined = predefined
        self.prompter = prompter
        self.selector = selector
        self.gateway_factory = gateway_factory or self._default_gateway
        self.tools = tools or MongoToolRunner(manager or get_subprocess_manager(), settings)
        self.pool = pool or WorkerPool()
        self.state = MigrationState.CONFIGURING
        self.history: list[MigrationState] = [self.state]
        self.logger: BoundLogger = structlog.get_logger().bind(component="migration_orchestrator")

    def _default_gateway(self, connection: ConnectionSpec) -> MongoGateway:
        return MongoGateway(connection, self.settings.server_selection_timeout_ms)

    def _transition(self, state: MigrationState) -> None:
        self.logger.debug("State transition", previous=self.state.value, state=state.value)
        self.state = state
        self.history.append(state)

    async def run(self) -> MigrationReport:
        """Execute a full migration run.

        Returns:
            MigrationReport with the terminal state and exit code. Interruption
            (KeyboardInterrupt or task cancellation) is re-raised after cleanup.
        """
        report = MigrationReport(state=self.state, exit_code=EXIT_FAILURE)
        self.logger.info("MongoDB migration tool started")

        try:
            with MigrationWorkspace(self.settings.temp_root) as workspace:
                config = self.configure()
                await self.validate(config)
                items = await self.select_items(config.source)
                report.items = tuple(items)

                if not self.confirm(config, items):
                    self._transition(MigrationState.CANCELLED)
                    self.logger.warning("Migration cancelled by user")
                else:
                    await self.execute(config, items, workspace.dump_root, report)
                    self._transition(MigrationState.DONE)
                    self.logger.info("Migration completed successfully", collections=len(items))
        except SelectionCancelled as e:
            self._transition(MigrationState.CANCELLED)
            self.logger.warning("Migration cancelled by user", reason=str(e))
        except MigrationToolError as e:
            self._fail(report, e)
        except Exception as e:
            self.logger.exception("Unexpected migration error")
            self._fail(report, e)
        except (KeyboardInterrupt, asyncio.CancelledError):
            self.logger.warning("Migration interrupted", state=self.state.value)
            raise

        report.state = self.state
        if self.state in (MigrationState.DONE, MigrationState.CANCELLED):
            report.exit_code = EXIT_SUCCESS
        return report

    def _fail(self, report: MigrationReport, error: Exception) -> None:
        failed_in = self.state
        self._transition(MigrationState.FAILED)
        report.error = str(error)
        self.logger.error("Migration failed", state=failed_in.value, error=str(error))

    def configure(self) -> MigrationConfig:
        """Collect both connections and the run options. No network activity."""
        if self.predefined:
            self.logger.info("Found predefined database connections", count=len(self.predefined))
        source = self.prompter.prompt_connection("source", self.predefined)
        destination = self.prompter.prompt_connection("destination", self.predefined)
        drop, workers = self.prompter.prompt_options()
        try:
            return MigrationConfig(
                source=source,
                destination=destination,
                drop_destination_first=drop,
                worker_count=workers,
            )
        except ValidationError as e:
            raise ConfigurationError(str(e)) from None

    async def validate(self, config: MigrationConfig) -> None:
        """Ping source then destination; the first failure names its side."""
        self._transition(MigrationState.VALIDATING)
        for side, connection in (("source", config.source), ("destination", config.destination)):
            try:
                await self.gateway_factory(connection).ping()
            except Exception as e:
                raise DatabaseConnectionError(side, str(e)) from e
            self.logger.info(
                f"{side.capitalize()} connection validated", connection=connection.display()
            )

    async def select_items(self, source: ConnectionSpec) -> list[str]:
        """Enumerate, filter and interactively select collections from the source."""
        self._transition(MigrationState.SELECTING_ITEMS)
        try:
            infos = await self.gateway_factory(source).list_collections()
        except Exception as e:
            raise EnumerationError(f"Failed to fetch collections: {e}") from e

        selectable, excluded = filter_collections(infos)
        self.logger.info(
            f"Found {len(selectable)} user collections",
            excluded=len(excluded),
        )
        if excluded:
            self.logger.info("Excluded system collections", collections=excluded)
        if not selectable:
            raise EnumerationError("No user collections found in source database")

        selected = await self.selector.select(selectable)
        if not selected:
            raise SelectionCancelled("No collections selected")
        self.logger.info(f"Selected {len(selected)} collections", collections=list(selected))
        return list(selected)

    def confirm(self, config: MigrationConfig, items: Sequence[str]) -> bool:
        self._transition(MigrationState.CONFIRMING)
        return self.prompter.confirm(config, items)

    async def execute(
        self,
        config: MigrationConfig,
        items: Sequence[str],
        dump_root: Path,
        report: MigrationReport,
    ) -> None:
        """Dump, optionally drop the destination, then restore.

        Raises:
            PhaseFailedError: If any collection failed in a phase
            DropDatabaseError: If dropping the destination failed
            ArtifactNotFoundError: If the dump produced no database directory
        """
        self.logger.info("Starting migration process", workers=config.worker_count)

        self._transition(MigrationState.DUMPING)
        dump = await self.run_dump(config, items, dump_root)
        report.phases[Phase.DUMP] = dump
        if not dump.ok:
            raise PhaseFailedError(dump)

        if config.drop_destination_first:
            self._transition(MigrationState.DROPPING_DESTINATION)
            await self.drop_destination(config.destination)

        self._transition(MigrationState.RESTORING)
        restore = await self.run_restore(config, items, dump_root)
        report.phases[Phase.RESTORE] = restore
        if not restore.ok:
            raise PhaseFailedError(restore)

    async def run_dump(
        self, config: MigrationConfig, items: Sequence[str], dump_root: Path
    ) -> PhaseResult:
        async def dump_one(collection: str) -> None:
            await self.tools.dump_collection(config.source, collection, dump_root)

        assignments = distribute(items, config.worker_count)
        result = await self.pool.run_phase(Phase.DUMP, assignments, dump_one)
        self.pool.log_summary(result)
        return result

    async def drop_destination(self, destination: ConnectionSpec) -> None:
        self.logger.warning("Dropping destination database", database=destination.database)
        try:
            await self.gateway_factory(destination).drop_database()
        except Exception as e:
            raise DropDatabaseError(f"Failed to drop destination database: {e}") from e
        self.logger.info("Destination database dropped", database=destination.database)

    async def run_restore(
        self, config: MigrationConfig, items: Sequence[str], dump_root: Path
    ) -> PhaseResult:
        source_dir = locate_source_dump_dir(dump_root, config.source.database)

        async def restore_one(collection: str) -> None:
            await self.tools.restore_collection(config.destination, collection, source_dir)

        assignments = distribute(items, config.worker_count)
        result = await self.pool.run_phase(Phase.RESTORE, assignments, restore_one)
        self.pool.log_summary(result)
        return result
