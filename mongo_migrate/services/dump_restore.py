"""Per-collection mongodump/mongorestore execution."""

from pathlib import Path

import structlog

from ..constants import ARTIFACT_EXTENSION
from ..core.config_loader import ConnectionSpec
from ..core.exceptions import ArtifactNotFoundError
from ..core.progress import ProgressTracker
from ..core.settings import MigrationSettings
from ..core.subprocess_manager import OutputLine, SubprocessManager

logger = structlog.get_logger()


def build_dump_args(source: ConnectionSpec, collection: str, dump_root: Path) -> list[str]:
    """Arguments for dumping one collection into ``dump_root``."""
    return [
        "--uri",
        source.uri,
        "--db",
        source.database,
        "--collection",
        collection,
        "--out",
        str(dump_root),
    ]


def build_restore_args(destination: ConnectionSpec, collection: str, artifact: Path) -> list[str]:
    """Arguments for restoring one collection from its dumped artifact."""
    return [
        "--uri",
        destination.uri,
        "--db",
        destination.database,
        "--collection",
        collection,
        str(artifact),
    ]


def artifact_path(source_dir: Path, collection: str) -> Path:
    return source_dir / f"{collection}.{ARTIFACT_EXTENSION}"


def locate_source_dump_dir(dump_root: Path, source_database: str | None = None) -> Path:
    """Find the database directory mongodump created under ``dump_root``.

    Hidden entries (``.DS_Store`` and friends) are ignored. A directory named
    after ``source_database`` wins; otherwise the first in sorted order is used.

    Raises:
        ArtifactNotFoundError: If no database directory exists
    """
    candidates = []
    if dump_root.is_dir():
        candidates = sorted(
            entry
            for entry in dump_root.iterdir()
            if entry.is_dir() and not entry.name.startswith(".")
        )

    if not candidates:
        raise ArtifactNotFoundError(f"No database dump directory found in {dump_root}")

    for candidate in candidates:
        if candidate.name == source_database:
            return candidate
    if len(candidates) > 1:
        logger.warning(
            "Multiple dump directories found, using the first",
            dump_root=str(dump_root),
            candidates=[c.name for c in candidates],
        )
    return candidates[0]


class MongoToolRunner:
    """Runs the dump and restore tools for single collections."""

    def __init__(self, manager: SubprocessManager, settings: MigrationSettings):
        self.manager = manager
        self.settings = settings
        self.logger = logger.bind(component="mongo_tools")

    async def _run(self, executable: str, args: list[str], tracker: ProgressTracker) -> None:
        def on_line(line: OutputLine) -> None:
            tracker.observe(line.text)

        await self.manager.run(
            executable, args, on_line=on_line, timeout=self.settings.item_timeout
        )

    async def dump_collection(
        self, source: ConnectionSpec, collection: str, dump_root: Path
    ) -> None:
        """Dump one collection into ``dump_root``.

        Raises:
            ProcessError: If mongodump failed to start, exited non-zero or timed out
        """
        tracker = ProgressTracker(collection, "Dump", self.logger)
        await self._run(
            self.settings.mongodump_bin, build_dump_args(source, collection, dump_root), tracker
        )

    async def restore_collection(
        self, destination: ConnectionSpec, collection: str, source_dir: Path
    ) -> None:
        """Restore one collection from ``<source_dir>/<collection>.bson``.

        Raises:
            ArtifactNotFoundError: If the dump file is missing
            ProcessError: If mongorestore failed to start, exited non-zero or timed out
        """
        artifact = artifact_path(source_dir, collection)
        if not artifact.is_file():
            raise ArtifactNotFoundError(f"Dump file not found: {artifact}")

        tracker = ProgressTracker(collection, "Restore", self.logger)
        await self._run(
            self.settings.mongorestore_bin,
            build_restore_args(destination, collection, artifact),
            tracker,
        )
