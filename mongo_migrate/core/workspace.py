"""Scoped temporary storage for dump artifacts."""

import shutil
import tempfile
from pathlib import Path

import structlog

from ..constants import DUMP_SUBDIR, WORKSPACE_PREFIX
from .exceptions import CleanupWarning

logger = structlog.get_logger()


class MigrationWorkspace:
    """Temporary directory unique to one run, removed on every exit path.

    Use as a context manager::

        with MigrationWorkspace() as workspace:
            ...  # workspace.dump_root exists here
    """

    def __init__(self, temp_root: str | Path | None = None):
        self.temp_root = Path(temp_root) if temp_root else None
        self.path: Path | None = None
        self.logger = logger.bind(component="workspace")

    @property
    def dump_root(self) -> Path:
        if self.path is None:
            raise RuntimeError("Workspace has not been created")
        return self.path / DUMP_SUBDIR

    def create(self) -> Path:
        if self.temp_root is not None:
            self.temp_root.mkdir(parents=True, exist_ok=True)
        self.path = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=self.temp_root))
        self.dump_root.mkdir()
        self.logger.info("Created temporary directory", path=str(self.path))
        return self.path

    def cleanup(self) -> bool:
        """Remove the workspace. Failures are logged as warnings, never raised.

        Returns:
            True if the directory is gone afterwards
        """
        if self.path is None:
            return True
        try:
            shutil.rmtree(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(
                "Failed to clean up temporary files",
                path=str(self.path),
                error=str(e),
                category=CleanupWarning.__name__,
            )
            return False
        self.logger.info("Cleaned up temporary files", path=str(self.path))
        return True

    def __enter__(self) -> "MigrationWorkspace":
        self.create()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()
