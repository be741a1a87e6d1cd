"""Core exceptions for mongo-migrate operations."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..models.results import PhaseResult


class MigrationToolError(Exception):
    """Base exception for mongo-migrate operations."""


class ConfigurationError(MigrationToolError):
    """Connection or option input failed validation."""


class DatabaseConnectionError(MigrationToolError):
    """Liveness check against the source or destination failed."""

    def __init__(self, side: str, message: str):
        super().__init__(f"Connection error ({side}): {message}")
        self.side = side


class EnumerationError(MigrationToolError):
    """Listing collections failed or produced nothing to migrate."""


class SelectionCancelled(MigrationToolError):
    """User aborted the interactive selection."""


class ProcessError(MigrationToolError):
    """External tool exited non-zero or could not be started."""

    def __init__(
        self,
        executable: str,
        returncode: int | None,
        stderr: str = "",
        message: str | None = None,
    ):
        self.executable = executable
        self.returncode = returncode
        self.stderr = stderr
        if message is None:
            if returncode is None:
                message = f"Failed to start {executable}"
            else:
                message = f"{executable} exited with code {returncode}"
            detail = stderr.strip()
            if detail:
                message = f"{message}: {detail}"
        super().__init__(message)


class ProcessTimeoutError(ProcessError):
    """External tool did not finish within the configured timeout."""

    def __init__(self, executable: str, timeout: float, stderr: str = ""):
        super().__init__(
            executable, None, stderr, message=f"{executable} timed out after {timeout} seconds"
        )
        self.timeout = timeout


class ArtifactNotFoundError(MigrationToolError):
    """Expected dump output is missing at restore time."""


class DropDatabaseError(MigrationToolError):
    """Dropping the destination database failed."""


class PhaseFailedError(MigrationToolError):
    """A dump or restore phase finished with failed items."""

    def __init__(self, result: "PhaseResult"):
        super().__init__(f"Failed to {result.phase.value} {len(result.failed)} collections")
        self.result = result


class CleanupWarning(UserWarning):
    """Temporary workspace could not be removed."""
