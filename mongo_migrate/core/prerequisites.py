"""Availability checks for the external dump/restore tools."""

import structlog

from .exceptions import ProcessError
from .settings import MigrationSettings
from .subprocess_manager import SubprocessManager

logger = structlog.get_logger()

VERSION_CHECK_TIMEOUT = 15


async def check_tool(manager: SubprocessManager, executable: str) -> bool:
    """Return True if ``executable --version`` runs and exits zero."""
    try:
        result = await manager.run(
            executable, ["--version"], timeout=VERSION_CHECK_TIMEOUT, check=False
        )
    except ProcessError as e:
        logger.debug("Tool check failed", executable=executable, error=str(e))
        return False
    return result.success


async def check_prerequisites(
    manager: SubprocessManager, settings: MigrationSettings
) -> dict[str, bool]:
    """Check both tools configured in ``settings``.

    Returns:
        Mapping of executable to availability, dump tool first
    """
    return {
        executable: await check_tool(manager, executable)
        for executable in (settings.mongodump_bin, settings.mongorestore_bin)
    }
