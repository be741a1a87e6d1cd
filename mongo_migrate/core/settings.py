"""Runtime settings for mongo-migrate.

Provides centralized tool, timeout and UI configuration using Pydantic
BaseSettings with environment variable support for operational tuning.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import (
    DEFAULT_WORKERS,
    MAX_WORKERS,
    MIN_WORKERS,
    MONGODUMP,
    MONGORESTORE,
    SELECTOR_PAGE_SIZE,
)


class MigrationSettings(BaseSettings):
    """Migration tool configuration."""

    mongodump_bin: str = Field(
        MONGODUMP, alias="MONGODUMP_BIN", description="Dump executable name or path"
    )

    mongorestore_bin: str = Field(
        MONGORESTORE, alias="MONGORESTORE_BIN", description="Restore executable name or path"
    )

    temp_root: str | None = Field(
        None,
        alias="MIGRATION_TEMP_ROOT",
        description="Parent directory for the per-run workspace (system temp when unset)",
    )

    item_timeout: float | None = Field(
        None,
        alias="ITEM_TIMEOUT",
        gt=0,
        description="Per-collection dump/restore timeout in seconds (disabled when unset)",
    )

    server_selection_timeout_ms: int = Field(
        10000,
        alias="SERVER_SELECTION_TIMEOUT_MS",
        gt=0,
        description="Driver server selection timeout for ping/list/drop calls",
    )

    default_workers: int = Field(
        DEFAULT_WORKERS,
        alias="DEFAULT_WORKERS",
        ge=MIN_WORKERS,
        le=MAX_WORKERS,
        description="Worker count offered as the prompt default",
    )

    selector_page_size: int = Field(
        SELECTOR_PAGE_SIZE,
        alias="SELECTOR_PAGE_SIZE",
        ge=1,
        description="Collections shown at once in the interactive selector",
    )

    log_level: str = Field("INFO", alias="LOG_LEVEL", description="Console log level")

    log_dir: str | None = Field(None, alias="LOG_DIR", description="Directory for log files")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)
