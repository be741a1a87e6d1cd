"""Connection configuration for mongo-migrate."""

import os
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

import structlog
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..constants import (
    MANUAL_CONNECTION_LABEL,
    MAX_WORKERS,
    MIN_WORKERS,
    PREDEFINED_ENV_PREFIX,
    PREDEFINED_ENV_SUFFIX,
)
from ..utils import mask_connection_string, validate_mongo_uri
from .exceptions import ConfigurationError

logger = structlog.get_logger()


class ConnectionSpec(BaseModel):
    """One side of a migration: where to connect and which database to use."""

    model_config = ConfigDict(frozen=True)

    uri: str = Field(repr=False)
    database: str
    label: str = MANUAL_CONNECTION_LABEL

    @field_validator("uri")
    @classmethod
    def _check_scheme(cls, value: str) -> str:
        value = value.strip()
        is_valid, error = validate_mongo_uri(value)
        if not is_valid:
            raise ValueError(error)
        return value

    @field_validator("database")
    @classmethod
    def _check_database(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Database name is required")
        return value

    @property
    def masked_uri(self) -> str:
        return mask_connection_string(self.uri)

    def display(self) -> str:
        """Masked display form, prefixed by the connection label when predefined."""
        if self.label == MANUAL_CONNECTION_LABEL:
            return self.masked_uri
        return f"{self.label} ({self.masked_uri})"


class MigrationConfig(BaseModel):
    """Complete, read-only configuration for one migration run."""

    model_config = ConfigDict(frozen=True)

    source: ConnectionSpec
    destination: ConnectionSpec
    drop_destination_first: bool = False
    worker_count: int = Field(3, ge=MIN_WORKERS, le=MAX_WORKERS)


class PredefinedConnection(BaseModel):
    """Connection discovered from a ``DB_<NAME>_URI`` environment entry."""

    model_config = ConfigDict(frozen=True)

    name: str
    uri: str = Field(repr=False)


def build_connection_spec(
    uri: str, database: str, label: str = MANUAL_CONNECTION_LABEL
) -> ConnectionSpec:
    """Build a ConnectionSpec, converting validation failures to ConfigurationError."""
    try:
        return ConnectionSpec(uri=uri, database=database, label=label)
    except ValidationError as e:
        messages = "; ".join(str(err["msg"]).removeprefix("Value error, ") for err in e.errors())
        raise ConfigurationError(messages) from None


def discover_predefined_connections(
    environ: Mapping[str, str] | None = None,
) -> Mapping[str, PredefinedConnection]:
    """Scan environment entries once for predefined connections.

    ``DB_LOCAL_URI`` becomes the connection labelled ``local``; ``DB_PROD_EU_URI``
    becomes ``prod-eu``.

    Args:
        environ: Environment mapping to scan (defaults to ``os.environ``)

    Returns:
        Immutable mapping of label to connection, sorted by label
    """
    if environ is None:
        environ = os.environ

    connections: dict[str, PredefinedConnection] = {}
    for key, value in environ.items():
        if not (key.startswith(PREDEFINED_ENV_PREFIX) and key.endswith(PREDEFINED_ENV_SUFFIX)):
            continue
        name = key[len(PREDEFINED_ENV_PREFIX) : -len(PREDEFINED_ENV_SUFFIX)]
        if not name or not value:
            continue
        label = name.lower().replace("_", "-")
        connections[label] = PredefinedConnection(name=label, uri=value)

    logger.debug("Predefined connections discovered", labels=sorted(connections))
    return MappingProxyType(dict(sorted(connections.items())))


def load_environment(env_file: str | Path | None = None) -> bool:
    """Load a ``.env`` file into the process environment.

    Existing environment variables take precedence over file values.
    """
    if env_file is not None:
        return load_dotenv(dotenv_path=env_file)
    return load_dotenv()
