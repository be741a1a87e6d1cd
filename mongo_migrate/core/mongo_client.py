"""Database driver access used for validation, enumeration and dropping."""

from collections.abc import Iterable
from dataclasses import dataclass

import structlog
from motor.motor_asyncio import AsyncIOMotorClient

from ..constants import DATA_COLLECTION_TYPE, RESERVED_COLLECTION_NAMES, SYSTEM_COLLECTION_PREFIXES
from .config_loader import ConnectionSpec

logger = structlog.get_logger()


@dataclass(frozen=True)
class CollectionInfo:
    """Name and type of an object returned by ``listCollections``."""

    name: str
    type: str = DATA_COLLECTION_TYPE


def is_migratable(info: CollectionInfo) -> bool:
    """Return True for user data collections; False for system objects and views."""
    if info.name.startswith(SYSTEM_COLLECTION_PREFIXES):
        return False
    if info.name in RESERVED_COLLECTION_NAMES:
        return False
    return info.type == DATA_COLLECTION_TYPE


def filter_collections(infos: Iterable[CollectionInfo]) -> tuple[list[str], list[str]]:
    """Split collections into selectable and excluded names.

    Returns:
        Tuple of (sorted selectable names, excluded names in listing order)
    """
    selectable: list[str] = []
    excluded: list[str] = []
    for info in infos:
        (selectable if is_migratable(info) else excluded).append(info.name)
    return sorted(selectable), excluded


class MongoGateway:
    """Short-lived driver connection to one side of the migration."""

    def __init__(self, connection: ConnectionSpec, server_selection_timeout_ms: int = 10000):
        self.connection = connection
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self.logger = logger.bind(component="mongo_gateway", connection=connection.display())

    def _client(self) -> AsyncIOMotorClient:
        return AsyncIOMotorClient(
            self.connection.uri, serverSelectionTimeoutMS=self.server_selection_timeout_ms
        )

    async def ping(self) -> None:
        """Run the ``ping`` command against the admin database."""
        client = self._client()
        try:
            await client.admin.command("ping")
            self.logger.debug("Ping succeeded")
        finally:
            client.close()

    async def list_collections(self) -> list[CollectionInfo]:
        """List every collection-like object in the configured database."""
        client = self._client()
        try:
            cursor = await client[self.connection.database].list_collections()
            documents = await cursor.to_list(length=None)
        finally:
            client.close()
        return [
            CollectionInfo(name=doc["name"], type=doc.get("type", DATA_COLLECTION_TYPE))
            for doc in documents
        ]

    async def drop_database(self) -> None:
        """Drop the configured database. Irreversible."""
        client = self._client()
        try:
            await client.drop_database(self.connection.database)
            self.logger.info("Database dropped", database=self.connection.database)
        finally:
            client.close()
