"""Centralized constants for mongo-migrate."""

# Connection URI schemes accepted for source and destination
MONGO_URI_SCHEMES = ("mongodb://", "mongodb+srv://")

# Predefined connection environment entries: DB_<NAME>_URI
PREDEFINED_ENV_PREFIX = "DB_"
PREDEFINED_ENV_SUFFIX = "_URI"
MANUAL_CONNECTION_LABEL = "manual"

# Collection filtering
SYSTEM_COLLECTION_PREFIXES = ("system.", "fs.")
RESERVED_COLLECTION_NAMES = frozenset({"oplog.rs", "__schema"})
DATA_COLLECTION_TYPE = "collection"

# Dump/restore tooling
MONGODUMP = "mongodump"
MONGORESTORE = "mongorestore"
ARTIFACT_EXTENSION = "bson"
DUMP_SUBDIR = "dump"
WORKSPACE_PREFIX = "mongo-migrate-"

# Worker bounds
MIN_WORKERS = 1
MAX_WORKERS = 10
DEFAULT_WORKERS = 3

# Progress reporting
PERCENT_MILESTONE_STEP = 10

# Interactive selector
SELECTOR_PAGE_SIZE = 15
SELECTOR_PREVIEW_LIMIT = 5

# Process exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130
