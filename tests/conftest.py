"""Shared pytest fixtures for mongo-migrate tests."""

import stat
from pathlib import Path

import pytest

from mongo_migrate.core.config_loader import ConnectionSpec, MigrationConfig, build_connection_spec
from mongo_migrate.core.settings import MigrationSettings

# mongodump stand-in: --uri U --db D --collection C --out O
FAKE_MONGODUMP = """#!/bin/sh
db="$4"
collection="$6"
out="$8"
case " $FAIL_DUMP " in *" $collection "*)
    echo "Failed: error dumping $db.$collection" >&2
    exit 1
esac
mkdir -p "$out/$db"
echo "writing $db.$collection to $out/$db/$collection.bson" >&2
echo "[###########.............]  $db.$collection  50/100  (50.0%)" >&2
echo "[########################]  $db.$collection  100/100  (100.0%)" >&2
printf 'bson' > "$out/$db/$collection.bson"
if [ -n "$TOOL_LOG" ]; then echo "dump $collection $out" >> "$TOOL_LOG"; fi
echo "done dumping $db.$collection (100 documents)" >&2
"""

# mongorestore stand-in: --uri U --db D --collection C ARTIFACT
FAKE_MONGORESTORE = """#!/bin/sh
collection="$6"
artifact="$7"
case " $FAIL_RESTORE " in *" $collection "*)
    echo "Failed: restore error for $collection" >&2
    exit 3
esac
test -f "$artifact" || { echo "missing $artifact" >&2; exit 2; }
if [ -n "$TOOL_LOG" ]; then echo "restore $collection $artifact" >> "$TOOL_LOG"; fi
echo "100 document(s) restored successfully. 0 document(s) failed to restore." >&2
"""


def _write_script(path: Path, content: str) -> str:
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


@pytest.fixture
def fake_tools(tmp_path: Path) -> tuple[str, str]:
    """Executable mongodump/mongorestore stand-ins."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    return (
        _write_script(bin_dir / "mongodump", FAKE_MONGODUMP),
        _write_script(bin_dir / "mongorestore", FAKE_MONGORESTORE),
    )


@pytest.fixture
def temp_root(tmp_path: Path) -> Path:
    root = tmp_path / "work"
    root.mkdir()
    return root


@pytest.fixture
def settings(fake_tools: tuple[str, str], temp_root: Path) -> MigrationSettings:
    """Settings pointing at the fake tools and an isolated temp root."""
    mongodump, mongorestore = fake_tools
    return MigrationSettings(
        mongodump_bin=mongodump,
        mongorestore_bin=mongorestore,
        temp_root=str(temp_root),
        _env_file=None,
    )


@pytest.fixture
def source() -> ConnectionSpec:
    return build_connection_spec("mongodb://localhost:27017", "a")


@pytest.fixture
def destination() -> ConnectionSpec:
    return build_connection_spec("mongodb://localhost:27017", "b")


@pytest.fixture
def migration_config(source: ConnectionSpec, destination: ConnectionSpec) -> MigrationConfig:
    return MigrationConfig(
        source=source, destination=destination, drop_destination_first=False, worker_count=2
    )
