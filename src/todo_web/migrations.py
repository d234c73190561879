"""
Versioned schema migrations for the sqlite backend.

Each migration is identified by a timestamp version and carries the statements
to apply it and to revert it. Applied versions are recorded in the
``schema_migrations`` table so that ``migrate`` only runs what is pending.

Usage:
    python -m src.todo_web.migrations migrate --db ./data/todos.db
    python -m src.todo_web.migrations rollback --steps 1
    python -m src.todo_web.migrations status
"""
from __future__ import annotations

import argparse
import logging
import os
import sqlite3
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .logs import configure_logging
from .settings import get_settings

logger = logging.getLogger(__name__)

VERSIONS_TABLE = "schema_migrations"


class MigrationError(RuntimeError):
    """Raised when the recorded schema state cannot be reconciled with the known migrations."""


@dataclass(frozen=True)
class Migration:
    version: str
    name: str
    up: Tuple[str, ...]
    down: Tuple[str, ...]


# Ordered by version. Columns are nullable with no defaults; timestamps are store-managed.
MIGRATIONS: Tuple[Migration, ...] = (
    Migration(
        version="20231109012433",
        name="create_todos",
        up=(
            """
            CREATE TABLE todos (
                id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
                title VARCHAR,
                description TEXT,
                done BOOLEAN,
                created_at DATETIME NOT NULL,
                updated_at DATETIME NOT NULL
            )
            """,
        ),
        down=("DROP TABLE todos",),
    ),
)


def _ensure_versions_table(conn: sqlite3.Connection) -> None:
    conn.execute(f"CREATE TABLE IF NOT EXISTS {VERSIONS_TABLE} (version TEXT PRIMARY KEY NOT NULL)")


def _by_version(migrations: Sequence[Migration]) -> dict:
    return {m.version: m for m in migrations}


# PUBLIC_INTERFACE
def applied_versions(conn: sqlite3.Connection) -> List[str]:
    """Return the versions recorded as applied, oldest first."""
    _ensure_versions_table(conn)
    rows = conn.execute(f"SELECT version FROM {VERSIONS_TABLE} ORDER BY version").fetchall()
    return [r[0] for r in rows]


# PUBLIC_INTERFACE
def pending_versions(conn: sqlite3.Connection, migrations: Sequence[Migration] = MIGRATIONS) -> List[str]:
    """Return the known versions that have not been applied yet, in apply order."""
    done = set(applied_versions(conn))
    return [m.version for m in sorted(migrations, key=lambda m: m.version) if m.version not in done]


# PUBLIC_INTERFACE
def migrate(conn: sqlite3.Connection, migrations: Sequence[Migration] = MIGRATIONS) -> List[str]:
    """
    Apply every pending migration in version order, each inside its own
    transaction. Returns the versions applied by this call.
    """
    known = _by_version(migrations)
    applied: List[str] = []
    for version in pending_versions(conn, migrations):
        migration = known[version]
        with conn:
            for statement in migration.up:
                conn.execute(statement)
            conn.execute(f"INSERT INTO {VERSIONS_TABLE} (version) VALUES (?)", (version,))
        logger.info("Applied migration %s_%s", version, migration.name)
        applied.append(version)
    return applied


# PUBLIC_INTERFACE
def rollback(
    conn: sqlite3.Connection, steps: int = 1, migrations: Sequence[Migration] = MIGRATIONS
) -> List[str]:
    """
    Revert the latest ``steps`` applied migrations, newest first.

    Raises:
        MigrationError: nothing is applied, or an applied version is unknown.
    """
    if steps < 1:
        raise MigrationError("steps must be at least 1")
    recorded = applied_versions(conn)
    if not recorded:
        raise MigrationError("No migrations to roll back")

    known = _by_version(migrations)
    reverted: List[str] = []
    for version in reversed(recorded[-steps:]):
        migration = known.get(version)
        if migration is None:
            raise MigrationError(f"Unknown migration version recorded: {version}")
        with conn:
            for statement in migration.down:
                conn.execute(statement)
            conn.execute(f"DELETE FROM {VERSIONS_TABLE} WHERE version = ?", (version,))
        logger.info("Rolled back migration %s_%s", version, migration.name)
        reverted.append(version)
    return reverted


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Command line entry point for applying, reverting, or inspecting migrations.
    """
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="python -m src.todo_web.migrations")
    parser.add_argument("command", choices=["migrate", "rollback", "status"])
    parser.add_argument("--db", default=settings.sqlite_db_path, help="sqlite database file")
    parser.add_argument("--steps", type=int, default=1, help="number of versions to roll back")
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)
    os.makedirs(os.path.dirname(args.db) or ".", exist_ok=True)
    conn = sqlite3.connect(args.db)
    try:
        if args.command == "migrate":
            migrate(conn)
        elif args.command == "rollback":
            rollback(conn, args.steps)
        else:
            done = set(applied_versions(conn))
            for m in MIGRATIONS:
                state = "up" if m.version in done else "down"
                print(f"{state:>4}  {m.version}  {m.name}")
    finally:
        conn.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
