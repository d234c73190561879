from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generator, List, Optional, Tuple

from .migrations import migrate
from .models import TodoEntity
from .repositories import ListQuery, Repository, parse_sort
from .schemas import TodoCreate, TodoUpdate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    done: str = "done"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_COLS = _Cols()

_WRITABLE = (_COLS.title, _COLS.description, _COLS.done)


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so the search stays a plain substring match."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _to_db(column: str, value: Any) -> Any:
    if column == _COLS.done and value is not None:
        return 1 if value else 0
    return value


class SQLiteRepository(Repository):
    """
    SQLite repository implementing the Repository interface.

    The schema is brought up to date with the versioned migrations when the
    repository is opened.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        with self._conn() as conn:
            applied = migrate(conn)
        if applied:
            logger.info("Migrated %s to %s", db_path, applied[-1])

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        done = row[_COLS.done]
        return {
            "id": int(row[_COLS.id]),
            "title": row[_COLS.title],
            "description": row[_COLS.description],
            "done": None if done is None else bool(done),
            "created_at": datetime.fromisoformat(row[_COLS.created_at]),
            "updated_at": datetime.fromisoformat(row[_COLS.updated_at]),
        }

    def _fetch(self, conn: sqlite3.Connection, todo_id: int) -> Optional[sqlite3.Row]:
        return conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,)).fetchone()

    def create(self, data: TodoCreate) -> TodoEntity:
        now = datetime.now().isoformat()
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.title}, {_COLS.description}, {_COLS.done},
                    {_COLS.created_at}, {_COLS.updated_at})
                VALUES (?, ?, ?, ?, ?)
                """,
                (data.title, data.description, _to_db(_COLS.done, data.done), now, now),
            )
            row = self._fetch(conn, cur.lastrowid)
            assert row is not None
            entity = self._row_to_entity(row)
        logger.info("Created todo %s", entity["id"])
        return entity

    def get(self, todo_id: int) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = self._fetch(conn, todo_id)
            return self._row_to_entity(row) if row else None

    def update(self, todo_id: int, data: TodoUpdate) -> Optional[TodoEntity]:
        changes = {k: v for k, v in data.changes().items() if k in _WRITABLE}
        with self._conn() as conn:
            if self._fetch(conn, todo_id) is None:
                return None

            assignments = [f"{col} = ?" for col in changes] + [f"{_COLS.updated_at} = ?"]
            params = [_to_db(col, value) for col, value in changes.items()]
            params.extend([datetime.now().isoformat(), todo_id])
            conn.execute(
                f"UPDATE {_COLS.table} SET {', '.join(assignments)} WHERE {_COLS.id} = ?",
                params,
            )
            row = self._fetch(conn, todo_id)
            assert row is not None
            entity = self._row_to_entity(row)
        logger.info("Updated todo %s", todo_id)
        return entity

    def delete(self, todo_id: int) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,))
            removed = cur.rowcount > 0
        if removed:
            logger.info("Deleted todo %s", todo_id)
        return removed

    def list(self, query: Optional[ListQuery] = None) -> Tuple[List[TodoEntity], int]:
        q = query or ListQuery()
        clauses = []
        params: list = []

        if q.done is not None:
            # NULL counts as not done
            clauses.append(f"COALESCE({_COLS.done}, 0) = ?")
            params.append(1 if q.done else 0)

        if q.search:
            title_like = f"LOWER(COALESCE({_COLS.title}, '')) LIKE ? ESCAPE '\\'"
            desc_like = f"LOWER(COALESCE({_COLS.description}, '')) LIKE ? ESCAPE '\\'"
            clauses.append(f"({title_like} OR {desc_like})")
            like = f"%{_escape_like(q.search.lower())}%"
            params.extend([like, like])

        where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        field, descending = parse_sort(q.sort)
        direction = "DESC" if descending else "ASC"
        order_sql = f"ORDER BY {field} {direction}, {_COLS.id} {direction}"

        with self._conn() as conn:
            count_row = conn.execute(
                f"SELECT COUNT(*) AS cnt FROM {_COLS.table} {where_sql}", params
            ).fetchone()
            total = int(count_row["cnt"]) if count_row else 0

            rows = conn.execute(
                f"""
                SELECT * FROM {_COLS.table}
                {where_sql}
                {order_sql}
                LIMIT ? OFFSET ?
                """,
                [*params, max(q.limit, 0), max(q.offset, 0)],
            ).fetchall()
            return [self._row_to_entity(r) for r in rows], total
