from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from threading import RLock
from typing import List, Optional, Tuple

from .models import TodoEntity
from .schemas import TodoCreate, TodoUpdate
from .settings import get_settings

logger = logging.getLogger(__name__)

SORT_FIELDS = {"created_at", "updated_at"}
DEFAULT_SORT = "-created_at"


@dataclass(frozen=True)
class ListQuery:
    """
    Query parameters for listing todos.
    """
    limit: int = 50
    offset: int = 0
    done: Optional[bool] = None
    search: Optional[str] = None
    sort: str = DEFAULT_SORT  # allowed: created_at, -created_at, updated_at, -updated_at


def parse_sort(sort: Optional[str]) -> Tuple[str, bool]:
    """
    Split a sort expression into (field, descending). Unknown fields fall back
    to created_at, keeping the requested direction.
    """
    key = (sort or DEFAULT_SORT).strip().lower()
    descending = key.startswith("-")
    field = key.lstrip("-")
    if field not in SORT_FIELDS:
        field = "created_at"
    return field, descending


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for todo storage backends."""

    @abstractmethod
    def create(self, data: TodoCreate) -> TodoEntity:
        """Create and return a new TodoEntity."""

    @abstractmethod
    def get(self, todo_id: int) -> Optional[TodoEntity]:
        """Return a TodoEntity by id, or None if not found."""

    @abstractmethod
    def update(self, todo_id: int, data: TodoUpdate) -> Optional[TodoEntity]:
        """Apply the explicitly provided fields. Return the updated entity or None if not found."""

    @abstractmethod
    def delete(self, todo_id: int) -> bool:
        """Delete a TodoEntity by id. Return True if deleted, False if not found."""

    @abstractmethod
    def list(self, query: Optional[ListQuery] = None) -> Tuple[List[TodoEntity], int]:
        """
        Return a slice of TodoEntities and total count matching filters.
        - Supports limit/offset
        - Filter by done (a NULL flag counts as not done)
        - Substring search across title and description (case-insensitive)
        - Sorting by created_at/updated_at (asc/desc), ties broken by id
        """


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, TodoEntity] = {}
        self._next_id = 1

    def _now(self) -> datetime:
        return datetime.now()

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def create(self, data: TodoCreate) -> TodoEntity:
        now = self._now()
        entity: TodoEntity = {
            "id": self._allocate_id(),
            "title": data.title,
            "description": data.description,
            "done": data.done,
            "created_at": now,
            "updated_at": now,
        }
        with self._lock:
            self._items[entity["id"]] = entity
        logger.info("Created todo %s", entity["id"])
        return entity.copy()

    def get(self, todo_id: int) -> Optional[TodoEntity]:
        with self._lock:
            item = self._items.get(todo_id)
            return None if item is None else item.copy()

    def update(self, todo_id: int, data: TodoUpdate) -> Optional[TodoEntity]:
        with self._lock:
            existing = self._items.get(todo_id)
            if existing is None:
                return None

            updated = existing.copy()
            updated.update(data.changes())  # type: ignore[typeddict-item]
            updated["updated_at"] = self._now()

            self._items[todo_id] = updated
        logger.info("Updated todo %s", todo_id)
        return updated.copy()

    def delete(self, todo_id: int) -> bool:
        with self._lock:
            removed = self._items.pop(todo_id, None) is not None
        if removed:
            logger.info("Deleted todo %s", todo_id)
        return removed

    def list(self, query: Optional[ListQuery] = None) -> Tuple[List[TodoEntity], int]:
        q = query or ListQuery()
        with self._lock:
            items: List[TodoEntity] = list(self._items.values())

        if q.done is not None:
            items = [t for t in items if bool(t["done"]) == q.done]

        if q.search:
            s = q.search.lower()

            def matches(t: TodoEntity) -> bool:
                return s in (t["title"] or "").lower() or s in (t["description"] or "").lower()

            items = [t for t in items if matches(t)]

        total = len(items)

        field, descending = parse_sort(q.sort)
        items_sorted = sorted(items, key=lambda t: (t[field], t["id"]), reverse=descending)

        start = max(q.offset, 0)
        end = start + max(q.limit, 0)
        return [t.copy() for t in items_sorted[start:end]], total


@lru_cache(maxsize=1)
def _build_repository(backend: str, sqlite_db_path: str) -> Repository:
    if backend == "sqlite":
        from .db import SQLiteRepository

        logger.info("Using sqlite repository at %s", sqlite_db_path)
        return SQLiteRepository(sqlite_db_path)
    logger.info("Using in-memory repository")
    return InMemoryRepository()


# PUBLIC_INTERFACE
def get_repository() -> Repository:
    """
    Return the process-wide repository selected by settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository (schema migrated on open)

    The instance is cached per (backend, path) so state survives across requests.
    """
    settings = get_settings()
    return _build_repository(settings.persistence_backend, settings.sqlite_db_path)
