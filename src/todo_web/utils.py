from __future__ import annotations

from typing import Any, Dict, Iterable, List, Sequence, Union

TODOS_PATH = "/todos"


# PUBLIC_INTERFACE
def todos_path() -> str:
    """Path of the todo index page."""
    return TODOS_PATH


# PUBLIC_INTERFACE
def todo_path(todo_id: Union[int, str]) -> str:
    """Path of a single todo; also the target of its delete action."""
    return f"{TODOS_PATH}/{todo_id}"


# PUBLIC_INTERFACE
def edit_todo_path(todo_id: Union[int, str]) -> str:
    """Path of the edit form for a todo."""
    return f"{todo_path(todo_id)}/edit"


# PUBLIC_INTERFACE
def pagination_envelope(
    items: Union[Sequence[Any], Iterable[Any]],
    total: int,
    limit: int,
    offset: int,
) -> Dict[str, Any]:
    """
    Build a standard pagination envelope for list endpoints.

    Args:
        items: The list/iterable of items for the current page.
        total: Total number of items that match the query (ignoring pagination).
        limit: The limit used for pagination.
        offset: The offset used for pagination.

    Returns:
        Dict with keys: items, total, limit, offset.
    """
    materialized: List[Any] = items if isinstance(items, list) else list(items)
    return {
        "items": materialized,
        "total": int(total),
        "limit": int(max(limit, 0)),
        "offset": int(max(offset, 0)),
    }
