from __future__ import annotations

from datetime import datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A Todo row as handed around by the repositories.

    Fields:
    - id: Surrogate integer key generated by the store
    - title: Optional short title
    - description: Optional long text
    - done: Optional completion flag; no default is enforced, so it may be None
    - created_at: Insert timestamp (store-managed)
    - updated_at: Last modification timestamp (store-managed)
    """

    id: int
    title: Optional[str]
    description: Optional[str]
    done: Optional[bool]
    created_at: datetime
    updated_at: datetime
