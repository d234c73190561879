from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _strip_title(value: Optional[str]) -> Optional[str]:
    """Trim surrounding whitespace; None passes through untouched."""
    if value is None:
        return None
    return value.strip()


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item.

    Every column is nullable, so every field is optional.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "done": False,
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    done: Optional[bool] = Field(default=None, description="Completion flag; may be left unset")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        """
        Strip whitespace around the title.
        """
        return _strip_title(v)


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for updating an existing Todo item.

    Only fields present in the payload are written; sending an explicit null
    clears the column.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "done": True,
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    done: Optional[bool] = Field(default=None, description="Completion flag")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return _strip_title(v)

    # PUBLIC_INTERFACE
    def changes(self) -> dict:
        """Return only the fields explicitly provided by the caller."""
        return self.model_dump(exclude_unset=True)

    # PUBLIC_INTERFACE
    @classmethod
    def replacing(cls, payload: TodoCreate) -> "TodoUpdate":
        """
        Build an update that overwrites every column, used for PUT semantics:
        anything omitted from the payload becomes null.
        """
        return cls(title=payload.title, description=payload.description, done=payload.done)


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 42,
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "done": False,
                "created_at": "2023-11-09T01:24:33.000000",
                "updated_at": "2023-11-09T01:24:33.000000",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the todo item")
    title: Optional[str] = Field(default=None, description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    done: Optional[bool] = Field(default=None, description="Completion flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
