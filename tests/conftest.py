import os

import pytest

# Default to the memory backend so tests never touch the filesystem.
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from src.todo_web.main import app  # noqa: E402
from src.todo_web.repositories import InMemoryRepository, get_repository  # noqa: E402


@pytest.fixture(autouse=True)
def repo():
    """Give every test its own empty store behind the app's repository dependency."""
    fresh = InMemoryRepository()
    app.dependency_overrides[get_repository] = lambda: fresh
    yield fresh
    app.dependency_overrides.pop(get_repository, None)
