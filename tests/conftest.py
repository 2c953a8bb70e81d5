import pytest

from day_planner.errors import StorageError


class MemoryStore:
    """In-process stand-in for the table store, keyed like the real table."""

    def __init__(self):
        self.rows: dict[tuple[str, str], dict] = {}
        self.calls: list[tuple[str, tuple[str, str]]] = []
        self.fail_with: StorageError | None = None

    async def get(self, key):
        self.calls.append(("get", key))
        if self.fail_with:
            raise self.fail_with
        row = self.rows.get(key)
        return dict(row) if row is not None else None

    async def upsert(self, key, value):
        self.calls.append(("upsert", key))
        if self.fail_with:
            raise self.fail_with
        self.rows[key] = dict(value)


@pytest.fixture
def memory_store():
    return MemoryStore()
