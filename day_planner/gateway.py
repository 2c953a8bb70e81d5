"""Per-user, per-day task lists on top of a key-value table store.

Callers must have verified the identity before calling in. The store only
needs get(key) and upsert(key, value) coroutines.
"""

from datetime import datetime, timezone
from typing import Any, Protocol

from .errors import ClientInputError


class TableStore(Protocol):
    async def get(self, key: tuple[str, str]) -> dict | None: ...

    async def upsert(self, key: tuple[str, str], value: dict) -> None: ...


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TaskGateway:
    def __init__(self, store: TableStore, clock=_utc_now):
        self.store = store
        self._clock = clock

    async def get_tasks(self, identity: str, date: str) -> list[Any]:
        """Return the saved tasks for (identity, date), or [] if none."""
        record = await self.store.get((identity, date))
        if not record:
            return []
        tasks = record.get("tasks")
        return tasks if isinstance(tasks, list) else []

    async def save_tasks(self, identity: str, date: str, tasks: list[Any]) -> None:
        """Replace the task list for (identity, date)."""
        if not isinstance(tasks, list):
            raise ClientInputError("tasks must be an array")
        await self.store.upsert(
            (identity, date), {"tasks": tasks, "updated_at": self._clock()},
        )
