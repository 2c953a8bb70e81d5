"""Client for the Supabase (PostgREST) table that holds task records.

Rows are addressed by the composite key (telegram_id, date). The client
exposes just get(key) and upsert(key, value); one HTTP call per operation,
no retries.
"""

import asyncio
import json

import aiohttp

from .errors import StorageError


class SupabaseTaskStore:
    def __init__(
        self, url: str, service_key: str, table: str = "planner_tasks",
        session: aiohttp.ClientSession | None = None, timeout: float | None = None,
    ):
        self.endpoint = f"{url.rstrip('/')}/rest/v1/{table}"
        self._service_key = service_key
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout) if timeout else None

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._service_key,
            "Authorization": f"Bearer {self._service_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            if self._timeout is not None:
                self._session = aiohttp.ClientSession(timeout=self._timeout)
            else:
                self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this store created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def get(self, key: tuple[str, str]) -> dict | None:
        """Return the row for (telegram_id, date), or None if there is none."""
        telegram_id, date = key
        params = {
            "select": "tasks,updated_at",
            "telegram_id": f"eq.{telegram_id}",
            "date": f"eq.{date}",
            "limit": "1",
        }
        try:
            async with self._get_session().get(
                self.endpoint, params=params, headers=self._headers(),
            ) as resp:
                body = await resp.text()
                if resp.status >= 300:
                    raise _response_error("read failed", resp.status, body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            print(f"[Store] GET {telegram_id}/{date} → ERROR: {e}")
            raise StorageError("task store unreachable", str(e) or type(e).__name__) from e

        try:
            rows = json.loads(body)
        except ValueError as e:
            raise StorageError("task store returned invalid JSON", body[:200]) from e
        if not isinstance(rows, list):
            raise StorageError("task store returned unexpected payload", body[:200])
        return rows[0] if rows else None

    async def upsert(self, key: tuple[str, str], value: dict) -> None:
        """Insert or fully replace the row for (telegram_id, date)."""
        telegram_id, date = key
        row = {"telegram_id": telegram_id, "date": date, **value}
        headers = self._headers()
        headers["Prefer"] = "resolution=merge-duplicates,return=minimal"
        try:
            async with self._get_session().post(
                self.endpoint, params={"on_conflict": "telegram_id,date"},
                json=row, headers=headers,
            ) as resp:
                body = await resp.text()
                if resp.status >= 300:
                    raise _response_error("write failed", resp.status, body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            print(f"[Store] UPSERT {telegram_id}/{date} → ERROR: {e}")
            raise StorageError("task store unreachable", str(e) or type(e).__name__) from e


def _response_error(action: str, status: int, body: str) -> StorageError:
    """Turn a non-2xx PostgREST response into a StorageError."""
    message = f"task store {action} (HTTP {status})"
    details = body[:500] if body else None
    try:
        payload = json.loads(body)
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        if payload.get("message"):
            message = f"task store {action}: {payload['message']}"
        parts = [str(payload[k]) for k in ("code", "details", "hint") if payload.get(k)]
        details = "; ".join(parts) or None
    print(f"[Store] {message}")
    return StorageError(message, details)
