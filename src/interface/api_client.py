"""HTTP client for the focus-timer API with a local fallback cache.

Requests use a short timeout. When a finished focus session cannot be sent
(timeout or connection failure), it is appended to a local JSON cache file
instead of being retried in a loop; flush_pending_sessions() replays the
cache once the server is reachable again.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel, Field

from src.core.config import constants, settings
from src.core.dates import iso_now


logger = logging.getLogger(__name__)


class SessionSendResult(BaseModel):
    """Result of sending a focus session to the API."""

    success: bool = Field(..., description="Whether the server accepted the session")
    cached: bool = Field(default=False, description="Whether the session was stored locally for later")
    data: dict[str, Any] | None = Field(default=None, description="Server response body")
    error: str | None = Field(default=None, description="Error message if the send failed")


class TaskApiClient:
    """Async client for the task endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float = constants.API_TIMEOUT_SECONDS,
        cache_path: str | Path | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout
        self.cache_path = Path(cache_path or settings.client_cache_path)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        async with self._client() as client:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()

    async def get_progress(self, task_id: str) -> dict[str, Any]:
        """Fetch today's progress of a TODO task.

        Raises:
            httpx.HTTPStatusError: If the server answers with an error status
            httpx.TransportError: If the server cannot be reached in time
        """
        return await self._request("GET", f"/tasks/{task_id}/progress")

    async def get_remaining(self, task_id: str) -> dict[str, Any]:
        """Fetch today's remaining time of a TODO task."""
        return await self._request("GET", f"/tasks/{task_id}/remaining")

    async def get_batch(self, task_ids: list[str], *, kind: str = "info") -> dict[str, Any]:
        """Fetch progress, remaining, or info for up to 50 tasks, splitting larger lists.

        Returns:
            Merged success and errors maps with combined counts
        """
        merged: dict[str, Any] = {"success": {}, "errors": {}, "count": {"requested": 0, "successful": 0, "failed": 0}}
        size = constants.MAX_BATCH_SIZE
        for start in range(0, len(task_ids), size):
            chunk = task_ids[start : start + size]
            data = await self._request("POST", f"/tasks/batch/{kind}", json={"taskIds": chunk})
            merged["success"].update(data.get("success", {}))
            merged["errors"].update(data.get("errors", {}))
            for key in ("requested", "successful", "failed"):
                merged["count"][key] += data.get("count", {}).get(key, 0)
        return merged

    async def send_session(self, task_id: str, duration: float) -> SessionSendResult:
        """Send a finished focus session, caching it locally if the server is unreachable.

        Args:
            task_id: TODO task the session belongs to
            duration: Session length in seconds

        Returns:
            SessionSendResult describing whether it was sent or cached
        """
        payload = {"duration": duration}
        try:
            data = await self._request("POST", f"/tasks/{task_id}/session", json=payload)
        except httpx.TransportError as e:
            logger.warning("session_send_failed_caching", extra={"task_id": task_id, "error": str(e)})
            await self._append_cache({"taskId": task_id, "duration": duration, "cachedAt": iso_now()})
            return SessionSendResult(success=False, cached=True, error=f"Server unreachable: {e!s}")
        except httpx.HTTPStatusError as e:
            logger.warning(
                "session_rejected", extra={"task_id": task_id, "status_code": e.response.status_code}
            )
            return SessionSendResult(success=False, error=f"Server rejected session: {e.response.text}")
        return SessionSendResult(success=True, data=data)

    async def pending_sessions(self) -> list[dict[str, Any]]:
        """Sessions waiting in the local cache."""
        return await asyncio.to_thread(self._read_cache)

    async def flush_pending_sessions(self) -> int:
        """Replay cached sessions in order until one cannot be delivered.

        Sessions the server rejects (4xx/5xx) are dropped; sessions that still
        cannot reach the server stay cached.

        Returns:
            Number of sessions the server accepted
        """
        pending = await self.pending_sessions()
        sent = 0
        remaining: list[dict[str, Any]] = []
        for index, entry in enumerate(pending):
            try:
                await self._request(
                    "POST", f"/tasks/{entry['taskId']}/session", json={"duration": entry["duration"]}
                )
                sent += 1
            except httpx.TransportError:
                remaining = pending[index:]
                break
            except httpx.HTTPStatusError as e:
                logger.warning(
                    "cached_session_rejected",
                    extra={"task_id": entry.get("taskId"), "status_code": e.response.status_code},
                )
        await asyncio.to_thread(self._write_cache, remaining)
        logger.info("pending_sessions_flushed", extra={"sent": sent, "remaining": len(remaining)})
        return sent

    async def _append_cache(self, entry: dict[str, Any]) -> None:
        def _append() -> None:
            entries = self._read_cache()
            entries.append(entry)
            self._write_cache(entries)

        await asyncio.to_thread(_append)

    def _read_cache(self) -> list[dict[str, Any]]:
        try:
            data = json.loads(self.cache_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except json.JSONDecodeError:
            logger.warning("session_cache_corrupt", extra={"path": str(self.cache_path)})
            return []
        return [entry for entry in data if isinstance(entry, dict)] if isinstance(data, list) else []

    def _write_cache(self, entries: list[dict[str, Any]]) -> None:
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        self.cache_path.write_text(json.dumps(entries, indent=2, ensure_ascii=False), encoding="utf-8")
