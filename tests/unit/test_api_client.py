"""Tests for the HTTP API client and its offline session cache."""

import json
from pathlib import Path

import httpx
import pytest

from src.interface.api_client import TaskApiClient


def _client(handler, tmp_path: Path) -> TaskApiClient:
    return TaskApiClient(
        "http://timer.test/",
        cache_path=tmp_path / "pending.json",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.unit
async def test_get_remaining(tmp_path: Path) -> None:
    """Test the remaining-time endpoint is called and decoded."""
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(200, json={"taskId": "a", "remainingMinutes": 10})

    client = _client(handler, tmp_path)

    data = await client.get_remaining("a")

    assert data["remainingMinutes"] == 10
    assert seen == ["/tasks/a/remaining"]


@pytest.mark.unit
async def test_get_progress_error_status_raises(tmp_path: Path) -> None:
    """Test error statuses surface as HTTPStatusError."""
    client = _client(lambda request: httpx.Response(404, json={"detail": "Task not found"}), tmp_path)

    with pytest.raises(httpx.HTTPStatusError):
        await client.get_progress("missing")


@pytest.mark.unit
async def test_get_batch_splits_into_chunks_of_50(tmp_path: Path) -> None:
    """Test large ID lists are sent as several batch requests and merged."""
    sizes: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        ids = json.loads(request.content)["taskIds"]
        sizes.append(len(ids))
        return httpx.Response(
            200,
            json={
                "success": {task_id: {"_id": task_id} for task_id in ids},
                "errors": {},
                "count": {"requested": len(ids), "successful": len(ids), "failed": 0},
                "timestamp": "2024-01-02T00:00:00.000Z",
            },
        )

    client = _client(handler, tmp_path)

    merged = await client.get_batch([f"t{i}" for i in range(120)], kind="progress")

    assert sizes == [50, 50, 20]
    assert len(merged["success"]) == 120
    assert merged["count"] == {"requested": 120, "successful": 120, "failed": 0}


@pytest.mark.unit
async def test_send_session_success(tmp_path: Path) -> None:
    """Test a delivered session is not cached."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert json.loads(request.content) == {"duration": 1500}
        return httpx.Response(200, json={"saved": True, "todayTotal": 1500})

    client = _client(handler, tmp_path)

    result = await client.send_session("a", 1500)

    assert result.success is True
    assert result.cached is False
    assert result.data == {"saved": True, "todayTotal": 1500}
    assert await client.pending_sessions() == []


@pytest.mark.unit
async def test_send_session_unreachable_is_cached(tmp_path: Path) -> None:
    """Test a session is cached locally when the server cannot be reached."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler, tmp_path)

    result = await client.send_session("a", 1500)

    assert result.success is False
    assert result.cached is True
    pending = await client.pending_sessions()
    assert len(pending) == 1
    assert pending[0]["taskId"] == "a"
    assert pending[0]["duration"] == 1500
    assert pending[0]["cachedAt"].endswith("Z")


@pytest.mark.unit
async def test_send_session_rejected_is_not_cached(tmp_path: Path) -> None:
    """Test a session the server rejects is reported, not cached."""
    client = _client(lambda request: httpx.Response(400, json={"detail": "Only TODO tasks track time"}), tmp_path)

    result = await client.send_session("c", 60)

    assert result.success is False
    assert result.cached is False
    assert "Only TODO tasks track time" in result.error
    assert await client.pending_sessions() == []


@pytest.mark.unit
async def test_flush_stops_at_first_unreachable(tmp_path: Path) -> None:
    """Test flushing delivers in order and keeps what could not be sent."""
    cache = tmp_path / "pending.json"
    cache.write_text(
        json.dumps(
            [
                {"taskId": "a", "duration": 60},
                {"taskId": "rejected", "duration": 60},
                {"taskId": "offline", "duration": 60},
                {"taskId": "b", "duration": 60},
            ]
        ),
        encoding="utf-8",
    )

    def handler(request: httpx.Request) -> httpx.Response:
        if "/rejected/" in request.url.path:
            return httpx.Response(404, json={"detail": "Task not found"})
        if "/offline/" in request.url.path:
            raise httpx.ReadTimeout("timed out", request=request)
        return httpx.Response(200, json={"saved": True})

    client = _client(handler, tmp_path)

    sent = await client.flush_pending_sessions()

    assert sent == 1
    assert [entry["taskId"] for entry in await client.pending_sessions()] == ["offline", "b"]


@pytest.mark.unit
async def test_flush_clears_cache_when_all_sent(tmp_path: Path) -> None:
    """Test a fully delivered cache ends up empty."""
    (tmp_path / "pending.json").write_text(json.dumps([{"taskId": "a", "duration": 60}]), encoding="utf-8")
    client = _client(lambda request: httpx.Response(200, json={"saved": True}), tmp_path)

    assert await client.flush_pending_sessions() == 1
    assert await client.pending_sessions() == []


@pytest.mark.unit
async def test_corrupt_cache_reads_as_empty(tmp_path: Path) -> None:
    """Test a damaged cache file does not break the client."""
    (tmp_path / "pending.json").write_text("{oops", encoding="utf-8")
    client = _client(lambda request: httpx.Response(200, json={}), tmp_path)

    assert await client.pending_sessions() == []
