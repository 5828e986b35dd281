"""Per-key FIFO serialization of async operations.

Each key keeps a tail future that completes when the most recently submitted
operation for that key has finished. A new operation waits on the previous
tail before running, so operations on one key run one at a time in submission
order while different keys stay independent.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


class KeyedOperationQueue:
    """Serialize read-modify-write cycles on a shared resource, one queue per key."""

    def __init__(self) -> None:
        self._tails: dict[str, asyncio.Future[None]] = {}

    async def with_exclusive_access(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        """Run operation once every earlier operation on the same key has finished.

        Args:
            key: Resource identifier (e.g. the data file path)
            operation: Zero-argument coroutine function to run exclusively

        Returns:
            Whatever the operation returns

        Raises:
            Exception: Whatever the operation raises; later operations still run
        """
        loop = asyncio.get_running_loop()
        previous = self._tails.get(key)
        done: asyncio.Future[None] = loop.create_future()
        self._tails[key] = done

        try:
            if previous is not None:
                # Shielded so our own cancellation never cancels the predecessor's marker
                await asyncio.shield(previous)
            return await operation()
        finally:
            if previous is not None and not previous.done():
                # Cancelled while still queued: hand off only after the predecessor finishes
                previous.add_done_callback(lambda _fut: self._release(key, done))
            else:
                self._release(key, done)

    def _release(self, key: str, done: asyncio.Future[None]) -> None:
        if not done.done():
            done.set_result(None)
        if self._tails.get(key) is done:
            del self._tails[key]

    def is_locked(self, key: str) -> bool:
        """Return True while any operation for key is queued or running."""
        return key in self._tails

    def pending_keys(self) -> list[str]:
        """Return the keys that currently have queued or running operations."""
        return list(self._tails)
