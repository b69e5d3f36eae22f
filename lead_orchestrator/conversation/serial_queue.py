"""
Per-key serial execution of asyncio jobs.

Each key keeps a pointer to the last task scheduled for it. A new job's task
first waits for that tail to finish (however it finished) and then runs,
so jobs for one key form a FIFO chain while different keys run freely in
parallel. This is the only mutual exclusion in the system: every
conversation mutation happens inside a job for that conversation's key.

Usage:
    queue = SerialQueue(on_error=record_failure)
    queue.enqueue("5493415551234", lambda: process(message))
    await queue.drain()
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[None]]
ErrorHandler = Callable[[str, Exception], Awaitable[None]]


class SerialQueue:
    """FIFO per key, concurrent across keys, failures isolated per job."""

    def __init__(self, on_error: Optional[ErrorHandler] = None) -> None:
        self._on_error = on_error
        self._tails: dict[str, asyncio.Task] = {}

    def enqueue(self, key: str, job: Job) -> asyncio.Task:
        """Schedule ``job`` after every job already queued for ``key``.

        Must be called from a running event loop. The returned task never
        raises: job failures are logged and passed to ``on_error``.
        """
        previous = self._tails.get(key)
        task = asyncio.create_task(self._run(key, previous, job))
        self._tails[key] = task
        task.add_done_callback(lambda done, key=key: self._release(key, done))
        return task

    async def _run(self, key: str, previous: Optional[asyncio.Task], job: Job) -> None:
        if previous is not None and not previous.done():
            # asyncio.wait never raises on the awaited task's failure.
            await asyncio.wait([previous])
        try:
            await job()
        except Exception as exc:
            logger.exception("Queued job for %s failed", key)
            await self._report(key, exc)

    async def _report(self, key: str, exc: Exception) -> None:
        if self._on_error is None:
            return
        try:
            await self._on_error(key, exc)
        except Exception:
            logger.exception("Error handler for %s failed", key)

    def _release(self, key: str, task: asyncio.Task) -> None:
        if self._tails.get(key) is task:
            del self._tails[key]

    def pending_keys(self) -> list[str]:
        """Keys with a job queued or running."""
        return list(self._tails)

    def is_busy(self, key: str) -> bool:
        return key in self._tails

    async def drain(self) -> None:
        """Wait until every queued job, including ones queued meanwhile, is done."""
        while self._tails:
            await asyncio.wait(list(self._tails.values()))
