"""Fire-and-forget background jobs.

Cache population scheduled from request handlers must never hold up the
response. Jobs run as detached ``asyncio`` tasks; the writer keeps a reference
to each until it finishes and reports failures through logging only.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Set

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[object]]


class BackgroundWriter:
    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, job: Job, name: str = "background-job") -> asyncio.Task:
        """Start *job* on the running loop without awaiting it."""

        loop = asyncio.get_running_loop()
        task = loop.create_task(self._run(job, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, job: Job, name: str) -> None:
        try:
            await job()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.warning("background job %s failed", name, exc_info=True)

    async def drain(self) -> None:
        """Wait for every outstanding job."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
