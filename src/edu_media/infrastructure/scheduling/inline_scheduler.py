"""Job scheduler that runs jobs as tasks on the running event loop."""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, Set

from ...protocols import Job

logger = logging.getLogger(__name__)


class InlineJobScheduler:
    """JobScheduler for single-process deployments and tests.

    Jobs run as background tasks after ``delay``. ``drain`` waits for every
    task scheduled so far.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    async def run_after(self, delay: timedelta, job: Job, payload: Dict[str, Any]) -> None:
        seconds = max(delay.total_seconds(), 0.0)

        async def _run() -> None:
            if seconds:
                await asyncio.sleep(seconds)
            try:
                await job(**payload)
            except Exception as e:
                logger.error(f"Scheduled job {getattr(job, '__name__', job)} failed: {e}")

        task = asyncio.create_task(_run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until all scheduled jobs have finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
