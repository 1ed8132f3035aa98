"""Fixed-interval poller for video generation jobs."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from smileforward.widget.client import ApiResult

logger = logging.getLogger(__name__)

COMPLETED = "completed"
ERROR = "error"
TIMEOUT_MESSAGE = "Video generation timed out"


class VideoJobPoller:
    """Polls a video job until it completes, fails, times out or is stopped.

    The first check runs one interval after ``start()``. The owning view must
    call ``stop()`` on teardown.
    """

    def __init__(
        self,
        check_status: Callable[[int], Awaitable[ApiResult]],
        interval: float = 5.0,
        max_duration: float = 600.0,
        on_complete: Callable[[dict[str, Any]], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._check_status = check_status
        self.interval = interval
        self.max_duration = max_duration
        self._on_complete = on_complete
        self._on_error = on_error
        self._sleep = sleep
        self._clock = clock
        self._task: asyncio.Task | None = None
        self.poll_count = 0
        self.job: dict[str, Any] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, job_id: int) -> asyncio.Task:
        """Begin polling ``job_id`` in a background task."""
        if self.running:
            raise RuntimeError("Poller is already running")
        self.poll_count = 0
        self.job = {"id": job_id, "status": "pending"}
        self._task = asyncio.create_task(self._run(job_id))
        return self._task

    def stop(self) -> None:
        """Cancel polling. Safe to call more than once."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for the polling task to finish or be cancelled."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            # Only a stop() of the polling task is absorbed
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise

    async def _run(self, job_id: int) -> None:
        started = self._clock()
        while True:
            await self._sleep(self.interval)

            if self._clock() - started >= self.max_duration:
                logger.warning(f"Video job {job_id} timed out after {self.poll_count} polls")
                self._fail(TIMEOUT_MESSAGE)
                return

            self.poll_count += 1
            try:
                result = await self._check_status(job_id)
            except Exception as e:
                logger.warning(f"Polling error for video job {job_id}: {e}")
                continue

            if not result.success:
                logger.warning(f"Polling error for video job {job_id}: {result.error}")
                continue

            record = result.data if isinstance(result.data, dict) else {}
            status = record.get("status")

            if status == COMPLETED:
                self.job = record
                logger.info(f"Video job {job_id} completed after {self.poll_count} polls")
                if self._on_complete:
                    self._on_complete(record)
                return

            if status == ERROR:
                message = (record.get("metadata") or {}).get("error") or "Video generation failed"
                logger.info(f"Video job {job_id} failed: {message}")
                self.job = record
                self._fail(str(message))
                return

    def _fail(self, message: str) -> None:
        if self._on_error:
            self._on_error(message)
