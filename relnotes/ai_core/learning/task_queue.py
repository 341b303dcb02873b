"""
Background task queue.

A bounded pool of asyncio workers for fire-and-forget work such as pattern
extraction. `submit` returns a Future the caller may await or ignore; an
ignored failure is logged by the worker and never surfaces as an
"exception was never retrieved" warning.

Work still queued when the process exits is lost. Callers that need
durability keep their own "unprocessed" marker and sweep it later.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional

from relnotes.config import get_settings

logger = logging.getLogger(__name__)


class TaskQueueFullError(Exception):
    """Raised by submit() when the pending-task limit is reached."""

    pass


class TaskQueueClosedError(Exception):
    """Raised by submit() after shutdown() was called."""

    pass


class BackgroundTaskQueue:
    """Bounded asyncio worker pool."""

    def __init__(
        self,
        workers: Optional[int] = None,
        max_pending: Optional[int] = None,
        name: str = "background",
        logger: Optional[logging.Logger] = None,
    ):
        settings = get_settings()
        self.worker_count = max(1, workers if workers is not None else settings.extraction_workers)
        self.max_pending = max(1, max_pending if max_pending is not None else settings.extraction_queue_size)
        self.name = name
        self.logger = logger or logging.getLogger(__name__)
        self._queue: Optional[asyncio.Queue] = None
        self._workers: List[asyncio.Task] = []
        self._closed = False

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    def _ensure_started(self) -> None:
        if self._workers:
            return
        self._queue = asyncio.Queue(maxsize=self.max_pending)
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"{self.name}-worker-{i}")
            for i in range(self.worker_count)
        ]
        self.logger.info(f"Started {self.worker_count} {self.name} workers (max pending {self.max_pending})")

    @staticmethod
    def _mark_retrieved(future: asyncio.Future) -> None:
        if not future.cancelled():
            future.exception()

    def submit(self, func: Callable[..., Awaitable[Any]], *args: Any, label: str = "", **kwargs: Any) -> asyncio.Future:
        """
        Queue `func(*args, **kwargs)` for a worker. Must be called from a running loop.

        Raises:
            TaskQueueClosedError: After shutdown
            TaskQueueFullError: When max_pending tasks are already waiting
        """
        if self._closed:
            raise TaskQueueClosedError(f"{self.name} queue is shut down")

        self._ensure_started()
        future = asyncio.get_running_loop().create_future()
        future.add_done_callback(self._mark_retrieved)

        try:
            self._queue.put_nowait((func, args, kwargs, future, label or getattr(func, "__name__", "task")))
        except asyncio.QueueFull as e:
            future.cancel()
            raise TaskQueueFullError(f"{self.name} queue is full ({self.max_pending} pending)") from e

        return future

    async def _worker(self, index: int) -> None:
        while True:
            func, args, kwargs, future, label = await self._queue.get()
            try:
                if future.cancelled():
                    continue
                result = await func(*args, **kwargs)
            except asyncio.CancelledError:
                future.cancel()
                raise
            except Exception as e:
                self.logger.error(f"{self.name} task {label} failed: {e}")
                if not future.done():
                    future.set_exception(e)
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                self._queue.task_done()

    async def join(self) -> None:
        """Wait until every queued task has finished."""
        if self._queue is not None:
            await self._queue.join()

    async def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work, optionally drain the queue, then stop the workers."""
        self._closed = True
        if wait:
            await self.join()
        for task in self._workers:
            task.cancel()
        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

        while self._queue is not None and not self._queue.empty():
            _, _, _, future, _ = self._queue.get_nowait()
            future.cancel()
            self._queue.task_done()
        self.logger.info(f"{self.name} queue shut down")
