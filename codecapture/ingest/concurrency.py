"""
Concurrency Coordinator

Bounds how many per-file pipelines run at once. Every admitted task runs to
completion; one task failing never cancels the others.
"""

import asyncio
from typing import Awaitable, Callable, Iterable, TypeVar

from codecapture.configs import get_logger

logger = get_logger("ingest.concurrency")

T = TypeVar("T")
R = TypeVar("R")


class ConcurrencyCoordinator:
    """Semaphore-bounded task runner with wait-for-all semantics."""

    def __init__(self, max_concurrency: int):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.max_concurrency = max_concurrency
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._active = 0
        self._peak = 0

    @property
    def active(self) -> int:
        """Tasks currently running."""
        return self._active

    @property
    def peak(self) -> int:
        """Highest number of tasks that ran at the same time."""
        return self._peak

    async def run(self, task: Callable[[], Awaitable[R]]) -> R:
        async with self._semaphore:
            self._active += 1
            self._peak = max(self._peak, self._active)
            try:
                return await task()
            finally:
                self._active -= 1

    async def run_all(
        self,
        items: Iterable[T],
        worker: Callable[[T], Awaitable[R]],
    ) -> list[R | BaseException]:
        """
        Run worker over items with at most max_concurrency in flight.

        Returns:
            One entry per item, in item order: the worker's result or the
            exception it raised
        """
        items = list(items)
        logger.debug(f"Running {len(items)} tasks with concurrency {self.max_concurrency}")
        return await asyncio.gather(
            *(self.run(lambda item=item: worker(item)) for item in items),
            return_exceptions=True,
        )
