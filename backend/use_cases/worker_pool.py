"""Bounded worker pools for the fan-out stages.

Each stage gets its own WorkerPool value; there are no module-level
concurrency counters.
"""

import os
import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional, TypeVar

from domain.errors import InvalidConfiguration

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

FALLBACK_CPU_WORKERS = 4
DEFAULT_TRANSCRIBE_WORKERS = 5


def cpu_worker_count(configured: Optional[int] = None) -> int:
    """Pool size for CPU-bound work: explicit value, else detected CPUs, else 4."""
    if configured is not None:
        if configured < 1:
            raise InvalidConfiguration(f"worker count must be >= 1, got {configured}")
        return configured
    detected = os.cpu_count()
    if not detected:
        return FALLBACK_CPU_WORKERS
    return max(1, detected)


@dataclass(frozen=True)
class WorkerPool:
    """Fixed worker count over a task queue. Threads are created per batch."""
    max_workers: int
    name: str = "worker"

    def __post_init__(self):
        if self.max_workers < 1:
            raise InvalidConfiguration(f"{self.name} pool needs at least one worker, got {self.max_workers}")

    def imap_unordered(self, fn: Callable[[T], R], items: Iterable[T]) -> Iterator[tuple[T, "Future[R]"]]:
        """Run fn over items, yielding (item, finished future) in completion order.

        The caller decides what a failed future means; nothing is re-raised here.
        """
        items = list(items)
        if not items:
            return
        workers = min(self.max_workers, len(items))
        logger.debug(f"{self.name} pool: {len(items)} tasks on {workers} workers")
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=self.name) as pool:
            futures = {pool.submit(fn, item): item for item in items}
            for future in as_completed(futures):
                yield futures[future], future
