"""
Unordered scheduler: the heart of the paginator.

Key properties:
1. Bounded concurrency: never more than ``chunks`` transforms in flight
2. Pull-driven: each ``__anext__`` admits at most what the mode allows
3. First settled, first out: results come back in completion order
4. Error isolation: a failing item becomes a PaginationError value in the
   stream and scheduling carries on
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Generic, Iterable, Optional, TypeVar

from .config import PaginatorConfig
from .errors import InternalInvariantError, PaginationError
from .sequence import get_iterator
from .task import Task, TaskFailure, TaskHandle
from .types import ErrorKind, Mode, PaginationResult, Pointer, Transform
from .utils.async_utils import cancel_and_wait

T = TypeVar("T")
O = TypeVar("O")

logger = logging.getLogger(__name__)


@dataclass
class PaginatorStats:
    """Runtime statistics for one pass over the source."""

    submitted: int = 0
    completed: int = 0
    failed: int = 0
    retried: int = 0
    max_in_flight: int = 0
    total_latency_ms: float = 0.0
    max_latency_ms: float = 0.0

    @property
    def success_rate(self) -> float:
        total = self.completed + self.failed
        return self.completed / total if total > 0 else 1.0

    @property
    def avg_latency_ms(self) -> float:
        return self.total_latency_ms / self.completed if self.completed > 0 else 0.0


async def _always_fail() -> Pointer[Any]:
    raise InternalInvariantError("internal error")


def _internal_error(
    cause: Optional[BaseException], index: int = -1
) -> PaginationError[Any]:
    return PaginationError(cause, index, _always_fail, kind=ErrorKind.INTERNAL)


class UnorderedPaginator(Generic[T, O]):
    """
    Async iterable that transforms source items with bounded concurrency.

    Usage:
        async def fetch(page: int) -> Page:
            return await client.get_page(page)

        async for result in UnorderedPaginator(range(100), fetch, PaginatorConfig(chunks=8)):
            if isinstance(result, PaginationError):
                retry_later.append(result)
            else:
                handle(result.data, result.index)

    Each ``async for`` starts a new pass with its own source iterator, so a
    single-pass source can only be paginated once.
    """

    def __init__(
        self,
        source: Iterable[T],
        transform: Transform,
        config: PaginatorConfig | None = None,
    ):
        self.source = source
        self.transform = transform
        self.config = config or PaginatorConfig()

    def __aiter__(self) -> UnorderedCursor[T, O]:
        return UnorderedCursor(self)


class UnorderedCursor(Generic[T, O]):
    """One pass over the source. Owns the source iterator and the in-flight pool."""

    def __init__(self, paginator: UnorderedPaginator[T, O]):
        config = paginator.config
        self.transform = paginator.transform
        self.chunks = config.chunks
        self.mode = config.mode
        self.stats = PaginatorStats()
        self._iterator = get_iterator(paginator.source, config.offset, config.end)
        self._next_index = 0
        self._exhausted = False
        self._closed = False
        self._pool: dict[int, TaskHandle[O]] = {}
        # handles in the order they settled, fed by done callbacks
        self._settled: deque[TaskHandle[O]] = deque()

    @property
    def in_flight(self) -> int:
        return len(self._pool)

    def __aiter__(self) -> UnorderedCursor[T, O]:
        return self

    async def __anext__(self) -> PaginationResult[O]:
        if self._closed:
            raise StopAsyncIteration

        self._admit()
        if not self._pool:
            logger.debug(
                f"Pagination finished: {self.stats.completed} completed, "
                f"{self.stats.failed} failed"
            )
            raise StopAsyncIteration

        handle = await self._first_settled()
        self._remove(handle)
        return self._to_result(handle)

    async def aclose(self) -> None:
        """Stop the pass and cancel every attempt still in flight."""
        if self._closed:
            return
        self._closed = True
        handles = list(self._pool.values())
        self._pool.clear()
        self._settled.clear()
        cancelled = await cancel_and_wait(h.future for h in handles)
        if cancelled:
            logger.info(f"Closed paginator with {cancelled} attempt(s) cancelled")

    def _admit(self) -> None:
        if self.mode is Mode.INFINITE:
            free = self.chunks - len(self._pool)
        elif not self._pool:
            free = self.chunks
        else:
            free = 0

        for _ in range(free):
            if not self._add_next_task():
                break

        self.stats.max_in_flight = max(self.stats.max_in_flight, len(self._pool))

    def _add_next_task(self) -> bool:
        if self._exhausted:
            return False
        try:
            item = next(self._iterator)
        except StopIteration:
            self._exhausted = True
            return False

        task: Task[T, O] = Task(self._next_index, item, self.transform)
        self._next_index += 1
        handle = task.execute()
        handle.future.add_done_callback(lambda _: self._settled.append(handle))
        self._pool[handle.index] = handle
        self.stats.submitted += 1
        logger.debug(f"Admitted item {handle.index} ({len(self._pool)} in flight)")
        return True

    async def _first_settled(self) -> TaskHandle[O]:
        while True:
            while self._settled:
                handle = self._settled.popleft()
                if self._pool.get(handle.index) is handle:
                    return handle
            await asyncio.wait(
                [h.future for h in self._pool.values()],
                return_when=asyncio.FIRST_COMPLETED,
            )

    def _remove(self, handle: TaskHandle[O]) -> None:
        if self._pool.get(handle.index) is handle:
            del self._pool[handle.index]

    def _to_result(self, handle: TaskHandle[O]) -> PaginationResult[O]:
        future = handle.future
        if future.cancelled():
            # the slot is known, so the item stays retryable in place
            logger.warning(f"Attempt for item {handle.index} was cancelled externally")
            self.stats.failed += 1
            cause = asyncio.CancelledError()
            error = PaginationError(cause, handle.index, self._retry_for(handle.task))
            error.__cause__ = cause
            return error

        exc = future.exception()
        if exc is not None:
            if isinstance(exc, (KeyboardInterrupt, SystemExit)):
                raise exc
            logger.warning(f"Attempt for item {handle.index} raised {exc!r}")
            self.stats.failed += 1
            return _internal_error(exc, handle.index)

        outcome = future.result()
        if isinstance(outcome, Pointer):
            self.stats.completed += 1
            self.stats.total_latency_ms += handle.latency_ms
            self.stats.max_latency_ms = max(self.stats.max_latency_ms, handle.latency_ms)
            return outcome

        if isinstance(outcome, TaskFailure):
            self.stats.failed += 1
            logger.debug(f"Item {outcome.index} failed: {outcome.cause!r}")
            return outcome.to_public(self._retry_for(outcome.task))

        # Should never happen
        logger.warning(f"Unrecognised outcome for item {handle.index}: {outcome!r}")
        return _internal_error(TypeError(f"unexpected outcome {outcome!r}"))

    def _retry_for(self, task: Task[T, O]):
        async def retry() -> Pointer[O]:
            self.stats.retried += 1
            return await task.run()

        return retry


def paginator_unordered(
    source: Iterable[T],
    transform: Transform,
    *,
    chunks: int = 1,
    offset: int = 0,
    mode: Mode | str = Mode.CHUNKS,
    limit: Optional[int] = None,
    size: Optional[int] = None,
) -> UnorderedPaginator[T, O]:
    """
    Transform ``source`` with up to ``chunks`` concurrent calls, yielding
    ``Pointer(data, index)`` or ``PaginationError`` in completion order.

    Options are validated immediately; ConfigurationError is raised here,
    never from inside the iteration.
    """
    config = PaginatorConfig.from_options(
        chunks=chunks, offset=offset, mode=mode, limit=limit, size=size
    )
    return UnorderedPaginator(source, transform, config)
