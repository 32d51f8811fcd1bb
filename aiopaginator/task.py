"""
Task: one unit of work bound to a single source item.

A Task captures its index, its item and the transform once, so it can be
re-attempted any number of times without touching the source again. Each
attempt runs as its own asyncio task and is represented by a TaskHandle,
the token the scheduler uses to evict the attempt from its in-flight pool.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, Optional, TypeVar, Union

from .errors import PaginationError
from .types import ErrorKind, Pointer, Transform
from .utils.async_utils import maybe_await

T = TypeVar("T")
O = TypeVar("O")


@dataclass(eq=False)
class TaskHandle(Generic[O]):
    """Token for a single attempt; compared by identity."""

    index: int
    attempt: int
    task: Task = field(repr=False)
    started: float = field(default_factory=time.perf_counter)
    finished: Optional[float] = None
    future: asyncio.Task = field(init=False, repr=False)

    @property
    def latency_ms(self) -> float:
        end = self.finished if self.finished is not None else time.perf_counter()
        return (end - self.started) * 1000


class TaskFailure(PaginationError[O]):
    """Internal failure envelope. Holds the live Task; never handed to callers."""

    def __init__(self, cause: Exception, task: Task):
        super().__init__(cause, task.index, task.run, kind=ErrorKind.TASK_FAILED)
        self.task = task

    def to_public(
        self, retry: Optional[Callable[[], Awaitable[Pointer[O]]]] = None
    ) -> PaginationError[O]:
        """Strip the Task reference, keeping cause, index and a retry closure."""
        error = PaginationError(self.cause, self.index, retry or self.task.run)
        error.__cause__ = self.cause
        return error


Outcome = Union[Pointer[O], TaskFailure[O]]


class Task(Generic[T, O]):
    def __init__(self, index: int, item: T, transform: Transform):
        self.index = index
        self.item = item
        self.transform = transform
        self.attempts = 0

    def execute(self) -> TaskHandle[O]:
        """Start a fresh attempt and return its handle."""
        self.attempts += 1
        handle: TaskHandle[O] = TaskHandle(
            index=self.index, attempt=self.attempts, task=self
        )
        handle.future = asyncio.create_task(self._attempt(handle))
        return handle

    async def run(self) -> Pointer[O]:
        """Run one attempt to completion, raising PaginationError on failure."""
        outcome = await self.execute().future
        if isinstance(outcome, TaskFailure):
            raise outcome.to_public()
        return outcome

    async def _attempt(self, handle: TaskHandle[O]) -> Outcome[O]:
        # failures are returned, not raised, so an abandoned attempt stays quiet
        try:
            data = await maybe_await(self.transform, self.item)
        except Exception as e:
            return TaskFailure(e, self)
        finally:
            handle.finished = time.perf_counter()
        return Pointer(data=data, index=self.index)

    def __repr__(self) -> str:
        return f"Task(index={self.index}, item={self.item!r}, attempts={self.attempts})"
