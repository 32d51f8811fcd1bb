"""
Tests for Task and TaskHandle.
"""

import pytest

from aiopaginator import PaginationError, Pointer
from aiopaginator.task import Task, TaskFailure


class TestTask:
    """Tests for Task."""

    @pytest.mark.asyncio
    async def test_execute_success(self):
        calls = []

        async def transform(item):
            calls.append(item)
            return item.upper()

        task = Task(3, "x", transform)
        handle = task.execute()

        assert handle.index == 3
        assert handle.attempt == 1
        assert await handle.future == Pointer(data="X", index=3)
        assert calls == ["x"]
        assert handle.finished is not None
        assert handle.latency_ms >= 0

    @pytest.mark.asyncio
    async def test_failure_is_returned_not_raised(self):
        async def transform(item):
            raise ValueError(item)

        task = Task(0, "bad", transform)
        outcome = await task.execute().future

        assert isinstance(outcome, TaskFailure)
        assert outcome.task is task
        assert outcome.index == 0
        assert isinstance(outcome.cause, ValueError)

    @pytest.mark.asyncio
    async def test_each_attempt_gets_fresh_handle(self):
        task = Task(1, 2, lambda n: n * 2)

        first = task.execute()
        second = task.execute()

        assert first is not second
        assert (first.attempt, second.attempt) == (1, 2)
        assert await first.future == await second.future == Pointer(data=4, index=1)
        assert task.attempts == 2

    @pytest.mark.asyncio
    async def test_run_raises_public_envelope(self):
        async def transform(item):
            raise RuntimeError("nope")

        with pytest.raises(PaginationError) as exc_info:
            await Task(9, None, transform).run()

        assert type(exc_info.value) is PaginationError
        assert exc_info.value.index == 9
