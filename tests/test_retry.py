"""
Tests for the tenacity-backed retry helpers and the error hierarchy.
"""

import copy
import pickle

import pytest

from aiopaginator import (
    ConfigurationError,
    ErrorKind,
    InternalInvariantError,
    PaginationError,
    PaginatorError,
    Pointer,
    paginator,
    paginator_unordered,
    retry_failed,
    retry_with_backoff,
)

FAST = {"base_delay": 0.001, "jitter": 0.0, "max_backoff_seconds": 0.01}


def flaky(failures: int):
    """Transform that fails the first `failures` attempts for every item."""
    attempts: dict[int, int] = {}

    async def transform(num):
        attempts[num] = attempts.get(num, 0) + 1
        if attempts[num] <= failures:
            raise ConnectionError(f"attempt {attempts[num]} for {num}")
        return num * 100

    transform.attempts = attempts
    return transform


async def first_error(paginate):
    async for result in paginate:
        if isinstance(result, PaginationError):
            return result
    raise AssertionError("no error produced")


class TestRetryWithBackoff:
    """Tests for retry_with_backoff."""

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self):
        transform = flaky(failures=3)
        error = await first_error(paginator_unordered([5], transform))

        pointer = await retry_with_backoff(error, max_retries=3, **FAST)

        assert pointer == Pointer(data=500, index=0)
        assert transform.attempts == {5: 4}

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        transform = flaky(failures=10)
        error = await first_error(paginator_unordered([5], transform))

        with pytest.raises(PaginationError) as exc_info:
            await retry_with_backoff(error, max_retries=2, **FAST)

        assert isinstance(exc_info.value.cause, ConnectionError)
        assert transform.attempts == {5: 3}

    @pytest.mark.asyncio
    async def test_internal_error_is_not_retried(self):
        class Abort(BaseException):
            pass

        async def transform(num):
            raise Abort()

        error = await first_error(paginator_unordered([1], transform))

        with pytest.raises(InternalInvariantError):
            await retry_with_backoff(error, max_retries=5, **FAST)


class TestRetryFailed:
    """Tests for retry_failed."""

    @pytest.mark.asyncio
    async def test_retries_only_errors(self):
        attempts = {}

        async def transform(num):
            attempts[num] = attempts.get(num, 0) + 1
            if num == 3 or (num % 2 and attempts[num] == 1):
                raise ValueError(num)
            return num

        results = [r async for r in paginator(range(6), transform, chunks=2)]
        retried = [r async for r in retry_failed(results, max_retries=2, **FAST)]

        assert [r.index for r in retried if isinstance(r, Pointer)] == [1, 5]
        (still_failing,) = [r for r in retried if isinstance(r, PaginationError)]
        assert still_failing.index == 3
        assert attempts == {0: 1, 1: 2, 2: 1, 3: 3, 4: 1, 5: 2}


class TestErrorHierarchy:
    """Envelopes are exceptions with readable context."""

    def test_str_includes_context(self):
        async def never():
            raise AssertionError

        error = PaginationError(ValueError("x"), 4, never)

        assert isinstance(error, PaginatorError)
        assert isinstance(error, Exception)
        assert str(error) == "PaginationError (index=4, kind='task-failed')"
        assert "index=4" in repr(error)

    def test_base_error_without_context(self):
        assert str(PaginatorError("plain")) == "plain"

    @pytest.mark.parametrize(
        "clone",
        [copy.copy, copy.deepcopy, lambda e: pickle.loads(pickle.dumps(e))],
    )
    def test_envelope_can_be_copied(self, clone):
        error = PaginationError(ValueError("x"), 4, retry_nothing, kind=ErrorKind.INTERNAL)

        cloned = clone(error)

        assert type(cloned) is PaginationError
        assert cloned.index == 4
        assert cloned.kind is ErrorKind.INTERNAL
        assert isinstance(cloned.cause, ValueError)
        assert str(cloned) == str(error)

    def test_configuration_error_keeps_context_when_pickled(self):
        error = ConfigurationError("Invalid chunks=0", chunks=0)

        restored = pickle.loads(pickle.dumps(error))

        assert isinstance(restored, ValueError)
        assert restored.context == {"chunks": 0}
        assert str(restored) == "Invalid chunks=0 (chunks=0)"


async def retry_nothing():
    raise AssertionError("not retried in this test")
