"""
Retry helpers for PaginationError envelopes.

Retrying is always opt-in. These helpers drive ``error.retry()`` through
tenacity with exponential backoff and jitter; the paginator itself never
retries on its own.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Iterable, TypeVar, Union

import tenacity as tc

from .errors import InternalInvariantError, PaginationError
from .types import ErrorKind, Pointer

O = TypeVar("O")

logger = logging.getLogger(__name__)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, PaginationError) and exc.kind is ErrorKind.TASK_FAILED


def create_retrying(
    max_retries: int = 3,
    base_delay: float = 0.1,
    backoff_factor: float = 2.0,
    max_backoff_seconds: float = 5.0,
    jitter: float = 0.1,
) -> tc.AsyncRetrying:
    """Build the tenacity controller used by retry_with_backoff."""
    return tc.AsyncRetrying(
        stop=tc.stop_after_attempt(max_retries),
        wait=tc.wait_exponential_jitter(
            initial=base_delay,
            exp_base=backoff_factor,
            max=max_backoff_seconds,
            jitter=jitter,
        ),
        retry=tc.retry_if_exception(_is_retryable),
        before_sleep=tc.before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


async def retry_with_backoff(
    error: PaginationError[O],
    *,
    max_retries: int = 3,
    base_delay: float = 0.1,
    backoff_factor: float = 2.0,
    max_backoff_seconds: float = 5.0,
    jitter: float = 0.1,
) -> Pointer[O]:
    """
    Re-attempt a failed item up to ``max_retries`` times.

    Returns the Pointer of the first successful attempt. When every attempt
    fails the last PaginationError is raised. INTERNAL envelopes are tried
    once and raise InternalInvariantError.
    """
    retrying = create_retrying(
        max_retries=max_retries,
        base_delay=base_delay,
        backoff_factor=backoff_factor,
        max_backoff_seconds=max_backoff_seconds,
        jitter=jitter,
    )
    return await retrying.wraps(error.retry)()


async def retry_failed(
    results: Iterable[Union[Pointer[O], PaginationError[O], O]],
    **kwargs,
) -> AsyncIterator[Union[Pointer[O], PaginationError[O]]]:
    """
    Walk collected results and re-attempt every PaginationError.

    Successful retries come back as Pointers; items that still fail come back
    as their final PaginationError. Non-error values are skipped.
    """
    for result in results:
        if not isinstance(result, PaginationError):
            continue
        try:
            yield await retry_with_backoff(result, **kwargs)
        except PaginationError as e:
            logger.error(f"Item {result.index} still failing after retries: {e.cause!r}")
            yield e
        except InternalInvariantError:
            logger.error(f"Skipping unrecoverable internal error: {result!r}")
            yield result
