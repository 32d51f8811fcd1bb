"""
aiopaginator - bounded-concurrency async iteration with inline errors.

Drives up to N async transforms over a source at once, yields results as
soon as they are ready, and turns per-item failures into retryable values
instead of aborting the loop.

Example usage:

    from aiopaginator import paginator, paginator_unordered, PaginationError

    # Completion order, each result tagged with its source index
    async for result in paginator_unordered(urls, fetch, chunks=8, mode="infinite"):
        if isinstance(result, PaginationError):
            failed.append(result)
        else:
            store(result.index, result.data)

    # Source order, failures keep their slot
    async for value in paginator(range(100), load_page, chunks=4, offset=10, size=20):
        ...

    # Opt-in retries with backoff
    pointer = await retry_with_backoff(failed[0], max_retries=5)
"""

from .config import PaginatorConfig, has_option
from .errors import (
    ConfigurationError,
    InternalInvariantError,
    PaginationError,
    PaginatorError,
)
from .ordered import OrderedCursor, OrderedPaginator, paginator
from .retry import retry_failed, retry_with_backoff
from .sequence import get_iterator, supports_random_access
from .types import ErrorKind, Mode, Pointer
from .unordered import (
    PaginatorStats,
    UnorderedCursor,
    UnorderedPaginator,
    paginator_unordered,
)

__version__ = "1.0.0"

__all__ = [
    # Paginators
    "paginator",
    "paginator_unordered",
    "OrderedPaginator",
    "OrderedCursor",
    "UnorderedPaginator",
    "UnorderedCursor",
    "PaginatorStats",
    # Config
    "PaginatorConfig",
    "Mode",
    "has_option",
    # Types
    "Pointer",
    "ErrorKind",
    # Source windowing
    "get_iterator",
    "supports_random_access",
    # Retry
    "retry_with_backoff",
    "retry_failed",
    # Errors
    "PaginatorError",
    "ConfigurationError",
    "PaginationError",
    "InternalInvariantError",
]
