"""
Error hierarchy for aiopaginator.

Design:
- All errors inherit from PaginatorError
- Per-item failures are values, not faults: they travel through the result
  stream as PaginationError envelopes and are never raised by the iterator
- Configuration errors are raised eagerly, before any iteration starts
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Generic, TypeVar

from .types import ErrorKind

if TYPE_CHECKING:
    from .types import Pointer

O = TypeVar("O")


class PaginatorError(Exception):
    """Base class for all paginator errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __reduce__(self):
        # args only hold the message; rebuild from the constructor signature
        return (type(self), (self.message,), self.__dict__)


class ConfigurationError(PaginatorError, ValueError):
    """Invalid paginator configuration."""

    pass


class PaginationError(PaginatorError, Generic[O]):
    """
    A per-item failure delivered inline in the result stream.

    Attributes:
        cause: The exception raised by the transform (or the internal fault)
        index: Position of the item in the windowed source, -1 if unknown
        kind: Whether the transform failed or an internal invariant broke

    Calling ``await error.retry()`` runs the transform again on the same item
    under the same index. It returns a Pointer on success and raises a new
    PaginationError on failure. Retrying never consumes another source item
    and never re-injects the value into the original stream.
    """

    def __init__(
        self,
        cause: BaseException | None,
        index: int,
        retry: Callable[[], Awaitable[Pointer[O]]],
        *,
        kind: ErrorKind = ErrorKind.TASK_FAILED,
    ):
        super().__init__("PaginationError", index=index, kind=kind.value)
        self.cause = cause
        self.index = index
        self.kind = kind
        self._retry = retry

    def __reduce__(self):
        return (
            _rebuild_pagination_error,
            (type(self), self.cause, self.index, self._retry, self.kind),
            self.__dict__,
        )

    async def retry(self) -> Pointer[O]:
        """Re-attempt the failed item."""
        return await self._retry()

    @property
    def retryable(self) -> bool:
        return self.kind is ErrorKind.TASK_FAILED

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(cause={self.cause!r}, index={self.index}, "
            f"kind={self.kind.value})"
        )


class InternalInvariantError(PaginatorError):
    """Raised by the retry of an INTERNAL envelope; it can never succeed."""

    pass


def _rebuild_pagination_error(cls, cause, index, retry, kind):
    error = PaginationError.__new__(cls)
    PaginationError.__init__(error, cause, index, retry, kind=kind)
    return error
