"""Core types with clear schemas."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable, Generic, TypeVar, Union

if TYPE_CHECKING:
    from .errors import PaginationError

T = TypeVar("T")
O = TypeVar("O")


class Mode(str, Enum):
    """Admission policy for the in-flight pool."""

    CHUNKS = "chunks"  # refill only when the pool is empty (waves)
    INFINITE = "infinite"  # top up after every settlement (sliding window)


class ErrorKind(str, Enum):
    TASK_FAILED = "task-failed"
    INTERNAL = "internal-invariant-violated"


@dataclass(frozen=True, slots=True)
class Pointer(Generic[O]):
    """Result of one successful attempt, tagged with its source position."""

    data: O
    index: int


# Transform may be a coroutine function or return a plain value
Transform = Callable[[T], Union[Awaitable[O], O]]

PaginationResult = Union[Pointer[O], "PaginationError[O]"]
OrderedResult = Union[O, "PaginationError[O]"]

__all__ = [
    "Mode",
    "ErrorKind",
    "Pointer",
    "Transform",
    "PaginationResult",
    "OrderedResult",
]
