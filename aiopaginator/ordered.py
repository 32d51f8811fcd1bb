"""
Ordering reassembler.

Replays the unordered scheduler's completions in original source order by
buffering early arrivals until the next expected index shows up. Failures
keep their slot: a PaginationError is emitted exactly where its item's
result would have been.

The buffer has no backpressure of its own. One permanently slow item lets
every faster completion pile up behind it.
"""

from __future__ import annotations

import logging
from typing import Generic, Iterable, Optional, TypeVar

from .config import PaginatorConfig
from .errors import PaginationError
from .types import Mode, OrderedResult, Transform
from .unordered import UnorderedCursor, UnorderedPaginator

T = TypeVar("T")
O = TypeVar("O")

logger = logging.getLogger(__name__)


class OrderedPaginator(Generic[T, O]):
    """Async iterable yielding transformed values (or errors) in source order."""

    def __init__(
        self,
        source: Iterable[T],
        transform: Transform,
        config: PaginatorConfig | None = None,
    ):
        self.unordered: UnorderedPaginator[T, O] = UnorderedPaginator(
            source, transform, config
        )

    @property
    def config(self) -> PaginatorConfig:
        return self.unordered.config

    def __aiter__(self) -> OrderedCursor[T, O]:
        return OrderedCursor(self.unordered.__aiter__())


class OrderedCursor(Generic[T, O]):
    def __init__(self, cursor: UnorderedCursor[T, O]):
        self.cursor = cursor
        self.expected_index = 0
        self.buffer: dict[int, OrderedResult[O]] = {}
        self._done = False

    @property
    def stats(self):
        return self.cursor.stats

    def __aiter__(self) -> OrderedCursor[T, O]:
        return self

    async def __anext__(self) -> OrderedResult[O]:
        while True:
            if self.expected_index in self.buffer:
                value = self.buffer.pop(self.expected_index)
                self.expected_index += 1
                return value

            if self._done:
                return self._flush_one()

            try:
                result = await self.cursor.__anext__()
            except StopAsyncIteration:
                self._done = True
                continue

            if isinstance(result, PaginationError):
                if result.index < 0:
                    # no slot to wait for
                    return result
                self.buffer[result.index] = result
            else:
                self.buffer[result.index] = result.data

            if len(self.buffer) > self.cursor.chunks:
                logger.debug(
                    f"Reassembly buffer holds {len(self.buffer)} items "
                    f"waiting on index {self.expected_index}"
                )

    def _flush_one(self) -> OrderedResult[O]:
        # Source is exhausted but a slot never arrived; release what is left
        if not self.buffer:
            raise StopAsyncIteration
        index = min(self.buffer)
        logger.warning(
            f"Index {self.expected_index} never completed; releasing index {index}"
        )
        self.expected_index = index + 1
        return self.buffer.pop(index)

    async def aclose(self) -> None:
        """Cancel in-flight work and drop anything still buffered."""
        self._done = True
        self.buffer.clear()
        await self.cursor.aclose()


def paginator(
    source: Iterable[T],
    transform: Transform,
    *,
    chunks: int = 1,
    offset: int = 0,
    mode: Mode | str = Mode.CHUNKS,
    limit: Optional[int] = None,
    size: Optional[int] = None,
) -> OrderedPaginator[T, O]:
    """
    Like ``paginator_unordered`` but yields plain transformed values in source
    order, with PaginationError envelopes occupying the slots of failed items.
    """
    config = PaginatorConfig.from_options(
        chunks=chunks, offset=offset, mode=mode, limit=limit, size=size
    )
    return OrderedPaginator(source, transform, config)
