"""
Windowed source sequencer.

Turns a random-access sequence or a single-pass iterable into a lazy cursor
restricted to an (offset, limit) window. Random-access sources are sliced
without side effects; single-pass sources are consumed destructively.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from itertools import islice
from typing import Iterable, Iterator, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def supports_random_access(source: Iterable[T]) -> bool:
    """Known length and side-effect-free slicing."""
    return isinstance(source, Sequence)


def get_iterator(
    source: Iterable[T],
    offset: int = 0,
    limit: Optional[int] = None,
) -> Iterator[T]:
    """
    Return an iterator over ``source`` windowed by ``offset`` and ``limit``.

    For random-access sources the window is the slice ``source[offset:limit]``,
    so ``limit`` is an end position and follows slice rules.

    For single-pass sources exactly ``offset`` items are discarded first (they
    are lost even if the source had fewer), then at most ``limit`` items are
    yielded. A ``limit`` of zero or below means "no limit" here, not "nothing".
    """
    if supports_random_access(source):
        return iter(source[offset:limit])  # type: ignore[index]

    iterator = iter(source)
    if offset:
        # consume recipe: advance without materialising skipped items
        next(islice(iterator, offset, offset), None)
    if limit and limit > 0:
        return islice(iterator, limit)
    if limit is not None:
        logger.debug(f"Ignoring non-positive limit={limit} for single-pass source")
    return iterator
