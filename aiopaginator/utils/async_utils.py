import asyncio
import inspect
import logging
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)


async def maybe_await(func: Callable, *args, **kwargs) -> Any:
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result


async def cancel_and_wait(tasks: Iterable[asyncio.Future]) -> int:
    """
    Cancel every unfinished task and wait until they have all settled.

    Returns the number of tasks that were actually cancelled.
    """
    pending = [task for task in tasks if not task.done()]
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
        logger.debug(f"Cancelled {len(pending)} in-flight task(s)")
    return len(pending)
