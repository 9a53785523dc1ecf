"""First-success-wins concurrency over provider calls."""

import asyncio
import logging
from collections.abc import Awaitable, Iterable
from typing import TypeVar

from nutriscan.domain.errors import AllProvidersFailedError, NoProviderConfiguredError

T = TypeVar("T")

_logger = logging.getLogger(__name__)


async def race(tasks: Iterable[Awaitable[T]]) -> T:
    """Run all awaitables concurrently and return the first successful result.

    Tasks still running when a winner is found are cancelled and their
    outcomes discarded. When every task fails, AllProvidersFailedError carries
    the errors in the order the tasks finished.
    """
    futures = [asyncio.ensure_future(task) for task in tasks]
    if not futures:
        raise NoProviderConfiguredError("没有配置任何有效的 API Key")

    errors: list[Exception] = []
    try:
        for next_done in asyncio.as_completed(futures):
            try:
                return await next_done
            except Exception as exc:
                errors.append(exc)
    finally:
        _discard_pending(futures)

    _logger.warning("All %s raced tasks failed", len(errors))
    raise AllProvidersFailedError(errors)


def _discard_pending(futures: list[asyncio.Future]) -> None:
    """Cancel unfinished tasks and mark finished failures as retrieved."""
    for future in futures:
        if not future.done():
            future.cancel()
        elif not future.cancelled():
            future.exception()
