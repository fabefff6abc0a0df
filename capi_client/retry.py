"""Bounded retry for coroutine actions."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

from .errors import CapiRetryExhausted

T = TypeVar("T")


async def retry_async(
    action: Callable[[], Awaitable[T]],
    *,
    is_retryable: Callable[[Exception], bool],
    retries: int,
    on_retry: Callable[[Exception], Awaitable[None]],
    exhausted: type[CapiRetryExhausted] = CapiRetryExhausted,
) -> T:
    """Run ``action`` at most ``retries + 1`` times.

    Errors rejected by ``is_retryable`` propagate unchanged. Before each new
    attempt ``on_retry`` is awaited with the error that triggered it; errors
    raised by ``on_retry`` propagate as well.

    Raises:
        CapiRetryExhausted: ``exhausted`` carrying the attempt count and the
            last retryable error, once every attempt failed.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await action()
        except Exception as err:
            if not is_retryable(err):
                raise
            if attempt > retries:
                raise exhausted(attempt, err) from err
            await on_retry(err)
