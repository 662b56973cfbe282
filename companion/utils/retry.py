"""
RETRY UTILITY
=============

Awaits a coroutine factory and, if it raises, retries a few times with
exponential backoff. Used by the completion service so a rate-limited key or
a network blip moves on to the next attempt instead of failing the turn.

Example:
  reply = await with_retry(lambda: llm.ainvoke(messages), max_retries=3, initial_delay=1.0)
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar


logger = logging.getLogger("companion")

# Type variable: with_retry returns whatever the awaited callable returns.
T = TypeVar("T")


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    initial_delay: float = 1.0,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    on_retry: Optional[Callable[[int, BaseException], None]] = None,
) -> T:
    """
    Await fn(). If it raises one of retry_on, sleep initial_delay seconds and try
    again; the delay doubles each retry. After max_retries attempts (including the
    first), re-raise the last exception. Anything not in retry_on propagates at once.
    """
    attempts = max(max_retries, 1)
    delay = initial_delay

    for attempt in range(attempts):
        try:
            return await fn()
        except retry_on as e:
            if attempt == attempts - 1:
                raise
            logger.warning(
                "Attempt %s/%s failed (%s). Retrying in %.1fs: %s",
                attempt + 1,
                attempts,
                getattr(fn, "__name__", "call"),
                delay,
                e,
            )
            if on_retry is not None:
                on_retry(attempt + 1, e)
            await asyncio.sleep(delay)
            delay *= 2  # Exponential backoff: 1s, 2s, 4s, ...

    raise RuntimeError("unreachable")
