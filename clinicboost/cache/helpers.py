"""Invalidation and warm-up helpers."""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any

from clinicboost.cache.memoize import memoize_async
from clinicboost.cache.store import Cache

logger = logging.getLogger(__name__)


def invalidate_cache(pattern: str | re.Pattern[str], cache: Cache) -> int:
    """Delete every key matching *pattern*.

    A string matches as a literal substring, a compiled pattern with
    ``search``. Used for coarse invalidation, e.g. every entry of one API
    resource by its key prefix.

    Returns:
        Number of entries removed.
    """
    if isinstance(pattern, str):
        doomed = [k for k in cache.keys() if pattern in k]
        label = pattern
    else:
        doomed = [k for k in cache.keys() if pattern.search(k)]
        label = pattern.pattern

    for key in doomed:
        cache.delete(key)
    logger.info("Invalidated %d entries matching %r in cache '%s'", len(doomed), label, cache.name)
    return len(doomed)


async def warm_cache(
    fn: Callable[..., Awaitable[Any]],
    args_list: Iterable[Sequence[Any]],
    cache: Cache,
    *,
    key_generator: Callable[..., str] | None = None,
) -> None:
    """Populate *cache* by calling *fn* once per argument tuple, concurrently.

    Keys match those of ``memoize_async(fn, cache, key_generator=...)``, so
    later memoized calls hit. The first failure propagates.
    """
    warm = memoize_async(fn, cache, key_generator=key_generator)
    calls = [warm(*args) for args in args_list]
    await asyncio.gather(*calls)
    logger.debug("Warmed cache '%s' with %d calls", cache.name, len(calls))
