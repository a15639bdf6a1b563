"""Function memoization on top of :class:`~clinicboost.cache.store.Cache`."""

import asyncio
import functools
import inspect
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from clinicboost.cache.keys import default_key, namespace_for

if TYPE_CHECKING:
    from clinicboost.cache.store import Cache

T = TypeVar("T")

_MISSING = object()


def _key_function(
    fn: Callable[..., Any],
    key_generator: Callable[..., str] | None,
    namespace: str | None,
) -> Callable[..., str]:
    # Custom generators own the whole key so callers can invalidate by prefix
    if key_generator is not None:
        return key_generator

    prefix = namespace or namespace_for(fn)

    def make_key(*args: Any, **kwargs: Any) -> str:
        return f"{prefix}:{default_key(*args, **kwargs)}"

    return make_key


def memoize(
    fn: Callable[..., T],
    cache: "Cache",
    *,
    key_generator: Callable[..., str] | None = None,
    namespace: str | None = None,
    ttl: float | None = None,
    tags: Iterable[str] = (),
) -> Callable[..., T]:
    """Cache the results of *fn* in *cache*.

    Any return value is cached, ``None`` included; only a real miss calls
    *fn*. Exceptions from *fn* propagate and leave nothing behind.

    Args:
        fn: Function to wrap.
        cache: Cache holding the results.
        key_generator: Builds the cache key from the call arguments.
            Defaults to ``"<namespace>:<canonical JSON of the arguments>"``.
        namespace: Prefix for default keys. Defaults to
            :func:`~clinicboost.cache.keys.namespace_for` of *fn*.
        ttl: Lifetime of the cached results in seconds. Defaults to the
            cache's TTL.
        tags: Tags attached to every cached result, for ``clear_by_tags``.
    """
    make_key = _key_function(fn, key_generator, namespace)
    tags = tuple(tags)

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        key = make_key(*args, **kwargs)
        cached = cache.get(key, _MISSING)
        if cached is not _MISSING:
            return cached

        result = fn(*args, **kwargs)
        cache.set(key, result, ttl=ttl, tags=tags)
        return result

    return wrapper


def _retrieve_exception(task: asyncio.Task[Any]) -> None:
    # Every waiter may have been cancelled; nobody else reads the failure
    if not task.cancelled():
        task.exception()


def memoize_async(
    fn: Callable[..., Awaitable[T]],
    cache: "Cache",
    *,
    key_generator: Callable[..., str] | None = None,
    namespace: str | None = None,
    ttl: float | None = None,
    tags: Iterable[str] = (),
) -> Callable[..., Awaitable[T]]:
    """Cache the results of coroutine function *fn* in *cache*.

    Concurrent calls for the same key share a single task, so *fn* runs at
    most once per key while a call is in flight. A failure is re-raised to
    every waiter and is not cached. Cancelling a waiter leaves the shared
    call running for the others.

    Args: as for :func:`memoize`.
    """
    make_key = _key_function(fn, key_generator, namespace)
    tags = tuple(tags)
    pending: dict[str, asyncio.Task[T]] = {}

    async def run(key: str, args: tuple, kwargs: dict) -> T:
        try:
            result = await fn(*args, **kwargs)
        finally:
            pending.pop(key, None)
        cache.set(key, result, ttl=ttl, tags=tags)
        return result

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        key = make_key(*args, **kwargs)
        cached = cache.get(key, _MISSING)
        if cached is not _MISSING:
            return cached

        task = pending.get(key)
        if task is None:
            task = asyncio.ensure_future(run(key, args, kwargs))
            task.add_done_callback(_retrieve_exception)
            pending[key] = task
        return await asyncio.shield(task)

    wrapper.pending = pending  # type: ignore[attr-defined]
    return wrapper


def memoized(
    cache: "Cache",
    *,
    key_generator: Callable[..., str] | None = None,
    namespace: str | None = None,
    ttl: float | None = None,
    tags: Iterable[str] = (),
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator form of :func:`memoize` / :func:`memoize_async`.

    Coroutine functions get the async wrapper::

        @memoized(api_cache, key_generator=lambda pid: f"patients:{pid}", tags=["patients"])
        async def fetch_patient(pid: str) -> dict: ...
    """
    options: dict[str, Any] = {
        "key_generator": key_generator,
        "namespace": namespace,
        "ttl": ttl,
        "tags": tuple(tags),
    }

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        if inspect.iscoroutinefunction(fn):
            return memoize_async(fn, cache, **options)
        return memoize(fn, cache, **options)

    return decorator


def create_selector(
    dependencies: Sequence[Callable[..., Any]],
    combiner: Callable[..., T],
    cache: "Cache",
    *,
    namespace: str | None = None,
) -> Callable[..., T]:
    """Build a selector that recomputes only when a dependency output changes.

    Every call runs each dependency on the call's arguments; the combiner
    result is cached under the tuple of dependency outputs.

    Args:
        dependencies: Input selectors, each called with the selector's arguments.
        combiner: Receives the dependency outputs positionally.
        cache: Cache holding combiner results.
        namespace: Key prefix. Defaults to
            :func:`~clinicboost.cache.keys.namespace_for` of the combiner, so
            two lambda combiners never share results.
    """
    combine = memoize(combiner, cache, namespace=namespace)

    @functools.wraps(combiner)
    def selector(*args: Any, **kwargs: Any) -> T:
        return combine(*(dep(*args, **kwargs) for dep in dependencies))

    return selector
