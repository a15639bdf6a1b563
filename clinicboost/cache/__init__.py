from clinicboost.cache.errors import CacheError, KeyGenerationError
from clinicboost.cache.helpers import invalidate_cache, warm_cache
from clinicboost.cache.keys import default_key
from clinicboost.cache.memoize import create_selector, memoize, memoize_async, memoized
from clinicboost.cache.registry import (
    CacheRegistry,
    clear_all_caches,
    create_registry,
    get_memoization_stats,
)
from clinicboost.cache.store import Cache, CacheEntry, CacheMetrics

__all__ = [
    "Cache",
    "CacheEntry",
    "CacheError",
    "CacheMetrics",
    "CacheRegistry",
    "KeyGenerationError",
    "clear_all_caches",
    "create_registry",
    "create_selector",
    "default_key",
    "get_memoization_stats",
    "invalidate_cache",
    "memoize",
    "memoize_async",
    "memoized",
    "warm_cache",
]
