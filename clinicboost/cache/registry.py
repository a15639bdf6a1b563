"""The application's standard caches, built from settings."""

import logging

from clinicboost.cache.store import Cache
from clinicboost.config import Settings, get_settings
from clinicboost.models.cache import CacheConfig, CacheStats

logger = logging.getLogger(__name__)


class CacheRegistry:
    """Holds the "general", "selector" and "api" caches.

    Constructed explicitly and passed to call sites, so tests can build
    isolated registries.
    """

    def __init__(self, general: Cache, selector: Cache, api: Cache) -> None:
        self.general = general
        self.selector = selector
        self.api = api

    def caches(self) -> dict[str, Cache]:
        return {"general": self.general, "selector": self.selector, "api": self.api}

    async def start(self) -> None:
        """Start the expiry sweep of every cache."""
        for cache in self.caches().values():
            cache.start_cleanup()

    async def close(self) -> None:
        """Stop every expiry sweep."""
        for cache in self.caches().values():
            await cache.stop_cleanup()

    async def __aenter__(self) -> "CacheRegistry":
        await self.start()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object
    ) -> None:
        await self.close()


def create_registry(settings: Settings | None = None) -> CacheRegistry:
    """Build the three standard caches from *settings* (default: global settings)."""
    settings = settings or get_settings()

    def build(name: str, max_size: int, ttl: float) -> Cache:
        config = CacheConfig(
            max_size=max_size,
            ttl=ttl,
            strategy=settings.cache_strategy,
            enable_stats=settings.cache_enable_stats,
        )
        return Cache(config, name=name)

    registry = CacheRegistry(
        general=build("general", settings.general_cache_max_size, settings.general_cache_ttl),
        selector=build("selector", settings.selector_cache_max_size, settings.selector_cache_ttl),
        api=build("api", settings.api_cache_max_size, settings.api_cache_ttl),
    )
    logger.debug("Cache registry created (strategy=%s)", settings.cache_strategy.value)
    return registry


def get_memoization_stats(registry: CacheRegistry) -> dict[str, CacheStats]:
    """Statistics snapshot for each cache in *registry*, by name."""
    return {name: cache.get_stats() for name, cache in registry.caches().items()}


def clear_all_caches(registry: CacheRegistry) -> None:
    for cache in registry.caches().values():
        cache.clear()
