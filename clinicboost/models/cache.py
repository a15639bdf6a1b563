from pydantic import BaseModel, ConfigDict

from clinicboost.models.enums import EvictionStrategy


class CacheConfig(BaseModel):
    """Construction options for a :class:`~clinicboost.cache.store.Cache`.

    ``ttl`` is in seconds. Non-positive ``max_size`` or ``ttl`` values are
    accepted: the cache then retains nothing or expires immediately.
    """

    max_size: int = 1000
    ttl: float = 300.0
    strategy: EvictionStrategy = EvictionStrategy.LRU
    enable_stats: bool = True


class CacheStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    hits: int = 0
    misses: int = 0
    size: int = 0
    hit_rate: float = 0.0
    memory_usage: int = 0
    sets: int = 0
    deletes: int = 0
    evictions: int = 0
