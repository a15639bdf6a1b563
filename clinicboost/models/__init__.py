from clinicboost.models.cache import CacheConfig, CacheStats
from clinicboost.models.enums import EvictionStrategy

__all__ = [
    "CacheConfig",
    "CacheStats",
    "EvictionStrategy",
]
