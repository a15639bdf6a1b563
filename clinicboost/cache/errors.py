"""Cache exception hierarchy."""


class CacheError(Exception):
    """Base class for all cache errors."""


class KeyGenerationError(CacheError):
    """A cache key could not be derived from the call arguments."""
