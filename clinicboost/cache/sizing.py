"""Rough memory-footprint estimates for cached values.

The numbers are diagnostic approximations, not a bound: strings count two
bytes per character, numbers eight, booleans four, and containers the sum
of their parts.
"""

from pydantic import BaseModel

ENTRY_OVERHEAD = 64


def estimate_size(obj: object) -> int:
    """Estimate the size of *obj* in bytes."""
    if obj is None:
        return 0
    if isinstance(obj, str):
        return len(obj) * 2
    # bool before int: bool is an int subclass
    if isinstance(obj, bool):
        return 4
    if isinstance(obj, (int, float)):
        return 8
    if isinstance(obj, BaseModel):
        return estimate_size(obj.model_dump())
    if isinstance(obj, dict):
        return sum(estimate_size(k) + estimate_size(v) for k, v in obj.items())
    if isinstance(obj, (list, tuple, set, frozenset)):
        return sum(estimate_size(item) for item in obj)
    return 0


def estimate_entry_size(key: str, value: object) -> int:
    """Key, value and fixed per-entry overhead."""
    return len(key) * 2 + estimate_size(value) + ENTRY_OVERHEAD
