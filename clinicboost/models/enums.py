from enum import StrEnum


class EvictionStrategy(StrEnum):
    LRU = "lru"
    LFU = "lfu"
    FIFO = "fifo"
