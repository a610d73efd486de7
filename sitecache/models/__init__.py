from sitecache.models.entry import CacheEntry
from sitecache.models.stats import CacheDebugInfo, CacheItemInfo, CacheStats, SweepResult

__all__ = [
    "CacheDebugInfo",
    "CacheEntry",
    "CacheItemInfo",
    "CacheStats",
    "SweepResult",
]
