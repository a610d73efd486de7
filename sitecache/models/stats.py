from pydantic import BaseModel, computed_field


class CacheStats(BaseModel):
    """Point-in-time snapshot of cache counters and occupancy."""

    hits: int = 0
    misses: int = 0
    size_bytes: int = 0
    entry_count: int = 0
    oldest_entry_timestamp: float | None = None
    newest_entry_timestamp: float | None = None
    evictions: int = 0
    expirations: int = 0
    sweeps: int = 0
    max_size_bytes: int = 0
    max_items: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total


class CacheItemInfo(BaseModel):
    key: str
    size_bytes: int
    age: float
    hits: int
    category: str
    expired: bool


class CacheDebugInfo(CacheStats):
    """Stats snapshot extended with a per-entry listing.

    Entries that are already expired but have not been swept or read yet are
    included with ``expired=True``.
    """

    items: list[CacheItemInfo] = []


class SweepResult(BaseModel):
    removed_entries: int = 0
    removed_bytes: int = 0
    remaining_entries: int = 0
    remaining_bytes: int = 0
