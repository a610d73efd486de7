from typing import Any

from pydantic import BaseModel


class CacheEntry(BaseModel):
    """A single stored value plus the bookkeeping the engine needs."""

    key: str
    value: Any
    created_at: float
    last_accessed_at: float
    expires_at: float
    size_bytes: int
    hit_count: int = 0
    category: str = "unknown"

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
