"""In-memory cache with TTL expiry, size/count bounds, metrics and pattern invalidation."""

import asyncio
import contextlib
import dataclasses
import datetime
import json
import logging
import re
import threading
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from sitecache.errors import CacheConfigError, InvalidPatternError
from sitecache.formatting import format_age, format_bytes, format_number, format_percent
from sitecache.models import CacheDebugInfo, CacheEntry, CacheItemInfo, CacheStats, SweepResult

if TYPE_CHECKING:
    from sitecache.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE_BYTES = 50 * 1024 * 1024
DEFAULT_TTL_SECONDS = 5 * 60.0
DEFAULT_MAX_ITEMS = 1000
DEFAULT_SWEEP_INTERVAL_SECONDS = 5 * 60.0
DEFAULT_ENTRY_SIZE_BYTES = 1024
"""Size charged for values that cannot be serialized for measurement."""

_MISSING = object()


def _json_default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, set | frozenset):
        return list(obj)
    if isinstance(obj, datetime.date | datetime.time):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def estimate_size(value: object) -> int:
    """Approximate the in-memory size of *value* in bytes.

    Serializes to compact JSON and counts two bytes per character. Values that
    cannot be serialized are charged ``DEFAULT_ENTRY_SIZE_BYTES``.
    """
    try:
        serialized = json.dumps(
            value, default=_json_default, separators=(",", ":"), ensure_ascii=False
        )
    except (TypeError, ValueError, RecursionError) as exc:
        logger.debug("Could not measure cache value, using default size: %s", exc)
        return DEFAULT_ENTRY_SIZE_BYTES
    return len(serialized) * 2


class CacheMetrics:
    """Tracks cache hit/miss and removal statistics."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.expirations = 0
        self.sweeps = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total


class CacheEngine:
    """Size- and age-bounded key/value cache.

    When room is needed the entry inserted first is evicted, regardless of how
    recently it was read. Expired entries are dropped lazily on lookup and by
    a periodic sweep task (see :meth:`start` / :meth:`stop`).

    Args:
        max_size_bytes: Upper bound on the summed estimated size of all entries.
        default_ttl: Lifetime in seconds for entries stored without a ``ttl``.
        max_items: Maximum number of entries.
        sweep_interval: Seconds between background expiry sweeps.
        clock: Returns the current time in seconds. Injected for tests.
        on_reject: Called with ``(key, size_bytes)`` when a value is too
            large to ever fit and is not stored.

    Raises:
        CacheConfigError: If any limit is zero or negative.
    """

    def __init__(
        self,
        max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        max_items: int = DEFAULT_MAX_ITEMS,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        *,
        clock: Callable[[], float] = time.time,
        on_reject: Callable[[str, int], None] | None = None,
    ) -> None:
        limits = {
            "max_size_bytes": max_size_bytes,
            "default_ttl": default_ttl,
            "max_items": max_items,
            "sweep_interval": sweep_interval,
        }
        for name, limit in limits.items():
            if limit <= 0:
                raise CacheConfigError(f"{name} must be positive, got {limit}")

        self.max_size_bytes = max_size_bytes
        self.default_ttl = default_ttl
        self.max_items = max_items
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._on_reject = on_reject

        # Guards _entries, _size_bytes and metrics together.
        self._lock = threading.RLock()
        self._entries: dict[str, CacheEntry] = {}
        self._size_bytes = 0
        self.metrics = CacheMetrics()
        self._sweep_task: asyncio.Task[None] | None = None

    @classmethod
    def from_settings(cls, settings: "Settings", **kwargs: Any) -> "CacheEngine":
        """Build an engine from the ``cache_*`` fields of *settings*."""
        return cls(
            max_size_bytes=settings.cache_max_size_bytes,
            default_ttl=settings.cache_default_ttl_seconds,
            max_items=settings.cache_max_items,
            sweep_interval=settings.cache_sweep_interval_seconds,
            **kwargs,
        )

    # ── Core operations ──────────────────────────────────────────────────

    def set(
        self,
        key: str,
        value: object,
        *,
        ttl: float | None = None,
        category: str | None = None,
    ) -> None:
        """Store *value*, evicting the oldest entries if needed to make room.

        Values whose estimated size exceeds ``max_size_bytes`` are not stored.
        Setting an existing key replaces it and restarts its lifetime.
        """
        size = estimate_size(value)
        if size > self.max_size_bytes:
            logger.warning(
                "Cache value for %s too large (%d bytes, max %d); not stored",
                key,
                size,
                self.max_size_bytes,
            )
            if self._on_reject is not None:
                try:
                    self._on_reject(key, size)
                except Exception:  # noqa: BLE001
                    logger.exception("on_reject callback failed for %s", key)
            return

        if ttl is None:
            ttl = self.default_ttl

        with self._lock:
            # Built before touching the map so a rejected entry changes nothing.
            now = self._clock()
            entry = CacheEntry(
                key=key,
                value=value,
                created_at=now,
                last_accessed_at=now,
                expires_at=now + ttl,
                size_bytes=size,
                category=category or "unknown",
            )

            self._pop(key)
            while self._entries and (
                self._size_bytes + size > self.max_size_bytes
                or len(self._entries) >= self.max_items
            ):
                self._evict_oldest()

            self._entries[key] = entry
            self._size_bytes += size

        logger.debug("Cache set %s (%d bytes, ttl %.1fs)", key, size, ttl)

    def get(self, key: str, default: Any = None) -> Any:
        """Retrieve a value if present and not expired.

        Args:
            key: Cache key.
            default: Returned on a miss. Pass a sentinel to tell a cached
                ``None`` apart from a miss.

        Returns:
            Cached value or *default*.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.metrics.misses += 1
                return default

            now = self._clock()
            if entry.is_expired(now):
                self._pop(key)
                self.metrics.expirations += 1
                self.metrics.misses += 1
                return default

            entry.hit_count += 1
            entry.last_accessed_at = now
            self.metrics.hits += 1
            return entry.value

    def has(self, key: str) -> bool:
        """Return True if *key* is present and not expired. Does not count as a hit or miss."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if entry.is_expired(self._clock()):
                self._pop(key)
                self.metrics.expirations += 1
                return False
            return True

    def delete(self, key: str) -> None:
        """Remove *key* if present."""
        with self._lock:
            self._pop(key)

    def clear(self) -> None:
        """Remove all entries and reset every counter."""
        with self._lock:
            self._entries.clear()
            self._size_bytes = 0
            self.metrics.reset()
        logger.info("Cache cleared")

    def invalidate(self, pattern: str | re.Pattern[str]) -> int:
        """Remove every entry whose key matches *pattern* (``re.search`` semantics).

        Returns:
            Number of entries removed.

        Raises:
            InvalidPatternError: If *pattern* is a string that does not compile.
        """
        if isinstance(pattern, str):
            try:
                pattern = re.compile(pattern)
            except re.error as exc:
                raise InvalidPatternError(f"Invalid pattern {pattern!r}: {exc}") from exc

        with self._lock:
            matched = [key for key in self._entries if pattern.search(key)]
            for key in matched:
                self._pop(key)

        logger.info("Invalidated %d cache entries matching %r", len(matched), pattern.pattern)
        return len(matched)

    def keys(self) -> list[str]:
        """Snapshot of stored keys in insertion order (may include expired entries)."""
        with self._lock:
            return list(self._entries)

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        *,
        ttl: float | None = None,
        category: str | None = None,
    ) -> Any:
        """Return the cached value for *key*, or await *loader* and cache its result.

        Exceptions from *loader* propagate and nothing is stored.
        """
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value
        value = await loader()
        self.set(key, value, ttl=ttl, category=category)
        return value

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    # ── Statistics ───────────────────────────────────────────────────────

    def get_stats(self) -> CacheStats:
        """Read-only snapshot of counters and occupancy."""
        with self._lock:
            return CacheStats(**self._stats_fields())

    def get_debug_info(self) -> CacheDebugInfo:
        """Stats plus one row per stored entry, including expired ones not yet removed."""
        with self._lock:
            now = self._clock()
            items = [
                CacheItemInfo(
                    key=key,
                    size_bytes=entry.size_bytes,
                    age=now - entry.created_at,
                    hits=entry.hit_count,
                    category=entry.category,
                    expired=entry.is_expired(now),
                )
                for key, entry in self._entries.items()
            ]
            return CacheDebugInfo(**self._stats_fields(), items=items)

    def get_formatted_stats(self) -> dict[str, str]:
        """Stats rendered for display."""
        stats = self.get_stats()
        return {
            "size": format_bytes(stats.size_bytes),
            "item_count": format_number(stats.entry_count),
            "hits": format_number(stats.hits),
            "misses": format_number(stats.misses),
            "hit_rate": format_percent(stats.hit_rate),
            "oldest_entry": format_age(stats.oldest_entry_timestamp, self._clock()),
        }

    def _stats_fields(self) -> dict[str, Any]:
        created = [entry.created_at for entry in self._entries.values()]
        return {
            "hits": self.metrics.hits,
            "misses": self.metrics.misses,
            "size_bytes": self._size_bytes,
            "entry_count": len(self._entries),
            "oldest_entry_timestamp": min(created) if created else None,
            "newest_entry_timestamp": max(created) if created else None,
            "evictions": self.metrics.evictions,
            "expirations": self.metrics.expirations,
            "sweeps": self.metrics.sweeps,
            "max_size_bytes": self.max_size_bytes,
            "max_items": self.max_items,
        }

    # ── Expiry sweep ─────────────────────────────────────────────────────

    def sweep(self) -> SweepResult:
        """Remove every expired entry now and report what was reclaimed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            removed_bytes = 0
            for key in expired:
                entry = self._pop(key)
                if entry is not None:
                    removed_bytes += entry.size_bytes
            if expired:
                self.metrics.expirations += len(expired)
                self.metrics.sweeps += 1
            result = SweepResult(
                removed_entries=len(expired),
                removed_bytes=removed_bytes,
                remaining_entries=len(self._entries),
                remaining_bytes=self._size_bytes,
            )

        if result.removed_entries:
            logger.debug(
                "Cache sweep removed %d entries (%d bytes); %d entries (%d bytes) remain",
                result.removed_entries,
                result.removed_bytes,
                result.remaining_entries,
                result.remaining_bytes,
            )
        return result

    @property
    def running(self) -> bool:
        """True while the background sweep task is scheduled."""
        return self._sweep_task is not None and not self._sweep_task.done()

    def start(self) -> None:
        """Schedule the background sweep on the running event loop. No-op if already running."""
        if self.running:
            return
        self._sweep_task = asyncio.get_running_loop().create_task(
            self._sweep_loop(), name="sitecache-sweep"
        )
        logger.debug("Cache sweep started (every %.1fs)", self.sweep_interval)

    async def stop(self) -> None:
        """Cancel the background sweep and wait for it to finish. No-op if not running."""
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("Cache sweep stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                self.sweep()
            except Exception:  # noqa: BLE001
                logger.exception("Cache sweep failed")

    async def __aenter__(self) -> "CacheEngine":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ── Internals ────────────────────────────────────────────────────────

    def _pop(self, key: str) -> CacheEntry | None:
        entry = self._entries.pop(key, None)
        if entry is not None:
            self._size_bytes -= entry.size_bytes
        return entry

    def _evict_oldest(self) -> None:
        oldest_key = min(
            self._entries,
            key=lambda k: (self._entries[k].created_at, self._entries[k].last_accessed_at),
        )
        entry = self._pop(oldest_key)
        self.metrics.evictions += 1
        if entry is not None:
            logger.debug("Evicted %s (%d bytes) to make room", oldest_key, entry.size_bytes)
