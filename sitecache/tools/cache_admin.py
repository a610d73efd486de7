"""MCP tools for inspecting and invalidating the cache."""

import logging

from fastmcp import FastMCP

from sitecache.errors import InvalidPatternError
from sitecache.formatting import format_bytes, format_duration
from sitecache.server import get_cache

logger = logging.getLogger(__name__)


def register_cache_tools(mcp: FastMCP) -> None:
    """Register cache operator tools on the MCP server."""

    @mcp.tool
    async def cache_stats() -> str:
        """Show cache size, entry count and hit rate.

        Returns:
            Formatted summary of cache statistics.
        """
        cache = get_cache()
        formatted = cache.get_formatted_stats()
        stats = cache.get_stats()
        return (
            f"Cache: {formatted['item_count']} entries, {formatted['size']} "
            f"of {format_bytes(stats.max_size_bytes)}\n"
            f"  Hits: {formatted['hits']}  Misses: {formatted['misses']}  "
            f"Hit rate: {formatted['hit_rate']}\n"
            f"  Evictions: {stats.evictions}  Expirations: {stats.expirations}\n"
            f"  Oldest entry: {formatted['oldest_entry']}"
        )

    @mcp.tool
    async def cache_debug(limit: int = 50) -> str:
        """List cached entries with size, age, hits and expiry state.

        Args:
            limit: Maximum number of entries to list (default 50).

        Returns:
            One line per entry, expired entries flagged.
        """
        info = get_cache().get_debug_info()
        if not info.items:
            return "Cache is empty."

        lines = [f"{info.entry_count} entries, {format_bytes(info.size_bytes)}:"]
        for item in info.items[:limit]:
            flag = " [expired]" if item.expired else ""
            lines.append(
                f"  {item.key} ({item.category}): {format_bytes(item.size_bytes)}, "
                f"age {format_duration(item.age)}, {item.hits} hits{flag}"
            )
        if len(info.items) > limit:
            lines.append(f"  ... and {len(info.items) - limit} more")
        return "\n".join(lines)

    @mcp.tool
    async def cache_clear() -> str:
        """Remove every cached entry and reset statistics."""
        get_cache().clear()
        return "Cache cleared."

    @mcp.tool
    async def cache_invalidate(pattern: str) -> str:
        """Remove every entry whose key matches a regular expression.

        Args:
            pattern: Regular expression matched against keys, e.g. "^blog:post:".

        Returns:
            How many entries were removed.
        """
        try:
            count = get_cache().invalidate(pattern)
        except InvalidPatternError:
            logger.exception("Failed to invalidate cache pattern %r", pattern)
            count = 0
        return f"Invalidated {count} entries matching '{pattern}'."

    @mcp.tool
    async def cache_sweep() -> str:
        """Remove expired entries now instead of waiting for the next scheduled sweep."""
        result = get_cache().sweep()
        if result.removed_entries == 0:
            return "No expired entries."
        return (
            f"Removed {result.removed_entries} expired entries "
            f"({format_bytes(result.removed_bytes)}); "
            f"{result.remaining_entries} entries remain."
        )
