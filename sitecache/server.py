import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastmcp import FastMCP

from sitecache.engine import CacheEngine

logger = logging.getLogger(__name__)

_cache: CacheEngine | None = None


def get_cache() -> CacheEngine:
    """Get the current CacheEngine instance. Raises if not initialized."""
    if _cache is None:
        raise RuntimeError("Cache not initialized. Server lifespan has not started.")
    return _cache


def _reset_cache() -> None:
    """Clear the module-level cache reference. Used in tests."""
    global _cache  # noqa: PLW0603
    _cache = None


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict]:
    """Own the cache engine and its expiry sweep for the server lifecycle."""
    global _cache  # noqa: PLW0603
    from sitecache.config import get_settings

    settings = get_settings()
    _cache = CacheEngine.from_settings(settings)
    _cache.start()
    logger.info(
        "Cache initialized (max %d bytes, %d items, ttl %.0fs, sweep every %.0fs)",
        _cache.max_size_bytes,
        _cache.max_items,
        _cache.default_ttl,
        _cache.sweep_interval,
    )

    try:
        yield {"cache": _cache}
    finally:
        await _cache.stop()
        _cache = None
        logger.info("Cache stopped")


mcp = FastMCP("site-cache", lifespan=app_lifespan)


CONSOLE_HANDLER_NAME = "sitecache-console"
FILE_HANDLER_NAME = "sitecache-file"
LOG_FILE_NAME = "sitecache.log"


def _parse_level(name: str | None, fallback: int) -> int:
    if not name:
        return fallback
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else fallback


def setup_logging(log_level: str, data_dir: Path, cache_log_level: str | None = None) -> None:
    """Attach the console and rotating-file handlers used by the cache server.

    Handlers are identified by name, so calling this again (tests, re-init)
    never stacks duplicates and leaves foreign handlers alone.

    Args:
        log_level: Root level name (DEBUG, INFO, WARNING, ERROR); unknown names mean INFO.
        data_dir: Logs are written to ``data_dir/logs/sitecache.log``.
        cache_log_level: Optional separate level for ``sitecache.engine``, e.g.
            DEBUG to trace evictions and sweeps without flooding other loggers.
    """
    level = _parse_level(log_level, logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    logging.getLogger("sitecache.engine").setLevel(_parse_level(cache_log_level, logging.NOTSET))

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    existing = {h.name for h in root_logger.handlers}

    if CONSOLE_HANDLER_NAME not in existing:
        console = logging.StreamHandler()
        console.set_name(CONSOLE_HANDLER_NAME)
        console.setFormatter(formatter)
        root_logger.addHandler(console)

    if FILE_HANDLER_NAME not in existing:
        log_dir = data_dir / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
        )
        file_handler.set_name(FILE_HANDLER_NAME)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def initialize() -> FastMCP:
    """Set up directories, logging, and register tools. Returns the MCP server."""
    from sitecache.config import get_settings

    settings = get_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)

    setup_logging(settings.log_level, settings.data_dir, settings.cache_log_level)

    from sitecache.tools.cache_admin import register_cache_tools

    register_cache_tools(mcp)

    logger.info("Site cache server initialized")
    return mcp
