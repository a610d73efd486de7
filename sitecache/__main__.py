"""Run the cache operator server: ``python -m sitecache``."""

import logging

from sitecache.server import initialize

logger = logging.getLogger("sitecache")


def main() -> None:
    from sitecache.config import get_settings

    app = initialize()
    settings = get_settings()

    if settings.mcp_transport == "streamable-http":
        logger.info("Serving cache tools on http://%s:%d", settings.mcp_host, settings.mcp_port)
        app.run(transport="streamable-http", host=settings.mcp_host, port=settings.mcp_port)
    elif settings.mcp_transport == "stdio":
        app.run()
    else:
        raise SystemExit(
            f"Unsupported MCP_TRANSPORT {settings.mcp_transport!r}; use 'stdio' or 'streamable-http'"
        )


if __name__ == "__main__":  # pragma: no cover
    main()
