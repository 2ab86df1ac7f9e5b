"""Entry point for `python -m syncthing_connector` and the `syncthing-connector` console script."""

import logging
import os
import sys


def _configure_logging() -> None:
    level = os.environ.get("SYNCTHING_LOG_LEVEL", "WARNING").strip().upper()
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    # stdout belongs to the stdio transport
    _configure_logging()
    transport = os.environ.get("MCP_TRANSPORT", "stdio").strip().lower()

    from syncthing_connector.server import mcp

    if transport == "streamable-http":
        host = os.environ.get("MCP_HOST", "127.0.0.1")
        port = int(os.environ.get("MCP_PORT", "8000"))
        mcp.settings.host = host
        mcp.settings.port = port
        print(f"Listening on {host}:{port} (streamable-http)", file=sys.stderr)
        mcp.run(transport="streamable-http")
    else:
        mcp.run()


if __name__ == "__main__":
    main()
