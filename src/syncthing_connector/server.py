"""FastMCP server creation and lifespan."""

import sys
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP

from syncthing_connector.registry import get_all_instances


@asynccontextmanager
async def app_lifespan(app):
    instances = get_all_instances()
    missing = [n for n, c in instances.items() if not c.client.api_key]
    if missing:
        print(f"WARNING: API key missing for instance(s): {missing}", file=sys.stderr)
    print(
        f"Syncthing connector: {len(instances)} instance(s) configured: "
        f"{list(instances.keys())}",
        file=sys.stderr,
    )
    for connection in instances.values():
        connection.connect()
    try:
        yield {}
    finally:
        for connection in instances.values():
            connection.close()


mcp = FastMCP("syncthing_connector", lifespan=app_lifespan)

# Import all tool modules so they register with `mcp` via decorators.
import syncthing_connector.tools  # noqa: E402, F401
