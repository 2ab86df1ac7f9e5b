"""Restart, shutdown and reconnect tools."""

from syncthing_connector.inputs import WriteParams
from syncthing_connector.registry import get_instance, handle_error_global
from syncthing_connector.server import mcp


@mcp.tool(
    name="syncthing_restart",
    annotations={
        "title": "Restart Syncthing",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
async def syncthing_restart(params: WriteParams) -> str:
    """Restart the Syncthing daemon.  The connection reconnects on its own
    when an auto-reconnect interval is configured."""
    try:
        connection = get_instance(params.instance)
        await connection.restart()
        return f"Restart requested for instance '{connection.client.name}'."
    except Exception as e:
        return handle_error_global(e)


@mcp.tool(
    name="syncthing_shutdown",
    annotations={
        "title": "Shut Down Syncthing",
        "readOnlyHint": False,
        "destructiveHint": True,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
async def syncthing_shutdown(params: WriteParams) -> str:
    """Shut the Syncthing daemon down.  It has to be started again by other means."""
    try:
        connection = get_instance(params.instance)
        await connection.shutdown()
        return f"Shutdown requested for instance '{connection.client.name}'."
    except Exception as e:
        return handle_error_global(e)


@mcp.tool(
    name="syncthing_reconnect",
    annotations={
        "title": "Reconnect",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def syncthing_reconnect(params: WriteParams) -> str:
    """Drop the mirrored state and connect to the instance again."""
    try:
        connection = get_instance(params.instance)
        connection.reconnect()
        return f"Reconnecting to instance '{connection.client.name}' ({connection.status_text})."
    except Exception as e:
        return handle_error_global(e)
