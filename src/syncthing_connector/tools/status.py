"""Connection status, notification, log and instance tools."""

import asyncio
from typing import Any

from syncthing_connector.formatters import (
    fmt,
    format_bytes,
    format_notification,
    format_rate,
    format_time,
    short_id,
    truncate,
)
from syncthing_connector.inputs import LogInput, NotificationsInput, ReadParams
from syncthing_connector.registry import (
    get_all_instances,
    get_instance,
    handle_error_global,
)
from syncthing_connector.server import mcp


@mcp.tool(
    name="syncthing_connection_status",
    annotations={
        "title": "Connection Status",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def syncthing_connection_status(params: ReadParams) -> str:
    """Aggregate status of the connection to a Syncthing instance.

    Returns:
        str: JSON with the status (idle, scanning, synchronizing, paused,
        disconnected, ...), own device ID, traffic and the last synced file.
    """
    try:
        connection = get_instance(params.instance)
        data: dict[str, Any] = {
            "instance": connection.client.name,
            "status": connection.status.value,
            "statusText": connection.status_text,
            "myID": short_id(connection.my_id) if params.concise else connection.my_id,
            "outOfSync": connection.has_out_of_sync_dirs,
            "unreadNotifications": connection.has_unread_notifications,
            "incomingRate": format_rate(connection.total_incoming_rate),
            "outgoingRate": format_rate(connection.total_outgoing_rate),
        }
        if not params.concise:
            data["url"] = connection.syncthing_url
            data["configDir"] = connection.config_dir
            data["folders"] = len(connection.dirs)
            data["devices"] = len(connection.devs)
            data["incomingTotal"] = format_bytes(connection.total_incoming_traffic)
            data["outgoingTotal"] = format_bytes(connection.total_outgoing_traffic)
            data["completedFolders"] = [d.id for d in connection.completed_dirs]
            data["lastFile"] = {
                "name": connection.last_file_name,
                "at": format_time(connection.last_file_time),
                "deleted": connection.last_file_deleted,
            }
            data["autoReconnectTries"] = connection.auto_reconnect_tries
        return fmt(data, concise=params.concise)
    except Exception as e:
        return handle_error_global(e)


@mcp.tool(
    name="syncthing_notifications",
    annotations={
        "title": "Notifications",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def syncthing_notifications(params: NotificationsInput) -> str:
    """Daemon errors and folder errors collected since the connection was made."""
    try:
        connection = get_instance(params.instance)
        notifications = connection.notifications
        result = {
            "unread": notifications.unread,
            "notifications": [
                format_notification(n) for n in notifications.log[-params.limit:]
            ],
        }
        if params.mark_read:
            notifications.mark_read()
        return truncate(fmt(result, concise=params.concise))
    except Exception as e:
        return handle_error_global(e)


@mcp.tool(
    name="syncthing_system_log",
    annotations={
        "title": "System Log",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def syncthing_system_log(params: LogInput) -> str:
    """Recent log lines of the Syncthing daemon."""
    try:
        connection = get_instance(params.instance)
        received: asyncio.Future = asyncio.get_running_loop().create_future()
        await connection.request_log(received.set_result)
        if not received.done():
            return "Error: Unable to parse Syncthing log."
        entries = received.result()[-params.limit:]
        result = [{"when": entry.when, "message": entry.message} for entry in entries]
        return truncate(fmt(result, concise=params.concise))
    except Exception as e:
        return handle_error_global(e)


@mcp.tool(
    name="syncthing_list_instances",
    annotations={
        "title": "List Instances",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def syncthing_list_instances(params: ReadParams) -> str:
    """Configured Syncthing instances and their connection status."""
    try:
        result = [
            {
                "name": name,
                "url": connection.syncthing_url,
                "status": connection.status.value,
                "hasApiKey": bool(connection.client.api_key),
            }
            for name, connection in get_all_instances().items()
        ]
        return fmt(result, concise=params.concise)
    except Exception as e:
        return handle_error_global(e)
