"""Device listing, detail, pause and resume tools."""

import asyncio

from syncthing_connector.formatters import fmt, format_device, truncate
from syncthing_connector.inputs import DeviceReadParams, DeviceWriteParams, ReadParams, WriteParams
from syncthing_connector.registry import get_instance, handle_error_global
from syncthing_connector.server import mcp


@mcp.tool(
    name="syncthing_list_devices",
    annotations={
        "title": "List All Devices",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def syncthing_list_devices(params: ReadParams) -> str:
    """All configured devices with connection status and pause state."""
    try:
        connection = get_instance(params.instance)
        result = [format_device(dev, concise=params.concise) for dev in connection.devs]
        return truncate(fmt(result, concise=params.concise))
    except Exception as e:
        return handle_error_global(e)


@mcp.tool(
    name="syncthing_device_detail",
    annotations={
        "title": "Device Detail",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def syncthing_device_detail(params: DeviceReadParams) -> str:
    """Connection, traffic and last-seen data of one device (by ID or name)."""
    try:
        connection = get_instance(params.instance)
        dev, _ = connection.find_dev_info(params.device)
        if dev is None:
            dev, _ = connection.find_dev_info_by_name(params.device)
        if dev is None:
            return f"Error: Device '{params.device}' not found."
        return fmt(format_device(dev, concise=params.concise), concise=params.concise)
    except Exception as e:
        return handle_error_global(e)


@mcp.tool(
    name="syncthing_pause_device",
    annotations={
        "title": "Pause Device",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def syncthing_pause_device(params: DeviceWriteParams) -> str:
    """Pause synchronization with one device."""
    try:
        connection = get_instance(params.instance)
        await connection.pause(params.device_id)
        return f"Device '{params.device_id}' paused."
    except Exception as e:
        return handle_error_global(e)


@mcp.tool(
    name="syncthing_resume_device",
    annotations={
        "title": "Resume Device",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def syncthing_resume_device(params: DeviceWriteParams) -> str:
    """Resume synchronization with one device."""
    try:
        connection = get_instance(params.instance)
        await connection.resume(params.device_id)
        return f"Device '{params.device_id}' resumed."
    except Exception as e:
        return handle_error_global(e)


@mcp.tool(
    name="syncthing_pause_all_devices",
    annotations={
        "title": "Pause All Devices",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def syncthing_pause_all_devices(params: WriteParams) -> str:
    """Pause every remote device."""
    try:
        connection = get_instance(params.instance)
        handles = connection.pause_all()
        await asyncio.gather(*handles)
        return f"Paused {len(handles)} device(s)."
    except Exception as e:
        return handle_error_global(e)


@mcp.tool(
    name="syncthing_resume_all_devices",
    annotations={
        "title": "Resume All Devices",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def syncthing_resume_all_devices(params: WriteParams) -> str:
    """Resume every remote device."""
    try:
        connection = get_instance(params.instance)
        handles = connection.resume_all()
        await asyncio.gather(*handles)
        return f"Resumed {len(handles)} device(s)."
    except Exception as e:
        return handle_error_global(e)
