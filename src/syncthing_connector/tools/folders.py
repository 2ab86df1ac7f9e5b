"""Folder listing, detail and rescan tools."""

import asyncio

from syncthing_connector.formatters import fmt, format_folder, truncate
from syncthing_connector.inputs import FolderReadParams, FolderWriteParams, ReadParams, WriteParams
from syncthing_connector.registry import get_instance, handle_error_global
from syncthing_connector.server import mcp


@mcp.tool(
    name="syncthing_list_folders",
    annotations={
        "title": "List Folders",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def syncthing_list_folders(params: ReadParams) -> str:
    """All folders with their live status, as mirrored from the event stream."""
    try:
        connection = get_instance(params.instance)
        result = [format_folder(d, concise=params.concise) for d in connection.dirs]
        return truncate(fmt(result, concise=params.concise))
    except Exception as e:
        return handle_error_global(e)


@mcp.tool(
    name="syncthing_folder_detail",
    annotations={
        "title": "Folder Detail",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def syncthing_folder_detail(params: FolderReadParams) -> str:
    """Counters, errors, download progress and last synced file of one folder."""
    try:
        connection = get_instance(params.instance)
        d, _ = connection.find_dir_info(params.folder_id)
        if d is None:
            return f"Error: Folder '{params.folder_id}' not found."
        return truncate(fmt(format_folder(d, concise=params.concise), concise=params.concise))
    except Exception as e:
        return handle_error_global(e)


@mcp.tool(
    name="syncthing_rescan_folder",
    annotations={
        "title": "Rescan Folder",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def syncthing_rescan_folder(params: FolderWriteParams) -> str:
    """Ask Syncthing to rescan one folder."""
    try:
        connection = get_instance(params.instance)
        await connection.rescan(params.folder_id)
        return f"Rescan requested for folder '{params.folder_id}'."
    except Exception as e:
        return handle_error_global(e)


@mcp.tool(
    name="syncthing_rescan_all",
    annotations={
        "title": "Rescan All Folders",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def syncthing_rescan_all(params: WriteParams) -> str:
    """Ask Syncthing to rescan every known folder."""
    try:
        connection = get_instance(params.instance)
        handles = connection.rescan_all()
        await asyncio.gather(*handles)
        return f"Rescan requested for {len(handles)} folder(s)."
    except Exception as e:
        return handle_error_global(e)
