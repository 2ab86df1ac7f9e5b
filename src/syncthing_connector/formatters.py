"""Token-efficient formatters for the mirrored Syncthing state.

Design principles:
  - Default output is compact JSON (no indentation, no spaces after separators)
  - Device IDs are truncated to short form unless full detail is requested
  - Timestamps are ISO-8601 strings, empty when unknown
  - Large responses are truncated with guidance to use filters
"""

import json
from datetime import datetime
from typing import Any

# ---------------------------------------------------------------------------
#  Constants
# ---------------------------------------------------------------------------

CHARACTER_LIMIT = 25_000
SHORT_ID_LEN = 7


# ---------------------------------------------------------------------------
#  Core helpers
# ---------------------------------------------------------------------------


def fmt(data: Any, *, concise: bool = True) -> str:
    """Serialize to JSON.  Compact by default for token efficiency."""
    if concise:
        return json.dumps(data, separators=(",", ":"))
    return json.dumps(data, indent=2)


def short_id(device_id: str) -> str:
    """Truncate a Syncthing device ID to its first block."""
    return device_id[:SHORT_ID_LEN] if device_id else ""


def format_bytes(n: int | float) -> str:
    """Human-readable byte size."""
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if abs(n) < 1024:
            return f"{n:.1f} {unit}"
        n /= 1024
    return f"{n:.1f} PB"


def format_rate(kbit_per_second: float) -> str:
    """Human-readable transfer rate from kbit/s."""
    if kbit_per_second < 1000:
        return f"{kbit_per_second:.1f} kbit/s"
    return f"{kbit_per_second / 1000:.1f} Mbit/s"


def format_time(value: datetime | None) -> str:
    return value.isoformat() if value is not None else ""


def truncate(text: str, limit: int = CHARACTER_LIMIT) -> str:
    """Truncate text that exceeds the character limit, with guidance."""
    if len(text) <= limit:
        return text
    cut = text[:limit]
    last_nl = cut.rfind("\n")
    if last_nl > limit * 0.8:
        cut = cut[:last_nl]
    return (
        cut
        + f"\n... truncated ({len(text):,} chars, limit {limit:,})."
        " Use the instance or id filters to narrow results."
    )


# ---------------------------------------------------------------------------
#  Entity formatters: concise mode strips to essential fields only
# ---------------------------------------------------------------------------


def format_folder(d, *, concise: bool = True) -> dict:
    """Format a mirrored Directory."""
    if concise:
        data = {
            "id": d.id,
            "label": d.display_name,
            "status": d.status.value,
            "errors": len(d.errors),
        }
        if d.download_percentage:
            data["download"] = d.download_label
        return data
    return {
        "id": d.id,
        "label": d.display_name,
        "path": d.path,
        "status": d.status.value,
        "statusChanged": format_time(d.last_status_update),
        "readOnly": d.read_only,
        "rescanIntervalS": d.rescan_interval,
        "devices": [short_id(dev) for dev in d.devices],
        "globalFiles": d.global_files,
        "globalSize": format_bytes(d.global_bytes),
        "localFiles": d.local_files,
        "localSize": format_bytes(d.local_bytes),
        "needFiles": d.needed_files,
        "needSize": format_bytes(d.needed_bytes),
        "completion": d.completion_percentage,
        "scanProgress": d.scan_percentage,
        "download": d.download_label if d.downloading_items else "",
        "downloadingItems": [item.label for item in d.downloading_items],
        "errors": [{"message": e.message, "path": e.path} for e in d.errors],
        "lastScan": format_time(d.last_scan_time),
        "lastFile": {
            "name": d.last_file_name,
            "at": format_time(d.last_file_time),
            "deleted": d.last_file_deleted,
        },
    }


def format_device(dev, *, concise: bool = True) -> dict:
    """Format a mirrored Device."""
    if concise:
        return {
            "id": short_id(dev.id),
            "name": dev.name or short_id(dev.id),
            "status": dev.status.value,
            "paused": dev.paused,
        }
    return {
        "deviceID": dev.id,
        "name": dev.name or short_id(dev.id),
        "status": dev.status.value,
        "paused": dev.paused,
        "introducer": dev.introducer,
        "addresses": dev.addresses,
        "compression": dev.compression,
        "address": dev.connection_address,
        "type": dev.connection_type,
        "clientVersion": dev.client_version,
        "inBytesTotal": dev.total_incoming_traffic,
        "outBytesTotal": dev.total_outgoing_traffic,
        "lastSeen": format_time(dev.last_seen),
    }


def format_notification(n) -> dict:
    return {"when": format_time(n.when), "message": n.message}
