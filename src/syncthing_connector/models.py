"""Entities mirrored from the Syncthing daemon: directories, devices, notifications."""

import posixpath
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from syncthing_connector.formatters import format_bytes

# Syncthing transfers files in blocks of 128 KiB.
SYNCTHING_BLOCK_SIZE = 128 * 1024


class DirStatus(Enum):
    UNKNOWN = "unknown"
    IDLE = "idle"
    SCANNING = "scanning"
    SYNCHRONIZING = "synchronizing"
    OUT_OF_SYNC = "out-of-sync"


class DevStatus(Enum):
    UNKNOWN = "unknown"
    OWN_DEVICE = "own-device"
    IDLE = "idle"
    DISCONNECTED = "disconnected"
    SYNCHRONIZING = "synchronizing"
    PAUSED = "paused"
    REJECTED = "rejected"


class ConnectionStatus(Enum):
    DISCONNECTED = "disconnected"
    RECONNECTING = "reconnecting"
    IDLE = "idle"
    SCANNING = "scanning"
    SYNCHRONIZING = "synchronizing"
    PAUSED = "paused"
    SHUTTING_DOWN = "shutting-down"

    @property
    def text(self) -> str:
        return _STATUS_TEXT[self]


_STATUS_TEXT = {
    ConnectionStatus.DISCONNECTED: "disconnected",
    ConnectionStatus.RECONNECTING: "reconnecting",
    ConnectionStatus.IDLE: "connected",
    ConnectionStatus.SCANNING: "connected, scanning",
    ConnectionStatus.SYNCHRONIZING: "connected, synchronizing",
    ConnectionStatus.PAUSED: "connected, paused",
    ConnectionStatus.SHUTTING_DOWN: "shutting down",
}

_DIR_STATUS_BY_NAME = {
    "idle": DirStatus.IDLE,
    "scanning": DirStatus.SCANNING,
    "scan-waiting": DirStatus.SCANNING,
    "syncing": DirStatus.SYNCHRONIZING,
    "sync-preparing": DirStatus.SYNCHRONIZING,
    "sync-waiting": DirStatus.SYNCHRONIZING,
    "error": DirStatus.OUT_OF_SYNC,
}


def dir_status_from_name(name: str) -> DirStatus:
    """Map a daemon folder state (``idle``, ``syncing``, ...) to a DirStatus."""
    return _DIR_STATUS_BY_NAME.get(name, DirStatus.UNKNOWN)


def to_int(value: Any, default: int = 0) -> int:
    """Integer value of a JSON number, ``default`` for anything else."""
    # Large byte counts may arrive as floats.
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return int(value)
    return default


@dataclass(frozen=True)
class DirError:
    message: str
    path: str = ""


@dataclass(frozen=True)
class Notification:
    when: datetime | None
    message: str


@dataclass(frozen=True)
class LogEntry:
    when: str
    message: str


@dataclass
class ItemDownloadProgress:
    """Progress of one file listed in a ``DownloadProgress`` event."""

    relative_path: str
    file_path: str = ""
    blocks_currently_downloading: int = 0
    blocks_already_downloaded: int = 0
    total_blocks: int = 0
    bytes_already_handled: int = 0
    downloaded_percentage: int = 0
    label: str = ""

    @classmethod
    def from_event(cls, dir_path: str, relative_path: str, values: dict) -> "ItemDownloadProgress":
        already = sum(
            to_int(values.get(key))
            for key in ("copiedFromOrigin", "copiedFromElsewhere", "reused", "pulled")
        )
        total = to_int(values.get("total"))
        percentage = already * 100 // total if already > 0 and total > 0 else 0
        item = cls(
            relative_path=relative_path,
            file_path=posixpath.join(dir_path, relative_path) if dir_path else relative_path,
            blocks_currently_downloading=to_int(values.get("pulling")),
            blocks_already_downloaded=already,
            total_blocks=total,
            bytes_already_handled=to_int(values.get("bytesDone")),
            downloaded_percentage=percentage,
        )
        item.label = (
            f"{relative_path} ({percentage} %, "
            f"{format_bytes(item.bytes_already_handled)})"
        )
        return item


@dataclass
class Directory:
    """One synchronized folder.

    Configuration fields are overwritten on every config refresh; everything
    else is runtime data that survives a refresh (see ``StateStore``).
    """

    id: str
    label: str = ""
    path: str = ""
    devices: list[str] = field(default_factory=list)
    read_only: bool = False
    rescan_interval: int = -1
    ignore_permissions: bool = False
    auto_normalize: bool = False
    min_disk_free_percentage: int = -1

    status: DirStatus = DirStatus.UNKNOWN
    last_status_update: datetime | None = None
    completion_percentage: int = 0
    scan_percentage: int = 0
    scan_rate: int = 0

    global_files: int = 0
    global_bytes: int = 0
    global_deleted: int = 0
    local_files: int = 0
    local_bytes: int = 0
    local_deleted: int = 0
    needed_files: int = 0
    needed_bytes: int = 0

    errors: list[DirError] = field(default_factory=list)
    previous_errors: list[DirError] = field(default_factory=list)

    downloading_items: list[ItemDownloadProgress] = field(default_factory=list)
    blocks_already_downloaded: int = 0
    blocks_to_be_downloaded: int = 0
    download_percentage: int = 0
    download_label: str = ""

    last_scan_time: datetime | None = None
    last_file_name: str = ""
    last_file_time: datetime | None = None
    last_file_deleted: bool = False

    @property
    def display_name(self) -> str:
        return self.label or self.id

    def apply_config(self, obj: dict) -> None:
        """Overwrite the configuration fields from a ``folders[]`` entry."""
        self.label = obj.get("label") or ""
        self.path = obj.get("path") or ""
        self.devices = [
            dev["deviceID"]
            for dev in obj.get("devices") or []
            if isinstance(dev, dict) and dev.get("deviceID")
        ]
        self.read_only = bool(obj.get("readOnly", False)) or obj.get("type") == "sendonly"
        self.rescan_interval = to_int(obj.get("rescanIntervalS"), -1)
        self.ignore_permissions = bool(obj.get("ignorePerms", False))
        self.auto_normalize = bool(obj.get("autoNormalize", False))
        self.min_disk_free_percentage = to_int(obj.get("minDiskFreePct"), -1)

    def assign_status(self, status: DirStatus, when: datetime | None = None) -> bool:
        """Apply a status change observed at ``when``; returns whether it changed anything."""
        if when is not None:
            if self.last_status_update is not None and when < self.last_status_update:
                return False
            self.last_status_update = when

        if status in (DirStatus.IDLE, DirStatus.UNKNOWN) and self.errors:
            status = DirStatus.OUT_OF_SYNC
        if status is self.status:
            return False

        previous = self.status
        self.status = status
        if previous is DirStatus.OUT_OF_SYNC:
            self.previous_errors = self.errors
            self.errors = []
        if previous is DirStatus.SYNCHRONIZING:
            self.completion_percentage = 0
        if previous is DirStatus.SCANNING:
            self.scan_percentage = 0
            self.scan_rate = 0
        return True

    def assign_status_name(self, name: str, when: datetime | None = None) -> bool:
        return self.assign_status(dir_status_from_name(name), when)

    def add_error(self, error: DirError) -> bool:
        """Append ``error`` unless the same message/path pair is already known."""
        if error in self.errors:
            return False
        self.errors.append(error)
        return True

    def apply_summary(self, summary: dict) -> None:
        self.global_bytes = to_int(summary.get("globalBytes"))
        self.global_deleted = to_int(summary.get("globalDeleted"))
        self.global_files = to_int(summary.get("globalFiles"))
        self.local_bytes = to_int(summary.get("localBytes"))
        self.local_deleted = to_int(summary.get("localDeleted"))
        self.local_files = to_int(summary.get("localFiles"))
        self.needed_bytes = to_int(summary.get("needBytes", summary.get("needByted")))
        self.needed_files = to_int(summary.get("needFiles"))

    def set_download_progress(self, files: dict) -> None:
        """Replace the in-progress items; files not listed have finished."""
        self.downloading_items = [
            ItemDownloadProgress.from_event(self.path, name, values)
            for name, values in files.items()
            if isinstance(values, dict)
        ]
        self.blocks_already_downloaded = sum(
            item.blocks_already_downloaded for item in self.downloading_items
        )
        self.blocks_to_be_downloaded = sum(item.total_blocks for item in self.downloading_items)
        done, total = self.blocks_already_downloaded, self.blocks_to_be_downloaded
        self.download_percentage = done * 100 // total if done > 0 and total > 0 else 0
        self.download_label = (
            f"{format_bytes(done * SYNCTHING_BLOCK_SIZE)} / "
            f"{format_bytes(total * SYNCTHING_BLOCK_SIZE)} - {self.download_percentage} %"
        )


@dataclass
class Device:
    """One peer device; ``status`` OWN_DEVICE marks the daemon itself."""

    id: str
    name: str = ""
    addresses: list[str] = field(default_factory=list)
    compression: str = ""
    cert_name: str = ""
    introducer: bool = False

    status: DevStatus = DevStatus.UNKNOWN
    paused: bool = False
    connection_address: str = ""
    connection_type: str = ""
    client_version: str = ""
    total_incoming_traffic: int = 0
    total_outgoing_traffic: int = 0
    last_seen: datetime | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.id

    def apply_config(self, obj: dict) -> None:
        """Overwrite the configuration fields from a ``devices[]`` entry."""
        self.name = obj.get("name") or ""
        self.addresses = [a for a in obj.get("addresses") or [] if isinstance(a, str)]
        self.compression = obj.get("compression") or ""
        self.cert_name = obj.get("certName") or ""
        self.introducer = bool(obj.get("introducer", False))

    def apply_connection(self, conn: dict) -> None:
        """Update from one entry of ``system/connections``."""
        connected = bool(conn.get("connected", False))
        if self.status is DevStatus.OWN_DEVICE:
            pass
        elif self.status in (DevStatus.UNKNOWN, DevStatus.DISCONNECTED):
            self.status = DevStatus.IDLE if connected else DevStatus.DISCONNECTED
        elif not connected:
            self.status = DevStatus.DISCONNECTED
        self.paused = bool(conn.get("paused", False))
        self.total_incoming_traffic = to_int(conn.get("inBytesTotal"))
        self.total_outgoing_traffic = to_int(conn.get("outBytesTotal"))
        self.connection_address = conn.get("address") or ""
        self.connection_type = conn.get("type") or ""
        self.client_version = conn.get("clientVersion") or ""
