"""In-memory replica of the daemon's directories, devices and derived status."""

from collections.abc import Callable
from datetime import datetime, timezone

from syncthing_connector.models import (
    ConnectionStatus,
    Device,
    DevStatus,
    Directory,
    DirStatus,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def compute_rate(current: int, previous: int, elapsed_seconds: float | None) -> float:
    """Transfer rate in kbit/s; 0 when there is no usable elapsed time."""
    if not elapsed_seconds or elapsed_seconds <= 0:
        return 0.0
    return (current - previous) * 0.008 / elapsed_seconds


class StateStore:
    """Owns every entity of one connection.

    Lists are replaced wholesale on each config refresh, so positions handed
    out by ``find_dir``/``find_dev`` are only valid until the next refresh.
    Directories that are (or just were) synchronizing are remembered by id.
    """

    def __init__(self, now: Callable[[], datetime] = utc_now) -> None:
        self._now = now
        self.dirs: list[Directory] = []
        self.devs: list[Device] = []
        self.syncing_dir_ids: list[str] = []
        self.completed_dir_ids: list[str] = []
        self.clear()

    def now(self) -> datetime:
        return self._now()

    def clear(self) -> None:
        """Forget everything learned from the daemon."""
        self.my_id = ""
        self.config_dir = ""
        self.dirs = []
        self.devs = []
        self.total_incoming_traffic = 0
        self.total_outgoing_traffic = 0
        self.total_incoming_rate = 0.0
        self.total_outgoing_rate = 0.0
        self.last_connections_update: datetime | None = None
        self.last_file_time: datetime | None = None
        self.last_file_name = ""
        self.last_file_deleted = False
        self.last_error_time: datetime | None = None
        self.syncing_dir_ids = []
        self.completed_dir_ids = []

    # -- lookup -------------------------------------------------------------

    def find_dir(self, dir_id: str) -> tuple[Directory | None, int]:
        for index, d in enumerate(self.dirs):
            if d.id == dir_id:
                return d, index
        return None, -1

    def find_dev(self, dev_id: str) -> tuple[Device | None, int]:
        for index, dev in enumerate(self.devs):
            if dev.id == dev_id:
                return dev, index
        return None, -1

    def find_dev_by_name(self, name: str) -> tuple[Device | None, int]:
        for index, dev in enumerate(self.devs):
            if dev.name == name:
                return dev, index
        return None, -1

    @property
    def has_out_of_sync_dirs(self) -> bool:
        return any(d.status is DirStatus.OUT_OF_SYNC for d in self.dirs)

    @property
    def completed_dirs(self) -> list[Directory]:
        """Directories that finished synchronizing during the last status update."""
        return [d for d in (self.find_dir(i)[0] for i in self.completed_dir_ids) if d is not None]

    # -- config merge -------------------------------------------------------

    def replace_dirs(self, folders: list) -> list[Directory]:
        """Rebuild the directory list from ``folders[]``, recycling known ids."""
        known = {d.id: d for d in self.dirs}
        new_dirs: list[Directory] = []
        for obj in folders:
            if not isinstance(obj, dict):
                continue
            dir_id = obj.get("id")
            if not dir_id or not isinstance(dir_id, str):
                continue
            d = known.pop(dir_id, None) or Directory(dir_id)
            d.apply_config(obj)
            new_dirs.append(d)
        self.dirs = new_dirs
        return self.dirs

    def replace_devs(self, devices: list) -> list[Device]:
        """Rebuild the device list from ``devices[]``, recycling known ids."""
        known = {dev.id: dev for dev in self.devs}
        new_devs: list[Device] = []
        for obj in devices:
            if not isinstance(obj, dict):
                continue
            dev_id = obj.get("deviceID")
            if not dev_id or not isinstance(dev_id, str):
                continue
            dev = known.pop(dev_id, None) or Device(dev_id)
            dev.apply_config(obj)
            if dev.id == self.my_id:
                dev.status = DevStatus.OWN_DEVICE
            elif dev.status is DevStatus.OWN_DEVICE:
                dev.status = DevStatus.UNKNOWN
            new_devs.append(dev)
        self.devs = new_devs
        return self.devs

    def set_my_id(self, my_id: str) -> tuple[Device | None, int]:
        """Record the daemon's own id; returns the device now marked as own."""
        self.my_id = my_id
        own, own_index = None, -1
        for index, dev in enumerate(self.devs):
            if dev.id == my_id:
                dev.status = DevStatus.OWN_DEVICE
                own, own_index = dev, index
            elif dev.status is DevStatus.OWN_DEVICE:
                dev.status = DevStatus.UNKNOWN
        return own, own_index

    # -- runtime updates ----------------------------------------------------

    def update_traffic(self, incoming: int, outgoing: int) -> None:
        now = self.now()
        elapsed = (
            (now - self.last_connections_update).total_seconds()
            if self.last_connections_update is not None
            else None
        )
        self.total_incoming_rate = compute_rate(incoming, self.total_incoming_traffic, elapsed)
        self.total_outgoing_rate = compute_rate(outgoing, self.total_outgoing_traffic, elapsed)
        self.total_incoming_traffic = incoming
        self.total_outgoing_traffic = outgoing

    def mark_connections_updated(self) -> None:
        self.last_connections_update = self.now()

    def record_last_file(self, d: Directory) -> bool:
        """Promote ``d``'s last file to the connection-wide record when newer."""
        if d.last_file_time is None:
            return False
        if self.last_file_time is not None and d.last_file_time <= self.last_file_time:
            return False
        self.last_file_time = d.last_file_time
        self.last_file_name = d.last_file_name
        self.last_file_deleted = d.last_file_deleted
        return True

    # -- aggregate status ---------------------------------------------------

    def aggregate_status(self) -> ConnectionStatus:
        """Derive the connection-wide status and update syncing/completed ids."""
        synchronizing = False
        scanning = False
        for d in self.dirs:
            if d.status is DirStatus.SYNCHRONIZING:
                if d.id not in self.syncing_dir_ids:
                    self.syncing_dir_ids.append(d.id)
                synchronizing = True
            elif d.status is DirStatus.SCANNING:
                scanning = True

        if synchronizing:
            return ConnectionStatus.SYNCHRONIZING
        if scanning:
            status = ConnectionStatus.SCANNING
        elif any(dev.paused for dev in self.devs):
            status = ConnectionStatus.PAUSED
            # pausing is not finishing
            self.syncing_dir_ids = []
        else:
            status = ConnectionStatus.IDLE
        self.completed_dir_ids = self.syncing_dir_ids
        self.syncing_dir_ids = []
        return status

    def forget_syncing(self) -> None:
        self.syncing_dir_ids = []
