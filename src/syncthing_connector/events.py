"""Interpretation of the daemon's event stream (``GET /rest/events``).

Each handler applies one event to the ``StateStore``.  Events whose id the
cursor has already passed are skipped, so a batch delivered twice is applied
once.  The cursor restarts at 0 on reconnect, together with a cleared store.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from syncthing_connector.errors import parse_datetime
from syncthing_connector.models import (
    DevStatus,
    DirError,
    Directory,
    DirStatus,
)
from syncthing_connector.notifications import NotificationAggregator
from syncthing_connector.signals import ConnectionSignals
from syncthing_connector.store import StateStore

logger = logging.getLogger(__name__)

DEVICE_EVENTS = frozenset({
    "DeviceConnected",
    "DeviceDisconnected",
    "DevicePaused",
    "DeviceRejected",
    "DeviceResumed",
    "DeviceDiscovered",
})


class EventCursor:
    """High-water mark of consumed event ids."""

    def __init__(self) -> None:
        self.last_id = 0

    def advance(self, event_id: int) -> bool:
        if event_id > self.last_id:
            self.last_id = event_id
            return True
        return False

    def reset(self) -> None:
        self.last_id = 0


class EventProcessor:
    def __init__(
        self,
        store: StateStore,
        signals: ConnectionSignals,
        notifications: NotificationAggregator,
        request_config: Callable[[], object],
    ) -> None:
        self._store = store
        self._signals = signals
        self._notifications = notifications
        self._request_config = request_config
        self._handlers: dict[str, Callable[[datetime | None, dict], None]] = {
            "Starting": self._starting,
            "StateChanged": self._state_changed,
            "DownloadProgress": self._download_progress,
            "FolderErrors": self._folder_errors,
            "FolderSummary": self._folder_summary,
            "FolderCompletion": self._folder_completion,
            "FolderScanProgress": self._folder_scan_progress,
            "ItemFinished": self._item_finished,
            "ConfigSaved": self._config_saved,
        }

    def process_batch(self, events: list, cursor: EventCursor) -> None:
        """Apply ``events`` in array order and advance ``cursor`` to the highest id."""
        for event in events:
            if not isinstance(event, dict):
                continue
            event_id = event.get("id")
            if isinstance(event_id, int) and not isinstance(event_id, bool):
                if not cursor.advance(event_id):
                    # already consumed
                    continue
            self.process(event)

    def process(self, event: dict) -> None:
        event_type = event.get("type")
        if not isinstance(event_type, str):
            return
        data = event.get("data")
        if not isinstance(data, dict):
            data = {}
        if event_type in DEVICE_EVENTS:
            self._device_event(event_type, parse_datetime(event.get("time")), data)
            return
        handler = self._handlers.get(event_type)
        if handler is None:
            return
        handler(parse_datetime(event.get("time")), data)

    # -- helpers ------------------------------------------------------------

    def _dir_of(self, data: dict) -> tuple[Directory | None, int]:
        dir_id = data.get("folder")
        if not dir_id or not isinstance(dir_id, str):
            return None, -1
        return self._store.find_dir(dir_id)

    def _dir_changed(self, d: Directory, index: int) -> None:
        self._signals.dir_status_changed.emit(d, index)

    # -- handlers -----------------------------------------------------------

    def _starting(self, when: datetime | None, data: dict) -> None:
        home = data.get("home")
        if isinstance(home, str) and home != self._store.config_dir:
            self._store.config_dir = home
            self._signals.config_dir_changed.emit(home)
        my_id = data.get("myID")
        if isinstance(my_id, str) and my_id and my_id != self._store.my_id:
            own, index = self._store.set_my_id(my_id)
            self._signals.my_id_changed.emit(my_id)
            if own is not None:
                self._signals.dev_status_changed.emit(own, index)

    def _state_changed(self, when: datetime | None, data: dict) -> None:
        dir_id = data.get("folder")
        if not dir_id or not isinstance(dir_id, str):
            return
        state = data.get("to") if isinstance(data.get("to"), str) else ""
        d, index = self._store.find_dir(dir_id)
        if d is not None:
            if d.assign_status_name(state, when):
                self._dir_changed(d, index)
            return
        # unknown directory: keep a placeholder until the config tells us more
        d = Directory(dir_id)
        d.assign_status_name(state, when)
        self._store.dirs.append(d)
        self._dir_changed(d, len(self._store.dirs) - 1)
        logger.debug("State change for unknown folder %s, refreshing config", dir_id)
        self._request_config()

    def _download_progress(self, when: datetime | None, data: dict) -> None:
        for d in self._store.dirs:
            files = data.get(d.id)
            d.set_download_progress(files if isinstance(files, dict) else {})
        self._signals.download_progress_changed.emit()

    def _folder_errors(self, when: datetime | None, data: dict) -> None:
        d, index = self._dir_of(data)
        errors = data.get("errors")
        if d is None or not isinstance(errors, list) or not errors:
            return
        for obj in errors:
            if not isinstance(obj, dict) or not obj:
                continue
            error = DirError(str(obj.get("error") or ""), str(obj.get("path") or ""))
            if not d.add_error(error):
                continue
            d.assign_status(DirStatus.OUT_OF_SYNC, when)
            if self._notifications.is_new_folder_error(d, error):
                self._notifications.emit(when, error.message)
        self._dir_changed(d, index)

    def _folder_summary(self, when: datetime | None, data: dict) -> None:
        d, index = self._dir_of(data)
        summary = data.get("summary")
        if d is None or not isinstance(summary, dict) or not summary:
            return
        d.apply_summary(summary)
        self._dir_changed(d, index)

    def _folder_completion(self, when: datetime | None, data: dict) -> None:
        d, index = self._dir_of(data)
        completion = data.get("completion")
        if d is None or not isinstance(completion, (int, float)):
            return
        percentage = int(completion)
        # one event per remote device; keep the smallest
        if 0 < percentage < 100 and (
            d.completion_percentage <= 0 or percentage < d.completion_percentage
        ):
            d.completion_percentage = percentage
            self._dir_changed(d, index)

    def _folder_scan_progress(self, when: datetime | None, data: dict) -> None:
        d, index = self._dir_of(data)
        if d is None:
            return
        current, total = data.get("current"), data.get("total")
        if not isinstance(current, int) or not isinstance(total, int):
            return
        if current > 0 and total > 0:
            d.assign_status(DirStatus.SCANNING, when)
            d.scan_percentage = current * 100 // total
            rate = data.get("rate")
            d.scan_rate = int(rate) if isinstance(rate, (int, float)) else 0
            self._dir_changed(d, index)

    def _device_event(self, event_type: str, when: datetime | None, data: dict) -> None:
        last_poll = self._store.last_connections_update
        if when is not None and last_poll is not None and when < last_poll:
            # already covered by the newer connections poll
            return
        dev_id = data.get("device")
        if not dev_id or not isinstance(dev_id, str):
            return
        dev, index = self._store.find_dev(dev_id)
        if dev is None:
            return
        status, paused = dev.status, dev.paused
        if event_type == "DeviceConnected":
            status = DevStatus.IDLE
        elif event_type == "DeviceDisconnected":
            status = DevStatus.DISCONNECTED
        elif event_type == "DevicePaused":
            paused = True
        elif event_type == "DeviceRejected":
            status = DevStatus.REJECTED
        elif event_type == "DeviceResumed":
            paused = False
            status = DevStatus.DISCONNECTED
        elif event_type == "DeviceDiscovered":
            if status is DevStatus.UNKNOWN:
                status = DevStatus.DISCONNECTED
        else:
            return
        if dev.status is DevStatus.OWN_DEVICE:
            status = DevStatus.OWN_DEVICE
        if status is dev.status and paused == dev.paused:
            return
        dev.status = status
        dev.paused = paused
        self._signals.dev_status_changed.emit(dev, index)

    def _item_finished(self, when: datetime | None, data: dict) -> None:
        d, index = self._dir_of(data)
        if d is None:
            return
        error = data.get("error") or ""
        item = data.get("item") or ""
        if not error:
            if d.last_file_time is not None and (when is None or when <= d.last_file_time):
                return
            d.last_file_time = when
            d.last_file_name = str(item)
            d.last_file_deleted = data.get("action") == "delete"
            self._store.record_last_file(d)
            self._dir_changed(d, index)
        elif d.status is DirStatus.OUT_OF_SYNC:
            # only while out of sync, otherwise every retry would notify
            if d.add_error(DirError(str(error), str(item))):
                self._dir_changed(d, index)
                self._notifications.emit(when, str(error))

    def _config_saved(self, when: datetime | None, data: dict) -> None:
        self._request_config()
