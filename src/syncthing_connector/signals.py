"""Observer interface through which the connection reports changes."""

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class Signal:
    """A named list of subscribers called in subscription order.

    Coroutine functions are scheduled on the running loop; plain callables
    are invoked synchronously.  A failing slot is logged and does not stop
    the emitter or the remaining slots.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._slots: list[Callable[..., Any]] = []
        self._tasks: set[asyncio.Task] = set()

    def connect(self, slot: Callable[..., Any]) -> Callable[..., Any]:
        """Subscribe ``slot``; returns it so this can be used as a decorator."""
        if slot not in self._slots:
            self._slots.append(slot)
        return slot

    def disconnect(self, slot: Callable[..., Any]) -> None:
        if slot in self._slots:
            self._slots.remove(slot)

    def emit(self, *args: Any) -> None:
        for slot in list(self._slots):
            if inspect.iscoroutinefunction(slot):
                task = asyncio.get_running_loop().create_task(slot(*args))
                self._tasks.add(task)
                task.add_done_callback(self._task_done)
                continue
            try:
                slot(*args)
            except Exception:
                logger.exception("Subscriber of %s failed", self.name)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Subscriber of %s failed", self.name, exc_info=task.exception()
            )

    def __len__(self) -> int:
        return len(self._slots)

    def __repr__(self) -> str:
        return f"Signal({self.name!r}, slots={len(self._slots)})"


class ConnectionSignals:
    """All change notifications a ``SyncthingConnection`` emits.

    Arguments per signal:
      new_config(config: dict)             -- empty dict when invalidated
      new_dirs(dirs: list[Directory])
      new_devices(devs: list[Device])
      new_events(events: list[dict])
      dir_status_changed(dir: Directory, index: int)
      dev_status_changed(dev: Device, index: int)
      download_progress_changed()
      new_notification(notification: Notification)
      error(message: str, category: ErrorCategory)
      status_changed(status: ConnectionStatus)
      config_dir_changed(path: str)
      my_id_changed(device_id: str)
      traffic_changed(total_incoming: int, total_outgoing: int)
      rescan_triggered(dir_id: str)
      pause_triggered(dev_id: str)
      resume_triggered(dev_id: str)
      restart_triggered()
      shutdown_triggered()
    """

    def __init__(self) -> None:
        self.new_config = Signal("new_config")
        self.new_dirs = Signal("new_dirs")
        self.new_devices = Signal("new_devices")
        self.new_events = Signal("new_events")
        self.dir_status_changed = Signal("dir_status_changed")
        self.dev_status_changed = Signal("dev_status_changed")
        self.download_progress_changed = Signal("download_progress_changed")
        self.new_notification = Signal("new_notification")
        self.error = Signal("error")
        self.status_changed = Signal("status_changed")
        self.config_dir_changed = Signal("config_dir_changed")
        self.my_id_changed = Signal("my_id_changed")
        self.traffic_changed = Signal("traffic_changed")
        self.rescan_triggered = Signal("rescan_triggered")
        self.pause_triggered = Signal("pause_triggered")
        self.resume_triggered = Signal("resume_triggered")
        self.restart_triggered = Signal("restart_triggered")
        self.shutdown_triggered = Signal("shutdown_triggered")
