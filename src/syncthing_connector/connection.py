"""Connection to one Syncthing daemon: bootstrap, polling and the event loop.

A ``SyncthingConnection`` keeps a local replica of the daemon's folders and
devices up to date.  All work happens on the running asyncio loop: requests
are tasks handed out by ``SyncthingClient`` and their results are processed
in ``add_done_callback`` callbacks, so no two handlers ever run at once.
"""

import asyncio
import functools
import logging
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from syncthing_connector.client import EVENTS_TIMEOUT, Reply, SyncthingClient
from syncthing_connector.errors import (
    ConfigInsufficient,
    ErrorCategory,
    ParseError,
    TransportError,
    TransportErrorKind,
    parse_datetime,
)
from syncthing_connector.events import EventCursor, EventProcessor
from syncthing_connector.models import (
    ConnectionStatus,
    Device,
    DevStatus,
    Directory,
    LogEntry,
    to_int,
)
from syncthing_connector.notifications import NotificationAggregator
from syncthing_connector.reconnect import ReconnectPolicy
from syncthing_connector.settings import ConnectionSettings
from syncthing_connector.signals import ConnectionSignals, Signal
from syncthing_connector.store import StateStore, utc_now
from syncthing_connector.tls import (
    SELF_SIGNED_TLS_ERRORS,
    is_local,
    is_secure,
    load_certificate,
    locate_https_certificate,
)

logger = logging.getLogger(__name__)


class RequestKind(Enum):
    """Requests of which at most one may be outstanding at a time."""

    CONFIG = "system/config"
    STATUS = "system/status"
    CONNECTIONS = "system/connections"
    ERRORS = "system/error"
    DIR_STATS = "stats/folder"
    DEV_STATS = "stats/device"
    EVENTS = "events"


_OFFLINE = (ConnectionStatus.DISCONNECTED, ConnectionStatus.RECONNECTING)


def _json_object(reply: Reply) -> dict:
    value = reply.json()
    if not isinstance(value, dict):
        raise ParseError(f"expected a JSON object, got {type(value).__name__}")
    return value


class SyncthingConnection:
    """Client-side state of one Syncthing daemon.

    Consumers subscribe to ``signals`` and read the accessors; they never
    mutate the replica themselves.  The connection is not usable before
    ``connect()`` has been called from within a running event loop.
    """

    def __init__(
        self,
        client: SyncthingClient | None = None,
        settings: ConnectionSettings | None = None,
        *,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self.client = client if client is not None else SyncthingClient()
        self.signals = ConnectionSignals()
        self._store = StateStore(now)
        self._notifications = NotificationAggregator(self.signals.new_notification)
        self._cursor = EventCursor()
        self._events = EventProcessor(
            self._store, self.signals, self._notifications, self.request_config
        )
        self._reconnect = ReconnectPolicy(self.connect)

        self.traffic_poll_interval = 2000
        self.dev_stats_poll_interval = 60000
        self.dir_stats_poll_interval = 60000
        self.errors_poll_interval = 30000
        self.https_cert_path: str | None = None

        self._status = ConnectionStatus.DISCONNECTED
        self._keep_polling = False
        self._reconnecting = False
        self._has_config = False
        self._has_status = False
        self._replies: dict[RequestKind, asyncio.Future | None] = dict.fromkeys(RequestKind)
        self._requeued: dict[RequestKind, Callable[[], Any]] = {}
        self._aborted: set[asyncio.Future] = set()
        self._poll_timers: dict[RequestKind, asyncio.TimerHandle] = {}

        if settings is not None:
            self.apply_settings(settings)

    def __repr__(self) -> str:
        return f"<SyncthingConnection {self.client.url or '?'} {self._status.value}>"

    # -- accessors ----------------------------------------------------------

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def status_text(self) -> str:
        return self._status.text

    @property
    def is_connected(self) -> bool:
        return self._status not in (*_OFFLINE, ConnectionStatus.SHUTTING_DOWN)

    @property
    def syncthing_url(self) -> str:
        return self.client.url

    @property
    def reconnect_interval(self) -> int:
        return self._reconnect.interval

    @reconnect_interval.setter
    def reconnect_interval(self, value: int) -> None:
        self._reconnect.interval = value
        if value <= 0:
            self._reconnect.stop()

    @property
    def auto_reconnect_tries(self) -> int:
        return self._reconnect.tries

    @property
    def is_reconnect_pending(self) -> bool:
        return self._reconnect.is_armed

    @property
    def dirs(self) -> list[Directory]:
        return self._store.dirs

    @property
    def devs(self) -> list[Device]:
        return self._store.devs

    @property
    def my_id(self) -> str:
        return self._store.my_id

    @property
    def config_dir(self) -> str:
        return self._store.config_dir

    @property
    def total_incoming_traffic(self) -> int:
        return self._store.total_incoming_traffic

    @property
    def total_outgoing_traffic(self) -> int:
        return self._store.total_outgoing_traffic

    @property
    def total_incoming_rate(self) -> float:
        return self._store.total_incoming_rate

    @property
    def total_outgoing_rate(self) -> float:
        return self._store.total_outgoing_rate

    @property
    def last_file_name(self) -> str:
        return self._store.last_file_name

    @property
    def last_file_time(self) -> datetime | None:
        return self._store.last_file_time

    @property
    def last_file_deleted(self) -> bool:
        return self._store.last_file_deleted

    @property
    def completed_dirs(self) -> list[Directory]:
        return self._store.completed_dirs

    @property
    def has_out_of_sync_dirs(self) -> bool:
        return self._store.has_out_of_sync_dirs

    @property
    def has_unread_notifications(self) -> bool:
        return self._notifications.unread

    @property
    def notifications(self) -> NotificationAggregator:
        return self._notifications

    def find_dir_info(self, dir_id: str) -> tuple[Directory | None, int]:
        return self._store.find_dir(dir_id)

    def find_dev_info(self, dev_id: str) -> tuple[Device | None, int]:
        return self._store.find_dev(dev_id)

    def find_dev_info_by_name(self, name: str) -> tuple[Device | None, int]:
        return self._store.find_dev_by_name(name)

    # -- settings -----------------------------------------------------------

    def apply_settings(self, settings: ConnectionSettings) -> bool:
        """Take over ``settings``; returns whether a reconnect is required.

        When no TLS errors are expected yet, the GUI certificate is located
        and the resulting expectations are written back into ``settings``.
        """
        client = self.client
        reconnect_required = False
        url = settings.syncthing_url.rstrip("/")
        if client.url != url:
            client.url = url
            reconnect_required = True
        if client.api_key != settings.api_key:
            client.api_key = settings.api_key
            reconnect_required = True
        user, password = (
            (settings.user_name, settings.password) if settings.auth_enabled else ("", "")
        )
        if client.user != user or client.password != password:
            client.user, client.password = user, password
            reconnect_required = True

        self.https_cert_path = settings.https_cert_path
        if settings.expected_tls_errors:
            expected = tuple(settings.expected_tls_errors)
            if (
                client.expected_tls_errors != expected
                or client.certificate_path != settings.https_cert_path
            ):
                client.expected_tls_errors = expected
                client.certificate_path = settings.https_cert_path
                reconnect_required = True
        elif self.load_self_signed_certificate():
            settings.expected_tls_errors = list(client.expected_tls_errors)
            settings.https_cert_path = client.certificate_path
            reconnect_required = True

        self.traffic_poll_interval = settings.traffic_poll_interval
        self.dev_stats_poll_interval = settings.dev_stats_poll_interval
        self.dir_stats_poll_interval = settings.dir_stats_poll_interval
        self.errors_poll_interval = settings.errors_poll_interval
        self.reconnect_interval = settings.reconnect_interval
        return reconnect_required

    def load_self_signed_certificate(self) -> bool:
        """Trust the GUI certificate of a local daemon reached over HTTPS."""
        self.client.expected_tls_errors = ()
        self.client.certificate_path = None
        url = self.client.url
        if not is_secure(url) or not is_local(url):
            return False
        if self.https_cert_path:
            path: Path | None = Path(self.https_cert_path)
        else:
            path = locate_https_certificate(self._store.config_dir)
        if path is None:
            self._emit_error(
                "Unable to locate certificate used by Syncthing GUI.",
                ErrorCategory.OVERALL_CONNECTION,
            )
            return False
        if load_certificate(path) is None:
            self._emit_error(
                f"Unable to load certificate used by Syncthing GUI: {path}",
                ErrorCategory.OVERALL_CONNECTION,
            )
            return False
        self.client.certificate_path = str(path)
        self.client.expected_tls_errors = SELF_SIGNED_TLS_ERRORS
        logger.debug("Trusting Syncthing GUI certificate %s", path)
        return True

    # -- connection lifecycle -----------------------------------------------

    def connect(self, settings: ConnectionSettings | None = None) -> None:
        """Start the bootstrap unless already connected.

        With ``settings`` they are applied first and the connection is only
        re-established when a relevant setting changed.
        """
        if settings is not None:
            if self.apply_settings(settings):
                self.reconnect()
            return
        self._reconnect.stop()
        self._reconnect.reset()
        if self.is_connected:
            return
        self._reconnecting = self._has_config = self._has_status = False
        if not self._check_config():
            return
        logger.info("Connecting to %s", self.client.url)
        self._keep_polling = True
        self.request_config()
        self.request_status()

    def disconnect(self) -> None:
        """Stop polling, abort all requests and become DISCONNECTED."""
        self._reconnecting = self._has_config = self._has_status = False
        self._keep_polling = False
        self._reconnect.stop()
        self._reconnect.reset()
        self._abort_all_requests()
        self._set_status(ConnectionStatus.DISCONNECTED)

    def reconnect(self, settings: ConnectionSettings | None = None) -> None:
        """Drop all cached state and bootstrap again."""
        if settings is not None:
            self.apply_settings(settings)
        self._reconnect.stop()
        self._reconnect.reset()
        if self.is_connected:
            self._reconnecting = True
            self._has_config = self._has_status = False
            events_outstanding = self._replies[RequestKind.EVENTS] is not None
            self._abort_all_requests()
            if not events_outstanding:
                self._continue_reconnecting()
        else:
            self._abort_all_requests()
            self._continue_reconnecting()

    def close(self) -> None:
        """Shut the connection down for good; no status changes follow."""
        self._set_status(ConnectionStatus.SHUTTING_DOWN)
        self.disconnect()

    def _check_config(self) -> bool:
        if self.client.url and self.client.api_key:
            return True
        self._emit_error(str(ConfigInsufficient()), ErrorCategory.OVERALL_CONNECTION)
        return False

    def _continue_reconnecting(self) -> None:
        self.signals.new_config.emit({})
        self._set_status(ConnectionStatus.RECONNECTING)
        self._keep_polling = True
        self._reconnecting = False
        self._has_config = self._has_status = False
        self._cursor.reset()
        self._store.clear()
        self._notifications.mark_read()
        self.signals.new_dirs.emit(self._store.dirs)
        self.signals.new_devices.emit(self._store.devs)
        if not self._check_config():
            self._keep_polling = False
            self._set_status(ConnectionStatus.DISCONNECTED)
            return
        logger.info("Reconnecting to %s", self.client.url)
        self.request_config()
        self.request_status()

    def _continue_connecting(self) -> None:
        if not (self._keep_polling and self._has_config and self._has_status):
            return
        if self.is_connected:
            return
        self.request_connections()
        self.request_dir_statistics()
        self.request_device_statistics()
        self.request_errors()
        self._cursor.reset()
        self.request_events()
        self._set_status(ConnectionStatus.IDLE)

    def _connection_failed(self, message: str, category: ErrorCategory) -> None:
        self._emit_error(message, category)
        self._set_status(ConnectionStatus.DISCONNECTED)
        self._reconnect.arm()

    # -- status -------------------------------------------------------------

    def _set_status(self, status: ConnectionStatus) -> None:
        """Set an offline status, or derive the aggregate status for any other value."""
        if self._status is ConnectionStatus.SHUTTING_DOWN:
            return
        if status in _OFFLINE or status is ConnectionStatus.SHUTTING_DOWN:
            self._store.forget_syncing()
        else:
            self._reconnect.reset()
            status = self._store.aggregate_status()
        if status is self._status:
            return
        logger.info("Syncthing at %s: %s", self.client.url, status.text)
        self._status = status
        self.signals.status_changed.emit(status)

    def _refresh_status(self) -> None:
        if self.is_connected:
            self._set_status(ConnectionStatus.IDLE)

    def _emit_error(self, message: str, category: ErrorCategory) -> None:
        logger.warning("%s (%s)", message, category.value)
        self.signals.error.emit(message, category)

    # -- request bookkeeping ------------------------------------------------

    def _issue(
        self,
        kind: RequestKind,
        start: Callable[[], asyncio.Future],
        handler: Callable[[Reply], None],
        retry: Callable[[], Any],
    ) -> asyncio.Future | None:
        """Start a tracked request, or queue one re-issue while one is outstanding."""
        if self._replies[kind] is not None:
            self._requeued[kind] = retry
            return None
        task = start()
        self._replies[kind] = task
        task.add_done_callback(functools.partial(self._finished, kind, handler))
        return task

    def _finished(
        self,
        kind: RequestKind,
        handler: Callable[[Reply], None],
        task: asyncio.Future,
    ) -> None:
        if self._replies[kind] is task:
            self._replies[kind] = None
        if task in self._aborted:
            # completed before the abort reached it
            self._aborted.discard(task)
            reply = Reply(error=TransportError(TransportErrorKind.CANCELED, "Operation canceled"))
        else:
            reply = Reply.of(task)
        handler(reply)
        retry = self._requeued.pop(kind, None)
        if retry is not None and self._keep_polling:
            retry()

    def _abort_all_requests(self) -> None:
        self._requeued.clear()
        for handle in self._poll_timers.values():
            handle.cancel()
        self._poll_timers.clear()
        # events last, its cancellation continues a pending reconnect
        for kind in RequestKind:
            task = self._replies[kind]
            if task is not None and task not in self._aborted:
                logger.debug("Aborting %s request", kind.value)
                self._aborted.add(task)
                task.cancel()

    def _schedule(self, kind: RequestKind, interval: int, request: Callable[[], Any]) -> None:
        if not self._keep_polling:
            return
        previous = self._poll_timers.pop(kind, None)
        if previous is not None:
            previous.cancel()
        loop = asyncio.get_running_loop()
        self._poll_timers[kind] = loop.call_later(interval / 1000, self._poll_due, kind, request)

    def _poll_due(self, kind: RequestKind, request: Callable[[], Any]) -> None:
        self._poll_timers.pop(kind, None)
        if self._keep_polling:
            request()

    def _untracked(
        self,
        task: asyncio.Future,
        on_success: Callable[[Reply], None],
        failure: str,
    ) -> asyncio.Future:
        def done(finished: asyncio.Future) -> None:
            reply = Reply.of(finished)
            if reply.error is None:
                on_success(reply)
            elif not reply.error.canceled:
                self._emit_error(f"{failure}: {reply.error}", ErrorCategory.SPECIFIC_REQUEST)

        task.add_done_callback(done)
        return task

    # -- config and status --------------------------------------------------

    def request_config(self) -> asyncio.Future | None:
        return self._issue(
            RequestKind.CONFIG,
            lambda: self.client.get(RequestKind.CONFIG.value),
            self._read_config,
            self.request_config,
        )

    def _read_config(self, reply: Reply) -> None:
        if reply.error is not None:
            if not reply.error.canceled:
                self._connection_failed(
                    f"Unable to request Syncthing config: {reply.error}",
                    ErrorCategory.OVERALL_CONNECTION,
                )
            return
        try:
            config = _json_object(reply)
        except ParseError as exc:
            self._emit_error(f"Unable to parse Syncthing config: {exc}", ErrorCategory.PARSING)
            return
        folders = config.get("folders")
        devices = config.get("devices")
        self.signals.new_config.emit(config)
        self.signals.new_dirs.emit(self._store.replace_dirs(folders if isinstance(folders, list) else []))
        self.signals.new_devices.emit(self._store.replace_devs(devices if isinstance(devices, list) else []))
        self._has_config = True
        if self.is_connected:
            self._refresh_status()
        else:
            self._continue_connecting()

    def request_status(self) -> asyncio.Future | None:
        return self._issue(
            RequestKind.STATUS,
            lambda: self.client.get(RequestKind.STATUS.value),
            self._read_status,
            self.request_status,
        )

    def _read_status(self, reply: Reply) -> None:
        if reply.error is not None:
            if not reply.error.canceled:
                self._connection_failed(
                    f"Unable to request Syncthing status: {reply.error}",
                    ErrorCategory.OVERALL_CONNECTION,
                )
            return
        try:
            status = _json_object(reply)
        except ParseError as exc:
            self._emit_error(f"Unable to parse Syncthing status: {exc}", ErrorCategory.PARSING)
            return
        my_id = status.get("myID")
        if isinstance(my_id, str) and my_id != self._store.my_id:
            own, index = self._store.set_my_id(my_id)
            self.signals.my_id_changed.emit(my_id)
            if own is not None:
                self.signals.dev_status_changed.emit(own, index)
        self._has_status = True
        self._continue_connecting()

    # -- pollers ------------------------------------------------------------

    def request_connections(self) -> asyncio.Future | None:
        return self._issue(
            RequestKind.CONNECTIONS,
            lambda: self.client.get(RequestKind.CONNECTIONS.value),
            self._read_connections,
            self.request_connections,
        )

    def _read_connections(self, reply: Reply) -> None:
        obj = self._poll_reply(reply, "connections")
        if obj is not None:
            total = obj.get("total") if isinstance(obj.get("total"), dict) else {}
            incoming = to_int(total.get("inBytesTotal"))
            outgoing = to_int(total.get("outBytesTotal"))
            self._store.update_traffic(incoming, outgoing)
            self.signals.traffic_changed.emit(incoming, outgoing)
            connections = obj.get("connections")
            if isinstance(connections, dict):
                for index, dev in enumerate(self._store.devs):
                    conn = connections.get(dev.id)
                    if not isinstance(conn, dict) or not conn:
                        continue
                    dev.apply_connection(conn)
                    self.signals.dev_status_changed.emit(dev, index)
            self._store.mark_connections_updated()
            self._refresh_status()
        if not self._poll_canceled(reply):
            self._schedule(RequestKind.CONNECTIONS, self.traffic_poll_interval, self.request_connections)

    def request_dir_statistics(self) -> asyncio.Future | None:
        return self._issue(
            RequestKind.DIR_STATS,
            lambda: self.client.get(RequestKind.DIR_STATS.value),
            self._read_dir_statistics,
            self.request_dir_statistics,
        )

    def _read_dir_statistics(self, reply: Reply) -> None:
        obj = self._poll_reply(reply, "directory statistics")
        if obj is not None:
            for index, d in enumerate(self._store.dirs):
                stats = obj.get(d.id)
                if not isinstance(stats, dict) or not stats:
                    continue
                d.last_scan_time = parse_datetime(stats.get("lastScan"))
                last_file = stats.get("lastFile")
                if isinstance(last_file, dict) and last_file.get("filename"):
                    when = parse_datetime(last_file.get("at"))
                    if when is not None and (d.last_file_time is None or when >= d.last_file_time):
                        d.last_file_name = str(last_file["filename"])
                        d.last_file_time = when
                        d.last_file_deleted = bool(last_file.get("deleted", False))
                        self._store.record_last_file(d)
                self.signals.dir_status_changed.emit(d, index)
        if not self._poll_canceled(reply):
            self._schedule(RequestKind.DIR_STATS, self.dir_stats_poll_interval, self.request_dir_statistics)

    def request_device_statistics(self) -> asyncio.Future | None:
        return self._issue(
            RequestKind.DEV_STATS,
            lambda: self.client.get(RequestKind.DEV_STATS.value),
            self._read_device_statistics,
            self.request_device_statistics,
        )

    def _read_device_statistics(self, reply: Reply) -> None:
        obj = self._poll_reply(reply, "device statistics")
        if obj is not None:
            for index, dev in enumerate(self._store.devs):
                stats = obj.get(dev.id)
                if not isinstance(stats, dict) or not stats:
                    continue
                dev.last_seen = parse_datetime(stats.get("lastSeen"))
                self.signals.dev_status_changed.emit(dev, index)
        if not self._poll_canceled(reply):
            self._schedule(RequestKind.DEV_STATS, self.dev_stats_poll_interval, self.request_device_statistics)

    def request_errors(self) -> asyncio.Future | None:
        return self._issue(
            RequestKind.ERRORS,
            lambda: self.client.get(RequestKind.ERRORS.value),
            self._read_errors,
            self.request_errors,
        )

    def _read_errors(self, reply: Reply) -> None:
        # errors that occurred before connecting are not news
        if self._store.last_error_time is None and not self._poll_canceled(reply):
            self._store.last_error_time = self._store.now()
        obj = self._poll_reply(reply, "errors")
        if obj is not None:
            errors = obj.get("errors")
            for error in errors if isinstance(errors, list) else []:
                if not isinstance(error, dict):
                    continue
                when = parse_datetime(error.get("when"))
                if when is None or when <= self._store.last_error_time:
                    continue
                self._store.last_error_time = when
                self._notifications.emit(when, str(error.get("message") or ""))
        if not self._poll_canceled(reply):
            self._schedule(RequestKind.ERRORS, self.errors_poll_interval, self.request_errors)

    def _poll_reply(self, reply: Reply, what: str) -> dict | None:
        """Decoded reply of a poll, or None after reporting why there is none."""
        if reply.error is not None:
            if not reply.error.canceled:
                self._emit_error(
                    f"Unable to request {what}: {reply.error}",
                    ErrorCategory.OVERALL_CONNECTION,
                )
            return None
        try:
            return _json_object(reply)
        except ParseError as exc:
            self._emit_error(f"Unable to parse {what}: {exc}", ErrorCategory.PARSING)
            return None

    @staticmethod
    def _poll_canceled(reply: Reply) -> bool:
        return reply.error is not None and reply.error.canceled

    # -- event stream -------------------------------------------------------

    def request_events(self) -> asyncio.Future | None:
        return self._issue(
            RequestKind.EVENTS,
            lambda: self.client.get(
                RequestKind.EVENTS.value,
                {"since": self._cursor.last_id},
                timeout=EVENTS_TIMEOUT,
            ),
            self._read_events,
            self.request_events,
        )

    @property
    def last_event_id(self) -> int:
        return self._cursor.last_id

    def _read_events(self, reply: Reply) -> None:
        error = reply.error
        if error is None:
            try:
                events = reply.json()
                if not isinstance(events, list):
                    raise ParseError(f"expected a JSON array, got {type(events).__name__}")
            except ParseError as exc:
                self._connection_failed(
                    f"Unable to parse Syncthing events: {exc}", ErrorCategory.PARSING
                )
                return
            if events:
                logger.debug("Received %d events", len(events))
                self.signals.new_events.emit(events)
                self._events.process_batch(events, self._cursor)
        elif error.canceled:
            if self._reconnecting:
                self._continue_reconnecting()
            elif not self._keep_polling:
                self._set_status(ConnectionStatus.DISCONNECTED)
            return
        elif error.kind is not TransportErrorKind.TIMEOUT:
            self._connection_failed(
                f"Unable to request Syncthing events: {error}",
                ErrorCategory.OVERALL_CONNECTION,
            )
            return

        if self._keep_polling:
            self.request_events()
            self._set_status(ConnectionStatus.IDLE)
        else:
            self._set_status(ConnectionStatus.DISCONNECTED)

    # -- commands -----------------------------------------------------------

    def _command(self, path: str, params: dict | None, triggered: Signal, *args: Any, failure: str) -> asyncio.Future:
        logger.info("Requesting %s %s", path, params or "")
        return self._untracked(
            self.client.post(path, params),
            lambda reply: triggered.emit(*args),
            failure,
        )

    def pause(self, dev_id: str) -> asyncio.Future:
        return self._command(
            "system/pause", {"device": dev_id}, self.signals.pause_triggered, dev_id,
            failure="Unable to request pause",
        )

    def resume(self, dev_id: str) -> asyncio.Future:
        return self._command(
            "system/resume", {"device": dev_id}, self.signals.resume_triggered, dev_id,
            failure="Unable to request resume",
        )

    def pause_all(self) -> list[asyncio.Future]:
        return [self.pause(dev.id) for dev in self._store.devs if dev.status is not DevStatus.OWN_DEVICE]

    def resume_all(self) -> list[asyncio.Future]:
        return [self.resume(dev.id) for dev in self._store.devs if dev.status is not DevStatus.OWN_DEVICE]

    def rescan(self, dir_id: str) -> asyncio.Future:
        return self._command(
            "db/scan", {"folder": dir_id}, self.signals.rescan_triggered, dir_id,
            failure="Unable to request rescan",
        )

    def rescan_all(self) -> list[asyncio.Future]:
        return [self.rescan(d.id) for d in self._store.dirs]

    def restart(self) -> asyncio.Future:
        return self._command(
            "system/restart", None, self.signals.restart_triggered,
            failure="Unable to request restart",
        )

    def shutdown(self) -> asyncio.Future:
        return self._command(
            "system/shutdown", None, self.signals.shutdown_triggered,
            failure="Unable to request shutdown",
        )

    def request_log(self, callback: Callable[[list[LogEntry]], Any]) -> asyncio.Future:
        """Fetch the daemon's recent log; ``callback`` receives the entries."""

        def read_log(reply: Reply) -> None:
            try:
                obj = _json_object(reply)
            except ParseError as exc:
                self._emit_error(f"Unable to parse Syncthing log: {exc}", ErrorCategory.PARSING)
                return
            messages = obj.get("messages")
            callback([
                LogEntry(str(entry.get("when") or ""), str(entry.get("message") or ""))
                for entry in (messages if isinstance(messages, list) else [])
                if isinstance(entry, dict)
            ])

        return self._untracked(self.client.get("system/log"), read_log, "Unable to request system log")

    def request_qr_code(self, text: str, callback: Callable[[bytes], Any]) -> asyncio.Future:
        """Fetch a PNG QR code encoding ``text``; ``callback`` receives the image."""
        return self._untracked(
            self.client.get("qr/", {"text": text}, rest=False),
            lambda reply: callback(reply.body),
            "Unable to request QR-Code",
        )
