"""Shared fixtures for syncthing-connector tests."""

import asyncio
import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest
import respx

from syncthing_connector.client import SyncthingClient
from syncthing_connector.connection import SyncthingConnection
from syncthing_connector.errors import TransportError, TransportErrorKind
from syncthing_connector.settings import ConnectionSettings


# ---------------------------------------------------------------------------
# Common Syncthing API response fixtures
# ---------------------------------------------------------------------------

DEVICE_ID_LOCAL = "AAAAAAA-AAAAAAA-AAAAAAA-AAAAAAA-AAAAAAA-AAAAAAA-AAAAAAA-AAAAAAA"
DEVICE_ID_REMOTE = "BBBBBBB-BBBBBBB-BBBBBBB-BBBBBBB-BBBBBBB-BBBBBBB-BBBBBBB-BBBBBBB"
DEVICE_ID_REMOTE2 = "CCCCCCC-CCCCCCC-CCCCCCC-CCCCCCC-CCCCCCC-CCCCCCC-CCCCCCC-CCCCCCC"

FOLDER_ID = "test-folder"
API_KEY = "test-api-key-12345"
BASE_URL = "http://localhost:8384"

T0 = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def ts(seconds: float = 0) -> str:
    """Event timestamp ``seconds`` after T0, in Syncthing's format."""
    return (T0 + timedelta(seconds=seconds)).isoformat().replace("+00:00", "Z")


def make_config(
    *,
    folders: list | None = None,
    devices: list | None = None,
) -> dict:
    """Build a minimal Syncthing config response."""
    if devices is None:
        devices = [
            {"deviceID": DEVICE_ID_LOCAL, "name": "local-dev"},
            {"deviceID": DEVICE_ID_REMOTE, "name": "remote-dev"},
        ]
    if folders is None:
        folders = [
            {
                "id": FOLDER_ID,
                "label": "Test Folder",
                "path": "/data/test",
                "type": "sendreceive",
                "devices": [
                    {"deviceID": DEVICE_ID_LOCAL},
                    {"deviceID": DEVICE_ID_REMOTE},
                ],
            }
        ]
    return {"folders": folders, "devices": devices}


def make_system_status(my_id: str = DEVICE_ID_LOCAL) -> dict:
    return {"myID": my_id, "uptime": 3600}


def make_connections(
    connected: dict | None = None,
    *,
    in_total: int = 5120,
    out_total: int = 10240,
) -> dict:
    if connected is None:
        connected = {
            DEVICE_ID_REMOTE: {"connected": True, "paused": False, "address": "192.168.1.2:22000",
                               "type": "tcp-client", "clientVersion": "v1.28.0",
                               "inBytesTotal": 4096, "outBytesTotal": 8192},
        }
    return {
        "total": {"inBytesTotal": in_total, "outBytesTotal": out_total},
        "connections": connected,
    }


def make_stats_device() -> dict:
    return {
        DEVICE_ID_LOCAL: {"lastSeen": "2025-01-01T12:00:00Z"},
        DEVICE_ID_REMOTE: {"lastSeen": "2025-01-01T11:00:00Z"},
    }


def make_stats_folder() -> dict:
    return {
        FOLDER_ID: {
            "lastScan": "2025-01-01T12:00:00Z",
            "lastFile": {"filename": "test.txt", "at": "2025-01-01T11:00:00Z", "deleted": False},
        }
    }


def make_event(event_id: int, event_type: str, data: dict, seconds: float = 0) -> dict:
    return {"id": event_id, "type": event_type, "time": ts(seconds), "data": data}


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


@dataclass
class FakeCall:
    method: str
    path: str
    params: dict | None
    rest: bool
    timeout: float | None
    future: asyncio.Future


class FakeTransport(SyncthingClient):
    """SyncthingClient whose requests are futures completed by the test."""

    def __init__(self) -> None:
        super().__init__("test", BASE_URL, API_KEY)
        self.calls: list[FakeCall] = []

    def request(self, method, path, params=None, *, rest=True, timeout=None):
        future = asyncio.get_running_loop().create_future()
        self.calls.append(FakeCall(method, path, params, rest, timeout, future))
        return future

    def paths(self) -> list[str]:
        return [call.path for call in self.calls]

    def pending(self, path: str) -> FakeCall:
        for call in reversed(self.calls):
            if call.path == path and not call.future.done():
                return call
        raise AssertionError(f"no outstanding request for {path}; calls: {self.paths()}")

    def has_pending(self, path: str) -> bool:
        return any(call.path == path and not call.future.done() for call in self.calls)

    def reply(self, path: str, payload) -> FakeCall:
        call = self.pending(path)
        body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
        call.future.set_result(body)
        return call

    def fail(
        self,
        path: str,
        kind: TransportErrorKind = TransportErrorKind.OTHER,
        message: str = "Error: Cannot connect to Syncthing",
    ) -> FakeCall:
        call = self.pending(path)
        call.future.set_exception(TransportError(kind, message))
        return call


class FakeClock:
    """Callable clock for StateStore; advance with ``tick``."""

    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def tick(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


async def settle(rounds: int = 5) -> None:
    """Let completed futures deliver their done callbacks."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def record(signal) -> list[tuple]:
    """Subscribe to ``signal`` and collect the emitted argument tuples."""
    received: list[tuple] = []
    signal.connect(lambda *args: received.append(args))
    return received


async def bootstrap(transport: FakeTransport, config: dict | None = None, my_id: str = DEVICE_ID_LOCAL) -> None:
    transport.reply("system/config", make_config() if config is None else config)
    transport.reply("system/status", make_system_status(my_id))
    await settle()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client():
    """A SyncthingClient for testing."""
    return SyncthingClient("test", BASE_URL, API_KEY)


@pytest.fixture
def settings():
    return ConnectionSettings(syncthing_url=BASE_URL, api_key=API_KEY)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
async def connection(transport, settings, clock):
    """A SyncthingConnection talking to the fake transport; closed afterwards."""
    conn = SyncthingConnection(transport, settings, now=clock)
    yield conn
    conn.close()
    await settle()


@pytest.fixture
async def connected(connection, transport):
    """A connection that completed its bootstrap with the default config."""
    connection.connect()
    await bootstrap(transport)
    return connection


@pytest.fixture
def single_instance_env(monkeypatch):
    """Set env vars for single-instance mode."""
    monkeypatch.setenv("SYNCTHING_API_KEY", API_KEY)
    monkeypatch.setenv("SYNCTHING_URL", BASE_URL)
    monkeypatch.delenv("SYNCTHING_INSTANCES", raising=False)
    for var in (
        "SYNCTHING_RECONNECT_INTERVAL",
        "SYNCTHING_TRAFFIC_POLL_INTERVAL",
        "SYNCTHING_DEV_STATS_POLL_INTERVAL",
        "SYNCTHING_DIR_STATS_POLL_INTERVAL",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def multi_instance_env(monkeypatch):
    """Set env vars for multi-instance mode."""
    instances = {
        "alpha": {"url": "http://alpha.local:8384", "api_key": "key-alpha"},
        "beta": {"url": "http://beta.local:8384", "api_key": "key-beta", "reconnect_interval": 5000},
    }
    monkeypatch.setenv("SYNCTHING_INSTANCES", json.dumps(instances))
    monkeypatch.delenv("SYNCTHING_API_KEY", raising=False)
    monkeypatch.delenv("SYNCTHING_URL", raising=False)


@pytest.fixture
def mock_api():
    """Activate respx mock for the default Syncthing base URL.

    Pre-configures the endpoints a connection polls.  Returns the respx mock
    router for further customisation.
    """
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as router:
        router.get("/rest/system/status").respond(json=make_system_status())
        router.get("/rest/system/config").respond(json=make_config())
        router.get("/rest/system/connections").respond(json=make_connections())
        router.get("/rest/stats/device").respond(json=make_stats_device())
        router.get("/rest/stats/folder").respond(json=make_stats_folder())
        router.get("/rest/system/error").respond(json={"errors": []})
        router.get("/rest/system/log").respond(json={"messages": []})
        yield router
