"""Tests for the StateStore merge and aggregate-status rules."""

import pytest

from syncthing_connector.models import ConnectionStatus, DevStatus, DirError, DirStatus
from syncthing_connector.store import StateStore, compute_rate
from tests.conftest import DEVICE_ID_LOCAL, DEVICE_ID_REMOTE, DEVICE_ID_REMOTE2, FakeClock, make_config


@pytest.fixture
def store():
    s = StateStore(FakeClock())
    config = make_config(folders=[{"id": "a"}, {"id": "b"}, {"id": "c"}])
    s.replace_dirs(config["folders"])
    s.replace_devs(config["devices"])
    return s


class TestComputeRate:
    def test_rate_in_kbit_per_second(self):
        assert compute_rate(3000, 1000, 2.0) == pytest.approx(8.0)

    @pytest.mark.parametrize("elapsed", [None, 0, 0.0, -1.0])
    def test_no_usable_elapsed_time(self, elapsed):
        assert compute_rate(3000, 1000, elapsed) == 0.0


class TestReplaceDirs:
    def test_recycles_runtime_fields(self, store):
        a = store.find_dir("a")[0]
        a.assign_status(DirStatus.SYNCHRONIZING)
        a.completion_percentage = 55
        a.add_error(DirError("boom", "x"))
        store.replace_dirs([{"id": "c"}, {"id": "a", "label": "Renamed"}])
        assert [d.id for d in store.dirs] == ["c", "a"]
        recycled = store.dirs[1]
        assert recycled is a
        assert recycled.label == "Renamed"
        assert recycled.status is DirStatus.SYNCHRONIZING
        assert recycled.completion_percentage == 55
        assert recycled.errors == [DirError("boom", "x")]

    def test_skips_empty_ids(self, store):
        store.replace_dirs([{"id": ""}, {"label": "no id"}, "junk", {"id": "d"}])
        assert [d.id for d in store.dirs] == ["d"]

    def test_new_entries_start_unknown(self, store):
        store.replace_dirs([{"id": "z", "path": "/z"}])
        assert store.dirs[0].status is DirStatus.UNKNOWN
        assert store.dirs[0].path == "/z"


class TestReplaceDevs:
    def test_own_device_after_refresh(self, store):
        store.set_my_id(DEVICE_ID_LOCAL)
        store.replace_devs(make_config()["devices"])
        assert store.find_dev(DEVICE_ID_LOCAL)[0].status is DevStatus.OWN_DEVICE

    def test_former_own_device_becomes_unknown(self, store):
        store.set_my_id(DEVICE_ID_LOCAL)
        store.my_id = DEVICE_ID_REMOTE2
        store.replace_devs(make_config()["devices"])
        assert store.find_dev(DEVICE_ID_LOCAL)[0].status is DevStatus.UNKNOWN

    def test_keeps_runtime_status(self, store):
        remote = store.find_dev(DEVICE_ID_REMOTE)[0]
        remote.status = DevStatus.IDLE
        remote.last_seen = "sentinel"
        store.replace_devs(make_config()["devices"])
        assert store.find_dev(DEVICE_ID_REMOTE)[0].status is DevStatus.IDLE
        assert store.find_dev(DEVICE_ID_REMOTE)[0].last_seen == "sentinel"

    def test_set_my_id_returns_index(self, store):
        own, index = store.set_my_id(DEVICE_ID_REMOTE)
        assert own.id == DEVICE_ID_REMOTE
        assert index == 1
        assert store.set_my_id("not-configured") == (None, -1)

    def test_find_by_name(self, store):
        dev, index = store.find_dev_by_name("remote-dev")
        assert dev.id == DEVICE_ID_REMOTE
        assert index == 1
        assert store.find_dev_by_name("nope") == (None, -1)


class TestAggregateStatus:
    def set_dirs(self, store, *statuses):
        for d, status in zip(store.dirs, statuses):
            d.status = status

    def test_idle(self, store):
        assert store.aggregate_status() is ConnectionStatus.IDLE

    def test_synchronizing_beats_everything(self, store):
        self.set_dirs(store, DirStatus.SCANNING, DirStatus.SYNCHRONIZING, DirStatus.OUT_OF_SYNC)
        store.devs[1].paused = True
        assert store.aggregate_status() is ConnectionStatus.SYNCHRONIZING

    def test_scanning_beats_paused(self, store):
        self.set_dirs(store, DirStatus.SCANNING, DirStatus.IDLE)
        store.devs[1].paused = True
        assert store.aggregate_status() is ConnectionStatus.SCANNING

    def test_paused(self, store):
        store.devs[1].paused = True
        assert store.aggregate_status() is ConnectionStatus.PAUSED

    def test_out_of_sync_is_idle(self, store):
        self.set_dirs(store, DirStatus.OUT_OF_SYNC)
        assert store.aggregate_status() is ConnectionStatus.IDLE
        assert store.has_out_of_sync_dirs

    def test_completed_exactly_once(self, store):
        self.set_dirs(store, DirStatus.SYNCHRONIZING, DirStatus.SYNCHRONIZING)
        store.aggregate_status()
        self.set_dirs(store, DirStatus.IDLE, DirStatus.SYNCHRONIZING)
        assert store.aggregate_status() is ConnectionStatus.SYNCHRONIZING
        self.set_dirs(store, DirStatus.IDLE, DirStatus.IDLE)
        assert store.aggregate_status() is ConnectionStatus.IDLE
        assert [d.id for d in store.completed_dirs] == ["a", "b"]
        store.aggregate_status()
        assert store.completed_dirs == []

    def test_pausing_does_not_complete(self, store):
        self.set_dirs(store, DirStatus.SYNCHRONIZING)
        store.aggregate_status()
        self.set_dirs(store, DirStatus.IDLE)
        store.devs[1].paused = True
        assert store.aggregate_status() is ConnectionStatus.PAUSED
        assert store.completed_dirs == []

    def test_completed_revalidated_after_refresh(self, store):
        self.set_dirs(store, DirStatus.SYNCHRONIZING)
        store.aggregate_status()
        self.set_dirs(store, DirStatus.IDLE)
        store.aggregate_status()
        store.replace_dirs([{"id": "b"}])
        assert store.completed_dirs == []

    def test_forget_syncing(self, store):
        self.set_dirs(store, DirStatus.SYNCHRONIZING)
        store.aggregate_status()
        store.forget_syncing()
        self.set_dirs(store, DirStatus.IDLE)
        store.aggregate_status()
        assert store.completed_dirs == []


class TestTraffic:
    def test_rates_follow_clock(self):
        clock = FakeClock()
        store = StateStore(clock)
        store.update_traffic(1000, 500)
        store.mark_connections_updated()
        assert store.total_incoming_rate == 0.0
        clock.tick(4)
        store.update_traffic(5000, 500)
        assert store.total_incoming_rate == pytest.approx(8.0)
        assert store.total_outgoing_rate == 0.0

    def test_clear(self, store):
        store.set_my_id(DEVICE_ID_LOCAL)
        store.update_traffic(10, 20)
        store.clear()
        assert store.my_id == ""
        assert store.dirs == []
        assert store.devs == []
        assert store.total_incoming_traffic == 0
        assert store.last_error_time is None
