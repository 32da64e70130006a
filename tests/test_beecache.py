import time

import pytest

from hivekit.beecache import DEFAULT_EVERY, BeeCache, BeeItem


class FakeClock:
    def __init__(self, now=500.0):
        self.now = now

    def __call__(self):
        return self.now


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return predicate()


def test_default_every():
    assert BeeCache().every == DEFAULT_EVERY


def test_not_started():
    bc = BeeCache()
    assert bc.get("k") is None
    assert bc.is_exist("k") is False
    assert bc.delete("k") is False
    with pytest.raises(RuntimeError):
        bc.put("k", "v", 10)


def test_put_get_round_trip():
    bc = BeeCache()
    bc.start()
    bc.put("k", "value", 10)
    assert bc.is_exist("k")
    assert bc.get("k") == "value"


def test_put_duplicate_raises():
    bc = BeeCache()
    bc.start()
    bc.put("k", "value", 10)
    with pytest.raises(KeyError):
        bc.put("k", "other", 10)
    assert bc.get("k") == "value"


def test_delete_reports_presence():
    bc = BeeCache()
    bc.start()
    bc.put("k", "value", 10)
    assert bc.delete("k") is True
    assert bc.delete("k") is False
    assert not bc.is_exist("k")


def test_items_exposes_entries():
    bc = BeeCache()
    bc.start()
    bc.put("k", "value", 10)
    items = bc.items()
    assert set(items) == {"k"}
    assert items["k"].val == "value"
    assert items["k"].expired == 10


def test_get_refreshes_last_access():
    clock = FakeClock(100.0)
    bc = BeeCache(clock=clock)
    bc.start()
    bc.put("k", "value", 10)
    assert bc.items()["k"].last_access == 100.0
    clock.now = 150.0
    bc.get("k")
    assert bc.items()["k"].last_access == 150.0


def test_item_access_updates_timestamp():
    clock = FakeClock(7.0)
    item = BeeItem("value", 1.0, 10, clock)
    assert item.access() == "value"
    assert item.last_access == 7.0


def test_start_resets_items():
    bc = BeeCache()
    bc.start()
    bc.put("k", "value", 10)
    bc.start()
    assert not bc.is_exist("k")
    assert bc.items() == {}


def test_vacuum_removes_only_stale_items():
    clock = FakeClock(0.0)
    bc = BeeCache(every=1, clock=clock)
    bc.start()
    bc.put("stale", "a", 10)
    bc.put("fresh", "b", 1000)
    clock.now = 30.0
    assert wait_until(lambda: not bc.is_exist("stale"))
    assert bc.is_exist("fresh")
    assert bc.get("fresh") == "b"


def test_no_vacuum_when_every_below_one():
    clock = FakeClock(0.0)
    bc = BeeCache(every=0, clock=clock)
    bc.start()
    bc.put("k", "value", 0)
    clock.now = 100.0
    time.sleep(0.2)
    assert bc.is_exist("k")