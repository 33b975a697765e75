"""
Expiring token cache tests.
"""

import threading

from trips_backend.app.services.cache import ExpiringStore, privilege_token_key


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def test_read_before_expiry_succeeds_and_after_fails():
    clock = FakeClock()
    store = ExpiringStore[str](default_ttl=600, clock=clock)
    store.put("session", "id-token", ttl=7200)

    clock.advance(7200 - 0.001)
    assert store.get("session") == "id-token"

    clock.advance(0.002)
    assert store.get("session") is None


def test_default_ttl_applies_when_none_given():
    clock = FakeClock()
    store = ExpiringStore[str](default_ttl=600, clock=clock)
    store.put("privilege", "p-token")

    clock.advance(599)
    assert store.get("privilege") == "p-token"
    clock.advance(2)
    assert store.get("privilege") is None


def test_put_overwrites_value_and_expiry():
    clock = FakeClock()
    store = ExpiringStore[str](default_ttl=10, clock=clock)
    store.put("k", "first")
    clock.advance(8)
    store.put("k", "second")
    clock.advance(8)

    assert store.get("k") == "second"


def test_missing_key_is_none():
    assert ExpiringStore[str]().get("nope") is None


def test_expired_entry_is_evicted_on_read():
    clock = FakeClock()
    store = ExpiringStore[str](default_ttl=1, clock=clock)
    store.put("k", "v")
    clock.advance(5)

    assert len(store) == 1
    assert store.get("k") is None
    assert len(store) == 0


def test_purge_expired_removes_only_expired_entries():
    clock = FakeClock()
    store = ExpiringStore[str](default_ttl=10, clock=clock)
    store.put("short", "a", ttl=1)
    store.put("long", "b", ttl=100)
    clock.advance(2)

    assert store.purge_expired() == 1
    assert store.get("long") == "b"
    assert len(store) == 1


def test_privilege_key_is_scoped_to_session_and_vehicle():
    assert privilege_token_key("abc", 7) != privilege_token_key("abc", 8)
    assert privilege_token_key("abc", 7) != privilege_token_key("abd", 7)


def test_concurrent_writers_and_readers():
    """Readers see either nothing or a complete value for every key."""
    store = ExpiringStore[str](default_ttl=60)
    errors = []

    def writer(n: int):
        for i in range(200):
            store.put(f"key-{i}", f"value-{i}")

    def reader():
        for i in range(200):
            value = store.get(f"key-{i}")
            if value is not None and value != f"value-{i}":
                errors.append(value)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    threads += [threading.Thread(target=reader) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(store) == 200
