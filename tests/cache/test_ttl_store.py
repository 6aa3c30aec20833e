"""
Brief: Tests for registrygraph.cache.backends.ttl_store.TTLStore.

Inputs:
  - None

Outputs:
  - None
"""

import threading

from registrygraph.cache.backends.ttl_store import TTLStore


def test_set_get_and_expiry(clock):
    """
    Brief: Entries are returned until their TTL elapses, then dropped.

    Inputs:
      - clock: FakeClock fixture

    Outputs:
      - None: Asserts hit before expiry and miss at expiry
    """
    store = TTLStore(now=clock)
    expiry = store.set("k", 10, "v")
    assert expiry == 1010.0
    assert store.get("k") == "v"
    assert store.get_with_expiry("k") == ("v", 1010.0)
    clock.advance(10)
    assert store.get("k") is None
    assert len(store) == 0


def test_non_positive_ttl_deletes_key(clock):
    """
    Brief: set() with ttl <= 0 removes an existing entry.

    Inputs:
      - clock: FakeClock fixture

    Outputs:
      - None: Asserts key gone and None returned
    """
    store = TTLStore(now=clock)
    store.set("k", 10, "v")
    assert store.set("k", 0, "other") is None
    assert store.get("k") is None


def test_purge_expired_and_counters(clock):
    """
    Brief: purge_expired removes only expired entries; counters track lookups.

    Inputs:
      - clock: FakeClock fixture

    Outputs:
      - None: Asserts purge count and hit/miss counters
    """
    store = TTLStore(shards=1, now=clock)
    store.set("short", 1, 1)
    store.set("long", 100, 2)
    clock.advance(5)
    assert store.purge_expired() == 1
    assert len(store) == 1

    store.get("long")
    store.get("missing")
    assert store.calls_total == 2
    assert store.cache_hits == 1
    assert store.cache_misses == 1


def test_shards_clamped_and_clear():
    """
    Brief: Shard count below one is clamped; clear() empties every shard.

    Inputs:
      - None

    Outputs:
      - None: Asserts entries removed
    """
    store = TTLStore(shards=0)
    for i in range(20):
        store.set(i, 60, i)
    assert len(store) == 20
    store.clear()
    assert len(store) == 0


def test_concurrent_writers_keep_every_key():
    """
    Brief: Parallel writers on distinct keys do not lose updates.

    Inputs:
      - None

    Outputs:
      - None: Asserts all keys present
    """
    store = TTLStore(shards=4)

    def writer(base):
        for i in range(200):
            store.set((base, i), 60, i)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(store) == 800
