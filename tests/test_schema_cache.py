import json
import threading

import pytest

from conftest import CountingSchemaStore
from core.cache import CacheService
from core.exceptions import InvalidParameterError, SchemaNotFoundError
from services.schema import SchemaCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(schema_dir):
    return CountingSchemaStore(str(schema_dir))


@pytest.fixture
def schema_cache(store, clock):
    return SchemaCache(store, CacheService(default_ttl=300, clock=clock))


def write_home(schema_dir, payload):
    (schema_dir / "v1" / "home.json").write_text(json.dumps(payload), encoding="utf-8")


def test_second_get_within_ttl_skips_store(schema_cache, store, clock):
    first = schema_cache.get("home", "v1")
    clock.advance(299)
    second = schema_cache.get("home", "v1")

    assert store.reads == 1
    assert json.dumps(first.document, sort_keys=True) == json.dumps(second.document, sort_keys=True)
    assert first.cached_at == second.cached_at


def test_get_after_ttl_rereads_changed_file(schema_cache, store, schema_dir, clock):
    schema_cache.get("home", "v1")
    write_home(schema_dir, {"screen": "home", "rev": "new"})

    clock.advance(300)
    refreshed = schema_cache.get("home", "v1")

    assert store.reads == 2
    assert refreshed.document == {"screen": "home", "rev": "new"}


def test_invalidate_forces_store_read(schema_cache, store):
    schema_cache.get("home", "v1")
    schema_cache.get("search", "v1")

    assert schema_cache.invalidate() == 2
    schema_cache.get("home", "v1")
    assert store.reads == 3


def test_zero_ttl_always_reads(store, clock):
    cache = SchemaCache(store, CacheService(default_ttl=0, clock=clock))
    cache.get("home", "v1")
    cache.get("home", "v1")
    assert store.reads == 2


def test_keys_include_version(schema_cache, store):
    assert schema_cache.get("home", "v1").document != schema_cache.get("home", "v2").document
    assert store.reads == 2


def test_colon_names_cannot_alias_cache_keys(schema_cache, store, schema_dir):
    (schema_dir / "c").mkdir()
    (schema_dir / "c" / "a:b.json").write_text('{"doc": "screen a:b"}', encoding="utf-8")
    (schema_dir / "b:c").mkdir()
    (schema_dir / "b:c" / "a.json").write_text('{"doc": "version b:c"}', encoding="utf-8")

    with pytest.raises(InvalidParameterError):
        schema_cache.get("a:b", "c")
    with pytest.raises(InvalidParameterError):
        schema_cache.get("a", "b:c")
    assert store.reads == 0
    assert len(schema_cache.cache) == 0


def test_failures_are_not_cached(schema_cache, schema_dir):
    with pytest.raises(SchemaNotFoundError):
        schema_cache.get("promo", "v1")

    (schema_dir / "v1" / "promo.json").write_text('{"screen": "promo"}', encoding="utf-8")
    assert schema_cache.get("promo", "v1").document == {"screen": "promo"}


def test_callers_get_copies(schema_cache):
    first = schema_cache.get("home", "v1")
    first.document["layout"]["children"].clear()

    assert schema_cache.get("home", "v1").document["layout"]["children"]


def test_delete_expired_reclaims_only_stale_entries(clock):
    cache = CacheService(default_ttl=300, clock=clock)
    cache.set("old", 1)
    clock.advance(200)
    cache.set("fresh", 2)
    clock.advance(150)

    assert cache.delete_expired() == 1
    assert cache.get("old") is None
    assert cache.get("fresh") == 2
    assert len(cache) == 1


def test_expired_entry_never_returned_even_before_sweep(clock):
    cache = CacheService(default_ttl=10, clock=clock)
    cache.set("k", "v")
    clock.advance(10)
    assert cache.get("k") is None


def test_stats_track_hits_and_misses(clock):
    cache = CacheService(default_ttl=10, clock=clock)
    cache.get("k")
    cache.set("k", "v")
    cache.get("k")
    assert cache.stats() == {"entries": 1, "hits": 1, "misses": 1}


def test_concurrent_gets_and_flushes(schema_cache):
    errors = []
    results = []

    def reader():
        try:
            for _ in range(50):
                results.append(schema_cache.get("home", "v1").document["screen"])
        except Exception as e:  # pragma: no cover - surfaced by the assertion below
            errors.append(e)

    def flusher():
        for _ in range(20):
            schema_cache.invalidate()

    threads = [threading.Thread(target=reader) for _ in range(8)]
    threads.append(threading.Thread(target=flusher))
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert set(results) == {"home"}
    assert len(results) == 400
