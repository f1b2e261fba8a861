"""Unit tests for the archive registry."""

import threading
from pathlib import Path

import pytest

from dropserver.registry import ArchiveRegistry
from dropserver.types import Archive


def make_archive(key: str, expires_at: int, name: str = "a.txt") -> Archive:
    return Archive(
        key=key,
        display_name=name,
        storage_path=Path(f"/blobs/{key}.blob"),
        expires_at=expires_at,
    )


@pytest.fixture
def evicted():
    return []


@pytest.fixture
def registry(clock, evicted):
    return ArchiveRegistry(on_evict=evicted.append, clock=clock)


class TestPutAndGet:
    """Test basic registry operations."""

    def test_get_returns_registered_archive(self, registry, clock):
        archive = make_archive("k1", int(clock()) + 100)
        registry.put(archive)

        assert registry.get("k1") == archive

    def test_get_unknown_key_returns_none(self, registry):
        assert registry.get("missing") is None

    def test_put_replaces_existing_entry(self, registry, clock):
        registry.put(make_archive("k1", int(clock()) + 100, name="old.txt"))
        registry.put(make_archive("k1", int(clock()) + 100, name="new.txt"))

        assert registry.get("k1").display_name == "new.txt"
        assert len(registry) == 1

    def test_archive_is_live_at_exact_expiry_second(self, registry, clock, evicted):
        registry.put(make_archive("k1", int(clock())))

        assert registry.get("k1") is not None
        assert evicted == []


class TestLazyExpiration:
    """Test that read paths hide and evict expired archives."""

    def test_get_expired_returns_none_and_evicts(self, registry, clock, evicted):
        archive = make_archive("k1", int(clock()) + 10)
        registry.put(archive)

        clock.advance(11)

        assert registry.get("k1") is None
        assert "k1" not in registry
        assert evicted == [archive]

    def test_list_excludes_and_evicts_expired(self, registry, clock, evicted):
        live = make_archive("live", int(clock()) + 100)
        stale = make_archive("stale", int(clock()) - 1)
        registry.put(live)
        registry.put(stale)

        assert registry.list() == [live]
        assert "stale" not in registry
        assert evicted == [stale]

    def test_list_on_empty_registry(self, registry):
        assert registry.list() == []

    def test_expired_entry_evicted_only_once(self, registry, clock, evicted):
        registry.put(make_archive("k1", int(clock()) - 1))

        registry.get("k1")
        registry.list()
        registry.get("k1")

        assert len(evicted) == 1

    def test_purge_expired_counts_evictions(self, registry, clock, evicted):
        registry.put(make_archive("a", int(clock()) - 5))
        registry.put(make_archive("b", int(clock()) - 1))
        registry.put(make_archive("c", int(clock()) + 60))

        assert registry.purge_expired() == 2
        assert registry.keys() == ["c"]
        assert {archive.key for archive in evicted} == {"a", "b"}


class TestDelete:
    """Test explicit deletion."""

    def test_delete_twice(self, registry, clock, evicted):
        registry.put(make_archive("k1", int(clock()) + 100))
        registry.put(make_archive("k2", int(clock()) + 100))

        assert registry.delete("k1") is True
        assert registry.delete("k1") is False
        assert registry.get("k2") is not None
        assert [archive.key for archive in evicted] == ["k1"]

    def test_delete_removes_expired_entry(self, registry, clock, evicted):
        registry.put(make_archive("k1", int(clock()) - 100))

        assert registry.delete("k1") is True
        assert len(evicted) == 1

    def test_eviction_callback_failure_does_not_propagate(self, clock):
        def failing_callback(archive):
            raise OSError("disk gone")

        registry = ArchiveRegistry(on_evict=failing_callback, clock=clock)
        registry.put(make_archive("k1", int(clock()) + 100))

        assert registry.delete("k1") is True
        assert "k1" not in registry

    def test_registry_without_callback(self, clock):
        registry = ArchiveRegistry(clock=clock)
        registry.put(make_archive("k1", int(clock()) - 1))

        assert registry.get("k1") is None


class TestUpdate:
    """Test partial field updates."""

    def test_update_display_name(self, registry, clock):
        registry.put(make_archive("k1", int(clock()) + 100))

        assert registry.update("k1", display_name="renamed.txt") is True

        archive = registry.get("k1")
        assert archive.display_name == "renamed.txt"
        assert archive.expires_at == int(clock()) + 100

    def test_update_expiry_extends_lifetime(self, registry, clock):
        registry.put(make_archive("k1", int(clock()) + 10))

        assert registry.update("k1", expires_at=int(clock()) + 1000) is True
        clock.advance(500)

        assert registry.get("k1") is not None

    def test_update_without_fields_keeps_entry(self, registry, clock):
        archive = make_archive("k1", int(clock()) + 10)
        registry.put(archive)

        assert registry.update("k1") is True
        assert registry.get("k1") == archive

    def test_update_unknown_key(self, registry):
        assert registry.update("missing", display_name="x") is False

    def test_update_expired_entry_evicts(self, registry, clock, evicted):
        registry.put(make_archive("k1", int(clock()) - 1))

        assert registry.update("k1", expires_at=int(clock()) + 1000) is False
        assert "k1" not in registry
        assert len(evicted) == 1


class TestThreadSafety:
    """Test concurrent access from worker threads."""

    def test_concurrent_puts_then_list(self, registry, clock):
        def writer(offset):
            for i in range(100):
                registry.put(make_archive(f"w{offset}-{i}", int(clock()) + 100))

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        keys = [archive.key for archive in registry.list()]
        assert len(keys) == 800
        assert len(set(keys)) == 800

    def test_concurrent_delete_of_same_key_succeeds_once(self, registry, clock, evicted):
        registry.put(make_archive("k1", int(clock()) + 100))
        results = []
        barrier = threading.Barrier(10)

        def deleter():
            barrier.wait()
            results.append(registry.delete("k1"))

        threads = [threading.Thread(target=deleter) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert len(evicted) == 1

    def test_concurrent_reads_and_deletes(self, registry, clock):
        for i in range(200):
            registry.put(make_archive(f"k{i}", int(clock()) + 100))

        def reader():
            for _ in range(50):
                for archive in registry.list():
                    assert archive.key.startswith("k")

        def deleter():
            for i in range(0, 200, 2):
                registry.delete(f"k{i}")

        threads = [threading.Thread(target=reader) for _ in range(3)]
        threads.append(threading.Thread(target=deleter))
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        remaining = sorted(archive.key for archive in registry.list())
        assert remaining == sorted(f"k{i}" for i in range(1, 200, 2))
