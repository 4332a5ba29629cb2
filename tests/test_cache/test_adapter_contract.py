"""Behaviour shared by every cache adapter.

Each test runs once per adapter (array, filesystem, diskcache) through the
parametrised ``adapter`` fixture in ``conftest.py``.
"""

from __future__ import annotations

import threading

import pytest

from phoxy.cache import CacheItem
from phoxy.exceptions import CacheException, InvalidCacheKeyError


# ------------------------------------------------------------------ #
# Get / save / delete
# ------------------------------------------------------------------ #


class TestGetSave:
    def test_missing_key_is_a_miss(self, adapter) -> None:
        item = adapter.get_item("absent")
        assert item.is_hit() is False
        assert item.get() is None
        assert item.key == "absent"

    def test_saved_item_is_a_hit(self, adapter) -> None:
        assert adapter.save(CacheItem("k").set({"v": 1})) is True
        item = adapter.get_item("k")
        assert item.is_hit() is True
        assert item.get() == {"v": 1}

    def test_save_replaces_previous_record(self, adapter) -> None:
        adapter.save(CacheItem("k").set("old"))
        adapter.save(CacheItem("k").set("new"))
        assert adapter.get_item("k").get() == "new"

    def test_expiration_survives_round_trip(self, adapter, clock) -> None:
        adapter.save(CacheItem("k").set("v").expires_after(100))
        assert adapter.get_item("k").expiration == clock.now + 100

    def test_has_item(self, adapter) -> None:
        assert adapter.has_item("k") is False
        adapter.save(CacheItem("k").set(1))
        assert adapter.has_item("k") is True

    def test_bytes_payload(self, adapter) -> None:
        body = bytes(range(256))
        adapter.save(CacheItem("bin").set(body))
        assert adapter.get_item("bin").get() == body

    def test_unserialisable_value_raises_write_error(self, adapter) -> None:
        with pytest.raises(CacheException) as exc_info:
            adapter.save(CacheItem("k").set(threading.Lock()))
        assert exc_info.value.operation == CacheException.OPERATION_WRITE
        assert exc_info.value.adapter_name == adapter.get_name()

    def test_mutating_values_leaves_the_store_unchanged(self, adapter) -> None:
        value = {"headers": {"x": "1"}}
        adapter.save(CacheItem("k").set(value))
        value["headers"]["x"] = "changed after save"

        hit = adapter.get_item("k").get()
        hit["headers"]["x"] = "rewritten"

        assert adapter.get_item("k").get() == {"headers": {"x": "1"}}


class TestExpiry:
    def test_expired_item_is_a_miss_and_evicted(self, adapter, clock) -> None:
        adapter.save(CacheItem("k").set("v").expires_after(1))
        clock.advance(2)
        assert adapter.get_item("k").is_hit() is False
        # Evicted, so the record no longer counts towards the stats.
        assert adapter.get_stats()["items_count"] == 0

    def test_item_without_expiry_never_expires(self, adapter, clock) -> None:
        adapter.save(CacheItem("k").set("v"))
        clock.advance(10 * 365 * 24 * 3600)
        assert adapter.get_item("k").is_hit() is True

    def test_still_valid_just_before_deadline(self, adapter, clock) -> None:
        adapter.save(CacheItem("k").set("v").expires_after(10))
        clock.advance(9)
        assert adapter.get_item("k").is_hit() is True


class TestDelete:
    def test_delete_removes_record(self, adapter) -> None:
        adapter.save(CacheItem("k").set("v"))
        assert adapter.delete_item("k") is True
        assert adapter.get_item("k").is_hit() is False

    def test_delete_is_idempotent(self, adapter) -> None:
        assert adapter.delete_item("never-stored") is True
        assert adapter.delete_item("never-stored") is True

    def test_delete_items_reports_each_key(self, adapter) -> None:
        adapter.save(CacheItem("a").set(1))
        result = adapter.delete_items(["a", "b"])
        assert result == {"a": True, "b": True}
        assert adapter.has_item("a") is False


class TestKeyValidation:
    def test_empty_key_rejected_on_get(self, adapter) -> None:
        with pytest.raises(InvalidCacheKeyError):
            adapter.get_item("")

    def test_empty_key_rejected_on_save(self, adapter) -> None:
        with pytest.raises(InvalidCacheKeyError):
            adapter.save(CacheItem("").set("v"))

    def test_empty_key_rejected_on_delete(self, adapter) -> None:
        with pytest.raises(InvalidCacheKeyError):
            adapter.delete_item("")

    def test_empty_key_rejected_on_deferred_save(self, adapter) -> None:
        with pytest.raises(InvalidCacheKeyError):
            adapter.save_deferred(CacheItem(""))

    def test_invalid_key_is_a_value_error(self, adapter) -> None:
        with pytest.raises(ValueError):
            adapter.get_item("")


class TestGetItems:
    def test_returns_item_per_key(self, adapter) -> None:
        adapter.save(CacheItem("a").set(1))
        items = adapter.get_items(["a", "b"])
        assert list(items) == ["a", "b"]
        assert items["a"].is_hit() is True
        assert items["b"].is_hit() is False

    def test_empty_key_propagates(self, adapter) -> None:
        with pytest.raises(InvalidCacheKeyError):
            adapter.get_items(["a", ""])


# ------------------------------------------------------------------ #
# Bulk removal
# ------------------------------------------------------------------ #


class TestClear:
    def test_clear_removes_everything(self, adapter) -> None:
        for key in ("a", "b", "c"):
            adapter.save(CacheItem(key).set(key))
        assert adapter.clear() is True
        assert all(not adapter.has_item(key) for key in ("a", "b", "c"))
        assert adapter.get_stats()["items_count"] == 0

    def test_clear_on_empty_cache(self, adapter) -> None:
        assert adapter.clear() is True

    def test_clear_pattern_removes_matching_prefix_only(self, adapter) -> None:
        adapter.save(CacheItem("foo:1").set(1))
        adapter.save(CacheItem("foo:2").set(2))
        adapter.save(CacheItem("bar:1").set(3))

        assert adapter.clear_pattern("foo") is True
        assert adapter.has_item("foo:1") is False
        assert adapter.has_item("foo:2") is False
        assert adapter.has_item("bar:1") is True

    def test_clear_pattern_without_match_returns_false(self, adapter) -> None:
        adapter.save(CacheItem("bar:1").set(3))
        assert adapter.clear_pattern("foo") is False
        assert adapter.has_item("bar:1") is True


# ------------------------------------------------------------------ #
# Deferred writes
# ------------------------------------------------------------------ #


class TestDeferred:
    def test_deferred_items_invisible_until_commit(self, adapter) -> None:
        assert adapter.save_deferred(CacheItem("k").set("v")) is True
        assert adapter.has_item("k") is False
        assert adapter.commit() is True
        assert adapter.get_item("k").get() == "v"

    def test_last_write_wins(self, adapter) -> None:
        adapter.save_deferred(CacheItem("k").set("first"))
        adapter.save_deferred(CacheItem("k").set("second"))
        assert adapter.get_stats()["deferred_count"] == 1
        adapter.commit()
        assert adapter.get_item("k").get() == "second"

    def test_flush_reports_results_in_queue_order(self, adapter) -> None:
        adapter.save_deferred(CacheItem("b").set(2))
        adapter.save_deferred(CacheItem("a").set(1))
        assert adapter.flush() == [("b", True), ("a", True)]
        assert adapter.get_stats()["deferred_count"] == 0

    def test_commit_with_empty_queue(self, adapter) -> None:
        assert adapter.commit() is True

    def test_failed_item_is_reported_and_dropped(self, adapter, monkeypatch) -> None:
        real_save = adapter.save

        def flaky_save(item: CacheItem) -> bool:
            if item.key == "bad":
                raise CacheException.write_failed(adapter.get_name(), item.key, "boom")
            return real_save(item)

        monkeypatch.setattr(adapter, "save", flaky_save)
        adapter.save_deferred(CacheItem("good").set(1))
        adapter.save_deferred(CacheItem("bad").set(2))

        assert adapter.commit() is False
        assert adapter.has_item("good") is True
        # The queue is emptied even though one item failed.
        assert adapter.flush() == []

    def test_unserialisable_value_does_not_stop_the_batch(self, adapter) -> None:
        adapter.save_deferred(CacheItem("bad").set(threading.Lock()))
        adapter.save_deferred(CacheItem("good").set(1))

        assert adapter.flush() == [("bad", False), ("good", True)]
        assert adapter.has_item("bad") is False
        assert adapter.get_item("good").get() == 1


# ------------------------------------------------------------------ #
# Stats and identity
# ------------------------------------------------------------------ #


class TestStats:
    def test_stats_shape(self, adapter) -> None:
        stats = adapter.get_stats()
        for field in (
            "adapter",
            "items_count",
            "expired_items",
            "total_size",
            "total_size_human",
            "namespace",
            "deferred_count",
        ):
            assert field in stats
        assert stats["adapter"] == adapter.get_name()
        assert stats["namespace"] == "test"

    def test_counts_items_and_size(self, adapter) -> None:
        adapter.save(CacheItem("a").set("x" * 100))
        adapter.save(CacheItem("b").set("y" * 100))
        stats = adapter.get_stats()
        assert stats["items_count"] == 2
        assert stats["total_size"] > 0

    def test_counts_unevicted_expired_items(self, adapter, clock) -> None:
        adapter.save(CacheItem("old").set(1).expires_after(1))
        adapter.save(CacheItem("new").set(2).expires_after(100))
        clock.advance(5)
        stats = adapter.get_stats()
        assert stats["items_count"] == 2
        assert stats["expired_items"] == 1


class TestIdentity:
    def test_available(self, adapter) -> None:
        assert adapter.is_available() is True

    def test_name_matches_class_attribute(self, adapter) -> None:
        assert adapter.get_name() in ("array", "filesystem", "diskcache")

    def test_context_manager_returns_adapter(self, adapter) -> None:
        with adapter as entered:
            assert entered is adapter
