"""Abstract base class for cache adapters.

Every storage backend subclasses :class:`CacheAdapter` and implements the
primitive operations (:meth:`~CacheAdapter.get_item`,
:meth:`~CacheAdapter.save`, :meth:`~CacheAdapter.delete_item`,
:meth:`~CacheAdapter.clear`, :meth:`~CacheAdapter.clear_pattern`,
:meth:`~CacheAdapter.get_stats`, :meth:`~CacheAdapter.is_available`).
The batch helpers, key validation, namespacing, and the deferred-write
buffer are shared and live here.

Records are stored as a plain envelope::

    {"value": ..., "expiry": float | None, "created": float,
     "key": str, "namespace": str}

``created`` is informational only; eviction looks at ``expiry`` alone and
happens lazily, when an expired record is next read.
"""

from __future__ import annotations

import logging
import pickle
import time
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from phoxy.cache.item import CacheItem
from phoxy.exceptions import CacheException, InvalidArgumentError, InvalidCacheKeyError

logger = logging.getLogger(__name__)

_RECORD_FIELDS = ("value", "expiry", "created")


class CacheAdapter(ABC):
    """Key/value store of :class:`~phoxy.cache.item.CacheItem` records.

    Keys are scoped by *namespace*: the stored form of key ``k`` is
    ``"<namespace>:k"``, so several logical caches can share one backing
    store without seeing each other's records.

    Writes queued with :meth:`save_deferred` stay in memory until
    :meth:`flush` or :meth:`commit`. The batch is not atomic: a failure
    part-way through leaves earlier items saved and drops the failed ones.

    Adapters are context managers; leaving the ``with`` block calls
    :meth:`close`.

    Args:
        namespace: Non-empty prefix isolating this cache's records.
    """

    #: Adapter identifier reported by :meth:`get_name` and in stats.
    name: str = ""

    def __init__(self, namespace: str) -> None:
        if not namespace:
            raise InvalidArgumentError("Cache namespace is empty")
        self._namespace = namespace
        self._deferred: dict[str, CacheItem] = {}

    def __enter__(self) -> CacheAdapter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def namespace(self) -> str:
        """The namespace this adapter's keys are scoped to."""
        return self._namespace

    def get_name(self) -> str:
        """Return the adapter identifier (``"array"``, ``"filesystem"``, ...)."""
        return self.name

    # ------------------------------------------------------------------ #
    # Primitive operations
    # ------------------------------------------------------------------ #

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the backing store can currently be written."""
        ...

    @abstractmethod
    def get_item(self, key: str) -> CacheItem:
        """Look up *key*.

        Returns a hit item for a stored, non-expired record. An expired
        record is removed and reported as a miss; an absent key is a miss.

        Raises:
            InvalidCacheKeyError: If *key* is empty.
            CacheException: If the backing store cannot be read.
        """
        ...

    @abstractmethod
    def save(self, item: CacheItem) -> bool:
        """Persist *item* under its namespaced key, replacing any previous record.

        Raises:
            InvalidCacheKeyError: If the item's key is empty.
            CacheException: If the record cannot be written.
        """
        ...

    @abstractmethod
    def delete_item(self, key: str) -> bool:
        """Remove the record for *key*. Deleting an absent key succeeds."""
        ...

    @abstractmethod
    def clear(self) -> bool:
        """Remove every record in this adapter's namespace."""
        ...

    @abstractmethod
    def clear_pattern(self, prefix: str = "") -> bool:
        """Remove every record whose key starts with *prefix*.

        Returns:
            ``True`` only if at least one record was removed.
        """
        ...

    @abstractmethod
    def get_stats(self) -> dict[str, Any]:
        """Return a snapshot of the namespace's records.

        The snapshot always carries ``adapter``, ``items_count``,
        ``expired_items``, ``total_size``, ``total_size_human``,
        ``namespace`` and ``deferred_count``. ``items_count`` includes
        expired records that have not been evicted yet.
        """
        ...

    def close(self) -> None:
        """Release resources held by the backing store. No-op by default."""

    # ------------------------------------------------------------------ #
    # Batch helpers
    # ------------------------------------------------------------------ #

    def get_items(self, keys: Iterable[str]) -> dict[str, CacheItem]:
        """Look up several keys.

        Any exception raised for one key propagates immediately; items
        already looked up are discarded.
        """
        return {key: self.get_item(key) for key in keys}

    def has_item(self, key: str) -> bool:
        """Return ``True`` if *key* currently resolves to a hit."""
        return self.get_item(key).is_hit()

    def delete_items(self, keys: Iterable[str]) -> dict[str, bool]:
        """Delete several keys, attempting every one.

        Returns:
            A mapping of each key to the result of :meth:`delete_item`, so
            callers can see exactly which deletions failed.
        """
        return {key: self.delete_item(key) for key in keys}

    # ------------------------------------------------------------------ #
    # Deferred writes
    # ------------------------------------------------------------------ #

    def save_deferred(self, item: CacheItem) -> bool:
        """Queue *item* for the next :meth:`flush`; a later item with the same key wins."""
        self._validate_key(item.key)
        self._deferred[item.key] = item
        return True

    def flush(self) -> list[tuple[str, bool]]:
        """Save every queued item in queue order.

        A :class:`~phoxy.exceptions.CacheException` from one save is logged
        and recorded as ``False``; the remaining items are still attempted.
        The queue is emptied afterwards whatever the outcome, so failed
        items are dropped rather than retried.

        Returns:
            ``(key, saved)`` pairs in the order the keys were first queued.
        """
        results: list[tuple[str, bool]] = []
        try:
            for key, item in self._deferred.items():
                try:
                    saved = self.save(item)
                except CacheException as exc:
                    logger.warning("Deferred save of '%s' failed: %s", key, exc)
                    saved = False
                results.append((key, saved))
        finally:
            self._deferred = {}
        return results

    def commit(self) -> bool:
        """Flush the deferred queue; ``True`` only if every item was saved."""
        return all(saved for _, saved in self.flush())

    # ------------------------------------------------------------------ #
    # Shared helpers
    # ------------------------------------------------------------------ #

    def _real_key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    @staticmethod
    def _validate_key(key: str) -> None:
        if not isinstance(key, str) or not key:
            raise InvalidCacheKeyError("Cache key is empty")

    def _make_record(self, item: CacheItem) -> dict[str, Any]:
        return {
            "value": item.get(),
            "expiry": item.expiration,
            "created": time.time(),
            "key": item.key,
            "namespace": self._namespace,
        }

    def _base_stats(
        self, items_count: int, expired_items: int, total_size: int
    ) -> dict[str, Any]:
        return {
            "adapter": self.get_name(),
            "items_count": items_count,
            "expired_items": expired_items,
            "total_size": total_size,
            "total_size_human": format_bytes(total_size),
            "namespace": self._namespace,
            "deferred_count": len(self._deferred),
        }


def is_valid_record(record: Any) -> bool:
    """Return ``True`` if *record* has the shape of a stored envelope."""
    if not isinstance(record, dict):
        return False
    if any(field not in record for field in _RECORD_FIELDS):
        return False
    expiry = record["expiry"]
    return expiry is None or (isinstance(expiry, (int, float)) and not isinstance(expiry, bool))


def is_expired_record(record: dict[str, Any], now: Optional[float] = None) -> bool:
    """Return ``True`` if the envelope's expiry has passed."""
    expiry = record.get("expiry")
    if expiry is None:
        return False
    if now is None:
        now = time.time()
    return now > expiry


def format_bytes(size: int, precision: int = 2) -> str:
    """Render a byte count for humans, e.g. ``1536`` -> ``"1.5 KB"``."""
    units = ("B", "KB", "MB", "GB", "TB")
    value = float(max(size, 0))
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, precision):g} {units[index]}"


def payload_size(value: Any) -> int:
    """Approximate stored size of *value* as its pickled length."""
    try:
        return len(pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL))
    except (pickle.PicklingError, TypeError, AttributeError):
        return 0
