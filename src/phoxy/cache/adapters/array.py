"""In-process cache adapter backed by a plain dict.

Records live only as long as the adapter object; nothing is shared between
processes or persisted. Useful for tests and for single-process deployments
that only need per-run caching.

Values are deep-copied on save and on every hit, so mutating a saved or
returned value never changes the stored record.
"""

from __future__ import annotations

import copy
import logging
import time
from typing import Any

from phoxy.cache.adapters.base import CacheAdapter, is_expired_record, payload_size
from phoxy.cache.item import CacheItem
from phoxy.exceptions import CacheException

logger = logging.getLogger(__name__)


class ArrayAdapter(CacheAdapter):
    """Cache adapter storing records in a dict keyed by namespaced key.

    Args:
        namespace: Prefix isolating this cache's records.
    """

    name = "array"

    def __init__(self, namespace: str) -> None:
        super().__init__(namespace)
        self._storage: dict[str, dict[str, Any]] = {}

    def is_available(self) -> bool:
        return True

    def get_item(self, key: str) -> CacheItem:
        self._validate_key(key)
        real_key = self._real_key(key)

        record = self._storage.get(real_key)
        if record is None:
            return CacheItem.miss(key)

        if is_expired_record(record):
            del self._storage[real_key]
            logger.debug("Evicted expired entry '%s'", real_key)
            return CacheItem.miss(key)

        return CacheItem.hit(key, copy.deepcopy(record["value"]), record["expiry"])

    def save(self, item: CacheItem) -> bool:
        self._validate_key(item.key)
        record = self._make_record(item)
        try:
            record["value"] = copy.deepcopy(record["value"])
        except (copy.Error, TypeError) as exc:
            raise CacheException.write_failed(self.name, item.key, f"value cannot be copied: {exc}") from exc
        self._storage[self._real_key(item.key)] = record
        return True

    def delete_item(self, key: str) -> bool:
        self._validate_key(key)
        self._storage.pop(self._real_key(key), None)
        return True

    def clear(self) -> bool:
        self._storage.clear()
        return True

    def clear_pattern(self, prefix: str = "") -> bool:
        search = self._real_key(prefix)
        matched = [real_key for real_key in self._storage if real_key.startswith(search)]
        for real_key in matched:
            del self._storage[real_key]
        return len(matched) > 0

    def get_stats(self) -> dict[str, Any]:
        now = time.time()
        expired = 0
        total_size = 0
        for record in self._storage.values():
            if is_expired_record(record, now):
                expired += 1
            total_size += payload_size(record["value"])
        return self._base_stats(len(self._storage), expired, total_size)
