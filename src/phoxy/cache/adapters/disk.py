"""Cache adapter backed by :mod:`diskcache`.

Stores the same record envelope as the other adapters inside a
:class:`diskcache.Cache` directory (SQLite index plus value files), keyed by
the namespaced key. Expiry is tracked in the envelope rather than handed to
diskcache, so lazy eviction and the ``expired_items`` statistic behave the
same way they do for :class:`~phoxy.cache.adapters.array.ArrayAdapter` and
:class:`~phoxy.cache.adapters.filesystem.FilesystemAdapter`.
"""

from __future__ import annotations

import logging
import os
import pickle
import sqlite3
import time
from pathlib import Path
from typing import Any

import diskcache

from phoxy.cache.adapters.base import (
    CacheAdapter,
    is_expired_record,
    is_valid_record,
    payload_size,
)
from phoxy.cache.item import CacheItem
from phoxy.exceptions import CacheException

logger = logging.getLogger(__name__)

_STORE_ERRORS = (OSError, sqlite3.Error, diskcache.Timeout)


class DiskCacheAdapter(CacheAdapter):
    """Cache adapter persisting records in a :class:`diskcache.Cache`.

    Several namespaces may share one directory; bulk operations only touch
    keys carrying this adapter's namespace prefix.

    Args:
        directory: Directory of the diskcache store (created if missing).
        namespace: Prefix isolating this cache's records.

    Raises:
        CacheException: If the store cannot be opened.
    """

    name = "diskcache"

    def __init__(self, directory: str | Path, namespace: str) -> None:
        super().__init__(namespace)
        self._directory = Path(directory)
        try:
            self._cache = diskcache.Cache(str(self._directory))
        except _STORE_ERRORS as exc:
            raise CacheException.connection_failed(
                self.name, f"Cannot open cache store '{self._directory}': {exc}"
            ) from exc

    @property
    def directory(self) -> Path:
        """The diskcache directory."""
        return self._directory

    def is_available(self) -> bool:
        if not (self._directory.is_dir() and os.access(self._directory, os.W_OK)):
            return False
        try:
            self._cache.get(self._real_key(""), retry=False)
        except _STORE_ERRORS as exc:
            logger.debug("Cache store at %s is not usable: %s", self._directory, exc)
            return False
        return True

    def get_item(self, key: str) -> CacheItem:
        self._validate_key(key)
        real_key = self._real_key(key)

        try:
            record = self._cache.get(real_key, retry=True)
        except _STORE_ERRORS as exc:
            raise CacheException.read_failed(self.name, key, str(exc)) from exc

        if record is None:
            return CacheItem.miss(key)

        if not is_valid_record(record):
            self._discard(real_key)
            raise CacheException.corrupted_data(self.name, key, "stored value is not a cache record")

        if is_expired_record(record):
            self._discard(real_key)
            logger.debug("Evicted expired entry '%s'", real_key)
            return CacheItem.miss(key)

        return CacheItem.hit(key, record["value"], record["expiry"])

    def save(self, item: CacheItem) -> bool:
        self._validate_key(item.key)
        try:
            return bool(self._cache.set(self._real_key(item.key), self._make_record(item), retry=True))
        except (pickle.PicklingError, TypeError, AttributeError) as exc:
            raise CacheException.write_failed(
                self.name, item.key, f"value is not serialisable: {exc}"
            ) from exc
        except _STORE_ERRORS as exc:
            raise CacheException.write_failed(self.name, item.key, str(exc)) from exc

    def delete_item(self, key: str) -> bool:
        self._validate_key(key)
        return self._discard(self._real_key(key))

    def clear(self) -> bool:
        status = True
        for real_key in self._list_keys(self._real_key("")):
            if not self._discard(real_key):
                status = False
        return status

    def clear_pattern(self, prefix: str = "") -> bool:
        deleted = 0
        for real_key in self._list_keys(self._real_key(prefix)):
            if self._discard(real_key):
                deleted += 1
        return deleted > 0

    def get_stats(self) -> dict[str, Any]:
        now = time.time()
        count = 0
        expired = 0
        total_size = 0
        try:
            for real_key in self._list_keys(self._real_key("")):
                record = self._cache.get(real_key, retry=True)
                if not is_valid_record(record):
                    continue
                count += 1
                if is_expired_record(record, now):
                    expired += 1
                total_size += payload_size(record["value"])
        except _STORE_ERRORS as exc:
            raise CacheException.read_failed(self.name, "", str(exc)) from exc

        stats = self._base_stats(count, expired, total_size)
        stats["directory"] = str(self._directory)
        return stats

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()

    def _list_keys(self, prefix: str) -> list[str]:
        """Return the stored keys starting with *prefix*.

        Raises:
            CacheException: If the store index cannot be read.
        """
        try:
            return [
                real_key
                for real_key in self._cache.iterkeys()
                if isinstance(real_key, str) and real_key.startswith(prefix)
            ]
        except _STORE_ERRORS as exc:
            raise CacheException.read_failed(self.name, "", f"cannot list keys: {exc}") from exc

    def _discard(self, real_key: str) -> bool:
        try:
            self._cache.delete(real_key, retry=True)
        except _STORE_ERRORS as exc:
            logger.warning("Could not delete '%s': %s", real_key, exc)
            return False
        return True
