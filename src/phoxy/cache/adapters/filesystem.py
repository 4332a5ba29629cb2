"""Filesystem cache adapter: one pickled file per key.

Each record lives in ``<directory>/<sha256(namespace:key)>.cache``. The hex
digest gives uniform, collision-resistant names that are safe on every
filesystem. The envelope stored inside each file carries the record's
``namespace`` and ``key``, which is how :meth:`FilesystemAdapter.clear`,
:meth:`~FilesystemAdapter.clear_pattern` and
:meth:`~FilesystemAdapter.get_stats` attribute files to a namespace; every
operation therefore agrees on the same ``*.cache`` naming scheme.

Writes go to a uniquely-named temporary file in the same directory which is
fsynced and then renamed over the target with :func:`os.replace`. Readers
never observe a half-written record, and a crash mid-write leaves the
previous record (or none) in place. Concurrent writers to the same key race;
the last rename wins.
"""

from __future__ import annotations

import errno
import hashlib
import logging
import os
import pickle
import tempfile
import time
from pathlib import Path
from typing import Any, Iterator, Optional

from phoxy.cache.adapters.base import CacheAdapter, is_expired_record, is_valid_record
from phoxy.cache.item import CacheItem
from phoxy.exceptions import CacheException

logger = logging.getLogger(__name__)

FILE_SUFFIX = ".cache"

# Everything pickle.loads can raise on truncated or foreign input.
_UNPICKLE_ERRORS = (
    pickle.UnpicklingError,
    EOFError,
    AttributeError,
    ImportError,
    IndexError,
    KeyError,
    TypeError,
    ValueError,
)


class FilesystemAdapter(CacheAdapter):
    """Cache adapter persisting each record as a file under *directory*.

    The directory is created if missing. A read that finds a file which
    does not deserialise into a valid envelope deletes the file and raises
    :class:`~phoxy.exceptions.CacheException`, unlike
    :class:`~phoxy.cache.adapters.array.ArrayAdapter` which cannot hold
    corrupt records.

    Args:
        directory: Directory holding the ``*.cache`` files.
        namespace: Prefix isolating this cache's records.

    Raises:
        CacheException: If the directory cannot be created or is not
            writeable.
    """

    name = "filesystem"

    def __init__(self, directory: str | Path, namespace: str) -> None:
        super().__init__(namespace)
        self._directory = Path(directory)

        try:
            self._directory.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheException.connection_failed(
                self.name, f"Cannot create cache directory: '{self._directory}'"
            ) from exc

        if not os.access(self._directory, os.W_OK):
            raise CacheException.connection_failed(
                self.name, f"Cache directory is not writeable: '{self._directory}'"
            )

    @property
    def directory(self) -> Path:
        """The directory holding the cache files."""
        return self._directory

    def is_available(self) -> bool:
        return self._directory.is_dir() and os.access(self._directory, os.W_OK)

    def get_item(self, key: str) -> CacheItem:
        self._validate_key(key)
        path = self._path_for(key)

        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return CacheItem.miss(key)
        except OSError as exc:
            raise CacheException.read_failed(self.name, key, str(exc)) from exc

        record = _decode(raw)
        if record is None:
            self._unlink(path)
            raise CacheException.corrupted_data(self.name, key, f"unreadable cache file {path.name}")

        if record.get("namespace") != self._namespace or record.get("key") != key:
            logger.warning("Cache file %s belongs to a different key, ignoring", path.name)
            return CacheItem.miss(key)

        if is_expired_record(record):
            self._unlink(path)
            logger.debug("Evicted expired entry '%s'", self._real_key(key))
            return CacheItem.miss(key)

        return CacheItem.hit(key, record["value"], record["expiry"])

    def save(self, item: CacheItem) -> bool:
        key = item.key
        self._validate_key(key)

        try:
            payload = pickle.dumps(self._make_record(item), protocol=pickle.HIGHEST_PROTOCOL)
        except (pickle.PicklingError, TypeError, AttributeError) as exc:
            raise CacheException.write_failed(self.name, key, f"value is not serialisable: {exc}") from exc

        path = self._path_for(key)
        tmp_path: Optional[str] = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="wb",
                dir=self._directory,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_path = fh.name
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, path)
        except OSError as exc:
            if tmp_path is not None:
                self._unlink(Path(tmp_path))
            if exc.errno == errno.ENOSPC:
                raise CacheException.out_of_memory(self.name, key) from exc
            raise CacheException.write_failed(self.name, key, str(exc)) from exc

        return True

    def delete_item(self, key: str) -> bool:
        self._validate_key(key)
        return self._unlink(self._path_for(key))

    def clear(self) -> bool:
        status = True
        for path, _record in self._iter_records():
            if not self._unlink(path):
                status = False
        return status

    def clear_pattern(self, prefix: str = "") -> bool:
        search = self._real_key(prefix)
        deleted = 0
        for path, record in self._iter_records():
            if self._real_key(str(record.get("key", ""))).startswith(search):
                if self._unlink(path):
                    deleted += 1
        return deleted > 0

    def get_stats(self) -> dict[str, Any]:
        now = time.time()
        count = 0
        expired = 0
        total_size = 0
        for path, record in self._iter_records():
            count += 1
            if is_expired_record(record, now):
                expired += 1
            try:
                total_size += path.stat().st_size
            except OSError:
                # Removed by another process since it was listed.
                continue

        stats = self._base_stats(count, expired, total_size)
        stats["directory"] = str(self._directory)
        return stats

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha256(self._real_key(key).encode("utf-8")).hexdigest()
        return self._directory / f"{digest}{FILE_SUFFIX}"

    def _iter_records(self) -> Iterator[tuple[Path, dict[str, Any]]]:
        """Yield ``(path, record)`` for every readable record in this namespace."""
        for path in sorted(self._directory.glob(f"*{FILE_SUFFIX}")):
            try:
                raw = path.read_bytes()
            except OSError as exc:
                logger.debug("Skipping cache file %s: %s", path.name, exc)
                continue
            record = _decode(raw)
            if record is None:
                logger.warning("Skipping corrupted cache file %s", path.name)
                continue
            if record.get("namespace") != self._namespace:
                continue
            yield path, record

    def _unlink(self, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return True
        except OSError as exc:
            logger.warning("Could not remove cache file %s: %s", path, exc)
            return False
        return True


def _decode(raw: bytes) -> Optional[dict[str, Any]]:
    """Unpickle a cache file, returning ``None`` if it is not a valid envelope."""
    try:
        record = pickle.loads(raw)
    except _UNPICKLE_ERRORS:
        return None
    return record if is_valid_record(record) else None
