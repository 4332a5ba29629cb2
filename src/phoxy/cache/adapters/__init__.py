"""Storage backends for the phoxy cache.

All adapters implement :class:`~phoxy.cache.adapters.base.CacheAdapter`:

* :class:`ArrayAdapter` -- in-process dict, lost when the process exits.
* :class:`FilesystemAdapter` -- one atomically replaced file per key.
* :class:`DiskCacheAdapter` -- a :mod:`diskcache` store shared between
  processes.

Use :func:`~phoxy.cache.factory.create_cache_pool` to build one from
configuration.
"""

from phoxy.cache.adapters.array import ArrayAdapter
from phoxy.cache.adapters.base import CacheAdapter, format_bytes
from phoxy.cache.adapters.disk import DiskCacheAdapter
from phoxy.cache.adapters.filesystem import FilesystemAdapter

__all__ = [
    "ArrayAdapter",
    "CacheAdapter",
    "DiskCacheAdapter",
    "FilesystemAdapter",
    "format_bytes",
]
