"""Response caching for phoxy.

This package provides :class:`ProxyCache`, the policy layer a proxy's
request handler consults before and after each upstream fetch, and the
storage adapters it delegates to. Entries are keyed by URL, expire after a
TTL chosen by content category, and are evicted lazily when read past
their expiry.

The cache is built by :func:`create_proxy_cache` from the ``cache``
section of the global configuration (:class:`~phoxy.models.CacheConfig`).
"""

from phoxy.cache.adapters import (
    ArrayAdapter,
    CacheAdapter,
    DiskCacheAdapter,
    FilesystemAdapter,
)
from phoxy.cache.factory import create_cache_pool, create_proxy_cache
from phoxy.cache.item import CacheItem
from phoxy.cache.proxy_cache import ProxyCache
from phoxy.cache.response import restore_response, snapshot_response

__all__ = [
    "ArrayAdapter",
    "CacheAdapter",
    "CacheItem",
    "DiskCacheAdapter",
    "FilesystemAdapter",
    "ProxyCache",
    "create_cache_pool",
    "create_proxy_cache",
    "restore_response",
    "snapshot_response",
]
