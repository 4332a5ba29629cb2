"""Build cache adapters and :class:`~phoxy.cache.ProxyCache` from configuration."""

from __future__ import annotations

import logging
from typing import Optional

from phoxy.cache.adapters.array import ArrayAdapter
from phoxy.cache.adapters.base import CacheAdapter
from phoxy.cache.adapters.disk import DiskCacheAdapter
from phoxy.cache.adapters.filesystem import FilesystemAdapter
from phoxy.cache.proxy_cache import ProxyCache
from phoxy.exceptions import ConfigError, InvalidArgumentError
from phoxy.models import AdapterType, CacheConfig

logger = logging.getLogger(__name__)


def create_cache_pool(adapter_type: str | AdapterType, config: CacheConfig) -> CacheAdapter:
    """Instantiate the adapter named by *adapter_type*.

    Args:
        adapter_type: ``"array"``, ``"filesystem"`` or ``"diskcache"``.
        config: Supplies the namespace and, for on-disk adapters, the
            directory.

    Returns:
        A ready-to-use adapter.

    Raises:
        InvalidArgumentError: If *adapter_type* is not a known adapter.
        ConfigError: If an on-disk adapter is requested without a directory.
        CacheException: If the adapter cannot open its backing store.
    """
    try:
        kind = AdapterType(adapter_type)
    except ValueError:
        raise InvalidArgumentError(f"Unsupported cache adapter: {adapter_type}") from None

    logger.debug("Creating %s cache adapter (namespace %r)", kind.value, config.namespace)

    if kind is AdapterType.ARRAY:
        return ArrayAdapter(config.namespace)

    if not config.directory:
        raise ConfigError(f"The {kind.value} cache adapter requires cache.directory to be set")

    if kind is AdapterType.FILESYSTEM:
        return FilesystemAdapter(config.directory, config.namespace)
    return DiskCacheAdapter(config.directory, config.namespace)


def create_proxy_cache(
    config: CacheConfig, adapter_type: Optional[str | AdapterType] = None
) -> ProxyCache:
    """Build a :class:`~phoxy.cache.ProxyCache` over the configured adapter.

    Args:
        config: Resolved cache configuration.
        adapter_type: Overrides ``config.adapter`` when given.
    """
    adapter = create_cache_pool(adapter_type or config.adapter, config)
    return ProxyCache(adapter, config)
