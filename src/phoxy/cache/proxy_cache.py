"""Response-oriented cache policy layer.

:class:`ProxyCache` is what the request handler talks to. It turns URLs into
cache keys, decides whether a response may be cached and for how long, and
shields the handler from cache failures: a broken cache degrades to "no
cache effect", it never fails the proxied request.

A response record is a plain dict::

    {
        "status_code": 200,
        "headers": {"content-type": "application/json"},
        "body": b'{"id": 1}',
        "content_type": "application/json",
    }

:func:`~phoxy.cache.response.snapshot_response` builds one from an
:class:`httpx.Response`.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Optional

from phoxy.cache.adapters.base import CacheAdapter
from phoxy.cache.item import CacheItem
from phoxy.cache.policy import content_category, is_cacheable_content_type
from phoxy.exceptions import CacheException, InvalidArgumentError
from phoxy.models import CacheConfig

logger = logging.getLogger(__name__)

HTTP_OK = 200

# TTL lookup for responses that carry no content type.
DEFAULT_CONTENT_TYPE = "text/html"


class ProxyCache:
    """Cache policy wrapped around a :class:`~phoxy.cache.adapters.base.CacheAdapter`.

    Only ``200 OK`` responses whose content type passes
    :func:`~phoxy.cache.policy.is_cacheable_content_type` and whose body fits
    the category's size limit are stored. The TTL comes from the category
    table in :class:`~phoxy.models.CacheConfig`.

    Args:
        adapter: Storage backend.
        config: TTL, size and polarity settings. Defaults to
            :class:`~phoxy.models.CacheConfig` defaults.

    Example::

        cache = ProxyCache(ArrayAdapter("edge"), CacheConfig())
        cached = cache.get_cached_response(url)
        if cached is None:
            cached = snapshot_response(httpx.get(url))
            cache.cache_response(url, cached)
    """

    KEY_PREFIX = "response:"

    def __init__(self, adapter: CacheAdapter, config: Optional[CacheConfig] = None) -> None:
        self._adapter = adapter
        self._config = config or CacheConfig()

    @property
    def adapter(self) -> CacheAdapter:
        """The wrapped storage backend."""
        return self._adapter

    @property
    def config(self) -> CacheConfig:
        """The resolved cache configuration."""
        return self._config

    # ------------------------------------------------------------------ #
    # Response API
    # ------------------------------------------------------------------ #

    def cache_response(self, url: str, response: dict[str, Any]) -> bool:
        """Store *response* for *url* if the policy allows it.

        Returns:
            ``True`` if the response was saved. ``False`` when the policy
            rejected it or the adapter failed; neither case raises.
        """
        if not self.should_cache_response(response):
            return False

        key = self.make_key(url)
        ttl = self.ttl_for(response.get("content_type") or DEFAULT_CONTENT_TYPE)

        try:
            item = CacheItem(key).set(response).expires_after(ttl)
            return self._adapter.save(item)
        except (InvalidArgumentError, CacheException) as exc:
            logger.warning("Could not cache response for %s: %s", url, exc)
            return False

    def get_cached_response(self, url: str) -> Optional[dict[str, Any]]:
        """Return the cached response for *url*, or ``None`` on a miss."""
        key = self.make_key(url)

        try:
            item = self._adapter.get_item(key)
            if not item.is_hit():
                return None

            # Expiry is re-checked here on top of the adapter's own eviction.
            if item.is_expired():
                self._adapter.delete_item(key)
                return None
        except (InvalidArgumentError, CacheException) as exc:
            logger.warning("Cache lookup for %s failed: %s", url, exc)
            return None

        response = item.get()
        return response if isinstance(response, dict) else None

    def delete(self, url: str) -> bool:
        """Remove the cached response for *url*."""
        try:
            return self._adapter.delete_item(self.make_key(url))
        except (InvalidArgumentError, CacheException) as exc:
            logger.warning("Could not delete cached response for %s: %s", url, exc)
            return False

    def has(self, url: str) -> bool:
        """Return ``True`` if a live cached response exists for *url*."""
        try:
            return self._adapter.has_item(self.make_key(url))
        except (InvalidArgumentError, CacheException) as exc:
            logger.warning("Cache lookup for %s failed: %s", url, exc)
            return False

    def clear(self) -> bool:
        """Remove every cached entry in the adapter's namespace."""
        try:
            return self._adapter.clear()
        except (InvalidArgumentError, CacheException) as exc:
            logger.warning("Could not clear the cache: %s", exc)
            return False

    def clear_pattern(self, prefix: str) -> bool:
        """Remove every entry whose cache key starts with *prefix*."""
        try:
            return self._adapter.clear_pattern(prefix)
        except (InvalidArgumentError, CacheException) as exc:
            logger.warning("Could not clear entries matching %r: %s", prefix, exc)
            return False

    def get_stats(self) -> dict[str, Any]:
        """Return the adapter's statistics snapshot.

        If the adapter cannot produce one, a reduced mapping with the
        adapter name, the namespace and an ``error`` message is returned
        instead.
        """
        try:
            return self._adapter.get_stats()
        except (InvalidArgumentError, CacheException) as exc:
            logger.warning("Could not read cache statistics: %s", exc)
            return {
                "adapter": self._adapter.get_name(),
                "namespace": self._adapter.namespace,
                "error": str(exc),
            }

    # ------------------------------------------------------------------ #
    # Policy
    # ------------------------------------------------------------------ #

    def should_cache_response(self, response: dict[str, Any]) -> bool:
        """Apply the status, content-type and size rules to *response*."""
        status = response.get("status_code")
        if status != HTTP_OK:
            logger.debug("Not caching: status %s", status)
            return False

        content_type = response.get("content_type") or ""
        if not is_cacheable_content_type(content_type, self._config.invert_cacheable_types):
            logger.debug("Not caching: content type %r is not cacheable", content_type)
            return False

        size = body_length(response.get("body"))
        max_size = self.max_size_for(content_type)
        if size > max_size:
            logger.debug("Not caching: body of %d bytes exceeds %d", size, max_size)
            return False

        return True

    def ttl_for(self, content_type: str) -> int:
        """Return the TTL in seconds for *content_type*'s category."""
        return self._config.ttl.for_category(content_category(content_type))

    def max_size_for(self, content_type: str) -> int:
        """Return the maximum cacheable body size for *content_type*'s category."""
        return self._config.max_size.for_category(content_category(content_type))

    @classmethod
    def make_key(cls, url: str) -> str:
        """Derive the cache key for *url*: ``"response:" + md5(url)``."""
        return cls.KEY_PREFIX + hashlib.md5(url.encode("utf-8")).hexdigest()


def body_length(body: Any) -> int:
    """Return the byte length of a response body (``str`` bodies counted as UTF-8)."""
    if body is None:
        return 0
    if isinstance(body, str):
        return len(body.encode("utf-8"))
    return len(body)
