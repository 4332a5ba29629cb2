"""Cache item value object.

A :class:`CacheItem` is what every adapter hands back from a lookup and what
callers hand to :meth:`~phoxy.cache.adapters.base.CacheAdapter.save`.
Expiration is always stored as an absolute UNIX timestamp; relative TTLs
passed to :meth:`CacheItem.expires_after` are converted at the moment of the
call, not when the item is read back.
"""

from __future__ import annotations

import time
from datetime import datetime, timedelta
from typing import Any, Optional

from phoxy.exceptions import InvalidArgumentError


class CacheItem:
    """One cached entry: key, payload, hit flag and optional expiration.

    Items built by an adapter lookup come from the :meth:`hit` and
    :meth:`miss` factories. Items built by a caller before a save start out
    as non-hits with no value::

        item = CacheItem("greeting").set("hello").expires_after(60)
        adapter.save(item)

    Args:
        key: Non-empty cache key.
        value: Payload; any picklable object.
        is_hit: Whether the item is the result of a successful lookup.
        expiration: Absolute UNIX timestamp, or ``None`` for no expiry.
    """

    def __init__(
        self,
        key: str,
        value: Any = None,
        is_hit: bool = False,
        expiration: Optional[float] = None,
    ) -> None:
        self._key = key
        self._value = value
        self._is_hit = is_hit
        self._expiration = expiration

    def __repr__(self) -> str:
        return (
            f"CacheItem(key={self._key!r}, is_hit={self._is_hit}, "
            f"expiration={self._expiration!r})"
        )

    @property
    def key(self) -> str:
        """The item's cache key."""
        return self._key

    @property
    def expiration(self) -> Optional[float]:
        """Absolute expiration timestamp, or ``None`` if the item never expires."""
        return self._expiration

    def get(self) -> Any:
        """Return the payload (``None`` for a miss)."""
        return self._value

    def set(self, value: Any) -> CacheItem:
        """Replace the payload and return the item for chaining."""
        self._value = value
        return self

    def is_hit(self) -> bool:
        """Return ``True`` if this item came from a successful lookup."""
        return self._is_hit

    def expires_at(self, expiration: Optional[datetime]) -> CacheItem:
        """Set an absolute expiration time.

        Naive datetimes are interpreted in local time, as
        :meth:`datetime.timestamp` does.

        Args:
            expiration: When the item expires, or ``None`` for never.

        Raises:
            InvalidArgumentError: If *expiration* is not a datetime or None.
        """
        if expiration is None:
            self._expiration = None
        elif isinstance(expiration, datetime):
            self._expiration = expiration.timestamp()
        else:
            raise InvalidArgumentError("Expiration must be a datetime or None")
        return self

    def expires_after(self, ttl: int | timedelta | None) -> CacheItem:
        """Set the expiration relative to now.

        Args:
            ttl: Seconds as an ``int``, a :class:`~datetime.timedelta`, or
                ``None`` to remove the expiration.

        Raises:
            InvalidArgumentError: If *ttl* is of any other type (``bool``
                included).
        """
        if ttl is None:
            self._expiration = None
        elif isinstance(ttl, bool):
            raise InvalidArgumentError("Time must be integer, timedelta or None")
        elif isinstance(ttl, int):
            self._expiration = time.time() + ttl
        elif isinstance(ttl, timedelta):
            self._expiration = time.time() + ttl.total_seconds()
        else:
            raise InvalidArgumentError("Time must be integer, timedelta or None")
        return self

    def is_expired(self) -> bool:
        """Return ``True`` if an expiration is set and has passed."""
        if self._expiration is None:
            return False
        return time.time() > self._expiration

    def get_ttl(self) -> Optional[int]:
        """Return the whole seconds left before expiry (floored at 0), or ``None``."""
        if self._expiration is None:
            return None
        remaining = int(self._expiration - time.time())
        return remaining if remaining > 0 else 0

    @classmethod
    def hit(cls, key: str, value: Any, expiration: Optional[float] = None) -> CacheItem:
        """Build the item returned for a successful lookup."""
        return cls(key, value, True, expiration)

    @classmethod
    def miss(cls, key: str) -> CacheItem:
        """Build the item returned when nothing usable is stored under *key*."""
        return cls(key)
