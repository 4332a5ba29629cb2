"""Exception hierarchy for phoxy.

All exceptions inherit from :class:`PhoxyError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`phoxy.exit_codes`.
The top-level error handler in :func:`phoxy.app.main` catches
``PhoxyError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    PhoxyError (exit 1)
    +-- InvalidArgumentError   (exit 2, also a ValueError)
    |   +-- InvalidCacheKeyError
    +-- CacheException         (exit 3)
    +-- UpstreamError          (exit 4)
    +-- ConfigError            (exit 1)
"""

from __future__ import annotations

from phoxy.exit_codes import (
    EXIT_CACHE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_UPSTREAM_ERROR,
)


class PhoxyError(Exception):
    """Base exception for all phoxy errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`phoxy.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidArgumentError(PhoxyError, ValueError):
    """Raised when a cache operation receives an argument it cannot accept.

    Subclasses :class:`ValueError` so that callers outside phoxy can treat
    it like any other bad-argument condition.
    """

    exit_code = EXIT_INVALID_USAGE


class InvalidCacheKeyError(InvalidArgumentError):
    """Raised for an empty or otherwise unusable cache key."""


class ConfigError(PhoxyError):
    """Raised for configuration problems (invalid JSON, failed validation, missing directory)."""

    exit_code = EXIT_GENERIC_FAILURE


class UpstreamError(PhoxyError):
    """Raised when fetching a URL from the upstream server fails."""

    exit_code = EXIT_UPSTREAM_ERROR


class CacheException(PhoxyError):
    """Storage-level failure raised by a cache adapter.

    Besides the human-readable detail, the exception records which
    operation failed, for which key, in which adapter, and an HTTP-like
    ``status_code`` the request handler can reuse when it decides to
    surface the failure. ``str(exc)`` always carries that context::

        Cache Error [Adapter: filesystem] [Operation: write] [Key: k] Failed to write to cache: ...

    Prefer the factory classmethods (:meth:`read_failed`,
    :meth:`write_failed`, ...) over the constructor; they pick the right
    operation tag and status code.

    Args:
        message: Failure detail without the context prefix.
        operation: One of the ``OPERATION_*`` constants.
        key: The cache key involved, if any.
        adapter_name: Name of the adapter that failed, if known.
        status_code: HTTP-like status code (500, 507, 413).
    """

    OPERATION_READ = "read"
    OPERATION_WRITE = "write"
    OPERATION_DELETE = "delete"
    OPERATION_CLEAR = "clear"
    OPERATION_CONNECT = "connect"

    exit_code = EXIT_CACHE_ERROR

    def __init__(
        self,
        message: str,
        operation: str = OPERATION_READ,
        key: str = "",
        adapter_name: str = "",
        status_code: int = 500,
    ) -> None:
        self.detail = message
        self.operation = operation
        self.key = key
        self.adapter_name = adapter_name
        self.status_code = status_code
        super().__init__(self._format_message(message))

    @classmethod
    def connection_failed(cls, adapter_name: str, details: str) -> CacheException:
        """The backing store could not be opened (directory missing or read-only)."""
        return cls(
            f"Failed to connect to cache: {details}",
            cls.OPERATION_CONNECT,
            "",
            adapter_name,
            500,
        )

    @classmethod
    def read_failed(cls, adapter_name: str, key: str, details: str = "") -> CacheException:
        """A stored record could not be read."""
        return cls(
            "Failed to read from cache" + (f": {details}" if details else ""),
            cls.OPERATION_READ,
            key,
            adapter_name,
            500,
        )

    @classmethod
    def write_failed(cls, adapter_name: str, key: str, details: str = "") -> CacheException:
        """A record could not be persisted."""
        return cls(
            "Failed to write to cache" + (f": {details}" if details else ""),
            cls.OPERATION_WRITE,
            key,
            adapter_name,
            500,
        )

    @classmethod
    def delete_failed(cls, adapter_name: str, key: str, details: str = "") -> CacheException:
        """A record could not be removed from the store."""
        return cls(
            "Failed to delete from cache" + (f": {details}" if details else ""),
            cls.OPERATION_DELETE,
            key,
            adapter_name,
            500,
        )

    @classmethod
    def out_of_memory(cls, adapter_name: str, key: str = "") -> CacheException:
        """The backing store has no room left (507 Insufficient Storage)."""
        return cls(
            "Cache storage is full or out of memory",
            cls.OPERATION_WRITE,
            key,
            adapter_name,
            507,
        )

    @classmethod
    def item_too_large(
        cls, adapter_name: str, key: str, size: int, max_size: int
    ) -> CacheException:
        """An item exceeds the configured size limit (413 Content Too Large)."""
        return cls(
            f"Cache item too large: {size} bytes (max: {max_size} bytes)",
            cls.OPERATION_WRITE,
            key,
            adapter_name,
            413,
        )

    @classmethod
    def corrupted_data(cls, adapter_name: str, key: str, details: str = "") -> CacheException:
        """A stored record exists but does not deserialise into a valid envelope."""
        return cls(
            "Corrupted cache data" + (f": {details}" if details else ""),
            cls.OPERATION_READ,
            key,
            adapter_name,
            500,
        )

    def _format_message(self, message: str) -> str:
        parts = ["Cache Error"]
        if self.adapter_name:
            parts.append(f"[Adapter: {self.adapter_name}]")
        if self.operation:
            parts.append(f"[Operation: {self.operation}]")
        if self.key:
            parts.append(f"[Key: {self.key}]")
        parts.append(message)
        return " ".join(parts)
