"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~phoxy.exceptions.PhoxyError` subclass.
Shell wrappers can inspect the exit code to determine the failure class
without parsing stderr.

Example::

    $ phoxy --adapter filesystem --cache-dir /readonly cache stats
    $ echo $?
    3   # EXIT_CACHE_ERROR -- the cache directory is not writeable
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or an invalid cache key."""

EXIT_CACHE_ERROR = 3
"""The cache backend could not be opened, read, or written."""

EXIT_UPSTREAM_ERROR = 4
"""An upstream fetch failed (timeout, DNS failure, connection refused)."""
