"""phoxy -- Response cache for an HTTP-forwarding proxy.

This package stores proxied HTTP responses behind a small, pluggable cache
layer. A request handler asks :class:`~phoxy.cache.ProxyCache` for a cached
response before going upstream, and hands the upstream response back to it
afterwards; the policy layer decides whether and for how long the response
is kept, based on its content type and size.

Typical workflow::

    phoxy cache fetch https://example.com/app.css   # fetch through the cache
    phoxy cache stats                                # inspect the store
    phoxy --force cache clear                        # drop this namespace

Modules:
    app: Typer application factory and CLI entry point.
    cache: Cache items, storage adapters, content policy, and ProxyCache.
    models: Pydantic configuration models.
    config: XDG-aware configuration loading and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
