"""Cache commands -- inspect and manage the proxy response cache.

Provides the ``phoxy cache`` sub-command group. Every command builds a
:class:`~phoxy.cache.ProxyCache` from the resolved configuration (global
config file, ``PHOXY_CACHE_*`` environment variables, and the root
``--adapter`` / ``--cache-dir`` flags) and closes it when done.

Note that the ``array`` adapter lives in memory only, so with it each
command starts from an empty cache.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import httpx
import typer

from phoxy.cache import ProxyCache, create_proxy_cache, snapshot_response
from phoxy.cache.proxy_cache import body_length
from phoxy.exceptions import PhoxyError, UpstreamError
from phoxy.exit_codes import EXIT_GENERIC_FAILURE
from phoxy.output import error, info, print_body, print_mapping, success, warning


cache_app = typer.Typer(no_args_is_help=True)


@contextmanager
def _cache_session(ctx: typer.Context) -> Iterator[ProxyCache]:
    """Yield a ProxyCache for the invocation's options and close it afterwards.

    A :class:`~phoxy.exceptions.PhoxyError` raised while opening or using
    the cache is reported on stderr and turned into the error's exit code.
    """
    from phoxy.config import load_global_config, resolve_cache_config

    obj = ctx.obj or {}
    config_file = obj.get("config_file")
    try:
        global_config = load_global_config(Path(config_file) if config_file else None)
        config = resolve_cache_config(
            cli_adapter=obj.get("adapter"),
            cli_directory=obj.get("cache_dir"),
            global_config=global_config,
        )
        cache = create_proxy_cache(config)
    except PhoxyError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    try:
        yield cache
    except PhoxyError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    finally:
        cache.adapter.close()


def _build_client(timeout: float) -> httpx.Client:
    """Create the HTTP client used by ``phoxy cache fetch``."""
    return httpx.Client(timeout=timeout, follow_redirects=True)


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show statistics for the configured cache namespace.

    Example::

        phoxy cache stats
        phoxy --json cache stats
    """
    with _cache_session(ctx) as cache:
        stats = cache.get_stats()
        if "error" in stats:
            warning(f"Statistics unavailable: {stats['error']}")
        stats["available"] = cache.adapter.is_available()
        print_mapping(stats, title="Cache statistics")


@cache_app.command("show")
def cache_show(
    ctx: typer.Context,
    url: str = typer.Argument(help="URL whose cached response to show."),
    body: bool = typer.Option(False, "--body", "-b", help="Also print the cached body."),
) -> None:
    """Show the cached response for a URL.

    Exits with code 1 when nothing is cached for the URL.

    Example::

        phoxy cache show https://example.com/app.css --body
    """
    with _cache_session(ctx) as cache:
        response = cache.get_cached_response(url)

    if response is None:
        error(f"No cached response for {url}")
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)

    print_mapping(
        {
            "url": url,
            "key": ProxyCache.make_key(url),
            "status_code": response.get("status_code"),
            "content_type": response.get("content_type", ""),
            "size": body_length(response.get("body")),
            "headers": len(response.get("headers") or {}),
        },
        title="Cached response",
    )
    if body:
        print_body(response.get("body") or b"", response.get("content_type", ""))


@cache_app.command("delete")
def cache_delete(
    ctx: typer.Context,
    url: str = typer.Argument(help="URL whose cached response to delete."),
) -> None:
    """Delete the cached response for a URL. Deleting a missing entry succeeds.

    Example::

        phoxy cache delete https://example.com/app.css
    """
    with _cache_session(ctx) as cache:
        deleted = cache.delete(url)

    if not deleted:
        error(f"Could not delete cached response for {url}")
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
    success(f"Deleted cached response for {url}")


@cache_app.command("clear")
def cache_clear(
    ctx: typer.Context,
    pattern: Optional[str] = typer.Option(
        None, "--pattern", "-p", help="Only remove entries whose cache key starts with this prefix."
    ),
) -> None:
    """Remove cached entries from the configured namespace.

    Without ``--pattern`` every entry in the namespace is removed. Asks for
    confirmation unless ``--force`` is active.

    Example::

        phoxy --force cache clear
        phoxy cache clear --pattern response:
    """
    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        target = f"entries matching '{pattern}'" if pattern else "all cached entries"
        if not typer.confirm(f"Remove {target}?"):
            info("Cancelled.")
            raise typer.Exit()

    with _cache_session(ctx) as cache:
        if pattern:
            removed = cache.clear_pattern(pattern)
            if removed:
                success(f"Removed entries matching '{pattern}'.")
            else:
                info(f"No entries matched '{pattern}'.")
        elif cache.clear():
            success("Cache cleared.")
        else:
            warning("Some cache entries could not be removed.")


@cache_app.command("fetch")
def cache_fetch(
    ctx: typer.Context,
    url: str = typer.Argument(help="URL to fetch through the cache."),
    timeout: float = typer.Option(30.0, "--timeout", "-t", help="Upstream timeout in seconds."),
    refresh: bool = typer.Option(
        False, "--refresh", "-r", help="Ignore any cached copy and fetch again."
    ),
) -> None:
    """Fetch a URL through the cache and print the body.

    A cached response is served when present; otherwise the URL is fetched
    upstream and the response is stored if the cache policy allows it.

    Example::

        phoxy cache fetch https://example.com/data.json
    """
    with _cache_session(ctx) as cache:
        record = None if refresh else cache.get_cached_response(url)
        if record is not None:
            info(f"HTTP {record.get('status_code')} (cached)")
        else:
            try:
                with _build_client(timeout) as client:
                    response = client.get(url)
            except httpx.HTTPError as exc:
                raise UpstreamError(f"Failed to fetch {url}: {exc}") from exc

            record = snapshot_response(response)
            stored = cache.cache_response(url, record)
            info(f"HTTP {response.status_code} ({'stored' if stored else 'not cached'})")

    print_body(record.get("body") or b"", record.get("content_type", ""))
