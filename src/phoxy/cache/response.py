"""Bridge between :class:`httpx.Response` and the cache's response record.

The upstream fetch is done by the request handler with :mod:`httpx`;
:func:`snapshot_response` turns its result into the plain dict that
:class:`~phoxy.cache.ProxyCache` stores, and :func:`restore_response` turns a
cached record back into an :class:`httpx.Response` so the handler can serve
hits and fresh responses the same way.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

# httpx hands us the decoded body, so encoding and framing headers from the
# upstream no longer describe it.
_EXCLUDED_HEADERS = frozenset(
    {
        "connection",
        "content-encoding",
        "content-length",
        "keep-alive",
        "transfer-encoding",
    }
)


def snapshot_response(response: httpx.Response) -> dict[str, Any]:
    """Capture *response* as a cacheable record.

    The body must already have been read (``response.read()`` or a
    non-streaming request).

    Returns:
        A dict with ``status_code``, ``headers``, ``body`` (bytes) and
        ``content_type`` keys.
    """
    headers = {
        name: value
        for name, value in response.headers.items()
        if name.lower() not in _EXCLUDED_HEADERS
    }
    return {
        "status_code": response.status_code,
        "headers": headers,
        "body": response.content,
        "content_type": response.headers.get("content-type", ""),
    }


def restore_response(
    record: dict[str, Any], request: Optional[httpx.Request] = None
) -> httpx.Response:
    """Rebuild an :class:`httpx.Response` from a cached record.

    Args:
        record: A record produced by :func:`snapshot_response`.
        request: Request to attach, so that ``raise_for_status()`` and
            ``response.url`` work on the result.
    """
    body = record.get("body") or b""
    if isinstance(body, str):
        body = body.encode("utf-8")

    headers = dict(record.get("headers") or {})
    content_type = record.get("content_type")
    if content_type and not any(name.lower() == "content-type" for name in headers):
        headers["content-type"] = content_type

    return httpx.Response(
        status_code=record.get("status_code", 200),
        headers=headers,
        content=body,
        request=request,
    )
