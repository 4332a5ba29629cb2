"""Content-type policy tables for the proxy cache.

Two independent tables live here:

* :data:`CACHEABLE_CONTENT_TYPES` -- media types the proxy is meant to
  cache, consulted by :func:`is_cacheable_content_type`.
* the category table behind :func:`content_category`, which maps a media
  type to a :class:`~phoxy.models.ContentCategory` for TTL and size
  lookups.

Content types are compared after :func:`normalize_content_type`, so
``"Text/HTML; charset=utf-8"`` and ``"text/html"`` are the same type.
"""

from __future__ import annotations

from phoxy.models import ContentCategory

CACHEABLE_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "text/html",
        "text/css",
        "application/javascript",
        "text/javascript",
        "application/json",
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/svg+xml",
        "font/woff",
        "font/woff2",
    }
)

# Entries ending in "/" match by prefix, all others exactly. Order matters.
_CATEGORY_TABLE: tuple[tuple[str, ContentCategory], ...] = (
    ("text/html", ContentCategory.HTML),
    ("text/css", ContentCategory.CSS),
    ("application/javascript", ContentCategory.JS),
    ("text/javascript", ContentCategory.JS),
    ("application/json", ContentCategory.JSON),
    ("image/", ContentCategory.IMAGES),
    ("font/", ContentCategory.FONTS),
)


def normalize_content_type(content_type: str | None) -> str:
    """Strip parameters and case from a ``Content-Type`` value.

    Example::

        >>> normalize_content_type("Application/JSON; charset=utf-8")
        'application/json'
    """
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def content_category(content_type: str | None) -> ContentCategory:
    """Classify *content_type*; unmatched types are ``OTHER``."""
    media_type = normalize_content_type(content_type)
    if not media_type:
        return ContentCategory.OTHER
    for pattern, category in _CATEGORY_TABLE:
        if pattern.endswith("/"):
            if media_type.startswith(pattern):
                return category
        elif media_type == pattern:
            return category
    return ContentCategory.OTHER


def is_cacheable_content_type(content_type: str | None, inverted: bool = False) -> bool:
    """Decide whether a response of *content_type* may be cached.

    With ``inverted=False`` a type listed in :data:`CACHEABLE_CONTENT_TYPES`
    is cacheable and everything else is not. ``inverted=True`` flips the
    test, which is how the legacy proxy behaved: listed types were the
    ones it refused to cache.

    Args:
        content_type: Raw ``Content-Type`` value (parameters allowed).
        inverted: Apply the legacy, reversed polarity.
    """
    listed = normalize_content_type(content_type) in CACHEABLE_CONTENT_TYPES
    return listed != inverted
