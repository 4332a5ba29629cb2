"""Pydantic models for phoxy configuration.

The configuration is serialised as JSON in the user's config directory and
deserialised into :class:`GlobalConfig`. The cache section
(:class:`CacheConfig`) is what the cache layer consumes: it is passed
explicitly to :func:`~phoxy.cache.factory.create_cache_pool` and
:class:`~phoxy.cache.ProxyCache`, nothing in the cache layer looks
configuration up on its own.

All models use Pydantic v2.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AdapterType(str, enum.Enum):
    """Storage backends selectable by :func:`~phoxy.cache.factory.create_cache_pool`."""

    ARRAY = "array"
    FILESYSTEM = "filesystem"
    DISKCACHE = "diskcache"


class ContentCategory(str, enum.Enum):
    """Coarse classification of a response's content type.

    The category drives both the TTL and the maximum body size applied by
    :class:`~phoxy.cache.ProxyCache`. Anything unrecognised is ``OTHER``.
    """

    HTML = "html"
    CSS = "css"
    JS = "js"
    IMAGES = "images"
    FONTS = "fonts"
    JSON = "json"
    OTHER = "other"


class CategoryTtlConfig(BaseModel):
    """Time-to-live in seconds per content category.

    A category set to ``None`` falls back to :attr:`other`.
    """

    html: Optional[int] = Field(default=1800, ge=0)
    css: Optional[int] = Field(default=86400, ge=0)
    js: Optional[int] = Field(default=86400, ge=0)
    images: Optional[int] = Field(default=604800, ge=0)
    fonts: Optional[int] = Field(default=2592000, ge=0)
    json_: Optional[int] = Field(default=3600, ge=0, alias="json")
    other: int = Field(default=3600, ge=0)

    model_config = ConfigDict(populate_by_name=True)

    def for_category(self, category: ContentCategory) -> int:
        """Return the TTL for *category*, falling back to ``other``."""
        value = _category_value(self, category)
        return self.other if value is None else value


class CategorySizeConfig(BaseModel):
    """Maximum cacheable body size in bytes per content category.

    A category set to ``None`` falls back to :attr:`other`.
    """

    html: Optional[int] = Field(default=2 * 1024 * 1024, ge=0)
    css: Optional[int] = Field(default=1024 * 1024, ge=0)
    js: Optional[int] = Field(default=2 * 1024 * 1024, ge=0)
    images: Optional[int] = Field(default=5 * 1024 * 1024, ge=0)
    fonts: Optional[int] = Field(default=2 * 1024 * 1024, ge=0)
    json_: Optional[int] = Field(default=1024 * 1024, ge=0, alias="json")
    other: int = Field(default=10 * 1024 * 1024, ge=0)

    model_config = ConfigDict(populate_by_name=True)

    def for_category(self, category: ContentCategory) -> int:
        """Return the size limit for *category*, falling back to ``other``."""
        value = _category_value(self, category)
        return self.other if value is None else value


def _category_value(table: BaseModel, category: ContentCategory) -> Optional[int]:
    # ``json`` shadows a BaseModel method, hence the trailing underscore.
    attr = "json_" if category is ContentCategory.JSON else category.value
    return getattr(table, attr)


class CacheConfig(BaseModel):
    """Cache settings stored in :class:`GlobalConfig`.

    Example::

        CacheConfig(
            adapter="filesystem",
            namespace="edge-1",
            directory="/var/cache/phoxy",
            ttl=CategoryTtlConfig(json=600),
        )
    """

    adapter: AdapterType = Field(
        default=AdapterType.FILESYSTEM, description="Storage backend: array, filesystem, diskcache"
    )
    namespace: str = Field(
        default="phoxy",
        min_length=1,
        description="Prefix isolating this cache from others sharing the same store",
    )
    directory: Optional[str] = Field(
        default=None,
        description="Backing directory for on-disk adapters (default: <cache dir>/responses)",
    )
    ttl: CategoryTtlConfig = Field(default_factory=CategoryTtlConfig)
    max_size: CategorySizeConfig = Field(default_factory=CategorySizeConfig)
    invert_cacheable_types: bool = Field(
        default=False,
        description="Reject the listed cacheable content types instead of accepting them "
        "(reproduces the legacy proxy behaviour)",
    )


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/phoxy/config.json``.

    Loaded and saved by :func:`~phoxy.config.load_global_config` and
    :func:`~phoxy.config.save_global_config`. See
    :func:`~phoxy.config.resolve_cache_config` for how CLI flags and
    environment variables override it.
    """

    cache: CacheConfig = Field(default_factory=CacheConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
