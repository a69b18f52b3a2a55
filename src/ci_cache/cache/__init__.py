"""Hierarchical cache-key restore/save protocol: key builder, stores, orchestration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ci_cache.cache.key_strategy import KeyBuilder, build_cache_key
from ci_cache.cache.memory import MemoryCacheStore
from ci_cache.cache.models import (
    CacheHit,
    CacheKey,
    CacheMissComputed,
    CacheMissComputeFailed,
    RestoreFailed,
    RestoreHit,
    RestoreMiss,
    SaveResult,
)
from ci_cache.cache.operation import CachedOperation
from ci_cache.cache.protocols import ICacheStore

if TYPE_CHECKING:
    from ci_cache.core.config import CacheConfig

__all__ = [
    "build_cache_key",
    "create_cache_store",
    "CachedOperation",
    "CacheHit",
    "CacheKey",
    "CacheMissComputed",
    "CacheMissComputeFailed",
    "ICacheStore",
    "KeyBuilder",
    "MemoryCacheStore",
    "RestoreFailed",
    "RestoreHit",
    "RestoreMiss",
    "SaveResult",
]


def create_cache_store(settings: object | None = None) -> ICacheStore:
    """Create a cache store from settings.

    Args:
        settings: An ``AppSettings`` or ``CacheConfig`` instance.
            If None, returns a MemoryCacheStore.
    """
    config: CacheConfig | None = None

    if settings is not None:
        config = getattr(settings, "cache", None)
        if config is None and hasattr(settings, "backend"):
            config = settings  # type: ignore[assignment]

    if config is None:
        return MemoryCacheStore()

    backend = config.backend
    if backend == "memory":
        return MemoryCacheStore()
    elif backend == "file":
        from ci_cache.cache.file import FileCacheStore

        return FileCacheStore(config.store_path)
    elif backend == "s3":
        from ci_cache.cache.s3 import S3CacheStore

        return S3CacheStore(
            bucket=config.s3_bucket,
            prefix=config.s3_prefix,
            region=config.aws_region,
        )
    else:
        raise ValueError(f"Unknown cache backend: {backend!r}")
