"""Startup validation: fail fast on critical misconfigurations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ci_cache.exceptions import ConfigurationError

if TYPE_CHECKING:
    from ci_cache.core.config import AppSettings
    from ci_cache.core.environment import EnvironmentContext

log = logging.getLogger(__name__)


def validate_settings(settings: AppSettings, env: EnvironmentContext) -> None:
    """Validate settings against the runner environment. Raises ConfigurationError."""
    _check_store(settings)
    _check_ephemeral_store(settings, env)


def _check_store(settings: AppSettings) -> None:
    """An S3 backend without a bucket cannot save or restore anything."""
    if settings.cache.backend == "s3" and not settings.cache.s3_bucket:
        raise ConfigurationError(
            "CICACHE_CACHE_S3_BUCKET is required when CICACHE_CACHE_BACKEND=s3."
        )


def _check_ephemeral_store(settings: AppSettings, env: EnvironmentContext) -> None:
    """Warn when cache entries will not outlive the current job."""
    if settings.cache.backend == "memory":
        log.warning(
            "CICACHE_CACHE_BACKEND=memory. Cache entries are discarded when the process exits."
        )
    elif settings.cache.backend == "file" and env.is_ci:
        log.warning(
            "CICACHE_CACHE_BACKEND=file on a CI runner. Entries in %s only persist "
            "if the runner's disk does. Consider CICACHE_CACHE_BACKEND=s3.",
            settings.cache.store_path,
        )
