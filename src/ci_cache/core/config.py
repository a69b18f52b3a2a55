"""Nested pydantic-settings configuration for ci-cache.

Each group reads its own ``CICACHE_<GROUP>_*`` env vars::

    export CICACHE_CACHE_BACKEND=s3
    export CICACHE_CACHE_S3_BUCKET=my-ci-cache
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class CacheConfig(BaseSettings):
    """Cache store configuration.

    Env vars use ``CICACHE_CACHE_`` prefix.
    """

    model_config = {"env_prefix": "CICACHE_CACHE_"}

    backend: Literal["file", "s3", "memory"] = "file"
    store_path: Path = Path("~/.cache/ci-cache")
    s3_bucket: str = ""
    s3_prefix: str = "ci-cache/"
    aws_region: str = "us-east-1"
    restore_failure: Literal["raise", "recompute"] = "raise"


class GitVersionConfig(BaseSettings):
    """GitVersion tool configuration.

    Env vars use ``CICACHE_GITVERSION_`` prefix.
    """

    model_config = {"env_prefix": "CICACHE_GITVERSION_"}

    tool_package: str = "GitVersion.Tool"
    executable: str = "dotnet-gitversion"


class ModulesConfig(BaseSettings):
    """RequiredModules installation configuration.

    Env vars use ``CICACHE_MODULES_`` prefix.
    """

    model_config = {"env_prefix": "CICACHE_MODULES_"}

    manifest_path: Optional[Path] = None
    # Relative paths resolve against the workspace; unset means look it up on PATH.
    install_script: Optional[Path] = None
    shell: str = "pwsh"


class ObservabilityConfig(BaseSettings):
    """Logging configuration.

    Env vars use ``CICACHE_OBSERVABILITY_`` prefix.
    """

    model_config = {"env_prefix": "CICACHE_OBSERVABILITY_"}

    log_level: str = "INFO"
    log_format: Literal["auto", "github", "json", "console"] = "auto"


class AppSettings(BaseSettings):
    """Top-level settings aggregating all sub-configs.

    Sub-configs are built per instance so env vars set after import apply.
    """

    cache: CacheConfig = Field(default_factory=CacheConfig)
    gitversion: GitVersionConfig = Field(default_factory=GitVersionConfig)
    modules: ModulesConfig = Field(default_factory=ModulesConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
