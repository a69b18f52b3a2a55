"""Tests for settings defaults and CICACHE_* env var overrides."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from ci_cache.core.config import AppSettings, CacheConfig, GitVersionConfig, ModulesConfig, ObservabilityConfig


class TestCacheConfig:
    def test_defaults(self) -> None:
        cfg = CacheConfig()
        assert cfg.backend == "file"
        assert cfg.store_path == Path("~/.cache/ci-cache")
        assert cfg.s3_bucket == ""
        assert cfg.s3_prefix == "ci-cache/"
        assert cfg.restore_failure == "raise"

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CICACHE_CACHE_BACKEND", "s3")
        monkeypatch.setenv("CICACHE_CACHE_S3_BUCKET", "ci-bucket")
        monkeypatch.setenv("CICACHE_CACHE_RESTORE_FAILURE", "recompute")

        cfg = CacheConfig()
        assert cfg.backend == "s3"
        assert cfg.s3_bucket == "ci-bucket"
        assert cfg.restore_failure == "recompute"

    def test_rejects_unknown_backend(self) -> None:
        with pytest.raises(ValidationError):
            CacheConfig(backend="redis")  # type: ignore[arg-type]


class TestAppSettings:
    def test_includes_all_groups(self) -> None:
        settings = AppSettings()
        assert isinstance(settings.cache, CacheConfig)
        assert isinstance(settings.gitversion, GitVersionConfig)
        assert isinstance(settings.modules, ModulesConfig)
        assert settings.observability.log_level == "INFO"

    def test_env_read_per_instance(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CICACHE_GITVERSION_TOOL_PACKAGE", "GitVersion.Tool.Preview")
        assert AppSettings().gitversion.tool_package == "GitVersion.Tool.Preview"

    def test_modules_defaults(self) -> None:
        cfg = ModulesConfig()
        assert cfg.manifest_path is None
        assert cfg.shell == "pwsh"
        assert cfg.install_script is None

    def test_log_format(self, monkeypatch: pytest.MonkeyPatch) -> None:
        assert ObservabilityConfig().log_format == "auto"
        monkeypatch.setenv("CICACHE_OBSERVABILITY_LOG_FORMAT", "github")
        assert ObservabilityConfig().log_format == "github"
        monkeypatch.setenv("CICACHE_OBSERVABILITY_LOG_FORMAT", "xml")
        with pytest.raises(ValidationError):
            ObservabilityConfig()
