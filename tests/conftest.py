"""Shared fixtures for ci-cache tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from ci_cache.cache.memory import MemoryCacheStore
from ci_cache.core.environment import EnvironmentContext


@pytest.fixture
def env(tmp_path: Path) -> EnvironmentContext:
    """Runner environment rooted in a temp dir (no real HOME touched)."""
    home = tmp_path / "home"
    workspace = tmp_path / "workspace"
    home.mkdir()
    workspace.mkdir()
    return EnvironmentContext(
        runner_os="Linux",
        home=home,
        workspace=workspace,
        server_url="https://github.com",
        repository="octo-org/octo-repo",
        ref="refs/heads/main",
        sha="4f2a9c1d8e7b6a5f4e3d2c1b0a9f8e7d6c5b4a39",
        output_file=tmp_path / "github_output",
    )


@pytest.fixture
def memory_store() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture
def tool_dir(tmp_path: Path) -> Path:
    """A small directory tree standing in for installed tool output."""
    root = tmp_path / "tools"
    (root / "bin").mkdir(parents=True)
    (root / "bin" / "tool").write_text("#!/bin/sh\necho tool\n", encoding="utf-8")
    (root / "VERSION").write_text("1.2.3\n", encoding="utf-8")
    return root
