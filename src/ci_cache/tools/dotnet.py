"""Cached installation of dotnet global tools."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from ci_cache.cache.models import OperationOutcome
from ci_cache.cache.operation import CachedOperation
from ci_cache.core.environment import EnvironmentContext
from ci_cache.process import CommandRunner


def dotnet_tools_path(env: EnvironmentContext) -> Path:
    """Directory ``dotnet tool install --global`` installs into."""
    return env.home / ".dotnet" / "tools"


def dotnet_tools_key(env: EnvironmentContext, tools: Sequence[str]) -> list[str]:
    return [env.runner_os, "dotnet", "tools", *tools]


def cache_dotnet_global_tools(
    tools: Sequence[str],
    *,
    env: EnvironmentContext,
    runner: CommandRunner,
    operation: CachedOperation,
) -> OperationOutcome:
    """Restore ``tools`` from cache, installing and saving them on a miss."""

    def install() -> None:
        for tool in tools:
            runner.run(["dotnet", "tool", "install", "--global", tool])

    return operation.run([dotnet_tools_path(env)], dotnet_tools_key(env, tools), install)
