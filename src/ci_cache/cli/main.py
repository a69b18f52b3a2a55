"""CLI for ci-cache: gitversion / install-modules / cache-key commands."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ci_cache.cache import CachedOperation, CacheHit, create_cache_store
from ci_cache.cache.key_strategy import build_cache_key
from ci_cache.core.config import AppSettings, CacheConfig
from ci_cache.core.environment import EnvironmentContext
from ci_cache.core.startup_checks import validate_settings
from ci_cache.exceptions import CICacheError
from ci_cache.logging_config import setup_logging
from ci_cache.outputs import ActionOutputs
from ci_cache.process import CommandRunner
from ci_cache.tools.gitversion import run_gitversion
from ci_cache.tools.required_modules import install_required_modules

app = typer.Typer(name="ci-cache", help="Cached CI helpers for GitVersion and PowerShell modules")
console = Console()


def _build_settings(backend: Optional[str], store_path: Optional[Path]) -> AppSettings:
    """Build settings, overriding env defaults with CLI flags."""
    overrides: dict = {}
    if backend:
        overrides["backend"] = backend
    if store_path:
        overrides["store_path"] = store_path
    if not overrides:
        return AppSettings()
    return AppSettings(cache=CacheConfig(**overrides))


def _prepare(
    env: EnvironmentContext,
    backend: Optional[str],
    store_path: Optional[Path],
    verbose: bool,
) -> tuple[AppSettings, CachedOperation, CommandRunner]:
    settings = _build_settings(backend, store_path)
    setup_logging(settings.observability, verbose=verbose, github_actions=env.is_ci)
    validate_settings(settings, env)
    operation = CachedOperation(
        create_cache_store(settings),
        restore_failure=settings.cache.restore_failure,
    )
    return settings, operation, CommandRunner(cwd=env.workspace)


def _fail(outputs: ActionOutputs, error: Exception) -> typer.Exit:
    """Report ``error`` as the step failure and return the exit to raise."""
    if isinstance(error, CICacheError):
        message = str(error)
    else:
        message = f"{type(error).__name__}: {error}"
    outputs.set_failed(message)
    return typer.Exit(code=1)


@app.command()
def gitversion(
    backend: Optional[str] = typer.Option(None, "--backend", help="Cache backend: file, s3, memory"),
    store_path: Optional[Path] = typer.Option(None, "--store-path", help="Directory for the file backend"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Install GitVersion (cached) and publish the computed version as outputs."""
    env = EnvironmentContext.from_environ(os.environ)
    outputs = ActionOutputs(env.output_file)
    try:
        settings, operation, runner = _prepare(env, backend, store_path, verbose)
        info = run_gitversion(
            settings.gitversion, env=env, runner=runner, operation=operation, outputs=outputs
        )
    except Exception as e:
        raise _fail(outputs, e) from e

    console.print(f"[green]Version {info.full_sem_ver or info.sem_ver}[/green]", highlight=False)


@app.command("install-modules")
def install_modules(
    manifest: Optional[Path] = typer.Option(None, "--manifest", help="Path to RequiredModules.psd1"),
    backend: Optional[str] = typer.Option(None, "--backend", help="Cache backend: file, s3, memory"),
    store_path: Optional[Path] = typer.Option(None, "--store-path", help="Directory for the file backend"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Install the modules declared in RequiredModules.psd1, restoring from cache when possible."""
    env = EnvironmentContext.from_environ(os.environ)
    outputs = ActionOutputs(env.output_file)
    try:
        settings, operation, runner = _prepare(env, backend, store_path, verbose)
        outcome = install_required_modules(
            settings.modules, env=env, runner=runner, operation=operation, manifest=manifest
        )
        outcome.raise_for_error()
    except Exception as e:
        raise _fail(outputs, e) from e

    if isinstance(outcome, CacheHit):
        outputs.set_output("cache-hit", "true")
        console.print(f"[green]Modules restored from cache key {outcome.matched_key}[/green]", highlight=False)
    else:
        outputs.set_output("cache-hit", "false")
        console.print("[green]Modules installed and cached[/green]")


@app.command("cache-key")
def cache_key(
    components: list[str] = typer.Argument(..., help="Ordered key components"),
) -> None:
    """Show the exact key and restore fallbacks built from COMPONENTS."""
    try:
        key = build_cache_key(components)
    except CICacheError as e:
        raise typer.BadParameter(str(e)) from e

    table = Table(title="Cache Key")
    table.add_column("Kind", style="cyan")
    table.add_column("Key", style="green")
    table.add_row("exact", key.exact)
    for fallback in reversed(key.fallbacks):
        table.add_row("fallback", fallback)
    console.print(table)


if __name__ == "__main__":
    app()
