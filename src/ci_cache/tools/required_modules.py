"""Cached installation of the PowerShell modules listed in RequiredModules.psd1."""

from __future__ import annotations

import hashlib
import logging
import shutil
from pathlib import Path
from typing import Optional

from ci_cache.cache.models import OperationOutcome
from ci_cache.cache.operation import CachedOperation
from ci_cache.core.config import ModulesConfig
from ci_cache.core.environment import EnvironmentContext
from ci_cache.exceptions import ConfigurationError, ManifestNotFoundError
from ci_cache.process import CommandRunner

log = logging.getLogger(__name__)

MANIFEST_NAME = "RequiredModules.psd1"
INSTALL_SCRIPT_NAME = "Install-RequiredModule.ps1"

_PWSH_FLAGS = ["-noprofile", "-nologo", "-noninteractive"]

# First PSModulePath entry under the current user's profile directory.
_USER_MODULE_PATH_COMMAND = (
    "$Env:PSModulePath.Split([IO.Path]::PathSeparator)"
    ".Where({$_.StartsWith((Split-Path $profile.CurrentUserAllHosts))})"
    " | Select-Object -First 1"
)


def find_manifest(explicit: Optional[Path], cwd: Path) -> Path:
    """Return the first existing manifest among the candidate locations.

    Candidates, in order: ``explicit`` (if given), ``cwd/RequiredModules.psd1``,
    ``cwd/RequiredModules/RequiredModules.psd1``.
    """
    candidates = [
        *([explicit if explicit.is_absolute() else cwd / explicit] if explicit else []),
        cwd / MANIFEST_NAME,
        cwd / "RequiredModules" / MANIFEST_NAME,
    ]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    raise ManifestNotFoundError(
        "No RequiredModules manifest found. Looked in: " + ", ".join(str(c) for c in candidates)
    )


def hash_file(path: Path) -> str:
    """SHA-256 of ``path`` as uppercase hex, matching ``Get-FileHash``."""
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1 << 16), b""):
            digest.update(chunk)
    return digest.hexdigest().upper()


def find_install_script(configured: Optional[Path], cwd: Path) -> Path:
    """Locate the Install-RequiredModule script.

    A configured path wins (relative to ``cwd``).  Otherwise the script is
    looked up on PATH, where ``Install-Script Install-RequiredModule`` puts it.
    """
    if configured is not None:
        script = configured if configured.is_absolute() else cwd / configured
        if not script.is_file():
            raise ConfigurationError(f"Install script not found: {script}")
        return script
    found = shutil.which(INSTALL_SCRIPT_NAME)
    if found is None:
        raise ConfigurationError(
            f"{INSTALL_SCRIPT_NAME} is not on PATH. Install it with "
            "'Install-Script Install-RequiredModule' or set CICACHE_MODULES_INSTALL_SCRIPT."
        )
    return Path(found)


def user_module_path(runner: CommandRunner, shell: str = "pwsh") -> Path:
    """Ask PowerShell where CurrentUser-scoped modules are installed."""
    raw = runner.run([shell, *_PWSH_FLAGS, "-command", _USER_MODULE_PATH_COMMAND]).strip()
    if not raw:
        raise ConfigurationError("PowerShell reported no user module path in PSModulePath")
    return Path(raw.splitlines()[0].strip())


def install_required_modules(
    config: ModulesConfig,
    *,
    env: EnvironmentContext,
    runner: CommandRunner,
    operation: CachedOperation,
    manifest: Optional[Path] = None,
) -> OperationOutcome:
    """Restore the user module directory from cache, installing on a miss.

    The key is ``<os>-psmodules-<manifest sha256>``, so any manifest edit
    misses the exact key while still restoring the newest module set for
    the same OS as a fallback.
    """
    manifest_path = find_manifest(manifest or config.manifest_path, env.workspace)
    digest = hash_file(manifest_path)
    module_path = user_module_path(runner, config.shell)
    log.info("Using manifest %s (sha256 %s)", manifest_path, digest)

    def install() -> None:
        script = find_install_script(config.install_script, env.workspace)
        output = runner.run([
            config.shell,
            *_PWSH_FLAGS,
            "-file", str(script),
            "-RequiredModulesFile", str(manifest_path),
            "-TrustRegisteredRepositories",
            "-Scope", "CurrentUser",
        ])
        if output.strip():
            log.info(output.strip())

    return operation.run([module_path], [env.runner_os, "psmodules", digest], install)
