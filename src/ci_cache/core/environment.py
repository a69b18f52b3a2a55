"""Runner environment captured once as an immutable value object."""

from __future__ import annotations

import dataclasses
import platform
from collections.abc import Mapping
from pathlib import Path
from typing import Optional


def _first(environ: Mapping[str, str], *names: str) -> str:
    for name in names:
        value = environ.get(name, "")
        if value:
            return value
    return ""


@dataclasses.dataclass(frozen=True)
class EnvironmentContext:
    """Everything ci-cache reads from the process environment.

    Build it once with :meth:`from_environ` at the edge and pass it down, so
    key derivation and command construction never touch ``os.environ``.
    """

    runner_os: str
    home: Path
    workspace: Path
    server_url: str = "https://github.com"
    repository: str = ""
    ref: str = ""
    sha: str = ""
    output_file: Optional[Path] = None

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> EnvironmentContext:
        """Read GitHub Actions runner variables from ``environ``."""
        home = _first(environ, "HOME", "USERPROFILE")
        workspace = _first(environ, "GITHUB_WORKSPACE")
        output_file = _first(environ, "GITHUB_OUTPUT")
        return cls(
            runner_os=_first(environ, "RUNNER_OS", "OS", "ImageOS") or platform.system(),
            home=Path(home) if home else Path.home(),
            workspace=Path(workspace) if workspace else Path.cwd(),
            server_url=_first(environ, "GITHUB_SERVER_URL") or "https://github.com",
            repository=_first(environ, "GITHUB_REPOSITORY"),
            ref=_first(environ, "GITHUB_REF"),
            sha=_first(environ, "GITHUB_SHA"),
            output_file=Path(output_file) if output_file else None,
        )

    @property
    def repository_url(self) -> str:
        """Clone URL of the repository being built."""
        return f"{self.server_url.rstrip('/')}/{self.repository}.git"

    @property
    def is_ci(self) -> bool:
        return bool(self.repository and self.sha)
