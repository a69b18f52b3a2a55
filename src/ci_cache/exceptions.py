"""Exception hierarchy for ci-cache."""

from __future__ import annotations

from collections.abc import Sequence


class CICacheError(Exception):
    """Base exception for all ci-cache errors."""


class InvalidKeyComponentError(CICacheError, ValueError):
    """A cache key component is empty or contains the key delimiter."""


class StoreUnavailableError(CICacheError):
    """Raised when a cache store cannot be reached, read, or written."""


class SnapshotError(CICacheError):
    """Raised when paths cannot be archived or an archive cannot be unpacked."""


class ComputeFailedError(CICacheError):
    """The expensive operation wrapped by the cache failed."""


class CommandError(ComputeFailedError):
    """An external command exited with a non-zero status."""

    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command {self.argv[0]!r} exited with status {returncode}"
        if stderr.strip():
            message += f": {stderr.strip()}"
        super().__init__(message)


class ToolNotFoundError(ComputeFailedError):
    """An external executable is not installed or not on PATH."""


class CommandTimeoutError(ComputeFailedError):
    """An external command ran past its time limit."""


class VersionParseError(CICacheError):
    """GitVersion output could not be parsed as JSON."""

    def __init__(self, message: str, raw_output: str = "") -> None:
        super().__init__(message)
        self.raw_output = raw_output


class ManifestNotFoundError(CICacheError):
    """No RequiredModules manifest exists at any candidate location."""


class ConfigurationError(CICacheError):
    """Raised on fatal misconfiguration detected at startup."""
