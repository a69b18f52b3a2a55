"""External process invocation for the tools ci-cache drives."""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Optional

from ci_cache.exceptions import CommandError, CommandTimeoutError, ComputeFailedError, ToolNotFoundError

log = logging.getLogger(__name__)


class CommandRunner:
    """Runs executables without a shell and returns their stdout.

    Non-zero exits raise ``CommandError``, a missing executable raises
    ``ToolNotFoundError`` and a timeout raises ``CommandTimeoutError``.  Any
    other launch failure is a plain ``ComputeFailedError``.
    """

    def __init__(self, cwd: Optional[Path] = None, timeout: Optional[float] = None) -> None:
        self._cwd = cwd
        self._timeout = timeout

    def run(self, argv: Sequence[str]) -> str:
        argv = [str(a) for a in argv]
        log.info("$ %s", shlex.join(argv))
        try:
            completed = subprocess.run(
                argv,
                cwd=self._cwd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(f"Executable not found: {argv[0]!r}") from e
        except subprocess.TimeoutExpired as e:
            raise CommandTimeoutError(f"Command {argv[0]!r} timed out after {self._timeout}s") from e
        except OSError as e:
            raise ComputeFailedError(f"Cannot execute {argv[0]!r}: {e}") from e

        if completed.returncode != 0:
            raise CommandError(argv, completed.returncode, completed.stderr)
        if completed.stderr.strip():
            log.debug("%s stderr: %s", argv[0], completed.stderr.strip())
        return completed.stdout
