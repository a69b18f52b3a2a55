"""ci-cache: cached CI helpers for GitVersion and PowerShell RequiredModules."""

from __future__ import annotations

__version__ = "0.1.0"
