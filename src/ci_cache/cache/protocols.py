"""Cache store protocol: the restore/save contract every backend implements."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from ci_cache.cache.models import RestoreOutcome, SaveResult


@runtime_checkable
class ICacheStore(Protocol):
    """Protocol for durable key -> path-snapshot stores (file, S3, memory)."""

    def restore(
        self,
        paths: Sequence[Path],
        exact_key: str,
        fallback_keys: Sequence[str] = (),
    ) -> RestoreOutcome:
        """Restore the best matching snapshot into ``paths``.

        The exact key is checked first.  Otherwise the longest fallback that
        prefixes a stored key wins, newest entry first.  Infrastructure
        failures come back as ``RestoreFailed`` rather than a miss.
        """
        ...

    def save(self, paths: Sequence[Path], key: str) -> SaveResult:
        """Snapshot ``paths`` under ``key``.

        Never overwrites: an existing key yields ``SaveResult.ALREADY_EXISTS``.
        Raises ``StoreUnavailableError`` on infrastructure failure.
        """
        ...
