"""In-memory cache store: dict-backed, ideal for tests and dry runs."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Sequence
from pathlib import Path

from ci_cache.cache.archive import pack_paths, snapshot_covers, unpack_paths
from ci_cache.cache.key_strategy import rank_matches
from ci_cache.cache.models import RestoreFailed, RestoreHit, RestoreMiss, RestoreOutcome, SaveResult
from ci_cache.exceptions import SnapshotError

log = logging.getLogger(__name__)


class MemoryCacheStore:
    """Keeps archived snapshots in a plain dict for the life of the process.

    Entry recency uses an insertion counter rather than wall-clock time so
    back-to-back saves are still ordered.
    """

    def __init__(self) -> None:
        self._archives: dict[str, bytes] = {}
        self._created: dict[str, float] = {}
        self._clock = itertools.count(1)

    def __contains__(self, key: object) -> bool:
        return key in self._archives

    def keys(self) -> list[str]:
        return sorted(self._archives)

    def restore(
        self,
        paths: Sequence[Path],
        exact_key: str,
        fallback_keys: Sequence[str] = (),
    ) -> RestoreOutcome:
        for candidate in rank_matches(exact_key, fallback_keys, self._created):
            data = self._archives[candidate]
            try:
                if not snapshot_covers(data, paths):
                    log.debug("Skipping %s: saved for a different path set", candidate)
                    continue
                unpack_paths(data, paths)
            except SnapshotError as e:
                return RestoreFailed(e)
            log.debug("Restored %s from memory store", candidate)
            return RestoreHit(candidate)
        return RestoreMiss()

    def save(self, paths: Sequence[Path], key: str) -> SaveResult:
        if key in self._archives:
            return SaveResult.ALREADY_EXISTS
        self._archives[key] = pack_paths(paths)
        self._created[key] = float(next(self._clock))
        log.debug("Saved %s to memory store", key)
        return SaveResult.STORED
