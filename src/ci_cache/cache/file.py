"""File-based cache store: one gzip tarball per key in a local directory."""

from __future__ import annotations

import logging
import os
import uuid
from collections.abc import Sequence
from pathlib import Path

from ci_cache.cache.archive import pack_paths, snapshot_covers, unpack_paths
from ci_cache.cache.key_strategy import rank_matches
from ci_cache.cache.models import RestoreFailed, RestoreHit, RestoreMiss, RestoreOutcome, SaveResult
from ci_cache.exceptions import InvalidKeyComponentError, SnapshotError, StoreUnavailableError

log = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".tar.gz"


class FileCacheStore:
    """Stores snapshots as ``<key>.tar.gz`` files under ``base_path``.

    Saves are published with a hard link from a temp file, so a concurrent
    save for the same key loses cleanly instead of overwriting.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path).expanduser()

    @property
    def base_path(self) -> Path:
        return self._base

    def _key_path(self, key: str) -> Path:
        if "/" in key or "\\" in key:
            raise InvalidKeyComponentError(f"Cache key {key!r} contains a path separator")
        return self._base / f"{key}{ARCHIVE_SUFFIX}"

    def _list_entries(self) -> dict[str, float]:
        if not self._base.is_dir():
            return {}
        entries: dict[str, float] = {}
        for path in self._base.glob(f"*{ARCHIVE_SUFFIX}"):
            entries[path.name[: -len(ARCHIVE_SUFFIX)]] = path.stat().st_mtime
        return entries

    def restore(
        self,
        paths: Sequence[Path],
        exact_key: str,
        fallback_keys: Sequence[str] = (),
    ) -> RestoreOutcome:
        try:
            candidates = rank_matches(exact_key, fallback_keys, self._list_entries())
        except OSError as e:
            return RestoreFailed(StoreUnavailableError(f"Cannot read cache store {self._base}: {e}"))

        for candidate in candidates:
            entry = self._key_path(candidate)
            try:
                data = entry.read_bytes()
            except OSError as e:
                return RestoreFailed(StoreUnavailableError(f"Cannot read cache entry {entry}: {e}"))
            try:
                if not snapshot_covers(data, paths):
                    log.debug("Skipping %s: saved for a different path set", candidate)
                    continue
                unpack_paths(data, paths)
            except SnapshotError as e:
                return RestoreFailed(e)
            log.debug("Restored %s from %s", candidate, entry)
            return RestoreHit(candidate)
        return RestoreMiss()

    def save(self, paths: Sequence[Path], key: str) -> SaveResult:
        target = self._key_path(key)
        if target.exists():
            return SaveResult.ALREADY_EXISTS

        data = pack_paths(paths)
        partial = self._base / f".{uuid.uuid4().hex}.partial"
        try:
            self._base.mkdir(parents=True, exist_ok=True)
            partial.write_bytes(data)
        except OSError as e:
            raise StoreUnavailableError(f"Cannot write cache entry {target}: {e}") from e

        try:
            os.link(partial, target)
        except FileExistsError:
            return SaveResult.ALREADY_EXISTS
        except OSError as e:
            raise StoreUnavailableError(f"Cannot publish cache entry {target}: {e}") from e
        finally:
            partial.unlink(missing_ok=True)

        log.debug("Saved %s to %s", key, target)
        return SaveResult.STORED
