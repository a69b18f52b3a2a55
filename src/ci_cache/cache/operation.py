"""Restore / compute / save orchestration around an expensive operation."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Literal

from ci_cache.cache.key_strategy import KeyBuilder
from ci_cache.cache.models import (
    CacheHit,
    CacheMissComputed,
    CacheMissComputeFailed,
    OperationOutcome,
    RestoreFailed,
    RestoreHit,
    SaveResult,
)
from ci_cache.cache.protocols import ICacheStore
from ci_cache.exceptions import InvalidKeyComponentError

log = logging.getLogger(__name__)

RestoreFailurePolicy = Literal["raise", "recompute"]


class CachedOperation:
    """Runs an expensive operation only when no cached output can be restored.

    Pipeline per :meth:`run`:

    1. Build the exact key and its prefix fallbacks.
    2. Ask the store to restore.  Any hit, exact or fallback, skips the
       operation and the save.
    3. On a miss, run ``compute``.  A failure is returned as
       ``CacheMissComputeFailed`` and nothing is saved.
    4. On success, save exactly once under the exact key.  A key that
       already exists is not an error.

    Args:
        store: Backend implementing ``ICacheStore``.
        restore_failure: ``"raise"`` re-raises store lookup failures;
            ``"recompute"`` logs them and proceeds as on a miss.
        key_builder: Builder used to derive keys from components.
    """

    def __init__(
        self,
        store: ICacheStore,
        *,
        restore_failure: RestoreFailurePolicy = "raise",
        key_builder: KeyBuilder | None = None,
    ) -> None:
        self._store = store
        self._restore_failure = restore_failure
        self._key_builder = key_builder or KeyBuilder()

    def run(
        self,
        paths: Sequence[Path],
        components: Sequence[str],
        compute: Callable[[], object],
    ) -> OperationOutcome:
        key = self._key_builder.build(components)
        if not key.exact:
            raise InvalidKeyComponentError("At least one cache key component is required")

        log.info("Restoring %s from cache key %s", ", ".join(str(p) for p in paths), key.exact)
        restored = self._store.restore(paths, key.exact, key.fallbacks)

        if isinstance(restored, RestoreHit):
            log.info("Cache hit: %s", restored.key)
            return CacheHit(restored.key)

        if isinstance(restored, RestoreFailed):
            if self._restore_failure == "raise":
                raise restored.error
            log.warning("Cache restore failed, recomputing: %s", restored.error)
        else:
            log.info("Cache miss: %s", key.exact)

        try:
            compute()
        except Exception as e:
            log.error("Cached operation failed for key %s: %s", key.exact, e)
            return CacheMissComputeFailed(e)

        saved = self._store.save(paths, key.exact)
        if saved is SaveResult.ALREADY_EXISTS:
            log.info("Cache entry %s already exists; keeping the stored entry", key.exact)
        else:
            log.info("New cache entry %s", key.exact)
        return CacheMissComputed(saved)
