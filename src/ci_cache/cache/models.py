"""Data models for the cache restore/save protocol."""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Union


@dataclasses.dataclass(frozen=True)
class CacheKey:
    """An exact cache key plus its fallback (prefix) keys.

    ``fallbacks`` are ordered shortest first, in component order.  The exact
    key is never part of ``fallbacks``.
    """

    exact: str
    fallbacks: tuple[str, ...] = ()
    components: tuple[str, ...] = ()


class SaveResult(str, Enum):
    """Outcome of a store save."""

    STORED = "stored"
    ALREADY_EXISTS = "already_exists"


# ── Restore outcomes ─────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True)
class RestoreHit:
    """A stored entry was restored; ``key`` is the key actually matched."""

    key: str


@dataclasses.dataclass(frozen=True)
class RestoreMiss:
    """No entry matched the exact key or any fallback."""


@dataclasses.dataclass(frozen=True)
class RestoreFailed:
    """The store could not answer the lookup."""

    error: Exception


RestoreOutcome = Union[RestoreHit, RestoreMiss, RestoreFailed]


# ── Operation outcomes ───────────────────────────────────────────────


@dataclasses.dataclass(frozen=True)
class CacheHit:
    """Restored from cache; the expensive operation was skipped."""

    matched_key: str
    succeeded = True

    def raise_for_error(self) -> None:
        return None


@dataclasses.dataclass(frozen=True)
class CacheMissComputed:
    """Nothing restored; the operation ran and its output was saved."""

    saved: SaveResult = SaveResult.STORED
    succeeded = True

    def raise_for_error(self) -> None:
        return None


@dataclasses.dataclass(frozen=True)
class CacheMissComputeFailed:
    """Nothing restored and the operation failed; nothing was saved."""

    error: Exception
    succeeded = False

    def raise_for_error(self) -> None:
        """Re-raise the original compute exception."""
        raise self.error


OperationOutcome = Union[CacheHit, CacheMissComputed, CacheMissComputeFailed]
