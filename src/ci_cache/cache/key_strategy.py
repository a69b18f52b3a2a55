"""Cache key computation: exact keys and their prefix fallbacks."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from ci_cache.cache.models import CacheKey
from ci_cache.exceptions import InvalidKeyComponentError

KEY_DELIMITER = "-"
_PATH_SEPARATORS = ("/", "\\")


def validate_component(component: str, delimiter: str = KEY_DELIMITER) -> str:
    """Reject components that would blur the boundary between two components."""
    if not component:
        raise InvalidKeyComponentError("Cache key components must be non-empty")
    if delimiter in component:
        raise InvalidKeyComponentError(
            f"Cache key component {component!r} contains the delimiter {delimiter!r}"
        )
    if any(sep in component for sep in _PATH_SEPARATORS):
        raise InvalidKeyComponentError(
            f"Cache key component {component!r} contains a path separator"
        )
    return component


def build_cache_key(components: Sequence[str], delimiter: str = KEY_DELIMITER) -> CacheKey:
    """Join ``components`` into an exact key and derive its fallbacks.

    Each fallback is a strict prefix of the components (lengths 1..N-1),
    joined the same way, shortest first.  No normalization is applied, so
    keys are case- and whitespace-sensitive.

    Example::

        key = build_cache_key(["Linux", "dotnet", "tools"])
        key.exact       # "Linux-dotnet-tools"
        key.fallbacks   # ("Linux", "Linux-dotnet")
    """
    parts = tuple(validate_component(c, delimiter) for c in components)
    fallbacks = tuple(delimiter.join(parts[:length]) for length in range(1, len(parts)))
    return CacheKey(exact=delimiter.join(parts), fallbacks=fallbacks, components=parts)


def rank_matches(
    exact_key: str,
    fallback_keys: Sequence[str],
    stored: Mapping[str, float],
    delimiter: str = KEY_DELIMITER,
) -> list[str]:
    """Order the stored keys a restore may use, best first.

    ``stored`` maps each stored key to its creation time.  The exact key
    comes first; then, for each fallback from longest to shortest, the
    stored keys it prefixes on a component boundary, newest first.
    """
    ranked: list[str] = []
    if exact_key in stored:
        ranked.append(exact_key)
    for prefix in sorted(fallback_keys, key=len, reverse=True):
        candidates = [
            k for k in stored
            if k not in ranked and (k == prefix or k.startswith(prefix + delimiter))
        ]
        ranked.extend(sorted(candidates, key=lambda k: (stored[k], k), reverse=True))
    return ranked


class KeyBuilder:
    """Object seam around :func:`build_cache_key` with a fixed delimiter."""

    def __init__(self, delimiter: str = KEY_DELIMITER) -> None:
        if not delimiter:
            raise ValueError("Key delimiter must be non-empty")
        self._delimiter = delimiter

    @property
    def delimiter(self) -> str:
        return self._delimiter

    def build(self, components: Sequence[str]) -> CacheKey:
        return build_cache_key(components, self._delimiter)
