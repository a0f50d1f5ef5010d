from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping

_LOGGER = logging.getLogger(__name__)

DEFAULT_TTL = 60.0

# Returned by TTLCache.get for both never-set and expired keys
MISS = object()


@dataclass
class CacheEntry:
    value: Any
    written_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.written_at < self.ttl


class TTLCache:
    """Key/value store where every entry carries its own time-to-live.

    Keys may be namespaced as ``<namespace>:<suffix>``; TTL defaults and
    invalidation both work on the namespace, so ``invalidate("devices")`` also
    forces ``devices:A-123`` stale.
    """

    def __init__(
        self,
        default_ttls: Mapping[str, float] | None = None,
        *,
        fallback_ttl: float = DEFAULT_TTL,
    ) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._default_ttls = dict(default_ttls or {})
        self._fallback_ttl = float(fallback_ttl)

    @staticmethod
    def namespace(key: str) -> str:
        return key.split(":", 1)[0]

    def default_ttl(self, key: str) -> float:
        return float(self._default_ttls.get(self.namespace(key), self._fallback_ttl))

    def get(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None or not entry.is_fresh(time.monotonic()):
            return MISS
        _LOGGER.debug("Using cached %s", key)
        return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        if ttl is None:
            previous = self._entries.get(key)
            ttl = previous.ttl if previous is not None else self.default_ttl(key)
        self._entries[key] = CacheEntry(
            value=value, written_at=time.monotonic(), ttl=float(ttl)
        )

    def invalidate(self, key: str | None = None) -> None:
        """Expire one namespace (or key), or drop every entry when key is None."""

        if key is None:
            self._entries.clear()
            _LOGGER.debug("Cache cleared")
            return
        prefix = f"{key}:"
        for name, entry in self._entries.items():
            if name == key or name.startswith(prefix):
                entry.written_at = float("-inf")
        _LOGGER.debug("Cache invalidated for %s", key)

    def keys(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not MISS

    def __len__(self) -> int:
        return len(self._entries)
