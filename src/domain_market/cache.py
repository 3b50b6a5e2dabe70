"""
In-memory TTL cache for upstream responses.

Keys are namespaced by the caller (``domain-check-<domain>``,
``domain-pricing-all``, ...). When no TTL is given, it is chosen from the key:
pricing keys live for a day, availability checks for a minute, everything
else for five minutes.

Expired entries are never returned. They are removed lazily when read, and a
full sweep runs every ``sweep_interval`` insertions to keep the map from
growing without bound.
"""

from dataclasses import dataclass
from typing import Any, Optional

from .clock import Clock, SystemClock
from .config import CacheConfig

PRICING_KEY_PATTERN = "pricing"
DOMAIN_CHECK_KEY_PATTERN = "domain-check"


@dataclass
class CacheEntry:
    """A cached value with its insertion time and TTL (seconds)."""

    data: Any
    inserted_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.inserted_at > self.ttl


@dataclass
class CacheStats:
    """Diagnostic snapshot of the cache."""

    total: int
    active: int
    expired: int

    @property
    def hit_potential(self) -> float:
        """Share of stored entries that could still be served."""
        if self.total == 0:
            return 0.0
        return self.active / self.total


class ResponseCache:
    """Single-map TTL cache with key-pattern TTL selection."""

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._config = config or CacheConfig()
        self._clock = clock or SystemClock()
        self._entries: dict[str, CacheEntry] = {}
        self._insertions = 0

    def __len__(self) -> int:
        return len(self._entries)

    def ttl_for_key(self, key: str) -> float:
        """TTL class derived from the key's namespace."""
        if PRICING_KEY_PATTERN in key:
            return self._config.pricing_ttl
        if DOMAIN_CHECK_KEY_PATTERN in key:
            return self._config.domain_check_ttl
        return self._config.default_ttl

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store a value with an explicit or key-derived TTL."""
        actual_ttl = ttl if ttl is not None else self.ttl_for_key(key)
        self._entries[key] = CacheEntry(
            data=value,
            inserted_at=self._clock.now(),
            ttl=actual_ttl,
        )

        self._insertions += 1
        if self._config.sweep_interval > 0 and self._insertions % self._config.sweep_interval == 0:
            self.sweep()

    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock.now()):
            del self._entries[key]
            return None
        return entry.data

    def has(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        if entry.is_expired(self._clock.now()):
            del self._entries[key]
            return False
        return True

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if something was removed."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        """Remove every logically expired entry. Returns the number removed."""
        now = self._clock.now()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def stats(self) -> CacheStats:
        """Full scan of the map at call time."""
        now = self._clock.now()
        expired = sum(1 for entry in self._entries.values() if entry.is_expired(now))
        total = len(self._entries)
        return CacheStats(total=total, active=total - expired, expired=expired)
