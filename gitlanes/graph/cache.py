"""
Layout cache - keyed store with pluggable expiry and eviction policies.

The layout engine keys results by a cheap fingerprint of the commit sequence
so repeated renders, hovers and resizes do not redo lane assignment.
"""

import hashlib
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

from loguru import logger

from gitlanes.graph.types import CacheStats, Commit

K = TypeVar("K")
V = TypeVar("V")

DEFAULT_TTL_SECONDS = 60.0
DEFAULT_MAX_SIZE = 50

# Number of commits sampled from each end of the sequence
FINGERPRINT_SAMPLE = 10


@dataclass
class CacheEntry(Generic[V]):
    value: V
    timestamp: float
    # The miss that created the entry counts as its first access
    access_count: int = 1


class ExpiryPolicy(Protocol):
    def is_expired(self, entry: CacheEntry, now: float) -> bool: ...


class EvictionPolicy(Protocol):
    def select_victim(self, entries: dict) -> object: ...


class TTLExpiry:
    """Entries whose age reaches a fixed time-to-live are stale."""

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        self.ttl = ttl

    def is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp >= self.ttl


class PopularityEviction:
    """
    Evict the entry with the lowest ``timestamp / max(1, access_count)``.

    Ties go to the first entry in iteration order (insertion order).
    """

    @staticmethod
    def score(entry: CacheEntry) -> float:
        return entry.timestamp / max(1, entry.access_count)

    def select_victim(self, entries: dict[K, CacheEntry]) -> K:
        victim_key = None
        victim_score = float("inf")
        for key, entry in entries.items():
            entry_score = self.score(entry)
            if entry_score < victim_score:
                victim_key = key
                victim_score = entry_score
        return victim_key


class LayoutCache(Generic[K, V]):
    """Bounded key -> value store. Not safe for concurrent mutation."""

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        expiry: ExpiryPolicy | None = None,
        eviction: EvictionPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")
        self.max_size = max_size
        self.expiry = expiry or TTLExpiry()
        self.eviction = eviction or PopularityEviction()
        self._clock = clock
        self._entries: dict[K, CacheEntry[V]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: K) -> V | None:
        """Return the cached value, or None on a miss or an expired entry."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self.expiry.is_expired(entry, self._clock()):
            logger.debug("Layout cache entry expired: {}", key)
            del self._entries[key]
            return None

        entry.access_count += 1
        return entry.value

    def put(self, key: K, value: V) -> None:
        """Store a value, evicting one entry first if the cache is full."""
        if key not in self._entries and len(self._entries) >= self.max_size:
            victim = self.eviction.select_victim(self._entries)
            logger.debug("Layout cache full, evicting {}", victim)
            self._entries.pop(victim, None)

        self._entries[key] = CacheEntry(value=value, timestamp=self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> CacheStats:
        """
        Report size and hit rate.

        Each live entry was created by exactly one miss and has served
        ``access_count - 1`` hits since.
        """
        lookups = sum(entry.access_count for entry in self._entries.values())
        hits = lookups - len(self._entries)
        hit_rate = hits / lookups if lookups else 0.0
        return CacheStats(size=len(self._entries), max_size=self.max_size, hit_rate=hit_rate)


def sampled_fingerprint(commits: Sequence[Commit]) -> str:
    """
    Key a sequence by its length and the first and last ten hashes.

    Two sequences of equal length that share both ends but differ in the
    middle collide. Callers that rewrite history in place must clear the cache.
    """
    head = ",".join(c.hash for c in commits[:FINGERPRINT_SAMPLE])
    tail = ",".join(c.hash for c in commits[-FINGERPRINT_SAMPLE:])
    return f"{len(commits)}|{head}|{tail}"


def full_fingerprint(commits: Sequence[Commit]) -> str:
    """Key a sequence by a digest of every hash and parent link."""
    digest = hashlib.blake2b(digest_size=16)
    for commit in commits:
        digest.update(commit.hash.encode())
        digest.update(b"<")
        digest.update(",".join(commit.parents).encode())
        digest.update(b"\n")
    return f"{len(commits)}|{digest.hexdigest()}"


FINGERPRINTS: dict[str, Callable[[Sequence[Commit]], str]] = {
    "sampled": sampled_fingerprint,
    "full": full_fingerprint,
}
