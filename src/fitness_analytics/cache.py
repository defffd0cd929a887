"""
In-memory result cache with an in-flight guard.

One entry per key, last write wins. An entry is only reused when the input
fingerprint it was computed from matches the caller's, so changed upstream
data always triggers a recomputation. Concurrent callers for the same key
share one computation: the first holds the key's lock, the rest wait on it
and then read the fresh entry.
"""

import asyncio
import hashlib
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Dict, Generic, List, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AnalysisKind(str, Enum):
    """Correlation analyses the engine can run."""
    SLEEP_PERFORMANCE = "sleep_performance"
    NUTRITION_RECOVERY = "nutrition_recovery"
    STRESS_PERFORMANCE = "stress_performance"
    WORKOUT_FREQUENCY = "workout_frequency"
    FORM_PROGRESS = "form_progress"
    HEART_RATE_VARIABILITY = "heart_rate_variability"
    RECOVERY_SLEEP = "recovery_sleep"


class PredictionKind(str, Enum):
    """Prediction use cases."""
    WORKOUT_PERFORMANCE = "workout_performance"
    RECOVERY_TIME = "recovery_time"
    GOAL_ACHIEVEMENT = "goal_achievement"
    INJURY_RISK = "injury_risk"
    TRAINING_SCHEDULE = "training_schedule"
    NUTRITION_NEEDS = "nutrition_needs"
    FORM_IMPROVEMENT = "form_improvement"


class CacheStatus(str, Enum):
    IDLE = "idle"
    COMPUTING = "computing"
    CACHED = "cached"


@dataclass(frozen=True)
class CacheKey:
    """Composite key: who, what, and for which period or subject.

    ``kind`` names what one cache computes: an analysis or prediction kind,
    or the metric for progress.
    """
    user_id: str
    kind: str
    subject: str = ""

    def to_dict(self) -> dict:
        return {"user_id": self.user_id, "kind": self.kind, "subject": self.subject}


@dataclass
class CacheEntry(Generic[T]):
    value: T
    fingerprint: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class CachedResult(Generic[T]):
    """A result plus whether it came from the cache."""
    value: T
    was_cached: bool

    def to_dict(self) -> dict:
        value = self.value.to_dict() if hasattr(self.value, "to_dict") else self.value
        return {"result": value, "was_cached": self.was_cached}


def compute_fingerprint(payload: Union[dict, list]) -> str:
    """Stable SHA-256 over a JSON-serializable payload."""
    encoded = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class ResultCache(Generic[T]):
    """
    Memoizes one result family (e.g. correlation analyses).

    The key map is guarded by one lock; each key additionally has its own
    lock held for the duration of its computation. A key's lock lives only
    while callers for that key are active.
    """

    def __init__(self, name: str = "results"):
        self.name = name
        self._entries: Dict[CacheKey, CacheEntry[T]] = {}
        self._key_locks: Dict[CacheKey, asyncio.Lock] = {}
        self._key_callers: Dict[CacheKey, int] = {}
        self._in_flight: Dict[CacheKey, int] = {}
        self._lock = asyncio.Lock()

    async def _enter(self, key: CacheKey) -> asyncio.Lock:
        async with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = asyncio.Lock()
                self._key_locks[key] = lock
            self._key_callers[key] = self._key_callers.get(key, 0) + 1
            return lock

    async def _leave(self, key: CacheKey) -> None:
        async with self._lock:
            remaining = self._key_callers[key] - 1
            if remaining:
                self._key_callers[key] = remaining
            else:
                del self._key_callers[key]
                del self._key_locks[key]

    async def get_or_compute(
        self,
        key: CacheKey,
        compute_fn: Callable[[], Awaitable[T]],
        fingerprint: Optional[str] = None,
    ) -> CachedResult[T]:
        """
        Return the cached value for ``key`` or compute and store it.

        Args:
            key: Cache key
            compute_fn: Coroutine function producing the value on a miss
            fingerprint: Digest of the inputs; a stored entry with a
                different fingerprint is treated as a miss

        Returns:
            CachedResult with ``was_cached`` set on a hit

        Exceptions raised by ``compute_fn`` propagate and leave any previous
        entry untouched.
        """
        key_lock = await self._enter(key)
        try:
            async with key_lock:
                return await self._lookup_or_compute(key, compute_fn, fingerprint)
        finally:
            await self._leave(key)

    async def _lookup_or_compute(
        self,
        key: CacheKey,
        compute_fn: Callable[[], Awaitable[T]],
        fingerprint: Optional[str],
    ) -> CachedResult[T]:
        async with self._lock:
            entry = self._entries.get(key)
        if entry is not None and entry.fingerprint == fingerprint:
            logger.debug(f"[{self.name}] cache hit for {key}")
            return CachedResult(value=entry.value, was_cached=True)

        logger.debug(f"[{self.name}] cache miss for {key}")
        self._in_flight[key] = self._in_flight.get(key, 0) + 1
        try:
            value = await compute_fn()
        finally:
            remaining = self._in_flight[key] - 1
            if remaining:
                self._in_flight[key] = remaining
            else:
                del self._in_flight[key]

        async with self._lock:
            self._entries[key] = CacheEntry(value=value, fingerprint=fingerprint)
        return CachedResult(value=value, was_cached=False)

    def peek(self, key: CacheKey) -> Optional[T]:
        entry = self._entries.get(key)
        return entry.value if entry else None

    def status(self, key: CacheKey) -> CacheStatus:
        if key in self._in_flight:
            return CacheStatus.COMPUTING
        if key in self._entries:
            return CacheStatus.CACHED
        return CacheStatus.IDLE

    @property
    def is_processing(self) -> bool:
        return bool(self._in_flight)

    def keys_for(self, user_id: str) -> List[CacheKey]:
        """Stored and in-flight keys belonging to a user."""
        keys = set(self._entries) | set(self._in_flight)
        return sorted(
            (k for k in keys if k.user_id == user_id),
            key=lambda k: (k.kind, k.subject),
        )

    async def invalidate(self, key: CacheKey) -> bool:
        async with self._lock:
            return self._entries.pop(key, None) is not None

    async def invalidate_user(self, user_id: str) -> int:
        """Drop every entry for a user. Returns the number removed."""
        async with self._lock:
            keys = [k for k in self._entries if k.user_id == user_id]
            for k in keys:
                del self._entries[k]
        if keys:
            logger.info(f"[{self.name}] invalidated {len(keys)} entries for user {user_id}")
        return len(keys)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
