"""
ttlmemo Cache Store

TTL memoization keyed by operation and argument signature.

Architecture
────────────

    ┌─────────────────────────────────────────────────────────────────────────┐
    │                              CACHE STORE                                 │
    │                                                                          │
    │  operation ──► OperationRecord                                           │
    │                ├─ entries: signature ──► CacheEntry(value, expires_at)   │
    │                ├─ next_expiration   (watermark for this operation)       │
    │                ├─ reads / writes / expirations                           │
    │                └─ in-flight computations (single-flight)                 │
    │                                                                          │
    │  next_expiration (global watermark = min over all records)               │
    │                                                                          │
    └─────────────────────────────────────────────────────────────────────────┘

Expiration
──────────

    An entry is live iff expires_at > now. Liveness is checked on every
    lookup, so correctness never depends on a sweep having run.

    Sweeps only reclaim memory. A full sweep runs inside get_or_compute
    when the global watermark has been reached, which keeps steady-state
    lookups O(1) and bounds sweep work to times when something is due.

    Watermarks are lower bounds: replacing or invalidating an entry can
    leave them earlier than necessary, which only makes the next sweep
    happen sooner.

Concurrency
───────────

    One re-entrant lock guards the nested structure, counters, and sweeps.
    compute() runs outside the lock. With single_flight enabled, concurrent
    misses on one (operation, signature) share a single computation; the
    others wait for its value or its exception.

Usage
─────

    store = CacheStore()
    gdp = store.get_or_compute("gdp", 60, ["France"], lambda: fetch_gdp("France"))
    store.writes("gdp")   # 1

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ttlmemo.config import MemoConfig, get_config
from ttlmemo.observability import MemoComponent, MemoLogger, get_logger
from ttlmemo.signature import SignatureGenerator
from ttlmemo.validation import (
    Duration,
    InvariantViolation,
    coerce_ttl,
    validate_operation,
)

FAR_FUTURE = math.inf

Clock = Callable[[], float]


# ════════════════════════════════════════════════════════════════════════════
# ENTRIES AND RECORDS
# ════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class CacheEntry:
    """A cached result and the clock reading at which it stops being live."""
    value: Any
    expires_at: float

    def is_live(self, now: float) -> bool:
        return self.expires_at > now


class _Flight:
    """Placeholder for a computation in progress."""

    __slots__ = ("event", "value", "error", "succeeded")

    def __init__(self) -> None:
        self.event = threading.Event()
        self.value: Any = None
        self.error: Optional[BaseException] = None
        self.succeeded = False


@dataclass
class OperationRecord:
    """Everything the store keeps for one operation key."""
    operation: str
    entries: Dict[str, CacheEntry] = field(default_factory=dict)
    next_expiration: float = FAR_FUTURE
    reads: int = 0
    writes: int = 0
    expirations: int = 0
    inflight: Dict[str, _Flight] = field(default_factory=dict, repr=False)

    def collect(self, now: float) -> float:
        """Drop expired entries and recompute the watermark."""
        earliest = FAR_FUTURE
        expired: List[str] = []
        for sig, entry in self.entries.items():
            if entry.is_live(now):
                earliest = min(earliest, entry.expires_at)
            else:
                expired.append(sig)
        for sig in expired:
            del self.entries[sig]
        self.expirations += len(expired)
        self.next_expiration = earliest
        return earliest

    def store(self, sig: str, entry: CacheEntry) -> None:
        self.entries[sig] = entry
        self.next_expiration = min(self.next_expiration, entry.expires_at)
        self.writes += 1


@dataclass(frozen=True)
class OperationStats:
    """Point-in-time counters for one operation."""
    operation: str
    reads: int = 0
    writes: int = 0
    expirations: int = 0
    size: int = 0
    next_expiration: float = FAR_FUTURE

    @property
    def total_requests(self) -> int:
        return self.reads + self.writes

    @property
    def hit_ratio(self) -> float:
        """Reads over total requests (0.0 - 1.0)."""
        if self.total_requests == 0:
            return 0.0
        return self.reads / self.total_requests

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "operation": self.operation,
            "reads": self.reads,
            "writes": self.writes,
            "expirations": self.expirations,
            "size": self.size,
            "next_expiration": None if math.isinf(self.next_expiration) else self.next_expiration,
            "hit_ratio": round(self.hit_ratio, 4),
            "total_requests": self.total_requests,
        }


# ════════════════════════════════════════════════════════════════════════════
# CACHE STORE
# ════════════════════════════════════════════════════════════════════════════


class CacheStore:
    """
    Get-or-compute cache with per-entry TTL, per-operation accounting,
    and watermark-gated garbage collection.

    Example:
        store = CacheStore()

        def load():
            return expensive_lookup("France")

        store.get_or_compute("gdp", timedelta(minutes=1), ["France"], load)  # computes
        store.get_or_compute("gdp", timedelta(minutes=1), ["France"], load)  # cached
    """

    def __init__(
        self,
        signature: Optional[Callable[[Sequence[Any]], str]] = None,
        clock: Clock = time.monotonic,
        single_flight: bool = True,
        logger: Optional[MemoLogger] = None,
    ):
        self._signature = signature or SignatureGenerator()
        self._clock = clock
        self._single_flight = single_flight
        self._log = logger or get_logger("store", MemoComponent.STORE)
        self._records: Dict[str, OperationRecord] = {}
        self._next_expiration = FAR_FUTURE
        self._lock = threading.RLock()

    @classmethod
    def from_config(
        cls,
        config: Optional[MemoConfig] = None,
        clock: Clock = time.monotonic,
    ) -> "CacheStore":
        """Build a store whose signature and single-flight settings come from configuration."""
        config = config or get_config()
        return cls(
            signature=SignatureGenerator.from_config(config),
            clock=clock,
            single_flight=config.store.single_flight.get(),
        )

    # ── entry point ──────────────────────────────────────────────────────────

    def get_or_compute(
        self,
        operation: str,
        ttl: Duration,
        args: Sequence[Any],
        compute: Callable[[], Any],
    ) -> Any:
        """Return the live cached result for (operation, args), computing it on a miss.

        If compute raises, nothing is cached and the exception propagates.
        """
        operation = validate_operation(operation)
        seconds = coerce_ttl(ttl)
        sig = self._signature(args)

        while True:
            with self._lock:
                now = self._clock()
                if self._next_expiration <= now:
                    self._sweep(now)

                record = self._record_for(operation)
                entry = record.entries.get(sig)
                if entry is not None and entry.is_live(now):
                    record.reads += 1
                    self._log.debug("cache hit", operation=operation, signature=sig)
                    return entry.value

                flight = record.inflight.get(sig) if self._single_flight else None
                if flight is None:
                    flight = _Flight()
                    if self._single_flight:
                        record.inflight[sig] = flight
                    leader = True
                else:
                    leader = False

            if leader:
                return self._compute(record, sig, seconds, compute, flight)

            flight.event.wait()
            if flight.error is not None:
                raise flight.error
            if flight.succeeded:
                with self._lock:
                    record.reads += 1
                self._log.debug("cache hit (awaited)", operation=operation, signature=sig)
                return flight.value
            # Leader abandoned the computation without an Exception; try again.

    def _compute(
        self,
        record: OperationRecord,
        sig: str,
        seconds: float,
        compute: Callable[[], Any],
        flight: _Flight,
    ) -> Any:
        start = time.monotonic()
        try:
            value = compute()
        except Exception as e:
            flight.error = e
            self._log.warning(
                "compute failed",
                operation=record.operation,
                duration_ms=(time.monotonic() - start) * 1000,
                signature=sig,
                error_type=type(e).__name__,
            )
            raise
        else:
            with self._lock:
                expires_at = self._clock() + seconds
                record.store(sig, CacheEntry(value, expires_at))
                self._next_expiration = min(self._next_expiration, expires_at)
            flight.value = value
            flight.succeeded = True
            self._log.debug(
                "cache miss",
                operation=record.operation,
                duration_ms=(time.monotonic() - start) * 1000,
                signature=sig,
            )
            return value
        finally:
            if self._single_flight:
                with self._lock:
                    if record.inflight.get(sig) is flight:
                        del record.inflight[sig]
            flight.event.set()

    def _record_for(self, operation: str) -> OperationRecord:
        record = self._records.get(operation)
        if record is None:
            record = OperationRecord(operation)
            self._records[operation] = record
        return record

    # ── garbage collection ───────────────────────────────────────────────────

    def garbage_collect(self, operation: str) -> float:
        """Remove expired entries of one operation; return its new watermark."""
        with self._lock:
            record = self._records.get(operation)
            if record is None:
                return FAR_FUTURE
            return record.collect(self._clock())

    def full_garbage_collect(self) -> float:
        """Sweep every operation; return the new global watermark."""
        with self._lock:
            return self._sweep(self._clock())

    def _sweep(self, now: float) -> float:
        self._next_expiration = FAR_FUTURE
        removed = 0
        for record in self._records.values():
            before = len(record.entries)
            self._next_expiration = min(self._next_expiration, record.collect(now))
            removed += before - len(record.entries)
        self._log.debug(
            "garbage collected",
            operation="sweep",
            removed=removed,
            operations=len(self._records),
        )
        return self._next_expiration

    @property
    def next_expiration(self) -> float:
        """Global watermark: no entry anywhere expires before this."""
        with self._lock:
            return self._next_expiration

    # ── statistics ───────────────────────────────────────────────────────────

    def reads(self, operation: str) -> int:
        """Number of cached results served for operation."""
        with self._lock:
            record = self._records.get(operation)
            return record.reads if record else 0

    def writes(self, operation: str) -> int:
        """Number of results computed and stored for operation."""
        with self._lock:
            record = self._records.get(operation)
            return record.writes if record else 0

    def stats(self, operation: str) -> OperationStats:
        with self._lock:
            record = self._records.get(operation)
            if record is None:
                return OperationStats(operation)
            return OperationStats(
                operation=operation,
                reads=record.reads,
                writes=record.writes,
                expirations=record.expirations,
                size=len(record.entries),
                next_expiration=record.next_expiration,
            )

    def all_stats(self) -> Dict[str, OperationStats]:
        with self._lock:
            return {op: self.stats(op) for op in self._records}

    # ── inspection ───────────────────────────────────────────────────────────

    def operations(self) -> List[str]:
        with self._lock:
            return list(self._records)

    def snapshot(self) -> Mapping[str, Mapping[str, CacheEntry]]:
        """Read-only copy of the nested operation -> signature -> entry structure.

        Includes entries that have expired but not yet been collected.
        """
        with self._lock:
            return MappingProxyType({
                op: MappingProxyType(dict(record.entries))
                for op, record in self._records.items()
            })

    def __len__(self) -> int:
        with self._lock:
            return sum(len(record.entries) for record in self._records.values())

    def __contains__(self, operation: object) -> bool:
        with self._lock:
            return operation in self._records

    # ── maintenance ──────────────────────────────────────────────────────────

    def invalidate(self, operation: str, args: Optional[Sequence[Any]] = None) -> int:
        """Drop the entry for args, or every entry of operation. Returns the count removed."""
        with self._lock:
            record = self._records.get(operation)
            if record is None:
                return 0
            if args is None:
                removed = len(record.entries)
                record.entries.clear()
                record.next_expiration = FAR_FUTURE
                return removed
            sig = self._signature(args)
            return 1 if record.entries.pop(sig, None) is not None else 0

    def clear(self) -> None:
        """Drop all operations, entries, and counters."""
        with self._lock:
            if any(record.inflight for record in self._records.values()):
                raise InvariantViolation("cannot clear a store with computations in flight")
            self._records.clear()
            self._next_expiration = FAR_FUTURE


__all__ = [
    "FAR_FUTURE",
    "CacheEntry",
    "OperationRecord",
    "OperationStats",
    "CacheStore",
]
