from __future__ import annotations

import threading
import time
from collections.abc import Mapping, Sequence
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from activity_metrics.config import MetricsConfig
from activity_metrics.sessions import IDLE_GAP_ESTIMATE
from daily_store.clock import Clock
from daily_store.config import CacheConfig
from daily_store.contracts import (
    APPLY_DUPLICATE,
    APPLY_REJECTED,
    DailyUserRecord,
    sort_records,
)
from daily_store.observability import Observability, null_observability
from daily_store.working_set import UserDayState
from field_events.civil_day import validate_civil_date
from field_events.contracts import RawEvent
from field_events.decoder import decode_entries
from field_events.observability import Observability as EventObservability
from field_events.validation import EventValidator

CacheKey = tuple[str, Optional[str]]


class DayLogSource(Protocol):
    def fetch_day_log(
        self, civil_date: str, user_id: str | None = None
    ) -> Sequence[Mapping[str, Any]]: ...


class LogFetchError(Exception):
    def __init__(self, civil_date: str, user_id: str | None, detail: str) -> None:
        super().__init__(f"failed to fetch log for {civil_date} (user={user_id}): {detail}")
        self.civil_date = civil_date
        self.user_id = user_id


@dataclass(frozen=True)
class _CacheEntry:
    records: tuple[DailyUserRecord, ...]
    stored_at_ms: int


class BatchReconstructor:
    """Rebuilds day records for past civil days from the durable log.

    Results are cached per ``(civil_date, user_id)`` for ``ttl_ms``. Concurrent
    requests for one key share a single fetch; a fetch failure is delivered to
    every waiter and never cached.
    """

    def __init__(
        self,
        *,
        source: DayLogSource,
        clock: Clock,
        validator: EventValidator | None = None,
        metrics_config: MetricsConfig | None = None,
        cache_config: CacheConfig | None = None,
        observability: Observability | None = None,
        event_observability: EventObservability | None = None,
    ) -> None:
        self._source = source
        self._clock = clock
        self._validator = validator or EventValidator()
        self._metrics_config = metrics_config or MetricsConfig()
        self._cache_config = cache_config or CacheConfig()
        self._observability = observability or null_observability()
        self._event_observability = event_observability
        self._lock = threading.Lock()
        self._cache: dict[CacheKey, _CacheEntry] = {}
        self._inflight: dict[CacheKey, Future[tuple[DailyUserRecord, ...]]] = {}

    def reconstruct(
        self, civil_date: str, user_id: str | None = None
    ) -> tuple[DailyUserRecord, ...]:
        civil_date = validate_civil_date(civil_date)
        key: CacheKey = (civil_date, user_id)
        owner = False
        with self._lock:
            entry = self._cache.get(key)
            if entry is not None and not self._expired(entry):
                cached = entry.records
                future = None
            else:
                cached = None
                if entry is not None:
                    del self._cache[key]
                future = self._inflight.get(key)
                if future is None:
                    future = Future()
                    self._inflight[key] = future
                    owner = True

        if cached is not None:
            self._observability.log_cache_hit(civil_date=civil_date, user_id=user_id, coalesced=False)
            return cached
        assert future is not None
        if not owner:
            self._observability.log_cache_hit(civil_date=civil_date, user_id=user_id, coalesced=True)
            return future.result()

        try:
            records = self._build(civil_date, user_id)
        except Exception as exc:
            with self._lock:
                self._inflight.pop(key, None)
            self._observability.log_reconstruction_failed(
                civil_date=civil_date, user_id=user_id, error=exc
            )
            future.set_exception(exc)
            raise

        with self._lock:
            self._inflight.pop(key, None)
            self._cache[key] = _CacheEntry(records=records, stored_at_ms=self._clock.now_ms())
            self._enforce_capacity()
        future.set_result(records)
        return records

    def get_user_daily_record(self, civil_date: str, user_id: str) -> DailyUserRecord | None:
        for record in self.reconstruct(civil_date, user_id):
            if record.user_id == user_id:
                return record
        return None

    def evict(self, civil_date: str | None = None, user_id: str | None = None) -> int:
        """Drop cached results; with no arguments the whole cache is released."""

        with self._lock:
            if civil_date is None and user_id is None:
                keys = list(self._cache)
            else:
                keys = [
                    key
                    for key in self._cache
                    if (civil_date is None or key[0] == civil_date)
                    and (user_id is None or key[1] == user_id)
                ]
            for key in keys:
                del self._cache[key]
        self._observability.log_cache_evicted(
            civil_date=civil_date, user_id=user_id, keys=len(keys)
        )
        return len(keys)

    def cached_keys(self) -> tuple[CacheKey, ...]:
        with self._lock:
            return tuple(key for key, entry in self._cache.items() if not self._expired(entry))

    def _build(self, civil_date: str, user_id: str | None) -> tuple[DailyUserRecord, ...]:
        self._observability.log_reconstruction_started(civil_date=civil_date, user_id=user_id)
        started = time.perf_counter()
        try:
            entries = self._source.fetch_day_log(civil_date, user_id)
        except Exception as exc:
            raise LogFetchError(civil_date, user_id, str(exc)) from exc

        events = decode_entries(entries, observability=self._event_observability)
        if user_id is not None:
            events = [event for event in events if event.user_id == user_id]

        records = [
            record
            for record in (
                self._replay_user(civil_date, user_events)
                for user_events in _group_by_user(events).values()
            )
            if record is not None
        ]
        result = sort_records(records)
        self._observability.log_reconstruction_completed(
            civil_date=civil_date,
            user_id=user_id,
            entries=len(entries),
            records=len(result),
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        return result

    def _replay_user(self, civil_date: str, events: list[RawEvent]) -> DailyUserRecord | None:
        first = events[0]
        state = UserDayState(
            user_id=first.user_id,
            username=first.username,
            civil_date=civil_date,
            validator=self._validator,
            metrics_config=self._metrics_config,
            idle_strategy=IDLE_GAP_ESTIMATE,
        )
        # stable: equal timestamps keep log order
        for event in sorted(events, key=lambda item: item.timestamp_ms):
            result = state.apply(event)
            if result.status == APPLY_REJECTED:
                self._observability.log_event_rejected(
                    user_id=event.user_id,
                    event_type=event.event_type,
                    timestamp_ms=event.timestamp_ms,
                    civil_date=civil_date,
                    reason=result.reason,
                )
            elif result.status == APPLY_DUPLICATE:
                self._observability.log_event_duplicate(
                    user_id=event.user_id,
                    event_type=event.event_type,
                    timestamp_ms=event.timestamp_ms,
                    civil_date=civil_date,
                )
        if state.event_count == 0:
            return None
        return state.build_record()

    def _expired(self, entry: _CacheEntry) -> bool:
        return self._clock.now_ms() - entry.stored_at_ms >= self._cache_config.ttl_ms

    def _enforce_capacity(self) -> None:
        max_entries = self._cache_config.max_entries
        if max_entries is None:
            return
        while len(self._cache) > max_entries:
            oldest = min(self._cache, key=lambda key: self._cache[key].stored_at_ms)
            del self._cache[oldest]


def _group_by_user(events: Sequence[RawEvent]) -> dict[str, list[RawEvent]]:
    grouped: dict[str, list[RawEvent]] = {}
    for event in events:
        grouped.setdefault(event.user_id, []).append(event)
    return grouped
