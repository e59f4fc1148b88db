from __future__ import annotations

import threading
from dataclasses import dataclass

from activity_metrics.config import MetricsConfig
from activity_metrics.sessions import IDLE_EXPLICIT
from daily_store.clock import Clock
from daily_store.contracts import (
    APPLY_DUPLICATE,
    APPLY_REJECTED,
    ApplyResult,
    DailyUserRecord,
    sort_records,
)
from daily_store.observability import Observability, null_observability
from daily_store.working_set import UserDayState
from field_events.civil_day import civil_date as civil_date_for, validate_civil_date
from field_events.contracts import RawEvent
from field_events.validation import EventValidator


@dataclass(frozen=True)
class AggregatorSize:
    users: int
    raw_events: int


class LiveAggregator:
    """In-memory day records for the current civil day, keyed by user id.

    One user's events are applied under that user's lock; the maps
    themselves are guarded by a store lock that is never held while metrics
    are computed.
    """

    def __init__(
        self,
        *,
        clock: Clock,
        validator: EventValidator | None = None,
        metrics_config: MetricsConfig | None = None,
        observability: Observability | None = None,
    ) -> None:
        self._clock = clock
        self._validator = validator or EventValidator()
        self._metrics_config = metrics_config or MetricsConfig()
        self._observability = observability or null_observability()
        self._civil_date = civil_date_for(clock.now_ms(), self._validator.reference_timezone)
        self._store_lock = threading.Lock()
        self._user_locks: dict[str, threading.Lock] = {}
        self._states: dict[str, UserDayState] = {}
        self._records: dict[str, DailyUserRecord] = {}

    @property
    def civil_date(self) -> str:
        with self._store_lock:
            return self._civil_date

    @property
    def reference_timezone(self) -> str:
        return self._validator.reference_timezone

    def submit_event(self, user_id: str, username: str, event: RawEvent) -> ApplyResult:
        self._roll_over_if_stale()
        with self._lock_for(user_id):
            with self._store_lock:
                day = self._civil_date
                state = self._states.get(user_id)
            if state is None:
                state = UserDayState(
                    user_id=user_id,
                    username=username,
                    civil_date=day,
                    validator=self._validator,
                    metrics_config=self._metrics_config,
                    idle_strategy=IDLE_EXPLICIT,
                )

            result = state.apply(event)
            if result.status == APPLY_REJECTED:
                self._observability.log_event_rejected(
                    user_id=user_id,
                    event_type=event.event_type,
                    timestamp_ms=event.timestamp_ms,
                    civil_date=day,
                    reason=result.reason,
                )
                return result
            if result.status == APPLY_DUPLICATE:
                self._observability.log_event_duplicate(
                    user_id=user_id,
                    event_type=event.event_type,
                    timestamp_ms=event.timestamp_ms,
                    civil_date=day,
                )
                return result

            record = state.build_record()
            with self._store_lock:
                # a rollover while computing discards the stale day
                if self._civil_date != day:
                    return result
                self._states[user_id] = state
                self._records[user_id] = record
            self._observability.log_event_accepted(
                user_id=user_id,
                event_type=event.event_type,
                civil_date=day,
                activity_score=record.activity_score,
            )
            return result

    def get_user_daily_record(self, user_id: str) -> DailyUserRecord | None:
        with self._store_lock:
            return self._records.get(user_id)

    def get_all_daily_records(self) -> tuple[DailyUserRecord, ...]:
        with self._store_lock:
            records = list(self._records.values())
        return sort_records(records)

    def roll_over(self, civil_date: str) -> bool:
        """Discard every working set when ``civil_date`` starts a new day."""

        civil_date = validate_civil_date(civil_date)
        with self._store_lock:
            if civil_date == self._civil_date:
                return False
            previous = self._civil_date
            dropped = len(self._states)
            self._civil_date = civil_date
            self._states.clear()
            self._records.clear()
        self._observability.log_rollover(
            previous_date=previous, civil_date=civil_date, users_dropped=dropped
        )
        return True

    def clear_user(self, user_id: str) -> bool:
        with self._store_lock:
            removed = self._states.pop(user_id, None)
            self._records.pop(user_id, None)
            day = self._civil_date
        if removed is None:
            return False
        self._observability.log_user_cleared(user_id=user_id, civil_date=day)
        return True

    def size(self) -> AggregatorSize:
        with self._store_lock:
            states = list(self._states.values())
        return AggregatorSize(
            users=len(states),
            raw_events=sum(state.event_count for state in states),
        )

    def _roll_over_if_stale(self) -> None:
        today = civil_date_for(self._clock.now_ms(), self._validator.reference_timezone)
        if today != self.civil_date:
            self.roll_over(today)

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._store_lock:
            lock = self._user_locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._user_locks[user_id] = lock
            return lock
