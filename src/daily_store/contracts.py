from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Literal

from activity_metrics.active_time import BreakPeriod
from activity_metrics.day_metrics import DayMetrics
from activity_metrics.scoring import ScoreBreakdown
from field_events.contracts import GpsFix, RawEvent

SCHEMA_NAME = "daily_user_record"
SCHEMA_VERSION = "1"

ApplyStatus = Literal["accepted", "rejected", "duplicate"]

APPLY_ACCEPTED: ApplyStatus = "accepted"
APPLY_REJECTED: ApplyStatus = "rejected"
APPLY_DUPLICATE: ApplyStatus = "duplicate"


@dataclass(frozen=True)
class ApplyResult:
    status: ApplyStatus
    reason: str | None = None

    @property
    def accepted(self) -> bool:
        return self.status == APPLY_ACCEPTED


@dataclass(frozen=True)
class DailyUserRecord:
    """Immutable per-(user, civil day) snapshot, rebuilt on every accepted event."""

    user_id: str
    username: str
    civil_date: str
    gps_fixes: tuple[GpsFix, ...]
    distance_m: float
    active_time_ms: int
    breaks: tuple[BreakPeriod, ...]
    longest_breaks: tuple[BreakPeriod, ...]
    total_session_ms: int
    idle_time_ms: int
    session_count: int
    total_actions: int
    actions_by_kind: Mapping[str, int]
    status_changes: Mapping[str, int]
    total_status_changes: int
    final_statuses: Mapping[str, int]
    status_transitions: Mapping[str, int]
    unique_addresses: int
    avg_battery_level: float | None
    low_battery_events: int
    offline_events: int
    unique_photos: int
    photo_timestamps: tuple[int, ...]
    actions_per_hour: float
    avg_time_per_address_ms: float
    conversion_rate: float
    peak_window: str | None
    raw_events: tuple[RawEvent, ...]
    activity_score: int
    score_breakdown: ScoreBreakdown
    idle_strategy: str


def record_from_metrics(
    *,
    user_id: str,
    username: str,
    civil_date: str,
    metrics: DayMetrics,
    raw_events: Sequence[RawEvent],
) -> DailyUserRecord:
    return DailyUserRecord(
        user_id=user_id,
        username=username,
        civil_date=civil_date,
        gps_fixes=metrics.gps_fixes,
        distance_m=metrics.distance_m,
        active_time_ms=metrics.active_time_ms,
        breaks=metrics.breaks,
        longest_breaks=metrics.longest_breaks,
        total_session_ms=metrics.total_session_ms,
        idle_time_ms=metrics.idle_time_ms,
        session_count=metrics.session_count,
        total_actions=metrics.total_actions,
        actions_by_kind=metrics.actions_by_kind,
        status_changes=metrics.status_changes,
        total_status_changes=metrics.total_status_changes,
        final_statuses=metrics.final_statuses,
        status_transitions=metrics.status_transitions,
        unique_addresses=metrics.unique_addresses,
        avg_battery_level=metrics.avg_battery_level,
        low_battery_events=metrics.low_battery_events,
        offline_events=metrics.offline_events,
        unique_photos=metrics.unique_photos,
        photo_timestamps=metrics.photo_timestamps,
        actions_per_hour=metrics.actions_per_hour,
        avg_time_per_address_ms=metrics.avg_time_per_address_ms,
        conversion_rate=metrics.conversion_rate,
        peak_window=metrics.peak_window,
        raw_events=tuple(raw_events),
        activity_score=metrics.activity_score,
        score_breakdown=metrics.score_breakdown,
        idle_strategy=metrics.idle_strategy,
    )


def sort_records(records: Sequence[DailyUserRecord]) -> tuple[DailyUserRecord, ...]:
    """Highest activity score first; ties broken by user id."""

    return tuple(sorted(records, key=lambda record: (-record.activity_score, record.user_id)))
