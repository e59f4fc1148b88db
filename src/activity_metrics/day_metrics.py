"""Single entry point turning one user-day event set into metrics.

Both the live aggregator and the batch reconstructor call
``compute_day_metrics`` with the complete accepted event set; nothing here is
patched incrementally and nothing performs I/O.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from activity_metrics.active_time import BreakPeriod, compute_active_time, longest_breaks
from activity_metrics.config import MetricsConfig
from activity_metrics.counting import tally
from activity_metrics.device import summarize_device
from activity_metrics.distance import compute_distance_m, sort_fixes
from activity_metrics.kpis import (
    actions_per_hour,
    avg_time_per_address_ms,
    conversion_rate,
    peak_window,
)
from activity_metrics.observability import get_observability
from activity_metrics.outcomes import summarize_outcomes
from activity_metrics.scoring import ScoreBreakdown, ScoreInputs, compute_activity_score
from activity_metrics.sessions import (
    IDLE_EXPLICIT,
    IdleStrategy,
    summarize_explicit,
    summarize_gap_estimate,
)
from field_events.civil_day import DEFAULT_TIMEZONE
from field_events.contracts import ActionEvent, DeviceStatus, GpsFix, PhotoSubmission, SessionUpdate


@dataclass(frozen=True)
class DaySnapshot:
    user_id: str
    civil_date: str
    fixes: Sequence[GpsFix] = ()
    session_updates: Sequence[SessionUpdate] = ()
    device_statuses: Sequence[DeviceStatus] = ()
    actions: Sequence[ActionEvent] = ()
    photos: Sequence[PhotoSubmission] = ()
    event_timestamps: Sequence[int] = ()
    idle_strategy: IdleStrategy = IDLE_EXPLICIT
    reference_timezone: str = DEFAULT_TIMEZONE


@dataclass(frozen=True)
class DayMetrics:
    gps_fixes: tuple[GpsFix, ...]
    distance_m: float
    active_time_ms: int
    breaks: tuple[BreakPeriod, ...]
    longest_breaks: tuple[BreakPeriod, ...]
    total_session_ms: int
    idle_time_ms: int
    session_count: int
    idle_ratio: float
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
    score_breakdown: ScoreBreakdown
    idle_strategy: IdleStrategy = IDLE_EXPLICIT

    @property
    def activity_score(self) -> int:
        return self.score_breakdown.score


def compute_day_metrics(snapshot: DaySnapshot, config: MetricsConfig | None = None) -> DayMetrics:
    config = config or MetricsConfig()

    fixes = tuple(sort_fixes(snapshot.fixes))
    active = compute_active_time(fixes, break_threshold_ms=config.movement.break_threshold_ms)
    distance_m = compute_distance_m(
        fixes, active.periods, walking_speed_kmh=config.movement.walking_speed_kmh
    )

    if snapshot.idle_strategy == IDLE_EXPLICIT:
        sessions = summarize_explicit(snapshot.session_updates)
    else:
        sessions = summarize_gap_estimate(
            snapshot.session_updates,
            snapshot.event_timestamps,
            idle_gap_ms=config.sessions.idle_gap_ms,
        )

    counts = tally(snapshot.actions)
    outcomes = summarize_outcomes(snapshot.actions)
    device = summarize_device(
        snapshot.device_statuses, low_battery_percent=config.device.low_battery_percent
    )
    photo_timestamps = tuple(sorted(photo.timestamp_ms for photo in snapshot.photos))

    breakdown = compute_activity_score(
        ScoreInputs(
            active_time_ms=active.active_time_ms,
            total_status_changes=counts.total_status_changes,
            total_actions=counts.total_actions,
            distance_m=distance_m,
            idle_ratio=sessions.idle_ratio,
            offline_events=device.offline_events,
        ),
        weights=config.score,
    )

    metrics = DayMetrics(
        gps_fixes=fixes,
        distance_m=distance_m,
        active_time_ms=active.active_time_ms,
        breaks=active.breaks,
        longest_breaks=longest_breaks(active.breaks, limit=config.kpis.longest_breaks_limit),
        total_session_ms=sessions.total_session_ms,
        idle_time_ms=sessions.idle_time_ms,
        session_count=sessions.session_count,
        idle_ratio=sessions.idle_ratio,
        total_actions=counts.total_actions,
        actions_by_kind=counts.actions_by_kind,
        status_changes=counts.status_changes,
        total_status_changes=counts.total_status_changes,
        final_statuses=outcomes.final_statuses,
        status_transitions=outcomes.status_transitions,
        unique_addresses=outcomes.unique_addresses,
        avg_battery_level=device.avg_battery_level,
        low_battery_events=device.low_battery_events,
        offline_events=device.offline_events,
        unique_photos=len(snapshot.photos),
        photo_timestamps=photo_timestamps,
        actions_per_hour=actions_per_hour(counts.total_actions, active.active_time_ms),
        avg_time_per_address_ms=avg_time_per_address_ms(
            active.active_time_ms,
            counts.actions_by_kind.get(config.kpis.scan_action_kind, 0),
        ),
        conversion_rate=conversion_rate(counts.status_changes, config.kpis.conversion_status),
        peak_window=peak_window(
            snapshot.event_timestamps,
            snapshot.reference_timezone,
            max_hours=config.kpis.peak_window_max_hours,
        ),
        score_breakdown=breakdown,
        idle_strategy=snapshot.idle_strategy,
    )

    get_observability().log_day_computed(
        user_id=snapshot.user_id,
        civil_date=snapshot.civil_date,
        idle_strategy=snapshot.idle_strategy,
        activity_score=breakdown.score,
        active_time_ms=active.active_time_ms,
        distance_m=distance_m,
        total_actions=counts.total_actions,
        score_components={
            "active_time": breakdown.active_time_points,
            "status_changes": breakdown.status_change_points,
            "actions": breakdown.action_points,
            "distance": breakdown.distance_points,
            "idle_penalty": -breakdown.idle_penalty,
            "offline_penalty": -breakdown.offline_penalty,
        },
    )
    return metrics
