from __future__ import annotations

import math

from activity_metrics.scoring.types import ScoreBreakdown, ScoreInputs, ScoreWeights

SCORE_MIN = 0.0
SCORE_MAX = 100.0


def compute_activity_score(
    inputs: ScoreInputs, *, weights: ScoreWeights | None = None
) -> ScoreBreakdown:
    """Composite productivity score in ``[0, 100]``.

    Four capped components are summed, two penalties subtracted, and the
    result clamped then rounded half-up.
    """

    weights = weights or ScoreWeights()

    # -1 means "not enough native fixes"; score it as no activity
    active_hours = max(inputs.active_time_ms, 0) / 3_600_000.0
    active_points = _capped(active_hours, weights.active_hours_target, weights.active_time_max)
    status_points = _capped(
        inputs.total_status_changes, weights.status_changes_target, weights.status_changes_max
    )
    action_points = _capped(inputs.total_actions, weights.actions_target, weights.actions_max)
    distance_points = _capped(
        inputs.distance_m / 1000.0, weights.distance_km_target, weights.distance_max
    )

    idle_ratio = max(0.0, min(inputs.idle_ratio, 1.0))
    idle_penalty = 0.0
    if idle_ratio > weights.idle_ratio_threshold:
        idle_penalty = (idle_ratio - weights.idle_ratio_threshold) * weights.idle_penalty_factor
    offline_penalty = min(
        inputs.offline_events * weights.offline_penalty_per_event, weights.offline_penalty_max
    )

    raw = active_points + status_points + action_points + distance_points
    raw -= idle_penalty
    raw -= offline_penalty

    return ScoreBreakdown(
        active_time_points=active_points,
        status_change_points=status_points,
        action_points=action_points,
        distance_points=distance_points,
        idle_penalty=idle_penalty,
        offline_penalty=offline_penalty,
        raw_score=raw,
        score=round_half_up(max(SCORE_MIN, min(raw, SCORE_MAX))),
    )


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _capped(value: float, target: float, maximum: float) -> float:
    return min(value / target * maximum, maximum)
