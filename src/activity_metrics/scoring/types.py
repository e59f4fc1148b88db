from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoreWeights:
    active_hours_target: float = 6.0
    active_time_max: float = 30.0
    status_changes_target: float = 30.0
    status_changes_max: float = 30.0
    actions_target: float = 50.0
    actions_max: float = 25.0
    distance_km_target: float = 10.0
    distance_max: float = 10.0
    idle_ratio_threshold: float = 0.5
    idle_penalty_factor: float = 10.0
    offline_penalty_per_event: float = 0.5
    offline_penalty_max: float = 5.0


@dataclass(frozen=True)
class ScoreInputs:
    active_time_ms: int
    total_status_changes: int
    total_actions: int
    distance_m: float
    idle_ratio: float
    offline_events: int


@dataclass(frozen=True)
class ScoreBreakdown:
    active_time_points: float
    status_change_points: float
    action_points: float
    distance_points: float
    idle_penalty: float
    offline_penalty: float
    raw_score: float
    score: int
