from __future__ import annotations

from dataclasses import dataclass, field

from activity_metrics.scoring.types import ScoreWeights


@dataclass(frozen=True)
class MovementConfig:
    break_threshold_ms: int = 20 * 60 * 1000
    walking_speed_kmh: float = 8.0


@dataclass(frozen=True)
class SessionConfig:
    idle_gap_ms: int = 5 * 60 * 1000


@dataclass(frozen=True)
class DeviceConfig:
    low_battery_percent: float = 20.0


@dataclass(frozen=True)
class KpiConfig:
    scan_action_kind: str = "scan"
    conversion_status: str = "interessiert"
    peak_window_max_hours: int = 4
    longest_breaks_limit: int = 3


@dataclass(frozen=True)
class MetricsConfig:
    movement: MovementConfig = field(default_factory=MovementConfig)
    sessions: SessionConfig = field(default_factory=SessionConfig)
    device: DeviceConfig = field(default_factory=DeviceConfig)
    kpis: KpiConfig = field(default_factory=KpiConfig)
    score: ScoreWeights = field(default_factory=ScoreWeights)


def validate_config(config: MetricsConfig) -> None:
    _require_positive(config.movement.break_threshold_ms, "movement.break_threshold_ms")
    _require_positive(config.movement.walking_speed_kmh, "movement.walking_speed_kmh")
    _require_positive(config.sessions.idle_gap_ms, "sessions.idle_gap_ms")
    if not 0 <= config.device.low_battery_percent <= 100:
        raise ValueError("device.low_battery_percent must be within [0, 100]")
    if not config.kpis.scan_action_kind:
        raise ValueError("kpis.scan_action_kind must be set")
    if not config.kpis.conversion_status:
        raise ValueError("kpis.conversion_status must be set")
    if not 1 <= config.kpis.peak_window_max_hours <= 24:
        raise ValueError("kpis.peak_window_max_hours must be within [1, 24]")
    _require_positive(config.kpis.longest_breaks_limit, "kpis.longest_breaks_limit")
    _validate_score(config.score)


def _validate_score(weights: ScoreWeights) -> None:
    _require_positive(weights.active_hours_target, "score.active_hours_target")
    _require_positive(weights.status_changes_target, "score.status_changes_target")
    _require_positive(weights.actions_target, "score.actions_target")
    _require_positive(weights.distance_km_target, "score.distance_km_target")
    for label, value in (
        ("score.active_time_max", weights.active_time_max),
        ("score.status_changes_max", weights.status_changes_max),
        ("score.actions_max", weights.actions_max),
        ("score.distance_max", weights.distance_max),
        ("score.idle_penalty_factor", weights.idle_penalty_factor),
        ("score.offline_penalty_per_event", weights.offline_penalty_per_event),
        ("score.offline_penalty_max", weights.offline_penalty_max),
    ):
        if value < 0:
            raise ValueError(f"{label} must be >= 0")
    if not 0 <= weights.idle_ratio_threshold <= 1:
        raise ValueError("score.idle_ratio_threshold must be within [0, 1]")


def _require_positive(value: float, label: str) -> None:
    if value <= 0:
        raise ValueError(f"{label} must be > 0")
