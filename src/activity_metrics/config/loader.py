from __future__ import annotations

import importlib
from collections.abc import Mapping
from dataclasses import fields
from importlib import resources

from activity_metrics.config.schema import (
    DeviceConfig,
    KpiConfig,
    MetricsConfig,
    MovementConfig,
    SessionConfig,
    validate_config,
)
from activity_metrics.scoring.types import ScoreWeights

_ROOT_KEYS = {"movement", "sessions", "device", "kpis", "score"}
_MOVEMENT_KEYS = {"break_threshold_ms", "walking_speed_kmh"}
_SESSION_KEYS = {"idle_gap_ms"}
_DEVICE_KEYS = {"low_battery_percent"}
_KPI_KEYS = {
    "scan_action_kind",
    "conversion_status",
    "peak_window_max_hours",
    "longest_breaks_limit",
}
_SCORE_KEYS = {item.name for item in fields(ScoreWeights)}


def load_default_config() -> MetricsConfig:
    payload = _load_default_payload()
    config = _parse_config(payload)
    validate_config(config)
    return config


def _load_default_payload() -> Mapping[str, object]:
    text = (
        resources.files("activity_metrics.config")
        .joinpath("default.yaml")
        .read_text(encoding="utf-8")
    )
    yaml = importlib.import_module("yaml")
    data = yaml.safe_load(text)
    if not isinstance(data, Mapping):
        raise ValueError("activity_metrics default config must be a mapping")
    return data


def _parse_config(payload: Mapping[str, object]) -> MetricsConfig:
    _reject_unknown(payload, _ROOT_KEYS, "activity_metrics config")
    return MetricsConfig(
        movement=_parse_movement(payload.get("movement")),
        sessions=_parse_sessions(payload.get("sessions")),
        device=_parse_device(payload.get("device")),
        kpis=_parse_kpis(payload.get("kpis")),
        score=_parse_score(payload.get("score")),
    )


def _parse_movement(data: object) -> MovementConfig:
    if not isinstance(data, Mapping):
        raise ValueError("movement must be a mapping")
    _reject_unknown(data, _MOVEMENT_KEYS, "movement")
    return MovementConfig(
        break_threshold_ms=_require_int(data.get("break_threshold_ms"), "movement.break_threshold_ms"),
        walking_speed_kmh=_require_number(data.get("walking_speed_kmh"), "movement.walking_speed_kmh"),
    )


def _parse_sessions(data: object) -> SessionConfig:
    if not isinstance(data, Mapping):
        raise ValueError("sessions must be a mapping")
    _reject_unknown(data, _SESSION_KEYS, "sessions")
    return SessionConfig(idle_gap_ms=_require_int(data.get("idle_gap_ms"), "sessions.idle_gap_ms"))


def _parse_device(data: object) -> DeviceConfig:
    if not isinstance(data, Mapping):
        raise ValueError("device must be a mapping")
    _reject_unknown(data, _DEVICE_KEYS, "device")
    return DeviceConfig(
        low_battery_percent=_require_number(
            data.get("low_battery_percent"), "device.low_battery_percent"
        )
    )


def _parse_kpis(data: object) -> KpiConfig:
    if not isinstance(data, Mapping):
        raise ValueError("kpis must be a mapping")
    _reject_unknown(data, _KPI_KEYS, "kpis")
    scan_action_kind = data.get("scan_action_kind")
    conversion_status = data.get("conversion_status")
    if not isinstance(scan_action_kind, str) or not scan_action_kind:
        raise ValueError("kpis.scan_action_kind must be set")
    if not isinstance(conversion_status, str) or not conversion_status:
        raise ValueError("kpis.conversion_status must be set")
    return KpiConfig(
        scan_action_kind=scan_action_kind,
        conversion_status=conversion_status,
        peak_window_max_hours=_require_int(
            data.get("peak_window_max_hours"), "kpis.peak_window_max_hours"
        ),
        longest_breaks_limit=_require_int(
            data.get("longest_breaks_limit"), "kpis.longest_breaks_limit"
        ),
    )


def _parse_score(data: object) -> ScoreWeights:
    if not isinstance(data, Mapping):
        raise ValueError("score must be a mapping")
    _reject_unknown(data, _SCORE_KEYS, "score")
    values = {
        key: _require_number(value, f"score.{key}") for key, value in data.items()
    }
    return ScoreWeights(**values)


def _require_int(value: object, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{label} must be an int")
    return value


def _require_number(value: object, label: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{label} must be a number")
    return float(value)


def _reject_unknown(payload: Mapping[str, object], allowed: set[str], label: str) -> None:
    unknown = set(payload.keys()) - allowed
    if unknown:
        unknown_list = ", ".join(sorted(str(item) for item in unknown))
        raise ValueError(f"unknown {label} keys: {unknown_list}")
