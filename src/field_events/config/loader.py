from __future__ import annotations

import importlib
from collections.abc import Mapping, Sequence
from importlib import resources

from field_events.config.schema import FieldEventsConfig, validate_config

_ROOT_KEYS = {"reference_timezone", "near_zero_degrees", "housekeeping_action_kinds"}


def load_default_config() -> FieldEventsConfig:
    payload = _load_default_payload()
    config = _parse_config(payload)
    validate_config(config)
    return config


def _load_default_payload() -> Mapping[str, object]:
    text = (
        resources.files("field_events.config")
        .joinpath("default.yaml")
        .read_text(encoding="utf-8")
    )
    yaml = importlib.import_module("yaml")
    data = yaml.safe_load(text)
    if not isinstance(data, Mapping):
        raise ValueError("field_events default config must be a mapping")
    return data


def _parse_config(payload: Mapping[str, object]) -> FieldEventsConfig:
    _reject_unknown(payload, _ROOT_KEYS, "field_events config")
    reference_timezone = payload.get("reference_timezone")
    near_zero_degrees = payload.get("near_zero_degrees")
    housekeeping = payload.get("housekeeping_action_kinds")
    if not isinstance(reference_timezone, str) or not reference_timezone:
        raise ValueError("reference_timezone must be set")
    if isinstance(near_zero_degrees, bool) or not isinstance(near_zero_degrees, (int, float)):
        raise ValueError("near_zero_degrees must be a number")
    if not isinstance(housekeeping, Sequence) or isinstance(housekeeping, (str, bytes)):
        raise ValueError("housekeeping_action_kinds must be a list")
    return FieldEventsConfig(
        reference_timezone=reference_timezone,
        near_zero_degrees=float(near_zero_degrees),
        housekeeping_action_kinds=tuple(str(item) for item in housekeeping),
    )


def _reject_unknown(payload: Mapping[str, object], allowed: set[str], label: str) -> None:
    unknown = set(payload.keys()) - allowed
    if unknown:
        unknown_list = ", ".join(sorted(str(item) for item in unknown))
        raise ValueError(f"unknown {label} keys: {unknown_list}")
