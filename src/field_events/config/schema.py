from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from field_events.civil_day import DEFAULT_TIMEZONE, tzinfo_from_name


@dataclass(frozen=True)
class FieldEventsConfig:
    reference_timezone: str = DEFAULT_TIMEZONE
    near_zero_degrees: float = 0.001
    housekeeping_action_kinds: Sequence[str] = ("gps_update", "external_app", "unknown")


def validate_config(config: FieldEventsConfig) -> None:
    if not config.reference_timezone:
        raise ValueError("reference_timezone must be set")
    tzinfo_from_name(config.reference_timezone)
    if config.near_zero_degrees < 0:
        raise ValueError("near_zero_degrees must be >= 0")
    for kind in config.housekeeping_action_kinds:
        if not kind:
            raise ValueError("housekeeping_action_kinds entries must be non-empty")
