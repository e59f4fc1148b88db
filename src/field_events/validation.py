from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

from field_events.civil_day import civil_date
from field_events.config import FieldEventsConfig
from field_events.contracts import ActionEvent, GpsFix, RawEvent

RejectReason = Literal[
    "foreign_civil_day", "invalid_timestamp", "invalid_coordinates", "housekeeping_action"
]

REASON_FOREIGN_CIVIL_DAY: RejectReason = "foreign_civil_day"
REASON_INVALID_TIMESTAMP: RejectReason = "invalid_timestamp"
REASON_INVALID_COORDINATES: RejectReason = "invalid_coordinates"
REASON_HOUSEKEEPING_ACTION: RejectReason = "housekeeping_action"


@dataclass(frozen=True)
class ValidationResult:
    accepted: bool
    reason: RejectReason | None = None


_ACCEPTED = ValidationResult(accepted=True)


class EventValidator:
    """Normalizes away events that must never enter a day record.

    Rejection is routine data hygiene: the validator never raises for bad
    input, it reports a reason and lets the caller drop the event.
    """

    def __init__(self, config: FieldEventsConfig | None = None) -> None:
        self._config = config or FieldEventsConfig()
        self._housekeeping = frozenset(self._config.housekeeping_action_kinds)

    @property
    def reference_timezone(self) -> str:
        return self._config.reference_timezone

    def validate(self, event: RawEvent, *, record_date: str) -> ValidationResult:
        try:
            event_date = civil_date(event.timestamp_ms, self._config.reference_timezone)
        except (ValueError, OverflowError, OSError):
            return ValidationResult(accepted=False, reason=REASON_INVALID_TIMESTAMP)
        if event_date != record_date:
            return ValidationResult(accepted=False, reason=REASON_FOREIGN_CIVIL_DAY)
        if isinstance(event, GpsFix) and not self.coordinates_valid(
            event.latitude, event.longitude
        ):
            return ValidationResult(accepted=False, reason=REASON_INVALID_COORDINATES)
        if isinstance(event, ActionEvent) and self.is_housekeeping(event.action_kind):
            return ValidationResult(accepted=False, reason=REASON_HOUSEKEEPING_ACTION)
        return _ACCEPTED

    def is_housekeeping(self, action_kind: str) -> bool:
        return action_kind in self._housekeeping

    def coordinates_valid(self, latitude: float, longitude: float) -> bool:
        return _axis_valid(latitude, 90.0, self._config.near_zero_degrees) and _axis_valid(
            longitude, 180.0, self._config.near_zero_degrees
        )


def _axis_valid(value: float, bound: float, near_zero: float) -> bool:
    if not math.isfinite(value):
        return False
    if abs(value) > bound:
        return False
    # |value| <= near_zero is the device "fix not ready" sentinel
    return abs(value) > near_zero
