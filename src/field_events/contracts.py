from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal, Union

SCHEMA_NAME = "field_event"
SCHEMA_VERSION = "1"

SOURCE_NATIVE = "native"
SOURCE_EXTERNAL = "external"
FixSource = Literal["native", "external"]

SessionKind = Literal[
    "session_start",
    "session_end",
    "idle_detected",
    "active_resumed",
    "session_update",
]

SESSION_KINDS: Sequence[str] = (
    "session_start",
    "session_end",
    "idle_detected",
    "active_resumed",
    "session_update",
)

EventType = Literal[
    "GpsFix",
    "SessionUpdate",
    "DeviceStatus",
    "ActionEvent",
    "PhotoSubmission",
]

EVENT_TYPES: Sequence[str] = (
    "GpsFix",
    "SessionUpdate",
    "DeviceStatus",
    "ActionEvent",
    "PhotoSubmission",
)


@dataclass(frozen=True)
class GpsFix:
    user_id: str
    username: str
    timestamp_ms: int
    latitude: float
    longitude: float
    accuracy_m: float = 0.0
    source: FixSource = "native"

    event_type: EventType = field(default="GpsFix", init=False)

    @property
    def is_native(self) -> bool:
        return self.source == SOURCE_NATIVE


@dataclass(frozen=True)
class SessionUpdate:
    user_id: str
    username: str
    timestamp_ms: int
    kind: SessionKind
    session_duration_ms: int | None = None
    idle_time_ms: int | None = None

    event_type: EventType = field(default="SessionUpdate", init=False)


@dataclass(frozen=True)
class DeviceStatus:
    """Device telemetry sample. ``battery_level`` is a percentage (0-100)."""

    user_id: str
    username: str
    timestamp_ms: int
    battery_level: float | None = None
    is_charging: bool | None = None
    connection_type: str | None = None
    effective_type: str | None = None

    event_type: EventType = field(default="DeviceStatus", init=False)


@dataclass(frozen=True)
class SingularOutcome:
    """Outcome of an action touching at most one resident.

    ``previous_status`` is ``None`` for legacy producers that never reported
    the status a resident had before the edit.
    """

    status: str | None = None
    previous_status: str | None = None
    resident_id: str | None = None

    kind: Literal["singular"] = field(default="singular", init=False)


@dataclass(frozen=True)
class ResidentOutcome:
    resident_id: str
    status: str | None


@dataclass(frozen=True)
class BulkOutcome:
    """A settled end-state snapshot for many residents saved at once."""

    residents: tuple[ResidentOutcome, ...]

    kind: Literal["bulk"] = field(default="bulk", init=False)


ActionOutcome = Union[SingularOutcome, BulkOutcome]


@dataclass(frozen=True)
class ActionEvent:
    user_id: str
    username: str
    timestamp_ms: int
    action_kind: str
    occurred_at_ms: int
    outcome: ActionOutcome = SingularOutcome()
    address: str | None = None
    dataset_id: str | None = None

    event_type: EventType = field(default="ActionEvent", init=False)

    @property
    def is_bulk(self) -> bool:
        return isinstance(self.outcome, BulkOutcome)


@dataclass(frozen=True)
class PhotoSubmission:
    user_id: str
    username: str
    timestamp_ms: int
    content_hash: str

    event_type: EventType = field(default="PhotoSubmission", init=False)


RawEvent = Union[GpsFix, SessionUpdate, DeviceStatus, ActionEvent, PhotoSubmission]
