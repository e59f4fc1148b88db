from __future__ import annotations

import hashlib
import json
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from field_events.contracts import (
    SESSION_KINDS,
    SOURCE_EXTERNAL,
    SOURCE_NATIVE,
    ActionEvent,
    ActionOutcome,
    BulkOutcome,
    DeviceStatus,
    FixSource,
    GpsFix,
    PhotoSubmission,
    RawEvent,
    ResidentOutcome,
    SessionUpdate,
    SingularOutcome,
)
from field_events.observability import Observability, null_observability

EXTERNAL_TRACKING_ENDPOINT = "/api/external-tracking/location"
# epoch ms accepted from producers: 1970-01-01 up to 9999-12-30 UTC
MIN_TIMESTAMP_MS = 0
MAX_TIMESTAMP_MS = 253_402_128_000_000

_EXTERNAL_SOURCES = {"external", "external_app", "followmee"}
_SESSION_ENDPOINT = "/api/tracking/session"
_GPS_ENDPOINT = "/api/tracking/gps"
_DEVICE_ENDPOINT = "/api/tracking/device"
_PHOTO_ENDPOINTS = {"/api/ocr"}


@dataclass(frozen=True)
class DecodeFailureDetail:
    error_kind: str
    error_detail: str


class DecodeError(Exception):
    def __init__(self, detail: DecodeFailureDetail) -> None:
        super().__init__(detail.error_detail)
        self.detail = detail


def decode_entry(entry: Mapping[str, Any]) -> tuple[RawEvent, ...]:
    """Decode one log-store entry into the events it describes.

    Most entries yield exactly one event. Action entries that carry no
    countable action yield nothing, and session entries with embedded
    actions yield the session update followed by one event per action.
    """

    if not isinstance(entry, Mapping):
        raise DecodeError(DecodeFailureDetail("parse_error", "entry must be an object"))
    user_id = _require_str(entry, "user_id", "userId")
    username = _optional_str(entry, "username", "userName") or user_id
    timestamp_ms = parse_timestamp_ms(_require_field(entry, "timestamp"), "timestamp")
    data = entry.get("data") or {}
    if not isinstance(data, Mapping):
        raise DecodeError(DecodeFailureDetail("parse_error", "invalid data"))
    # newer producers nest the payload one level deeper
    inner = data.get("data")
    if isinstance(inner, Mapping):
        data = {**data, **inner}
    endpoint = _optional_str(entry, "endpoint") or _optional_str(data, "endpoint") or ""
    method = (_optional_str(entry, "method") or _optional_str(data, "method") or "").upper()

    entry_type = _entry_type(entry.get("type"), data, endpoint)
    mapper = _ENTRY_MAPPERS.get(entry_type)
    if mapper is None:
        raise DecodeError(DecodeFailureDetail("unsupported_type", f"unsupported type {entry_type}"))
    return mapper(user_id, username, timestamp_ms, data, endpoint, method)


def decode_entries(
    entries: Sequence[Mapping[str, Any]],
    *,
    observability: Observability | None = None,
) -> list[RawEvent]:
    """Decode a day log, dropping undecodable entries with a warning."""

    observability = observability or null_observability()
    events: list[RawEvent] = []
    for index, entry in enumerate(entries):
        try:
            decoded = decode_entry(entry)
        except DecodeError as exc:
            observability.log_decode_failure(
                error_kind=exc.detail.error_kind,
                error_detail=exc.detail.error_detail,
                entry_index=index,
            )
            continue
        for event in decoded:
            if isinstance(event, GpsFix) and entry.get("type") == "action":
                observability.log_misrouted_fix(
                    user_id=event.user_id, timestamp_ms=event.timestamp_ms
                )
            events.append(event)
    return events


def parse_timestamp_ms(value: Any, field: str) -> int:
    timestamp_ms = _timestamp_ms(value, field)
    if not MIN_TIMESTAMP_MS <= timestamp_ms <= MAX_TIMESTAMP_MS:
        raise DecodeError(DecodeFailureDetail("parse_error", f"{field} out of range"))
    return timestamp_ms


def _timestamp_ms(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise DecodeError(DecodeFailureDetail("parse_error", f"invalid {field}"))
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as exc:
            raise DecodeError(DecodeFailureDetail("parse_error", f"invalid {field}")) from exc
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        try:
            return int(parsed.timestamp() * 1000)
        except (ValueError, OverflowError) as exc:
            raise DecodeError(DecodeFailureDetail("parse_error", f"invalid {field}")) from exc
    raise DecodeError(DecodeFailureDetail("parse_error", f"invalid {field}"))


def photo_content_hash(new_prospects: Any, existing_customers: Any) -> str:
    """Digest of the names extracted from a photo.

    The address is deliberately absent: the same photo re-submitted under a
    corrected address is still the same photo.
    """

    canonical = json.dumps(
        {"newProspects": new_prospects or [], "existingCustomers": existing_customers or []},
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.md5(canonical.encode("utf-8")).hexdigest()


def infer_action_kind(endpoint: str, method: str = "") -> str | None:
    if endpoint == EXTERNAL_TRACKING_ENDPOINT:
        return None
    if endpoint == "/api/ocr":
        return "scan"
    if endpoint == "/api/ocr-correct":
        return "bulk_residents_update"
    if endpoint == "/api/geocode":
        return "geocode"
    if "/api/navigate" in endpoint:
        return "navigate"
    if endpoint.startswith("/api/address-datasets"):
        if method == "POST":
            return "dataset_create"
        if method == "PUT":
            if "/bulk-residents" in endpoint:
                return "bulk_residents_update"
            if "/residents" in endpoint:
                return "resident_update"
        if method == "DELETE":
            return "resident_delete"
    return None


def _entry_type(declared: Any, data: Mapping[str, Any], endpoint: str) -> str:
    if isinstance(declared, str) and declared:
        return declared
    action = data.get("action")
    if action == "gps_update" or endpoint == _GPS_ENDPOINT:
        return "gps"
    if action in SESSION_KINDS or endpoint == _SESSION_ENDPOINT:
        return "session"
    if action == "device_update" or endpoint == _DEVICE_ENDPOINT:
        return "device"
    if endpoint in _PHOTO_ENDPOINTS and "action" not in data:
        return "photo"
    return "action"


def _map_gps(
    user_id: str,
    username: str,
    timestamp_ms: int,
    data: Mapping[str, Any],
    endpoint: str,
    method: str,
) -> tuple[RawEvent, ...]:
    source = _parse_source(data.get("source"))
    return (_build_fix(user_id, username, timestamp_ms, data, source),)


def _map_session(
    user_id: str,
    username: str,
    timestamp_ms: int,
    data: Mapping[str, Any],
    endpoint: str,
    method: str,
) -> tuple[RawEvent, ...]:
    session = data.get("session")
    payload: Mapping[str, Any] = session if isinstance(session, Mapping) else data
    kind = payload.get("kind") or payload.get("action") or payload.get("type") or "session_update"
    if kind not in SESSION_KINDS:
        raise DecodeError(DecodeFailureDetail("parse_error", "invalid session kind"))
    update = SessionUpdate(
        user_id=user_id,
        username=username,
        timestamp_ms=timestamp_ms,
        kind=kind,
        session_duration_ms=_optional_int(payload, "session_duration_ms", "sessionDuration"),
        idle_time_ms=_optional_int(payload, "idle_time_ms", "idleTime"),
    )
    events: list[RawEvent] = [update]
    actions = payload.get("actions")
    if isinstance(actions, Sequence) and not isinstance(actions, (str, bytes)):
        for item in actions:
            if not isinstance(item, Mapping):
                raise DecodeError(DecodeFailureDetail("parse_error", "invalid session action"))
            occurred_at = item.get("timestamp")
            occurred_at_ms = (
                parse_timestamp_ms(occurred_at, "actions.timestamp")
                if occurred_at is not None
                else timestamp_ms
            )
            events.extend(
                _build_action(user_id, username, occurred_at_ms, item, endpoint="", method="")
            )
    return tuple(events)


def _map_device(
    user_id: str,
    username: str,
    timestamp_ms: int,
    data: Mapping[str, Any],
    endpoint: str,
    method: str,
) -> tuple[RawEvent, ...]:
    device = data.get("device")
    payload: Mapping[str, Any] = device if isinstance(device, Mapping) else data
    battery = _first(payload, "battery_level", "batteryLevel")
    charging = _first(payload, "is_charging", "isCharging")
    if charging is not None and not isinstance(charging, bool):
        raise DecodeError(DecodeFailureDetail("parse_error", "invalid is_charging"))
    return (
        DeviceStatus(
            user_id=user_id,
            username=username,
            timestamp_ms=timestamp_ms,
            battery_level=None if battery is None else _parse_number(battery, "battery_level"),
            is_charging=charging,
            connection_type=_optional_str(payload, "connection_type", "connectionType"),
            effective_type=_optional_str(payload, "effective_type", "effectiveType"),
        ),
    )


def _map_action(
    user_id: str,
    username: str,
    timestamp_ms: int,
    data: Mapping[str, Any],
    endpoint: str,
    method: str,
) -> tuple[RawEvent, ...]:
    if endpoint == EXTERNAL_TRACKING_ENDPOINT or _has_coordinates(data):
        source = _parse_source(data.get("source") or "external")
        return (_build_fix(user_id, username, timestamp_ms, data, source),)
    return _build_action(user_id, username, timestamp_ms, data, endpoint=endpoint, method=method)


def _map_photo(
    user_id: str,
    username: str,
    timestamp_ms: int,
    data: Mapping[str, Any],
    endpoint: str,
    method: str,
) -> tuple[RawEvent, ...]:
    content_hash = _optional_str(data, "content_hash", "contentHash")
    if content_hash is None:
        content_hash = photo_content_hash(
            _first(data, "new_prospects", "newProspects"),
            _first(data, "existing_customers", "existingCustomers"),
        )
    return (
        PhotoSubmission(
            user_id=user_id,
            username=username,
            timestamp_ms=timestamp_ms,
            content_hash=content_hash,
        ),
    )


def _build_fix(
    user_id: str,
    username: str,
    timestamp_ms: int,
    data: Mapping[str, Any],
    source: FixSource,
) -> GpsFix:
    latitude = _parse_number(_require_field(data, "latitude"), "latitude")
    longitude = _parse_number(_require_field(data, "longitude"), "longitude")
    accuracy = data.get("accuracy")
    fix_timestamp = data.get("timestamp")
    # device time beats fetch time for externally polled fixes
    if fix_timestamp is not None:
        timestamp_ms = parse_timestamp_ms(fix_timestamp, "data.timestamp")
    return GpsFix(
        user_id=user_id,
        username=username,
        timestamp_ms=timestamp_ms,
        latitude=latitude,
        longitude=longitude,
        accuracy_m=0.0 if accuracy is None else _parse_number(accuracy, "accuracy"),
        source=source,
    )


def _build_action(
    user_id: str,
    username: str,
    timestamp_ms: int,
    data: Mapping[str, Any],
    *,
    endpoint: str,
    method: str,
) -> tuple[RawEvent, ...]:
    action_kind = data.get("action") or data.get("type")
    if not action_kind and endpoint:
        action_kind = infer_action_kind(endpoint, method)
    if not action_kind:
        return ()
    if not isinstance(action_kind, str):
        raise DecodeError(DecodeFailureDetail("parse_error", "invalid action"))
    occurred_at = data.get("occurred_at_ms")
    occurred_at_ms = (
        timestamp_ms if occurred_at is None else parse_timestamp_ms(occurred_at, "occurred_at_ms")
    )
    return (
        ActionEvent(
            user_id=user_id,
            username=username,
            timestamp_ms=timestamp_ms,
            action_kind=action_kind,
            occurred_at_ms=occurred_at_ms,
            outcome=_parse_outcome(data),
            address=_optional_str(data, "address", "normalizedAddress"),
            dataset_id=_optional_str(data, "dataset_id", "datasetId"),
        ),
    )


def _parse_outcome(data: Mapping[str, Any]) -> ActionOutcome:
    residents = data.get("residents")
    if residents is not None:
        if not isinstance(residents, Sequence) or isinstance(residents, (str, bytes)):
            raise DecodeError(DecodeFailureDetail("parse_error", "invalid residents"))
        parsed: list[ResidentOutcome] = []
        for index, resident in enumerate(residents):
            if not isinstance(resident, Mapping):
                raise DecodeError(DecodeFailureDetail("parse_error", "invalid resident"))
            resident_id = (
                _optional_str(resident, "resident_id", "residentId", "id", "name")
                or f"#{index}"
            )
            parsed.append(
                ResidentOutcome(resident_id=resident_id, status=_optional_str(resident, "status"))
            )
        return BulkOutcome(residents=tuple(parsed))
    return SingularOutcome(
        status=_optional_str(data, "resident_status", "residentStatus", "newCategory", "status"),
        previous_status=_optional_str(
            data, "previous_resident_status", "previousResidentStatus", "previousStatus"
        ),
        resident_id=_optional_str(data, "resident_id", "residentId", "residentName"),
    )


def _parse_source(value: Any) -> FixSource:
    if value is None or value == SOURCE_NATIVE:
        return "native"
    if isinstance(value, str) and value.lower() in _EXTERNAL_SOURCES:
        return "external"
    raise DecodeError(DecodeFailureDetail("parse_error", "invalid source"))


def _has_coordinates(data: Mapping[str, Any]) -> bool:
    return data.get("latitude") is not None and data.get("longitude") is not None


def _require_field(payload: Mapping[str, Any], key: str) -> Any:
    if key not in payload or payload[key] is None:
        raise DecodeError(DecodeFailureDetail("missing_required_field", f"missing {key}"))
    return payload[key]


def _require_str(payload: Mapping[str, Any], *keys: str) -> str:
    value = _optional_str(payload, *keys)
    if not value:
        raise DecodeError(DecodeFailureDetail("missing_required_field", f"missing {keys[0]}"))
    return value


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def _optional_str(payload: Mapping[str, Any], *keys: str) -> str | None:
    value = _first(payload, *keys)
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        raise DecodeError(DecodeFailureDetail("parse_error", f"invalid {keys[0]}"))
    return value or None


def _optional_int(payload: Mapping[str, Any], *keys: str) -> int | None:
    value = _first(payload, *keys)
    if value is None:
        return None
    number = _parse_number(value, keys[0])
    return int(number)


def _parse_number(value: Any, field: str) -> float:
    number = _number(value, field)
    if not math.isfinite(number):
        raise DecodeError(DecodeFailureDetail("parse_error", f"invalid {field}"))
    return number


def _number(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise DecodeError(DecodeFailureDetail("parse_error", f"invalid {field}"))
    if isinstance(value, (int, float, str)):
        try:
            return float(value)
        except (ValueError, OverflowError) as exc:
            raise DecodeError(DecodeFailureDetail("parse_error", f"invalid {field}")) from exc
    raise DecodeError(DecodeFailureDetail("parse_error", f"invalid {field}"))


_ENTRY_MAPPERS = {
    "gps": _map_gps,
    "session": _map_session,
    "device": _map_device,
    "action": _map_action,
    "photo": _map_photo,
}
