"""field_events contracts, decoding and validation."""

from field_events.civil_day import (
    DEFAULT_TIMEZONE,
    civil_date,
    local_hour,
    ms_until_next_midnight,
    next_midnight_ms,
    start_of_day_ms,
)
from field_events.config import FieldEventsConfig, validate_config
from field_events.contracts import (
    EVENT_TYPES,
    SCHEMA_NAME,
    SCHEMA_VERSION,
    SESSION_KINDS,
    SOURCE_EXTERNAL,
    SOURCE_NATIVE,
    ActionEvent,
    ActionOutcome,
    BulkOutcome,
    DeviceStatus,
    GpsFix,
    PhotoSubmission,
    RawEvent,
    ResidentOutcome,
    SessionUpdate,
    SingularOutcome,
)
from field_events.decoder import (
    DecodeError,
    DecodeFailureDetail,
    decode_entries,
    decode_entry,
    infer_action_kind,
    parse_timestamp_ms,
    photo_content_hash,
)
from field_events.observability import NullLogger, NullMetrics, Observability, StdlibLogger
from field_events.validation import EventValidator, ValidationResult

__all__ = [
    "DEFAULT_TIMEZONE",
    "civil_date",
    "local_hour",
    "ms_until_next_midnight",
    "next_midnight_ms",
    "start_of_day_ms",
    "FieldEventsConfig",
    "validate_config",
    "EVENT_TYPES",
    "SCHEMA_NAME",
    "SCHEMA_VERSION",
    "SESSION_KINDS",
    "SOURCE_EXTERNAL",
    "SOURCE_NATIVE",
    "ActionEvent",
    "ActionOutcome",
    "BulkOutcome",
    "DeviceStatus",
    "GpsFix",
    "PhotoSubmission",
    "RawEvent",
    "ResidentOutcome",
    "SessionUpdate",
    "SingularOutcome",
    "DecodeError",
    "DecodeFailureDetail",
    "decode_entries",
    "decode_entry",
    "infer_action_kind",
    "parse_timestamp_ms",
    "photo_content_hash",
    "NullLogger",
    "NullMetrics",
    "Observability",
    "StdlibLogger",
    "EventValidator",
    "ValidationResult",
]
