import unittest
from collections.abc import Mapping
from datetime import datetime, timezone

from field_events.contracts import (
    ActionEvent,
    BulkOutcome,
    DeviceStatus,
    GpsFix,
    PhotoSubmission,
    SessionUpdate,
    SingularOutcome,
)
from field_events.decoder import (
    DecodeError,
    decode_entries,
    decode_entry,
    infer_action_kind,
    parse_timestamp_ms,
    photo_content_hash,
)
from field_events.observability import NullMetrics, Observability

TS = int(datetime(2024, 6, 12, 8, 0, tzinfo=timezone.utc).timestamp() * 1000)


class FakeLogger:
    def __init__(self) -> None:
        self.calls: list[dict[str, object]] = []

    def log(self, level: int, message: str, fields: Mapping[str, object]) -> None:
        self.calls.append({"level": level, "message": message, "fields": dict(fields)})


def _entry(entry_type: str | None, data: dict, **extra: object) -> dict:
    entry: dict = {"user_id": "u1", "username": "Anna", "timestamp": TS, "data": data}
    if entry_type is not None:
        entry["type"] = entry_type
    entry.update(extra)
    return entry


class TestDecodeEntry(unittest.TestCase):
    def test_gps_entry_defaults_to_native(self) -> None:
        (event,) = decode_entry(_entry("gps", {"latitude": 52.52, "longitude": 13.4, "accuracy": 8}))
        self.assertIsInstance(event, GpsFix)
        assert isinstance(event, GpsFix)
        self.assertEqual(event.source, "native")
        self.assertEqual(event.accuracy_m, 8.0)
        self.assertEqual(event.timestamp_ms, TS)

    def test_followmee_source_is_external_and_data_timestamp_wins(self) -> None:
        (event,) = decode_entry(
            _entry(
                "gps",
                {"latitude": 52.52, "longitude": 13.4, "source": "followmee", "timestamp": TS - 5000},
            )
        )
        assert isinstance(event, GpsFix)
        self.assertEqual(event.source, "external")
        self.assertEqual(event.timestamp_ms, TS - 5000)

    def test_action_with_coordinates_is_recovered_as_external_fix(self) -> None:
        (event,) = decode_entry(
            _entry("action", {"action": "external_app", "latitude": 52.5, "longitude": 13.4})
        )
        self.assertIsInstance(event, GpsFix)
        assert isinstance(event, GpsFix)
        self.assertFalse(event.is_native)

    def test_external_tracking_endpoint_is_a_fix(self) -> None:
        (event,) = decode_entry(
            _entry(
                "action",
                {"latitude": 52.5, "longitude": 13.4},
                endpoint="/api/external-tracking/location",
            )
        )
        self.assertIsInstance(event, GpsFix)

    def test_singular_action_outcome(self) -> None:
        (event,) = decode_entry(
            _entry(
                "action",
                {
                    "action": "status_change",
                    "residentStatus": "interessiert",
                    "previousStatus": "nicht_angetroffen",
                    "residentName": "Meyer",
                    "datasetId": "d1",
                },
            )
        )
        assert isinstance(event, ActionEvent)
        self.assertEqual(event.action_kind, "status_change")
        self.assertEqual(event.occurred_at_ms, TS)
        self.assertEqual(event.dataset_id, "d1")
        self.assertEqual(
            event.outcome,
            SingularOutcome(
                status="interessiert", previous_status="nicht_angetroffen", resident_id="Meyer"
            ),
        )

    def test_residents_list_becomes_bulk_outcome(self) -> None:
        (event,) = decode_entry(
            _entry(
                "action",
                {
                    "residents": [
                        {"name": "Meyer", "status": "interessiert"},
                        {"name": "Schulz"},
                        {"status": "nicht_interessiert"},
                    ]
                },
                endpoint="/api/address-datasets/d1/bulk-residents",
                method="put",
            )
        )
        assert isinstance(event, ActionEvent)
        self.assertEqual(event.action_kind, "bulk_residents_update")
        self.assertTrue(event.is_bulk)
        assert isinstance(event.outcome, BulkOutcome)
        self.assertEqual(
            [(item.resident_id, item.status) for item in event.outcome.residents],
            [("Meyer", "interessiert"), ("Schulz", None), ("#2", "nicht_interessiert")],
        )

    def test_action_without_kind_yields_nothing(self) -> None:
        self.assertEqual(decode_entry(_entry("action", {"foo": "bar"})), ())

    def test_session_entry_with_embedded_actions(self) -> None:
        events = decode_entry(
            _entry(
                "session",
                {
                    "session": {
                        "kind": "session_update",
                        "sessionDuration": 3_600_000,
                        "idleTime": 600_000,
                        "actions": [
                            {"action": "scan", "timestamp": TS - 1000},
                            {"action": "navigate", "timestamp": TS - 500},
                        ],
                    }
                },
            )
        )
        self.assertEqual(len(events), 3)
        update = events[0]
        assert isinstance(update, SessionUpdate)
        self.assertEqual(update.session_duration_ms, 3_600_000)
        self.assertEqual(update.idle_time_ms, 600_000)
        self.assertEqual(
            [(event.action_kind, event.occurred_at_ms) for event in events[1:] if isinstance(event, ActionEvent)],
            [("scan", TS - 1000), ("navigate", TS - 500)],
        )

    def test_device_entry(self) -> None:
        (event,) = decode_entry(
            _entry("device", {"batteryLevel": 15, "isCharging": False, "connectionType": "offline"})
        )
        self.assertEqual(
            event,
            DeviceStatus(
                user_id="u1",
                username="Anna",
                timestamp_ms=TS,
                battery_level=15.0,
                is_charging=False,
                connection_type="offline",
            ),
        )

    def test_photo_hash_ignores_address(self) -> None:
        names = {"newProspects": ["Meyer"], "existingCustomers": ["Schulz"]}
        (first,) = decode_entry(_entry("photo", {**names, "address": "Hauptstr. 1"}))
        (second,) = decode_entry(_entry("photo", {**names, "address": "Hauptstrasse 1"}))
        assert isinstance(first, PhotoSubmission)
        assert isinstance(second, PhotoSubmission)
        self.assertEqual(first.content_hash, second.content_hash)
        self.assertEqual(first.content_hash, photo_content_hash(["Meyer"], ["Schulz"]))

    def test_missing_user_is_missing_required_field(self) -> None:
        with self.assertRaises(DecodeError) as ctx:
            decode_entry({"timestamp": TS, "type": "gps", "data": {}})
        self.assertEqual(ctx.exception.detail.error_kind, "missing_required_field")

    def test_unsupported_type(self) -> None:
        with self.assertRaises(DecodeError) as ctx:
            decode_entry(_entry("telemetry", {}))
        self.assertEqual(ctx.exception.detail.error_kind, "unsupported_type")

    def test_non_finite_session_counters_are_parse_errors(self) -> None:
        for value in ("nan", "inf", float("-inf")):
            with self.subTest(value=value):
                with self.assertRaises(DecodeError) as ctx:
                    decode_entry(
                        _entry("session", {"session": {"kind": "session_update", "sessionDuration": value}})
                    )
                self.assertEqual(ctx.exception.detail.error_kind, "parse_error")

    def test_non_finite_coordinates_are_parse_errors(self) -> None:
        with self.assertRaises(DecodeError):
            decode_entry(_entry("gps", {"latitude": "nan", "longitude": 13.4}))

    def test_type_is_inferred_from_action(self) -> None:
        (event,) = decode_entry(_entry(None, {"action": "gps_update", "latitude": 52.5, "longitude": 13.4}))
        self.assertIsInstance(event, GpsFix)


class TestTimestamps(unittest.TestCase):
    def test_accepts_epoch_and_iso(self) -> None:
        self.assertEqual(parse_timestamp_ms(TS, "timestamp"), TS)
        self.assertEqual(parse_timestamp_ms(str(TS), "timestamp"), TS)
        self.assertEqual(parse_timestamp_ms("2024-06-12T08:00:00Z", "timestamp"), TS)
        self.assertEqual(parse_timestamp_ms("2024-06-12T10:00:00+02:00", "timestamp"), TS)

    def test_naive_iso_is_utc(self) -> None:
        self.assertEqual(parse_timestamp_ms("2024-06-12T08:00:00", "timestamp"), TS)

    def test_rejects_booleans_and_garbage(self) -> None:
        for value in (True, "yesterday", None):
            with self.subTest(value=value):
                with self.assertRaises(DecodeError):
                    parse_timestamp_ms(value, "timestamp")

    def test_rejects_out_of_range_epochs(self) -> None:
        for value in (10**17, -1, str(10**17), "0001-01-01T00:00:00+01:00"):
            with self.subTest(value=value):
                with self.assertRaises(DecodeError) as ctx:
                    parse_timestamp_ms(value, "timestamp")
                self.assertEqual(ctx.exception.detail.error_kind, "parse_error")

    def test_out_of_range_entry_timestamp_fails_decoding(self) -> None:
        entry = _entry("gps", {"latitude": 52.5, "longitude": 13.4})
        entry["timestamp"] = 10**17
        with self.assertRaises(DecodeError):
            decode_entry(entry)


class TestInferActionKind(unittest.TestCase):
    def test_endpoint_mapping(self) -> None:
        self.assertEqual(infer_action_kind("/api/ocr", "POST"), "scan")
        self.assertEqual(infer_action_kind("/api/ocr-correct", "POST"), "bulk_residents_update")
        self.assertEqual(infer_action_kind("/api/address-datasets", "POST"), "dataset_create")
        self.assertEqual(infer_action_kind("/api/address-datasets/d1/residents", "PUT"), "resident_update")
        self.assertEqual(infer_action_kind("/api/address-datasets/d1", "DELETE"), "resident_delete")
        self.assertIsNone(infer_action_kind("/api/external-tracking/location", "POST"))
        self.assertIsNone(infer_action_kind("/api/health", "GET"))


class TestDecodeEntries(unittest.TestCase):
    def test_drops_undecodable_entries_and_logs(self) -> None:
        logger = FakeLogger()
        observability = Observability(logger=logger, metrics=NullMetrics())
        entries = [
            _entry("gps", {"latitude": 52.5, "longitude": 13.4}),
            {"timestamp": TS, "type": "gps"},
            _entry("action", {"latitude": 52.5, "longitude": 13.4}),
        ]

        events = decode_entries(entries, observability=observability)

        self.assertEqual(len(events), 2)
        messages = [call["message"] for call in logger.calls]
        self.assertEqual(
            messages,
            ["field_events.decode_failure", "field_events.misrouted_fix_recovered"],
        )
        self.assertEqual(logger.calls[0]["fields"]["entry_index"], 1)

    def test_unparseable_numbers_never_escape(self) -> None:
        logger = FakeLogger()
        observability = Observability(logger=logger, metrics=NullMetrics())
        far_future = _entry("gps", {"latitude": 52.5, "longitude": 13.4})
        far_future["timestamp"] = 10**17
        entries = [
            _entry("session", {"session": {"kind": "session_update", "sessionDuration": "nan"}}),
            far_future,
            _entry("device", {"batteryLevel": 80}),
        ]

        events = decode_entries(entries, observability=observability)

        self.assertEqual([type(event) for event in events], [DeviceStatus])
        self.assertEqual(
            [(call["message"], call["fields"]["entry_index"]) for call in logger.calls],
            [("field_events.decode_failure", 0), ("field_events.decode_failure", 1)],
        )


if __name__ == "__main__":
    unittest.main()
