import unittest

from field_events.civil_day import start_of_day_ms
from field_events.config import FieldEventsConfig
from field_events.contracts import ActionEvent, DeviceStatus, GpsFix
from field_events.validation import (
    REASON_FOREIGN_CIVIL_DAY,
    REASON_HOUSEKEEPING_ACTION,
    REASON_INVALID_COORDINATES,
    REASON_INVALID_TIMESTAMP,
    EventValidator,
)

DAY = "2024-06-12"
BASE_MS = start_of_day_ms(DAY) + 9 * 60 * 60 * 1000


def _fix(latitude: float, longitude: float, *, timestamp_ms: int = BASE_MS) -> GpsFix:
    return GpsFix(
        user_id="u1",
        username="Anna",
        timestamp_ms=timestamp_ms,
        latitude=latitude,
        longitude=longitude,
        accuracy_m=5.0,
    )


class TestEventValidator(unittest.TestCase):
    def setUp(self) -> None:
        self.validator = EventValidator()

    def test_accepts_plain_fix(self) -> None:
        result = self.validator.validate(_fix(52.52, 13.40), record_date=DAY)
        self.assertTrue(result.accepted)
        self.assertIsNone(result.reason)

    def test_rejects_event_from_previous_day(self) -> None:
        event = _fix(52.52, 13.40, timestamp_ms=start_of_day_ms(DAY) - 1)
        result = self.validator.validate(event, record_date=DAY)
        self.assertFalse(result.accepted)
        self.assertEqual(result.reason, REASON_FOREIGN_CIVIL_DAY)

    def test_unrepresentable_timestamp_is_rejected_not_raised(self) -> None:
        for timestamp_ms in (10**17, -(10**17)):
            with self.subTest(timestamp_ms=timestamp_ms):
                result = self.validator.validate(_fix(52.5, 13.4, timestamp_ms=timestamp_ms), record_date=DAY)
                self.assertFalse(result.accepted)
                self.assertEqual(result.reason, REASON_INVALID_TIMESTAMP)

    def test_rejects_near_zero_coordinates_even_when_accurate(self) -> None:
        for latitude, longitude in ((0.0005, 13.40), (52.52, -0.0009), (0.0, 0.0)):
            with self.subTest(latitude=latitude, longitude=longitude):
                result = self.validator.validate(_fix(latitude, longitude), record_date=DAY)
                self.assertFalse(result.accepted)
                self.assertEqual(result.reason, REASON_INVALID_COORDINATES)

    def test_rejects_out_of_range_and_non_finite(self) -> None:
        for latitude, longitude in ((91.0, 13.0), (52.0, 181.0), (float("nan"), 13.0)):
            with self.subTest(latitude=latitude, longitude=longitude):
                result = self.validator.validate(_fix(latitude, longitude), record_date=DAY)
                self.assertEqual(result.reason, REASON_INVALID_COORDINATES)

    def test_rejects_housekeeping_actions(self) -> None:
        for kind in ("gps_update", "external_app", "unknown"):
            with self.subTest(kind=kind):
                event = ActionEvent(
                    user_id="u1",
                    username="Anna",
                    timestamp_ms=BASE_MS,
                    action_kind=kind,
                    occurred_at_ms=BASE_MS,
                )
                result = self.validator.validate(event, record_date=DAY)
                self.assertEqual(result.reason, REASON_HOUSEKEEPING_ACTION)

    def test_non_gps_events_skip_coordinate_checks(self) -> None:
        event = DeviceStatus(user_id="u1", username="Anna", timestamp_ms=BASE_MS, battery_level=50)
        self.assertTrue(self.validator.validate(event, record_date=DAY).accepted)

    def test_configurable_timezone_and_housekeeping(self) -> None:
        validator = EventValidator(
            FieldEventsConfig(reference_timezone="UTC", housekeeping_action_kinds=("ping",))
        )
        # 22:30 UTC on the 11th is already the 12th in Berlin
        late = start_of_day_ms(DAY) - 30 * 60 * 1000 + 60 * 60 * 1000
        self.assertEqual(validator.reference_timezone, "UTC")
        self.assertTrue(validator.is_housekeeping("ping"))
        self.assertFalse(validator.is_housekeeping("gps_update"))
        self.assertFalse(validator.validate(_fix(52.5, 13.4, timestamp_ms=late), record_date=DAY).accepted)


if __name__ == "__main__":
    unittest.main()
