import unittest

from activity_metrics.active_time import ActivePeriod, compute_active_time
from activity_metrics.distance import compute_distance_m
from activity_metrics.geo import haversine_m, speed_kmh
from field_events.contracts import GpsFix

SECOND_MS = 1000
BASE_MS = 1_718_172_000_000
# one thousandth of a degree of latitude
STEP_DEG = 0.001
STEP_M = 111.19


def _fix(
    offset_s: int, latitude: float, *, longitude: float = 13.40, source: str = "native"
) -> GpsFix:
    return GpsFix(
        user_id="u1",
        username="Anna",
        timestamp_ms=BASE_MS + offset_s * SECOND_MS,
        latitude=latitude,
        longitude=longitude,
        source=source,  # type: ignore[arg-type]
    )


class TestGeo(unittest.TestCase):
    def test_haversine_latitude_step(self) -> None:
        self.assertAlmostEqual(haversine_m(52.0, 13.4, 52.0 + STEP_DEG, 13.4), STEP_M, delta=0.1)

    def test_speed_requires_elapsed_time(self) -> None:
        self.assertIsNone(speed_kmh(100.0, 0))
        self.assertAlmostEqual(speed_kmh(1000.0, 3_600_000) or 0.0, 1.0)


class TestDistance(unittest.TestCase):
    def test_walking_pace_is_counted(self) -> None:
        fixes = [_fix(0, 52.500), _fix(60, 52.501), _fix(120, 52.502)]
        periods = compute_active_time(fixes).periods
        self.assertAlmostEqual(compute_distance_m(fixes, periods), 2 * STEP_M, delta=0.5)

    def test_sustained_vehicle_speed_is_dropped(self) -> None:
        # 1.1 km per minute is ~67 km/h
        fixes = [_fix(0, 52.500), _fix(60, 52.510), _fix(120, 52.520), _fix(180, 52.530)]
        periods = compute_active_time(fixes).periods
        self.assertEqual(compute_distance_m(fixes, periods), 0.0)

    def test_single_jump_between_walking_fixes_adds_nothing(self) -> None:
        walk = [_fix(0, 52.500), _fix(120, 52.501)]
        jump = _fix(60, 52.510, source="external")
        periods = compute_active_time(walk).periods

        self.assertAlmostEqual(compute_distance_m(walk, periods), STEP_M, delta=0.5)
        self.assertAlmostEqual(compute_distance_m([*walk, jump], periods), STEP_M, delta=0.5)

    def test_jump_on_the_first_fix_is_recovered(self) -> None:
        fixes = [
            _fix(0, 52.510, source="external"),
            _fix(60, 52.500),
            _fix(120, 52.501),
            _fix(180, 52.502),
        ]
        periods = (ActivePeriod(BASE_MS, BASE_MS + 180 * SECOND_MS),)
        self.assertAlmostEqual(compute_distance_m(fixes, periods), 2 * STEP_M, delta=0.5)

    def test_distance_never_shrinks_as_fixes_arrive(self) -> None:
        arrivals = [
            _fix(0, 52.500),
            _fix(120, 52.501),
            _fix(60, 52.510, source="external"),
            _fix(180, 52.502),
            _fix(90, 52.5005, longitude=13.4003, source="external"),
            _fix(240, 52.503),
        ]
        totals = []
        for count in range(1, len(arrivals) + 1):
            received = arrivals[:count]
            totals.append(compute_distance_m(received, compute_active_time(received).periods))

        self.assertEqual(totals, sorted(totals))
        self.assertGreater(totals[-1], 3 * STEP_M)

    def test_pairs_spanning_a_break_are_excluded(self) -> None:
        fixes = [_fix(0, 52.500), _fix(60, 52.501), _fix(60 + 30 * 60, 52.502), _fix(60 + 31 * 60, 52.503)]
        periods = compute_active_time(fixes).periods
        self.assertEqual(len(periods), 2)
        self.assertAlmostEqual(compute_distance_m(fixes, periods), 2 * STEP_M, delta=0.5)

    def test_external_fixes_contribute_inside_active_periods(self) -> None:
        fixes = [_fix(0, 52.500), _fix(60, 52.501, source="external"), _fix(120, 52.502)]
        periods = compute_active_time(fixes).periods
        self.assertAlmostEqual(compute_distance_m(fixes, periods), 2 * STEP_M, delta=0.5)

    def test_external_fix_outside_periods_is_ignored(self) -> None:
        fixes = [_fix(0, 52.500), _fix(60, 52.501), _fix(120, 52.502, source="external")]
        periods = compute_active_time(fixes).periods
        self.assertAlmostEqual(compute_distance_m(fixes, periods), STEP_M, delta=0.5)

    def test_zero_elapsed_fix_is_skipped(self) -> None:
        fixes = [_fix(0, 52.500), _fix(0, 52.501), _fix(60, 52.501)]
        periods = (ActivePeriod(BASE_MS, BASE_MS + 60 * SECOND_MS),)
        self.assertAlmostEqual(compute_distance_m(fixes, periods), STEP_M, delta=0.5)

    def test_no_periods_means_no_distance(self) -> None:
        fixes = [_fix(0, 52.500), _fix(60, 52.501)]
        self.assertEqual(compute_distance_m(fixes, ()), 0.0)


if __name__ == "__main__":
    unittest.main()
