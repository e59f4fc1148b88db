import io
import json
import unittest
from collections.abc import Mapping

from daily_store.contracts import APPLY_ACCEPTED, APPLY_REJECTED
from runtime.main import consume_feed
from runtime.wiring import build_runtime, load_runtime_config

# 2024-06-12T08:00:00Z, 10:00 in Berlin
BASE_MS = 1_718_179_200_000


class FakeClock:
    def __init__(self, now_ms: int) -> None:
        self.now = now_ms

    def now_ms(self) -> int:
        return self.now


class MemorySource:
    def __init__(self, entries: list[Mapping[str, object]]) -> None:
        self.entries = entries

    def fetch_day_log(self, civil_date: str, user_id: str | None = None) -> list[Mapping[str, object]]:
        return list(self.entries)


def _gps(offset_ms: int, lat: float = 52.5) -> dict:
    return {
        "type": "gps",
        "user_id": "u1",
        "username": "Anna",
        "timestamp": BASE_MS + offset_ms,
        "data": {"latitude": lat, "longitude": 13.4},
    }


class TestWiring(unittest.TestCase):
    def test_default_config_loads(self) -> None:
        config = load_runtime_config()
        self.assertEqual(config.field_events.reference_timezone, "Europe/Berlin")
        self.assertEqual(config.daily_store.cache.ttl_ms, 3_600_000)

    def test_submit_entry_decodes_and_applies(self) -> None:
        runtime = build_runtime(source=MemorySource([]), clock=FakeClock(BASE_MS))

        self.assertEqual([r.status for r in runtime.submit_entry(_gps(0))], [APPLY_ACCEPTED])
        self.assertEqual([r.status for r in runtime.submit_entry(_gps(1000, lat=0.0))], [APPLY_REJECTED])
        self.assertEqual(runtime.submit_entry({"type": "gps"}), [])
        self.assertEqual(runtime.aggregator.size().raw_events, 1)

    def test_reconstructor_reads_the_source(self) -> None:
        runtime = build_runtime(source=MemorySource([_gps(0), _gps(60_000)]), clock=FakeClock(BASE_MS))
        (record,) = runtime.reconstructor.reconstruct("2024-06-12")
        self.assertEqual(record.active_time_ms, 60_000)

    def test_start_and_stop(self) -> None:
        runtime = build_runtime(source=MemorySource([]), clock=FakeClock(BASE_MS))
        runtime.start()
        try:
            self.assertTrue(runtime.scheduler.running)
            self.assertEqual(runtime.aggregator.civil_date, "2024-06-12")
        finally:
            runtime.stop()
        self.assertFalse(runtime.scheduler.running)

    def test_consume_feed_skips_blank_and_invalid_lines(self) -> None:
        runtime = build_runtime(source=MemorySource([]), clock=FakeClock(BASE_MS))
        feed = io.StringIO("\n".join([json.dumps(_gps(0)), "", "not json", json.dumps(_gps(60_000))]))

        self.assertEqual(consume_feed(runtime, feed), 2)
        self.assertEqual(runtime.aggregator.get_user_daily_record("u1").active_time_ms, 60_000)


if __name__ == "__main__":
    unittest.main()
