from __future__ import annotations

import argparse
import json
from pathlib import Path

from daily_store.clock import SystemClock
from daily_store.contracts import DailyUserRecord
from daily_store.reconstruction import BatchReconstructor
from daily_store.serialization import dumps_record
from field_events.civil_day import validate_civil_date
from field_events.validation import EventValidator
from runtime.log_source import JsonlDayLogSource
from runtime.observability import bootstrap_observability
from runtime.wiring import load_runtime_config

_RECORDS_FILENAME = "daily_records.jsonl"


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconstruct day records from a JSONL day log.")
    parser.add_argument(
        "--log-path",
        type=Path,
        required=True,
        help="JSONL day log file, or a directory of YYYY-MM-DD.jsonl files.",
    )
    parser.add_argument("--date", required=True, help="Civil day to reconstruct (YYYY-MM-DD).")
    parser.add_argument("--user-id", default=None, help="Restrict the replay to one user.")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory to write daily_records.jsonl (default: print records to stdout).",
    )
    parser.add_argument("--log-dir", default="logs", help="Directory for the replay log file.")
    return parser.parse_args()


def _write_jsonl(path: Path, records: tuple[DailyUserRecord, ...]) -> None:
    with path.open("w", encoding="utf-8") as handle:
        for record in records:
            handle.write(dumps_record(record))
            handle.write("\n")


def main() -> None:
    args = _parse_args()
    civil_date = validate_civil_date(args.date)
    observability = bootstrap_observability(log_dir=args.log_dir)
    config = load_runtime_config()
    reconstructor = BatchReconstructor(
        source=JsonlDayLogSource(args.log_path),
        clock=SystemClock(),
        validator=EventValidator(config.field_events),
        metrics_config=config.metrics,
        cache_config=config.daily_store.cache,
        observability=observability.daily_store,
        event_observability=observability.field_events,
    )
    records = reconstructor.reconstruct(civil_date, args.user_id)
    if args.output_dir is None:
        for record in records:
            print(dumps_record(record))
        return

    args.output_dir.mkdir(parents=True, exist_ok=True)
    _write_jsonl(args.output_dir / _RECORDS_FILENAME, records)
    print(
        json.dumps(
            {
                "civil_date": civil_date,
                "user_id": args.user_id,
                "records": len(records),
                "output_dir": str(args.output_dir),
            },
            separators=(",", ":"),
        )
    )


if __name__ == "__main__":
    main()
