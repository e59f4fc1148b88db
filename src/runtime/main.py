from __future__ import annotations

import json
import sys
from typing import TextIO

from daily_store.serialization import dumps_record
from runtime.log_source import JsonlDayLogSource
from runtime.observability import bootstrap_observability
from runtime.wiring import FieldRuntime, build_runtime, load_runtime_config

LOG_DIR = "logs"
DAY_LOG_DIR = "data/day_logs"


def main() -> None:
    observability = bootstrap_observability(log_dir=LOG_DIR)
    runtime = build_runtime(
        source=JsonlDayLogSource(DAY_LOG_DIR),
        config=load_runtime_config(),
        observability=observability,
    )
    runtime.start()
    try:
        consume_feed(runtime, sys.stdin)
    finally:
        runtime.stop()
    for record in runtime.aggregator.get_all_daily_records():
        sys.stdout.write(dumps_record(record))
        sys.stdout.write("\n")


def consume_feed(runtime: FieldRuntime, feed: TextIO) -> int:
    """Feed live JSON-lines entries into the aggregator; returns entries read."""

    count = 0
    for line_number, line in enumerate(feed, start=1):
        text = line.strip()
        if not text:
            continue
        try:
            entry = json.loads(text)
        except json.JSONDecodeError as exc:
            if runtime.observability is not None:
                runtime.observability.runtime.log_feed_line_invalid(
                    line_number=line_number, error_detail=str(exc)
                )
            continue
        runtime.submit_entry(entry)
        count += 1
    return count


if __name__ == "__main__":
    main()
