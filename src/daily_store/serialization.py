from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

from daily_store.contracts import SCHEMA_NAME, SCHEMA_VERSION, DailyUserRecord


def record_to_dict(record: DailyUserRecord) -> dict[str, Any]:
    data = asdict(record)
    data["schema"] = SCHEMA_NAME
    data["schema_version"] = SCHEMA_VERSION
    return data


def dumps_record(record: DailyUserRecord) -> str:
    """Stable JSON: sorted keys and compact separators, so equal records are equal bytes."""

    return json.dumps(record_to_dict(record), sort_keys=True, separators=(",", ":"))


def dumps_records(records: tuple[DailyUserRecord, ...] | list[DailyUserRecord]) -> str:
    return "\n".join(dumps_record(record) for record in records)
