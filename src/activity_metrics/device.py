from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from field_events.contracts import DeviceStatus

DEFAULT_LOW_BATTERY_PERCENT = 20.0
OFFLINE = "offline"


@dataclass(frozen=True)
class DeviceSummary:
    avg_battery_level: float | None
    low_battery_events: int
    offline_events: int


def summarize_device(
    statuses: Iterable[DeviceStatus],
    *,
    low_battery_percent: float = DEFAULT_LOW_BATTERY_PERCENT,
) -> DeviceSummary:
    levels: list[float] = []
    low_battery = 0
    offline = 0
    for status in statuses:
        if status.battery_level is not None:
            levels.append(status.battery_level)
            if status.battery_level < low_battery_percent and not status.is_charging:
                low_battery += 1
        if status.connection_type == OFFLINE or status.effective_type == OFFLINE:
            offline += 1

    average = sum(levels) / len(levels) if levels else None
    return DeviceSummary(
        avg_battery_level=average,
        low_battery_events=low_battery,
        offline_events=offline,
    )
