from __future__ import annotations

from collections.abc import Iterable, Mapping

from field_events.civil_day import DEFAULT_TIMEZONE, local_hour

DEFAULT_PEAK_WINDOW_MAX_HOURS = 4


def actions_per_hour(total_actions: int, active_time_ms: int) -> float:
    if active_time_ms <= 0:
        return 0.0
    return total_actions / (active_time_ms / 3_600_000.0)


def avg_time_per_address_ms(active_time_ms: int, scan_count: int) -> float:
    if active_time_ms <= 0 or scan_count <= 0:
        return 0.0
    return active_time_ms / scan_count


def conversion_rate(status_changes: Mapping[str, int], conversion_status: str) -> float:
    """Percentage of counted status changes that landed on ``conversion_status``."""

    total = sum(status_changes.values())
    if total <= 0:
        return 0.0
    return status_changes.get(conversion_status, 0) / total * 100.0


def hourly_activity(timestamps: Iterable[int], tz_name: str = DEFAULT_TIMEZONE) -> dict[int, int]:
    counts: dict[int, int] = {}
    for ts in timestamps:
        hour = local_hour(ts, tz_name)
        counts[hour] = counts.get(hour, 0) + 1
    return counts


def peak_window(
    timestamps: Iterable[int],
    tz_name: str = DEFAULT_TIMEZONE,
    *,
    max_hours: int = DEFAULT_PEAK_WINDOW_MAX_HOURS,
) -> str | None:
    """Busiest run of consecutive active hours, e.g. ``"13:00-15:00"``.

    Windows of 1 to ``max_hours`` hours are tried smallest first; a later
    window replaces the best only when strictly busier.
    """

    counts = hourly_activity(timestamps, tz_name)
    if not counts:
        return None

    hours = sorted(counts)
    best_total = 0
    best_start = hours[0]
    best_end = hours[0]
    for size in range(1, max_hours + 1):
        for index in range(len(hours) - size + 1):
            window = hours[index : index + size]
            if window[-1] - window[0] != size - 1:
                continue
            total = sum(counts[hour] for hour in window)
            if total > best_total:
                best_total = total
                best_start = window[0]
                best_end = window[-1]
    return f"{best_start:02d}:00-{best_end + 1:02d}:00"
