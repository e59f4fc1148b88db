from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from field_events.contracts import GpsFix

ACTIVE_TIME_UNKNOWN = -1
DEFAULT_BREAK_THRESHOLD_MS = 20 * 60 * 1000


@dataclass(frozen=True)
class BreakPeriod:
    start_ms: int
    end_ms: int

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms


@dataclass(frozen=True)
class ActivePeriod:
    start_ms: int
    end_ms: int

    def contains(self, timestamp_ms: int) -> bool:
        return self.start_ms <= timestamp_ms <= self.end_ms


@dataclass(frozen=True)
class ActiveTime:
    active_time_ms: int
    breaks: tuple[BreakPeriod, ...]
    periods: tuple[ActivePeriod, ...]

    @property
    def known(self) -> bool:
        return self.active_time_ms != ACTIVE_TIME_UNKNOWN

    @property
    def total_break_ms(self) -> int:
        return sum(item.duration_ms for item in self.breaks)


def native_timestamps(fixes: Iterable[GpsFix]) -> list[int]:
    return sorted(fix.timestamp_ms for fix in fixes if fix.is_native)


def compute_active_time(
    fixes: Iterable[GpsFix],
    *,
    break_threshold_ms: int = DEFAULT_BREAK_THRESHOLD_MS,
) -> ActiveTime:
    """Active time from native fixes: first-to-last span minus breaks.

    Only native fixes bound sessions; external fixes are ignored here. Fewer
    than two native fixes yield the ``-1`` sentinel and no periods.
    """

    timestamps = native_timestamps(fixes)
    if len(timestamps) < 2:
        return ActiveTime(active_time_ms=ACTIVE_TIME_UNKNOWN, breaks=(), periods=())

    breaks = find_breaks(timestamps, break_threshold_ms=break_threshold_ms)
    span = timestamps[-1] - timestamps[0]
    active = span - sum(item.duration_ms for item in breaks)
    return ActiveTime(
        active_time_ms=active,
        breaks=breaks,
        periods=active_periods(timestamps[0], timestamps[-1], breaks),
    )


def find_breaks(
    sorted_timestamps: Sequence[int], *, break_threshold_ms: int = DEFAULT_BREAK_THRESHOLD_MS
) -> tuple[BreakPeriod, ...]:
    breaks: list[BreakPeriod] = []
    for previous, current in zip(sorted_timestamps, sorted_timestamps[1:]):
        if current - previous >= break_threshold_ms:
            breaks.append(BreakPeriod(start_ms=previous, end_ms=current))
    return tuple(breaks)


def active_periods(
    first_ms: int, last_ms: int, breaks: Sequence[BreakPeriod]
) -> tuple[ActivePeriod, ...]:
    periods: list[ActivePeriod] = []
    cursor = first_ms
    for item in breaks:
        periods.append(ActivePeriod(start_ms=cursor, end_ms=item.start_ms))
        cursor = item.end_ms
    periods.append(ActivePeriod(start_ms=cursor, end_ms=last_ms))
    return tuple(periods)


def longest_breaks(breaks: Sequence[BreakPeriod], *, limit: int = 3) -> tuple[BreakPeriod, ...]:
    ranked = sorted(breaks, key=lambda item: (-item.duration_ms, item.start_ms))
    return tuple(ranked[:limit])
