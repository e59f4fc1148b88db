from __future__ import annotations

from collections.abc import Iterable, Sequence

from activity_metrics.active_time import ActivePeriod
from activity_metrics.geo import haversine_m, speed_kmh
from field_events.contracts import GpsFix

DEFAULT_WALKING_SPEED_KMH = 8.0


def sort_fixes(fixes: Iterable[GpsFix]) -> list[GpsFix]:
    # stable: equal timestamps keep arrival order
    return sorted(fixes, key=lambda fix: fix.timestamp_ms)


def compute_distance_m(
    fixes: Iterable[GpsFix],
    periods: Sequence[ActivePeriod],
    *,
    walking_speed_kmh: float = DEFAULT_WALKING_SPEED_KMH,
) -> float:
    """Walked distance over native and external fixes.

    Each fix is measured against the last accepted fix of the same active
    period. A fix implying walking speed or faster is skipped, so a single
    jump from vehicle transport or positional drift adds nothing and does
    not split the walk around it. When the accepted fix itself was the jump,
    the next fix consistent with the skipped one takes over from there.
    Crossing into another period starts over.
    """

    total = 0.0
    anchor: GpsFix | None = None
    skipped: GpsFix | None = None
    for current in sort_fixes(fixes):
        if anchor is None or not _same_period(anchor.timestamp_ms, current.timestamp_ms, periods):
            anchor = current
            skipped = None
            continue
        step = _walking_step(anchor, current, walking_speed_kmh)
        if step is None and skipped is not None:
            step = _walking_step(skipped, current, walking_speed_kmh)
        if step is None:
            skipped = current
            continue
        total += step
        anchor = current
        skipped = None
    return total


def _walking_step(start: GpsFix, end: GpsFix, walking_speed_kmh: float) -> float | None:
    distance = haversine_m(start.latitude, start.longitude, end.latitude, end.longitude)
    speed = speed_kmh(distance, end.timestamp_ms - start.timestamp_ms)
    if speed is None or speed >= walking_speed_kmh:
        return None
    return distance


def _same_period(first_ms: int, second_ms: int, periods: Sequence[ActivePeriod]) -> bool:
    for period in periods:
        if period.contains(first_ms) and period.contains(second_ms):
            return True
    return False
