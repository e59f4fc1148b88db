"""Civil-day arithmetic in a fixed reference timezone."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_TIMEZONE = "Europe/Berlin"


@lru_cache(maxsize=16)
def tzinfo_from_name(tz_name: str) -> ZoneInfo:
    """Resolve an IANA timezone name.

    Raises:
        ValueError: If the name is unknown on this system.
    """

    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"invalid timezone: {tz_name!r}") from exc


def local_datetime(epoch_ms: int, tz_name: str = DEFAULT_TIMEZONE) -> datetime:
    return datetime.fromtimestamp(epoch_ms / 1000.0, tz=tzinfo_from_name(tz_name))


def civil_date(epoch_ms: int, tz_name: str = DEFAULT_TIMEZONE) -> str:
    """Return the ``YYYY-MM-DD`` civil day containing ``epoch_ms``."""

    return local_datetime(epoch_ms, tz_name).date().isoformat()


def local_hour(epoch_ms: int, tz_name: str = DEFAULT_TIMEZONE) -> int:
    return local_datetime(epoch_ms, tz_name).hour


def start_of_day_ms(day: str, tz_name: str = DEFAULT_TIMEZONE) -> int:
    parsed = date.fromisoformat(day)
    midnight = datetime.combine(parsed, time.min, tzinfo=tzinfo_from_name(tz_name))
    return int(midnight.timestamp() * 1000)


def next_midnight_ms(now_ms: int, tz_name: str = DEFAULT_TIMEZONE) -> int:
    """Epoch ms of the first local midnight strictly after ``now_ms``."""

    today = local_datetime(now_ms, tz_name).date()
    return start_of_day_ms((today + timedelta(days=1)).isoformat(), tz_name)


def ms_until_next_midnight(now_ms: int, tz_name: str = DEFAULT_TIMEZONE) -> int:
    return next_midnight_ms(now_ms, tz_name) - now_ms


def validate_civil_date(day: str) -> str:
    try:
        return date.fromisoformat(day).isoformat()
    except ValueError as exc:
        raise ValueError(f"civil date must be YYYY-MM-DD: {day!r}") from exc
