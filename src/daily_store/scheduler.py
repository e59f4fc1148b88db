from __future__ import annotations

import threading
from typing import Protocol

from daily_store.clock import Clock
from daily_store.config import SchedulerConfig
from daily_store.observability import Observability, null_observability
from field_events.civil_day import DEFAULT_TIMEZONE, civil_date, ms_until_next_midnight


class RollOverTarget(Protocol):
    def roll_over(self, civil_date: str) -> bool: ...


class DayBoundaryScheduler:
    """Rolls the live aggregator over at each local midnight.

    A single daemon thread sleeps until the next midnight in the reference
    timezone, fires, and re-arms. The day is always derived from the clock,
    so a late wake-up never skips or repeats a day.
    """

    def __init__(
        self,
        *,
        aggregator: RollOverTarget,
        clock: Clock,
        reference_timezone: str = DEFAULT_TIMEZONE,
        config: SchedulerConfig | None = None,
        observability: Observability | None = None,
    ) -> None:
        self._aggregator = aggregator
        self._clock = clock
        self._reference_timezone = reference_timezone
        self._config = config or SchedulerConfig()
        self._observability = observability or null_observability()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def current_civil_date(self) -> str:
        return civil_date(self._clock.now_ms(), self._reference_timezone)

    def delay_ms(self) -> int:
        now_ms = self._clock.now_ms()
        return ms_until_next_midnight(now_ms, self._reference_timezone) + self._config.rollover_delay_ms

    def fire(self) -> str:
        day = self.current_civil_date()
        self._aggregator.roll_over(day)
        return day

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self.fire()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="daily-store-day-boundary", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=1)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop_event.is_set():
            delay_ms = self.delay_ms()
            self._observability.log_scheduler_armed(
                civil_date=self.current_civil_date(), delay_ms=delay_ms
            )
            if self._stop_event.wait(delay_ms / 1000):
                return
            self.fire()
