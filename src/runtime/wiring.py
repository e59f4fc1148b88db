from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from activity_metrics.config import MetricsConfig
from activity_metrics.config.loader import load_default_config as load_metrics_config
from daily_store.aggregator import LiveAggregator
from daily_store.clock import Clock, SystemClock
from daily_store.config import DailyStoreConfig
from daily_store.config.loader import load_default_config as load_daily_store_config
from daily_store.contracts import ApplyResult
from daily_store.reconstruction import BatchReconstructor, DayLogSource
from daily_store.scheduler import DayBoundaryScheduler
from field_events.config import FieldEventsConfig
from field_events.config.loader import load_default_config as load_field_events_config
from field_events.decoder import decode_entries
from field_events.validation import EventValidator
from runtime.observability import ObservabilityBundle


@dataclass(frozen=True)
class RuntimeConfig:
    field_events: FieldEventsConfig
    metrics: MetricsConfig
    daily_store: DailyStoreConfig


def load_runtime_config() -> RuntimeConfig:
    return RuntimeConfig(
        field_events=load_field_events_config(),
        metrics=load_metrics_config(),
        daily_store=load_daily_store_config(),
    )


@dataclass
class FieldRuntime:
    aggregator: LiveAggregator
    reconstructor: BatchReconstructor
    scheduler: DayBoundaryScheduler
    observability: ObservabilityBundle | None = None

    def submit_entry(self, entry: Mapping[str, Any]) -> list[ApplyResult]:
        """Decode one live log entry and feed every event it yields."""

        event_observability = (
            self.observability.field_events if self.observability is not None else None
        )
        results = []
        for event in decode_entries([entry], observability=event_observability):
            results.append(self.aggregator.submit_event(event.user_id, event.username, event))
        return results

    def start(self) -> None:
        self.scheduler.start()
        if self.observability is not None:
            self.observability.runtime.log_runtime_started(
                civil_date=self.aggregator.civil_date,
                reference_timezone=self.aggregator.reference_timezone,
            )

    def stop(self) -> None:
        self.scheduler.stop()
        if self.observability is not None:
            size = self.aggregator.size()
            self.observability.runtime.log_runtime_stopped(
                users=size.users, raw_events=size.raw_events
            )


def build_runtime(
    *,
    source: DayLogSource,
    clock: Clock | None = None,
    config: RuntimeConfig | None = None,
    observability: ObservabilityBundle | None = None,
) -> FieldRuntime:
    clock = clock or SystemClock()
    config = config or RuntimeConfig(
        field_events=FieldEventsConfig(),
        metrics=MetricsConfig(),
        daily_store=DailyStoreConfig(),
    )
    validator = EventValidator(config.field_events)
    store_observability = observability.daily_store if observability is not None else None
    aggregator = LiveAggregator(
        clock=clock,
        validator=validator,
        metrics_config=config.metrics,
        observability=store_observability,
    )
    reconstructor = BatchReconstructor(
        source=source,
        clock=clock,
        validator=validator,
        metrics_config=config.metrics,
        cache_config=config.daily_store.cache,
        observability=store_observability,
        event_observability=observability.field_events if observability is not None else None,
    )
    scheduler = DayBoundaryScheduler(
        aggregator=aggregator,
        clock=clock,
        reference_timezone=config.field_events.reference_timezone,
        config=config.daily_store.scheduler,
        observability=store_observability,
    )
    return FieldRuntime(
        aggregator=aggregator,
        reconstructor=reconstructor,
        scheduler=scheduler,
        observability=observability,
    )
