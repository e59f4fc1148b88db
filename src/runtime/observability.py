from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from activity_metrics.observability import Observability as MetricsObservability
from activity_metrics.observability import StdlibLogger as MetricsStdlibLogger
from activity_metrics.observability import set_observability as set_metrics_observability
from daily_store.observability import NullMetrics as StoreNullMetrics
from daily_store.observability import Observability as StoreObservability
from daily_store.observability import StdlibLogger as StoreStdlibLogger
from field_events.observability import NullMetrics as EventNullMetrics
from field_events.observability import Observability as EventObservability
from field_events.observability import StdlibLogger as EventStdlibLogger

LOG_FILENAME = "field-activity.log"


@dataclass(frozen=True)
class RuntimeObservability:
    logger: logging.Logger

    def log_runtime_started(self, *, civil_date: str, reference_timezone: str) -> None:
        self.logger.info(
            "runtime.started",
            extra={"fields": {"civil_date": civil_date, "reference_timezone": reference_timezone}},
        )

    def log_runtime_stopped(self, *, users: int, raw_events: int) -> None:
        self.logger.info(
            "runtime.stopped",
            extra={"fields": {"users": users, "raw_events": raw_events}},
        )

    def log_feed_line_invalid(self, *, line_number: int, error_detail: str) -> None:
        self.logger.warning(
            "runtime.feed_line_invalid",
            extra={"fields": {"line_number": line_number, "error_detail": error_detail}},
        )


@dataclass(frozen=True)
class ObservabilityBundle:
    runtime: RuntimeObservability
    field_events: EventObservability
    daily_store: StoreObservability


class _FieldsFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "fields"):
            record.fields = {}
        return True


def bootstrap_observability(*, log_dir: str) -> ObservabilityBundle:
    _setup_logging(log_dir=log_dir)
    runtime_logger = logging.getLogger("runtime")
    events_logger = logging.getLogger("field_events")
    metrics_logger = logging.getLogger("activity_metrics")
    store_logger = logging.getLogger("daily_store")

    set_metrics_observability(MetricsObservability(logger=MetricsStdlibLogger(metrics_logger)))

    return ObservabilityBundle(
        runtime=RuntimeObservability(logger=runtime_logger),
        field_events=EventObservability(
            logger=EventStdlibLogger(events_logger),
            metrics=EventNullMetrics(),
        ),
        daily_store=StoreObservability(
            logger=StoreStdlibLogger(store_logger),
            metrics=StoreNullMetrics(),
        ),
    )


def _setup_logging(*, log_dir: str) -> None:
    os.makedirs(log_dir, exist_ok=True)
    fields_filter = _FieldsFilter()
    handler = logging.FileHandler(os.path.join(log_dir, LOG_FILENAME))
    handler.addFilter(fields_filter)
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s | %(fields)s"
    )
    handler.setFormatter(formatter)
    logging.basicConfig(
        level=logging.INFO,
        handlers=[handler],
    )
    logging.getLogger("field_events").setLevel(logging.INFO)
    logging.getLogger("activity_metrics").setLevel(logging.INFO)
    logging.getLogger("daily_store").setLevel(logging.DEBUG)
    logging.getLogger("runtime").setLevel(logging.DEBUG)
