"""daily_store live aggregation, batch reconstruction and day rollover."""

from daily_store.aggregator import AggregatorSize, LiveAggregator
from daily_store.clock import Clock, SystemClock
from daily_store.config import CacheConfig, DailyStoreConfig, SchedulerConfig, validate_config
from daily_store.contracts import (
    SCHEMA_NAME,
    SCHEMA_VERSION,
    ApplyResult,
    DailyUserRecord,
    record_from_metrics,
    sort_records,
)
from daily_store.dedup import DedupGuards
from daily_store.observability import NullLogger, NullMetrics, Observability, StdlibLogger
from daily_store.reconstruction import BatchReconstructor, DayLogSource, LogFetchError
from daily_store.scheduler import DayBoundaryScheduler
from daily_store.serialization import dumps_record, dumps_records, record_to_dict
from daily_store.working_set import UserDayState

__all__ = [
    "AggregatorSize",
    "LiveAggregator",
    "Clock",
    "SystemClock",
    "CacheConfig",
    "DailyStoreConfig",
    "SchedulerConfig",
    "validate_config",
    "SCHEMA_NAME",
    "SCHEMA_VERSION",
    "ApplyResult",
    "DailyUserRecord",
    "record_from_metrics",
    "sort_records",
    "DedupGuards",
    "NullLogger",
    "NullMetrics",
    "Observability",
    "StdlibLogger",
    "BatchReconstructor",
    "DayLogSource",
    "LogFetchError",
    "DayBoundaryScheduler",
    "dumps_record",
    "dumps_records",
    "record_to_dict",
    "UserDayState",
]
