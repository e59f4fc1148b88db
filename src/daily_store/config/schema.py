from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CacheConfig:
    ttl_ms: int = 60 * 60 * 1000
    max_entries: int | None = 64


@dataclass(frozen=True)
class SchedulerConfig:
    rollover_delay_ms: int = 0


@dataclass(frozen=True)
class DailyStoreConfig:
    cache: CacheConfig = field(default_factory=CacheConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)


def validate_config(config: DailyStoreConfig) -> None:
    _require_positive(config.cache.ttl_ms, "cache.ttl_ms")
    if config.cache.max_entries is not None:
        _require_positive(config.cache.max_entries, "cache.max_entries")
    if config.scheduler.rollover_delay_ms < 0:
        raise ValueError("scheduler.rollover_delay_ms must be >= 0")


def _require_positive(value: int, field_name: str) -> None:
    if value <= 0:
        raise ValueError(f"{field_name} must be > 0")
