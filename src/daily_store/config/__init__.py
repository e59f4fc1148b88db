from daily_store.config.schema import (
    CacheConfig,
    DailyStoreConfig,
    SchedulerConfig,
    validate_config,
)

__all__ = ["CacheConfig", "DailyStoreConfig", "SchedulerConfig", "validate_config"]
