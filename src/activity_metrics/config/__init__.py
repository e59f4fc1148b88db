from activity_metrics.config.schema import (
    DeviceConfig,
    KpiConfig,
    MetricsConfig,
    MovementConfig,
    SessionConfig,
    validate_config,
)

__all__ = [
    "DeviceConfig",
    "KpiConfig",
    "MetricsConfig",
    "MovementConfig",
    "SessionConfig",
    "validate_config",
]
