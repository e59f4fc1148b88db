from field_events.config.schema import FieldEventsConfig, validate_config

__all__ = [
    "FieldEventsConfig",
    "validate_config",
]
