from __future__ import annotations

import importlib
from collections.abc import Mapping
from importlib import resources

from daily_store.config.schema import (
    CacheConfig,
    DailyStoreConfig,
    SchedulerConfig,
    validate_config,
)

_ROOT_KEYS = {"cache", "scheduler"}
_CACHE_KEYS = {"ttl_ms", "max_entries"}
_SCHEDULER_KEYS = {"rollover_delay_ms"}


def load_default_config() -> DailyStoreConfig:
    payload = _load_default_payload()
    config = _parse_config(payload)
    validate_config(config)
    return config


def _load_default_payload() -> Mapping[str, object]:
    text = (
        resources.files("daily_store.config")
        .joinpath("default.yaml")
        .read_text(encoding="utf-8")
    )
    yaml = importlib.import_module("yaml")
    data = yaml.safe_load(text)
    if not isinstance(data, Mapping):
        raise ValueError("daily_store default config must be a mapping")
    return data


def _parse_config(payload: Mapping[str, object]) -> DailyStoreConfig:
    _reject_unknown(payload, _ROOT_KEYS, "daily_store config")
    return DailyStoreConfig(
        cache=_parse_cache(payload.get("cache")),
        scheduler=_parse_scheduler(payload.get("scheduler")),
    )


def _parse_cache(data: object) -> CacheConfig:
    if not isinstance(data, Mapping):
        raise ValueError("cache must be a mapping")
    _reject_unknown(data, _CACHE_KEYS, "cache")
    ttl_ms = data.get("ttl_ms")
    max_entries = data.get("max_entries")
    if isinstance(ttl_ms, bool) or not isinstance(ttl_ms, int):
        raise ValueError("cache.ttl_ms must be an int")
    if max_entries is not None and (isinstance(max_entries, bool) or not isinstance(max_entries, int)):
        raise ValueError("cache.max_entries must be an int")
    return CacheConfig(ttl_ms=ttl_ms, max_entries=max_entries)


def _parse_scheduler(data: object) -> SchedulerConfig:
    if not isinstance(data, Mapping):
        raise ValueError("scheduler must be a mapping")
    _reject_unknown(data, _SCHEDULER_KEYS, "scheduler")
    rollover_delay_ms = data.get("rollover_delay_ms")
    if isinstance(rollover_delay_ms, bool) or not isinstance(rollover_delay_ms, int):
        raise ValueError("scheduler.rollover_delay_ms must be an int")
    return SchedulerConfig(rollover_delay_ms=rollover_delay_ms)


def _reject_unknown(payload: Mapping[str, object], allowed: set[str], label: str) -> None:
    unknown = set(payload.keys()) - allowed
    if unknown:
        unknown_list = ", ".join(sorted(str(item) for item in unknown))
        raise ValueError(f"unknown {label} keys: {unknown_list}")
