import pytest

from daily_store.config import CacheConfig, DailyStoreConfig, validate_config
from daily_store.config.loader import _parse_config, load_default_config


def test_default_config_matches_dataclass_defaults() -> None:
    assert load_default_config() == DailyStoreConfig()


def test_unbounded_cache_allowed() -> None:
    config = _parse_config(
        {"cache": {"ttl_ms": 1000, "max_entries": None}, "scheduler": {"rollover_delay_ms": 0}}
    )
    assert config.cache.max_entries is None


def test_unknown_keys_rejected() -> None:
    with pytest.raises(ValueError, match="unknown cache keys: size"):
        _parse_config(
            {"cache": {"ttl_ms": 1000, "size": 3}, "scheduler": {"rollover_delay_ms": 0}}
        )


def test_non_positive_ttl_rejected() -> None:
    with pytest.raises(ValueError, match="cache.ttl_ms"):
        validate_config(DailyStoreConfig(cache=CacheConfig(ttl_ms=0)))
