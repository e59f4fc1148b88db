import pytest

from field_events.config import FieldEventsConfig, validate_config
from field_events.config.loader import _parse_config, load_default_config


def test_default_config_matches_schema_defaults() -> None:
    config = load_default_config()
    assert config == FieldEventsConfig()
    assert config.reference_timezone == "Europe/Berlin"


def test_unknown_keys_are_rejected() -> None:
    payload = {
        "reference_timezone": "Europe/Berlin",
        "near_zero_degrees": 0.001,
        "housekeeping_action_kinds": ["gps_update"],
        "extra": True,
    }
    with pytest.raises(ValueError, match="unknown field_events config keys: extra"):
        _parse_config(payload)


def test_housekeeping_must_be_a_list() -> None:
    payload = {
        "reference_timezone": "Europe/Berlin",
        "near_zero_degrees": 0.001,
        "housekeeping_action_kinds": "gps_update",
    }
    with pytest.raises(ValueError):
        _parse_config(payload)


def test_invalid_timezone_fails_validation() -> None:
    with pytest.raises(ValueError):
        validate_config(FieldEventsConfig(reference_timezone="Nowhere/Special"))


def test_negative_near_zero_fails_validation() -> None:
    with pytest.raises(ValueError):
        validate_config(FieldEventsConfig(near_zero_degrees=-1.0))
