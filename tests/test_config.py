"""Tests for configuration, validation helpers and logging setup."""

import logging

import pytest

from XCTSystem.utils.config import EncoderConfig
from XCTSystem.utils.logging import setup_logger
from XCTSystem.utils.validation import (
    InvalidConfigurationError,
    validate_config,
    validate_physical_parameter,
)


def test_defaults():
    config = EncoderConfig.get_default_config()
    assert config.spectrum_samples == 100
    assert config.reference_distance_mm == 1000.0
    assert config.flux_unit_conversion == 1.0e-2
    assert config.log_level == 'INFO'


@pytest.mark.parametrize('kwargs', [
    {'spectrum_samples': 0},
    {'reference_distance_mm': -1.0},
    {'flux_unit_conversion': 0.0},
    {'zero_tolerance': -1e-3},
    {'log_level': 'chatty'},
])
def test_invalid_values(kwargs):
    with pytest.raises(ValueError):
        EncoderConfig(**kwargs)


def test_log_level_is_normalized():
    config = EncoderConfig(log_level='debug')
    assert config.log_level == 'DEBUG'
    assert config.logging_level == logging.DEBUG


def test_yaml_round_trip(tmp_path):
    path = tmp_path / 'config' / 'encoder.yaml'
    config = EncoderConfig(spectrum_samples=250, log_file='run.log')
    config.to_yaml(str(path))
    assert EncoderConfig.from_yaml(str(path)) == config


def test_validate_config_rejects_mutated_config():
    config = EncoderConfig()
    validate_config(config)
    config.spectrum_samples = -5
    with pytest.raises(InvalidConfigurationError):
        validate_config(config)


def test_validate_physical_parameter(caplog):
    assert validate_physical_parameter('thickness', 1.0)
    assert not validate_physical_parameter('thickness', -1.0, 'Filter')
    assert not validate_physical_parameter('density', float('nan'))
    assert 'Filter: Invalid (negative) value for thickness' in caplog.text


def test_setup_logger_writes_file(tmp_path):
    log_file = tmp_path / 'logs' / 'xct.log'
    logger = setup_logger('xct_system_test', level=logging.DEBUG, log_file=str(log_file))
    logger.debug('debug message')
    for handler in logger.handlers:
        handler.flush()
    assert 'debug message' in log_file.read_text()
