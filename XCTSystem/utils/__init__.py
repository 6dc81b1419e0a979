"""Utility modules for configuration, logging, and validation."""

from .config import EncoderConfig
from .logging import setup_logger, get_logger
from .validation import (
    ValidationError,
    TypeRegistrationError,
    InvalidOperandError,
    IncompleteRecordError,
    MissingModelError,
    SystemNotSimpleError,
    ProjectorNotConfiguredError,
    InvalidConfigurationError,
    validate_physical_parameter,
    validate_config,
)

__all__ = [
    'EncoderConfig',
    'setup_logger',
    'get_logger',
    'ValidationError',
    'TypeRegistrationError',
    'InvalidOperandError',
    'IncompleteRecordError',
    'MissingModelError',
    'SystemNotSimpleError',
    'ProjectorNotConfiguredError',
    'InvalidConfigurationError',
    'validate_physical_parameter',
    'validate_config',
]
