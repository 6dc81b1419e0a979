"""Error types and validation helpers shared across the package."""

import math
from pathlib import Path

from .config import EncoderConfig
from .logging import get_logger


logger = get_logger()


class ValidationError(Exception):
    """Base exception for validation errors."""
    pass


class TypeRegistrationError(ValidationError):
    """Raised when a type-id is registered twice within the same family."""
    pass


class InvalidOperandError(ValidationError):
    """Raised when a data model operation is built with a missing operand."""
    pass


class MissingModelError(ValidationError):
    """Raised when a physical computation needs a model that is not set."""
    pass


class SystemNotSimpleError(ValidationError):
    """Raised when a system does not have exactly one source, detector and gantry."""
    pass


class ProjectorNotConfiguredError(ValidationError):
    """Raised when a projector is used before being configured."""
    pass


class IncompleteRecordError(ValidationError):
    """Raised while reading an exchange record whose nested records cannot be restored."""
    pass


class InvalidConfigurationError(ValidationError):
    """Raised when configuration parameters are invalid."""
    pass


def validate_physical_parameter(name: str, value: float, owner: str = '') -> bool:
    """Warn about a physically meaningless (negative or non-finite) parameter.
    
    The value is never rejected; the caller proceeds with it.
    
    Args:
        name: Parameter name used in the warning
        value: Parameter value
        owner: Optional name of the object holding the parameter
        
    Returns:
        True if the value is plausible, False if a warning was emitted
    """
    if value is None:
        return True
    
    prefix = f"{owner}: " if owner else ""
    if not math.isfinite(value):
        logger.warning(f"{prefix}Non-finite value for {name}: {value}")
        return False
    if value < 0.0:
        logger.warning(f"{prefix}Invalid (negative) value for {name}: {value}")
        return False
    return True


def validate_config(config: EncoderConfig) -> None:
    """Validate encoder configuration.
    
    Args:
        config: Encoder configuration
        
    Raises:
        InvalidConfigurationError: If configuration is invalid
    """
    try:
        # Range checks happen in __post_init__; re-run them for mutated instances
        config._validate()
        
        if config.log_file:
            log_dir = Path(config.log_file).parent
            if not log_dir.exists():
                logger.warning(f"Log directory does not exist yet: {log_dir}")
        
        logger.debug("Configuration validation passed")
        
    except Exception as e:
        if isinstance(e, InvalidConfigurationError):
            raise
        raise InvalidConfigurationError(f"Configuration validation failed: {str(e)}")
