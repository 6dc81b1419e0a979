"""Configuration management for radiation encoding."""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional
import logging
import yaml

from ..physics.constants import (
    DEFAULT_SPECTRUM_SAMPLES,
    FLUX_UNIT_CONVERSION,
    REFERENCE_DISTANCE_MM,
    ZERO_TOLERANCE,
)


_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


@dataclass
class EncoderConfig:
    """Configuration for radiation encoding of a CT system.
    
    Attributes:
        spectrum_samples: Number of energy bins used when a spectrum is sampled
            without an explicit sample count
        reference_distance_mm: Distance at which source flux values are specified
        flux_unit_conversion: Factor converting flux per cm² into flux per mm²
        zero_tolerance: Threshold below which normalization denominators count as zero
        log_level: Name of the logging level ('DEBUG', 'INFO', ...)
        log_file: Optional path of a log file
    """
    spectrum_samples: int = DEFAULT_SPECTRUM_SAMPLES
    reference_distance_mm: float = REFERENCE_DISTANCE_MM
    flux_unit_conversion: float = FLUX_UNIT_CONVERSION
    zero_tolerance: float = ZERO_TOLERANCE
    log_level: str = 'INFO'
    log_file: Optional[str] = None
    
    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()
    
    def _validate(self) -> None:
        """Validate configuration parameters."""
        if self.spectrum_samples <= 0:
            raise ValueError(f"spectrum_samples must be positive, got {self.spectrum_samples}")
        
        if self.reference_distance_mm <= 0:
            raise ValueError(
                f"reference_distance_mm must be positive, got {self.reference_distance_mm}"
            )
        
        if self.flux_unit_conversion <= 0:
            raise ValueError(
                f"flux_unit_conversion must be positive, got {self.flux_unit_conversion}"
            )
        
        if self.zero_tolerance < 0:
            raise ValueError(f"zero_tolerance must not be negative, got {self.zero_tolerance}")
        
        self.log_level = str(self.log_level).upper()
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}, got {self.log_level}")
    
    @property
    def logging_level(self) -> int:
        """Numeric logging level corresponding to `log_level`."""
        return getattr(logging, self.log_level)
    
    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'EncoderConfig':
        """Load configuration from YAML file.
        
        Args:
            yaml_path: Path to YAML configuration file
            
        Returns:
            EncoderConfig instance
        """
        with open(yaml_path, 'r') as f:
            config_dict = yaml.safe_load(f) or {}
        
        return cls(**config_dict)
    
    def to_yaml(self, yaml_path: str) -> None:
        """Save configuration to YAML file.
        
        Args:
            yaml_path: Path to save YAML configuration
        """
        Path(yaml_path).parent.mkdir(parents=True, exist_ok=True)
        with open(yaml_path, 'w') as f:
            yaml.safe_dump(asdict(self), f, default_flow_style=False)
    
    @staticmethod
    def get_default_config() -> 'EncoderConfig':
        """Get the default configuration.
        
        Returns:
            EncoderConfig with default values
        """
        return EncoderConfig()
