"""
X-ray CT System Description Library

Describes CT systems (detectors, gantries, sources and beam modifiers),
serializes them to type-tagged exchange records, and computes the spectrum
and photon flux that reach the detector.
"""

__version__ = "0.1.0"

from .core.registration import register_all_types
from .acquisition.ct_system import CTSystem, SimpleCTSystem
from .acquisition.acquisition_setup import AcquisitionSetup
from .acquisition.radiation_encoder import RadiationEncoder
from .utils.config import EncoderConfig

__all__ = [
    'register_all_types',
    'CTSystem',
    'SimpleCTSystem',
    'AcquisitionSetup',
    'RadiationEncoder',
    'EncoderConfig',
]
