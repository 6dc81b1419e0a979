"""CT system components: detectors, gantries, sources and beam modifiers."""

from .system_component import ElementalType, SystemComponent
from .geometry import Location, rotation_matrix
from .detectors import (
    AbstractDetector,
    GenericDetector,
    FlatPanelDetector,
    CylindricalDetector,
)
from .gantries import AbstractGantry, GenericGantry, CarmGantry, TubularGantry
from .sources import AbstractSource, GenericSource, XrayTube, XrayLaser
from .beam_modifiers import AbstractBeamModifier, GenericBeamModifier, AttenuationFilter

__all__ = [
    'ElementalType',
    'SystemComponent',
    'Location',
    'rotation_matrix',
    'AbstractDetector',
    'GenericDetector',
    'FlatPanelDetector',
    'CylindricalDetector',
    'AbstractGantry',
    'GenericGantry',
    'CarmGantry',
    'TubularGantry',
    'AbstractSource',
    'GenericSource',
    'XrayTube',
    'XrayLaser',
    'AbstractBeamModifier',
    'GenericBeamModifier',
    'AttenuationFilter',
]
