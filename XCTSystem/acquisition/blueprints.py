"""System blueprints: recipes for assembling complete CT systems."""

from enum import Enum
from typing import List, Optional

import numpy as np

from .ct_system import CTSystem
from ..components.beam_modifiers import AbstractBeamModifier
from ..components.detectors import AbstractDetector, CylindricalDetector, FlatPanelDetector
from ..components.gantries import AbstractGantry, CarmGantry, TubularGantry
from ..components.sources import AbstractSource, XrayTube
from ..utils.logging import get_logger


logger = get_logger()


class AbstractSystemBlueprint:
    """Provides the components of a CT system.

    Every call of a component method returns a new instance.
    """

    def detector(self) -> AbstractDetector:
        raise NotImplementedError

    def gantry(self) -> AbstractGantry:
        raise NotImplementedError

    def source(self) -> AbstractSource:
        raise NotImplementedError

    def system_name(self) -> str:
        return ''

    def modifiers(self) -> List[AbstractBeamModifier]:
        return []


class CTSystemBuilder:
    """Assembles CT systems from blueprints."""

    @staticmethod
    def create_system(blueprint: AbstractSystemBlueprint) -> CTSystem:
        """Build the system described by `blueprint`.

        The system contains detector, gantry, source and (in this order) all
        beam modifiers of the blueprint. An empty blueprint name yields the
        default system name.
        """
        name: Optional[str] = blueprint.system_name() or None
        system = CTSystem(name)
        system << blueprint.detector() << blueprint.gantry() << blueprint.source()
        for modifier in blueprint.modifiers():
            system.add_component(modifier)
        logger.debug(f"Created system '{system.name}' from {type(blueprint).__name__}")
        return system


class GenericTubularCT(AbstractSystemBlueprint):
    """Clinical-type CT: cylindrical detector of 40 modules on a tubular gantry."""

    def detector(self) -> AbstractDetector:
        return CylindricalDetector.from_radius_and_fan_angle(
            (16, 64), (1.2, 1.0), 40, 1000.0, np.deg2rad(45.0))

    def gantry(self) -> AbstractGantry:
        return TubularGantry(1000.0, 550.0)

    def source(self) -> AbstractSource:
        return XrayTube((1.0, 1.0))

    def system_name(self) -> str:
        return 'Tubular CT system'


class DetectorBinning(Enum):
    BINNING_1X1 = '1x1'
    BINNING_2X2 = '2x2'
    BINNING_4X4 = '4x4'


# (channels, rows) and pixel size (mm) of the flat panel per binning
_FLAT_PANEL_MODES = {
    DetectorBinning.BINNING_1X1: ((2560, 1920), 0.125),
    DetectorBinning.BINNING_2X2: ((1280, 960), 0.25),
    DetectorBinning.BINNING_4X4: ((640, 480), 0.5),
}


class GenericCarmCT(AbstractSystemBlueprint):
    """Cone-beam CT with a flat panel detector on a robotic C-arm."""

    def __init__(self, binning: DetectorBinning = DetectorBinning.BINNING_2X2):
        self.binning = DetectorBinning(binning)

    def detector(self) -> AbstractDetector:
        nb_pixels, pixel_size = _FLAT_PANEL_MODES[self.binning]
        return FlatPanelDetector(nb_pixels, (pixel_size, pixel_size),
                                 f"flat panel with {self.binning.value}-binning")

    def gantry(self) -> AbstractGantry:
        return CarmGantry(1000.0, 'Robot arm')

    def source(self) -> AbstractSource:
        return XrayTube((1.0, 1.0))

    def system_name(self) -> str:
        return 'C-arm CT system'
