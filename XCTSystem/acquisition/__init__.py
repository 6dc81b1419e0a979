"""CT systems, radiation and geometry encoders, prepare steps and acquisition setups."""

from .radiation_encoder import RadiationEncoder
from .geometry_encoder import GeometryEncoder
from .ct_system import CTSystem, SimpleCTSystem
from .prepare_steps import (
    AbstractPrepareStep,
    GenericDetectorParam,
    GenericGantryParam,
    CarmGantryParam,
    TubularGantryParam,
    GantryDisplacementParam,
    SourceParam,
    XrayLaserParam,
    XrayTubeParam,
)
from .preparation_protocols import AbstractPreparationProtocol, FlyingFocalSpot, TubeCurrentModulation
from .trajectories import (
    HelicalTrajectory,
    AxialScanTrajectory,
    ShortScanTrajectory,
    WobbleTrajectory,
    CirclePlusLineTrajectory,
)
from .acquisition_setup import AcquisitionSetup, View
from .blueprints import (
    AbstractSystemBlueprint,
    CTSystemBuilder,
    DetectorBinning,
    GenericTubularCT,
    GenericCarmCT,
)

__all__ = [
    'RadiationEncoder',
    'GeometryEncoder',
    'CTSystem',
    'SimpleCTSystem',
    'AbstractPrepareStep',
    'GenericDetectorParam',
    'GenericGantryParam',
    'CarmGantryParam',
    'TubularGantryParam',
    'GantryDisplacementParam',
    'SourceParam',
    'XrayLaserParam',
    'XrayTubeParam',
    'AbstractPreparationProtocol',
    'FlyingFocalSpot',
    'TubeCurrentModulation',
    'HelicalTrajectory',
    'AxialScanTrajectory',
    'ShortScanTrajectory',
    'WobbleTrajectory',
    'CirclePlusLineTrajectory',
    'AcquisitionSetup',
    'View',
    'AbstractSystemBlueprint',
    'CTSystemBuilder',
    'DetectorBinning',
    'GenericTubularCT',
    'GenericCarmCT',
]
