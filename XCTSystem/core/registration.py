"""Startup registration of all serializable types."""

from .serialization import TypeFamily, TypeRegistry
from ..utils.logging import get_logger


logger = get_logger()

_types_registered = False


def register_all_types(registry: TypeRegistry = None) -> None:
    """Register every serializable type of the package with the type registry.

    Must run once before exchange records are parsed. Repeated calls on the
    process-wide registry are ignored.

    Args:
        registry: Registry to fill (defaults to the process-wide registry; an
            explicitly passed registry is always filled)
    """
    global _types_registered

    if registry is None:
        if _types_registered:
            return
        registry = TypeRegistry.instance()
        _types_registered = True

    from ..acquisition.acquisition_setup import AcquisitionSetup
    from ..acquisition.ct_system import CTSystem, SimpleCTSystem
    from ..acquisition import prepare_steps
    from ..components.beam_modifiers import AttenuationFilter, GenericBeamModifier
    from ..components.detectors import CylindricalDetector, FlatPanelDetector, GenericDetector
    from ..components.gantries import CarmGantry, GenericGantry, TubularGantry
    from ..components.sources import GenericSource, XrayLaser, XrayTube
    from ..components.system_component import ElementalType
    from ..models import data_models, spectrum_models
    from ..models.tabulated import TabulatedDataModel

    components = [
        GenericDetector, CylindricalDetector, FlatPanelDetector,
        GenericGantry, CarmGantry, TubularGantry,
        GenericSource, XrayLaser, XrayTube,
        GenericBeamModifier, AttenuationFilter,
    ]
    for cls in components:
        registry.register(cls.TYPE_ID, TypeFamily.COMPONENT, cls)

    operations = [
        data_models.DataModelAdd, data_models.DataModelSub, data_models.DataModelMul,
        data_models.DataModelDiv, data_models.DataModelCat,
    ]
    for cls in operations:
        registry.register(cls.TYPE_ID, TypeFamily.DATA_MODEL, cls._empty)

    models = [
        data_models.ConstantModel,
        data_models.StepFunctionModel,
        TabulatedDataModel,
        spectrum_models.XraySpectrumTabulatedModel,
        spectrum_models.FixedXraySpectrumModel,
        spectrum_models.XrayLaserSpectrumModel,
        spectrum_models.KramersLawSpectrumModel,
        spectrum_models.HeuristicCubicSpectrumModel,
    ]
    for cls in models:
        registry.register(cls.TYPE_ID, TypeFamily.DATA_MODEL, cls)

    steps = [
        prepare_steps.GenericDetectorParam,
        prepare_steps.GenericGantryParam, prepare_steps.CarmGantryParam,
        prepare_steps.TubularGantryParam, prepare_steps.GantryDisplacementParam,
        prepare_steps.SourceParam, prepare_steps.XrayLaserParam, prepare_steps.XrayTubeParam,
    ]
    for cls in steps:
        registry.register(cls.TYPE_ID, TypeFamily.PREPARE_STEP, cls)

    for cls in (AcquisitionSetup, CTSystem, SimpleCTSystem):
        registry.register(cls.TYPE_ID, TypeFamily.MISC, cls)

    registry.register_elemental_fallback(ElementalType.DETECTOR, GenericDetector)
    registry.register_elemental_fallback(ElementalType.GANTRY, GenericGantry)
    registry.register_elemental_fallback(ElementalType.SOURCE, GenericSource)
    registry.register_elemental_fallback(ElementalType.BEAM_MODIFIER, GenericBeamModifier)

    logger.debug(
        f"Registered {len(components)} component types, "
        f"{len(operations) + len(models)} data model types, {len(steps)} prepare step types"
    )
