"""Final world-coordinate geometry of simple CT systems."""

from typing import List

import numpy as np

from ..physics.constants import REFERENCE_DISTANCE_MM, ZERO_TOLERANCE
from ..utils.logging import get_logger


logger = get_logger()


class GeometryEncoder:
    """Computes source and detector module locations of a `SimpleCTSystem`.

    All methods are static and take the system as their first argument.
    """

    @staticmethod
    def final_source_position(system) -> np.ndarray:
        """Focal spot position in world coordinates (mm)."""
        gantry = system.gantry()
        return gantry.source_position() + gantry.source_rotation() @ system.source().focal_spot_position

    @staticmethod
    def final_module_position(system, module: int) -> np.ndarray:
        """Center of detector module `module` in world coordinates (mm)."""
        gantry = system.gantry()
        module_location = system.detector().module_location(module)
        return gantry.detector_position() + gantry.detector_rotation().T @ module_location.position

    @staticmethod
    def final_module_rotation(system, module: int) -> np.ndarray:
        """Rotation of detector module `module` (world to module coordinates)."""
        module_location = system.detector().module_location(module)
        return module_location.rotation @ system.gantry().detector_rotation()

    @staticmethod
    def effective_pixel_area(system, module: int,
                             reference_distance_mm: float = REFERENCE_DISTANCE_MM) -> float:
        """Pixel area of `module` as seen from the source, scaled to the reference distance.

        The nominal pixel area (mm²) is multiplied with the cosine of the angle
        between the module normal and the beam direction and divided by the
        squared source-to-module distance in units of `reference_distance_mm`.

        Args:
            system: SimpleCTSystem
            module: Index of the detector module
            reference_distance_mm: Distance at which the source flux is specified

        Returns:
            Effective pixel area in mm²
        """
        nominal_area = system.detector().pixel_area()
        source_to_module = (GeometryEncoder.final_module_position(system, module)
                            - GeometryEncoder.final_source_position(system))
        distance = float(np.linalg.norm(source_to_module))
        if distance <= ZERO_TOLERANCE:
            logger.warning(f"Detector module {module} coincides with the source position")
            return 0.0

        direction = source_to_module / distance
        cos_incidence = float(GeometryEncoder.final_module_rotation(system, module)[2] @ direction)
        relative_distance = distance / reference_distance_mm
        return nominal_area * cos_incidence / (relative_distance * relative_distance)

    @staticmethod
    def effective_pixel_areas(system,
                              reference_distance_mm: float = REFERENCE_DISTANCE_MM) -> List[float]:
        return [GeometryEncoder.effective_pixel_area(system, module, reference_distance_mm)
                for module in range(system.detector().nb_detector_modules())]
