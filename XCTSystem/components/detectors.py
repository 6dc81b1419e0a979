"""Detector components."""

import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .geometry import Location, rotation_matrix
from .system_component import ElementalType, SystemComponent
from ..core.serialization import parse_data_model
from ..models.data_models import AbstractDataModel, AbstractIntegrableDataModel
from ..utils.logging import get_logger


logger = get_logger()


class AbstractDetector(SystemComponent):
    """Detector consisting of one or more flat modules of equal size.

    Attributes of every detector:
        nb_pixel_per_module: (channels, rows)
        pixel_dimensions: (width, height) in mm
        spectral_response_model: Optional integrable model of the fraction of
            photons registered as a function of energy (keV)
        skew_coefficient: Skew of the pixel grid (0 for rectangular pixels)
    """

    TYPE_ID = int(ElementalType.DETECTOR)
    ELEMENTAL_TYPE = ElementalType.DETECTOR
    DEFAULT_NAME = 'Abstract detector'

    def __init__(self, nb_pixel_per_module: Tuple[int, int] = (0, 0),
                 pixel_dimensions: Tuple[float, float] = (0.0, 0.0),
                 name: Optional[str] = None):
        super().__init__(name)
        self._nb_pixel_per_module = (int(nb_pixel_per_module[0]), int(nb_pixel_per_module[1]))
        self._pixel_dimensions = (float(pixel_dimensions[0]), float(pixel_dimensions[1]))
        self._spectral_response_model: Optional[AbstractIntegrableDataModel] = None
        self._skew_coefficient = 0.0

    def module_locations(self) -> List[Location]:
        """Locations of all modules relative to the detector."""
        raise NotImplementedError

    def nb_detector_modules(self) -> int:
        return len(self.module_locations())

    def module_location(self, module: int) -> Location:
        return self.module_locations()[module]

    @property
    def nb_pixel_per_module(self) -> Tuple[int, int]:
        return self._nb_pixel_per_module

    def set_nb_pixel_per_module(self, channels: int, rows: int) -> None:
        self._nb_pixel_per_module = (int(channels), int(rows))

    @property
    def pixel_dimensions(self) -> Tuple[float, float]:
        return self._pixel_dimensions

    def set_pixel_dimensions(self, width: float, height: float) -> None:
        self._pixel_dimensions = (float(width), float(height))

    def pixel_area(self) -> float:
        """Nominal area of a single pixel in mm²."""
        return self._pixel_dimensions[0] * self._pixel_dimensions[1]

    def module_width(self) -> float:
        return self._nb_pixel_per_module[0] * self._pixel_dimensions[0]

    def module_height(self) -> float:
        return self._nb_pixel_per_module[1] * self._pixel_dimensions[1]

    @property
    def spectral_response_model(self) -> Optional[AbstractIntegrableDataModel]:
        return self._spectral_response_model

    def has_spectral_response_model(self) -> bool:
        return self._spectral_response_model is not None

    def set_spectral_response_model(self, model: Optional[AbstractDataModel]) -> None:
        """Set the spectral response model (None removes it).

        Raises:
            TypeError: If the model is not integrable
        """
        if model is not None and not isinstance(model, AbstractIntegrableDataModel):
            raise TypeError(
                f"{type(self).__name__}: spectral response model must be integrable "
                f"(got {type(model).__name__})"
            )
        self._spectral_response_model = model

    @property
    def skew_coefficient(self) -> float:
        return self._skew_coefficient

    def set_skew_coefficient(self, skew: float) -> None:
        self._skew_coefficient = float(skew)

    def info(self) -> str:
        ret = super().info()
        ret += (f"\tNb. of pixels per module: {self._nb_pixel_per_module[0]} x "
                f"{self._nb_pixel_per_module[1]}\n"
                f"\tPixel dimensions: {self._pixel_dimensions[0]} mm x "
                f"{self._pixel_dimensions[1]} mm\n"
                f"\tSkew coefficient: {self._skew_coefficient}\n"
                f"\tSpectral response model: "
                f"{'yes' if self.has_spectral_response_model() else 'no'}\n")
        return ret

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['pixel per module'] = {
            'channels': self._nb_pixel_per_module[0],
            'rows': self._nb_pixel_per_module[1],
        }
        ret['pixel dimensions'] = {
            'width': self._pixel_dimensions[0],
            'height': self._pixel_dimensions[1],
        }
        ret['skew coefficient'] = self._skew_coefficient
        ret['spectral response model'] = (self._spectral_response_model.to_variant()
                                          if self._spectral_response_model is not None
                                          else None)
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        nb_pixels = variant.get('pixel per module') or {}
        self._nb_pixel_per_module = (int(nb_pixels.get('channels', 0)),
                                     int(nb_pixels.get('rows', 0)))
        pixel_dim = variant.get('pixel dimensions') or {}
        self._pixel_dimensions = (float(pixel_dim.get('width', 0.0)),
                                  float(pixel_dim.get('height', 0.0)))
        self._skew_coefficient = float(variant.get('skew coefficient', 0.0))

        response = variant.get('spectral response model')
        self._spectral_response_model = None
        if response is not None:
            model = parse_data_model(response)
            if isinstance(model, AbstractIntegrableDataModel):
                self._spectral_response_model = model
            else:
                logger.warning(
                    f"{type(self).__name__}: Could not restore spectral response model "
                    f"(type-id {response.get('type-id') if isinstance(response, Mapping) else None})"
                )


class GenericDetector(AbstractDetector):
    """Detector with an explicit list of module locations."""

    TYPE_ID = 101
    DEFAULT_NAME = 'Generic detector'

    def __init__(self, nb_pixel_per_module: Tuple[int, int] = (0, 0),
                 pixel_dimensions: Tuple[float, float] = (0.0, 0.0),
                 module_locations: Optional[Sequence[Location]] = None,
                 name: Optional[str] = None):
        super().__init__(nb_pixel_per_module, pixel_dimensions, name)
        self._module_locations: List[Location] = list(module_locations or [])

    def module_locations(self) -> List[Location]:
        return list(self._module_locations)

    def set_module_locations(self, locations: Sequence[Location]) -> None:
        self._module_locations = list(locations)

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['module locations'] = [loc.to_variant() for loc in self._module_locations]
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._module_locations = [Location.parse(v) for v in variant.get('module locations', [])]


class CylindricalDetector(AbstractDetector):
    """Curved detector whose modules are arranged on an arc around the focal point.

    Neighboring modules are tilted against each other by
    `angulation_per_module` (rad) and separated by a gap of `module_spacing`
    (mm). The arc lies in the x-z plane, its center at
    ``(0, 0, -curvature_radius)`` in detector coordinates, and the middle of
    the arc coincides with the detector origin. Every module faces the arc
    center.
    """

    TYPE_ID = 110
    DEFAULT_NAME = 'Cylindrical detector'

    def __init__(self, nb_pixel_per_module: Tuple[int, int] = (0, 0),
                 pixel_dimensions: Tuple[float, float] = (0.0, 0.0),
                 nb_modules: int = 0, angulation_per_module: float = 0.0,
                 module_spacing: float = 0.0, name: Optional[str] = None):
        super().__init__(nb_pixel_per_module, pixel_dimensions, name)
        self._nb_modules = int(nb_modules)
        self._angulation_per_module = float(angulation_per_module)
        self._module_spacing = float(module_spacing)

    @classmethod
    def from_angulation_and_spacing(cls, nb_pixel_per_module: Tuple[int, int],
                                    pixel_dimensions: Tuple[float, float], nb_modules: int,
                                    angulation_per_module: float, module_spacing: float,
                                    name: Optional[str] = None) -> 'CylindricalDetector':
        return cls(nb_pixel_per_module, pixel_dimensions, nb_modules,
                   angulation_per_module, module_spacing, name)

    @classmethod
    def from_radius_and_fan_angle(cls, nb_pixel_per_module: Tuple[int, int],
                                  pixel_dimensions: Tuple[float, float], nb_modules: int,
                                  radius: float, fan_angle: float,
                                  name: Optional[str] = None) -> 'CylindricalDetector':
        """Detector with `nb_modules` modules spread evenly over `fan_angle` (rad).

        Angulation and spacing of the modules are chosen such that the module
        centers lie on an arc with the given curvature `radius` (mm).
        """
        ret = cls(nb_pixel_per_module, pixel_dimensions, nb_modules, name=name)
        angulation = fan_angle / nb_modules if nb_modules > 0 else 0.0
        spacing = (radius * math.sqrt(2.0 * (1.0 - math.cos(angulation)))
                   - ret.module_width() * math.cos(0.5 * angulation))
        ret._angulation_per_module = angulation
        ret._module_spacing = spacing
        return ret

    @property
    def angulation_per_module(self) -> float:
        return self._angulation_per_module

    @property
    def module_spacing(self) -> float:
        """Gap between neighboring modules in mm."""
        return self._module_spacing

    def nb_detector_modules(self) -> int:
        return self._nb_modules

    def angulation_of_module(self, module: int) -> float:
        """Tilt of module `module` (rad) relative to the detector's z axis."""
        return (module - 0.5 * self._nb_modules + 0.5) * self._angulation_per_module

    def curvature_radius(self) -> float:
        """Radius of the arc through the module centers (inf for a flat arrangement)."""
        angulation = self._angulation_per_module
        if abs(angulation) < 1.0e-12:
            return math.inf
        return ((self._module_spacing + self.module_width() * math.cos(0.5 * angulation))
                / math.sqrt(2.0 * (1.0 - math.cos(angulation))))

    def fan_angle(self) -> float:
        return self._nb_modules * self._angulation_per_module

    def row_coverage(self) -> float:
        """Extent of the detector along the rows (mm)."""
        return self.module_height()

    def cone_angle(self) -> float:
        return 2.0 * math.atan(0.5 * self.row_coverage() / self.curvature_radius())

    def module_locations(self) -> List[Location]:
        radius = self.curvature_radius()
        locations = []
        for module in range(self._nb_modules):
            angle = self.angulation_of_module(module)
            if math.isinf(radius):
                offset = (module - 0.5 * (self._nb_modules - 1)) * (
                    self.module_width() + self._module_spacing)
                position = np.array([offset, 0.0, 0.0])
            else:
                position = np.array([radius * math.sin(angle), 0.0,
                                     radius * math.cos(angle) - radius])
            locations.append(Location(position, rotation_matrix(angle, 'y').T))
        return locations

    def info(self) -> str:
        return super().info() + (
            f"\tNumber of modules: {self._nb_modules}\n"
            f"\tAngulation per module: {math.degrees(self._angulation_per_module)} deg\n"
            f"\tModule spacing: {self._module_spacing} mm\n"
            f"\tFan angle: {math.degrees(self.fan_angle())} deg\n"
        )

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['number of modules'] = self._nb_modules
        ret['angulation per module'] = self._angulation_per_module
        ret['module spacing'] = self._module_spacing
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._nb_modules = int(variant.get('number of modules', 0))
        self._angulation_per_module = float(variant.get('angulation per module', 0.0))
        self._module_spacing = float(variant.get('module spacing', 0.0))


class FlatPanelDetector(AbstractDetector):
    """Single flat module located at the detector origin."""

    TYPE_ID = 120
    DEFAULT_NAME = 'Flat panel detector'

    def module_locations(self) -> List[Location]:
        return [Location()]

    def panel_dimensions(self) -> Tuple[float, float]:
        """Width and height of the panel in mm."""
        return self.module_width(), self.module_height()

    def info(self) -> str:
        width, height = self.panel_dimensions()
        return super().info() + f"\tPanel dimensions: {width} mm x {height} mm\n"
