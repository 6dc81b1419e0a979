"""Gantry components: placement of source and detector in world coordinates."""

import math
from typing import Any, Dict, Mapping, Optional

import numpy as np

from .geometry import Location, rotation_matrix
from .system_component import ElementalType, SystemComponent
from ..utils.logging import get_logger


logger = get_logger()


class AbstractGantry(SystemComponent):
    """Holds the nominal source and detector locations of a system.

    Sub-classes provide the nominal locations. On top of these, source and
    detector can be displaced by a `Location` each, e.g. to model
    misalignments. The final locations are composed as follows:

    - source position: ``nominal.position + source_rotation @ displacement.position``
    - source rotation: ``nominal.rotation @ displacement.rotation``
    - detector position: ``nominal.position + detector_rotation.T @ displacement.position``
    - detector rotation: ``displacement.rotation @ nominal.rotation``

    Detector rotations are passive, i.e. they map world into detector
    coordinates.
    """

    TYPE_ID = int(ElementalType.GANTRY)
    ELEMENTAL_TYPE = ElementalType.GANTRY
    DEFAULT_NAME = 'Abstract gantry'

    def __init__(self, name: Optional[str] = None):
        super().__init__(name)
        self._source_displacement = Location()
        self._detector_displacement = Location()

    def nominal_source_location(self) -> Location:
        raise NotImplementedError

    def nominal_detector_location(self) -> Location:
        raise NotImplementedError

    # final locations ----------------------------------------------------

    def source_location(self) -> Location:
        return Location(self.source_position(), self.source_rotation())

    def source_position(self) -> np.ndarray:
        return (self.nominal_source_location().position
                + self.source_rotation() @ self._source_displacement.position)

    def source_rotation(self) -> np.ndarray:
        return self.nominal_source_location().rotation @ self._source_displacement.rotation

    def detector_location(self) -> Location:
        return Location(self.detector_position(), self.detector_rotation())

    def detector_position(self) -> np.ndarray:
        return (self.nominal_detector_location().position
                + self.detector_rotation().T @ self._detector_displacement.position)

    def detector_rotation(self) -> np.ndarray:
        return self._detector_displacement.rotation @ self.nominal_detector_location().rotation

    # displacements ------------------------------------------------------

    @property
    def source_displacement(self) -> Location:
        return self._source_displacement

    @property
    def detector_displacement(self) -> Location:
        return self._detector_displacement

    def set_source_displacement(self, displacement: Location) -> None:
        self._source_displacement = displacement

    def set_detector_displacement(self, displacement: Location) -> None:
        self._detector_displacement = displacement

    def set_source_displacement_position(self, x: float, y: float, z: float) -> None:
        self._source_displacement.position = np.array([x, y, z], dtype=np.float64)

    def set_detector_displacement_position(self, x: float, y: float, z: float) -> None:
        self._detector_displacement.position = np.array([x, y, z], dtype=np.float64)

    def info(self) -> str:
        src = self._source_displacement.position
        det = self._detector_displacement.position
        return super().info() + (
            f"\tSource Displacement: ({src[0]} mm, {src[1]} mm, {src[2]} mm)\n"
            f"\tDetector Displacement: ({det[0]} mm, {det[1]} mm, {det[2]} mm)\n"
        )

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['detector displacement'] = self._detector_displacement.to_variant()
        ret['source displacement'] = self._source_displacement.to_variant()
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._detector_displacement = Location.parse(variant.get('detector displacement', {}))
        self._source_displacement = Location.parse(variant.get('source displacement', {}))


class GenericGantry(AbstractGantry):
    """Gantry with explicitly set source and detector locations."""

    TYPE_ID = 201
    DEFAULT_NAME = 'Generic gantry'

    def __init__(self, source_location: Optional[Location] = None,
                 detector_location: Optional[Location] = None,
                 name: Optional[str] = None):
        super().__init__(name)
        self._source_location = source_location if source_location is not None else Location()
        self._detector_location = (detector_location if detector_location is not None
                                   else Location())

    def nominal_source_location(self) -> Location:
        return self._source_location

    def nominal_detector_location(self) -> Location:
        return self._detector_location

    def set_source_location(self, location: Location) -> None:
        self._source_location = location

    def set_detector_location(self, location: Location) -> None:
        self._detector_location = location

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['detector location'] = self._detector_location.to_variant()
        ret['source location'] = self._source_location.to_variant()
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._detector_location = Location.parse(variant.get('detector location', {}))
        self._source_location = Location.parse(variant.get('source location', {}))


class CarmGantry(AbstractGantry):
    """Gantry in which source and detector are mounted on the ends of a C-arm.

    `location` is the location of the source end of the arm; its rotation's z
    axis points along the arm towards the detector, which sits at the
    distance `c_arm_span` (mm) and faces the source.
    """

    TYPE_ID = 210
    DEFAULT_NAME = 'C-arm gantry'

    def __init__(self, c_arm_span: float = 1000.0, name: Optional[str] = None,
                 location: Optional[Location] = None):
        super().__init__(name)
        self._c_arm_span = float(c_arm_span)
        self._location = location if location is not None else Location()

    @property
    def c_arm_span(self) -> float:
        return self._c_arm_span

    @property
    def location(self) -> Location:
        return self._location

    def set_c_arm_span(self, span: float) -> None:
        self._c_arm_span = float(span)

    def set_location(self, location: Location) -> None:
        self._location = location

    def nominal_source_location(self) -> Location:
        return Location(self._location.position.copy(), self._location.rotation.copy())

    def nominal_detector_location(self) -> Location:
        rotation = self._location.rotation
        position = self._location.position + rotation @ np.array([0.0, 0.0, self._c_arm_span])
        return Location(position, rotation.T)

    def info(self) -> str:
        pos = self._location.position
        return super().info() + (
            f"\tC-arm span: {self._c_arm_span} mm\n"
            f"\tLocation: ({pos[0]} mm, {pos[1]} mm, {pos[2]} mm)\n"
        )

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['c-arm span'] = self._c_arm_span
        ret['location'] = self._location.to_variant()
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._c_arm_span = float(variant.get('c-arm span', 1000.0))
        self._location = Location.parse(variant.get('location', {}))


class TubularGantry(AbstractGantry):
    """Gantry of a clinical (helical) CT scanner.

    Source and detector sit on opposite sides of the rotation axis (world z)
    and rotate by `rotation_angle`; the table moves along z by
    `pitch_position` and the whole gantry can be tilted about x by
    `tilt_angle`. Distances in mm, angles in rad.
    """

    TYPE_ID = 220
    DEFAULT_NAME = 'Tubular gantry'

    def __init__(self, source_to_detector_distance: float = 0.0,
                 source_to_iso_center_distance: float = 0.0,
                 rotation_angle: float = 0.0, pitch_position: float = 0.0,
                 tilt_angle: float = 0.0, name: Optional[str] = None):
        super().__init__(name)
        self._source_to_detector_distance = float(source_to_detector_distance)
        self._source_to_iso_center_distance = float(source_to_iso_center_distance)
        self._rotation_angle = float(rotation_angle)
        self._pitch_position = float(pitch_position)
        self._tilt_angle = float(tilt_angle)

    @property
    def source_to_detector_distance(self) -> float:
        return self._source_to_detector_distance

    @property
    def source_to_iso_center_distance(self) -> float:
        return self._source_to_iso_center_distance

    @property
    def rotation_angle(self) -> float:
        return self._rotation_angle

    @property
    def pitch_position(self) -> float:
        return self._pitch_position

    @property
    def tilt_angle(self) -> float:
        return self._tilt_angle

    def set_rotation_angle(self, angle: float) -> None:
        self._rotation_angle = float(angle)

    def set_pitch_position(self, position: float) -> None:
        self._pitch_position = float(position)

    def set_tilt_angle(self, angle: float) -> None:
        self._tilt_angle = float(angle)

    def _total_gantry_rotation(self) -> np.ndarray:
        return rotation_matrix(self._tilt_angle, 'x') @ rotation_matrix(self._rotation_angle, 'z')

    def _base_rotation(self) -> np.ndarray:
        # source frame: z from source towards iso center, at zero rotation angle
        return (self._total_gantry_rotation()
                @ rotation_matrix(math.pi / 2.0, 'z')
                @ rotation_matrix(-math.pi / 2.0, 'x'))

    def nominal_source_location(self) -> Location:
        position = np.array([self._source_to_iso_center_distance, 0.0, -self._pitch_position])
        rotation = self._base_rotation()
        return Location(self._total_gantry_rotation() @ position, rotation)

    def nominal_detector_location(self) -> Location:
        position = np.array([
            -(self._source_to_detector_distance - self._source_to_iso_center_distance),
            0.0,
            -self._pitch_position,
        ])
        rotation = self._base_rotation()
        return Location(self._total_gantry_rotation() @ position, rotation.T)

    def info(self) -> str:
        return super().info() + (
            f"\tSource-to-detector distance: {self._source_to_detector_distance} mm\n"
            f"\tSource-to-iso-center distance: {self._source_to_iso_center_distance} mm\n"
            f"\tRotation angle: {math.degrees(self._rotation_angle)} deg\n"
            f"\tTable pitch position: {self._pitch_position} mm\n"
            f"\tTilt angle: {math.degrees(self._tilt_angle)} deg\n"
        )

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['source-detector distance'] = self._source_to_detector_distance
        ret['source-isocenter distance'] = self._source_to_iso_center_distance
        ret['rotation angle'] = self._rotation_angle
        ret['pitch position'] = self._pitch_position
        ret['tilt angle'] = self._tilt_angle
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._source_to_detector_distance = float(variant.get('source-detector distance', 0.0))
        self._source_to_iso_center_distance = float(variant.get('source-isocenter distance', 0.0))
        self._rotation_angle = float(variant.get('rotation angle', 0.0))
        self._pitch_position = float(variant.get('pitch position', 0.0))
        self._tilt_angle = float(variant.get('tilt angle', 0.0))
