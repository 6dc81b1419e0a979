"""Prepare steps: parameter changes applied to a system for a single view.

Every step targets one component type of a simple system. All parameters of a
step are optional; `prepare` only changes the parameters that have been set,
the remaining ones keep the state left behind by earlier views.
"""

import copy
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..components.detectors import GenericDetector
from ..components.gantries import CarmGantry, GenericGantry, TubularGantry
from ..components.geometry import Location
from ..components.sources import XrayLaser, XrayTube
from ..core.serialization import SerializationInterface
from ..models.interval_series import as_sampling_range
from ..utils.logging import get_logger


logger = get_logger()


class AbstractPrepareStep(SerializationInterface):
    """A set of parameter changes for one component of a simple system."""

    def prepare(self, system) -> None:
        """Apply the parameter changes to `system` (a SimpleCTSystem)."""
        raise NotImplementedError

    def is_applicable_to(self, system) -> bool:
        """Whether `prepare` can be applied to `system`."""
        return system.is_simple()


def _optional_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def _optional_location(value: Any) -> Optional[Location]:
    return Location.parse(value) if value is not None else None


def _optional_pair(value: Any) -> Optional[Tuple[float, float]]:
    return (float(value[0]), float(value[1])) if value is not None else None


def _optional_vector(value: Any) -> Optional[np.ndarray]:
    return np.asarray(value, dtype=np.float64).reshape(3) if value is not None else None


def _location_record(location: Optional[Location]) -> Optional[Dict[str, Any]]:
    return location.to_variant() if location is not None else None


# detector ---------------------------------------------------------------------

class GenericDetectorParam(AbstractPrepareStep):
    """Changes module locations, pixel size and skew of a `GenericDetector`."""

    TYPE_ID = 101

    def __init__(self, module_locations: Optional[Sequence[Location]] = None,
                 pixel_size: Optional[Tuple[float, float]] = None,
                 skew_coefficient: Optional[float] = None):
        self._module_locations = list(module_locations) if module_locations is not None else None
        self._pixel_size = _optional_pair(pixel_size)
        self._skew_coefficient = _optional_float(skew_coefficient)

    def set_module_locations(self, locations: Sequence[Location]) -> None:
        self._module_locations = list(locations)

    def set_pixel_size(self, width: float, height: float) -> None:
        self._pixel_size = (float(width), float(height))

    def set_skew_coefficient(self, skew: float) -> None:
        self._skew_coefficient = float(skew)

    def prepare(self, system) -> None:
        detector = system.detector()
        logger.debug(f"GenericDetectorParam --- preparing detector '{detector.name}'")
        if self._module_locations is not None:
            detector.set_module_locations(copy.deepcopy(self._module_locations))
        if self._pixel_size is not None:
            detector.set_pixel_dimensions(*self._pixel_size)
        if self._skew_coefficient is not None:
            detector.set_skew_coefficient(self._skew_coefficient)

    def is_applicable_to(self, system) -> bool:
        return system.is_simple() and isinstance(system.detectors()[0], GenericDetector)

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['module locations'] = ([loc.to_variant() for loc in self._module_locations]
                                   if self._module_locations is not None else None)
        ret['pixel size'] = list(self._pixel_size) if self._pixel_size is not None else None
        ret['skew coefficient'] = self._skew_coefficient
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        locations = variant.get('module locations')
        self._module_locations = ([Location.parse(v) for v in locations]
                                  if locations is not None else None)
        self._pixel_size = _optional_pair(variant.get('pixel size'))
        self._skew_coefficient = _optional_float(variant.get('skew coefficient'))


# gantries ---------------------------------------------------------------------

class GenericGantryParam(AbstractPrepareStep):
    """Sets the detector and source locations of a `GenericGantry`."""

    TYPE_ID = 201

    def __init__(self, detector_location: Optional[Location] = None,
                 source_location: Optional[Location] = None):
        self._detector_location = detector_location
        self._source_location = source_location

    def set_detector_location(self, location: Location) -> None:
        self._detector_location = location

    def set_source_location(self, location: Location) -> None:
        self._source_location = location

    def prepare(self, system) -> None:
        gantry = system.gantry()
        logger.debug(f"GenericGantryParam --- preparing gantry '{gantry.name}'")
        if self._detector_location is not None:
            gantry.set_detector_location(copy.deepcopy(self._detector_location))
        if self._source_location is not None:
            gantry.set_source_location(copy.deepcopy(self._source_location))

    def is_applicable_to(self, system) -> bool:
        return system.is_simple() and isinstance(system.gantries()[0], GenericGantry)

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['detector location'] = _location_record(self._detector_location)
        ret['source location'] = _location_record(self._source_location)
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._detector_location = _optional_location(variant.get('detector location'))
        self._source_location = _optional_location(variant.get('source location'))


class CarmGantryParam(AbstractPrepareStep):
    """Sets location and span of a `CarmGantry`."""

    TYPE_ID = 210

    def __init__(self, location: Optional[Location] = None,
                 c_arm_span: Optional[float] = None):
        self._location = location
        self._c_arm_span = _optional_float(c_arm_span)

    @property
    def location(self) -> Optional[Location]:
        return self._location

    def set_location(self, location: Location) -> None:
        self._location = location

    def set_c_arm_span(self, span: float) -> None:
        self._c_arm_span = float(span)

    def prepare(self, system) -> None:
        gantry = system.gantry()
        logger.debug(f"CarmGantryParam --- preparing gantry '{gantry.name}'")
        if self._location is not None:
            gantry.set_location(copy.deepcopy(self._location))
        if self._c_arm_span is not None:
            gantry.set_c_arm_span(self._c_arm_span)

    def is_applicable_to(self, system) -> bool:
        return system.is_simple() and isinstance(system.gantries()[0], CarmGantry)

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['location'] = _location_record(self._location)
        ret['c-arm span'] = self._c_arm_span
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._location = _optional_location(variant.get('location'))
        self._c_arm_span = _optional_float(variant.get('c-arm span'))


class TubularGantryParam(AbstractPrepareStep):
    """Sets rotation angle (rad), table pitch position (mm) and tilt angle (rad)
    of a `TubularGantry`."""

    TYPE_ID = 220

    def __init__(self, rotation_angle: Optional[float] = None,
                 pitch_position: Optional[float] = None,
                 tilt_angle: Optional[float] = None):
        self._rotation_angle = _optional_float(rotation_angle)
        self._pitch_position = _optional_float(pitch_position)
        self._tilt_angle = _optional_float(tilt_angle)

    @property
    def rotation_angle(self) -> Optional[float]:
        return self._rotation_angle

    @property
    def pitch_position(self) -> Optional[float]:
        return self._pitch_position

    def set_rotation_angle(self, angle: float) -> None:
        self._rotation_angle = float(angle)

    def set_pitch_position(self, position: float) -> None:
        self._pitch_position = float(position)

    def set_tilt_angle(self, angle: float) -> None:
        self._tilt_angle = float(angle)

    def prepare(self, system) -> None:
        gantry = system.gantry()
        logger.debug(
            f"TubularGantryParam --- preparing gantry '{gantry.name}': rotation "
            f"{self._rotation_angle}, pitch {self._pitch_position}, tilt {self._tilt_angle}"
        )
        if self._rotation_angle is not None:
            gantry.set_rotation_angle(self._rotation_angle)
        if self._pitch_position is not None:
            gantry.set_pitch_position(self._pitch_position)
        if self._tilt_angle is not None:
            gantry.set_tilt_angle(self._tilt_angle)

    def is_applicable_to(self, system) -> bool:
        return system.is_simple() and isinstance(system.gantries()[0], TubularGantry)

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['rotation angle'] = self._rotation_angle
        ret['pitch position'] = self._pitch_position
        ret['tilt angle'] = self._tilt_angle
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._rotation_angle = _optional_float(variant.get('rotation angle'))
        self._pitch_position = _optional_float(variant.get('pitch position'))
        self._tilt_angle = _optional_float(variant.get('tilt angle'))


class GantryDisplacementParam(AbstractPrepareStep):
    """Sets or increments the source and detector displacements of any gantry.

    Absolute displacements are applied first, increments afterwards.
    Detector increments are composed as ``increment.rotation @ previous.rotation``,
    source increments as ``previous.rotation @ increment.rotation``; positions
    are added.
    """

    TYPE_ID = 230

    def __init__(self, detector_displacement: Optional[Location] = None,
                 source_displacement: Optional[Location] = None,
                 detector_displacement_increment: Optional[Location] = None,
                 source_displacement_increment: Optional[Location] = None):
        self._detector_displacement = detector_displacement
        self._source_displacement = source_displacement
        self._detector_increment = detector_displacement_increment
        self._source_increment = source_displacement_increment

    def set_detector_displacement(self, displacement: Location) -> None:
        self._detector_displacement = displacement

    def set_source_displacement(self, displacement: Location) -> None:
        self._source_displacement = displacement

    def increment_detector_displacement(self, increment: Location) -> None:
        self._detector_increment = increment

    def increment_source_displacement(self, increment: Location) -> None:
        self._source_increment = increment

    def prepare(self, system) -> None:
        gantry = system.gantry()
        logger.debug(f"GantryDisplacementParam --- preparing gantry '{gantry.name}'")

        if self._detector_displacement is not None:
            gantry.set_detector_displacement(copy.deepcopy(self._detector_displacement))
        if self._source_displacement is not None:
            gantry.set_source_displacement(copy.deepcopy(self._source_displacement))
        if self._detector_increment is not None:
            previous = gantry.detector_displacement
            gantry.set_detector_displacement(Location(
                previous.position + self._detector_increment.position,
                self._detector_increment.rotation @ previous.rotation,
            ))
        if self._source_increment is not None:
            previous = gantry.source_displacement
            gantry.set_source_displacement(Location(
                previous.position + self._source_increment.position,
                previous.rotation @ self._source_increment.rotation,
            ))

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        for key, location in (('detector displacement', self._detector_displacement),
                              ('source displacement', self._source_displacement),
                              ('detector displacement increment', self._detector_increment),
                              ('source displacement increment', self._source_increment)):
            ret[key] = _location_record(location)
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._detector_displacement = _optional_location(variant.get('detector displacement'))
        self._source_displacement = _optional_location(variant.get('source displacement'))
        self._detector_increment = _optional_location(
            variant.get('detector displacement increment'))
        self._source_increment = _optional_location(variant.get('source displacement increment'))


# sources ----------------------------------------------------------------------

class SourceParam(AbstractPrepareStep):
    """Changes flux modifier, focal spot and energy range restriction of any source."""

    TYPE_ID = 300

    def __init__(self, flux_modifier: Optional[float] = None,
                 focal_spot_size: Optional[Tuple[float, float]] = None,
                 focal_spot_position: Optional[Sequence[float]] = None,
                 energy_range_restriction: Optional[Tuple[float, float]] = None):
        self._flux_modifier = _optional_float(flux_modifier)
        self._focal_spot_size = _optional_pair(focal_spot_size)
        self._focal_spot_position = _optional_vector(focal_spot_position)
        self._energy_range_restriction = (as_sampling_range(energy_range_restriction)
                                          if energy_range_restriction is not None else None)

    def set_flux_modifier(self, modifier: float) -> None:
        self._flux_modifier = float(modifier)

    def set_focal_spot_size(self, width: float, height: float) -> None:
        self._focal_spot_size = (float(width), float(height))

    def set_focal_spot_position(self, x: float, y: float, z: float) -> None:
        self._focal_spot_position = np.array([x, y, z], dtype=np.float64)

    def set_energy_range_restriction(self, energy_range) -> None:
        self._energy_range_restriction = as_sampling_range(energy_range)

    def prepare(self, system) -> None:
        source = system.source()
        logger.debug(
            f"SourceParam --- preparing source '{source.name}': flux modifier "
            f"{self._flux_modifier}, focal spot size {self._focal_spot_size}, "
            f"energy range restriction {self._energy_range_restriction}"
        )
        if self._flux_modifier is not None:
            source.set_flux_modifier(self._flux_modifier)
        if self._focal_spot_size is not None:
            source.set_focal_spot_size(*self._focal_spot_size)
        if self._focal_spot_position is not None:
            source.set_focal_spot_position(*self._focal_spot_position)
        if self._energy_range_restriction is not None:
            source.set_energy_range_restriction(self._energy_range_restriction)

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['flux modifier'] = self._flux_modifier
        ret['focal spot size'] = (list(self._focal_spot_size)
                                  if self._focal_spot_size is not None else None)
        ret['focal spot position'] = (self._focal_spot_position.tolist()
                                      if self._focal_spot_position is not None else None)
        restriction = self._energy_range_restriction
        ret['energy range restriction'] = ([restriction.start, restriction.end]
                                           if restriction is not None else None)
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._flux_modifier = _optional_float(variant.get('flux modifier'))
        self._focal_spot_size = _optional_pair(variant.get('focal spot size'))
        self._focal_spot_position = _optional_vector(variant.get('focal spot position'))
        restriction = variant.get('energy range restriction')
        self._energy_range_restriction = (as_sampling_range(restriction)
                                          if restriction is not None else None)


class XrayLaserParam(SourceParam):
    """`SourceParam` extended by photon energy (keV) and power of an `XrayLaser`."""

    TYPE_ID = 310

    def __init__(self, photon_energy: Optional[float] = None, power: Optional[float] = None,
                 **kwargs):
        super().__init__(**kwargs)
        self._photon_energy = _optional_float(photon_energy)
        self._power = _optional_float(power)

    def set_photon_energy(self, energy: float) -> None:
        self._photon_energy = float(energy)

    def set_power(self, power: float) -> None:
        self._power = float(power)

    def prepare(self, system) -> None:
        super().prepare(system)
        source = system.source()
        logger.debug(
            f"XrayLaserParam --- preparing source '{source.name}': photon energy "
            f"{self._photon_energy}, power {self._power}"
        )
        if self._photon_energy is not None:
            source.set_photon_energy(self._photon_energy)
        if self._power is not None:
            source.set_power(self._power)

    def is_applicable_to(self, system) -> bool:
        return super().is_applicable_to(system) and isinstance(system.sources()[0], XrayLaser)

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['photon energy'] = self._photon_energy
        ret['power'] = self._power
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._photon_energy = _optional_float(variant.get('photon energy'))
        self._power = _optional_float(variant.get('power'))


class XrayTubeParam(SourceParam):
    """`SourceParam` extended by tube voltage (kV) and emission current (mA) of an `XrayTube`."""

    TYPE_ID = 320

    def __init__(self, tube_voltage: Optional[float] = None,
                 emission_current: Optional[float] = None, **kwargs):
        super().__init__(**kwargs)
        self._tube_voltage = _optional_float(tube_voltage)
        self._emission_current = _optional_float(emission_current)

    def set_tube_voltage(self, voltage: float) -> None:
        self._tube_voltage = float(voltage)

    def set_emission_current(self, current: float) -> None:
        self._emission_current = float(current)

    def prepare(self, system) -> None:
        super().prepare(system)
        source = system.source()
        logger.debug(
            f"XrayTubeParam --- preparing source '{source.name}': tube voltage "
            f"{self._tube_voltage}, emission current {self._emission_current}"
        )
        if self._tube_voltage is not None:
            source.set_tube_voltage(self._tube_voltage)
        if self._emission_current is not None:
            source.set_emission_current(self._emission_current)

    def is_applicable_to(self, system) -> bool:
        return super().is_applicable_to(system) and isinstance(system.sources()[0], XrayTube)

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['tube voltage'] = self._tube_voltage
        ret['emission current'] = self._emission_current
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._tube_voltage = _optional_float(variant.get('tube voltage'))
        self._emission_current = _optional_float(variant.get('emission current'))
