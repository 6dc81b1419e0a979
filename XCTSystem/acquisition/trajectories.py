"""Scan trajectories: preparation protocols that move the gantry from view to view.

Helical and axial scans drive a `TubularGantry`; the remaining trajectories
place the source end of a `CarmGantry` on a circle of radius
`source_to_isocenter` (mm) around the world origin. All angles in rad.
"""

import math
from typing import List

import numpy as np

from .preparation_protocols import AbstractPreparationProtocol
from .prepare_steps import AbstractPrepareStep, CarmGantryParam, TubularGantryParam
from ..components.detectors import CylindricalDetector, FlatPanelDetector
from ..components.geometry import Location, rotation_matrix
from ..utils.logging import get_logger


logger = get_logger()


def _carm_applicable(setup) -> bool:
    return setup.system() is not None and CarmGantryParam().is_applicable_to(setup.system())


def _tubular_applicable(setup) -> bool:
    return setup.system() is not None and TubularGantryParam().is_applicable_to(setup.system())


def _fixed_rotation(start_angle: float) -> np.ndarray:
    # at start angle 0 the source sits on the +x axis and looks towards the origin
    return rotation_matrix(math.pi / 2.0 + start_angle, 'z') @ rotation_matrix(-math.pi / 2.0, 'x')


def _carm_step(rotation: np.ndarray, source_to_isocenter: float,
               z_offset: float = 0.0) -> CarmGantryParam:
    position = rotation @ np.array([0.0, 0.0, -source_to_isocenter])
    position[2] += z_offset
    return CarmGantryParam(location=Location(position, rotation))


class HelicalTrajectory(AbstractPreparationProtocol):
    """Helical scan on a tubular gantry.

    View `v` is acquired at rotation angle ``v * angle_increment + start_angle``
    and table pitch position ``v * pitch_increment + start_pitch`` (mm).
    A zero pitch increment yields an axial scan.
    """

    def __init__(self, angle_increment: float, pitch_increment: float = 0.0,
                 start_pitch: float = 0.0, start_angle: float = 0.0):
        self.angle_increment = float(angle_increment)
        self.pitch_increment = float(pitch_increment)
        self.start_pitch = float(start_pitch)
        self.start_angle = float(start_angle)

    def prepare_steps(self, view_nb: int, setup) -> List[AbstractPrepareStep]:
        rotation = view_nb * self.angle_increment + self.start_angle
        pitch = view_nb * self.pitch_increment + self.start_pitch
        logger.debug(f"HelicalTrajectory --- add prepare steps for view: {view_nb}, "
                     f"rotation: {rotation}, pitch: {pitch}")
        return [TubularGantryParam(rotation_angle=rotation, pitch_position=pitch)]

    def is_applicable_to(self, setup) -> bool:
        return _tubular_applicable(setup)


class AxialScanTrajectory(AbstractPreparationProtocol):
    """Full rotation of a tubular gantry, evenly divided over all views."""

    def __init__(self, start_angle: float = 0.0):
        self.start_angle = float(start_angle)

    def prepare_steps(self, view_nb: int, setup) -> List[AbstractPrepareStep]:
        nb_views = setup.nb_views()
        increment = 2.0 * math.pi / nb_views if nb_views > 0 else 0.0
        rotation = view_nb * increment + self.start_angle
        logger.debug(f"AxialScanTrajectory --- add prepare steps for view: {view_nb}, "
                     f"rotation: {rotation}")
        return [TubularGantryParam(rotation_angle=rotation)]

    def is_applicable_to(self, setup) -> bool:
        return _tubular_applicable(setup)


class ShortScanTrajectory(AbstractPreparationProtocol):
    """Circular C-arm scan over `angle_span`, first and last view included.

    A negative `angle_span` selects the minimal short scan span of
    ``pi + fan_angle``, with the fan angle computed from the detector of the
    setup's system.
    """

    def __init__(self, source_to_isocenter: float, start_angle: float = 0.0,
                 angle_span: float = -1.0):
        self.source_to_isocenter = float(source_to_isocenter)
        self.start_angle = float(start_angle)
        self.angle_span = float(angle_span)

    @staticmethod
    def fan_angle(setup) -> float:
        """Full fan angle (rad) covered by the detector as seen from the source.

        The relevant detector width is the chord of a cylindrical detector or
        the width of a flat panel; other detectors yield 0.
        """
        system = setup.system()
        detector = system.detector()
        if isinstance(detector, CylindricalDetector):
            width = 2.0 * detector.curvature_radius() * math.sin(0.5 * detector.fan_angle())
        elif isinstance(detector, FlatPanelDetector):
            width = detector.panel_dimensions()[0]
        else:
            width = 0.0
        return 2.0 * math.atan(0.5 * width / system.gantry().c_arm_span)

    def prepare_steps(self, view_nb: int, setup) -> List[AbstractPrepareStep]:
        span = self.angle_span if self.angle_span >= 0.0 else math.pi + self.fan_angle(setup)
        nb_views = setup.nb_views()
        increment = span / (nb_views - 1) if nb_views > 1 else 0.0
        logger.debug(f"ShortScanTrajectory --- add prepare steps for view: {view_nb}, "
                     f"angle span: {span}")

        rotation = rotation_matrix(view_nb * increment, 'z') @ _fixed_rotation(self.start_angle)
        return [_carm_step(rotation, self.source_to_isocenter)]

    def is_applicable_to(self, setup) -> bool:
        return _carm_applicable(setup)


class WobbleTrajectory(AbstractPreparationProtocol):
    """Circular C-arm scan with a sinusoidal tilt of the arm.

    The arm tilts by up to `wobble_angle` about the source's x axis and
    completes `wobble_freq` oscillations over the whole scan.
    """

    def __init__(self, angle_span: float, source_to_isocenter: float, start_angle: float = 0.0,
                 wobble_angle: float = math.radians(15.0), wobble_freq: float = 1.0):
        self.angle_span = float(angle_span)
        self.source_to_isocenter = float(source_to_isocenter)
        self.start_angle = float(start_angle)
        self.wobble_angle = float(wobble_angle)
        self.wobble_freq = float(wobble_freq)

    def prepare_steps(self, view_nb: int, setup) -> List[AbstractPrepareStep]:
        nb_views = setup.nb_views()
        increment = self.angle_span / (nb_views - 1) if nb_views > 1 else 0.0
        phase = math.sin(view_nb / nb_views * 2.0 * math.pi * self.wobble_freq)

        rotation = (rotation_matrix(view_nb * increment, 'z')
                    @ _fixed_rotation(self.start_angle)
                    @ rotation_matrix(phase * self.wobble_angle, 'x'))
        return [_carm_step(rotation, self.source_to_isocenter)]

    def is_applicable_to(self, setup) -> bool:
        return _carm_applicable(setup)


class CirclePlusLineTrajectory(AbstractPreparationProtocol):
    """Circular C-arm scan followed by a linear scan along z.

    The last ``nb_line = floor(nb_views * fraction_of_views_for_line)`` views
    form the line: the arm stays at the center of the circular arc and moves
    along z in steps of ``line_length / (nb_line - 1)`` (mm), starting
    ``nb_line / 2`` steps below the plane of the circle.
    """

    def __init__(self, angle_span: float, source_to_isocenter: float, line_length: float,
                 fraction_of_views_for_line: float = 0.5, start_angle: float = 0.0):
        self.angle_span = float(angle_span)
        self.source_to_isocenter = float(source_to_isocenter)
        self.line_length = float(line_length)
        self.fraction_of_views_for_line = float(fraction_of_views_for_line)
        self.start_angle = float(start_angle)

    def prepare_steps(self, view_nb: int, setup) -> List[AbstractPrepareStep]:
        nb_views = setup.nb_views()
        nb_line = int(math.floor(nb_views * self.fraction_of_views_for_line))
        nb_circle = nb_views - nb_line
        fixed = _fixed_rotation(self.start_angle)

        if view_nb < nb_circle:
            increment = self.angle_span / (nb_circle - 1) if nb_circle > 1 else 0.0
            rotation = rotation_matrix(view_nb * increment, 'z') @ fixed
            return [_carm_step(rotation, self.source_to_isocenter)]

        line_view = view_nb - nb_circle
        increment = self.line_length / (nb_line - 1) if nb_line > 1 else 0.0
        rotation = rotation_matrix(0.5 * self.angle_span, 'z') @ fixed
        return [_carm_step(rotation, self.source_to_isocenter,
                           (line_view - 0.5 * nb_line) * increment)]

    def is_applicable_to(self, setup) -> bool:
        return _carm_applicable(setup)
