"""Tests for preparation protocols and scan trajectories."""

import math

import numpy as np
import pytest

from XCTSystem.acquisition import (
    AcquisitionSetup,
    AxialScanTrajectory,
    CarmGantryParam,
    CirclePlusLineTrajectory,
    CTSystemBuilder,
    FlyingFocalSpot,
    GenericCarmCT,
    HelicalTrajectory,
    ShortScanTrajectory,
    SimpleCTSystem,
    SourceParam,
    TubeCurrentModulation,
    TubularGantryParam,
    WobbleTrajectory,
    XrayTubeParam,
)
from XCTSystem.components import CarmGantry, CylindricalDetector, GenericDetector, XrayLaser, XrayTube


@pytest.fixture
def carm_system():
    return CTSystemBuilder.create_system(GenericCarmCT())


def source_positions(setup):
    positions = []
    for view in range(setup.nb_views()):
        setup.prepare_view(view)
        positions.append(setup.system().gantry().source_position())
    return np.array(positions)


class TestApplyPreparationProtocol:

    def test_steps_are_appended_to_every_view(self, tube_system):
        setup = AcquisitionSetup(tube_system, nb_views=3)
        setup.add_prepare_step(0, SourceParam(flux_modifier=0.5))
        setup.apply_preparation_protocol(HelicalTrajectory(0.1))

        assert [view.nb_prepare_steps() for view in setup.views()] == [2, 1, 1]
        assert isinstance(setup.view(0).prepare_steps[1], TubularGantryParam)
        assert setup.is_valid()

    def test_without_views(self, tube_system, caplog):
        setup = AcquisitionSetup(tube_system)
        setup.apply_preparation_protocol(HelicalTrajectory(0.1))
        assert setup.nb_views() == 0
        assert 'Number of views is 0' in caplog.text

    def test_protocol_not_applicable(self, tube_system, caplog):
        setup = AcquisitionSetup(tube_system, nb_views=2)
        setup.apply_preparation_protocol(ShortScanTrajectory(500.0))
        assert all(view.nb_prepare_steps() == 0 for view in setup.views())
        assert 'not applicable' in caplog.text

    def test_setup_without_system(self, caplog):
        setup = AcquisitionSetup(nb_views=2)
        setup.apply_preparation_protocol(AxialScanTrajectory())
        assert setup.view(0).nb_prepare_steps() == 0
        assert 'not applicable' in caplog.text


class TestTubularTrajectories:

    def test_helical_trajectory(self, tube_system):
        setup = AcquisitionSetup(tube_system, nb_views=4)
        setup.apply_preparation_protocol(
            HelicalTrajectory(0.25, pitch_increment=2.0, start_pitch=-3.0, start_angle=0.5))

        setup.prepare_view(3)
        gantry = setup.system().gantry()
        assert gantry.rotation_angle == pytest.approx(1.25)
        assert gantry.pitch_position == pytest.approx(3.0)
        # the original system is untouched
        assert tube_system.gantry().rotation_angle == 0.0

    def test_helical_trajectory_needs_tubular_gantry(self, carm_system):
        setup = AcquisitionSetup(carm_system, nb_views=2)
        assert not HelicalTrajectory(0.1).is_applicable_to(setup)

    def test_axial_scan_covers_full_circle(self, tube_system):
        setup = AcquisitionSetup(tube_system, nb_views=4)
        setup.apply_preparation_protocol(AxialScanTrajectory(start_angle=0.1))

        angles = [view.prepare_steps[0].rotation_angle for view in setup.views()]
        assert angles == pytest.approx([0.1, 0.1 + math.pi / 2.0, 0.1 + math.pi,
                                        0.1 + 1.5 * math.pi])
        assert all(view.prepare_steps[0].pitch_position is None for view in setup.views())


class TestShortScanTrajectory:

    def test_explicit_angle_span(self, carm_system):
        setup = AcquisitionSetup(carm_system, nb_views=3)
        setup.apply_preparation_protocol(ShortScanTrajectory(600.0, angle_span=math.pi))
        assert all(isinstance(view.prepare_steps[0], CarmGantryParam) for view in setup.views())

        positions = source_positions(setup)
        assert np.allclose(positions, [[600.0, 0.0, 0.0], [0.0, 600.0, 0.0], [-600.0, 0.0, 0.0]])

        gantry = setup.system().gantry()
        # the detector faces the source across the iso center
        assert np.allclose(gantry.detector_position(), [400.0, 0.0, 0.0])

    def test_start_angle(self, carm_system):
        setup = AcquisitionSetup(carm_system, nb_views=2)
        setup.apply_preparation_protocol(
            ShortScanTrajectory(600.0, start_angle=math.pi / 2.0, angle_span=math.pi))
        assert np.allclose(source_positions(setup), [[0.0, 600.0, 0.0], [0.0, -600.0, 0.0]])

    def test_flat_panel_fan_angle(self, carm_system):
        setup = AcquisitionSetup(carm_system, nb_views=5)
        # 320 mm wide panel at 1000 mm from the source
        fan_angle = 2.0 * math.atan(0.16)
        assert ShortScanTrajectory.fan_angle(setup) == pytest.approx(fan_angle)

        setup.apply_preparation_protocol(ShortScanTrajectory(600.0))
        span = math.pi + fan_angle
        assert np.allclose(source_positions(setup)[-1],
                           [600.0 * math.cos(span), 600.0 * math.sin(span), 0.0])

    def test_cylindrical_detector_fan_angle(self):
        detector = CylindricalDetector.from_radius_and_fan_angle(
            (16, 64), (1.0, 1.0), 20, 1000.0, 0.4)
        system = SimpleCTSystem(detector, CarmGantry(1000.0), XrayTube())
        setup = AcquisitionSetup(system, nb_views=2)
        assert ShortScanTrajectory.fan_angle(setup) == pytest.approx(2.0 * math.atan(math.sin(0.2)))

    def test_other_detectors_have_no_fan_angle(self):
        system = SimpleCTSystem(GenericDetector(), CarmGantry(), XrayTube())
        setup = AcquisitionSetup(system, nb_views=2)
        assert ShortScanTrajectory.fan_angle(setup) == 0.0

        setup.apply_preparation_protocol(ShortScanTrajectory(500.0))
        assert np.allclose(source_positions(setup)[-1], [-500.0, 0.0, 0.0])


class TestCarmTrajectories:

    def test_wobble_trajectory(self, carm_system):
        wobble = 0.2
        setup = AcquisitionSetup(carm_system, nb_views=4)
        setup.apply_preparation_protocol(
            WobbleTrajectory(math.pi, 500.0, wobble_angle=wobble, wobble_freq=1.0))

        positions = source_positions(setup)
        assert np.allclose(np.linalg.norm(positions, axis=1), 500.0)
        assert positions[:, 2].tolist() == pytest.approx(
            [0.0, -500.0 * math.sin(wobble), 0.0, 500.0 * math.sin(wobble)], abs=1e-9)

    def test_circle_plus_line_trajectory(self, carm_system):
        setup = AcquisitionSetup(carm_system, nb_views=6)
        setup.apply_preparation_protocol(CirclePlusLineTrajectory(math.pi, 500.0, 100.0))

        positions = source_positions(setup)
        assert np.allclose(positions[:3], [[500.0, 0.0, 0.0], [0.0, 500.0, 0.0],
                                           [-500.0, 0.0, 0.0]])
        assert np.allclose(positions[3:], [[0.0, 500.0, -75.0], [0.0, 500.0, -25.0],
                                           [0.0, 500.0, 25.0]])

    def test_carm_trajectories_need_carm_gantry(self, tube_system):
        setup = AcquisitionSetup(tube_system, nb_views=2)
        assert not WobbleTrajectory(math.pi, 500.0).is_applicable_to(setup)
        assert not CirclePlusLineTrajectory(math.pi, 500.0, 10.0).is_applicable_to(setup)


class TestSourceProtocols:

    def test_flying_focal_spot(self, tube_system):
        setup = AcquisitionSetup(tube_system, nb_views=3)
        protocol = FlyingFocalSpot.two_alternating_spots([0.0, 0.5, 0.0], [0.0, -0.5, 0.0], 3)
        setup.apply_preparation_protocol(protocol)

        assert all(type(view.prepare_steps[0]) is SourceParam for view in setup.views())
        spots = []
        for view in range(3):
            setup.prepare_view(view)
            spots.append(setup.system().source().focal_spot_position.tolist())
        assert spots == [[0.0, 0.5, 0.0], [0.0, -0.5, 0.0], [0.0, 0.5, 0.0]]

    def test_flying_focal_spot_needs_one_position_per_view(self, tube_system):
        setup = AcquisitionSetup(tube_system, nb_views=3)
        protocol = FlyingFocalSpot([[0.0, 0.0, 1.0], [0.0, 0.0, -1.0]])
        assert not protocol.is_applicable_to(setup)
        setup.apply_preparation_protocol(protocol)
        assert setup.view(0).nb_prepare_steps() == 0

    def test_tube_current_modulation(self, tube_system):
        setup = AcquisitionSetup(tube_system, nb_views=3)
        setup.apply_preparation_protocol(TubeCurrentModulation([1.0, 2.0, 4.0]))

        assert isinstance(setup.view(2).prepare_steps[0], XrayTubeParam)
        setup.prepare_view(2)
        assert setup.system().source().emission_current == 4.0
        assert setup.system().source().tube_voltage == 100.0

    def test_tube_current_modulation_needs_xray_tube(self, flat_panel, tubular_gantry):
        system = SimpleCTSystem(flat_panel, tubular_gantry, XrayLaser(energy=60.0, power=1.0))
        setup = AcquisitionSetup(system, nb_views=2)
        assert not TubeCurrentModulation([1.0, 2.0]).is_applicable_to(setup)
