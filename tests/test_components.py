"""Tests for system components and their geometry."""

import math

import numpy as np
import pytest

from XCTSystem.components import (
    AttenuationFilter,
    CarmGantry,
    CylindricalDetector,
    FlatPanelDetector,
    GenericDetector,
    GenericGantry,
    GenericSource,
    Location,
    TubularGantry,
    XrayLaser,
    XrayTube,
    rotation_matrix,
)
from XCTSystem.models import (
    ConstantModel,
    FixedXraySpectrumModel,
    IntervalDataSeries,
    KramersLawSpectrumModel,
    SamplingRange,
    StepFunctionModel,
    TabulatedDataModel,
)
from XCTSystem.utils.validation import MissingModelError


class TestGeometry:

    def test_rotation_matrix_is_active(self):
        rotated = rotation_matrix(math.pi / 2.0, 'z') @ np.array([1.0, 0.0, 0.0])
        assert np.allclose(rotated, [0.0, 1.0, 0.0])

    def test_unknown_axis(self):
        with pytest.raises(ValueError):
            rotation_matrix(0.1, 'w')

    def test_location_record(self):
        location = Location([1.0, 2.0, 3.0], rotation_matrix(0.3, 'x'))
        assert Location.parse(location.to_variant()) == location


class TestGantries:

    def test_generic_gantry_displacement_composition(self):
        rot = rotation_matrix(math.pi / 2.0, 'z')
        gantry = GenericGantry(Location([0.0, 0.0, 100.0], rot), Location([0.0, 0.0, -100.0], rot))
        gantry.set_source_displacement(Location([1.0, 0.0, 0.0]))
        gantry.set_detector_displacement(Location([1.0, 0.0, 0.0]))

        assert np.allclose(gantry.source_position(), [0.0, 1.0, 100.0])
        assert np.allclose(gantry.detector_position(), [0.0, -1.0, -100.0])
        assert np.allclose(gantry.source_rotation(), rot)
        assert np.allclose(gantry.detector_rotation(), rot)

    def test_displacement_rotation_order(self):
        nominal = rotation_matrix(0.4, 'x')
        displacement = rotation_matrix(0.2, 'y')
        gantry = GenericGantry(Location(rotation=nominal), Location(rotation=nominal))
        gantry.set_source_displacement(Location(rotation=displacement))
        gantry.set_detector_displacement(Location(rotation=displacement))

        assert np.allclose(gantry.source_rotation(), nominal @ displacement)
        assert np.allclose(gantry.detector_rotation(), displacement @ nominal)

    def test_carm_gantry_locations(self):
        rot = rotation_matrix(math.pi / 2.0, 'x')
        gantry = CarmGantry(800.0, location=Location([0.0, 0.0, 100.0], rot))
        assert gantry.name.startswith('C-arm gantry')
        assert np.allclose(gantry.source_position(), [0.0, 0.0, 100.0])
        assert np.allclose(gantry.source_rotation(), rot)
        # the detector sits at the far end of the arm, along the source's z axis
        assert np.allclose(gantry.detector_position(), [0.0, -800.0, 100.0])
        assert np.allclose(gantry.detector_rotation(), rot.T)

    def test_carm_gantry_setters_and_record(self):
        gantry = CarmGantry()
        assert gantry.c_arm_span == 1000.0
        gantry.set_c_arm_span(500.0)
        gantry.set_location(Location([1.0, 2.0, 3.0]))
        assert np.allclose(gantry.detector_position(), [1.0, 2.0, 503.0])

        record = gantry.to_variant()
        assert record['type-id'] == 210
        assert record['c-arm span'] == 500.0
        restored = CarmGantry()
        assert restored.from_variant(record)
        assert restored.location == gantry.location
        assert restored.c_arm_span == 500.0

    def test_tubular_gantry_positions(self):
        gantry = TubularGantry(1000.0, 550.0)
        assert np.allclose(gantry.source_position(), [550.0, 0.0, 0.0])
        assert np.allclose(gantry.detector_position(), [-450.0, 0.0, 0.0])
        # the source looks towards the iso center
        assert np.allclose(gantry.source_rotation() @ [0.0, 0.0, 1.0], [-1.0, 0.0, 0.0])

    def test_tubular_gantry_rotation_and_pitch(self):
        gantry = TubularGantry(1000.0, 550.0, rotation_angle=math.pi / 2.0, pitch_position=10.0)
        assert np.allclose(gantry.source_position(), [0.0, 550.0, -10.0])
        assert np.allclose(gantry.detector_position(), [0.0, -450.0, -10.0])

    def test_tubular_gantry_detector_rotation_is_transposed_source_rotation(self):
        gantry = TubularGantry(1000.0, 550.0, rotation_angle=0.7, tilt_angle=0.1)
        assert np.allclose(gantry.detector_rotation(), gantry.source_rotation().T)


class TestDetectors:

    def test_flat_panel(self):
        detector = FlatPanelDetector((100, 50), (0.5, 2.0))
        assert detector.nb_detector_modules() == 1
        assert detector.pixel_area() == 1.0
        assert detector.panel_dimensions() == (50.0, 100.0)

    def test_cylindrical_modules(self):
        detector = CylindricalDetector.from_radius_and_fan_angle(
            (10, 4), (1.0, 2.0), 3, 1000.0, math.radians(30.0))
        locations = detector.module_locations()
        assert len(locations) == 3
        assert detector.curvature_radius() == pytest.approx(1000.0)
        assert detector.fan_angle() == pytest.approx(math.radians(30.0))
        assert np.allclose(locations[1].position, [0.0, 0.0, 0.0])
        # every module faces the arc center at (0, 0, -radius)
        for location in locations:
            normal = location.rotation[2]
            to_center = np.array([0.0, 0.0, -1000.0]) - location.position
            assert np.allclose(normal, -to_center / np.linalg.norm(to_center))

    def test_cylindrical_angulation_and_spacing(self):
        angulation = math.radians(1.0)
        detector = CylindricalDetector.from_angulation_and_spacing(
            (16, 64), (1.0, 1.0), 4, angulation, 0.5)
        assert detector.nb_detector_modules() == 4
        assert detector.module_spacing == 0.5
        assert [detector.angulation_of_module(m) for m in range(4)] == pytest.approx(
            [-1.5 * angulation, -0.5 * angulation, 0.5 * angulation, 1.5 * angulation])
        expected_radius = ((0.5 + 16.0 * math.cos(0.5 * angulation))
                           / math.sqrt(2.0 * (1.0 - math.cos(angulation))))
        assert detector.curvature_radius() == pytest.approx(expected_radius)
        assert detector.row_coverage() == 64.0
        assert detector.cone_angle() == pytest.approx(
            2.0 * math.atan(32.0 / expected_radius))

    def test_cylindrical_without_angulation_is_flat(self):
        detector = CylindricalDetector((10, 1), (1.0, 1.0), 2, 0.0, 2.0)
        assert math.isinf(detector.curvature_radius())
        assert detector.cone_angle() == 0.0
        positions = [loc.position.tolist() for loc in detector.module_locations()]
        assert positions == [[-6.0, 0.0, 0.0], [6.0, 0.0, 0.0]]

    def test_cylindrical_record(self):
        detector = CylindricalDetector((8, 2), (1.0, 1.0), 5, 0.05, 0.3, name='Curved')
        record = detector.to_variant()
        assert record['type-id'] == 110
        assert record['generic type-id'] == 100
        assert record['number of modules'] == 5

        restored = CylindricalDetector()
        assert restored.from_variant(record)
        assert restored.name == 'Curved'
        assert restored.module_locations() == detector.module_locations()

    def test_spectral_response_must_be_integrable(self):
        detector = GenericDetector()
        with pytest.raises(TypeError):
            detector.set_spectral_response_model(StepFunctionModel())
        detector.set_spectral_response_model(ConstantModel(0.8))
        assert detector.has_spectral_response_model()

    def test_generic_detector_record(self):
        locations = CylindricalDetector.from_radius_and_fan_angle(
            (8, 2), (1.0, 1.0), 4, 500.0, 0.2).module_locations()
        detector = GenericDetector((8, 2), (1.0, 1.0), locations, name='Curved')
        detector.set_spectral_response_model(ConstantModel(0.9))
        detector.set_skew_coefficient(0.1)

        restored = GenericDetector()
        assert restored.from_variant(detector.to_variant())
        assert restored.name == 'Curved'
        assert restored.module_locations() == locations
        assert restored.spectral_response_model.value_at(1.0) == 0.9
        assert restored.skew_coefficient == 0.1


class TestSources:

    def test_xray_tube_flux_and_range(self):
        tube = XrayTube(tube_voltage=120.0, emission_current=2.0, intensity_constant=50.0)
        assert tube.photon_flux() == 100.0
        assert tube.energy_range() == SamplingRange(0.0, 120.0)
        tube.set_flux_modifier(0.5)
        assert tube.photon_flux() == 50.0

    def test_xray_tube_spectrum_follows_voltage(self):
        tube = XrayTube(tube_voltage=80.0)
        spectrum = tube.spectrum(40)

        assert isinstance(tube.spectrum_model, KramersLawSpectrumModel)
        assert tube.spectrum_model.energy == 80.0
        assert spectrum.integral() == pytest.approx(1.0)
        assert spectrum.sampling_range().end == pytest.approx(80.0)

    def test_xray_tube_requires_xray_spectrum_model(self):
        with pytest.raises(TypeError):
            XrayTube().set_spectrum_model(ConstantModel(1.0))

    def test_energy_range_restriction(self):
        tube = XrayTube(tube_voltage=100.0)
        tube.set_energy_range_restriction((20.0, 60.0))
        spectrum = tube.spectrum(10)
        assert spectrum.samples()[0] == pytest.approx(22.0)
        tube.set_energy_range_restriction(None)
        assert tube.energy_range().start == 0.0

    def test_laser(self):
        laser = XrayLaser(energy=60.0, power=3.0)
        assert laser.photon_flux() == 3.0
        assert laser.spectrum_discretization_hint() == 1
        spectrum = laser.spectrum(1)
        assert spectrum.samples().tolist() == [60.0]
        assert spectrum.values().tolist() == [1.0]

    def test_laser_with_fixed_spectrum_is_not_updated(self, caplog):
        laser = XrayLaser(energy=60.0, power=3.0)
        laser.set_spectrum_model(FixedXraySpectrumModel(TabulatedDataModel({50.0: 1.0, 70.0: 1.0})))
        laser.spectrum(1)
        assert 'not supported' not in caplog.text

    def test_source_without_spectrum_model(self):
        with pytest.raises(MissingModelError):
            GenericSource().spectrum(10)

    def test_generic_source_from_sampled_spectrum(self):
        series = IntervalDataSeries.sampled_from_model(ConstantModel(1.0), 10.0, 50.0, 4)
        source = GenericSource()
        source.set_spectrum(series, update_flux=True)

        assert isinstance(source.spectrum_model, FixedXraySpectrumModel)
        assert source.photon_flux() == pytest.approx(40.0)
        assert source.energy_range().start == pytest.approx(10.0)
        assert source.energy_range().end == pytest.approx(50.0)

    def test_negative_flux_modifier_warns(self, caplog):
        source = GenericSource(photon_flux=1.0)
        source.set_flux_modifier(-1.0)
        assert source.flux_modifier == -1.0
        assert 'negative' in caplog.text


class TestAttenuationFilter:

    def test_transmission(self):
        aluminium = AttenuationFilter(ConstantModel(1.0), thickness=10.0, density=1.0)
        assert aluminium.transmission(50.0, 1.0) == pytest.approx(math.exp(-1.0))

    def test_missing_model(self):
        with pytest.raises(MissingModelError):
            AttenuationFilter(thickness=1.0, density=1.0).transmission(50.0, 1.0)

    def test_flux_and_spectrum(self):
        series = IntervalDataSeries.sampled_from_model(ConstantModel(1.0), 0.0, 10.0, 10)
        series.normalize_by_integral()
        attenuation = ConstantModel(0.0) + ConstantModel(1.0)
        with pytest.raises(TypeError):
            AttenuationFilter(attenuation)

        filt = AttenuationFilter(ConstantModel(2.0), thickness=5.0, density=1.0)
        assert filt.modified_flux(100.0, series) == pytest.approx(100.0 * math.exp(-1.0))
        assert filt.modified_spectrum(series).integral() == pytest.approx(1.0)

    def test_flux_with_vanishing_input_spectrum(self, caplog):
        filt = AttenuationFilter(ConstantModel(2.0), thickness=5.0, density=1.0)
        tiny = IntervalDataSeries(1.0, [0.5, 1.5], [5.0e-14, 5.0e-14])
        attenuated_integral = tiny.integral() * math.exp(-1.0)

        assert filt.modified_flux(100.0, tiny) == pytest.approx(100.0 * attenuated_integral)
        assert 'Still assuming normalized spectrum' in caplog.text

        zero = IntervalDataSeries(1.0, [0.5, 1.5], [0.0, 0.0])
        assert filt.modified_flux(100.0, zero) == 0.0

    def test_negative_density_warns(self, caplog):
        AttenuationFilter(ConstantModel(1.0), thickness=1.0, density=-2.0)
        assert 'density' in caplog.text


def test_default_names_are_numbered():
    class CustomDetector(FlatPanelDetector):
        DEFAULT_NAME = 'Custom detector'

    assert CustomDetector().name == 'Custom detector'
    assert CustomDetector().name == 'Custom detector (2)'


def test_clone_is_unowned_deep_copy(tube_system):
    detector = tube_system.detector()
    copy = detector.clone()
    assert copy.owner() is None
    assert detector.owner() is tube_system
    copy.set_pixel_dimensions(5.0, 5.0)
    assert detector.pixel_dimensions == (1.0, 1.0)
