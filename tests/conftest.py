"""Shared fixtures for the XCTSystem test suite."""

import pytest

from XCTSystem.core.registration import register_all_types
from XCTSystem.acquisition.ct_system import SimpleCTSystem
from XCTSystem.components import FlatPanelDetector, GenericSource, TubularGantry, XrayTube
from XCTSystem.models import ConstantModel, TabulatedDataModel


register_all_types()


@pytest.fixture
def flat_panel():
    return FlatPanelDetector((10, 10), (1.0, 1.0), name='Panel')


@pytest.fixture
def tubular_gantry():
    return TubularGantry(1000.0, 500.0, name='Gantry')


@pytest.fixture
def xray_tube():
    return XrayTube(tube_voltage=100.0, emission_current=2.0, intensity_constant=1000.0,
                    name='Tube')


@pytest.fixture
def tube_system(flat_panel, tubular_gantry, xray_tube):
    return SimpleCTSystem(flat_panel, tubular_gantry, xray_tube, name='Tube system')


@pytest.fixture
def generic_source():
    source = GenericSource(spectrum_model=ConstantModel(1.0), photon_flux=500.0, name='Source')
    source.set_energy_range((10.0, 90.0))
    return source


@pytest.fixture
def linear_table():
    """Tabulated model of f(x) = x on [0, 10]."""
    return TabulatedDataModel({0.0: 0.0, 10.0: 10.0})
