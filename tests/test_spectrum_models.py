"""Tests for the X-ray spectrum models."""

import math

import numpy as np
import pytest

from XCTSystem.core.serialization import parse_data_model
from XCTSystem.models import (
    FixedXraySpectrumModel,
    HeuristicCubicSpectrumModel,
    KramersLawSpectrumModel,
    TabulatedDataModel,
    XrayLaserSpectrumModel,
    XraySpectrumTabulatedModel,
)


def _midpoint_integral(model, lower, upper, n=20000):
    edges = np.linspace(lower, upper, n + 1)
    centers = 0.5 * (edges[1:] + edges[:-1])
    return sum(model.value_at(float(c)) for c in centers) * (upper - lower) / n


def test_kramers_law():
    model = KramersLawSpectrumModel(100.0)
    assert model(50.0) == pytest.approx(1.0)
    assert model(100.0) == 0.0
    assert model(0.0) == 0.0
    assert model.bin_integral(50.0, 10.0) == pytest.approx(100.0 * math.log(55.0 / 45.0) - 10.0)
    assert model.bin_integral(150.0, 10.0) == 0.0


def test_kramers_bin_integral_is_clamped_to_tube_voltage():
    model = KramersLawSpectrumModel(100.0)
    assert model.bin_integral(100.0, 10.0) == pytest.approx(model.bin_integral(97.5, 5.0))


def test_heuristic_cubic_integral_matches_numerical_integration():
    model = HeuristicCubicSpectrumModel(80.0)
    assert model(80.0) == 0.0
    assert model.bin_integral(40.0, 10.0) == pytest.approx(
        _midpoint_integral(model, 35.0, 45.0), rel=1e-6)
    assert model.bin_integral(78.0, 10.0) == pytest.approx(
        _midpoint_integral(model, 73.0, 80.0), rel=1e-6)


def test_laser_line():
    model = XrayLaserSpectrumModel(60.0)
    assert model(60.0) == 1.0
    assert model(61.0) == 0.0
    assert model.bin_integral(60.0, 1.0) == 1.0
    assert model.bin_integral(65.0, 1.0) == 0.0


def test_tabulated_spectrum_interpolates_between_voltages():
    model = XraySpectrumTabulatedModel()
    model.add_lookup_table(120.0, TabulatedDataModel({0.0: 3.0, 100.0: 3.0}))
    model.add_lookup_table(80.0, TabulatedDataModel({0.0: 1.0, 100.0: 1.0}))

    model.set_energy(100.0)
    assert model(50.0) == pytest.approx(2.0)
    assert model.bin_integral(50.0, 2.0) == pytest.approx(4.0)

    model.set_energy(80.0)
    assert model(50.0) == pytest.approx(1.0)


def test_tabulated_spectrum_outside_tabulated_range():
    model = XraySpectrumTabulatedModel(130.0)
    model.add_lookup_table(80.0, TabulatedDataModel({0.0: 1.0}))
    model.add_lookup_table(120.0, TabulatedDataModel({0.0: 1.0}))

    assert not model.has_tabulated_data_for(130.0)
    with pytest.raises(ValueError):
        model(10.0)


def test_tabulated_spectrum_record_round_trip():
    model = XraySpectrumTabulatedModel(90.0)
    model.add_lookup_table(80.0, TabulatedDataModel({0.0: 1.0, 50.0: 2.0}))
    model.add_lookup_table(100.0, TabulatedDataModel({0.0: 3.0, 50.0: 4.0}))

    restored = parse_data_model(model.to_variant())
    assert restored.energy == 90.0
    assert sorted(restored.lookup_tables()) == [80.0, 100.0]
    assert restored(25.0) == pytest.approx(model(25.0))


def test_fixed_spectrum_ignores_energy(caplog):
    model = FixedXraySpectrumModel(TabulatedDataModel({0.0: 1.0, 10.0: 1.0}))
    model.set_energy(50.0)

    assert model.energy == 0.0
    assert model(5.0) == 1.0
    assert 'not supported' in caplog.text


def test_fixed_spectrum_uses_first_table_only(caplog):
    record = {
        'type-id': 71,
        'name': 'fixed',
        'parameters': {
            'energy': 0.0,
            'lookup tables': [
                {'table voltage': 0.0, 'table data': {'data': [[0.0, 1.0], [10.0, 1.0]]}},
                {'table voltage': 10.0, 'table data': {'data': [[0.0, 5.0], [10.0, 5.0]]}},
            ],
        },
    }
    model = parse_data_model(record)
    assert isinstance(model, FixedXraySpectrumModel)
    assert model(5.0) == 1.0
    assert 'first' in caplog.text
