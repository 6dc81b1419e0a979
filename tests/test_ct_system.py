"""Tests for the CT system aggregate and simple systems."""

import pytest

from XCTSystem.acquisition import CTSystem, SimpleCTSystem
from XCTSystem.core.serialization import parse_misc_object
from XCTSystem.components import (
    AttenuationFilter,
    FlatPanelDetector,
    GenericBeamModifier,
    GenericSource,
    TubularGantry,
    XrayTube,
)
from XCTSystem.models import ConstantModel
from XCTSystem.utils.validation import SystemNotSimpleError


@pytest.fixture
def full_system():
    system = CTSystem('Full')
    system << FlatPanelDetector((4, 4), (1.0, 1.0)) << TubularGantry(1000.0, 500.0)
    system << XrayTube() << AttenuationFilter(ConstantModel(0.1), 1.0, 1.0)
    return system


def test_predicates(full_system):
    assert full_system.is_valid()
    assert full_system.is_simple()
    assert full_system.nb_components() == 4
    assert len(full_system.modifiers()) == 1

    full_system.add_component(GenericSource())
    assert full_system.is_valid()
    assert not full_system.is_simple()

    empty = CTSystem()
    assert empty.is_empty()
    assert not empty.is_valid()


def test_adding_none_is_ignored(full_system):
    full_system.add_component(None)
    assert full_system.nb_components() == 4


def test_component_ownership(full_system):
    detector = full_system.detectors()[0]
    assert detector.owner() is full_system

    other = CTSystem('Other')
    with pytest.raises(ValueError):
        other.add_component(detector)

    full_system.add_component(detector)
    assert full_system.nb_components() == 4

    full_system.remove_component(detector)
    assert detector.owner() is None
    assert not full_system.is_valid()
    other.add_component(detector)
    assert detector.owner() is other


def test_clone_copies_components(full_system):
    clone = full_system.clone()
    assert clone.name == full_system.name
    assert clone.nb_components() == full_system.nb_components()
    for original, copy in zip(full_system.components(), clone.components()):
        assert original is not copy
        assert copy.owner() is clone
        assert copy.to_variant() == original.to_variant()


def test_components_list_is_a_copy(full_system):
    full_system.components().clear()
    assert full_system.nb_components() == 4


def test_default_system_names_are_numbered():
    first = CTSystem()
    second = CTSystem()
    assert first.name.startswith(CTSystem.DEFAULT_NAME)
    assert second.name != first.name


def test_overview_and_info(full_system):
    overview = full_system.overview()
    assert 'Number of components: 4' in overview
    assert 'System is simple: true' in overview
    assert full_system.info().startswith('CT system: Full')


def test_record_round_trip(full_system):
    record = full_system.to_variant()
    assert record['type-id'] == 10
    assert [c['type-id'] for c in record['components']] == [120, 220, 320, 410]

    restored = parse_misc_object(record)
    assert isinstance(restored, CTSystem)
    assert restored.name == 'Full'
    assert restored.to_variant() == record


def test_unknown_components_are_skipped(full_system, caplog):
    record = full_system.to_variant()
    record['components'][3]['type-id'] = 4711

    restored = parse_misc_object(record)
    assert restored.nb_components() == 3
    assert 'unknown type' in caplog.text


def test_unknown_operand_in_detector_response(full_system, caplog):
    full_system.detectors()[0].set_spectral_response_model(ConstantModel(0.5))
    record = full_system.to_variant()
    response = (ConstantModel(0.5) * ConstantModel(2.0)).to_variant()
    response['parameters']['RHS model']['type-id'] = 4242
    record['components'][0]['spectral response model'] = response

    restored = parse_misc_object(record)
    assert restored.nb_components() == 4
    assert not restored.detectors()[0].has_spectral_response_model()
    assert 'Could not restore spectral response model' in caplog.text

    target = CTSystem('target')
    target << GenericBeamModifier()
    assert target.from_variant(record)
    assert target.name == 'Full'
    assert target.nb_components() == 4


class TestSimpleCTSystem:

    def test_components_are_cloned(self, flat_panel, tubular_gantry, xray_tube):
        system = SimpleCTSystem(flat_panel, tubular_gantry, xray_tube)
        assert system.is_simple()
        assert system.detector() is not flat_panel
        assert flat_panel.owner() is None
        assert system.detector().owner() is system

    def test_from_ct_system(self, full_system):
        simple = SimpleCTSystem.from_ct_system(full_system)
        assert simple.nb_components() == 4
        assert simple.modifiers()[0] is not full_system.modifiers()[0]

    def test_from_non_simple_system(self, full_system):
        full_system.add_component(XrayTube())
        with pytest.raises(SystemNotSimpleError):
            SimpleCTSystem.from_ct_system(full_system)

    def test_arbitrary_add_and_remove_are_rejected(self, tube_system):
        with pytest.raises(TypeError):
            tube_system.add_component(GenericSource())
        with pytest.raises(TypeError):
            tube_system.remove_component(tube_system.source())

    def test_add_beam_modifier(self, tube_system):
        first = GenericBeamModifier(name='first')
        second = GenericBeamModifier(name='second')
        tube_system.add_beam_modifier(first)
        tube_system.add_beam_modifier(second)
        assert [m.name for m in tube_system.modifiers()] == ['first', 'second']
        with pytest.raises(TypeError):
            tube_system.add_beam_modifier(GenericSource())

    def test_replace_source(self, tube_system, generic_source):
        tube_system.replace_source(generic_source)
        assert tube_system.is_simple()
        assert tube_system.source() is generic_source
        assert generic_source.owner() is tube_system

    def test_record_round_trip(self, tube_system):
        restored = parse_misc_object(tube_system.to_variant())
        assert isinstance(restored, SimpleCTSystem)
        assert restored.is_simple()
        assert restored.source().photon_flux() == tube_system.source().photon_flux()
