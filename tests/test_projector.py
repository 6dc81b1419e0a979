"""Tests for the forward-projection boundary."""

import numpy as np
import pytest

from XCTSystem.acquisition import AcquisitionSetup
from XCTSystem.projectors import AbstractProjector, CompositeVolume, ProjectionData, VoxelVolume
from XCTSystem.utils.validation import ProjectorNotConfiguredError


class SumProjector(AbstractProjector):
    """Writes the total attenuation of the volume into every pixel."""

    def configure(self, setup):
        self._setup = setup

    def project(self, volume):
        self._require_configured()
        ret = ProjectionData.for_setup(self._setup)
        total = float(volume.data.sum() * np.prod(volume.voxel_size))
        for view in ret.views():
            view += total
        return ret


class SquaredSumProjector(SumProjector):

    def is_linear(self):
        return False

    def project(self, volume):
        ret = super().project(volume)
        return ProjectionData([view ** 2 for view in ret.views()])


@pytest.fixture
def setup(tube_system):
    return AcquisitionSetup(tube_system, nb_views=3)


def test_voxel_volume():
    volume = VoxelVolume(np.ones((4, 5, 6)), voxel_size=(0.5, 0.5, 2.0))
    assert volume.dimensions == (4, 5, 6)
    assert volume.total_size() == (2.0, 2.5, 12.0)
    with pytest.raises(ValueError):
        VoxelVolume(np.ones((4, 5)))


def test_projection_data_shape(setup):
    projections = ProjectionData.for_setup(setup)
    assert projections.nb_views() == 3
    assert projections.view_dimensions() == (1, 10, 10)
    assert projections.numpy().shape == (3, 1, 10, 10)


def test_projection_data_addition():
    a = ProjectionData.zeros(2, 1, 2, 3)
    b = ProjectionData([np.ones((1, 2, 3)), 2 * np.ones((1, 2, 3))])

    total = a + b
    assert np.allclose(total.view(1), 2.0)
    a += b
    assert np.allclose(a.view(0), 1.0)

    with pytest.raises(ValueError):
        a + ProjectionData.zeros(1, 1, 2, 3)


def test_project_before_configure():
    with pytest.raises(ProjectorNotConfiguredError):
        SumProjector().project(VoxelVolume(np.ones((2, 2, 2))))


def test_linear_composite_projection_is_sum_of_parts(setup):
    projector = SumProjector()
    projector.configure(setup)
    assert projector.is_configured()

    first = VoxelVolume(np.ones((2, 2, 2)))
    second = VoxelVolume(np.full((3, 3, 3), 0.5), voxel_size=(2.0, 2.0, 2.0))
    composite = CompositeVolume([first, second])

    expected = projector.project(first) + projector.project(second)
    result = projector.project_composite(composite)
    assert np.allclose(result.numpy(), expected.numpy())
    assert np.allclose(result.view(0), 8.0 + 108.0)


def test_empty_composite(setup):
    projector = SumProjector()
    projector.configure(setup)
    with pytest.raises(ValueError):
        projector.project_composite(CompositeVolume())


def test_non_linear_projector_needs_own_composite_projection(setup):
    projector = SquaredSumProjector()
    projector.configure(setup)
    composite = CompositeVolume()
    composite.add_sub_volume(VoxelVolume(np.ones((2, 2, 2))))
    with pytest.raises(NotImplementedError):
        projector.project_composite(composite)
