"""Forward-projection interface."""

from .abstract_projector import AbstractProjector, CompositeVolume, ProjectionData, VoxelVolume

__all__ = ['AbstractProjector', 'CompositeVolume', 'ProjectionData', 'VoxelVolume']
