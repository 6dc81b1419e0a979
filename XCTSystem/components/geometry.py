"""Locations and rotation helpers for component geometry."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Sequence

import numpy as np


AXES = {'x': 0, 'y': 1, 'z': 2}


def rotation_matrix(angle: float, axis: str) -> np.ndarray:
    """Active rotation by `angle` (rad) about a coordinate axis.

    Args:
        angle: Rotation angle in radians
        axis: One of 'x', 'y', 'z'

    Returns:
        3x3 rotation matrix
    """
    axis = axis.lower()
    if axis not in AXES:
        raise ValueError(f"Unknown rotation axis: {axis}")

    c, s = np.cos(angle), np.sin(angle)
    if axis == 'x':
        return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])
    if axis == 'y':
        return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


@dataclass
class Location:
    """Position (mm) and rotation of an object in world coordinates.

    Attributes:
        position: 3-vector
        rotation: 3x3 rotation matrix
    """
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64).reshape(3)
        self.rotation = np.asarray(self.rotation, dtype=np.float64).reshape(3, 3)

    @classmethod
    def from_position(cls, x: float, y: float, z: float) -> 'Location':
        return cls(np.array([x, y, z], dtype=np.float64))

    def to_variant(self) -> Dict[str, Any]:
        return {
            'position': self.position.tolist(),
            'rotation': self.rotation.tolist(),
        }

    def from_variant(self, variant: Mapping[str, Any]) -> None:
        if not isinstance(variant, Mapping):
            return
        if 'position' in variant:
            self.position = _as_vector(variant['position'])
        if 'rotation' in variant:
            self.rotation = np.asarray(variant['rotation'], dtype=np.float64).reshape(3, 3)

    @classmethod
    def parse(cls, variant: Mapping[str, Any]) -> 'Location':
        ret = cls()
        ret.from_variant(variant)
        return ret

    def __eq__(self, other):
        if not isinstance(other, Location):
            return NotImplemented
        return (np.array_equal(self.position, other.position)
                and np.array_equal(self.rotation, other.rotation))


def _as_vector(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64).reshape(3)
