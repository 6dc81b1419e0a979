"""Boundary between acquisition setups and forward projectors.

A projector is configured with an `AcquisitionSetup` and turns voxel volumes
into projection data, one detector image per view. Ray-casting engines live
outside this package and implement `AbstractProjector`.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

import numpy as np

from ..utils.logging import get_logger
from ..utils.validation import ProjectorNotConfiguredError, validate_physical_parameter


logger = get_logger()


@dataclass
class VoxelVolume:
    """Regular 3D voxel grid.

    Attributes:
        data: Voxel values [X, Y, Z] (e.g. attenuation coefficients in 1/mm)
        voxel_size: Voxel dimensions in mm (dx, dy, dz)
        offset: Position of the volume center in world coordinates (mm)
    """
    data: np.ndarray
    voxel_size: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    offset: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    def __post_init__(self):
        self.data = np.asarray(self.data, dtype=np.float32)
        if self.data.ndim != 3:
            raise ValueError(f"VoxelVolume needs 3D data, got shape {self.data.shape}")
        self.voxel_size = tuple(float(v) for v in self.voxel_size)
        self.offset = tuple(float(v) for v in self.offset)
        for axis, size in zip('xyz', self.voxel_size):
            validate_physical_parameter(f"voxel size ({axis})", size, 'VoxelVolume')

    @property
    def dimensions(self) -> Tuple[int, int, int]:
        return tuple(self.data.shape)

    def total_size(self) -> Tuple[float, float, float]:
        """Extent of the volume in mm."""
        return tuple(n * s for n, s in zip(self.data.shape, self.voxel_size))


@dataclass
class CompositeVolume:
    """Collection of (possibly overlapping) voxel volumes."""
    sub_volumes: List[VoxelVolume] = field(default_factory=list)

    def add_sub_volume(self, volume: VoxelVolume) -> None:
        self.sub_volumes.append(volume)

    def nb_sub_volumes(self) -> int:
        return len(self.sub_volumes)

    def __len__(self) -> int:
        return len(self.sub_volumes)

    def __iter__(self) -> Iterator[VoxelVolume]:
        return iter(self.sub_volumes)


class ProjectionData:
    """Detector images of all views.

    Every view is an array of shape (modules, rows, channels).
    """

    def __init__(self, views: Optional[List[np.ndarray]] = None):
        self._views = [np.asarray(v, dtype=np.float32) for v in (views or [])]

    @classmethod
    def zeros(cls, nb_views: int, nb_modules: int, rows: int, channels: int) -> 'ProjectionData':
        return cls([np.zeros((nb_modules, rows, channels), dtype=np.float32)
                    for _ in range(nb_views)])

    @classmethod
    def for_setup(cls, setup) -> 'ProjectionData':
        """All-zero projections matching the views and detector of `setup`."""
        detector = setup.system().detector()
        channels, rows = detector.nb_pixel_per_module
        return cls.zeros(setup.nb_views(), detector.nb_detector_modules(), rows, channels)

    def views(self) -> List[np.ndarray]:
        return self._views

    def view(self, view: int) -> np.ndarray:
        return self._views[view]

    def append(self, view: np.ndarray) -> None:
        self._views.append(np.asarray(view, dtype=np.float32))

    def nb_views(self) -> int:
        return len(self._views)

    def __len__(self) -> int:
        return len(self._views)

    def view_dimensions(self) -> Optional[Tuple[int, ...]]:
        return self._views[0].shape if self._views else None

    def numpy(self) -> np.ndarray:
        """All views stacked into a single array [views, modules, rows, channels]."""
        return np.stack(self._views) if self._views else np.empty((0, 0, 0, 0), dtype=np.float32)

    def _check_compatible(self, other: 'ProjectionData') -> None:
        if self.nb_views() != other.nb_views() or self.view_dimensions() != other.view_dimensions():
            raise ValueError(
                f"Incompatible projection data: {self.nb_views()} views of "
                f"{self.view_dimensions()} vs. {other.nb_views()} views of "
                f"{other.view_dimensions()}"
            )

    def __add__(self, other: 'ProjectionData') -> 'ProjectionData':
        self._check_compatible(other)
        return ProjectionData([a + b for a, b in zip(self._views, other._views)])

    def __iadd__(self, other: 'ProjectionData') -> 'ProjectionData':
        self._check_compatible(other)
        for view, other_view in zip(self._views, other._views):
            view += other_view
        return self


class AbstractProjector:
    """Forward projector interface.

    Subclasses implement `configure` (storing the setup in ``self._setup``)
    and `project`. Linear projectors get `project_composite` for free: the
    projection of a composite volume is the sum of the projections of its
    sub-volumes.
    """

    def __init__(self):
        self._setup = None

    def configure(self, setup) -> None:
        """Prepare the projector for the views of `setup` (an AcquisitionSetup)."""
        raise NotImplementedError

    def project(self, volume: VoxelVolume) -> ProjectionData:
        """Forward project `volume` for all configured views."""
        raise NotImplementedError

    def is_linear(self) -> bool:
        return True

    def is_configured(self) -> bool:
        return self._setup is not None

    def project_composite(self, volume: CompositeVolume) -> ProjectionData:
        """Projection of a composite volume.

        Raises:
            NotImplementedError: For non-linear projectors that do not
                override this method
            ValueError: If the composite volume is empty
        """
        if not self.is_linear():
            raise NotImplementedError(
                f"{type(self).__name__} is not linear and does not implement "
                "projection of composite volumes"
            )
        if volume.nb_sub_volumes() == 0:
            raise ValueError("Cannot project an empty composite volume")

        logger.debug(f"Projecting composite volume with {volume.nb_sub_volumes()} sub-volumes")
        sub_volumes = iter(volume)
        ret = self.project(next(sub_volumes))
        for sub_volume in sub_volumes:
            ret += self.project(sub_volume)
        return ret

    def _require_configured(self) -> None:
        if self._setup is None:
            raise ProjectorNotConfiguredError(
                f"{type(self).__name__}: configure() must be called before project()"
            )
