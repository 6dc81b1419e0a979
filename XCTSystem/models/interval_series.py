"""Binned data series, used for discretized spectra."""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .data_models import AbstractIntegrableDataModel
from ..physics.constants import ZERO_TOLERANCE
from ..utils.logging import get_logger


logger = get_logger()


@dataclass(frozen=True)
class SamplingRange:
    """Closed interval ``[start, end]`` on the sampling axis."""

    start: float = 0.0
    end: float = 0.0

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Invalid sampling range: start ({self.start}) > end ({self.end})")

    @property
    def width(self) -> float:
        return self.end - self.start

    def spacing(self, nb_samples: int) -> float:
        """Bin width when the range is divided into `nb_samples` bins."""
        return self.width / float(nb_samples)

    def linspace(self, nb_samples: int) -> np.ndarray:
        """`nb_samples` equally spaced points including both ends."""
        return np.linspace(self.start, self.end, nb_samples)


RangeLike = Tuple[float, float]


def as_sampling_range(value) -> SamplingRange:
    if isinstance(value, SamplingRange):
        return value
    start, end = value
    return SamplingRange(float(start), float(end))


class IntervalDataSeries:
    """Values associated with equally wide, contiguous bins.

    Each sample is a bin center with the value integrated over that bin.
    The integral of the series is therefore just the sum of its values.
    """

    def __init__(self, bin_width: float = 0.0,
                 centers: Optional[Sequence[float]] = None,
                 values: Optional[Sequence[float]] = None):
        self._bin_width = float(bin_width)
        self._centers = np.asarray(centers if centers is not None else [], dtype=np.float64)
        self._values = np.asarray(values if values is not None else [], dtype=np.float64)
        if self._centers.shape != self._values.shape:
            raise ValueError(
                f"IntervalDataSeries: number of bin centers ({self._centers.size}) and "
                f"values ({self._values.size}) does not match"
            )

    @classmethod
    def sampled_from_model(cls, model: AbstractIntegrableDataModel, start: float, end: float,
                           nb_samples: int) -> 'IntervalDataSeries':
        """Sample `model` in `nb_samples` bins covering ``[start, end]``.

        The value of each bin is the model's bin integral.

        Args:
            model: Integrable data model
            start: Start of the first bin
            end: End of the last bin
            nb_samples: Number of bins

        Returns:
            IntervalDataSeries with bins centered at ``start + (k + 0.5) * width``

        Raises:
            ValueError: If the range is inverted or `nb_samples` is not positive
            TypeError: If `model` cannot be integrated
        """
        if start > end:
            raise ValueError(f"Invalid sampling range: start ({start}) > end ({end})")
        if nb_samples <= 0:
            raise ValueError(f"Number of samples must be positive, got {nb_samples}")
        if not isinstance(model, AbstractIntegrableDataModel):
            raise TypeError(f"{type(model).__name__} is not an integrable data model")

        bin_width = (end - start) / float(nb_samples)
        centers = start + (np.arange(nb_samples, dtype=np.float64) + 0.5) * bin_width
        values = [model.bin_integral(float(c), bin_width) for c in centers]
        return cls(bin_width, centers, values)

    # access -------------------------------------------------------------

    @property
    def bin_width(self) -> float:
        return self._bin_width

    def nb_samples(self) -> int:
        return int(self._centers.size)

    def __len__(self) -> int:
        return self.nb_samples()

    def samples(self) -> np.ndarray:
        """Bin centers."""
        return self._centers.copy()

    def values(self) -> np.ndarray:
        return self._values.copy()

    def value(self, index: int) -> float:
        return float(self._values[index])

    def data(self) -> List[Tuple[float, float]]:
        return list(zip(self._centers.tolist(), self._values.tolist()))

    def max_value(self) -> float:
        return float(self._values.max()) if self._values.size else 0.0

    def min_value(self) -> float:
        return float(self._values.min()) if self._values.size else 0.0

    # computations -------------------------------------------------------

    def integral(self, weights: Optional[Sequence[float]] = None) -> float:
        """Sum of the bin values, optionally weighted per bin.

        Raises:
            ValueError: If the number of weights differs from the number of bins
        """
        if weights is None:
            return float(np.sum(self._values))
        weights = np.asarray(weights, dtype=np.float64)
        if weights.shape != self._values.shape:
            raise ValueError(
                f"IntervalDataSeries.integral: expected {self._values.size} weights, "
                f"got {weights.size}"
            )
        return float(np.dot(self._values, weights))

    def normalize_by_integral(self, tolerance: float = ZERO_TOLERANCE) -> None:
        """Scale the values so that they sum to one.

        A series with (almost) zero integral is left unchanged.
        """
        integral = self.integral()
        if abs(integral) <= tolerance:
            logger.warning("Trying to normalize data series with integral 0. Skipped normalization.")
            return
        self._values = self._values / integral

    def normalized_by_integral(self, tolerance: float = ZERO_TOLERANCE) -> 'IntervalDataSeries':
        ret = self.copy()
        ret.normalize_by_integral(tolerance)
        return ret

    def centroid(self, tolerance: float = ZERO_TOLERANCE) -> float:
        """Value-weighted mean bin center.

        A series with (almost) zero integral has no meaningful centroid; the
        center of the sampling range is returned instead.
        """
        integral = self.integral()
        if abs(integral) <= tolerance:
            logger.warning("Trying to compute centroid of data series with integral 0. "
                           "Using center of sampling range.")
            sampling_range = self.sampling_range()
            return 0.5 * (sampling_range.start + sampling_range.end)
        return float(np.dot(self._centers, self._values)) / integral

    def sampling_range(self) -> SamplingRange:
        """Interval from the start of the first to the end of the last bin."""
        if not self._centers.size:
            return SamplingRange()
        half_width = 0.5 * self._bin_width
        return SamplingRange(float(self._centers[0] - half_width),
                             float(self._centers[-1] + half_width))

    def clamp_to_range(self, sampling_range) -> None:
        """Zero the parts of the series outside `sampling_range`.

        Bins partially overlapping the range are scaled by their fraction of
        overlap.
        """
        sampling_range = as_sampling_range(sampling_range)
        if self._bin_width <= 0.0:
            inside = (self._centers >= sampling_range.start) & (self._centers <= sampling_range.end)
            self._values = np.where(inside, self._values, 0.0)
            return

        half_width = 0.5 * self._bin_width
        overlap = (np.minimum(self._centers + half_width, sampling_range.end)
                   - np.maximum(self._centers - half_width, sampling_range.start))
        fraction = np.clip(overlap / self._bin_width, 0.0, 1.0)
        self._values = self._values * fraction

    def copy(self) -> 'IntervalDataSeries':
        return IntervalDataSeries(self._bin_width, self._centers.copy(), self._values.copy())

    def __repr__(self) -> str:
        return (f"IntervalDataSeries(nb_samples={self.nb_samples()}, "
                f"bin_width={self._bin_width})")
