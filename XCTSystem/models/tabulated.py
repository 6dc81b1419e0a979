"""Tabulated data model: linear interpolation over a sorted lookup table."""

from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .data_models import AbstractIntegrableDataModel
from ..utils.logging import get_logger


logger = get_logger()


TableLike = Union[Mapping[float, float], Iterable[Tuple[float, float]]]


class TabulatedDataModel(AbstractIntegrableDataModel):
    """Data model defined by a table of (key, value) samples.

    Keys are unique and kept in ascending order. Between keys the model is
    linearly interpolated; outside ``[first key, last key]`` it is zero.
    An empty table is zero everywhere.
    """

    TYPE_ID = 60

    def __init__(self, table: Optional[TableLike] = None,
                 values: Optional[Sequence[float]] = None, name: str = ''):
        super().__init__(name)
        self._keys = np.empty(0, dtype=np.float64)
        self._values = np.empty(0, dtype=np.float64)
        if table is not None:
            self.set_data(table, values)

    # table management ---------------------------------------------------

    def set_data(self, table: TableLike, values: Optional[Sequence[float]] = None) -> None:
        """Replace the lookup table.

        Args:
            table: Mapping key -> value, iterable of (key, value) pairs, or a
                sequence of keys if `values` is given
            values: Values belonging to the keys in `table`

        Raises:
            ValueError: If keys and values differ in length
        """
        if values is not None:
            keys = list(table)
            values = list(values)
            if len(keys) != len(values):
                raise ValueError(
                    f"TabulatedDataModel.set_data: number of keys ({len(keys)}) and "
                    f"values ({len(values)}) does not match"
                )
            pairs = zip(keys, values)
        elif isinstance(table, Mapping):
            pairs = table.items()
        else:
            pairs = table

        data: Dict[float, float] = {}
        for key, value in pairs:
            data[float(key)] = float(value)
        self._set_sorted(data)

    def insert_data_point(self, key: float, value: float) -> None:
        """Insert a sample; an existing sample at `key` is overwritten."""
        data = self.lookup_table()
        data[float(key)] = float(value)
        self._set_sorted(data)

    def lookup_table(self) -> Dict[float, float]:
        """Copy of the table as an (ascending) dict."""
        return dict(zip(self._keys.tolist(), self._values.tolist()))

    def keys(self) -> np.ndarray:
        return self._keys.copy()

    def values(self) -> np.ndarray:
        return self._values.copy()

    def is_empty(self) -> bool:
        return self._keys.size == 0

    def _set_sorted(self, data: Dict[float, float]) -> None:
        keys = sorted(data)
        self._keys = np.asarray(keys, dtype=np.float64)
        self._values = np.asarray([data[k] for k in keys], dtype=np.float64)

    # evaluation ---------------------------------------------------------

    def value_at(self, position: float) -> float:
        """Linearly interpolated value at `position` (zero outside the table)."""
        keys = self._keys
        if keys.size == 0:
            return 0.0

        position = float(position)
        idx = int(np.searchsorted(keys, position, side='left'))
        if idx < keys.size and keys[idx] == position:
            return float(self._values[idx])
        if idx == 0 or idx == keys.size:
            return 0.0

        lower_key, upper_key = keys[idx - 1], keys[idx]
        weight = (upper_key - position) / (upper_key - lower_key)
        return float(self._values[idx - 1] * weight + self._values[idx] * (1.0 - weight))

    def bin_integral(self, position: float, bin_width: float) -> float:
        """Integral of the interpolated table over the bin centered at `position`.

        If no key lies inside the bin, the result is ``value_at(position) *
        bin_width`` (zero for bins outside the key range). Otherwise the
        integral is the sum of trapezoids between the lower bin edge, every
        enclosed key and the upper bin edge. The values at the bin edges are
        interpolated (zero outside the key range). A bin edge that coincides
        with a key yields a segment of zero width, which contributes nothing.
        """
        keys = self._keys
        if keys.size == 0 or bin_width <= 0.0:
            return 0.0

        lower = float(position) - 0.5 * bin_width
        upper = float(position) + 0.5 * bin_width
        if upper < keys[0] or lower > keys[-1]:
            return 0.0

        inner = keys[(keys >= lower) & (keys <= upper)]
        if inner.size == 0:
            return self.value_at(position) * bin_width

        points = np.concatenate(([lower], inner, [upper]))
        samples = np.asarray([self.value_at(p) for p in points], dtype=np.float64)
        widths = np.diff(points)
        return float(np.sum(0.5 * (samples[1:] + samples[:-1]) * widths))

    # exchange record ----------------------------------------------------

    def parameter(self) -> Dict[str, Any]:
        return {'data': [[k, v] for k, v in zip(self._keys.tolist(), self._values.tolist())]}

    def set_parameter(self, parameter: Any) -> None:
        if isinstance(parameter, Mapping):
            parameter = parameter.get('data')
        if not isinstance(parameter, (list, tuple)):
            logger.warning(
                "TabulatedDataModel.set_parameter: Could not set parameters! "
                "reason: incompatible variant passed"
            )
            return
        self.set_data((pair[0], pair[1]) for pair in parameter)
