"""X-ray spectrum models.

All spectrum models are integrable data models over photon energy (keV)
controlled by a single energy parameter, typically the tube voltage (kV) or
the photon energy of a monochromatic source.
"""

import math
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np

from .data_models import AbstractIntegrableDataModel
from .tabulated import TabulatedDataModel
from ..physics.constants import KRAMERS_LOW_END_KEV
from ..utils.logging import get_logger


logger = get_logger()


class AbstractXraySpectrumModel(AbstractIntegrableDataModel):
    """Base class of spectrum models with an energy parameter."""

    def __init__(self, energy: float = 0.0, name: str = ''):
        super().__init__(name)
        self._energy = float(energy)

    @property
    def energy(self) -> float:
        return self._energy

    def set_energy(self, energy: float) -> None:
        self._energy = float(energy)

    def parameter(self) -> Dict[str, Any]:
        return {'energy': self._energy}

    def set_parameter(self, parameter: Any) -> None:
        """Accepts either a number or a mapping with an ``"energy"`` entry."""
        if isinstance(parameter, Mapping):
            self._energy = float(parameter.get('energy', self._energy))
        elif isinstance(parameter, (int, float)) and not isinstance(parameter, bool):
            self._energy = float(parameter)
        else:
            logger.warning(
                f"{type(self).__name__}.set_parameter: Could not set parameters! "
                "reason: incompatible variant passed"
            )


class XraySpectrumTabulatedModel(AbstractXraySpectrumModel):
    """Spectrum interpolated between lookup tables tabulated for several voltages.

    Raises:
        ValueError: On evaluation with an energy parameter outside the range
            of tabulated voltages
    """

    TYPE_ID = 70

    def __init__(self, energy: float = 0.0, name: str = ''):
        super().__init__(energy, name)
        self._lookup_tables: Dict[float, TabulatedDataModel] = {}

    def add_lookup_table(self, voltage: float, table: TabulatedDataModel) -> None:
        self._lookup_tables[float(voltage)] = table
        self._lookup_tables = dict(sorted(self._lookup_tables.items()))

    def set_lookup_tables(self, tables: Mapping[float, TabulatedDataModel]) -> None:
        self._lookup_tables = {float(v): t for v, t in sorted(tables.items())}

    def lookup_tables(self) -> Dict[float, TabulatedDataModel]:
        return dict(self._lookup_tables)

    def has_tabulated_data_for(self, voltage: float) -> bool:
        if not self._lookup_tables:
            return False
        voltages = list(self._lookup_tables)
        return voltages[0] <= voltage <= voltages[-1]

    def _bracketing_tables(self) -> Tuple[TabulatedDataModel, TabulatedDataModel, float]:
        """Tables below/above the current energy and the weight of the lower one."""
        if not self.has_tabulated_data_for(self._energy):
            raise ValueError(
                f"No tabulated data available for parameter value: {self._energy}"
            )
        if self._energy in self._lookup_tables:
            table = self._lookup_tables[self._energy]
            return table, table, 1.0

        voltages = np.asarray(list(self._lookup_tables), dtype=np.float64)
        upper_idx = int(np.searchsorted(voltages, self._energy, side='right'))
        lower_voltage, upper_voltage = voltages[upper_idx - 1], voltages[upper_idx]
        weight = (upper_voltage - self._energy) / (upper_voltage - lower_voltage)
        return (self._lookup_tables[float(lower_voltage)],
                self._lookup_tables[float(upper_voltage)],
                float(weight))

    def value_at(self, position: float) -> float:
        lower, upper, weight = self._bracketing_tables()
        return lower.value_at(position) * weight + upper.value_at(position) * (1.0 - weight)

    def bin_integral(self, position: float, bin_width: float) -> float:
        lower, upper, weight = self._bracketing_tables()
        return (lower.bin_integral(position, bin_width) * weight
                + upper.bin_integral(position, bin_width) * (1.0 - weight))

    def parameter(self) -> Dict[str, Any]:
        ret = super().parameter()
        ret['lookup tables'] = [
            {'table voltage': voltage, 'table data': table.parameter()}
            for voltage, table in self._lookup_tables.items()
        ]
        return ret

    def set_parameter(self, parameter: Any) -> None:
        super().set_parameter(parameter)
        if isinstance(parameter, Mapping) and 'lookup tables' in parameter:
            self._lookup_tables = {}
            for entry in parameter['lookup tables']:
                table = TabulatedDataModel()
                table.set_parameter(entry.get('table data'))
                self.add_lookup_table(float(entry.get('table voltage', 0.0)), table)


class FixedXraySpectrumModel(XraySpectrumTabulatedModel):
    """Spectrum given by a single table that does not depend on the energy parameter."""

    TYPE_ID = 71

    def __init__(self, table: Optional[TabulatedDataModel] = None, name: str = ''):
        super().__init__(0.0, name)
        if table is not None:
            self.set_lookup_table(table)

    def set_lookup_table(self, table: TabulatedDataModel) -> None:
        self.set_lookup_tables({0.0: table})

    def set_energy(self, energy: float) -> None:
        logger.warning(
            "FixedXraySpectrumModel.set_energy: Setting energy parameter is not supported "
            "in FixedXraySpectrumModel. This call is ignored!"
        )

    def set_parameter(self, parameter: Any) -> None:
        if not isinstance(parameter, Mapping):
            logger.warning(
                "FixedXraySpectrumModel.set_parameter: Setting energy parameter is not "
                "supported in FixedXraySpectrumModel. This call is ignored!"
            )
            return

        if float(parameter.get('energy', 0.0)) != 0.0:
            logger.warning(
                "FixedXraySpectrumModel.set_parameter: Setting energy parameter is not "
                "supported in FixedXraySpectrumModel. The corresponding entry in the "
                "parameters is ignored!"
            )

        tables = parameter.get('lookup tables')
        if not tables:
            return
        if len(tables) > 1:
            logger.warning(
                "FixedXraySpectrumModel.set_parameter: Parameters contain more than one "
                "lookup table. Ignoring all tables but the first!"
            )
        table = TabulatedDataModel()
        table.set_parameter(tables[0].get('table data'))
        self.set_lookup_table(table)


class XrayLaserSpectrumModel(AbstractXraySpectrumModel):
    """Monochromatic line at the energy parameter."""

    TYPE_ID = 72

    def value_at(self, position: float) -> float:
        return 1.0 if math.isclose(position, self._energy, rel_tol=1e-6) else 0.0

    def bin_integral(self, position: float, bin_width: float) -> float:
        lower = position - 0.5 * bin_width
        upper = position + 0.5 * bin_width
        return 1.0 if lower <= self._energy <= upper else 0.0


class KramersLawSpectrumModel(AbstractXraySpectrumModel):
    """Bremsstrahlung continuum following Kramers' law, ``E/x - 1`` below `energy`."""

    TYPE_ID = 73

    def value_at(self, position: float) -> float:
        if position <= 0.0 or position >= self._energy:
            return 0.0
        return self._energy / position - 1.0

    def bin_integral(self, position: float, bin_width: float) -> float:
        lower = position - 0.5 * bin_width
        upper = position + 0.5 * bin_width

        if upper < KRAMERS_LOW_END_KEV or lower > self._energy:
            return 0.0

        lower = max(lower, KRAMERS_LOW_END_KEV)
        upper = min(upper, self._energy)
        if upper <= lower:
            return 0.0

        return self._energy * math.log(upper / lower) - (upper - lower)


class HeuristicCubicSpectrumModel(AbstractXraySpectrumModel):
    """Cubic approximation ``E (E-x)^2 - (E-x)^3`` of a tube spectrum."""

    TYPE_ID = 74

    def value_at(self, position: float) -> float:
        if position >= self._energy:
            return 0.0
        diff = self._energy - position
        return self._energy * diff ** 2 - diff ** 3

    def _antiderivative(self, position: float) -> float:
        diff = self._energy - position
        return -(1.0 / 3.0) * self._energy * diff ** 3 + 0.25 * diff ** 4

    def bin_integral(self, position: float, bin_width: float) -> float:
        lower = position - 0.5 * bin_width
        upper = position + 0.5 * bin_width

        if upper < 0.0 or lower > self._energy:
            return 0.0

        upper = min(upper, self._energy)
        return self._antiderivative(upper) - self._antiderivative(lower)
