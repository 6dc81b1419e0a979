"""Radiation source components."""

from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from .system_component import ElementalType, SystemComponent
from ..core.serialization import parse_data_model
from ..models.data_models import AbstractDataModel, AbstractIntegrableDataModel
from ..models.interval_series import IntervalDataSeries, SamplingRange, as_sampling_range
from ..models.spectrum_models import (
    AbstractXraySpectrumModel,
    FixedXraySpectrumModel,
    KramersLawSpectrumModel,
    XrayLaserSpectrumModel,
)
from ..models.tabulated import TabulatedDataModel
from ..physics.constants import (
    DEFAULT_EMISSION_CURRENT_MA,
    DEFAULT_LASER_ENERGY_KEV,
    DEFAULT_LASER_POWER,
    DEFAULT_SPECTRUM_SAMPLES,
    DEFAULT_TUBE_INTENSITY_CONSTANT,
    DEFAULT_TUBE_VOLTAGE_KV,
    LASER_LINE_HALF_WIDTH_KEV,
)
from ..utils.logging import get_logger
from ..utils.validation import MissingModelError, validate_physical_parameter


logger = get_logger()


class AbstractSource(SystemComponent):
    """Source of X-ray photons.

    The photon flux of a source is given in photons per cm² at a distance of
    one meter (`photon_flux`); it is the nominal flux of the concrete source
    multiplied with the flux modifier. The energy distribution of the photons
    is described by an integrable spectrum model.
    """

    TYPE_ID = int(ElementalType.SOURCE)
    ELEMENTAL_TYPE = ElementalType.SOURCE
    DEFAULT_NAME = 'Abstract source'

    def __init__(self, focal_spot_size: Tuple[float, float] = (0.0, 0.0),
                 focal_spot_position: Sequence[float] = (0.0, 0.0, 0.0),
                 spectrum_model: Optional[AbstractIntegrableDataModel] = None,
                 name: Optional[str] = None):
        super().__init__(name)
        self._focal_spot_size = (float(focal_spot_size[0]), float(focal_spot_size[1]))
        self._focal_spot_position = np.asarray(focal_spot_position, dtype=np.float64).reshape(3)
        self._flux_modifier = 1.0
        self._spectrum_model: Optional[AbstractIntegrableDataModel] = None
        self._energy_range_restriction: Optional[SamplingRange] = None
        if spectrum_model is not None:
            self.set_spectrum_model(spectrum_model)

    # to be provided by sub-classes --------------------------------------

    def nominal_photon_flux(self) -> float:
        """Photon flux (photons / cm² at 1 m) without the flux modifier."""
        raise NotImplementedError

    def nominal_energy_range(self) -> SamplingRange:
        """Energy interval (keV) in which the source emits photons."""
        raise NotImplementedError

    def spectrum_discretization_hint(self) -> int:
        """Number of energy bins that resolve the spectrum of this source well."""
        return DEFAULT_SPECTRUM_SAMPLES

    def _update_spectrum_model(self) -> None:
        """Pass source parameters to the spectrum model before sampling it."""
        pass

    # flux ---------------------------------------------------------------

    def photon_flux(self) -> float:
        return self._flux_modifier * self.nominal_photon_flux()

    @property
    def flux_modifier(self) -> float:
        return self._flux_modifier

    def set_flux_modifier(self, modifier: float) -> None:
        validate_physical_parameter('flux modifier', modifier, self.name)
        self._flux_modifier = float(modifier)

    # energy range and spectrum ------------------------------------------

    def energy_range(self) -> SamplingRange:
        """Restricted energy range if set, otherwise the nominal one."""
        if self._energy_range_restriction is not None:
            return self._energy_range_restriction
        return self.nominal_energy_range()

    def set_energy_range_restriction(self, energy_range) -> None:
        """Restrict the energy range; None removes the restriction."""
        self._energy_range_restriction = (as_sampling_range(energy_range)
                                          if energy_range is not None else None)

    def has_energy_range_restriction(self) -> bool:
        return self._energy_range_restriction is not None

    @property
    def spectrum_model(self) -> Optional[AbstractIntegrableDataModel]:
        return self._spectrum_model

    def has_spectrum_model(self) -> bool:
        return self._spectrum_model is not None

    def set_spectrum_model(self, model: Optional[AbstractDataModel]) -> None:
        """Set the spectrum model (None removes it).

        Raises:
            TypeError: If the model is not integrable
        """
        if model is not None and not isinstance(model, AbstractIntegrableDataModel):
            raise TypeError(
                f"{type(self).__name__}: spectrum model must be integrable "
                f"(got {type(model).__name__})"
            )
        self._spectrum_model = model

    def spectrum(self, nb_samples: int, energy_range=None) -> IntervalDataSeries:
        """Normalized spectrum sampled in `nb_samples` energy bins.

        Args:
            nb_samples: Number of energy bins
            energy_range: Sampled energy interval (keV), defaults to `energy_range()`

        Returns:
            IntervalDataSeries whose values sum to one (unless the spectrum
            vanishes in the sampled interval)

        Raises:
            MissingModelError: If no spectrum model is set
        """
        if self._spectrum_model is None:
            raise MissingModelError(f"{self.name}: No spectrum model set.")

        self._update_spectrum_model()
        sampling_range = (as_sampling_range(energy_range) if energy_range is not None
                          else self.energy_range())
        series = IntervalDataSeries.sampled_from_model(
            self._spectrum_model, sampling_range.start, sampling_range.end, nb_samples
        )
        series.normalize_by_integral()
        return series

    # focal spot ---------------------------------------------------------

    @property
    def focal_spot_size(self) -> Tuple[float, float]:
        return self._focal_spot_size

    def set_focal_spot_size(self, width: float, height: float) -> None:
        self._focal_spot_size = (float(width), float(height))

    @property
    def focal_spot_position(self) -> np.ndarray:
        return self._focal_spot_position

    def set_focal_spot_position(self, x: float, y: float, z: float) -> None:
        self._focal_spot_position = np.array([x, y, z], dtype=np.float64)

    # description --------------------------------------------------------

    def info(self) -> str:
        pos = self._focal_spot_position
        energy_range = self.energy_range()
        return super().info() + (
            f"\tFocal spot size: {self._focal_spot_size[0]} mm x "
            f"{self._focal_spot_size[1]} mm\n"
            f"\tFocal spot position: {pos[0]} mm, {pos[1]} mm, {pos[2]} mm\n"
            f"\tFlux modifier: {self._flux_modifier}\n"
            f"\tEnergy range: [{energy_range.start}, {energy_range.end}] keV\n"
        )

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['focal spot position'] = self._focal_spot_position.tolist()
        ret['focal spot size'] = {
            'width': self._focal_spot_size[0],
            'height': self._focal_spot_size[1],
        }
        ret['flux modifier'] = self._flux_modifier
        ret['spectrum model'] = (self._spectrum_model.to_variant()
                                 if self._spectrum_model is not None else None)
        restriction = self._energy_range_restriction
        ret['energy range restriction'] = ([restriction.start, restriction.end]
                                           if restriction is not None else None)
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._focal_spot_position = np.asarray(
            variant.get('focal spot position', [0.0, 0.0, 0.0]), dtype=np.float64
        ).reshape(3)
        fs_size = variant.get('focal spot size') or {}
        self._focal_spot_size = (float(fs_size.get('width', 0.0)),
                                 float(fs_size.get('height', 0.0)))
        self._flux_modifier = float(variant.get('flux modifier', 1.0))

        restriction = variant.get('energy range restriction')
        self._energy_range_restriction = (as_sampling_range(restriction)
                                          if restriction is not None else None)

        spec_model = variant.get('spectrum model')
        self._spectrum_model = None
        if spec_model is not None:
            model = parse_data_model(spec_model)
            if isinstance(model, AbstractIntegrableDataModel):
                self._spectrum_model = model
            else:
                logger.warning(f"{type(self).__name__}: Could not restore spectrum model")


class GenericSource(AbstractSource):
    """Source with an explicitly set total flux and energy range."""

    TYPE_ID = 301
    DEFAULT_NAME = 'Generic source'

    def __init__(self, focal_spot_size: Tuple[float, float] = (0.0, 0.0),
                 focal_spot_position: Sequence[float] = (0.0, 0.0, 0.0),
                 spectrum_model: Optional[AbstractIntegrableDataModel] = None,
                 photon_flux: float = 0.0, name: Optional[str] = None):
        super().__init__(focal_spot_size, focal_spot_position, spectrum_model, name)
        self._total_flux = float(photon_flux)
        self._nominal_energy_range = SamplingRange(0.0, 0.0)

    def nominal_photon_flux(self) -> float:
        return self._total_flux

    def set_photon_flux(self, flux: float) -> None:
        validate_physical_parameter('photon flux', flux, self.name)
        self._total_flux = float(flux)

    def nominal_energy_range(self) -> SamplingRange:
        return self._nominal_energy_range

    def set_energy_range(self, energy_range) -> None:
        self._nominal_energy_range = as_sampling_range(energy_range)

    def set_spectrum(self, spectrum: IntervalDataSeries, update_flux: bool = False) -> None:
        """Use a sampled spectrum as the spectrum model of this source.

        The energy range is set to the sampling range of `spectrum`.

        Args:
            spectrum: Spectrum sampled in energy bins
            update_flux: Set the total flux to the integral of `spectrum`
        """
        table = TabulatedDataModel(spectrum.samples(), spectrum.values())
        self.set_spectrum_model(FixedXraySpectrumModel(table))
        self._nominal_energy_range = spectrum.sampling_range()
        if update_flux:
            self._total_flux = spectrum.integral()

    def info(self) -> str:
        return super().info() + f"\tTotal photon flux: {self._total_flux}\n"

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['photon flux'] = self._total_flux
        ret['energy range'] = [self._nominal_energy_range.start, self._nominal_energy_range.end]
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._total_flux = float(variant.get('photon flux', 0.0))
        self._nominal_energy_range = as_sampling_range(variant.get('energy range', (0.0, 0.0)))


class XrayTube(AbstractSource):
    """X-ray tube with a Kramers' law spectrum by default.

    The nominal flux is ``emission_current * intensity_constant``; the tube
    emits photons with energies up to the tube voltage.
    """

    TYPE_ID = 320
    DEFAULT_NAME = 'X-ray tube'

    def __init__(self, focal_spot_size: Tuple[float, float] = (0.0, 0.0),
                 focal_spot_position: Sequence[float] = (0.0, 0.0, 0.0),
                 tube_voltage: float = DEFAULT_TUBE_VOLTAGE_KV,
                 emission_current: float = DEFAULT_EMISSION_CURRENT_MA,
                 intensity_constant: float = DEFAULT_TUBE_INTENSITY_CONSTANT,
                 name: Optional[str] = None):
        super().__init__(focal_spot_size, focal_spot_position, KramersLawSpectrumModel(), name)
        self._tube_voltage = float(tube_voltage)
        self._emission_current = float(emission_current)
        self._intensity_constant = float(intensity_constant)

    @property
    def tube_voltage(self) -> float:
        return self._tube_voltage

    def set_tube_voltage(self, voltage: float) -> None:
        validate_physical_parameter('tube voltage', voltage, self.name)
        self._tube_voltage = float(voltage)

    @property
    def emission_current(self) -> float:
        return self._emission_current

    def set_emission_current(self, current: float) -> None:
        validate_physical_parameter('emission current', current, self.name)
        self._emission_current = float(current)

    @property
    def intensity_constant(self) -> float:
        return self._intensity_constant

    def set_intensity_constant(self, value: float) -> None:
        self._intensity_constant = float(value)

    def nominal_photon_flux(self) -> float:
        return self._emission_current * self._intensity_constant

    def nominal_energy_range(self) -> SamplingRange:
        return SamplingRange(0.0, max(self._tube_voltage, 0.0))

    def set_spectrum_model(self, model: Optional[AbstractDataModel]) -> None:
        """Set the spectrum model; it must depend on the tube voltage.

        Raises:
            TypeError: If the model is not an X-ray spectrum model
        """
        if model is not None and not isinstance(model, AbstractXraySpectrumModel):
            raise TypeError(
                f"{type(self).__name__}: spectrum model must be an X-ray spectrum model "
                f"(got {type(model).__name__})"
            )
        super().set_spectrum_model(model)

    def _update_spectrum_model(self) -> None:
        if not isinstance(self._spectrum_model, FixedXraySpectrumModel):
            self._spectrum_model.set_energy(self._tube_voltage)

    def info(self) -> str:
        return super().info() + (
            f"\tTube voltage: {self._tube_voltage} kV\n"
            f"\tEmission current: {self._emission_current} mA\n"
        )

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['tube voltage'] = self._tube_voltage
        ret['emission current'] = self._emission_current
        ret['intensity constant'] = self._intensity_constant
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._tube_voltage = float(variant.get('tube voltage', DEFAULT_TUBE_VOLTAGE_KV))
        self._emission_current = float(variant.get('emission current',
                                                   DEFAULT_EMISSION_CURRENT_MA))
        self._intensity_constant = float(variant.get('intensity constant',
                                                     DEFAULT_TUBE_INTENSITY_CONSTANT))


class XrayLaser(AbstractSource):
    """Monochromatic source; its nominal flux equals its power."""

    TYPE_ID = 310
    DEFAULT_NAME = 'X-ray laser'

    def __init__(self, focal_spot_size: Tuple[float, float] = (0.0, 0.0),
                 focal_spot_position: Sequence[float] = (0.0, 0.0, 0.0),
                 energy: float = DEFAULT_LASER_ENERGY_KEV, power: float = DEFAULT_LASER_POWER,
                 name: Optional[str] = None):
        super().__init__(focal_spot_size, focal_spot_position, XrayLaserSpectrumModel(), name)
        self._energy = float(energy)
        self._power = float(power)

    @property
    def photon_energy(self) -> float:
        return self._energy

    def set_photon_energy(self, energy: float) -> None:
        validate_physical_parameter('photon energy', energy, self.name)
        self._energy = float(energy)

    @property
    def power(self) -> float:
        return self._power

    def set_power(self, power: float) -> None:
        validate_physical_parameter('power', power, self.name)
        self._power = float(power)

    def nominal_photon_flux(self) -> float:
        return self._power

    def nominal_energy_range(self) -> SamplingRange:
        return SamplingRange(self._energy - LASER_LINE_HALF_WIDTH_KEV,
                             self._energy + LASER_LINE_HALF_WIDTH_KEV)

    def spectrum_discretization_hint(self) -> int:
        return 1

    def _update_spectrum_model(self) -> None:
        if (isinstance(self._spectrum_model, AbstractXraySpectrumModel)
                and not isinstance(self._spectrum_model, FixedXraySpectrumModel)):
            self._spectrum_model.set_energy(self._energy)

    def info(self) -> str:
        return super().info() + (
            f"\tPhoton energy: {self._energy} keV\n"
            f"\tPower: {self._power}\n"
        )

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['energy'] = self._energy
        ret['power'] = self._power
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._energy = float(variant.get('energy', DEFAULT_LASER_ENERGY_KEV))
        self._power = float(variant.get('power', DEFAULT_LASER_POWER))
