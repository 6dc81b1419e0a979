"""Beam modifiers: components that alter spectrum and flux along the beam path."""

import math
from typing import Any, Dict, Mapping, Optional

import numpy as np

from .system_component import ElementalType, SystemComponent
from ..core.serialization import parse_data_model
from ..models.data_models import AbstractDataModel, AbstractIntegrableDataModel
from ..models.interval_series import IntervalDataSeries
from ..physics.constants import MM_TO_CM, ZERO_TOLERANCE
from ..utils.logging import get_logger
from ..utils.validation import MissingModelError, validate_physical_parameter


logger = get_logger()


class AbstractBeamModifier(SystemComponent):
    """Component placed in the beam between source and detector.

    `modified_spectrum` maps the (normalized) incoming spectrum to the
    normalized outgoing one. `modified_flux` maps the incoming flux to the
    outgoing flux, given the spectrum at the modifier's input.
    """

    TYPE_ID = int(ElementalType.BEAM_MODIFIER)
    ELEMENTAL_TYPE = ElementalType.BEAM_MODIFIER
    DEFAULT_NAME = 'Abstract beam modifier'

    def modified_spectrum(self, input_spectrum: IntervalDataSeries) -> IntervalDataSeries:
        raise NotImplementedError

    def modified_flux(self, input_flux: float, input_spectrum: IntervalDataSeries) -> float:
        raise NotImplementedError


class GenericBeamModifier(AbstractBeamModifier):
    """Beam modifier that leaves spectrum and flux unchanged."""

    TYPE_ID = 401
    DEFAULT_NAME = 'Generic beam modifier'

    def modified_spectrum(self, input_spectrum: IntervalDataSeries) -> IntervalDataSeries:
        return input_spectrum.copy()

    def modified_flux(self, input_flux: float, input_spectrum: IntervalDataSeries) -> float:
        return input_flux


class AttenuationFilter(AbstractBeamModifier):
    """Slab of homogeneous material attenuating the beam (Beer-Lambert law).

    Every energy bin is attenuated by ``exp(-thickness[mm] * mu * 0.1 * density)``,
    where ``mu`` is the bin mean of the mass attenuation model (cm²/g) and
    ``density`` is given in g/cm³.
    """

    TYPE_ID = 410
    DEFAULT_NAME = 'Attenuation filter'

    def __init__(self, attenuation_model: Optional[AbstractIntegrableDataModel] = None,
                 thickness: float = 0.0, density: float = 0.0, name: Optional[str] = None):
        super().__init__(name)
        self._attenuation_model: Optional[AbstractIntegrableDataModel] = None
        self.set_attenuation_model(attenuation_model)
        self._thickness = float(thickness)
        self._density = float(density)
        validate_physical_parameter('density', self._density, self.name)
        validate_physical_parameter('thickness', self._thickness, self.name)

    @property
    def attenuation_model(self) -> Optional[AbstractIntegrableDataModel]:
        return self._attenuation_model

    def set_attenuation_model(self, model: Optional[AbstractDataModel]) -> None:
        if model is not None and not isinstance(model, AbstractIntegrableDataModel):
            raise TypeError(
                f"{type(self).__name__}: attenuation model must be integrable "
                f"(got {type(model).__name__})"
            )
        self._attenuation_model = model

    @property
    def thickness(self) -> float:
        return self._thickness

    def set_thickness(self, thickness: float) -> None:
        validate_physical_parameter('thickness', thickness, self.name)
        self._thickness = float(thickness)

    @property
    def density(self) -> float:
        return self._density

    def set_density(self, density: float) -> None:
        validate_physical_parameter('density', density, self.name)
        self._density = float(density)

    def transmission(self, energy: float, bin_width: float) -> float:
        """Fraction of photons in the bin centered at `energy` (keV) passing the filter.

        Raises:
            MissingModelError: If no attenuation model is set
        """
        if self._attenuation_model is None:
            raise MissingModelError(f"{self.name}: No attenuation model set.")
        mu = self._attenuation_model.mean_value(energy, bin_width)
        return math.exp(-self._thickness * mu * MM_TO_CM * self._density)

    def _attenuated(self, spectrum: IntervalDataSeries) -> IntervalDataSeries:
        bin_width = spectrum.bin_width
        factors = np.asarray([self.transmission(float(e), bin_width) for e in spectrum.samples()],
                             dtype=np.float64)
        return IntervalDataSeries(bin_width, spectrum.samples(), spectrum.values() * factors)

    def modified_spectrum(self, input_spectrum: IntervalDataSeries) -> IntervalDataSeries:
        ret = self._attenuated(input_spectrum)
        ret.normalize_by_integral()
        return ret

    def modified_flux(self, input_flux: float, input_spectrum: IntervalDataSeries) -> float:
        attenuated = self._attenuated(input_spectrum)

        input_integral = input_spectrum.integral()
        if abs(input_integral) <= ZERO_TOLERANCE:
            logger.warning(
                f"{self.name}: Input spectrum has integral 0. Still assuming normalized spectrum."
            )
            input_integral = 1.0

        return input_flux * attenuated.integral() / input_integral

    def info(self) -> str:
        model_name = self._attenuation_model.name if self._attenuation_model is not None else '-'
        return super().info() + (
            f"\tFilter thickness: {self._thickness} mm\n"
            f"\tMaterial density: {self._density} g/cm^3\n"
            f"\tAttenuation model name: {model_name}\n"
        )

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['thickness'] = self._thickness
        ret['density'] = self._density
        ret['attenuation model'] = (self._attenuation_model.to_variant()
                                    if self._attenuation_model is not None else None)
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._thickness = float(variant.get('thickness', 0.0))
        self._density = float(variant.get('density', 0.0))

        record = variant.get('attenuation model')
        self._attenuation_model = None
        if record is not None:
            model = parse_data_model(record)
            if isinstance(model, AbstractIntegrableDataModel):
                self._attenuation_model = model
            else:
                logger.error(
                    f"{type(self).__name__}: Contained attenuation model could not be "
                    "restored as an integrable data model."
                )
