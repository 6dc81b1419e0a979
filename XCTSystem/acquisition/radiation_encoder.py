"""Radiation reaching the detector of a simple CT system.

The encoder propagates the spectrum and photon flux emitted by the source
through all beam modifiers of the system. Modifiers are applied in the order
in which they were added to the system; this order is taken to be the order
along the beam path.
"""

from typing import List, Optional

import numpy as np

from .geometry_encoder import GeometryEncoder
from ..models.interval_series import IntervalDataSeries
from ..utils.config import EncoderConfig
from ..utils.logging import get_logger


logger = get_logger()


class RadiationEncoder:
    """Spectrum, flux and detector response of a `SimpleCTSystem`.

    The encoder keeps a reference to the system and reads it anew on every
    call, so it always reflects the current state of the system. The system
    must be simple; this is not checked.

    Args:
        system: SimpleCTSystem to encode
        config: Numerical settings (defaults to `EncoderConfig.get_default_config()`)
    """

    def __init__(self, system, config: Optional[EncoderConfig] = None):
        self._system = system
        self._config = config if config is not None else EncoderConfig.get_default_config()

    @property
    def system(self):
        return self._system

    @property
    def config(self) -> EncoderConfig:
        return self._config

    # spectrum and flux --------------------------------------------------

    def final_spectrum(self, nb_samples: Optional[int] = None,
                       energy_range=None) -> IntervalDataSeries:
        """Normalized spectrum behind the last beam modifier.

        Args:
            nb_samples: Number of energy bins (defaults to `config.spectrum_samples`)
            energy_range: Sampled energy interval, defaults to the source's energy range

        Returns:
            IntervalDataSeries of the final spectrum
        """
        if nb_samples is None:
            nb_samples = self._config.spectrum_samples

        spectrum = self._system.source().spectrum(nb_samples, energy_range)
        for modifier in self._system.modifiers():
            spectrum = modifier.modified_spectrum(spectrum)
        return spectrum

    def final_photon_flux(self) -> float:
        """Photon flux (photons / cm² at the reference distance) behind the last modifier.

        Flux and spectrum are propagated together because the flux change of a
        modifier depends on the spectrum at its input.
        """
        source = self._system.source()
        flux = source.photon_flux()
        modifiers = self._system.modifiers()
        if not modifiers:
            return flux

        spectrum = source.spectrum(source.spectrum_discretization_hint())
        for modifier in modifiers:
            flux = modifier.modified_flux(flux, spectrum)
            spectrum = modifier.modified_spectrum(spectrum)
            logger.debug(f"Flux behind '{modifier.name}': {flux}")
        return flux

    # photons per pixel --------------------------------------------------

    def photons_per_pixel(self, module: int) -> float:
        """Mean number of photons incident on a single pixel of detector module `module`."""
        area = GeometryEncoder.effective_pixel_area(
            self._system, module, self._config.reference_distance_mm
        )
        return self.final_photon_flux() * self._config.flux_unit_conversion * area

    def photons_per_pixel_all(self) -> List[float]:
        """Photons per pixel for all detector modules."""
        flux = self.final_photon_flux() * self._config.flux_unit_conversion
        areas = GeometryEncoder.effective_pixel_areas(
            self._system, self._config.reference_distance_mm
        )
        return [flux * area for area in areas]

    def photons_per_pixel_mean(self) -> float:
        """Photons per pixel averaged over all detector modules."""
        counts = self.photons_per_pixel_all()
        if not counts:
            return 0.0
        return float(np.mean(counts))

    # detector response --------------------------------------------------

    def _response_weights(self, spectrum: IntervalDataSeries) -> Optional[np.ndarray]:
        response = self._system.detector().spectral_response_model
        if response is None:
            return None
        return np.asarray([response.mean_value(float(e), spectrum.bin_width)
                           for e in spectrum.samples()], dtype=np.float64)

    def _analysis_samples(self, nb_samples: Optional[int]) -> int:
        if nb_samples is not None:
            return nb_samples
        return self._system.source().spectrum_discretization_hint()

    def detective_quantum_efficiency(self, nb_samples: Optional[int] = None) -> float:
        """Fraction of the incident photons registered by the detector.

        Returns 1.0 if the detector has no spectral response model; otherwise
        the sum over energy bins of the normalized final spectrum times the
        bin-mean detector response.

        Args:
            nb_samples: Number of energy bins (defaults to the source's
                discretization hint)
        """
        if not self._system.detector().has_spectral_response_model():
            return 1.0

        spectrum = self.final_spectrum(self._analysis_samples(nb_samples))
        weights = self._response_weights(spectrum)
        return spectrum.integral(weights)

    def detective_mean_energy(self, nb_samples: Optional[int] = None) -> float:
        """Mean energy (keV) of the registered photons.

        Without a spectral response model this is the centroid of the final
        spectrum. If the response-weighted spectrum vanishes, a warning is
        logged and the plain centroid is returned.
        """
        spectrum = self.final_spectrum(self._analysis_samples(nb_samples))
        weights = self._response_weights(spectrum)
        if weights is None:
            return spectrum.centroid(self._config.zero_tolerance)

        weighted = spectrum.values() * weights
        denominator = float(np.sum(weighted))
        if abs(denominator) <= self._config.zero_tolerance:
            logger.warning(
                "Detector response weighted spectrum has integral 0. "
                "Using the plain spectrum centroid as mean energy."
            )
            return spectrum.centroid(self._config.zero_tolerance)

        return float(np.dot(spectrum.samples(), weighted)) / denominator
