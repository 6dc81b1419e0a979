"""
Basic usage example for CT system description and radiation encoding.

This example demonstrates how to:
1. Assemble a CT system from a blueprint
2. Add a beam filter and compute photons per pixel
3. Describe a helical acquisition and store it as YAML and HDF5
"""

import math
from pathlib import Path

from XCTSystem import EncoderConfig, register_all_types
from XCTSystem.acquisition import (
    AcquisitionSetup,
    CTSystemBuilder,
    GenericTubularCT,
    HelicalTrajectory,
    RadiationEncoder,
    SimpleCTSystem,
    TubeCurrentModulation,
)
from XCTSystem.components import AttenuationFilter
from XCTSystem.io import Hdf5Serializer, YamlSerializer
from XCTSystem.models import TabulatedDataModel
from XCTSystem.utils import setup_logger


def create_system() -> SimpleCTSystem:
    """Tubular CT with a 2 mm aluminium filter."""
    system = SimpleCTSystem.from_ct_system(CTSystemBuilder.create_system(GenericTubularCT()))

    # rough mass attenuation coefficients of aluminium (cm²/g)
    aluminium = TabulatedDataModel({
        10.0: 26.2, 20.0: 3.44, 30.0: 1.13, 40.0: 0.57, 50.0: 0.37,
        60.0: 0.28, 80.0: 0.20, 100.0: 0.17, 150.0: 0.14,
    }, name='Al')
    system.add_beam_modifier(AttenuationFilter(aluminium, thickness=2.0, density=2.699,
                                               name='Al filter'))
    return system


def example_radiation(system: SimpleCTSystem):
    print("\n=== Example 1: Radiation encoding ===\n")

    encoder = RadiationEncoder(system, EncoderConfig(spectrum_samples=150))
    spectrum = encoder.final_spectrum()

    print(system.overview())
    print(f"Photon flux behind filter: {encoder.final_photon_flux():.4g}")
    print(f"Mean photons per pixel:    {encoder.photons_per_pixel_mean():.4g}")
    print(f"Mean energy (keV):         {spectrum.centroid():.2f}")


def example_acquisition(system: SimpleCTSystem, output_dir: str = './xct_output'):
    print("\n=== Example 2: Helical acquisition ===\n")

    nb_views = 36
    setup = AcquisitionSetup(system, nb_views=nb_views)
    setup.apply_preparation_protocol(
        HelicalTrajectory(2.0 * math.pi / nb_views, pitch_increment=1.0))
    # lower the tube current on the lateral views
    currents = [1.0 + 0.5 * abs(math.cos(2.0 * math.pi * v / nb_views)) for v in range(nb_views)]
    setup.apply_preparation_protocol(TubeCurrentModulation(currents))
    print(f"Setup valid: {setup.is_valid()}, views: {setup.nb_views()}")

    output_path = Path(output_dir)
    YamlSerializer().serialize_acquisition_setup(setup, output_path / 'helical_setup.yaml')
    Hdf5Serializer().serialize_acquisition_setup(setup, output_path / 'helical_setup.h5')

    restored = YamlSerializer().deserialize_acquisition_setup(output_path / 'helical_setup.yaml')
    for view in range(restored.nb_views()):
        restored.prepare_view(view)
    position = restored.system().gantry().source_location().position
    print(f"Source position after last view: {position.round(2)}")


def main():
    setup_logger(level=20)  # INFO level
    register_all_types()

    system = create_system()
    example_radiation(system)
    example_acquisition(system)


if __name__ == '__main__':
    main()
