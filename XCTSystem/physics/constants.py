"""Physical and numerical constants for radiation encoding."""

# Unit conversions
FLUX_UNIT_CONVERSION = 1.0e-2  # Photon flux per cm² -> per mm²
MM_TO_CM = 0.1  # Conversion from mm to cm
MM_TO_M = 1.0e-3  # Conversion from mm to m

# Reference geometry
REFERENCE_DISTANCE_MM = 1000.0  # Source flux is specified per area at 1 m

# Numerical constants
ZERO_TOLERANCE = 1e-12  # Denominators below this are treated as zero
DEFAULT_SPECTRUM_SAMPLES = 100  # Default number of energy bins for spectra

# Spectrum models
KRAMERS_LOW_END_KEV = 0.1  # Lower integration limit of Kramers' law (keV)
LASER_LINE_HALF_WIDTH_KEV = 0.5  # Half width of the energy window of an X-ray laser

# Source defaults
DEFAULT_TUBE_VOLTAGE_KV = 100.0
DEFAULT_EMISSION_CURRENT_MA = 1.0
DEFAULT_TUBE_INTENSITY_CONSTANT = 1.0
DEFAULT_LASER_ENERGY_KEV = 100.0
DEFAULT_LASER_POWER = 1.0
