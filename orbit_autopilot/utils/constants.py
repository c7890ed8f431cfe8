"""
Physical and Mathematical Constants for Orbit Maintenance

This module contains fundamental constants used throughout the orbit
propagation and autopilot guidance implementation.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import numpy as np

# Earth Physical Constants
EARTH_MU = 3.986004418e14  # Earth gravitational parameter [m³/s²]
EARTH_RADIUS = 6.371e6  # Earth mean radius [m]
EARTH_EQUATORIAL_RADIUS = 6.3781363e6  # Equatorial radius used by the J2 model [m]
EARTH_J2 = 1.08262668e-3   # Earth J2 coefficient (oblateness)
STANDARD_GRAVITY = 9.80665  # g0 for the rocket equation [m/s²]

# Atmospheric Model Constants
EARTH_ATMOSPHERE_DENSITY_SEA_LEVEL = 1.225  # Sea level density [kg/m³]

# Third bodies and radiation
SUN_MU = 1.32712440018e20  # [m³/s²]
MOON_MU = 4.9048695e12     # [m³/s²]
SUN_DISTANCE = 1.495978707e11  # Mean Earth-Sun distance [m]
MOON_DISTANCE = 3.844e8        # Mean Earth-Moon distance [m]
SOLAR_PRESSURE = 4.56e-6       # Solar radiation pressure at 1 AU [N/m²]
MOON_SIDEREAL_PERIOD = 27.321661 * 86400.0  # [s]
GEO_RADIUS = 4.2164e7          # Geostationary orbit radius [m]

# Mathematical Constants
PI = np.pi
TWO_PI = 2.0 * np.pi
DEG_TO_RAD = np.pi / 180.0

# Time
SECONDS_PER_DAY = 86400.0
SECONDS_PER_YEAR = 365.25 * SECONDS_PER_DAY

# Integration Parameters
DEFAULT_SUB_STEPS = 4           # Physics sub-steps per tick

# Guidance
BURN_WINDOW_TOLERANCE = 0.15   # Apsis window half-width [rad] (~8.6 deg)
HEO_ECCENTRICITY_THRESHOLD = 0.5  # Target eccentricity above this selects HEO
HIGH_ALTITUDE_THRESHOLD = 20000e3  # Altitude above which orbits are "high" [m]
