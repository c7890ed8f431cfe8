"""
Orbital Elements and Burn-Window Detection

This module derives planar orbital elements from a position/velocity state
and detects the apsis windows in which correction burns are allowed. Only
the in-plane problem is modeled: inclination and RAAN do not exist here.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from ..utils.constants import BURN_WINDOW_TOLERANCE, EARTH_MU, EARTH_RADIUS, PI
from ..utils.math_utils import cross_2d, normalize_angle, wrap_to_2pi


class OutOfBoundsOrbit(ValueError):
    """Raised when a state does not describe a bound (elliptical) orbit."""

    def __init__(self, message: str, energy: float = float('nan'),
                 eccentricity: float = float('nan'),
                 semi_major_axis: float = float('nan')):
        super().__init__(message)
        self.energy = energy
        self.eccentricity = eccentricity
        self.semi_major_axis = semi_major_axis


class ApsisWindow(Enum):
    """Apsis in whose neighbourhood a burn is eligible."""
    PERIGEE = "perigee"
    APOGEE = "apogee"


@dataclass
class OrbitalState:
    """
    Planar spacecraft state.

    Attributes:
        position: Position in the inertial plane [m] (2x1)
        velocity: Velocity in the inertial plane [m/s] (2x1)
        argument_of_perigee: Reference angle of perigee [rad]
    """
    position: np.ndarray
    velocity: np.ndarray
    argument_of_perigee: float = 0.0

    def __post_init__(self):
        """Validate state dimensions."""
        self.position = np.asarray(self.position, dtype=float)
        self.velocity = np.asarray(self.velocity, dtype=float)
        if self.position.shape != (2,) or self.velocity.shape != (2,):
            raise ValueError("Position and velocity must be 2D vectors")

    @property
    def radius(self) -> float:
        """Distance from Earth's center [m]."""
        return float(np.linalg.norm(self.position))

    @property
    def speed(self) -> float:
        """Velocity magnitude [m/s]."""
        return float(np.linalg.norm(self.velocity))

    @property
    def altitude(self) -> float:
        """Altitude above the mean Earth radius [m]."""
        return self.radius - EARTH_RADIUS

    @property
    def state_vector(self) -> np.ndarray:
        """State as vector [x, y, vx, vy]."""
        return np.concatenate([self.position, self.velocity])

    @classmethod
    def from_state_vector(cls, y: np.ndarray,
                          argument_of_perigee: float = 0.0) -> 'OrbitalState':
        """Create a state from a [x, y, vx, vy] vector."""
        if y.shape != (4,):
            raise ValueError("State vector must be 4D")
        return cls(y[0:2].copy(), y[2:4].copy(), argument_of_perigee)

    def copy(self) -> 'OrbitalState':
        """Independent copy of the state."""
        return OrbitalState(self.position.copy(), self.velocity.copy(),
                            self.argument_of_perigee)


@dataclass
class OrbitalElements:
    """
    Planar orbital elements derived from a single state.

    Attributes:
        semi_major_axis: Semi-major axis [m]
        eccentricity: Eccentricity [-]
        true_anomaly: True anomaly measured from the argument of perigee [rad]
        radial_unit: Unit vector away from Earth's center
        prograde_unit: Unit vector along the velocity
        retrograde_unit: Unit vector against the velocity
        energy: Specific orbital energy [m²/s²]
        angular_momentum: Specific angular momentum (z component) [m²/s]
        semi_latus_rectum: Semi-latus rectum [m]
        radius: Current radius [m]
        speed: Current speed [m/s]
        mu: Gravitational parameter [m³/s²]
    """
    semi_major_axis: float
    eccentricity: float
    true_anomaly: float
    radial_unit: np.ndarray
    prograde_unit: np.ndarray
    retrograde_unit: np.ndarray
    energy: float
    angular_momentum: float
    semi_latus_rectum: float
    radius: float
    speed: float
    mu: float = EARTH_MU

    @property
    def period(self) -> float:
        """Orbital period [s]."""
        return 2 * PI * np.sqrt(self.semi_major_axis**3 / self.mu)

    @property
    def mean_motion(self) -> float:
        """Mean motion [rad/s]."""
        return np.sqrt(self.mu / self.semi_major_axis**3)

    @property
    def perigee_radius(self) -> float:
        """Perigee radius [m]."""
        return self.semi_major_axis * (1 - self.eccentricity)

    @property
    def apogee_radius(self) -> float:
        """Apogee radius [m]."""
        return self.semi_major_axis * (1 + self.eccentricity)

    @property
    def perigee_altitude(self) -> float:
        return self.perigee_radius - EARTH_RADIUS

    @property
    def apogee_altitude(self) -> float:
        return self.apogee_radius - EARTH_RADIUS

    @property
    def altitude(self) -> float:
        """Current altitude above the mean Earth radius [m]."""
        return self.radius - EARTH_RADIUS

    @property
    def sma_altitude(self) -> float:
        """Semi-major axis expressed as an altitude [m]."""
        return self.semi_major_axis - EARTH_RADIUS

    def velocity_at_radius(self, r: float) -> float:
        """Vis-viva speed at radius r [m/s]."""
        return np.sqrt(self.mu * (2 / r - 1 / self.semi_major_axis))


def compute_orbital_elements(position: np.ndarray, velocity: np.ndarray,
                             argument_of_perigee: float = 0.0,
                             mu: float = EARTH_MU) -> OrbitalElements:
    """
    Derive planar orbital elements from position and velocity.

    Uses vis-viva energy, the scalar angular momentum and the semi-latus
    rectum; eccentricity follows from e = sqrt(max(0, 1 - p/a)).

    Args:
        position: Position vector [m] (2x1)
        velocity: Velocity vector [m/s] (2x1)
        argument_of_perigee: Reference angle for the true anomaly [rad]
        mu: Gravitational parameter [m³/s²]

    Returns:
        Orbital elements

    Raises:
        OutOfBoundsOrbit: If the orbit is not bound or the elements are
            not finite
    """
    position = np.asarray(position, dtype=float)
    velocity = np.asarray(velocity, dtype=float)
    if position.shape != (2,) or velocity.shape != (2,):
        raise ValueError("Position and velocity must be 2D vectors")

    r = float(np.linalg.norm(position))
    v = float(np.linalg.norm(velocity))

    if not np.isfinite(r) or not np.isfinite(v) or r <= 0.0:
        raise OutOfBoundsOrbit("State is not finite or lies at the origin")

    energy = v**2 / 2 - mu / r
    if energy >= 0:
        raise OutOfBoundsOrbit(
            f"Orbit is not bound (specific energy {energy:.3e} m²/s² >= 0)",
            energy=energy)

    semi_major_axis = -mu / (2 * energy)
    h = cross_2d(position, velocity)
    p = h**2 / mu
    eccentricity = np.sqrt(max(0.0, 1 - p / semi_major_axis))

    if (not np.isfinite(semi_major_axis) or not np.isfinite(eccentricity)
            or eccentricity >= 1.0):
        raise OutOfBoundsOrbit(
            f"Invalid elements (a={semi_major_axis}, e={eccentricity})",
            energy=energy, eccentricity=eccentricity,
            semi_major_axis=semi_major_axis)

    true_anomaly = wrap_to_2pi(np.arctan2(position[1], position[0])
                               - argument_of_perigee)

    radial_unit = position / r
    if v > 0:
        prograde_unit = velocity / v
    else:
        # Zero speed is bound but degenerate: fall back to the local horizontal
        prograde_unit = np.array([-radial_unit[1], radial_unit[0]])

    return OrbitalElements(
        semi_major_axis=float(semi_major_axis),
        eccentricity=float(eccentricity),
        true_anomaly=true_anomaly,
        radial_unit=radial_unit,
        prograde_unit=prograde_unit,
        retrograde_unit=-prograde_unit,
        energy=float(energy),
        angular_momentum=float(h),
        semi_latus_rectum=float(p),
        radius=r,
        speed=v,
        mu=mu
    )


def elements_from_state(state: OrbitalState, mu: float = EARTH_MU) -> OrbitalElements:
    """Derive elements from an OrbitalState using its argument of perigee."""
    return compute_orbital_elements(state.position, state.velocity,
                                    state.argument_of_perigee, mu)


def detect_burn_window(true_anomaly: float,
                       tolerance: float = BURN_WINDOW_TOLERANCE) -> Optional[ApsisWindow]:
    """
    Detect whether the true anomaly lies inside an apsis burn window.

    Args:
        true_anomaly: True anomaly [rad]
        tolerance: Half-width of the window [rad]

    Returns:
        ApsisWindow.PERIGEE near 0, ApsisWindow.APOGEE near π, else None
    """
    if abs(normalize_angle(true_anomaly, 0.0)) <= tolerance:
        return ApsisWindow.PERIGEE
    if abs(normalize_angle(true_anomaly - PI, 0.0)) <= tolerance:
        return ApsisWindow.APOGEE
    return None


def circular_orbit_state(altitude: float, phase: float = 0.0,
                         mu: float = EARTH_MU) -> OrbitalState:
    """
    Build a circular, counter-clockwise orbit state.

    Args:
        altitude: Altitude above the mean Earth radius [m]
        phase: Angular position of the spacecraft [rad]
        mu: Gravitational parameter [m³/s²]

    Returns:
        Circular orbital state (argument of perigee 0)
    """
    r = EARTH_RADIUS + altitude
    v = np.sqrt(mu / r)
    position = r * np.array([np.cos(phase), np.sin(phase)])
    velocity = v * np.array([-np.sin(phase), np.cos(phase)])
    return OrbitalState(position, velocity, 0.0)


def elliptical_orbit_state(perigee_altitude: float, apogee_altitude: float,
                           start_at_apogee: bool = True,
                           mu: float = EARTH_MU) -> OrbitalState:
    """
    Build an elliptical orbit state placed on the +X axis.

    The spacecraft starts on the +X axis; the returned argument of perigee
    is consistent with that placement (π when starting at apogee) so that
    true anomalies computed from the state are meaningful.

    Args:
        perigee_altitude: Perigee altitude [m]
        apogee_altitude: Apogee altitude [m]
        start_at_apogee: Start at apogee (True) or at perigee (False)
        mu: Gravitational parameter [m³/s²]

    Returns:
        Orbital state
    """
    if apogee_altitude < perigee_altitude:
        raise ValueError("Apogee altitude must not be below perigee altitude")

    r_perigee = EARTH_RADIUS + perigee_altitude
    r_apogee = EARTH_RADIUS + apogee_altitude
    semi_major_axis = (r_perigee + r_apogee) / 2

    if start_at_apogee:
        r, argument_of_perigee = r_apogee, PI
    else:
        r, argument_of_perigee = r_perigee, 0.0

    v = np.sqrt(mu * (2 / r - 1 / semi_major_axis))
    return OrbitalState(np.array([r, 0.0]), np.array([0.0, v]), argument_of_perigee)


def eccentricity_from_apsides(r_perigee: float, r_apogee: float) -> float:
    """Eccentricity of the ellipse with the given apsis radii."""
    return (r_apogee - r_perigee) / (r_apogee + r_perigee)


def argument_of_perigee_from_state(position: np.ndarray, velocity: np.ndarray,
                                   mu: float = EARTH_MU) -> float:
    """
    Angle of the eccentricity vector from the +X axis.

    Returns 0 for (numerically) circular orbits where perigee is undefined.
    """
    r = np.linalg.norm(position)
    v = np.linalg.norm(velocity)
    e_vec = ((v**2 - mu / r) * position - np.dot(position, velocity) * velocity) / mu
    if np.linalg.norm(e_vec) < 1e-9:
        return 0.0
    return wrap_to_2pi(np.arctan2(e_vec[1], e_vec[0]))


def time_to_true_anomaly(elements: OrbitalElements, target_anomaly: float) -> float:
    """
    Time until the spacecraft reaches the target true anomaly [s].

    Args:
        elements: Current orbital elements
        target_anomaly: Target true anomaly [rad]

    Returns:
        Time of flight in [0, period)
    """
    e = elements.eccentricity

    def mean_anomaly(f: float) -> float:
        E = 2 * np.arctan2(np.sqrt(1 - e) * np.sin(f / 2),
                           np.sqrt(1 + e) * np.cos(f / 2))
        return E - e * np.sin(E)

    delta_m = wrap_to_2pi(mean_anomaly(target_anomaly) - mean_anomaly(elements.true_anomaly))
    return float(delta_m / elements.mean_motion)
