"""Orbital Perturbation Models

This module implements the perturbation models used for orbit maintenance:
atmospheric drag, J2 oblateness, third-body (Sun/Moon) gravity and solar
radiation pressure. Each model is a pure function of the orbital elements,
the altitude and (where needed) the mission time, and reports the correction
burn it would need. Acceleration helpers for numerical integration live here
as well.

Third-body and SRP demands are partial, in-plane-only approximations built on
empirical constants (roughly 40% accurate); they are kept configurable in
PerturbationParameters instead of being hard-coded.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from .orbital_elements import ApsisWindow, OrbitalElements, detect_burn_window
from ..utils.constants import (BURN_WINDOW_TOLERANCE, DEG_TO_RAD,
                               EARTH_ATMOSPHERE_DENSITY_SEA_LEVEL,
                               EARTH_EQUATORIAL_RADIUS, EARTH_J2, EARTH_MU,
                               GEO_RADIUS, HEO_ECCENTRICITY_THRESHOLD,
                               MOON_DISTANCE, MOON_MU, MOON_SIDEREAL_PERIOD,
                               SECONDS_PER_YEAR, SOLAR_PRESSURE, SUN_DISTANCE,
                               SUN_MU, TWO_PI, EARTH_RADIUS)

# Piecewise exponential atmosphere: (base altitude [m], density [kg/m³], scale height [m])
DEFAULT_ATMOSPHERE_BANDS: Tuple[Tuple[float, float, float], ...] = (
    (0.0, 1.225, 7249.0),
    (25e3, 3.899e-2, 6349.0),
    (30e3, 1.774e-2, 6682.0),
    (40e3, 3.972e-3, 7554.0),
    (50e3, 1.057e-3, 8382.0),
    (60e3, 3.206e-4, 7714.0),
    (70e3, 8.770e-5, 6549.0),
    (80e3, 1.905e-5, 5799.0),
    (90e3, 3.396e-6, 5382.0),
    (100e3, 5.297e-7, 5877.0),
    (110e3, 9.661e-8, 7263.0),
    (120e3, 2.438e-8, 9473.0),
    (130e3, 8.484e-9, 12636.0),
    (140e3, 3.845e-9, 16149.0),
    (150e3, 2.070e-9, 22523.0),
    (180e3, 5.464e-10, 29740.0),
    (200e3, 2.789e-10, 37105.0),
    (250e3, 7.248e-11, 45546.0),
    (300e3, 2.418e-11, 53628.0),
    (350e3, 9.518e-12, 53298.0),
    (400e3, 3.725e-12, 58515.0),
    (450e3, 1.585e-12, 60828.0),
    (500e3, 6.967e-13, 63822.0),
    (600e3, 1.454e-13, 71835.0),
    (700e3, 3.614e-14, 88667.0),
    (800e3, 1.170e-14, 124640.0),
    (900e3, 5.245e-15, 181050.0),
    (1000e3, 3.019e-15, 268000.0),
)


class CorrectionKind(Enum):
    """What a correction burn compensates for."""
    DRAG = "drag"
    J2 = "j2"
    THIRD_BODY = "third_body"
    SRP = "srp"
    ECCENTRICITY = "eccentricity"
    SEMI_MAJOR_AXIS = "semi_major_axis"
    ALTITUDE_RESCUE = "altitude_rescue"
    EMERGENCY = "emergency"


class TargetElement(Enum):
    """Orbital element a correction acts on."""
    SEMI_MAJOR_AXIS = "semi_major_axis"
    ECCENTRICITY = "eccentricity"
    ARGUMENT_OF_PERIGEE = "argument_of_perigee"
    ALTITUDE = "altitude"


class InclinationBucket(Enum):
    """Inclination proxy used by the J2 model [deg]."""
    EQUATORIAL = 0.0
    SUN_SYNCHRONOUS = 97.6
    MOLNIYA = 63.4


@dataclass
class PerturbationParameters:
    """
    Empirical parameters of the perturbation models.

    The drag and SRP area-to-mass heuristics and the third-body annual budget
    are placeholders rather than derived physics.
    """
    drag_coefficient: float = 2.2
    drag_area: float = 10.0                 # [m²]
    reference_mass: float = 265.0           # Used when no mass is supplied [kg]
    atmosphere_bands: Tuple[Tuple[float, float, float], ...] = DEFAULT_ATMOSPHERE_BANDS

    # J2 apse-line drift thresholds [rad per orbit]
    j2_circular_drift_threshold: float = 0.005
    j2_heo_drift_threshold: float = 0.02
    j2_min_eccentricity: float = 1e-4
    sun_synchronous_band: Tuple[float, float] = (500e3, 1000e3)  # [m]

    third_body_min_altitude: float = 20000e3  # [m]
    third_body_annual_dv_geo: float = 10.0    # In-plane budget at GEO [m/s/year]
    third_body_in_plane_fraction: float = 0.4

    srp_min_altitude: float = 800e3           # [m]
    srp_area: float = 10.0                    # [m²]
    srp_coefficient: float = 1.8
    srp_secular_fraction: float = 0.05

    min_correction_dv: float = 0.01           # Below this no correction is demanded [m/s]
    window_tolerance: float = BURN_WINDOW_TOLERANCE


@dataclass
class CorrectionDemand:
    """
    Correction requested by a perturbation model or a guidance law.

    Attributes:
        needs_correction: Whether a burn is warranted now
        delta_v: Signed magnitude [m/s] (+ prograde/outward, - retrograde/inward)
        direction: Unit thrust direction (2x1)
        reason: Diagnostic text
        kind: What the correction compensates for
        target: Orbital element the correction acts on
    """
    needs_correction: bool
    delta_v: float
    direction: np.ndarray
    reason: str
    kind: CorrectionKind
    target: TargetElement = TargetElement.SEMI_MAJOR_AXIS


def _no_correction(elements: OrbitalElements, kind: CorrectionKind,
                   target: TargetElement, reason: str) -> CorrectionDemand:
    return CorrectionDemand(False, 0.0, elements.prograde_unit.copy(), reason, kind, target)


def atmospheric_density(altitude: float,
                        params: Optional[PerturbationParameters] = None) -> float:
    """
    Atmospheric density from a banded exponential model.

    rho(h) = rho_band * exp(-(h - h_band) / H_band), with the band selected by
    altitude.

    Args:
        altitude: Altitude above the mean Earth radius [m]
        params: Model parameters (defaults when None)

    Returns:
        Atmospheric density [kg/m³]
    """
    if altitude < 0:
        return EARTH_ATMOSPHERE_DENSITY_SEA_LEVEL

    bands = (params or PerturbationParameters()).atmosphere_bands
    base, rho0, scale_height = bands[0]
    for band in bands:
        if altitude >= band[0]:
            base, rho0, scale_height = band
        else:
            break

    return rho0 * np.exp(-(altitude - base) / scale_height)


def gravity_acceleration(position: np.ndarray, mu: float = EARTH_MU) -> np.ndarray:
    """Two-body gravitational acceleration [m/s²] (2x1)."""
    r = np.linalg.norm(position)
    return -mu * position / r**3


def j2_acceleration(position: np.ndarray) -> np.ndarray:
    """
    J2 perturbation acceleration in the equatorial plane.

    With z = 0 the general J2 expression reduces to an outward radial term.

    Args:
        position: Position vector [m] (2x1)

    Returns:
        J2 acceleration [m/s²] (2x1)
    """
    if position.shape != (2,):
        raise ValueError("Position vector must be 2D")

    r = np.linalg.norm(position)
    if r <= EARTH_RADIUS:
        raise ValueError("Position inside Earth")

    factor = 1.5 * EARTH_J2 * EARTH_MU * EARTH_EQUATORIAL_RADIUS**2 / r**5
    return factor * position


def drag_acceleration(position: np.ndarray, velocity: np.ndarray, mass: float,
                      params: Optional[PerturbationParameters] = None) -> np.ndarray:
    """
    Atmospheric drag acceleration (no co-rotating atmosphere).

    Args:
        position: Position vector [m] (2x1)
        velocity: Velocity vector [m/s] (2x1)
        mass: Spacecraft mass [kg]
        params: Model parameters

    Returns:
        Drag acceleration [m/s²] (2x1)
    """
    params = params or PerturbationParameters()
    altitude = np.linalg.norm(position) - EARTH_RADIUS
    if altitude < 0:
        return np.zeros(2)

    rho = atmospheric_density(altitude, params)
    speed = np.linalg.norm(velocity)
    if rho < 1e-18 or speed < 1e-6:
        return np.zeros(2)

    drag_factor = -0.5 * rho * params.drag_coefficient * params.drag_area / mass
    return drag_factor * speed * velocity


def infer_inclination_bucket(elements: OrbitalElements, altitude: float,
                             params: Optional[PerturbationParameters] = None) -> InclinationBucket:
    """
    Pick the inclination proxy for an orbit whose inclination is not modeled.

    Highly elliptical orbits are assumed frozen Molniya-like, circular orbits
    inside the sun-synchronous band are assumed sun-synchronous, everything
    else near-equatorial.
    """
    params = params or PerturbationParameters()
    if elements.eccentricity > HEO_ECCENTRICITY_THRESHOLD:
        return InclinationBucket.MOLNIYA
    low, high = params.sun_synchronous_band
    if low <= altitude <= high:
        return InclinationBucket.SUN_SYNCHRONOUS
    return InclinationBucket.EQUATORIAL


def j2_perigee_drift_rate(elements: OrbitalElements, bucket: InclinationBucket) -> float:
    """
    Argument-of-perigee precession rate due to J2 [rad/s].

    dω/dt = 3/4 · n · J2 · (R/p)² · (5 cos²i - 1)
    """
    inclination = bucket.value * DEG_TO_RAD
    n = elements.mean_motion
    p = elements.semi_latus_rectum
    return 0.75 * n * EARTH_J2 * (EARTH_EQUATORIAL_RADIUS / p)**2 * (5 * np.cos(inclination)**2 - 1)


def drag_correction(elements: OrbitalElements, altitude: float,
                    mass: Optional[float] = None, mission_time: float = 0.0,
                    params: Optional[PerturbationParameters] = None) -> CorrectionDemand:
    """
    Drag makeup demand.

    Converts the instantaneous drag deceleration into a per-orbit delta-v
    budget. The makeup burn is only demanded inside the perigee window,
    where a prograde burn is most efficient.

    Args:
        elements: Current orbital elements
        altitude: Current altitude [m]
        mass: Spacecraft mass [kg]
        mission_time: Mission elapsed time [s] (unused, uniform signature)
        params: Model parameters

    Returns:
        Correction demand
    """
    params = params or PerturbationParameters()
    mass = mass if mass is not None else params.reference_mass

    rho = atmospheric_density(altitude, params)
    deceleration = 0.5 * rho * elements.speed**2 * params.drag_coefficient * params.drag_area / mass
    dv_per_orbit = float(deceleration * elements.period)

    window = detect_burn_window(elements.true_anomaly, params.window_tolerance)
    if window is not ApsisWindow.PERIGEE or dv_per_orbit < params.min_correction_dv:
        return _no_correction(elements, CorrectionKind.DRAG, TargetElement.SEMI_MAJOR_AXIS,
                              f"drag loss {dv_per_orbit:.4f} m/s per orbit")

    return CorrectionDemand(
        needs_correction=True,
        delta_v=dv_per_orbit,
        direction=elements.prograde_unit.copy(),
        reason=f"Drag makeup ({dv_per_orbit:.3f} m/s per orbit, rho={rho:.2e} kg/m³)",
        kind=CorrectionKind.DRAG,
        target=TargetElement.SEMI_MAJOR_AXIS
    )


def j2_correction(elements: OrbitalElements, altitude: float,
                  mass: Optional[float] = None, mission_time: float = 0.0,
                  params: Optional[PerturbationParameters] = None) -> CorrectionDemand:
    """
    Argument-of-perigee lock against J2 precession.

    The per-orbit drift is compared with a regime threshold (tighter for
    circular orbits). The countering radial burn rotates the apse line back:
    outward at perigee and inward at apogee for a positive drift.
    """
    params = params or PerturbationParameters()
    bucket = infer_inclination_bucket(elements, altitude, params)
    drift_per_orbit = float(j2_perigee_drift_rate(elements, bucket) * elements.period)

    heo = elements.eccentricity > HEO_ECCENTRICITY_THRESHOLD
    threshold = params.j2_heo_drift_threshold if heo else params.j2_circular_drift_threshold

    circular_speed = np.sqrt(elements.mu / elements.semi_latus_rectum)
    magnitude = float(2 * elements.eccentricity * circular_speed * np.sin(abs(drift_per_orbit) / 2))

    window = detect_burn_window(elements.true_anomaly, params.window_tolerance)
    if (window is None or abs(drift_per_orbit) <= threshold
            or elements.eccentricity < params.j2_min_eccentricity
            or magnitude < params.min_correction_dv):
        return _no_correction(elements, CorrectionKind.J2, TargetElement.ARGUMENT_OF_PERIGEE,
                              f"perigee drift {drift_per_orbit:.5f} rad per orbit ({bucket.name})")

    sign = np.sign(drift_per_orbit)
    if window is ApsisWindow.APOGEE:
        sign = -sign

    return CorrectionDemand(
        needs_correction=True,
        delta_v=float(sign * magnitude),
        direction=sign * elements.radial_unit,
        reason=f"J2 perigee lock (drift {drift_per_orbit:.4f} rad/orbit, {bucket.name})",
        kind=CorrectionKind.J2,
        target=TargetElement.ARGUMENT_OF_PERIGEE
    )


def _third_body_along_track(elements: OrbitalElements, mission_time: float) -> float:
    """Along-track tidal acceleration from the Sun and Moon proxies [m/s²]."""
    satellite_angle = np.arctan2(elements.radial_unit[1], elements.radial_unit[0])
    sun_angle = TWO_PI * mission_time / SECONDS_PER_YEAR
    moon_angle = TWO_PI * mission_time / MOON_SIDEREAL_PERIOD

    along_track = 0.0
    for mu_body, distance, body_angle in ((SUN_MU, SUN_DISTANCE, sun_angle),
                                          (MOON_MU, MOON_DISTANCE, moon_angle)):
        along_track += -1.5 * mu_body / distance**3 * elements.radius * \
            np.sin(2 * (satellite_angle - body_angle))
    return along_track


def third_body_correction(elements: OrbitalElements, altitude: float,
                          mass: Optional[float] = None, mission_time: float = 0.0,
                          params: Optional[PerturbationParameters] = None) -> CorrectionDemand:
    """
    Sun/Moon third-body demand (in-plane approximation).

    An annualized delta-v budget, scaled from GEO with (r/r_GEO)³, is
    converted to a per-orbit correction. The burn direction opposes the
    current along-track tidal term.
    """
    params = params or PerturbationParameters()
    if altitude < params.third_body_min_altitude:
        return _no_correction(elements, CorrectionKind.THIRD_BODY, TargetElement.SEMI_MAJOR_AXIS,
                              "third-body negligible below gate altitude")

    annual_dv = (params.third_body_annual_dv_geo * (elements.radius / GEO_RADIUS)**3
                 * params.third_body_in_plane_fraction)
    dv_per_orbit = float(annual_dv * elements.period / SECONDS_PER_YEAR)

    window = detect_burn_window(elements.true_anomaly, params.window_tolerance)
    if window is None or dv_per_orbit < params.min_correction_dv:
        return _no_correction(elements, CorrectionKind.THIRD_BODY, TargetElement.SEMI_MAJOR_AXIS,
                              f"third-body {dv_per_orbit:.4f} m/s per orbit")

    sign = 1.0 if _third_body_along_track(elements, mission_time) <= 0 else -1.0
    return CorrectionDemand(
        needs_correction=True,
        delta_v=sign * dv_per_orbit,
        direction=sign * elements.prograde_unit,
        reason=f"Third-body compensation ({annual_dv:.2f} m/s/year in-plane)",
        kind=CorrectionKind.THIRD_BODY,
        target=TargetElement.SEMI_MAJOR_AXIS
    )


def in_earth_shadow(position: np.ndarray, sun_direction: Optional[np.ndarray] = None) -> bool:
    """
    Cylindrical shadow test.

    Args:
        position: Position vector [m] (2x1)
        sun_direction: Unit vector towards the Sun (defaults to +X)

    Returns:
        True if the spacecraft is behind Earth as seen from the Sun
    """
    if sun_direction is None:
        sun_direction = np.array([1.0, 0.0])
    along = np.dot(position, sun_direction)
    if along >= 0:
        return False
    perpendicular = np.linalg.norm(position - along * sun_direction)
    return perpendicular < EARTH_RADIUS


def srp_correction(elements: OrbitalElements, altitude: float,
                   mass: Optional[float] = None, mission_time: float = 0.0,
                   params: Optional[PerturbationParameters] = None) -> CorrectionDemand:
    """
    Solar radiation pressure demand (in-plane approximation).

    The Sun is fixed along +X. Only the secular fraction of the SRP
    acceleration is budgeted; nothing is demanded in Earth's shadow.
    """
    params = params or PerturbationParameters()
    mass = mass if mass is not None else params.reference_mass

    if altitude < params.srp_min_altitude:
        return _no_correction(elements, CorrectionKind.SRP, TargetElement.ECCENTRICITY,
                              "SRP negligible below gate altitude")

    position = elements.radial_unit * elements.radius
    sun_direction = np.array([1.0, 0.0])
    if in_earth_shadow(position, sun_direction):
        return _no_correction(elements, CorrectionKind.SRP, TargetElement.ECCENTRICITY,
                              "in Earth shadow")

    acceleration = SOLAR_PRESSURE * params.srp_coefficient * params.srp_area / mass
    annual_dv = acceleration * SECONDS_PER_YEAR * params.srp_secular_fraction
    dv_per_orbit = float(annual_dv * elements.period / SECONDS_PER_YEAR)

    window = detect_burn_window(elements.true_anomaly, params.window_tolerance)
    if window is None or dv_per_orbit < params.min_correction_dv:
        return _no_correction(elements, CorrectionKind.SRP, TargetElement.ECCENTRICITY,
                              f"SRP {dv_per_orbit:.4f} m/s per orbit")

    # SRP pushes anti-sunward; compensate along the velocity line
    push = -sun_direction
    sign = -1.0 if np.dot(push, elements.prograde_unit) > 0 else 1.0
    return CorrectionDemand(
        needs_correction=True,
        delta_v=sign * dv_per_orbit,
        direction=sign * elements.prograde_unit,
        reason=f"SRP compensation ({annual_dv:.3f} m/s/year secular)",
        kind=CorrectionKind.SRP,
        target=TargetElement.ECCENTRICITY
    )


def evaluate_perturbations(elements: OrbitalElements, altitude: float,
                           mass: Optional[float] = None, mission_time: float = 0.0,
                           params: Optional[PerturbationParameters] = None) -> List[CorrectionDemand]:
    """
    Evaluate all perturbation models in priority order.

    Returns:
        Demands for drag, J2, third-body and SRP (in that order)
    """
    params = params or PerturbationParameters()
    return [
        model(elements, altitude, mass, mission_time, params)
        for model in (drag_correction, j2_correction, third_body_correction, srp_correction)
    ]


def perturbation_analysis_summary(elements: OrbitalElements, mass: float,
                                  params: Optional[PerturbationParameters] = None) -> dict:
    """
    Provide summary analysis of perturbation effects at the current state.

    Args:
        elements: Orbital elements
        mass: Spacecraft mass [kg]
        params: Model parameters

    Returns:
        Dictionary with perturbation analysis
    """
    params = params or PerturbationParameters()
    position = elements.radial_unit * elements.radius
    velocity = elements.prograde_unit * elements.speed
    altitude = elements.altitude

    a_j2 = np.linalg.norm(j2_acceleration(position))
    a_drag = np.linalg.norm(drag_acceleration(position, velocity, mass, params))
    bucket = infer_inclination_bucket(elements, altitude, params)

    return {
        'altitude_km': altitude / 1000,
        'atmospheric_density_kg_m3': atmospheric_density(altitude, params),
        'j2_acceleration_magnitude_m_s2': a_j2,
        'drag_acceleration_magnitude_m_s2': a_drag,
        'perigee_drift_rad_per_orbit': j2_perigee_drift_rate(elements, bucket) * elements.period,
        'inclination_bucket': bucket.name,
        'dominant_perturbation': 'drag' if a_drag > a_j2 else 'j2'
    }
