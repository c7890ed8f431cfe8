"""
Orbit Constraints

This module defines the target orbit a mission must hold, the
warning/violation/critical thresholds around it, the preset constraint
tables for the reference orbits, and a checker that classifies the current
orbit against them.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import numpy as np
from typing import Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum

from ..dynamics.orbital_elements import OrbitalElements
from ..utils.constants import EARTH_MU, EARTH_RADIUS, HEO_ECCENTRICITY_THRESHOLD


class MissingConstraintsError(ValueError):
    """Raised when constraints lack fields their orbit regime requires."""

    def __init__(self, name: str, missing: List[str]):
        self.name = name
        self.missing = list(missing)
        super().__init__(f"Constraints '{name}' missing: {', '.join(missing)}")


class ThresholdStatus(Enum):
    """Severity of a deviation."""
    NOMINAL = 0
    WARNING = 1
    VIOLATION = 2
    CRITICAL = 3


class OrbitRegime(Enum):
    """Orbit family selected by the target eccentricity."""
    CIRCULAR = "circular"
    HIGHLY_ELLIPTICAL = "highly_elliptical"


@dataclass(frozen=True)
class Thresholds:
    """Warning, violation and critical deviation levels."""
    warning: float
    violation: float
    critical: float

    def __post_init__(self):
        if not (0 <= self.warning <= self.violation <= self.critical):
            raise ValueError("Thresholds must satisfy 0 <= warning <= violation <= critical")

    def classify(self, deviation: float) -> ThresholdStatus:
        """Classify an absolute deviation."""
        deviation = abs(deviation)
        if deviation > self.critical:
            return ThresholdStatus.CRITICAL
        if deviation > self.violation:
            return ThresholdStatus.VIOLATION
        if deviation > self.warning:
            return ThresholdStatus.WARNING
        return ThresholdStatus.NOMINAL


DEFAULT_CIRCULAR_ECCENTRICITY = Thresholds(0.001, 0.005, 0.010)
DEFAULT_HEO_ECCENTRICITY = Thresholds(0.05, 0.10, 0.20)


@dataclass(frozen=True)
class Constraints:
    """
    Target orbit and tolerances.

    For the highly elliptical regime ``target_altitude_km`` is the apogee
    altitude and ``perigee_altitude_km`` is required. Some presets bound the
    semi-major axis instead of the altitude (``semi_major_axis_km``).
    """
    name: str
    target_altitude_km: Optional[float]
    target_velocity_ms: Optional[float] = None
    target_eccentricity: Optional[float] = None
    perigee_altitude_km: Optional[float] = None
    altitude_km: Optional[Thresholds] = None
    semi_major_axis_km: Optional[Thresholds] = None
    velocity_ms: Optional[Thresholds] = None
    eccentricity: Optional[Thresholds] = None

    @property
    def regime(self) -> OrbitRegime:
        if self.target_eccentricity is not None and self.target_eccentricity > HEO_ECCENTRICITY_THRESHOLD:
            return OrbitRegime.HIGHLY_ELLIPTICAL
        return OrbitRegime.CIRCULAR

    @property
    def altitude_thresholds(self) -> Optional[Thresholds]:
        """Altitude tolerance, falling back to the semi-major axis tolerance."""
        return self.altitude_km or self.semi_major_axis_km

    @property
    def eccentricity_thresholds(self) -> Thresholds:
        if self.eccentricity is not None:
            return self.eccentricity
        if self.regime == OrbitRegime.HIGHLY_ELLIPTICAL:
            return DEFAULT_HEO_ECCENTRICITY
        return DEFAULT_CIRCULAR_ECCENTRICITY

    @property
    def target_speed(self) -> float:
        """Target speed [m/s], circular speed at the target altitude when unset."""
        if self.target_velocity_ms is not None:
            return self.target_velocity_ms
        return float(np.sqrt(EARTH_MU / (EARTH_RADIUS + self.target_altitude_km * 1000)))

    def validate(self) -> None:
        """
        Check that the regime's required fields are present.

        Raises:
            MissingConstraintsError: If required fields are missing
        """
        missing = []
        if self.target_altitude_km is None:
            missing.append('target_altitude_km')
        if self.regime == OrbitRegime.HIGHLY_ELLIPTICAL:
            if self.perigee_altitude_km is None:
                missing.append('perigee_altitude_km')
        elif self.altitude_thresholds is None:
            missing.append('altitude_km')
        if missing:
            raise MissingConstraintsError(self.name, missing)


@dataclass
class ConstraintReport:
    """Classification of the current orbit against its constraints."""
    altitude_status: ThresholdStatus = ThresholdStatus.NOMINAL
    velocity_status: ThresholdStatus = ThresholdStatus.NOMINAL
    eccentricity_status: ThresholdStatus = ThresholdStatus.NOMINAL
    violations: List[str] = field(default_factory=list)

    @property
    def worst(self) -> ThresholdStatus:
        return max((self.altitude_status, self.velocity_status, self.eccentricity_status),
                   key=lambda status: status.value)


def evaluate_constraints(elements: OrbitalElements, constraints: Constraints) -> ConstraintReport:
    """
    Classify altitude, velocity and eccentricity against the constraints.

    Circular orbits compare deviations from the target directly. Highly
    elliptical orbits only flag altitudes outside the perigee/apogee band
    and ignore the naturally varying speed.

    Args:
        elements: Current orbital elements
        constraints: Validated constraints

    Returns:
        Constraint report
    """
    report = ConstraintReport()
    altitude_km = elements.altitude / 1000
    heo = constraints.regime == OrbitRegime.HIGHLY_ELLIPTICAL

    altitude_thresholds = constraints.altitude_thresholds
    if altitude_thresholds is not None:
        if heo:
            low = constraints.perigee_altitude_km
            high = constraints.target_altitude_km
            excursion = max(low - altitude_km, altitude_km - high, 0.0)
            # Inside the band is nominal; only the excursion beyond it counts
            if excursion > altitude_thresholds.critical:
                report.altitude_status = ThresholdStatus.CRITICAL
            elif excursion > altitude_thresholds.violation:
                report.altitude_status = ThresholdStatus.VIOLATION
        else:
            reference_km = (elements.sma_altitude / 1000 if constraints.altitude_km is None
                            else altitude_km)
            report.altitude_status = altitude_thresholds.classify(
                reference_km - constraints.target_altitude_km)
        if report.altitude_status != ThresholdStatus.NOMINAL:
            report.violations.append(f"Alt: {altitude_km:.1f} km ({report.altitude_status.name})")

    escape_speed = np.sqrt(2 * elements.mu / elements.radius)
    if elements.speed > 0.95 * escape_speed:
        report.velocity_status = ThresholdStatus.CRITICAL
        report.violations.append(f"Escape velocity: {elements.speed:.0f} m/s")
    elif not heo and constraints.velocity_ms is not None:
        report.velocity_status = constraints.velocity_ms.classify(
            elements.speed - constraints.target_speed)
        if report.velocity_status != ThresholdStatus.NOMINAL:
            report.violations.append(f"Vel: {elements.speed:.1f} m/s ({report.velocity_status.name})")

    target_e = constraints.target_eccentricity if heo else 0.0
    report.eccentricity_status = constraints.eccentricity_thresholds.classify(
        elements.eccentricity - target_e)
    if report.eccentricity_status != ThresholdStatus.NOMINAL:
        report.violations.append(f"Ecc: {elements.eccentricity:.4f} ({report.eccentricity_status.name})")

    return report


REAL_CONSTRAINTS: Dict[int, Constraints] = {
    400: Constraints(
        name="LEO_400km", target_altitude_km=400,
        altitude_km=Thresholds(5, 15, 30),
        velocity_ms=Thresholds(20, 50, 100),
        eccentricity=Thresholds(0.0005, 0.002, 0.005)),
    550: Constraints(
        name="SSO_550km", target_altitude_km=550,
        altitude_km=Thresholds(5, 10, 20),
        velocity_ms=Thresholds(20, 40, 80),
        eccentricity=Thresholds(0.0005, 0.001, 0.003)),
    1200: Constraints(
        name="LEO_1200km", target_altitude_km=1200,
        altitude_km=Thresholds(15, 40, 80),
        velocity_ms=Thresholds(50, 100, 200),
        eccentricity=Thresholds(0.001, 0.005, 0.010)),
    20200: Constraints(
        name="MEO_20200km", target_altitude_km=20200,
        semi_major_axis_km=Thresholds(3, 8, 15),
        velocity_ms=Thresholds(15, 30, 60),
        eccentricity=Thresholds(0.002, 0.005, 0.010)),
    35786: Constraints(
        name="GEO_35786km", target_altitude_km=35786,
        altitude_km=Thresholds(15, 35, 75),
        velocity_ms=Thresholds(10, 20, 40),
        eccentricity=Thresholds(0.0002, 0.0005, 0.001)),
    42000: Constraints(
        name="HEO_42000km_Molniya", target_altitude_km=42000,
        perigee_altitude_km=1000, target_eccentricity=0.72,
        altitude_km=Thresholds(2000, 4000, 8000),
        velocity_ms=Thresholds(1000, 2000, 4000),
        eccentricity=Thresholds(0.05, 0.10, 0.20)),
}

EASY_CONSTRAINTS: Dict[int, Constraints] = {
    400: Constraints(
        name="LEO_400km", target_altitude_km=400,
        altitude_km=Thresholds(30, 75, 150),
        velocity_ms=Thresholds(100, 200, 400),
        eccentricity=Thresholds(0.005, 0.015, 0.030)),
    550: Constraints(
        name="SSO_550km", target_altitude_km=550,
        altitude_km=Thresholds(30, 60, 120),
        velocity_ms=Thresholds(100, 200, 400),
        eccentricity=Thresholds(0.005, 0.015, 0.030)),
    1200: Constraints(
        name="LEO_1200km", target_altitude_km=1200,
        altitude_km=Thresholds(50, 150, 300),
        velocity_ms=Thresholds(200, 500, 1000),
        eccentricity=Thresholds(0.01, 0.03, 0.060)),
    20200: Constraints(
        name="MEO_20200km", target_altitude_km=20200,
        semi_major_axis_km=Thresholds(20, 50, 100),
        velocity_ms=Thresholds(100, 200, 400),
        eccentricity=Thresholds(0.01, 0.03, 0.060)),
    35786: Constraints(
        name="GEO_35786km", target_altitude_km=35786,
        altitude_km=Thresholds(100, 250, 500),
        velocity_ms=Thresholds(50, 100, 200),
        eccentricity=Thresholds(0.002, 0.005, 0.010)),
    42000: Constraints(
        name="HEO_42000km_Molniya", target_altitude_km=42000,
        perigee_altitude_km=1000, target_eccentricity=0.72,
        altitude_km=Thresholds(5000, 10000, 20000),
        velocity_ms=Thresholds(2000, 4000, 8000),
        eccentricity=Thresholds(0.15, 0.30, 0.50)),
}


def get_constraints(altitude_km: int, mode: str = 'real') -> Constraints:
    """
    Look up preset constraints.

    Unknown altitudes fall back to the 400 km preset.

    Args:
        altitude_km: Preset key [km]
        mode: 'real' or 'easy'
    """
    if mode not in ('real', 'easy'):
        raise ValueError(f"Unknown constraint mode: {mode}")
    table = REAL_CONSTRAINTS if mode == 'real' else EASY_CONSTRAINTS
    return table.get(altitude_km, table[400])


def create_circular_constraints(altitude_km: float, altitude_tolerance_km: float = 5.0,
                                eccentricity_warning: float = 0.0005) -> Constraints:
    """Create circular-orbit constraints around an arbitrary altitude."""
    return Constraints(
        name=f"CIRCULAR_{altitude_km:.0f}km",
        target_altitude_km=altitude_km,
        altitude_km=Thresholds(altitude_tolerance_km, 3 * altitude_tolerance_km,
                               6 * altitude_tolerance_km),
        velocity_ms=Thresholds(20, 50, 100),
        eccentricity=Thresholds(eccentricity_warning, 4 * eccentricity_warning,
                                10 * eccentricity_warning)
    )
