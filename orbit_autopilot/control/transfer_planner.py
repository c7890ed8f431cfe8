"""
Transfer Planner

This module plans coplanar transfers between circular orbits: the
two-impulse Hohmann transfer, a single-burn direct stand-in for small
altitude changes and the three-impulse bi-elliptic transfer, together with a
selector that picks the cheapest reasonable strategy.

Burn magnitudes are signed: positive is prograde, negative is retrograde.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import numpy as np
from typing import List, Optional
from dataclasses import dataclass, field
from enum import Enum
import logging

from scipy.optimize import minimize_scalar

from ..utils.constants import EARTH_MU, EARTH_RADIUS

logger = logging.getLogger(__name__)

# Radius ratio above which a bi-elliptic transfer can beat Hohmann
BIELLIPTIC_RATIO_THRESHOLD = 11.94


class ManeuverStrategy(Enum):
    """Transfer families."""
    DIRECT = "direct"
    TWO_IMPULSE = "two_impulse"
    THREE_IMPULSE = "three_impulse"


@dataclass
class TransferBurn:
    """Single impulsive burn of a transfer."""
    delta_v: float        # Signed magnitude [m/s]
    radius: float         # Radius where the burn is performed [m]
    time_offset: float    # Time after the first burn [s]
    description: str


@dataclass
class TransferPlan:
    """
    Complete transfer between two circular orbits.

    Attributes:
        strategy: Transfer family
        initial_radius: Departure orbit radius [m]
        target_radius: Arrival orbit radius [m]
        burns: Burns in execution order
        total_dv: Sum of burn magnitudes [m/s]
        transfer_time: Time from first to last burn [s]
        intermediate_radius: Bi-elliptic apoapsis radius [m]
    """
    strategy: ManeuverStrategy
    initial_radius: float
    target_radius: float
    burns: List[TransferBurn] = field(default_factory=list)
    total_dv: float = 0.0
    transfer_time: float = 0.0
    intermediate_radius: Optional[float] = None

    @property
    def burn_count(self) -> int:
        return len(self.burns)

    @property
    def is_raising(self) -> bool:
        return self.target_radius > self.initial_radius


@dataclass
class PlannerSettings:
    """Thresholds of the strategy selector."""
    direct_gap: float = 50e3                 # Largest gap served by a single burn [m]
    three_impulse_min_altitude: float = 20000e3
    ratio_threshold: float = BIELLIPTIC_RATIO_THRESHOLD
    max_intermediate_factor: float = 3.0     # Search bound on r_b / max(r1, r2)


def create_default_planner_settings() -> PlannerSettings:
    """Create default transfer planner settings."""
    return PlannerSettings()


def _check_radii(*radii: float) -> None:
    for radius in radii:
        if not np.isfinite(radius) or radius <= 0:
            raise ValueError(f"Orbit radius must be positive and finite, got {radius}")


def _circular_speed(radius: float, mu: float) -> float:
    return float(np.sqrt(mu / radius))


def _vis_viva(radius: float, semi_major_axis: float, mu: float) -> float:
    return float(np.sqrt(mu * (2.0 / radius - 1.0 / semi_major_axis)))


def _half_period(semi_major_axis: float, mu: float) -> float:
    return float(np.pi * np.sqrt(semi_major_axis**3 / mu))


def hohmann_transfer(r1: float, r2: float, mu: float = EARTH_MU) -> TransferPlan:
    """
    Two-impulse Hohmann transfer in either direction.

    Args:
        r1: Initial circular orbit radius [m]
        r2: Final circular orbit radius [m]
        mu: Gravitational parameter [m³/s²]

    Returns:
        Two-burn transfer plan (negative burns when lowering)
    """
    _check_radii(r1, r2)

    a_transfer = 0.5 * (r1 + r2)
    dv1 = _vis_viva(r1, a_transfer, mu) - _circular_speed(r1, mu)
    dv2 = _circular_speed(r2, mu) - _vis_viva(r2, a_transfer, mu)
    transfer_time = _half_period(a_transfer, mu)

    plan = TransferPlan(
        strategy=ManeuverStrategy.TWO_IMPULSE,
        initial_radius=r1,
        target_radius=r2,
        burns=[
            TransferBurn(dv1, r1, 0.0, "Transfer burn 1 (departure)"),
            TransferBurn(dv2, r2, transfer_time, "Transfer burn 2 (circularize)"),
        ],
        total_dv=abs(dv1) + abs(dv2),
        transfer_time=transfer_time
    )
    logger.debug("Hohmann transfer: r1=%.0f m, r2=%.0f m, dv1=%.2f m/s, dv2=%.2f m/s",
                 r1, r2, dv1, dv2)
    return plan


def plan_transfer(r1: float, r2: float, mu: float = EARTH_MU) -> Optional[TransferPlan]:
    """
    Plan a two-impulse raise between circular orbits.

    Lowering is not handled here; use select_minimum_fuel_maneuver().

    Args:
        r1: Initial radius [m]
        r2: Target radius [m]
        mu: Gravitational parameter [m³/s²]

    Returns:
        Transfer plan, or None when r1 >= r2
    """
    if r1 >= r2:
        return None
    return hohmann_transfer(r1, r2, mu)


def plan_direct_transfer(r1: float, r2: float, mu: float = EARTH_MU) -> TransferPlan:
    """
    Single-burn approximation for small altitude changes.

    The burn is the difference between the two circular speeds, applied
    prograde when raising. This is a stand-in for a targeted (Lambert)
    solution and is only reasonable for small gaps.
    """
    _check_radii(r1, r2)

    magnitude = abs(_circular_speed(r1, mu) - _circular_speed(r2, mu))
    delta_v = magnitude if r2 > r1 else -magnitude
    transfer_time = _half_period(0.5 * (r1 + r2), mu)

    return TransferPlan(
        strategy=ManeuverStrategy.DIRECT,
        initial_radius=r1,
        target_radius=r2,
        burns=[TransferBurn(delta_v, r1, 0.0, "Direct burn")],
        total_dv=magnitude,
        transfer_time=transfer_time
    )


def plan_bielliptic_transfer(r1: float, r2: float, rb: float,
                             mu: float = EARTH_MU) -> TransferPlan:
    """
    Three-impulse bi-elliptic transfer through an intermediate apoapsis.

    Args:
        r1: Initial circular orbit radius [m]
        r2: Final circular orbit radius [m]
        rb: Intermediate apoapsis radius [m], above both orbits
        mu: Gravitational parameter [m³/s²]

    Returns:
        Three-burn transfer plan
    """
    _check_radii(r1, r2, rb)
    if rb <= max(r1, r2):
        raise ValueError(f"Intermediate radius {rb:.0f} m must exceed max(r1, r2) = {max(r1, r2):.0f} m")

    a1 = 0.5 * (r1 + rb)
    a2 = 0.5 * (r2 + rb)

    dv1 = _vis_viva(r1, a1, mu) - _circular_speed(r1, mu)
    dv2 = _vis_viva(rb, a2, mu) - _vis_viva(rb, a1, mu)
    dv3 = _circular_speed(r2, mu) - _vis_viva(r2, a2, mu)

    t1 = _half_period(a1, mu)
    t2 = _half_period(a2, mu)

    return TransferPlan(
        strategy=ManeuverStrategy.THREE_IMPULSE,
        initial_radius=r1,
        target_radius=r2,
        burns=[
            TransferBurn(dv1, r1, 0.0, "Bi-elliptic burn 1 (raise apoapsis)"),
            TransferBurn(dv2, rb, t1, "Bi-elliptic burn 2 (adjust periapsis)"),
            TransferBurn(dv3, r2, t1 + t2, "Bi-elliptic burn 3 (circularize)"),
        ],
        total_dv=abs(dv1) + abs(dv2) + abs(dv3),
        transfer_time=t1 + t2,
        intermediate_radius=rb
    )


def optimal_bielliptic_radius(r1: float, r2: float, mu: float = EARTH_MU,
                              max_factor: float = 3.0) -> float:
    """
    Intermediate radius minimizing the bi-elliptic delta-v.

    The search is bounded to (max(r1, r2), max_factor · max(r1, r2)] since
    the cost keeps decreasing towards infinity for large radius ratios while
    the transfer time grows without bound.

    Returns:
        Intermediate radius [m]
    """
    _check_radii(r1, r2)
    if max_factor <= 1.0:
        raise ValueError("max_factor must be greater than 1")

    r_max = max(r1, r2)
    result = minimize_scalar(
        lambda rb: plan_bielliptic_transfer(r1, r2, rb, mu).total_dv,
        bounds=(r_max * 1.001, r_max * max_factor),
        method='bounded'
    )
    return float(result.x)


def select_minimum_fuel_maneuver(r1: float, r2: float,
                                 current_altitude: Optional[float] = None,
                                 mu: float = EARTH_MU,
                                 settings: Optional[PlannerSettings] = None) -> Optional[TransferPlan]:
    """
    Pick the transfer strategy for a change of circular orbit.

    Small gaps use a single direct burn. The three-impulse transfer is only
    considered from high orbits with a large radius ratio, and only used
    when it is actually cheaper. Everything else is a two-impulse transfer.

    Args:
        r1: Current radius [m]
        r2: Target radius [m]
        current_altitude: Current altitude [m] (defaults to r1 above Earth's surface)
        mu: Gravitational parameter [m³/s²]
        settings: Selector thresholds

    Returns:
        Transfer plan, or None when the radii are equal
    """
    _check_radii(r1, r2)
    settings = settings or PlannerSettings()
    if np.isclose(r1, r2, rtol=0.0, atol=1e-6):
        return None
    if current_altitude is None:
        current_altitude = r1 - EARTH_RADIUS

    gap = abs(r2 - r1)
    if gap < settings.direct_gap:
        plan = plan_direct_transfer(r1, r2, mu)
    else:
        plan = hohmann_transfer(r1, r2, mu)
        ratio = max(r1, r2) / min(r1, r2)
        if current_altitude > settings.three_impulse_min_altitude and ratio > settings.ratio_threshold:
            rb = optimal_bielliptic_radius(r1, r2, mu, settings.max_intermediate_factor)
            bielliptic = plan_bielliptic_transfer(r1, r2, rb, mu)
            if bielliptic.total_dv < plan.total_dv:
                plan = bielliptic

    logger.debug("Selected %s transfer %.0f -> %.0f m: %.2f m/s over %.0f s",
                 plan.strategy.value, r1, r2, plan.total_dv, plan.transfer_time)
    return plan
