"""
Actuator Models for Orbit Maintenance

This module implements the propulsion side of the spacecraft: propellant
tanks, chemical and electric thrusters, the rocket-equation fuel check used
to gate burns, and the battery that powers electric propulsion.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import numpy as np
from typing import List, Dict, Optional
from dataclasses import dataclass, field
from enum import Enum

from ..utils.constants import STANDARD_GRAVITY


class PropellantKind(Enum):
    """Propellant types carried on board."""
    HYDRAZINE = "hydrazine"
    XENON = "xenon"
    BIPROPELLANT = "biprop"


class ThrusterKind(Enum):
    """Thruster families."""
    CHEMICAL = "chemical"
    ELECTRIC = "electric"


class InsufficientFuelError(RuntimeError):
    """Raised when a tank cannot supply the requested propellant mass."""

    def __init__(self, propellant: PropellantKind, required: float, available: float):
        self.propellant = propellant
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient {propellant.value}: need {required:.3f} kg, have {available:.3f} kg"
        )


@dataclass
class ThrusterProperties:
    """Specific properties for thrusters."""
    name: str
    kind: ThrusterKind
    propellant: PropellantKind
    specific_impulse: float           # Specific impulse [s]
    thrust: float                     # Thrust [N]
    power_kw: float = 0.0             # Electrical power while firing [kW]
    propellant_usage_factor: float = 1.0  # Fraction of the rocket-equation mass actually drawn


@dataclass
class PropellantInventory:
    """
    Remaining propellant per tank.

    Attributes:
        remaining: Propellant mass per kind [kg]
        capacity: Tank capacity per kind [kg]
    """
    remaining: Dict[PropellantKind, float]
    capacity: Dict[PropellantKind, float] = field(default_factory=dict)

    def available(self, kind: PropellantKind) -> float:
        """Propellant of one kind left in the tank [kg]."""
        return self.remaining.get(kind, 0.0)

    @property
    def total_mass(self) -> float:
        """Total propellant mass on board [kg]."""
        return float(sum(self.remaining.values()))

    def consume(self, kind: PropellantKind, mass: float) -> None:
        """
        Remove propellant from a tank.

        Raises:
            InsufficientFuelError: If the tank holds less than ``mass``
        """
        available = self.available(kind)
        if mass > available:
            raise InsufficientFuelError(kind, mass, available)
        self.remaining[kind] = available - mass

    def snapshot(self) -> Dict[str, float]:
        """Plain copy of the tank levels keyed by propellant name."""
        return {kind.value: mass for kind, mass in self.remaining.items()}

    def copy(self) -> 'PropellantInventory':
        """Independent copy of the inventory."""
        return PropellantInventory(dict(self.remaining), dict(self.capacity))


def propellant_mass_required(delta_v: float, specific_impulse: float, mass: float) -> float:
    """
    Propellant mass for a burn from the rocket equation.

    m_used = m · (1 - 1 / exp(|Δv| / (Isp · g0)))

    Args:
        delta_v: Burn magnitude [m/s] (sign ignored)
        specific_impulse: Specific impulse [s]
        mass: Spacecraft mass before the burn [kg]

    Returns:
        Propellant mass [kg]
    """
    if specific_impulse <= 0:
        raise ValueError("Specific impulse must be positive")
    mass_ratio = np.exp(abs(delta_v) / (specific_impulse * STANDARD_GRAVITY))
    return float(mass * (1.0 - 1.0 / mass_ratio))


def check_fuel_available(inventory: PropellantInventory, propellant: PropellantKind,
                         delta_v: float, specific_impulse: float, mass: float,
                         usage_factor: float = 1.0) -> bool:
    """
    Check whether a burn can be paid for from one tank.

    Args:
        inventory: Current propellant inventory
        propellant: Tank to draw from
        delta_v: Burn magnitude [m/s]
        specific_impulse: Specific impulse of the thruster [s]
        mass: Current spacecraft mass [kg]
        usage_factor: Scale applied to the rocket-equation mass

    Returns:
        True if the tank holds enough propellant
    """
    required = propellant_mass_required(delta_v, specific_impulse, mass) * usage_factor
    available = inventory.available(propellant)
    return available > 0 and required <= available


def burn_duration(delta_v: float, thrust: float, mass: float) -> float:
    """Time to deliver a delta-v at constant thrust [s]."""
    if thrust <= 0:
        raise ValueError("Thrust must be positive")
    return abs(delta_v) / (thrust / mass)


def format_burn_duration(seconds: float) -> str:
    """Human-readable burn duration."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3600:
        return f"{int(seconds // 60)}m {int(seconds % 60)}s"
    return f"{int(seconds // 3600)}h {int((seconds % 3600) // 60)}m"


@dataclass
class PowerSystem:
    """
    Solar array and battery feeding electric propulsion.

    The battery charge is kept as a fraction of capacity in [0, 1].
    """
    solar_array_power_kw: float = 0.0
    battery_capacity_wh: float = 100.0
    charge_fraction: float = 1.0
    draw_per_delta_v: float = 0.015   # Battery fraction per m/s of electric burn

    def power_needed(self, delta_v: float) -> float:
        """Battery fraction consumed by an electric burn."""
        return abs(delta_v) * self.draw_per_delta_v

    def can_supply(self, delta_v: float) -> bool:
        return self.charge_fraction >= self.power_needed(delta_v)

    def draw(self, delta_v: float) -> None:
        self.charge_fraction = max(0.0, self.charge_fraction - self.power_needed(delta_v))

    def recharge(self, dt: float, in_sunlight: bool) -> None:
        """
        Charge the battery from the solar array.

        Args:
            dt: Elapsed time [s]
            in_sunlight: Whether the array is illuminated
        """
        if self.solar_array_power_kw <= 0 or self.battery_capacity_wh <= 0 or not in_sunlight:
            return
        stored_wh = self.charge_fraction * self.battery_capacity_wh
        generated_wh = self.solar_array_power_kw * 1000.0 * dt / 3600.0
        self.charge_fraction = min(self.battery_capacity_wh, stored_wh + generated_wh) / self.battery_capacity_wh


class ThrusterSuite:
    """
    Thrusters installed on the spacecraft.

    Electric propulsion is preferred for routine corrections; chemical
    propulsion is used in rescue mode or when no electric thruster exists.
    """

    def __init__(self, thrusters: List[ThrusterProperties]):
        self.thrusters = list(thrusters)

    @property
    def has_electric(self) -> bool:
        return any(t.kind == ThrusterKind.ELECTRIC for t in self.thrusters)

    def electric(self) -> Optional[ThrusterProperties]:
        """First electric thruster, if any."""
        for thruster in self.thrusters:
            if thruster.kind == ThrusterKind.ELECTRIC:
                return thruster
        return None

    def chemical(self, inventory: Optional[PropellantInventory] = None) -> Optional[ThrusterProperties]:
        """
        Chemical thruster to use, preferring hydrazine over bipropellant.

        Without an inventory the first chemical thruster is returned. With
        one, the first chemical thruster whose tank is not empty is chosen,
        falling back to the first chemical thruster.
        """
        chemical = [t for t in self.thrusters if t.kind == ThrusterKind.CHEMICAL]
        if not chemical:
            return None
        if inventory is not None:
            for propellant in (PropellantKind.HYDRAZINE, PropellantKind.BIPROPELLANT):
                for thruster in chemical:
                    if thruster.propellant == propellant and inventory.available(propellant) > 0:
                        return thruster
        return chemical[0]

    def select(self, rescue_mode: bool,
               inventory: Optional[PropellantInventory] = None) -> Optional[ThrusterProperties]:
        """
        Pick the thruster for the next burn.

        Args:
            rescue_mode: Whether the autopilot is in rescue mode
            inventory: Current propellant inventory

        Returns:
            Selected thruster, or None if the suite is empty
        """
        if not rescue_mode and self.has_electric:
            return self.electric()
        return self.chemical(inventory) or self.electric()
