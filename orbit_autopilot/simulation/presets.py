"""
Spacecraft Presets

Reference spacecraft for the supported orbits: dry mass, propellant load,
thrusters and power system per target altitude, together with the helpers
that turn a preset into the objects the simulation and the autopilot use.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

from typing import Dict, List, Optional
from dataclasses import dataclass, field

from ..control.actuator_models import (PowerSystem, PropellantInventory, PropellantKind,
                                       ThrusterKind, ThrusterProperties, ThrusterSuite)
from ..dynamics.orbital_elements import OrbitalState, circular_orbit_state, elliptical_orbit_state

# Fraction of the rocket-equation propellant an electric thruster actually draws
ELECTRIC_USAGE_FACTOR = 0.05


def _monoprop(thrust: float = 22.0) -> ThrusterProperties:
    return ThrusterProperties("chemical_monoprop", ThrusterKind.CHEMICAL,
                              PropellantKind.HYDRAZINE, 235.0, thrust)


def _biprop(thrust: float) -> ThrusterProperties:
    return ThrusterProperties("biprop_MMH_MON", ThrusterKind.CHEMICAL,
                              PropellantKind.BIPROPELLANT, 320.0, thrust)


def _electric(name: str, isp: float, thrust: float) -> ThrusterProperties:
    # Thrust [N] and power [kW] share the same figure in the reference data
    return ThrusterProperties(name, ThrusterKind.ELECTRIC, PropellantKind.XENON, isp, thrust,
                              power_kw=thrust, propellant_usage_factor=ELECTRIC_USAGE_FACTOR)


@dataclass
class SpacecraftPreset:
    """Spacecraft configuration for one reference orbit."""
    name: str
    altitude_km: float
    dry_mass: float                               # [kg]
    propellant: Dict[PropellantKind, float]       # Initial load [kg]
    tank_capacity: Dict[PropellantKind, float]    # [kg]
    thrusters: List[ThrusterProperties] = field(default_factory=list)
    solar_array_power_kw: float = 0.0
    battery_capacity_wh: float = 100.0
    perigee_altitude_km: Optional[float] = None   # Set for elliptical orbits

    @property
    def is_elliptical(self) -> bool:
        return self.perigee_altitude_km is not None

    def create_inventory(self) -> PropellantInventory:
        """Fresh, independent propellant inventory."""
        return PropellantInventory(dict(self.propellant), dict(self.tank_capacity))

    def create_thruster_suite(self) -> ThrusterSuite:
        return ThrusterSuite(list(self.thrusters))

    def create_power_system(self) -> PowerSystem:
        return PowerSystem(solar_array_power_kw=self.solar_array_power_kw,
                           battery_capacity_wh=self.battery_capacity_wh)

    def initial_state(self) -> OrbitalState:
        """
        Initial state on the +X axis.

        Circular orbits start at the target altitude; elliptical orbits
        start at apogee.
        """
        if self.is_elliptical:
            return elliptical_orbit_state(self.perigee_altitude_km * 1000,
                                          self.altitude_km * 1000, start_at_apogee=True)
        return circular_orbit_state(self.altitude_km * 1000)


SPACECRAFT_PRESETS: Dict[int, SpacecraftPreset] = {
    400: SpacecraftPreset(
        name="LEO 400 km", altitude_km=400, dry_mass=200,
        propellant={PropellantKind.HYDRAZINE: 60, PropellantKind.XENON: 5},
        tank_capacity={PropellantKind.HYDRAZINE: 96, PropellantKind.XENON: 10},
        thrusters=[_monoprop(), _electric("hall_thruster", 1700, 0.04)],
        solar_array_power_kw=0.5, battery_capacity_wh=100),
    550: SpacecraftPreset(
        name="SSO 550 km", altitude_km=550, dry_mass=250,
        propellant={PropellantKind.HYDRAZINE: 40, PropellantKind.XENON: 6},
        tank_capacity={PropellantKind.HYDRAZINE: 96, PropellantKind.XENON: 12},
        thrusters=[_monoprop(), _electric("hall_thruster", 1700, 0.06)],
        solar_array_power_kw=0.6, battery_capacity_wh=120),
    1200: SpacecraftPreset(
        name="LEO 1200 km", altitude_km=1200, dry_mass=300,
        propellant={PropellantKind.HYDRAZINE: 12},
        tank_capacity={PropellantKind.HYDRAZINE: 40},
        thrusters=[_monoprop()],
        solar_array_power_kw=0.0, battery_capacity_wh=0.0),
    20200: SpacecraftPreset(
        name="MEO 20,200 km", altitude_km=20200, dry_mass=1500,
        propellant={PropellantKind.HYDRAZINE: 30, PropellantKind.XENON: 18},
        tank_capacity={PropellantKind.HYDRAZINE: 80, PropellantKind.XENON: 35},
        thrusters=[_electric("ion_thruster", 3000, 0.08), _monoprop()],
        solar_array_power_kw=1.5, battery_capacity_wh=300),
    35786: SpacecraftPreset(
        name="GEO 35,786 km", altitude_km=35786, dry_mass=4000,
        propellant={PropellantKind.XENON: 100, PropellantKind.BIPROPELLANT: 800},
        tank_capacity={PropellantKind.XENON: 180, PropellantKind.BIPROPELLANT: 1200},
        thrusters=[_electric("hall_thruster", 1800, 0.15), _biprop(400.0)],
        solar_array_power_kw=5.0, battery_capacity_wh=1000),
    42000: SpacecraftPreset(
        name="HEO 42,000 km (Molniya)", altitude_km=42000, dry_mass=1800,
        propellant={PropellantKind.XENON: 30, PropellantKind.BIPROPELLANT: 120},
        tank_capacity={PropellantKind.XENON: 60, PropellantKind.BIPROPELLANT: 350},
        thrusters=[_biprop(100.0), _electric("ion_thruster", 3000, 0.05)],
        solar_array_power_kw=2.0, battery_capacity_wh=400,
        perigee_altitude_km=1000),
}


def get_spacecraft_preset(altitude_km: int) -> SpacecraftPreset:
    """Look up a spacecraft preset; unknown altitudes fall back to 400 km."""
    return SPACECRAFT_PRESETS.get(altitude_km, SPACECRAFT_PRESETS[400])
