"""
Orbit Simulation Runner

This module provides the tick-driven reference driver around the autopilot:
it owns the spacecraft context (state, propellant, battery, mission time),
propagates the orbit, samples the autopilot every N ticks and executes the
burns the autopilot requests.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import numpy as np
from typing import Dict, List, Optional
from dataclasses import dataclass, field
import logging

from .presets import SpacecraftPreset, get_spacecraft_preset
from ..control.actuator_models import (InsufficientFuelError, PowerSystem, PropellantInventory,
                                       ThrusterKind, ThrusterSuite, burn_duration,
                                       format_burn_duration, propellant_mass_required)
from ..control.constraints import Constraints, get_constraints
from ..control.guidance_laws import (BurnEvent, GuidanceConfiguration, GuidanceContext,
                                     OrbitalAutopilot)
from ..dynamics.orbital_elements import OrbitalState
from ..dynamics.perturbations import PerturbationParameters, in_earth_shadow
from ..dynamics.propagator import PropagationOptions, ReentryError, propagate_state
from ..navigation.extended_kalman_filter import OrbitStateEstimator, create_initial_estimator_state
from ..navigation.sensor_models import PositionVelocitySensor, create_navigation_fix_sensor
from ..utils.constants import DEFAULT_SUB_STEPS

logger = logging.getLogger(__name__)


@dataclass
class SimulationSettings:
    """Driver configuration."""
    time_step: float = 1.0                 # Tick length [s]
    sub_steps: int = DEFAULT_SUB_STEPS     # Physics sub-steps per tick
    method: str = 'euler'                  # Integrator ('euler' or 'rk4')
    include_drag: bool = True
    include_j2: bool = False
    autopilot_interval_ticks: int = 30     # Autopilot sampled every N ticks
    use_estimator: bool = False            # Attach a state estimator to the autopilot
    use_navigation_sensor: bool = False    # Autopilot sees noisy navigation fixes instead of truth
    sensor_seed: Optional[int] = None


def create_default_simulation_settings() -> SimulationSettings:
    """Create default simulation settings."""
    return SimulationSettings()


@dataclass
class BurnRecord:
    """Executed burn, as booked by the driver."""
    mission_time: float
    delta_v: float
    thruster_kind: ThrusterKind
    thruster_name: str
    propellant_used: float     # [kg]
    duration: float            # [s]


@dataclass
class SimulationContext:
    """Everything the driver owns between ticks."""
    state: OrbitalState
    dry_mass: float
    inventory: PropellantInventory
    thrusters: ThrusterSuite
    power: PowerSystem
    constraints: Constraints
    mission_time: float = 0.0
    tick: int = 0
    crashed: bool = False
    in_sunlight: bool = True
    burn_history: List[BurnRecord] = field(default_factory=list)

    @property
    def mass(self) -> float:
        """Current wet mass [kg]."""
        return self.dry_mass + self.inventory.total_mass


class OrbitSimulation:
    """
    Tick-driven orbit simulation with an optional autopilot.

    Physics runs every tick; the autopilot is evaluated only every
    ``autopilot_interval_ticks`` ticks, counted explicitly.
    """

    def __init__(self, context: SimulationContext,
                 autopilot: Optional[OrbitalAutopilot] = None,
                 settings: Optional[SimulationSettings] = None,
                 perturbation_params: Optional[PerturbationParameters] = None,
                 sensor: Optional[PositionVelocitySensor] = None):
        """
        Initialize simulation.

        Args:
            context: Spacecraft context
            autopilot: Autopilot to sample (None for a passive run)
            settings: Driver configuration
            perturbation_params: Perturbation parameters for the force model
            sensor: Navigation sensor feeding the autopilot (None for truth)
        """
        self.context = context
        self.autopilot = autopilot
        self.settings = settings or SimulationSettings()
        self.perturbation_params = perturbation_params or PerturbationParameters()
        self.options = PropagationOptions(
            method=self.settings.method,
            sub_steps=self.settings.sub_steps,
            include_j2=self.settings.include_j2,
            include_drag=self.settings.include_drag
        )
        self.sensor = sensor
        self.events: List[BurnEvent] = []

    @classmethod
    def from_preset(cls, altitude_km: int, mode: str = 'real',
                    settings: Optional[SimulationSettings] = None,
                    enable_autopilot: bool = True,
                    guidance_config: Optional[GuidanceConfiguration] = None) -> 'OrbitSimulation':
        """
        Build a simulation from the reference spacecraft and constraint tables.

        Args:
            altitude_km: Preset key [km]
            mode: Constraint mode, 'real' or 'easy'
            settings: Driver configuration
            enable_autopilot: Engage the autopilot from the start
            guidance_config: Autopilot tuning
        """
        settings = settings or SimulationSettings()
        preset: SpacecraftPreset = get_spacecraft_preset(altitude_km)
        state = preset.initial_state()

        context = SimulationContext(
            state=state,
            dry_mass=preset.dry_mass,
            inventory=preset.create_inventory(),
            thrusters=preset.create_thruster_suite(),
            power=preset.create_power_system(),
            constraints=get_constraints(altitude_km, mode)
        )

        autopilot = OrbitalAutopilot(guidance_config)
        autopilot.set_argument_of_perigee(state.argument_of_perigee)
        if settings.use_estimator:
            autopilot.attach_estimator(OrbitStateEstimator(
                create_initial_estimator_state(state), mass=context.mass))
        autopilot.set_enabled(enable_autopilot)

        sensor = None
        if settings.use_navigation_sensor:
            sensor = create_navigation_fix_sensor(seed=settings.sensor_seed)

        logger.info("Simulation initialized: %s (%s constraints)", preset.name, mode)
        return cls(context, autopilot, settings, sensor=sensor)

    def fire_thruster(self, delta_v: float, thruster_kind: ThrusterKind,
                      direction: np.ndarray) -> bool:
        """
        Execute an impulsive burn.

        The magnitude of delta_v is applied along direction. Propellant is
        taken from the tank of the thruster selected for the requested kind;
        electric burns also draw battery charge.

        Returns:
            True if the burn was executed
        """
        context = self.context
        if context.crashed:
            logger.warning("Cannot fire thrusters after reentry")
            return False

        if thruster_kind == ThrusterKind.ELECTRIC:
            thruster = context.thrusters.electric()
        else:
            thruster = context.thrusters.chemical(context.inventory)
        if thruster is None:
            logger.info("No %s thruster installed", thruster_kind.value)
            return False

        electric = thruster.kind == ThrusterKind.ELECTRIC
        if electric and not context.power.can_supply(delta_v):
            logger.info("Insufficient battery for %.2f m/s electric burn (%.0f%% available)",
                        abs(delta_v), 100 * context.power.charge_fraction)
            return False

        mass = context.mass
        propellant_used = (propellant_mass_required(delta_v, thruster.specific_impulse, mass)
                           * thruster.propellant_usage_factor)
        try:
            context.inventory.consume(thruster.propellant, propellant_used)
        except InsufficientFuelError as exc:
            logger.info("Burn refused: %s", exc)
            return False

        if electric:
            context.power.draw(delta_v)

        unit = np.asarray(direction, dtype=float)
        unit = unit / np.linalg.norm(unit)
        context.state.velocity = context.state.velocity + abs(delta_v) * unit

        duration = burn_duration(delta_v, thruster.thrust, mass)
        context.burn_history.append(BurnRecord(
            mission_time=context.mission_time,
            delta_v=float(delta_v),
            thruster_kind=thruster.kind,
            thruster_name=thruster.name,
            propellant_used=propellant_used,
            duration=duration
        ))
        logger.info("Burn %+.2f m/s with %s (%.3f kg, %s)", delta_v, thruster.name,
                    propellant_used, format_burn_duration(duration))
        return True

    def step(self, dt: Optional[float] = None) -> Optional[BurnEvent]:
        """
        Advance the simulation by one tick.

        Args:
            dt: Tick length [s] (defaults to settings.time_step)

        Returns:
            Burn fired by the autopilot during this tick, if any
        """
        context = self.context
        if context.crashed:
            return None
        dt = self.settings.time_step if dt is None else dt

        try:
            context.state = propagate_state(context.state, dt, context.mass, None,
                                            self.options, self.perturbation_params,
                                            context.mission_time)
        except ReentryError as exc:
            context.crashed = True
            logger.warning("Reentry: %s", exc)
            return None

        context.mission_time += dt
        context.tick += 1
        context.in_sunlight = not in_earth_shadow(context.state.position)
        context.power.recharge(dt, context.in_sunlight)

        if self.autopilot is None or context.tick % self.settings.autopilot_interval_ticks != 0:
            return None

        observed = None
        if self.sensor is not None:
            observed = self.sensor.observe_state(context.state, context.mission_time)

        event = self.autopilot.update(
            GuidanceContext(
                state=observed if observed is not None else context.state.copy(),
                constraints=context.constraints,
                mass=context.mass,
                mission_time=context.mission_time,
                inventory=context.inventory.copy(),
                thrusters=context.thrusters
            ),
            self.fire_thruster
        )
        if event is not None:
            self.events.append(event)
        return event

    def run(self, duration: float, dt: Optional[float] = None) -> List[BurnEvent]:
        """
        Run for a duration of mission time or until reentry.

        Returns:
            Burns fired by the autopilot during the run
        """
        dt = self.settings.time_step if dt is None else dt
        end_time = self.context.mission_time + duration
        fired = []
        while self.context.mission_time < end_time - 1e-9 and not self.context.crashed:
            event = self.step(min(dt, end_time - self.context.mission_time))
            if event is not None:
                fired.append(event)
        return fired

    def summary(self) -> Dict:
        """Snapshot of the spacecraft for reporting."""
        context = self.context
        return {
            'mission_time': context.mission_time,
            'altitude_km': context.state.altitude / 1000,
            'speed': context.state.speed,
            'mass': context.mass,
            'propellant': context.inventory.snapshot(),
            'battery': context.power.charge_fraction,
            'burns': len(context.burn_history),
            'total_delta_v': float(sum(abs(b.delta_v) for b in context.burn_history)),
            'crashed': context.crashed,
            'autopilot': self.autopilot.status() if self.autopilot is not None else None
        }
