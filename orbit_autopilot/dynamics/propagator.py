"""
Planar Orbit Propagator

This module advances a spacecraft state under two-body gravity with optional
J2 and drag perturbations. Classical fourth-order Runge-Kutta is the default
integrator; a semi-implicit (symplectic) Euler scheme is available for cheap
long runs.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .orbital_elements import OrbitalState
from .perturbations import (PerturbationParameters, drag_acceleration,
                            gravity_acceleration, j2_acceleration)
from ..utils.constants import DEFAULT_SUB_STEPS, EARTH_MU, EARTH_RADIUS

logger = logging.getLogger(__name__)


class ReentryError(RuntimeError):
    """Raised when the propagated state reaches the Earth's surface."""

    def __init__(self, radius: float, time: float = 0.0):
        self.radius = radius
        self.time = time
        super().__init__(
            f"Spacecraft reached the surface (r={radius / 1000:.1f} km, t={time:.1f} s)"
        )


@dataclass
class PropagationOptions:
    """Integrator selection and force model switches."""
    method: str = 'rk4'             # 'rk4' or 'euler'
    sub_steps: int = DEFAULT_SUB_STEPS
    include_j2: bool = False
    include_drag: bool = False
    mu: float = EARTH_MU

    def __post_init__(self):
        if self.method not in ('rk4', 'euler'):
            raise ValueError(f"Unknown integration method: {self.method}")
        if self.sub_steps < 1:
            raise ValueError("sub_steps must be at least 1")


def create_default_propagation_options() -> PropagationOptions:
    """Create default propagation options (RK4, two-body only)."""
    return PropagationOptions()


def orbital_dynamics(state_vector: np.ndarray, mass: float = 1000.0,
                     thrust_acceleration: Optional[np.ndarray] = None,
                     options: Optional[PropagationOptions] = None,
                     params: Optional[PerturbationParameters] = None) -> np.ndarray:
    """
    Time derivative of the planar state [x, y, vx, vy].

    Args:
        state_vector: Current state [m, m, m/s, m/s]
        mass: Spacecraft mass [kg] (used by drag)
        thrust_acceleration: Constant thrust acceleration [m/s²] (2x1)
        options: Force model switches
        params: Perturbation parameters

    Returns:
        State derivative (4x1)

    Raises:
        ReentryError: If the position lies at or below the Earth's surface
    """
    options = options or PropagationOptions()
    position = state_vector[:2]
    velocity = state_vector[2:]

    radius = np.linalg.norm(position)
    if radius <= EARTH_RADIUS:
        raise ReentryError(radius)

    acceleration = gravity_acceleration(position, options.mu)
    if options.include_j2:
        acceleration = acceleration + j2_acceleration(position)
    if options.include_drag:
        acceleration = acceleration + drag_acceleration(position, velocity, mass, params)
    if thrust_acceleration is not None:
        acceleration = acceleration + thrust_acceleration

    return np.concatenate([velocity, acceleration])



def _rk4_step(y: np.ndarray, dt: float, mass: float, thrust: Optional[np.ndarray],
              options: PropagationOptions, params: Optional[PerturbationParameters]) -> np.ndarray:
    k1 = orbital_dynamics(y, mass, thrust, options, params)
    k2 = orbital_dynamics(y + 0.5 * dt * k1, mass, thrust, options, params)
    k3 = orbital_dynamics(y + 0.5 * dt * k2, mass, thrust, options, params)
    k4 = orbital_dynamics(y + dt * k3, mass, thrust, options, params)
    return y + dt / 6.0 * (k1 + 2 * k2 + 2 * k3 + k4)


def _euler_step(y: np.ndarray, dt: float, mass: float, thrust: Optional[np.ndarray],
                options: PropagationOptions, params: Optional[PerturbationParameters]) -> np.ndarray:
    # Velocity first, then position with the updated velocity
    acceleration = orbital_dynamics(y, mass, thrust, options, params)[2:]
    velocity = y[2:] + dt * acceleration
    position = y[:2] + dt * velocity
    return np.concatenate([position, velocity])


def propagate_state(state: OrbitalState, dt: float, mass: float = 1000.0,
                    thrust_acceleration: Optional[np.ndarray] = None,
                    options: Optional[PropagationOptions] = None,
                    params: Optional[PerturbationParameters] = None,
                    time: float = 0.0) -> OrbitalState:
    """
    Advance a state by dt using the configured integrator.

    The interval is split into options.sub_steps equal steps. A new state is
    returned; the input is not modified.

    Args:
        state: Current state
        dt: Time step [s] (must be positive)
        mass: Spacecraft mass [kg]
        thrust_acceleration: Constant thrust acceleration over the step [m/s²]
        options: Integrator and force model options
        params: Perturbation parameters
        time: Mission time at the start of the step [s] (reported on reentry)

    Returns:
        Propagated state

    Raises:
        ValueError: If dt is not positive
        ReentryError: If the trajectory reaches the Earth's surface
    """
    if dt <= 0:
        raise ValueError("Time step must be positive")

    options = options or PropagationOptions()
    step = _rk4_step if options.method == 'rk4' else _euler_step
    h = dt / options.sub_steps

    y = state.state_vector
    for i in range(options.sub_steps):
        try:
            y = step(y, h, mass, thrust_acceleration, options, params)
        except ReentryError as exc:
            # An intermediate stage went below the surface during this sub-step
            raise ReentryError(exc.radius, time + (i + 1) * h) from exc
        radius = np.linalg.norm(y[:2])
        if radius <= EARTH_RADIUS:
            raise ReentryError(radius, time + (i + 1) * h)

    return OrbitalState.from_state_vector(y, state.argument_of_perigee)


def predict_trajectory(state: OrbitalState, duration: float, dt: float = 10.0,
                       mass: float = 1000.0,
                       initial_delta_v: Optional[np.ndarray] = None,
                       options: Optional[PropagationOptions] = None,
                       params: Optional[PerturbationParameters] = None) -> List[np.ndarray]:
    """
    Project the trajectory over a time horizon.

    An optional impulsive delta-v is applied to the initial state first, which
    previews the effect of a planned burn. The projection stops early if the
    trajectory reaches the surface.

    Args:
        state: Initial state
        duration: Prediction horizon [s]
        dt: Sampling step [s]
        mass: Spacecraft mass [kg]
        initial_delta_v: Impulse applied before projecting [m/s] (2x1)
        options: Integrator and force model options
        params: Perturbation parameters

    Returns:
        Sampled positions [m], starting with the initial position
    """
    current = state.copy()
    if initial_delta_v is not None:
        current.velocity = current.velocity + initial_delta_v

    positions = [current.position.copy()]
    elapsed = 0.0

    while elapsed < duration - 1e-9:
        step = min(dt, duration - elapsed)
        try:
            current = propagate_state(current, step, mass, None, options, params, elapsed)
        except ReentryError:
            logger.debug("Projection hit the surface after %.1f s", elapsed)
            break
        elapsed += step
        positions.append(current.position.copy())

    return positions
