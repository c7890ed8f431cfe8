"""
Extended Kalman Filter for Orbit State Estimation

This module implements an Extended Kalman Filter (EKF) over the planar
state [x, y, vx, vy]. The prediction step integrates gravity, J2 and drag
with RK4 and linearizes the dynamics with a finite-difference Jacobian.
The guidance controller uses the filter to forecast the orbit a short
horizon ahead and correct proactively.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import numpy as np
from typing import Deque, Dict, Optional
from dataclasses import dataclass
from collections import deque
from enum import Enum

from scipy.linalg import solve

from ..dynamics.orbital_elements import (OrbitalElements, OrbitalState,
                                         compute_orbital_elements)
from ..dynamics.perturbations import PerturbationParameters
from ..dynamics.propagator import PropagationOptions, propagate_state


# Innovation records kept for filter monitoring
HISTORY_LENGTH = 100


class MeasurementType(Enum):
    """Enumeration of measurement types."""
    POSITION = "position"
    POSITION_VELOCITY = "position_velocity"


@dataclass
class EstimatorState:
    """
    Extended Kalman Filter state representation.

    State vector: [x, y, vx, vy] in the inertial plane.
    """
    position: np.ndarray          # Position [m] (2x1)
    velocity: np.ndarray          # Velocity [m/s] (2x1)
    covariance: np.ndarray        # State covariance matrix (4x4)
    time: float = 0.0

    def __post_init__(self):
        """Validate EKF state dimensions."""
        if self.position.shape != (2,):
            raise ValueError("Position must be 2D vector")
        if self.velocity.shape != (2,):
            raise ValueError("Velocity must be 2D vector")
        if self.covariance.shape != (4, 4):
            raise ValueError("Covariance must be 4x4 matrix")

    @property
    def state_vector(self) -> np.ndarray:
        """Get state as vector [4x1]."""
        return np.concatenate([self.position, self.velocity])

    @classmethod
    def from_state_vector(cls, x: np.ndarray, P: np.ndarray, time: float = 0.0) -> 'EstimatorState':
        """Create EKF state from state vector."""
        if x.shape != (4,):
            raise ValueError("State vector must be 4D")

        return cls(
            position=x[0:2].copy(),
            velocity=x[2:4].copy(),
            covariance=P.copy(),
            time=time
        )


@dataclass
class ProcessNoise:
    """Process noise parameters for EKF (white acceleration)."""
    acceleration_noise: float = 1e-6  # Acceleration spectral density [m²/s³]


@dataclass
class Measurement:
    """Sensor measurement data."""
    measurement_type: MeasurementType
    data: np.ndarray
    covariance: np.ndarray
    time: float
    sensor_id: str = "default"


def create_default_process_noise() -> ProcessNoise:
    """Create default process noise parameters."""
    return ProcessNoise()


class OrbitStateEstimator:
    """
    Extended Kalman Filter for planar orbit state estimation.

    The filter owns its state: states handed in are copied and states
    handed out are fresh objects.
    """

    def __init__(self, initial_state: EstimatorState,
                 process_noise: Optional[ProcessNoise] = None,
                 mass: float = 1000.0,
                 params: Optional[PerturbationParameters] = None,
                 jacobian_step: float = 1e-3,
                 max_step: float = 10.0):
        """
        Initialize Extended Kalman Filter.

        Args:
            initial_state: Initial state estimate
            process_noise: Process noise parameters
            mass: Spacecraft mass used by the drag model [kg]
            params: Perturbation parameters used by the drag model
            jacobian_step: Relative perturbation for finite differences
            max_step: Longest RK4 step used by predictions [s]
        """
        self.state = EstimatorState.from_state_vector(initial_state.state_vector,
                                                      initial_state.covariance,
                                                      initial_state.time)
        self.process_noise = process_noise or ProcessNoise()
        self.mass = mass
        self.params = params or PerturbationParameters()
        self.jacobian_step = jacobian_step
        self.max_step = max_step
        self.measurement_history: Deque[Measurement] = deque(maxlen=HISTORY_LENGTH)

        # Innovation statistics for filter monitoring
        self.innovation_history: Deque[np.ndarray] = deque(maxlen=HISTORY_LENGTH)
        self.innovation_covariance_history: Deque[np.ndarray] = deque(maxlen=HISTORY_LENGTH)

    def predict(self, delta_t: float) -> None:
        """
        Prediction step of the EKF.

        Args:
            delta_t: Time step [s]
        """
        if delta_t <= 0:
            return

        x = self.state.state_vector
        P = self.state.covariance

        # Propagate state using nonlinear dynamics
        x_pred = self._propagate_state(x, delta_t)

        # Compute state transition matrix (Jacobian)
        F = self._compute_state_transition_matrix(x, delta_t)

        Q = self._compute_process_noise_matrix(delta_t)

        P_pred = F @ P @ F.T + Q

        self.state = EstimatorState.from_state_vector(x_pred, P_pred,
                                                      self.state.time + delta_t)

    def update(self, measurement: Measurement) -> None:
        """
        Update step of the EKF.

        Args:
            measurement: Sensor measurement
        """
        x = self.state.state_vector
        P = self.state.covariance

        h_pred = self._measurement_model(x, measurement.measurement_type)
        H = self._compute_measurement_jacobian(measurement.measurement_type)

        # Innovation
        y = measurement.data - h_pred

        # Innovation covariance
        S = H @ P @ H.T + measurement.covariance

        # Kalman gain K = P Hᵀ S⁻¹ (S symmetric)
        K = solve(S, H @ P, assume_a='pos').T

        x_updated = x + K @ y

        # Covariance update (Joseph form for numerical stability)
        I_KH = np.eye(4) - K @ H
        P_updated = I_KH @ P @ I_KH.T + K @ measurement.covariance @ K.T

        self.state = EstimatorState.from_state_vector(x_updated, P_updated, measurement.time)

        self.measurement_history.append(measurement)
        self.innovation_history.append(y)
        self.innovation_covariance_history.append(S)

    def track(self, state: OrbitalState, mission_time: float,
              measurement_covariance: Optional[np.ndarray] = None) -> None:
        """
        Predict to the mission time and fuse the given state as a measurement.

        Args:
            state: Observed state
            mission_time: Mission time of the observation [s]
            measurement_covariance: Measurement covariance (4x4)
        """
        if measurement_covariance is None:
            measurement_covariance = np.diag([1.0, 1.0, 1e-4, 1e-4])

        self.predict(mission_time - self.state.time)
        self.update(Measurement(
            measurement_type=MeasurementType.POSITION_VELOCITY,
            data=state.state_vector,
            covariance=measurement_covariance,
            time=mission_time
        ))

    def predict_ahead(self, horizon: float, argument_of_perigee: float = 0.0) -> OrbitalState:
        """
        Forecast the state a horizon ahead without changing the filter.

        Args:
            horizon: Forecast horizon [s]
            argument_of_perigee: Reference angle attached to the forecast [rad]

        Returns:
            Forecast orbital state
        """
        current = OrbitalState(self.state.position.copy(), self.state.velocity.copy(),
                               argument_of_perigee)
        if horizon <= 0:
            return current

        return propagate_state(current, horizon, self.mass, None,
                               self._model_options(horizon), self.params)

    def forecast_elements(self, horizon: float, argument_of_perigee: float = 0.0) -> OrbitalElements:
        """
        Orbital elements of the forecast state.

        Raises:
            OutOfBoundsOrbit: If the forecast is not a bound orbit
        """
        forecast = self.predict_ahead(horizon, argument_of_perigee)
        return compute_orbital_elements(forecast.position, forecast.velocity,
                                        argument_of_perigee)

    def _model_options(self, delta_t: float) -> PropagationOptions:
        """RK4 with gravity, J2 and drag, in steps no longer than max_step."""
        sub_steps = max(1, int(np.ceil(delta_t / self.max_step)))
        return PropagationOptions(method='rk4', sub_steps=sub_steps,
                                  include_j2=True, include_drag=True)

    def _propagate_state(self, x: np.ndarray, delta_t: float) -> np.ndarray:
        """
        Propagate a state vector through the filter dynamics.

        Raises:
            ReentryError: If the propagated trajectory reaches the surface
        """
        propagated = propagate_state(OrbitalState.from_state_vector(x), delta_t, self.mass,
                                     None, self._model_options(delta_t), self.params)
        return propagated.state_vector

    def _compute_state_transition_matrix(self, x: np.ndarray, delta_t: float) -> np.ndarray:
        """Compute state transition matrix by central finite differences."""
        F = np.zeros((4, 4))
        for i in range(4):
            step = self.jacobian_step * max(abs(x[i]), 1.0)
            dx = np.zeros(4)
            dx[i] = step
            F[:, i] = (self._propagate_state(x + dx, delta_t)
                       - self._propagate_state(x - dx, delta_t)) / (2 * step)
        return F

    def _compute_process_noise_matrix(self, delta_t: float) -> np.ndarray:
        """Compute process noise covariance matrix."""
        q = self.process_noise.acceleration_noise
        Q = np.zeros((4, 4))

        # Position noise (integrated from acceleration noise)
        Q[0:2, 0:2] = np.eye(2) * q * delta_t**3 / 3
        Q[0:2, 2:4] = np.eye(2) * q * delta_t**2 / 2
        Q[2:4, 0:2] = np.eye(2) * q * delta_t**2 / 2
        Q[2:4, 2:4] = np.eye(2) * q * delta_t

        return Q

    def _measurement_model(self, x: np.ndarray, measurement_type: MeasurementType) -> np.ndarray:
        """Compute predicted measurement based on state."""
        if measurement_type == MeasurementType.POSITION:
            return x[0:2]
        elif measurement_type == MeasurementType.POSITION_VELOCITY:
            return x.copy()
        else:
            raise ValueError(f"Unknown measurement type: {measurement_type}")

    def _compute_measurement_jacobian(self, measurement_type: MeasurementType) -> np.ndarray:
        """Compute measurement Jacobian matrix."""
        if measurement_type == MeasurementType.POSITION:
            H = np.zeros((2, 4))
            H[0:2, 0:2] = np.eye(2)
            return H
        elif measurement_type == MeasurementType.POSITION_VELOCITY:
            return np.eye(4)
        else:
            raise ValueError(f"Unknown measurement type: {measurement_type}")

    def get_innovation_statistics(self) -> Dict[str, float]:
        """Compute innovation statistics for filter monitoring."""
        if not self.innovation_history:
            return {}

        # Recent innovations (last 10 measurements)
        recent_innovations = list(self.innovation_history)[-10:]
        recent_covariances = list(self.innovation_covariance_history)[-10:]

        # Normalized innovation squared (NIS)
        nis_values = []
        for y, S in zip(recent_innovations, recent_covariances):
            try:
                nis = y.T @ np.linalg.inv(S) @ y
                nis_values.append(nis)
            except np.linalg.LinAlgError:
                continue

        if not nis_values:
            return {}

        return {
            'mean_nis': float(np.mean(nis_values)),
            'std_nis': float(np.std(nis_values)),
            'innovation_norm': float(np.linalg.norm(recent_innovations[-1])),
            'num_measurements': len(self.measurement_history)
        }

    def reset_covariance(self, new_covariance: np.ndarray) -> None:
        """Reset filter covariance (for reinitialization)."""
        if new_covariance.shape != (4, 4):
            raise ValueError("Covariance must be 4x4 matrix")

        self.state.covariance = new_covariance.copy()

    def reinitialize(self, state: OrbitalState, time: float,
                     initial_covariance: Optional[np.ndarray] = None) -> None:
        """
        Restart the filter from an observed state.

        Innovation and measurement records are cleared.

        Args:
            state: Observed state
            time: Mission time of the observation [s]
            initial_covariance: Covariance matrix (4x4), default if None
        """
        self.state = create_initial_estimator_state(state, time, initial_covariance)
        self.measurement_history.clear()
        self.innovation_history.clear()
        self.innovation_covariance_history.clear()

    def get_position_uncertainty(self) -> float:
        """Get 3-sigma position uncertainty."""
        pos_cov = self.state.covariance[0:2, 0:2]
        return float(3 * np.sqrt(np.trace(pos_cov)))

    def get_velocity_uncertainty(self) -> float:
        """Get 3-sigma velocity uncertainty."""
        vel_cov = self.state.covariance[2:4, 2:4]
        return float(3 * np.sqrt(np.trace(vel_cov)))

    def get_state(self) -> OrbitalState:
        """Current estimate as an independent OrbitalState."""
        return OrbitalState(self.state.position.copy(), self.state.velocity.copy())


def create_initial_estimator_state(state: OrbitalState, time: float = 0.0,
                                   initial_covariance: Optional[np.ndarray] = None) -> EstimatorState:
    """
    Create initial EKF state from an orbital state.

    Args:
        state: Initial orbital state
        time: Mission time of the estimate [s]
        initial_covariance: Initial covariance matrix (4x4)

    Returns:
        Initial EKF state
    """
    if initial_covariance is None:
        initial_covariance = np.diag([
            100.0, 100.0,      # Position uncertainty [m²]
            1.0, 1.0           # Velocity uncertainty [m²/s²]
        ])

    return EstimatorState(
        position=state.position.copy(),
        velocity=state.velocity.copy(),
        covariance=initial_covariance.copy(),
        time=time
    )
