"""
Sensor Models for Orbit Determination

This module turns the true planar state into noisy navigation fixes: a
GNSS-style position fix and a combined position/velocity fix. Each sensor
has its own seeded generator, so a simulation run with a fixed seed sees
the same noise sequence every time.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import numpy as np
from typing import Dict, List, Optional
from dataclasses import dataclass
from abc import ABC, abstractmethod

from .extended_kalman_filter import MeasurementType, Measurement
from ..dynamics.orbital_elements import OrbitalState


@dataclass
class SensorConfiguration:
    """
    Error model of one sensor.

    A reading is scale_factor * (truth + noise) + bias, with zero-mean
    Gaussian noise of standard deviation noise_std per component.
    """
    update_rate: float          # Fixes per second [Hz]
    noise_std: np.ndarray       # 1-sigma noise per component
    bias: np.ndarray            # Constant offset per component
    scale_factor: float = 1.0
    enabled: bool = True


class SensorModel(ABC):
    """Rate-limited sensor producing Measurement objects."""

    measurement_type: MeasurementType
    size = 0

    def __init__(self, config: SensorConfiguration, sensor_id: str,
                 seed: Optional[int] = None):
        for label, vector in (("noise_std", config.noise_std), ("bias", config.bias)):
            if np.shape(vector) != (self.size,):
                raise ValueError(f"{type(self).__name__} {label} must have {self.size} entries")

        self.config = config
        self.sensor_id = sensor_id
        self.rng = np.random.default_rng(seed)
        self.last_measurement_time: Optional[float] = None
        self.measurement_count = 0

    @abstractmethod
    def _truth(self, true_state: OrbitalState) -> np.ndarray:
        """Quantity the sensor observes."""

    def ready(self, time: float) -> bool:
        """True when the sensor is enabled and its update period has elapsed."""
        if not self.config.enabled:
            return False
        if self.last_measurement_time is None:
            return True
        return time - self.last_measurement_time >= 1.0 / self.config.update_rate

    def generate_measurement(self, true_state: OrbitalState, time: float) -> Optional[Measurement]:
        """
        Observe the true state.

        Args:
            true_state: True spacecraft state
            time: Mission time [s]

        Returns:
            Measurement, or None while the sensor is disabled or between fixes
        """
        if not self.ready(time):
            return None

        noisy = self._truth(true_state) + self.rng.normal(0.0, self.config.noise_std)
        self.last_measurement_time = time
        self.measurement_count += 1
        return Measurement(
            measurement_type=self.measurement_type,
            data=self.config.scale_factor * noisy + self.config.bias,
            covariance=np.diag(self.config.noise_std**2),
            time=time,
            sensor_id=self.sensor_id
        )


class PositionSensorModel(SensorModel):
    """GNSS-style position fix [x, y]."""

    measurement_type = MeasurementType.POSITION
    size = 2

    def __init__(self, config: SensorConfiguration, sensor_id: str = "gnss",
                 seed: Optional[int] = None):
        super().__init__(config, sensor_id, seed)

    def _truth(self, true_state: OrbitalState) -> np.ndarray:
        return true_state.position.copy()


class PositionVelocitySensor(SensorModel):
    """Combined navigation fix [x, y, vx, vy]."""

    measurement_type = MeasurementType.POSITION_VELOCITY
    size = 4

    def __init__(self, config: SensorConfiguration, sensor_id: str = "nav_fix",
                 seed: Optional[int] = None):
        super().__init__(config, sensor_id, seed)

    def _truth(self, true_state: OrbitalState) -> np.ndarray:
        return true_state.state_vector

    def observe_state(self, true_state: OrbitalState, time: float) -> Optional[OrbitalState]:
        """Navigation fix as an OrbitalState carrying the true argument of perigee."""
        measurement = self.generate_measurement(true_state, time)
        if measurement is None:
            return None
        return OrbitalState.from_state_vector(measurement.data, true_state.argument_of_perigee)


def create_navigation_fix_sensor(update_rate: float = 1.0,
                                 seed: Optional[int] = None) -> PositionVelocitySensor:
    """Navigation fix with 1 m and 1 cm/s (1-sigma) noise."""
    config = SensorConfiguration(
        update_rate=update_rate,
        noise_std=np.array([1.0, 1.0, 0.01, 0.01]),
        bias=np.zeros(4)
    )
    return PositionVelocitySensor(config, seed=seed)


def analyze_sensor_performance(measurements: List[Measurement],
                               true_values: List[np.ndarray]) -> Dict[str, Dict]:
    """
    Error statistics per measurement type.

    Args:
        measurements: Sensor measurements
        true_values: True value matching each measurement

    Returns:
        Mean, standard deviation, RMS and maximum error per component,
        keyed by measurement type value
    """
    if len(measurements) != len(true_values):
        raise ValueError("Each measurement needs a matching true value")

    grouped: Dict[MeasurementType, List[np.ndarray]] = {}
    for measurement, truth in zip(measurements, true_values):
        grouped.setdefault(measurement.measurement_type, []).append(measurement.data - truth)

    results = {}
    for measurement_type, error_list in grouped.items():
        errors = np.array(error_list)
        results[measurement_type.value] = {
            'mean_error': errors.mean(axis=0).tolist(),
            'std_error': errors.std(axis=0).tolist(),
            'rms_error': np.sqrt((errors**2).mean(axis=0)).tolist(),
            'max_error': np.abs(errors).max(axis=0).tolist(),
            'num_measurements': len(errors)
        }
    return results
