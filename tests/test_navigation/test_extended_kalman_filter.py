"""
Unit tests for Extended Kalman Filter module.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import pytest
import numpy as np
from orbit_autopilot.navigation.extended_kalman_filter import (
    EstimatorState, ProcessNoise, OrbitStateEstimator, MeasurementType, Measurement,
    HISTORY_LENGTH, create_initial_estimator_state, create_default_process_noise
)
from orbit_autopilot.dynamics.orbital_elements import OrbitalState, circular_orbit_state
from orbit_autopilot.dynamics.propagator import PropagationOptions, ReentryError, propagate_state
from orbit_autopilot.utils.constants import EARTH_RADIUS


class TestEstimatorState:
    """Test cases for estimator state representation."""

    def test_state_creation(self):
        """Test creation of estimator state."""
        position = np.array([7e6, 0.0])
        velocity = np.array([0.0, 7500.0])
        covariance = np.eye(4)

        state = EstimatorState(position, velocity, covariance)

        assert np.allclose(state.position, position)
        assert np.allclose(state.velocity, velocity)
        assert np.allclose(state.covariance, covariance)
        assert state.time == 0.0

    def test_state_validation(self):
        """Test estimator state validation."""
        # Wrong position dimension
        with pytest.raises(ValueError):
            EstimatorState(np.array([1.0, 2.0, 3.0]), np.array([1.0, 2.0]), np.eye(4))

        # Wrong covariance dimension
        with pytest.raises(ValueError):
            EstimatorState(np.array([1.0, 2.0]), np.array([1.0, 2.0]), np.eye(6))

    def test_state_vector_round_trip(self):
        """Test state vector property and construction from a vector."""
        x = np.array([7e6, 1e3, -1.0, 7500.0])
        P = np.diag([1.0, 2.0, 3.0, 4.0])

        state = EstimatorState.from_state_vector(x, P, time=5.0)

        assert len(state.state_vector) == 4
        assert np.allclose(state.state_vector, x)
        assert state.time == 5.0

        # The state must not alias the input arrays
        x[0] = 0.0
        assert state.position[0] == 7e6

        with pytest.raises(ValueError):
            EstimatorState.from_state_vector(np.zeros(6), P)


class TestProcessNoise:
    """Test cases for process noise."""

    def test_process_noise_defaults(self):
        noise = create_default_process_noise()
        assert noise.acceleration_noise == 1e-6

    def test_process_noise_custom(self):
        noise = ProcessNoise(acceleration_noise=1e-4)
        assert noise.acceleration_noise == 1e-4


class TestOrbitStateEstimator:
    """Test cases for the orbit state estimator."""

    def setup_method(self):
        """Set up test fixtures."""
        self.truth = circular_orbit_state(500e3)
        self.initial_state = create_initial_estimator_state(self.truth)
        self.estimator = OrbitStateEstimator(self.initial_state, ProcessNoise(), mass=265.0)
        # Same force model as the filter
        self.model = PropagationOptions(sub_steps=10, include_j2=True, include_drag=True)

    def test_initialization(self):
        """Test estimator initialization copies the initial state."""
        assert np.allclose(self.estimator.state.position, self.truth.position)
        assert np.allclose(self.estimator.state.velocity, self.truth.velocity)

        self.initial_state.position[0] = 0.0
        assert self.estimator.state.position[0] == pytest.approx(self.truth.position[0])

    def test_prediction_step(self):
        """Test prediction follows the orbit and grows uncertainty."""
        initial_position = self.estimator.state.position.copy()
        initial_uncertainty = self.estimator.get_position_uncertainty()

        dt = 10.0
        self.estimator.predict(dt)

        assert not np.allclose(self.estimator.state.position, initial_position)
        assert self.estimator.state.time == dt
        assert self.estimator.get_position_uncertainty() > initial_uncertainty

        expected = propagate_state(self.truth, dt, mass=265.0, options=self.model)
        np.testing.assert_allclose(self.estimator.state.position, expected.position, atol=1.0)

    def test_prediction_ignores_non_positive_step(self):
        self.estimator.predict(0.0)
        self.estimator.predict(-5.0)

        assert self.estimator.state.time == 0.0
        assert np.allclose(self.estimator.state.position, self.truth.position)

    def test_measurement_models(self):
        """Test measurement models and Jacobians."""
        x = self.estimator.state.state_vector

        assert np.allclose(self.estimator._measurement_model(x, MeasurementType.POSITION), x[:2])
        assert np.allclose(self.estimator._measurement_model(x, MeasurementType.POSITION_VELOCITY), x)

        H = self.estimator._compute_measurement_jacobian(MeasurementType.POSITION)
        assert H.shape == (2, 4)
        assert np.allclose(H[:, :2], np.eye(2))
        assert np.allclose(H[:, 2:], 0.0)

        assert np.allclose(self.estimator._compute_measurement_jacobian(MeasurementType.POSITION_VELOCITY),
                           np.eye(4))

    def test_update_step_position(self):
        """Test a position fix pulls the estimate towards the measurement."""
        measured = self.truth.position + np.array([50.0, -50.0])
        measurement = Measurement(
            measurement_type=MeasurementType.POSITION,
            data=measured,
            covariance=np.eye(2) * 25.0,
            time=0.0
        )

        self.estimator.update(measurement)

        error_before = np.linalg.norm(self.truth.position - measured)
        error_after = np.linalg.norm(self.estimator.state.position - measured)
        assert error_after < error_before
        assert len(self.estimator.measurement_history) == 1

    def test_update_reduces_uncertainty(self):
        before = self.estimator.get_position_uncertainty()
        self.estimator.update(Measurement(
            measurement_type=MeasurementType.POSITION_VELOCITY,
            data=self.truth.state_vector,
            covariance=np.diag([1.0, 1.0, 1e-4, 1e-4]),
            time=0.0
        ))

        assert self.estimator.get_position_uncertainty() < before
        assert self.estimator.get_velocity_uncertainty() > 0
        assert np.allclose(self.estimator.state.covariance, self.estimator.state.covariance.T)

    def test_process_noise_matrix(self):
        """Test process noise matrix structure."""
        Q = self.estimator._compute_process_noise_matrix(10.0)

        assert Q.shape == (4, 4)
        assert np.allclose(Q, Q.T)
        assert np.all(np.linalg.eigvalsh(Q) >= -1e-15)

    def test_state_transition_matrix(self):
        """Test the finite-difference Jacobian is close to identity for a short step."""
        F = self.estimator._compute_state_transition_matrix(self.estimator.state.state_vector, 1.0)

        assert F.shape == (4, 4)
        assert np.allclose(F[:2, 2:], np.eye(2), atol=1e-2)
        assert np.allclose(np.diag(F), 1.0, atol=1e-2)

    def test_innovation_statistics(self):
        """Test innovation statistics computation."""
        assert self.estimator.get_innovation_statistics() == {}

        self.estimator.track(self.truth, 0.0)

        stats = self.estimator.get_innovation_statistics()
        assert stats['num_measurements'] == 1
        assert stats['innovation_norm'] == pytest.approx(0.0, abs=1e-6)
        assert 'mean_nis' in stats

    def test_tracking_along_orbit(self):
        """Test tracking the true orbit keeps the estimate on it."""
        truth = self.truth
        for k in range(1, 7):
            truth = propagate_state(truth, 10.0, mass=265.0, options=self.model)
            self.estimator.track(truth, 10.0 * k)

        estimate = self.estimator.get_state()
        assert self.estimator.state.time == 60.0
        np.testing.assert_allclose(estimate.position, truth.position, atol=5.0)
        np.testing.assert_allclose(estimate.velocity, truth.velocity, atol=0.05)

    def test_long_gap_prediction(self):
        """Test a long gap is sub-stepped and matches the propagator."""
        self.estimator.predict(300.0)

        model = PropagationOptions(sub_steps=30, include_j2=True, include_drag=True)
        expected = propagate_state(self.truth, 300.0, mass=265.0, options=model)
        np.testing.assert_allclose(self.estimator.state.position, expected.position, atol=1e-3)
        np.testing.assert_allclose(self.estimator.state.velocity, expected.velocity, atol=1e-6)

        self.estimator.track(expected, 300.0)
        model.sub_steps = 100
        later = propagate_state(expected, 1000.0, mass=265.0, options=model)
        self.estimator.track(later, 1300.0)

        assert self.estimator.state.time == 1300.0
        np.testing.assert_allclose(self.estimator.state.position, later.position, atol=5.0)

    def test_prediction_through_surface(self):
        descending = OrbitalState(np.array([EARTH_RADIUS + 20e3, 0.0]), np.array([-2000.0, 500.0]))
        estimator = OrbitStateEstimator(create_initial_estimator_state(descending), mass=265.0)

        with pytest.raises(ReentryError):
            estimator.predict_ahead(60.0)

    def test_histories_are_bounded(self):
        for _ in range(HISTORY_LENGTH + 20):
            self.estimator.track(self.truth, 0.0)

        assert len(self.estimator.measurement_history) == HISTORY_LENGTH
        assert len(self.estimator.innovation_history) == HISTORY_LENGTH
        assert len(self.estimator.innovation_covariance_history) == HISTORY_LENGTH
        assert self.estimator.get_innovation_statistics()['num_measurements'] == HISTORY_LENGTH

    def test_reinitialize(self):
        self.estimator.track(self.truth, 0.0)
        fresh = circular_orbit_state(400e3, phase=1.0)

        self.estimator.reinitialize(fresh, 500.0)

        assert self.estimator.state.time == 500.0
        assert np.allclose(self.estimator.state.state_vector, fresh.state_vector)
        assert np.allclose(np.diag(self.estimator.state.covariance), [100.0, 100.0, 1.0, 1.0])
        assert len(self.estimator.measurement_history) == 0
        assert self.estimator.get_innovation_statistics() == {}

    def test_forecast_does_not_mutate(self):
        """Test the forecast leaves the filter untouched."""
        before = self.estimator.state.state_vector.copy()
        forecast = self.estimator.predict_ahead(60.0, argument_of_perigee=0.3)
        elements = self.estimator.forecast_elements(60.0)

        assert np.allclose(self.estimator.state.state_vector, before)
        assert forecast.argument_of_perigee == 0.3
        assert not np.allclose(forecast.position, before[:2])
        assert elements.eccentricity < 0.01
        assert elements.sma_altitude == pytest.approx(500e3, abs=1e3)

    def test_uncertainty_estimates(self):
        """Test uncertainty estimate methods."""
        # Default covariance: 100 m² and 1 m²/s² per axis
        assert self.estimator.get_position_uncertainty() == pytest.approx(3 * np.sqrt(200.0))
        assert self.estimator.get_velocity_uncertainty() == pytest.approx(3 * np.sqrt(2.0))

    def test_covariance_reset(self):
        """Test covariance reset functionality."""
        new_covariance = np.eye(4) * 0.5
        self.estimator.reset_covariance(new_covariance)

        assert np.allclose(self.estimator.state.covariance, new_covariance)

        with pytest.raises(ValueError):
            self.estimator.reset_covariance(np.eye(3))


class TestUtilityFunctions:
    """Test utility functions."""

    def test_create_initial_state_default_covariance(self):
        state = create_initial_estimator_state(circular_orbit_state(400e3), time=12.0)

        assert state.covariance.shape == (4, 4)
        assert np.allclose(np.diag(state.covariance), [100.0, 100.0, 1.0, 1.0])
        assert state.time == 12.0

    def test_create_initial_state_custom_covariance(self):
        custom = np.eye(4) * 0.1
        state = create_initial_estimator_state(circular_orbit_state(400e3), initial_covariance=custom)

        assert np.allclose(state.covariance, custom)


if __name__ == "__main__":
    pytest.main([__file__])
