"""
Unit tests for the planar orbit propagator.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import pytest
import numpy as np
from orbit_autopilot.dynamics.orbital_elements import OrbitalState, circular_orbit_state, elements_from_state
from orbit_autopilot.dynamics.propagator import (
    PropagationOptions, ReentryError, orbital_dynamics, predict_trajectory, propagate_state
)
from orbit_autopilot.utils.constants import EARTH_MU, EARTH_RADIUS


def specific_energy(state: OrbitalState) -> float:
    return 0.5 * state.speed**2 - EARTH_MU / state.radius


class TestPropagationOptions:
    """Test cases for option validation."""

    def test_invalid_method(self):
        with pytest.raises(ValueError):
            PropagationOptions(method='leapfrog')

    def test_invalid_sub_steps(self):
        with pytest.raises(ValueError):
            PropagationOptions(sub_steps=0)


class TestPropagateState:
    """Test cases for propagate_state."""

    def setup_method(self):
        self.state = circular_orbit_state(400e3)

    def test_dynamics_derivative(self):
        derivative = orbital_dynamics(self.state.state_vector)

        np.testing.assert_allclose(derivative[:2], self.state.velocity)
        assert derivative[2] < 0
        assert derivative[2] == pytest.approx(-EARTH_MU / self.state.radius**2)

    def test_rk4_conserves_energy_over_one_orbit(self):
        period = elements_from_state(self.state).period
        energy0 = specific_energy(self.state)

        state = self.state
        steps = 200
        for _ in range(steps):
            state = propagate_state(state, period / steps)

        assert specific_energy(state) == pytest.approx(energy0, rel=1e-6)
        np.testing.assert_allclose(state.position, self.state.position, atol=2e3)

    def test_euler_stays_bound(self):
        options = PropagationOptions(method='euler', sub_steps=4)
        state = self.state
        for _ in range(600):
            state = propagate_state(state, 1.0, options=options)

        assert state.altitude == pytest.approx(400e3, abs=5e3)

    def test_input_not_modified(self):
        original = self.state.position.copy()
        propagate_state(self.state, 10.0)

        np.testing.assert_array_equal(self.state.position, original)

    def test_argument_of_perigee_carried(self):
        state = OrbitalState(self.state.position, self.state.velocity, argument_of_perigee=1.0)
        assert propagate_state(state, 10.0).argument_of_perigee == 1.0

    def test_non_positive_step(self):
        with pytest.raises(ValueError):
            propagate_state(self.state, 0.0)

        with pytest.raises(ValueError):
            propagate_state(self.state, -1.0)

    def test_drag_removes_energy(self):
        low = circular_orbit_state(200e3)
        options = PropagationOptions(include_drag=True)
        dragged = propagate_state(low, 60.0, mass=265.0, options=options)
        free = propagate_state(low, 60.0, mass=265.0)

        assert specific_energy(dragged) < specific_energy(free)

    def test_reentry(self):
        falling = OrbitalState(np.array([EARTH_RADIUS + 10e3, 0.0]), np.array([-2000.0, 0.0]))

        with pytest.raises(ReentryError) as excinfo:
            propagate_state(falling, 20.0, time=100.0)
        assert excinfo.value.radius <= EARTH_RADIUS
        assert excinfo.value.time > 100.0

    def test_reentry_with_full_force_model(self):
        """A descending bound state reports reentry with J2 and drag switched on."""
        descending = OrbitalState(np.array([EARTH_RADIUS + 20e3, 0.0]), np.array([-2000.0, 500.0]))
        options = PropagationOptions(sub_steps=6, include_j2=True, include_drag=True)

        with pytest.raises(ReentryError) as excinfo:
            propagate_state(descending, 60.0, mass=265.0, options=options)
        assert 0.0 < excinfo.value.time <= 60.0

    def test_dynamics_below_surface(self):
        state = np.array([EARTH_RADIUS - 1.0, 0.0, 0.0, 7000.0])

        with pytest.raises(ReentryError):
            orbital_dynamics(state, 265.0, None, PropagationOptions(include_j2=True))


class TestPredictTrajectory:
    """Test cases for trajectory projection."""

    def test_sampling(self):
        state = circular_orbit_state(400e3)
        positions = predict_trajectory(state, 100.0, dt=10.0)

        assert len(positions) == 11
        np.testing.assert_allclose(positions[0], state.position)

    def test_burn_preview(self):
        state = circular_orbit_state(400e3)
        delta_v = 10.0 * state.velocity / state.speed
        coasting = predict_trajectory(state, 1500.0, dt=30.0)
        boosted = predict_trajectory(state, 1500.0, dt=30.0, initial_delta_v=delta_v)

        assert np.linalg.norm(boosted[-1]) > np.linalg.norm(coasting[-1])
        np.testing.assert_allclose(state.velocity, circular_orbit_state(400e3).velocity)

    def test_stops_at_surface(self):
        falling = OrbitalState(np.array([EARTH_RADIUS + 10e3, 0.0]), np.array([-2000.0, 0.0]))
        positions = predict_trajectory(falling, 100.0, dt=1.0)

        assert 1 < len(positions) < 101


if __name__ == "__main__":
    pytest.main([__file__])
