"""
Tests for the Mission Sequencer

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import pytest
import numpy as np

from orbit_autopilot.control.mission_sequencer import MissionPhase, MissionSequencer, OrbitGoal
from orbit_autopilot.control.transfer_planner import ManeuverStrategy
from orbit_autopilot.dynamics.orbital_elements import OrbitalState, circular_orbit_state
from orbit_autopilot.utils.constants import EARTH_MU, EARTH_RADIUS


class TestGoals:
    """Test goal bookkeeping."""

    def setup_method(self):
        self.sequencer = MissionSequencer()

    def test_no_goals(self):
        directive = self.sequencer.get_next_burn(circular_orbit_state(400e3))

        assert directive.phase is MissionPhase.COMPLETE
        assert not directive.burn_due
        assert directive.goal is None
        assert directive.reason == "No goals pending"

    def test_invalid_goal(self):
        with pytest.raises(ValueError):
            self.sequencer.add_goal(OrbitGoal("underground", -10e3))

    def test_goal_reached(self):
        self.sequencer.add_goal(OrbitGoal("parking", 400e3))
        self.sequencer.add_goal(OrbitGoal("operational", 600e3))

        directive = self.sequencer.get_next_burn(circular_orbit_state(400.5e3))

        assert directive.phase is MissionPhase.COMPLETE
        assert directive.reason == "Goal 'parking' reached, next: 'operational'"
        assert [g.name for g in self.sequencer.completed_goals] == ["parking"]
        assert self.sequencer.active_goal.name == "operational"

    def test_clear(self):
        self.sequencer.add_goal(OrbitGoal("operational", 600e3))
        self.sequencer.get_next_burn(circular_orbit_state(400e3))

        self.sequencer.clear()
        assert self.sequencer.pending_goals == []
        assert self.sequencer.active_plan is None

    def test_last_state_is_copy(self):
        state = circular_orbit_state(400e3)
        self.sequencer.get_next_burn(state)
        state.position[0] += 1000.0

        assert self.sequencer.last_state.position[0] == pytest.approx(EARTH_RADIUS + 400e3)


class TestTransferSequence:
    """Test the plan, burn, coast, burn sequence."""

    def setup_method(self):
        self.sequencer = MissionSequencer()
        self.sequencer.add_goal(OrbitGoal("operational", 600e3))
        self.state = circular_orbit_state(400e3)

    def test_full_sequence(self):
        planning = self.sequencer.get_next_burn(self.state, 100.0)
        assert planning.phase is MissionPhase.PLANNING
        assert not planning.burn_due
        assert planning.plan.strategy is ManeuverStrategy.TWO_IMPULSE
        assert planning.reason.startswith("Planned two_impulse transfer")

        plan = planning.plan
        first = self.sequencer.get_next_burn(self.state, 100.0)
        assert first.phase is MissionPhase.TRANSFER
        assert first.delta_v == pytest.approx(plan.burns[0].delta_v)
        assert first.delta_v > 0
        np.testing.assert_allclose(first.direction, [0.0, 1.0])

        coasting = self.sequencer.get_next_burn(self.state, 500.0)
        assert coasting.phase is MissionPhase.CIRCULARIZE
        assert not coasting.burn_due
        assert coasting.reason.startswith("Coasting")

        second = self.sequencer.get_next_burn(self.state, 100.0 + plan.transfer_time)
        assert second.phase is MissionPhase.CIRCULARIZE
        assert second.delta_v == pytest.approx(plan.burns[1].delta_v)

    def test_small_gap_uses_direct_burn(self):
        sequencer = MissionSequencer()
        sequencer.add_goal(OrbitGoal("trim", 420e3))

        planning = sequencer.get_next_burn(self.state)
        assert planning.plan.strategy is ManeuverStrategy.DIRECT

        burn = sequencer.get_next_burn(self.state)
        assert burn.phase is MissionPhase.TRANSFER
        assert burn.delta_v == pytest.approx(planning.plan.burns[0].delta_v)

    def test_lowering_burns_retrograde(self):
        sequencer = MissionSequencer()
        sequencer.add_goal(OrbitGoal("lower", 300e3))

        sequencer.get_next_burn(self.state)
        burn = sequencer.get_next_burn(self.state)

        assert burn.delta_v < 0
        np.testing.assert_allclose(burn.direction, [0.0, -1.0])


class TestCircularization:
    """Test corrections at the right altitude."""

    def test_circularize_in_place(self):
        sequencer = MissionSequencer()
        sequencer.add_goal(OrbitGoal("parking", 400e3))
        r = EARTH_RADIUS + 400e3
        circular_speed = np.sqrt(EARTH_MU / r)
        state = OrbitalState(np.array([r, 0.0]), np.array([0.0, 1.02 * circular_speed]))

        directive = sequencer.get_next_burn(state)

        assert directive.phase is MissionPhase.CIRCULARIZE
        assert directive.delta_v == pytest.approx(-0.02 * circular_speed)
        np.testing.assert_allclose(directive.direction, [0.0, -1.0])
        assert directive.reason.startswith("Circularize")

    def test_invalid_orbit(self):
        sequencer = MissionSequencer()
        sequencer.add_goal(OrbitGoal("parking", 400e3))
        state = OrbitalState(np.array([7e6, 0.0]), np.array([0.0, 12000.0]))

        directive = sequencer.get_next_burn(state)

        assert directive.phase is MissionPhase.PLANNING
        assert not directive.burn_due
        assert directive.reason.startswith("Invalid orbit")


if __name__ == "__main__":
    pytest.main([__file__])
