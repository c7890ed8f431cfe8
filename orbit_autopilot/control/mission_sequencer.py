"""
Mission Sequencer

This module holds an ordered list of target orbits and, given the current
state, tells the caller what the next burn towards the active goal should
be. It returns burn intents only; executing or queueing them is the
caller's business.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import numpy as np
from typing import Deque, List, Optional
from dataclasses import dataclass
from collections import deque
from enum import Enum
import logging

from .transfer_planner import PlannerSettings, TransferPlan, select_minimum_fuel_maneuver
from ..dynamics.orbital_elements import OrbitalState, OutOfBoundsOrbit, compute_orbital_elements
from ..utils.constants import EARTH_MU, EARTH_RADIUS

logger = logging.getLogger(__name__)


class MissionPhase(Enum):
    """Phase reported with each directive."""
    PLANNING = "planning"
    TRANSFER = "transfer"
    CIRCULARIZE = "circularize"
    COMPLETE = "complete"


@dataclass
class OrbitGoal:
    """
    Target circular (or near-circular) orbit.

    Attributes:
        name: Goal label
        target_altitude: Target altitude [m]
        target_eccentricity: Target eccentricity
        altitude_tolerance: Completion tolerance on altitude [m]
        eccentricity_tolerance: Completion tolerance on eccentricity
    """
    name: str
    target_altitude: float
    target_eccentricity: float = 0.0
    altitude_tolerance: float = 2e3
    eccentricity_tolerance: float = 0.002

    @property
    def target_radius(self) -> float:
        return EARTH_RADIUS + self.target_altitude


@dataclass
class SequencerDirective:
    """
    Next action towards the active goal.

    A zero delta_v means no burn is due now (planning or coasting).
    """
    phase: MissionPhase
    delta_v: float
    direction: np.ndarray
    goal: Optional[OrbitGoal]
    plan: Optional[TransferPlan]
    reason: str

    @property
    def burn_due(self) -> bool:
        return self.delta_v != 0.0


class MissionSequencer:
    """
    Ordered queue of orbit goals.

    The sequencer keeps its own copy of the last state it was given, the
    transfer plan of the active goal and the index of the next plan burn.
    """

    def __init__(self, mu: float = EARTH_MU, planner_settings: Optional[PlannerSettings] = None):
        self.mu = mu
        self.planner_settings = planner_settings or PlannerSettings()
        self._goals: Deque[OrbitGoal] = deque()
        self._completed: List[OrbitGoal] = []
        self._plan: Optional[TransferPlan] = None
        self._plan_start: Optional[float] = None
        self._next_burn = 0
        self.last_state: Optional[OrbitalState] = None

    def add_goal(self, goal: OrbitGoal) -> None:
        """Append a goal to the mission plan."""
        if goal.target_altitude <= 0:
            raise ValueError("Goal altitude must be positive")
        self._goals.append(goal)

    def clear(self) -> None:
        """Drop all pending goals and the active plan."""
        self._goals.clear()
        self._reset_plan()

    @property
    def active_goal(self) -> Optional[OrbitGoal]:
        return self._goals[0] if self._goals else None

    @property
    def pending_goals(self) -> List[OrbitGoal]:
        return list(self._goals)

    @property
    def completed_goals(self) -> List[OrbitGoal]:
        return list(self._completed)

    @property
    def active_plan(self) -> Optional[TransferPlan]:
        return self._plan

    def _reset_plan(self) -> None:
        self._plan = None
        self._plan_start = None
        self._next_burn = 0

    def get_next_burn(self, state: OrbitalState, mission_time: float = 0.0) -> SequencerDirective:
        """
        Compare the state with the active goal and return the next burn intent.

        Args:
            state: Current orbital state
            mission_time: Current mission time [s]

        Returns:
            Directive with phase, signed delta-v and thrust direction
        """
        self.last_state = state.copy()
        goal = self.active_goal
        idle = np.zeros(2)

        if goal is None:
            return SequencerDirective(MissionPhase.COMPLETE, 0.0, idle, None, None,
                                      "No goals pending")

        try:
            elements = compute_orbital_elements(state.position, state.velocity,
                                                state.argument_of_perigee, self.mu)
        except OutOfBoundsOrbit as exc:
            logger.debug("Sequencer cannot plan from an invalid orbit: %s", exc)
            return SequencerDirective(MissionPhase.PLANNING, 0.0, idle, goal, None,
                                      f"Invalid orbit ({exc})")

        altitude_error = goal.target_altitude - elements.altitude
        eccentricity_error = elements.eccentricity - goal.target_eccentricity
        altitude_ok = abs(altitude_error) < goal.altitude_tolerance
        eccentricity_ok = abs(eccentricity_error) < goal.eccentricity_tolerance

        if altitude_ok and eccentricity_ok:
            self._goals.popleft()
            self._completed.append(goal)
            self._reset_plan()
            following = self.active_goal
            logger.info("Goal '%s' reached at %.1f km", goal.name, elements.altitude / 1000)
            reason = f"Goal '{goal.name}' reached"
            if following is not None:
                reason += f", next: '{following.name}'"
            return SequencerDirective(MissionPhase.COMPLETE, 0.0, idle, goal, None, reason)

        if self._plan is not None and self._next_burn < self._plan.burn_count:
            return self._transfer_directive(goal, elements, mission_time)

        if altitude_ok:
            # Right altitude, wrong shape: circularize at the current radius
            delta_v = float(np.sqrt(self.mu / elements.radius) - elements.speed)
            direction = elements.prograde_unit if delta_v >= 0 else elements.retrograde_unit
            return SequencerDirective(
                MissionPhase.CIRCULARIZE, delta_v, direction, goal, None,
                f"Circularize (e={elements.eccentricity:.4f})")

        # Plan (or re-plan once a previous plan has been used up)
        self._plan = select_minimum_fuel_maneuver(elements.radius, goal.target_radius,
                                                  elements.altitude, self.mu,
                                                  self.planner_settings)
        self._plan_start = mission_time
        self._next_burn = 0
        if self._plan is None:
            return SequencerDirective(MissionPhase.PLANNING, 0.0, idle, goal, None,
                                      "Already at target radius")
        logger.info("Planned %s transfer to '%s': %.2f m/s in %d burn(s)",
                    self._plan.strategy.value, goal.name, self._plan.total_dv,
                    self._plan.burn_count)
        return SequencerDirective(
            MissionPhase.PLANNING, 0.0, idle, goal, self._plan,
            f"Planned {self._plan.strategy.value} transfer ({self._plan.total_dv:.1f} m/s)")

    def _transfer_directive(self, goal: OrbitGoal, elements, mission_time: float) -> SequencerDirective:
        burn = self._plan.burns[self._next_burn]
        last = self._next_burn == self._plan.burn_count - 1
        phase = MissionPhase.CIRCULARIZE if last and self._plan.burn_count > 1 else MissionPhase.TRANSFER

        if mission_time < self._plan_start + burn.time_offset:
            remaining = self._plan_start + burn.time_offset - mission_time
            return SequencerDirective(phase, 0.0, np.zeros(2), goal, self._plan,
                                      f"Coasting, {remaining:.0f} s to {burn.description}")

        self._next_burn += 1
        direction = elements.prograde_unit if burn.delta_v >= 0 else elements.retrograde_unit
        return SequencerDirective(phase, burn.delta_v, direction, goal, self._plan,
                                  burn.description)
