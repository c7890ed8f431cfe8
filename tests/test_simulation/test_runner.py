"""
Tests for the Simulation Runner and Spacecraft Presets

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import warnings

import pytest
import numpy as np

from orbit_autopilot.control.actuator_models import PropellantKind, ThrusterKind, propellant_mass_required
from orbit_autopilot.control.guidance_laws import GuidanceWarning
from orbit_autopilot.dynamics.orbital_elements import OrbitalState
from orbit_autopilot.simulation.presets import (
    ELECTRIC_USAGE_FACTOR, SPACECRAFT_PRESETS, get_spacecraft_preset
)
from orbit_autopilot.simulation.runner import OrbitSimulation, SimulationSettings
from orbit_autopilot.utils.constants import EARTH_RADIUS


class RecordingAutopilot:
    """Stand-in autopilot that records when it is sampled."""

    def __init__(self):
        self.sample_times = []

    def update(self, context, fire_thruster):
        self.sample_times.append(context.mission_time)
        return None

    def status(self):
        return {'samples': len(self.sample_times)}


class TestPresets:
    """Test the reference spacecraft table."""

    def test_unknown_altitude_falls_back(self):
        assert get_spacecraft_preset(999) is SPACECRAFT_PRESETS[400]

    def test_circular_initial_state(self):
        state = SPACECRAFT_PRESETS[550].initial_state()
        assert state.altitude == pytest.approx(550e3)

    def test_heo_starts_at_apogee(self):
        preset = get_spacecraft_preset(42000)
        state = preset.initial_state()

        assert preset.is_elliptical
        assert state.altitude == pytest.approx(42000e3)
        assert state.argument_of_perigee == pytest.approx(np.pi)

    def test_inventories_are_independent(self):
        preset = get_spacecraft_preset(400)
        inventory = preset.create_inventory()
        inventory.consume(PropellantKind.HYDRAZINE, 10.0)

        assert preset.create_inventory().available(PropellantKind.HYDRAZINE) == 60.0


class TestFireThruster:
    """Test burn execution."""

    def setup_method(self):
        self.sim = OrbitSimulation.from_preset(400, enable_autopilot=False)
        self.context = self.sim.context

    def test_chemical_burn(self):
        mass = self.context.mass
        speed = self.context.state.velocity[1]

        assert self.sim.fire_thruster(2.0, ThrusterKind.CHEMICAL, np.array([0.0, 5.0]))

        assert self.context.state.velocity[1] == pytest.approx(speed + 2.0)
        expected = propellant_mass_required(2.0, 235.0, mass)
        assert self.context.inventory.available(PropellantKind.HYDRAZINE) == pytest.approx(60.0 - expected)
        record = self.context.burn_history[-1]
        assert record.thruster_kind is ThrusterKind.CHEMICAL
        assert record.propellant_used == pytest.approx(expected)

    def test_negative_burn_uses_magnitude_along_direction(self):
        speed = self.context.state.velocity[1]

        assert self.sim.fire_thruster(-1.0, ThrusterKind.CHEMICAL, np.array([0.0, -1.0]))
        assert self.context.state.velocity[1] == pytest.approx(speed - 1.0)

    def test_electric_burn_draws_battery(self):
        mass = self.context.mass

        assert self.sim.fire_thruster(2.0, ThrusterKind.ELECTRIC, np.array([0.0, 1.0]))

        assert self.context.power.charge_fraction == pytest.approx(0.97)
        expected = propellant_mass_required(2.0, 1700.0, mass) * ELECTRIC_USAGE_FACTOR
        assert self.context.inventory.available(PropellantKind.XENON) == pytest.approx(5.0 - expected)

    def test_electric_burn_needs_charge(self):
        self.context.power.charge_fraction = 0.01
        assert not self.sim.fire_thruster(2.0, ThrusterKind.ELECTRIC, np.array([0.0, 1.0]))
        assert self.context.burn_history == []

    def test_missing_thruster(self):
        sim = OrbitSimulation.from_preset(1200, enable_autopilot=False)
        assert not sim.fire_thruster(1.0, ThrusterKind.ELECTRIC, np.array([0.0, 1.0]))

    def test_refused_after_crash(self):
        self.context.crashed = True
        assert not self.sim.fire_thruster(1.0, ThrusterKind.CHEMICAL, np.array([0.0, 1.0]))


class TestStepping:
    """Test the tick loop."""

    def test_from_preset(self):
        sim = OrbitSimulation.from_preset(400)

        assert sim.autopilot.enabled
        assert sim.context.constraints.name == "LEO_400km"
        assert sim.context.mass == pytest.approx(265.0)

    def test_run_advances_time(self):
        sim = OrbitSimulation.from_preset(400)
        sim.run(300.0)

        assert sim.context.mission_time == pytest.approx(300.0)
        assert sim.context.tick == 300
        assert not sim.context.crashed
        assert abs(sim.context.state.altitude - 400e3) < 5e3

    def test_autopilot_sampled_every_interval(self):
        sim = OrbitSimulation.from_preset(400, settings=SimulationSettings(autopilot_interval_ticks=30))
        recorder = RecordingAutopilot()
        sim.autopilot = recorder

        sim.run(90.0)

        assert recorder.sample_times == pytest.approx([30.0, 60.0, 90.0])

    def test_autopilot_sees_navigation_fix(self):
        settings = SimulationSettings(use_navigation_sensor=True, sensor_seed=3)
        sim = OrbitSimulation.from_preset(400, settings=settings)
        observed = []

        class StateRecorder(RecordingAutopilot):
            def update(self, context, fire_thruster):
                observed.append(context.state)
                return super().update(context, fire_thruster)

        sim.autopilot = StateRecorder()
        sim.run(30.0)

        assert sim.sensor is not None
        assert len(observed) == 1
        truth = sim.context.state
        assert not np.array_equal(observed[0].position, truth.position)
        assert np.linalg.norm(observed[0].position - truth.position) < 10.0

    def test_passive_run(self):
        sim = OrbitSimulation.from_preset(400)
        sim.autopilot = None

        assert sim.step() is None
        assert sim.summary()['autopilot'] is None

    def test_reentry_sets_crashed(self):
        sim = OrbitSimulation.from_preset(400, settings=SimulationSettings(include_drag=False),
                                          enable_autopilot=False)
        sim.context.state = OrbitalState(np.array([EARTH_RADIUS + 1000.0, 0.0]),
                                         np.array([-1000.0, 0.0]))

        assert sim.step() is None
        assert sim.context.crashed
        assert sim.context.tick == 0

        # Nothing moves after reentry
        assert sim.step() is None
        assert sim.run(10.0) == []
        assert sim.context.mission_time == 0.0

    def test_reentry_with_estimator_and_j2(self):
        settings = SimulationSettings(include_j2=True, use_estimator=True, autopilot_interval_ticks=1)
        sim = OrbitSimulation.from_preset(400, settings=settings)
        sim.context.state = OrbitalState(np.array([EARTH_RADIUS + 20e3, 0.0]),
                                         np.array([-2000.0, 500.0]))

        with warnings.catch_warnings():
            warnings.simplefilter("ignore", GuidanceWarning)
            sim.run(60.0)

        assert sim.context.crashed
        assert sim.context.mission_time < 60.0

    def test_summary(self):
        sim = OrbitSimulation.from_preset(400)
        sim.fire_thruster(1.0, ThrusterKind.CHEMICAL, np.array([0.0, 1.0]))
        summary = sim.summary()

        assert set(summary) == {'mission_time', 'altitude_km', 'speed', 'mass', 'propellant',
                                'battery', 'burns', 'total_delta_v', 'crashed', 'autopilot'}
        assert summary['burns'] == 1
        assert summary['total_delta_v'] == pytest.approx(1.0)
        assert summary['altitude_km'] == pytest.approx(400.0)
        assert summary['autopilot']['enabled']


if __name__ == "__main__":
    pytest.main([__file__])
