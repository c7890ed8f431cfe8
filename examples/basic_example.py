"""
Basic Example: Station-Keeping and Orbit Raising

This example runs the autopilot on the 400 km reference spacecraft after
a small eccentricity disturbance, then asks the mission sequencer to plan
a raise to 600 km.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import logging

import numpy as np

from orbit_autopilot.control import MissionSequencer, OrbitGoal
from orbit_autopilot.dynamics.orbital_elements import circular_orbit_state, elements_from_state
from orbit_autopilot.simulation import OrbitSimulation, SimulationSettings


def station_keeping_demo():
    """Disturb a circular orbit and let the autopilot recover it."""
    print("1. Station-keeping at 400 km:")
    sim = OrbitSimulation.from_preset(400, mode='easy', settings=SimulationSettings(method='rk4'))

    # Kick the spacecraft prograde to open up the orbit
    sim.context.state.velocity = sim.context.state.velocity + np.array([0.0, 6.0])
    elements = elements_from_state(sim.context.state)
    print(f"  After disturbance: perigee {elements.perigee_altitude/1000:.1f} km, "
          f"apogee {elements.apogee_altitude/1000:.1f} km, e = {elements.eccentricity:.5f}")

    events = sim.run(2 * elements.period)
    for event in events:
        print(f"  t = {event.mission_time:7.0f} s  {event.delta_v:+6.2f} m/s  "
              f"{event.kind.value:<14} ({event.thruster_kind.value})")

    elements = elements_from_state(sim.context.state)
    summary = sim.summary()
    print(f"  After {summary['mission_time']/3600:.2f} h: perigee {elements.perigee_altitude/1000:.1f} km, "
          f"apogee {elements.apogee_altitude/1000:.1f} km, e = {elements.eccentricity:.5f}")
    print(f"  Burns: {summary['burns']}, total Δv: {summary['total_delta_v']:.2f} m/s, "
          f"battery: {100*summary['battery']:.0f}%")
    print(f"  Propellant [kg]: {summary['propellant']}")

    print("  Autopilot log:")
    for entry in summary['autopilot']['recent_log']:
        print(f"    [{entry.mission_time:7.0f} s] {entry.message}")


def orbit_raising_demo():
    """Walk the mission sequencer through a two-impulse raise."""
    print("\n2. Orbit raising 400 km -> 600 km:")
    sequencer = MissionSequencer()
    sequencer.add_goal(OrbitGoal("operational", 600e3))
    state = circular_orbit_state(400e3)

    directive = sequencer.get_next_burn(state, 0.0)
    plan = directive.plan
    print(f"  {directive.reason}")
    for burn in plan.burns:
        print(f"    t + {burn.time_offset:6.0f} s  {burn.delta_v:+7.2f} m/s  {burn.description}")
    print(f"  Transfer time: {plan.transfer_time/60:.1f} min")

    for t in (0.0, plan.transfer_time / 2, plan.transfer_time):
        directive = sequencer.get_next_burn(state, t)
        print(f"  t = {t:6.0f} s  [{directive.phase.value}] {directive.delta_v:+7.2f} m/s  "
              f"{directive.reason}")


def main():
    """Main example function."""
    logging.basicConfig(level=logging.WARNING, format='%(levelname)s %(name)s: %(message)s')
    print("=== Orbit Autopilot - Basic Example ===\n")
    station_keeping_demo()
    orbit_raising_demo()
    print("\n=== Example completed ===")


if __name__ == "__main__":
    main()
