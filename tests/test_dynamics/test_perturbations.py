"""
Unit tests for orbital perturbation models.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import pytest
import numpy as np
from orbit_autopilot.dynamics.orbital_elements import (
    circular_orbit_state, elements_from_state, elliptical_orbit_state
)
from orbit_autopilot.dynamics.perturbations import (
    CorrectionKind, InclinationBucket, PerturbationParameters, TargetElement,
    atmospheric_density, drag_acceleration, drag_correction, evaluate_perturbations,
    in_earth_shadow, infer_inclination_bucket, j2_acceleration, j2_correction,
    perturbation_analysis_summary, srp_correction, third_body_correction
)
from orbit_autopilot.utils.constants import EARTH_RADIUS, PI


class TestAtmosphericDensity:
    """Test cases for the banded atmosphere."""

    def test_band_reference_value(self):
        assert atmospheric_density(400e3) == pytest.approx(3.725e-12)

    def test_density_decreases_with_altitude(self):
        altitudes = np.linspace(100e3, 1200e3, 40)
        densities = [atmospheric_density(h) for h in altitudes]

        assert all(d1 > d2 for d1, d2 in zip(densities, densities[1:]))

    def test_below_surface(self):
        assert atmospheric_density(-10.0) == pytest.approx(1.225)


class TestAccelerations:
    """Test cases for perturbing accelerations."""

    def test_j2_points_outward(self):
        position = np.array([EARTH_RADIUS + 500e3, 0.0])
        acceleration = j2_acceleration(position)

        assert acceleration[0] > 0
        assert acceleration[1] == pytest.approx(0.0)

    def test_j2_invalid_inputs(self):
        with pytest.raises(ValueError):
            j2_acceleration(np.array([EARTH_RADIUS + 500e3, 0.0, 0.0]))

        with pytest.raises(ValueError):
            j2_acceleration(np.array([EARTH_RADIUS - 1.0, 0.0]))

    def test_drag_opposes_velocity(self):
        state = circular_orbit_state(300e3)
        acceleration = drag_acceleration(state.position, state.velocity, 265.0)

        assert np.dot(acceleration, state.velocity) < 0
        cross = acceleration[0] * state.velocity[1] - acceleration[1] * state.velocity[0]
        assert cross == pytest.approx(0.0, abs=1e-12)


class TestDragCorrection:
    """Test cases for the drag makeup demand."""

    def test_perigee_demand_is_prograde(self):
        elements = elements_from_state(circular_orbit_state(400e3))
        demand = drag_correction(elements, elements.altitude, 265.0)

        assert demand.needs_correction
        assert demand.kind is CorrectionKind.DRAG
        assert demand.target is TargetElement.SEMI_MAJOR_AXIS
        assert demand.delta_v > 0.01
        np.testing.assert_allclose(demand.direction, elements.prograde_unit)

    def test_no_demand_outside_perigee_window(self):
        elements = elements_from_state(circular_orbit_state(400e3, phase=PI / 2))
        demand = drag_correction(elements, elements.altitude, 265.0)

        assert not demand.needs_correction
        assert demand.delta_v == 0.0

    def test_negligible_drag_at_high_altitude(self):
        elements = elements_from_state(circular_orbit_state(1200e3))
        demand = drag_correction(elements, elements.altitude, 300.0)

        assert not demand.needs_correction


class TestJ2Correction:
    """Test cases for the perigee lock demand."""

    def setup_method(self):
        self.perigee = elements_from_state(
            elliptical_orbit_state(372.9e3, 427.1e3, start_at_apogee=False))
        self.apogee = elements_from_state(
            elliptical_orbit_state(372.9e3, 427.1e3, start_at_apogee=True))

    def test_bucket_inference(self):
        assert infer_inclination_bucket(self.perigee, self.perigee.altitude) is InclinationBucket.EQUATORIAL

        sso = elements_from_state(circular_orbit_state(700e3))
        assert infer_inclination_bucket(sso, sso.altitude) is InclinationBucket.SUN_SYNCHRONOUS

        heo = elements_from_state(elliptical_orbit_state(1000e3, 40000e3))
        assert infer_inclination_bucket(heo, heo.altitude) is InclinationBucket.MOLNIYA

    def test_radial_burn_flips_sign_between_apsides(self):
        at_perigee = j2_correction(self.perigee, self.perigee.altitude)
        at_apogee = j2_correction(self.apogee, self.apogee.altitude)

        assert at_perigee.needs_correction and at_apogee.needs_correction
        assert at_perigee.target is TargetElement.ARGUMENT_OF_PERIGEE
        assert at_perigee.delta_v > 0
        assert at_apogee.delta_v < 0
        np.testing.assert_allclose(at_perigee.direction, self.perigee.radial_unit)
        np.testing.assert_allclose(at_apogee.direction, -self.apogee.radial_unit)

    def test_circular_orbit_has_no_apse_line(self):
        elements = elements_from_state(circular_orbit_state(400e3))
        assert not j2_correction(elements, elements.altitude).needs_correction


class TestThirdBodyAndSRP:
    """Test cases for the high-orbit demand gates."""

    def test_third_body_gated_by_altitude(self):
        elements = elements_from_state(circular_orbit_state(1200e3))
        demand = third_body_correction(elements, elements.altitude)

        assert not demand.needs_correction
        assert demand.kind is CorrectionKind.THIRD_BODY

    def test_srp_gated_by_altitude(self):
        elements = elements_from_state(circular_orbit_state(550e3))
        assert not srp_correction(elements, elements.altitude).needs_correction

    def test_srp_off_in_shadow(self):
        elements = elements_from_state(circular_orbit_state(1200e3, phase=PI))
        demand = srp_correction(elements, elements.altitude, 300.0,
                                params=PerturbationParameters(min_correction_dv=0.0))

        assert not demand.needs_correction
        assert "shadow" in demand.reason

    def test_srp_in_sunlight(self):
        elements = elements_from_state(circular_orbit_state(1200e3))
        demand = srp_correction(elements, elements.altitude, 300.0,
                                params=PerturbationParameters(min_correction_dv=0.0))

        assert demand.needs_correction
        assert demand.kind is CorrectionKind.SRP
        assert abs(np.linalg.norm(demand.direction) - 1.0) < 1e-12

    def test_cylindrical_shadow(self):
        assert not in_earth_shadow(np.array([EARTH_RADIUS + 500e3, 0.0]))
        assert in_earth_shadow(np.array([-(EARTH_RADIUS + 500e3), 0.0]))
        assert not in_earth_shadow(np.array([-1e7, 2 * EARTH_RADIUS]))


class TestEvaluatePerturbations:
    """Test cases for the combined evaluation."""

    def test_priority_order(self):
        elements = elements_from_state(circular_orbit_state(400e3))
        demands = evaluate_perturbations(elements, elements.altitude, 265.0)

        assert [d.kind for d in demands] == [CorrectionKind.DRAG, CorrectionKind.J2,
                                             CorrectionKind.THIRD_BODY, CorrectionKind.SRP]

    def test_repeated_evaluation_is_identical(self):
        """Models hold no state between calls."""
        state = elliptical_orbit_state(372.9e3, 427.1e3, start_at_apogee=False)
        elements = elements_from_state(state)

        first = evaluate_perturbations(elements, elements.altitude, 265.0, mission_time=5000.0)
        second = evaluate_perturbations(elements, elements.altitude, 265.0, mission_time=5000.0)

        for a, b in zip(first, second):
            assert a.needs_correction == b.needs_correction
            assert a.delta_v == b.delta_v
            np.testing.assert_array_equal(a.direction, b.direction)
            assert a.reason == b.reason

    def test_summary(self):
        elements = elements_from_state(circular_orbit_state(250e3))
        summary = perturbation_analysis_summary(elements, 265.0)

        assert summary['altitude_km'] == pytest.approx(250.0, abs=1e-3)
        assert summary['dominant_perturbation'] in ('drag', 'j2')
        assert summary['inclination_bucket'] == 'EQUATORIAL'


if __name__ == "__main__":
    pytest.main([__file__])
