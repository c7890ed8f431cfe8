"""
Guidance Laws for Orbit Maintenance

This module implements the station-keeping autopilot: a single controller
that derives orbital elements every evaluation, turns perturbation demands
and element errors into correction burns inside apsis windows, gates them
on propellant, and releases queued burns to the thrusters at a bounded
cadence. Circular and highly elliptical orbits are handled by separate
guidance strategies selected from the constraint regime.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import numpy as np
from typing import Callable, Deque, Dict, List, Optional, Tuple
from dataclasses import dataclass
from collections import deque
from enum import Enum
import logging
import warnings

from .actuator_models import (PropellantInventory, PropellantKind, ThrusterKind,
                              ThrusterProperties, ThrusterSuite, check_fuel_available)
from .burn_queue import BurnIntent, BurnQueue, BurnRequest, QueueSettings
from .constraints import (Constraints, MissingConstraintsError, OrbitRegime,
                          ThresholdStatus, evaluate_constraints)
from ..dynamics.orbital_elements import (ApsisWindow, OrbitalElements, OrbitalState,
                                         OutOfBoundsOrbit, compute_orbital_elements,
                                         detect_burn_window)
from ..dynamics.perturbations import (CorrectionKind, PerturbationParameters,
                                      TargetElement, evaluate_perturbations)
from ..dynamics.propagator import ReentryError
from ..navigation.extended_kalman_filter import OrbitStateEstimator
from ..utils.constants import (BURN_WINDOW_TOLERANCE, EARTH_RADIUS,
                               HIGH_ALTITUDE_THRESHOLD)

logger = logging.getLogger(__name__)

FireThruster = Callable[[float, ThrusterKind, np.ndarray], Optional[bool]]

DEFAULT_CHEMICAL_THRUSTER = ThrusterProperties(
    name="default_monoprop",
    kind=ThrusterKind.CHEMICAL,
    propellant=PropellantKind.HYDRAZINE,
    specific_impulse=235.0,
    thrust=22.0
)


class GuidanceWarning(UserWarning):
    """Operational warning raised by the autopilot (rate limited)."""


class GuidanceStatus(Enum):
    """Controller status reported to the host."""
    DISABLED = "disabled"
    NOMINAL = "nominal"
    CORRECTING = "correcting"
    RESCUE = "rescue"
    STANDBY = "standby"
    INVALID_ORBIT = "invalid_orbit"


class SuppressionReason(Enum):
    """Why a proposed correction did not reach the queue."""
    OUTSIDE_WINDOW = "outside_window"
    DEBOUNCE = "debounce"
    ALREADY_SERVED = "already_served"
    INSUFFICIENT_FUEL = "insufficient_fuel"
    QUEUE_REJECTED = "queue_rejected"


@dataclass
class GuidanceConfiguration:
    """Tuning of the station-keeping autopilot."""
    window_tolerance: float = BURN_WINDOW_TOLERANCE  # Apsis window half-width [rad]

    # Inter-burn cadence [s]
    circular_burn_interval: float = 30.0
    heo_burn_interval: float = 120.0
    high_altitude_interval_factor: float = 0.5

    # Smoothing and debounce of continuous-signal corrections
    correction_interval: float = 120.0
    smoothing_weights: Tuple[float, ...] = (0.5, 0.3, 0.2)  # Newest first

    warning_interval: float = 300.0   # Minimum time between repeats of a warning [s]
    lookahead: float = 60.0           # Estimator forecast horizon [s]

    # SMA PID (error in km, output in m/s)
    sma_kp: float = 0.3
    sma_ki: float = 0.01
    sma_kd: float = 0.05
    integral_limit: float = 100.0
    max_sma_dv: float = 3.0

    # Circular eccentricity correction
    eccentricity_gain: float = 500.0
    max_eccentricity_dv: float = 3.0
    eccentricity_urgency: float = 2.0

    # Highly elliptical regime
    heo_eccentricity_gain: float = 15.0
    heo_min_dv: float = 0.3
    heo_max_dv: float = 3.0
    heo_altitude_gain: float = 0.05
    heo_altitude_min_dv: float = 0.5
    heo_altitude_max_dv: float = 5.0
    heo_sma_gain: float = 0.02
    heo_default_critical_margin_km: float = 8000.0

    emergency_dv: float = 2.0
    log_capacity: int = 50


def create_default_guidance_configuration() -> GuidanceConfiguration:
    """Create default autopilot configuration."""
    return GuidanceConfiguration()


@dataclass
class GuidanceContext:
    """
    Everything the autopilot reads in one evaluation.

    The autopilot never mutates the state, the inventory or the thrusters.
    Without an inventory the propellant check is skipped.
    """
    state: OrbitalState
    constraints: Constraints
    mass: float
    mission_time: float
    inventory: Optional[PropellantInventory] = None
    thrusters: Optional[ThrusterSuite] = None


@dataclass
class BurnEvent:
    """A burn handed to the thrusters."""
    delta_v: float
    kind: CorrectionKind
    reason: str
    mission_time: float
    thruster_kind: ThrusterKind
    direction: np.ndarray


@dataclass
class AutopilotLogEntry:
    mission_time: float
    message: str


class WarningThrottle:
    """Rate limiter for repeated warnings, keyed by warning identity."""

    def __init__(self, interval: float):
        self.interval = interval
        self._last_emitted: Dict[str, float] = {}

    def should_emit(self, key: str, mission_time: float) -> bool:
        last = self._last_emitted.get(key)
        if last is not None and mission_time - last < self.interval:
            return False
        self._last_emitted[key] = mission_time
        return True

    def reset(self) -> None:
        self._last_emitted.clear()


class OrbitalAutopilot:
    """
    Station-keeping autopilot for circular and highly elliptical orbits.

    The host calls update() once per evaluation with a GuidanceContext and
    a fire_thruster(delta_v, thruster_kind, direction) callback. Corrections
    are queued inside apsis windows; at most one queued burn is released per
    evaluation, no sooner than the regime's inter-burn interval.
    """

    def __init__(self, config: Optional[GuidanceConfiguration] = None,
                 queue_settings: Optional[QueueSettings] = None,
                 perturbation_params: Optional[PerturbationParameters] = None,
                 estimator: Optional[OrbitStateEstimator] = None):
        """
        Initialize the autopilot (disabled).

        Args:
            config: Autopilot tuning
            queue_settings: Burn queue thresholds
            perturbation_params: Perturbation model parameters
            estimator: Optional state estimator for proactive corrections
        """
        self.config = config or GuidanceConfiguration()
        self.perturbation_params = perturbation_params or PerturbationParameters(
            window_tolerance=self.config.window_tolerance)
        self.queue = BurnQueue(queue_settings)
        self.estimator = estimator
        self.throttle = WarningThrottle(self.config.warning_interval)

        self.enabled = False
        self.rescue_mode = False
        self.argument_of_perigee = 0.0
        self.last_suppression: Optional[SuppressionReason] = None
        self.last_suppression_detail = ""

        self._status = GuidanceStatus.DISABLED
        self._log: Deque[AutopilotLogEntry] = deque(maxlen=self.config.log_capacity)
        self._strategies = {
            OrbitRegime.CIRCULAR: self._guide_circular,
            OrbitRegime.HIGHLY_ELLIPTICAL: self._guide_highly_elliptical,
        }
        self._reset_control_memory()

    def _reset_control_memory(self) -> None:
        self._sma_integral = 0.0
        self._sma_last_error: Optional[float] = None
        self._proposals: Dict[BurnIntent, Deque[float]] = {}
        self._last_correction_time: Optional[float] = None
        self._last_served: Dict[BurnIntent, float] = {}
        self._emergency_fired = False
        self._fuel_shortage = False
        self._estimator_synced = False

    # Configuration surface

    def set_enabled(self, enabled: bool) -> None:
        """
        Engage or disengage the autopilot.

        Either way the PID memory, smoothing history and emergency latch
        are cleared, and pending burns are dropped. An attached estimator is
        re-seeded from the next state it sees.
        """
        self.enabled = enabled
        self._reset_control_memory()
        self.queue.clear()
        if enabled:
            self._status = GuidanceStatus.NOMINAL
            self._log_message("Autopilot ENGAGED")
        else:
            self._status = GuidanceStatus.DISABLED
            self.rescue_mode = False
            self._log_message("Autopilot DISENGAGED")

    def set_argument_of_perigee(self, argument_of_perigee: float) -> None:
        """Set the reference angle used for true anomaly [rad]."""
        self.argument_of_perigee = float(argument_of_perigee)

    def attach_estimator(self, estimator: Optional[OrbitStateEstimator]) -> None:
        self.estimator = estimator
        self._estimator_synced = False

    # Main loop

    def update(self, context: GuidanceContext, fire_thruster: FireThruster) -> Optional[BurnEvent]:
        """
        Run one guidance evaluation.

        Args:
            context: Current state, constraints, mass, time and propulsion
            fire_thruster: Callback executing a burn

        Returns:
            The burn fired during this evaluation, if any
        """
        if not self.enabled:
            return None

        mission_time = context.mission_time
        self.last_suppression = None
        self.last_suppression_detail = ""

        try:
            elements = compute_orbital_elements(context.state.position, context.state.velocity,
                                                self.argument_of_perigee)
        except OutOfBoundsOrbit as exc:
            return self._handle_invalid_orbit(context, exc, fire_thruster)
        self._emergency_fired = False

        constraints = context.constraints
        try:
            constraints.validate()
        except MissingConstraintsError as exc:
            self._status = GuidanceStatus.STANDBY
            self._warn("missing_constraints", f"Missing orbit parameters, standing by ({exc})",
                       mission_time)
            return None

        forecast = self._forecast(context)
        self._update_rescue_mode(elements, constraints)

        window = detect_burn_window(elements.true_anomaly, self.config.window_tolerance)
        if window is None and len(self.queue) > 0:
            # Queued burns are only valid inside the window they were computed for
            self._log_message(f"Dropped {len(self.queue)} queued burn(s) outside apsis window",
                              mission_time)
            self.queue.clear()

        self._strategies[constraints.regime](context, elements, window, forecast)

        event = self._execute_due(context, elements, constraints.regime, fire_thruster)

        if self.rescue_mode:
            self._status = GuidanceStatus.RESCUE
        elif event is not None or len(self.queue) > 0:
            self._status = GuidanceStatus.CORRECTING
        else:
            self._status = GuidanceStatus.NOMINAL
        return event

    def _handle_invalid_orbit(self, context: GuidanceContext, exc: OutOfBoundsOrbit,
                              fire_thruster: FireThruster) -> Optional[BurnEvent]:
        """Refuse normal guidance; fire one stabilizing burn per invalid episode."""
        mission_time = context.mission_time
        self._status = GuidanceStatus.INVALID_ORBIT
        self.rescue_mode = True
        self.queue.clear()
        self._warn("invalid_orbit", f"Invalid orbit, rescue needed ({exc})", mission_time)

        if self._emergency_fired or context.state.speed < 1e-9:
            return None

        self._emergency_fired = True
        direction = context.state.velocity / context.state.speed
        thruster_kind = self._select_thruster(context).kind
        fire_thruster(self.config.emergency_dv, thruster_kind, direction)
        self._log_message(f"EMERGENCY: +{self.config.emergency_dv:.1f} m/s prograde", mission_time)
        return BurnEvent(
            delta_v=self.config.emergency_dv,
            kind=CorrectionKind.EMERGENCY,
            reason="Emergency prograde burn (invalid orbit)",
            mission_time=mission_time,
            thruster_kind=thruster_kind,
            direction=direction.copy()
        )

    def _forecast(self, context: GuidanceContext) -> Optional[OrbitalElements]:
        """Track the state with the estimator and forecast the elements ahead."""
        if self.estimator is None:
            return None
        if not self._estimator_synced:
            self.estimator.reinitialize(context.state, context.mission_time)
            self._estimator_synced = True
        try:
            self.estimator.track(context.state, context.mission_time)
            return self.estimator.forecast_elements(self.config.lookahead, self.argument_of_perigee)
        except (ValueError, ReentryError, np.linalg.LinAlgError) as exc:
            # OutOfBoundsOrbit is a ValueError
            logger.debug("Forecast unavailable: %s", exc)
            self._estimator_synced = False
            return None

    def _update_rescue_mode(self, elements: OrbitalElements, constraints: Constraints) -> None:
        """Set on any violation, clear only when everything is nominal again."""
        report = evaluate_constraints(elements, constraints)
        if report.worst.value >= ThresholdStatus.VIOLATION.value or self._fuel_shortage:
            if not self.rescue_mode:
                self._log_message(f"RESCUE: {'; '.join(report.violations) or 'propellant shortage'}")
            self.rescue_mode = True
        elif report.worst == ThresholdStatus.NOMINAL:
            self.rescue_mode = False

    # Regime strategies

    def _guide_circular(self, context: GuidanceContext, elements: OrbitalElements,
                        window: Optional[ApsisWindow],
                        forecast: Optional[OrbitalElements]) -> None:
        """
        Circular regime, strict priority: perturbation demands (drag, J2,
        third-body, SRP), then eccentricity, then SMA once eccentricity is
        at or below its warning level.
        """
        self._queue_perturbation_demands(context, elements)

        constraints = context.constraints
        thresholds = constraints.eccentricity_thresholds
        eccentricity_high = elements.eccentricity > thresholds.warning
        forecast_high = forecast is not None and forecast.eccentricity > thresholds.warning

        if eccentricity_high or forecast_high:
            if window is None:
                self._suppress(SuppressionReason.OUTSIDE_WINDOW,
                               "eccentricity correction waiting for apsis window")
                return

            urgency = (self.config.eccentricity_urgency
                       if elements.eccentricity > thresholds.violation else 1.0)
            magnitude = min(elements.eccentricity * self.config.eccentricity_gain,
                            self.config.max_eccentricity_dv) * urgency
            # Never overshoot a full circularization from this apsis
            circular_speed = np.sqrt(elements.mu / elements.radius)
            magnitude = min(magnitude, abs(circular_speed - elements.speed))

            if window is ApsisWindow.PERIGEE:
                delta_v, direction = -magnitude, elements.retrograde_unit
                note = "retrograde at perigee lowers apogee"
            else:
                delta_v, direction = magnitude, elements.prograde_unit
                note = "prograde at apogee raises perigee"
            source = "forecast" if forecast_high and not eccentricity_high else "current"
            self._queue_continuous(
                context, delta_v, direction,
                f"Circularizing ({note}, e={elements.eccentricity:.4f}, {source})",
                BurnIntent(CorrectionKind.ECCENTRICITY, TargetElement.ECCENTRICITY))
            return

        self._correct_semi_major_axis(context, elements, window)

    def _correct_semi_major_axis(self, context: GuidanceContext, elements: OrbitalElements,
                                 window: Optional[ApsisWindow]) -> None:
        constraints = context.constraints
        error_km = constraints.target_altitude_km - elements.sma_altitude / 1000

        self._sma_integral = float(np.clip(self._sma_integral + error_km,
                                           -self.config.integral_limit,
                                           self.config.integral_limit))
        derivative = 0.0 if self._sma_last_error is None else error_km - self._sma_last_error
        self._sma_last_error = error_km

        thresholds = constraints.altitude_thresholds
        if abs(error_km) <= thresholds.warning:
            return
        if window is None:
            self._suppress(SuppressionReason.OUTSIDE_WINDOW, "SMA correction waiting for apsis window")
            return

        urgency = {ThresholdStatus.WARNING: 1.5, ThresholdStatus.VIOLATION: 2.0,
                   ThresholdStatus.CRITICAL: 3.0}.get(thresholds.classify(error_km), 1.0)
        output = (self.config.sma_kp * error_km + self.config.sma_ki * self._sma_integral
                  + self.config.sma_kd * derivative) * urgency
        delta_v = float(np.clip(output, -self.config.max_sma_dv, self.config.max_sma_dv))
        direction = elements.prograde_unit if delta_v >= 0 else elements.retrograde_unit

        self._queue_continuous(
            context, delta_v, direction,
            f"SMA correction ({error_km:+.1f} km from target)",
            BurnIntent(CorrectionKind.SEMI_MAJOR_AXIS, TargetElement.SEMI_MAJOR_AXIS))

    def _guide_highly_elliptical(self, context: GuidanceContext, elements: OrbitalElements,
                                 window: Optional[ApsisWindow],
                                 forecast: Optional[OrbitalElements]) -> None:
        """
        Highly elliptical regime: window-only corrections that hold the
        target eccentricity. High eccentricity is the goal, so the orbit is
        never circularized.
        """
        self._queue_perturbation_demands(context, elements)

        if window is None:
            self._suppress(SuppressionReason.OUTSIDE_WINDOW, "HEO corrections only near apsides")
            return

        config = self.config
        constraints = context.constraints
        altitude_km = elements.altitude / 1000
        perigee_km = constraints.perigee_altitude_km
        apogee_km = constraints.target_altitude_km
        altitude_thresholds = constraints.altitude_thresholds
        margin = (altitude_thresholds.critical if altitude_thresholds is not None
                  else config.heo_default_critical_margin_km)

        if altitude_km < perigee_km - margin or altitude_km > apogee_km + margin:
            error = (perigee_km - altitude_km if altitude_km < perigee_km - margin
                     else altitude_km - apogee_km)
            magnitude = float(np.clip(error * config.heo_altitude_gain,
                                      config.heo_altitude_min_dv, config.heo_altitude_max_dv))
            raise_orbit = altitude_km < perigee_km - margin
            delta_v = magnitude if raise_orbit else -magnitude
            direction = elements.prograde_unit if raise_orbit else elements.retrograde_unit
            self.rescue_mode = True
            self._queue_request(
                context, delta_v, direction,
                f"HEO RESCUE: altitude {altitude_km:.0f} km outside {perigee_km:.0f}-{apogee_km:.0f} km",
                BurnIntent(CorrectionKind.ALTITUDE_RESCUE, TargetElement.ALTITUDE))
            return

        target_e = constraints.target_eccentricity
        thresholds = constraints.eccentricity_thresholds
        deviation = elements.eccentricity - target_e
        if forecast is not None and abs(forecast.eccentricity - target_e) > abs(deviation):
            deviation = forecast.eccentricity - target_e

        if abs(deviation) > thresholds.warning:
            magnitude = float(np.clip(abs(deviation) * config.heo_eccentricity_gain,
                                      config.heo_min_dv, config.heo_max_dv))
            too_circular = deviation < 0
            at_perigee = window is ApsisWindow.PERIGEE
            # Perigee burns move apogee, apogee burns move perigee
            prograde = too_circular == at_perigee
            if too_circular:
                note = "raising apogee" if at_perigee else "lowering perigee"
            else:
                note = "lowering apogee" if at_perigee else "raising perigee"
            self._queue_continuous(
                context, magnitude if prograde else -magnitude,
                elements.prograde_unit if prograde else elements.retrograde_unit,
                f"HEO: {note} (e={elements.eccentricity:.3f}, target {target_e:.2f})",
                BurnIntent(CorrectionKind.ECCENTRICITY, TargetElement.ECCENTRICITY))
            return

        if window is not ApsisWindow.PERIGEE:
            return

        target_sma = EARTH_RADIUS + 500 * (perigee_km + apogee_km)
        error_km = (target_sma - elements.semi_major_axis) / 1000
        if altitude_thresholds is None or abs(error_km) <= altitude_thresholds.warning:
            return
        magnitude = float(np.clip(abs(error_km) * config.heo_sma_gain,
                                  config.heo_min_dv, config.heo_max_dv))
        prograde = error_km > 0
        self._queue_continuous(
            context, magnitude if prograde else -magnitude,
            elements.prograde_unit if prograde else elements.retrograde_unit,
            f"HEO: SMA trim at perigee ({error_km:+.0f} km)",
            BurnIntent(CorrectionKind.SEMI_MAJOR_AXIS, TargetElement.SEMI_MAJOR_AXIS))

    # Queueing

    def _queue_perturbation_demands(self, context: GuidanceContext,
                                    elements: OrbitalElements) -> None:
        """Queue discrete model demands in priority order, once per half orbit each."""
        demands = evaluate_perturbations(elements, elements.altitude, context.mass,
                                         context.mission_time, self.perturbation_params)
        for demand in demands:
            if not demand.needs_correction:
                continue
            intent = BurnIntent(demand.kind, demand.target)
            served = self._last_served.get(intent)
            if served is not None and context.mission_time - served < 0.5 * elements.period:
                self._suppress(SuppressionReason.ALREADY_SERVED,
                               f"{demand.kind.value} already corrected this pass")
                continue
            if self._queue_request(context, demand.delta_v, demand.direction,
                                   demand.reason, intent):
                self._last_served[intent] = context.mission_time

    def _queue_continuous(self, context: GuidanceContext, delta_v: float,
                          direction: np.ndarray, reason: str, intent: BurnIntent) -> bool:
        """Smooth and debounce a correction derived from a continuous error signal."""
        history = self._proposals.setdefault(intent, deque(maxlen=len(self.config.smoothing_weights)))
        history.appendleft(delta_v)
        weights = self.config.smoothing_weights[:len(history)]
        smoothed = float(np.dot(weights, list(history)) / sum(weights))

        mission_time = context.mission_time
        if (self._last_correction_time is not None
                and mission_time - self._last_correction_time < self.config.correction_interval):
            elapsed = mission_time - self._last_correction_time
            self._suppress(SuppressionReason.DEBOUNCE,
                           f"{elapsed:.0f} s since last correction "
                           f"(minimum {self.config.correction_interval:.0f} s)")
            return False

        # Smoothing may flip the sign; the thrust direction follows the sign
        if np.sign(smoothed) != np.sign(delta_v):
            direction = -direction

        if not self._queue_request(context, smoothed, direction, reason, intent):
            return False
        self._last_correction_time = mission_time
        return True

    def _queue_request(self, context: GuidanceContext, delta_v: float,
                       direction: np.ndarray, reason: str, intent: BurnIntent) -> List[BurnRequest]:
        """Fuel-gate a burn and hand it to the queue."""
        mission_time = context.mission_time
        thruster = self._select_thruster(context)

        if context.inventory is not None:
            available = check_fuel_available(context.inventory, thruster.propellant, delta_v,
                                             thruster.specific_impulse, context.mass,
                                             thruster.propellant_usage_factor)
            if not available:
                self._fuel_shortage = True
                self.rescue_mode = True
                message = (f"Insufficient {thruster.propellant.value} for {abs(delta_v):.2f} m/s "
                           f"({reason})")
                self._suppress(SuppressionReason.INSUFFICIENT_FUEL, message)
                self._warn(f"fuel:{thruster.propellant.value}", message, mission_time)
                return []
            self._fuel_shortage = False

        queued = self.queue.queue_burn(delta_v, direction, reason, thruster.kind, intent,
                                       mission_time, context.inventory, context.mass)
        if not queued:
            rejection = self.queue.last_rejection
            self._suppress(SuppressionReason.QUEUE_REJECTED,
                           rejection.value if rejection is not None else "rejected")
            return []

        prefix = "RESCUE" if self.rescue_mode else "AUTO"
        self._log_message(f"{prefix}: queued {delta_v:+.2f} m/s ({reason})", mission_time)
        return queued

    def _select_thruster(self, context: GuidanceContext) -> ThrusterProperties:
        """Electric for routine burns, chemical in rescue mode."""
        if context.thrusters is None:
            return DEFAULT_CHEMICAL_THRUSTER
        thruster = context.thrusters.select(self.rescue_mode, context.inventory)
        return thruster if thruster is not None else DEFAULT_CHEMICAL_THRUSTER

    def _execute_due(self, context: GuidanceContext, elements: OrbitalElements,
                     regime: OrbitRegime, fire_thruster: FireThruster) -> Optional[BurnEvent]:
        interval = (self.config.heo_burn_interval if regime == OrbitRegime.HIGHLY_ELLIPTICAL
                    else self.config.circular_burn_interval)
        if elements.altitude > HIGH_ALTITUDE_THRESHOLD:
            interval *= self.config.high_altitude_interval_factor

        request = self.queue.pop_due(context.mission_time, interval)
        if request is None:
            return None

        result = fire_thruster(request.delta_v, request.thruster_kind, request.direction)
        if result is False:
            self._log_message(f"Burn not executed: {request.reason}", context.mission_time)
            return None

        prefix = "RESCUE" if self.rescue_mode else "AUTO"
        self._log_message(f"{prefix}: {request.delta_v:+.2f} m/s ({request.thruster_kind.value})",
                          context.mission_time)
        return BurnEvent(
            delta_v=request.delta_v,
            kind=request.intent.kind,
            reason=request.reason,
            mission_time=context.mission_time,
            thruster_kind=request.thruster_kind,
            direction=request.direction.copy()
        )

    # Reporting

    def _suppress(self, reason: SuppressionReason, detail: str) -> None:
        self.last_suppression = reason
        self.last_suppression_detail = detail
        logger.debug("Suppressed (%s): %s", reason.value, detail)

    def _warn(self, key: str, message: str, mission_time: float) -> None:
        if not self.throttle.should_emit(key, mission_time):
            return
        warnings.warn(message, GuidanceWarning, stacklevel=3)
        self._log_message(f"WARNING: {message}", mission_time)

    def _log_message(self, message: str, mission_time: Optional[float] = None) -> None:
        self._log.appendleft(AutopilotLogEntry(mission_time if mission_time is not None else 0.0,
                                               message))

    def recent_log(self, count: int = 10) -> List[AutopilotLogEntry]:
        """Most recent log entries, newest first."""
        return list(self._log)[:count]

    def status(self) -> Dict:
        """Status for display."""
        return {
            'enabled': self.enabled,
            'rescue_mode': self.rescue_mode,
            'status': self._status.value,
            'recent_log': self.recent_log(5)
        }

    @property
    def guidance_status(self) -> GuidanceStatus:
        return self._status
