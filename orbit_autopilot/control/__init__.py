"""
Control Systems Module

This module provides the station-keeping control stack: propulsion and
propellant models, the burn queue, orbit constraints, the guidance
autopilot, the transfer planner and the mission sequencer.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

from .actuator_models import (
    PropellantKind,
    ThrusterKind,
    ThrusterProperties,
    ThrusterSuite,
    PropellantInventory,
    PowerSystem,
    InsufficientFuelError,
    propellant_mass_required,
    check_fuel_available,
    burn_duration,
    format_burn_duration
)

from .burn_queue import (
    BurnQueue,
    BurnRequest,
    BurnIntent,
    QueueSettings,
    RejectionReason,
    create_default_queue_settings
)

from .constraints import (
    Constraints,
    Thresholds,
    ThresholdStatus,
    OrbitRegime,
    ConstraintReport,
    MissingConstraintsError,
    REAL_CONSTRAINTS,
    EASY_CONSTRAINTS,
    evaluate_constraints,
    get_constraints,
    create_circular_constraints
)

from .guidance_laws import (
    OrbitalAutopilot,
    GuidanceConfiguration,
    GuidanceContext,
    GuidanceStatus,
    GuidanceWarning,
    BurnEvent,
    AutopilotLogEntry,
    SuppressionReason,
    WarningThrottle,
    create_default_guidance_configuration
)

from .transfer_planner import (
    ManeuverStrategy,
    TransferBurn,
    TransferPlan,
    PlannerSettings,
    hohmann_transfer,
    plan_transfer,
    plan_direct_transfer,
    plan_bielliptic_transfer,
    optimal_bielliptic_radius,
    select_minimum_fuel_maneuver,
    create_default_planner_settings
)

from .mission_sequencer import (
    MissionSequencer,
    MissionPhase,
    OrbitGoal,
    SequencerDirective
)

__all__ = [
    # Actuator Models
    'PropellantKind',
    'ThrusterKind',
    'ThrusterProperties',
    'ThrusterSuite',
    'PropellantInventory',
    'PowerSystem',
    'InsufficientFuelError',
    'propellant_mass_required',
    'check_fuel_available',
    'burn_duration',
    'format_burn_duration',

    # Burn Queue
    'BurnQueue',
    'BurnRequest',
    'BurnIntent',
    'QueueSettings',
    'RejectionReason',
    'create_default_queue_settings',

    # Constraints
    'Constraints',
    'Thresholds',
    'ThresholdStatus',
    'OrbitRegime',
    'ConstraintReport',
    'MissingConstraintsError',
    'REAL_CONSTRAINTS',
    'EASY_CONSTRAINTS',
    'evaluate_constraints',
    'get_constraints',
    'create_circular_constraints',

    # Guidance Laws
    'OrbitalAutopilot',
    'GuidanceConfiguration',
    'GuidanceContext',
    'GuidanceStatus',
    'GuidanceWarning',
    'BurnEvent',
    'AutopilotLogEntry',
    'SuppressionReason',
    'WarningThrottle',
    'create_default_guidance_configuration',

    # Transfer Planner
    'ManeuverStrategy',
    'TransferBurn',
    'TransferPlan',
    'PlannerSettings',
    'hohmann_transfer',
    'plan_transfer',
    'plan_direct_transfer',
    'plan_bielliptic_transfer',
    'optimal_bielliptic_radius',
    'select_minimum_fuel_maneuver',
    'create_default_planner_settings',

    # Mission Sequencer
    'MissionSequencer',
    'MissionPhase',
    'OrbitGoal',
    'SequencerDirective'
]
