"""
Simulation Framework Module

This module provides the tick-driven reference driver for the orbit
autopilot and the reference spacecraft presets.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

from .presets import (
    SpacecraftPreset,
    SPACECRAFT_PRESETS,
    ELECTRIC_USAGE_FACTOR,
    get_spacecraft_preset
)

from .runner import (
    OrbitSimulation,
    SimulationContext,
    SimulationSettings,
    BurnRecord,
    create_default_simulation_settings
)

__all__ = [
    # Presets
    'SpacecraftPreset',
    'SPACECRAFT_PRESETS',
    'ELECTRIC_USAGE_FACTOR',
    'get_spacecraft_preset',

    # Runner
    'OrbitSimulation',
    'SimulationContext',
    'SimulationSettings',
    'BurnRecord',
    'create_default_simulation_settings'
]

__version__ = '1.0.0'
__author__ = 'Arthur Allex Feliphe Barbosa Moreno'
__institution__ = 'IME - Instituto Militar de Engenharia'
