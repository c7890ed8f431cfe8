"""
Orbit Autopilot

Planar orbit propagation and autonomous station-keeping guidance: orbital
element derivation, perturbation models, a fuel-aware burn queue, a state
estimator for proactive corrections and a minimum-fuel transfer planner.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

__version__ = "1.0.0"
__author__ = "Arthur Allex Feliphe Barbosa Moreno"
__email__ = "arthur.moreno@ime.eb.br"

from .dynamics.orbital_elements import OrbitalElements, OrbitalState, compute_orbital_elements
from .control.guidance_laws import OrbitalAutopilot, GuidanceContext
from .utils.constants import *
