"""Dynamics module for planar orbital elements, perturbations and propagation."""

from .orbital_elements import *
from .perturbations import *
from .propagator import *

