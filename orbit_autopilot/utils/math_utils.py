"""
Mathematical Utilities for Planar Orbital Mechanics

This module provides angle wrapping and small vector helpers used by the
element calculator, the perturbation models and the guidance controller.

Author: Arthur Allex Feliphe Barbosa Moreno
Institution: IME - Instituto Militar de Engenharia - 2025
"""

import numpy as np
from .constants import PI, TWO_PI


def normalize_angle(angle: float, center: float = 0.0) -> float:
    """
    Normalize angle to be within [center-π, center+π].

    Args:
        angle: Angle to normalize [rad]
        center: Center of the normalized range [rad]

    Returns:
        Normalized angle [rad]
    """
    normalized = angle - center
    normalized = normalized - TWO_PI * np.floor((normalized + PI) / TWO_PI)
    return normalized + center


def wrap_to_2pi(angle: float) -> float:
    """
    Wrap angle to [0, 2π) range.

    Args:
        angle: Input angle [rad]

    Returns:
        Wrapped angle [rad]
    """
    wrapped = angle - TWO_PI * np.floor(angle / TWO_PI)
    # floor() can round a tiny negative input up to exactly 2π
    if wrapped >= TWO_PI:
        wrapped -= TWO_PI
    return float(wrapped)


def unit_vector(vector: np.ndarray) -> np.ndarray:
    """
    Return the unit vector along ``vector``.

    Raises:
        ValueError: If the vector has zero length
    """
    norm = np.linalg.norm(vector)
    if norm < 1e-12:
        raise ValueError("Cannot normalize a zero-length vector")
    return vector / norm


def cross_2d(a: np.ndarray, b: np.ndarray) -> float:
    """Z component of the cross product of two planar vectors."""
    return float(a[0] * b[1] - a[1] * b[0])


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine of the angle between two vectors (0 when either is zero)."""
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a < 1e-12 or norm_b < 1e-12:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))
