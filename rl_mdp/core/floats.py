"""Approximate floating point comparisons and shared tolerances."""

from __future__ import annotations

import math

import numpy as np

# Tolerance for probability mass checks.
ZERO_EPSILON = 1e-7

# Utilities are accumulated in single precision terms; stopping bounds and
# learning-rate cut-offs use its machine epsilon.
MACHINE_EPSILON = float(np.finfo(np.float32).eps)


def nearly_equal(a: float, b: float, abs_tol: float = ZERO_EPSILON, rel_tol: float = ZERO_EPSILON) -> bool:
    """Absolute test first, then relative to the larger magnitude."""
    if a == b:
        return True
    diff = a - b
    if math.fabs(diff) < abs_tol:
        return True
    scale = b if math.fabs(b) > math.fabs(a) else a
    return math.fabs(diff / scale) <= rel_tol


def equal_floats(a: float, b: float, abs_tol: float = ZERO_EPSILON) -> bool:
    return math.fabs(a - b) < abs_tol


def is_zero(value: float, abs_tol: float = ZERO_EPSILON) -> bool:
    return equal_floats(value, 0.0, abs_tol)
