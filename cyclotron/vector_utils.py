#!/usr/bin/env python3
"""
Vector helper functions for 2D operations.

These are small, fast functions for vector math used throughout the app.
"""
import math
from typing import Tuple


def clamp(x: float, a: float, b: float) -> float:
    """Clamp x to the inclusive range [a, b]."""
    return max(a, min(b, x))


def vec_sub(a: Tuple[float, float], b: Tuple[float, float]) -> Tuple[float, float]:
    return (a[0] - b[0], a[1] - b[1])


def vec_len(a: Tuple[float, float]) -> float:
    return math.hypot(a[0], a[1])


def vec_rotate90(a: Tuple[float, float], s: float) -> Tuple[float, float]:
    """Return a rotated by +90 degrees and scaled by s: (-s*ay, s*ax)."""
    return (-s * a[1], s * a[0])


def vec_is_finite(a: Tuple[float, float]) -> bool:
    return math.isfinite(a[0]) and math.isfinite(a[1])
