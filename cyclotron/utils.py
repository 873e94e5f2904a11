#!/usr/bin/env python3
"""
General utilities for Cyclotron Simulator.
"""
import math
from typing import Optional


def parse_float(val) -> Optional[float]:
    """Parse a UI text field; None for empty, malformed or non-finite input."""
    try:
        result = float(str(val).strip())
    except ValueError:
        return None
    if not math.isfinite(result):
        return None
    return result
