#!/usr/bin/env python3
"""
Exception types for Cyclotron Simulator.

All errors are local to a single simulation run and recoverable by resetting it.
"""


class CyclotronError(Exception):
    """Base class for simulator errors."""


class InvalidParameterError(CyclotronError, ValueError):
    """A parameter would make the derivation formulas divide by zero or go non-finite."""


class PhysicalRegimeError(CyclotronError, ArithmeticError):
    """The particle left the regime the integrator can describe; terminal until reset."""


class SuperluminalSpeedError(PhysicalRegimeError):
    """Instantaneous speed reached or exceeded the speed of light."""

    def __init__(self, speed: float, limit: float):
        super().__init__(f"speed {speed:.6e} is not below the speed of light ({limit:.6e})")
        self.speed = speed
        self.limit = limit


class NonFiniteStateError(PhysicalRegimeError):
    """Position or velocity became NaN or infinite."""


class NoDataToExportError(CyclotronError):
    """The turn-event log is empty."""

    def __init__(self, message: str = "No data to export. Run the simulation first."):
        super().__init__(message)


class PresetError(CyclotronError):
    """A parameter preset file could not be read or parsed."""
