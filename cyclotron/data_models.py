#!/usr/bin/env python3
"""
Data models for Cyclotron Simulator.

This module defines the value objects shared between physics, the controller, rendering and UI.

Units and usage
- ParticleSpecies maps each species to one (mass [kg], charge [C]) pair through SPECIES_TABLE,
  the only species table in the codebase.
- SimulationParameters is immutable; edits build a new instance with with_changes().
- KinematicState is in normalized physics units and is owned by a CyclotronIntegrator.
- TurnEvent values are SI: seconds, kg*m/s and joules.
"""
from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple

from .constants import (
    DEFAULT_FLUX_DENSITY,
    DEFAULT_KINETIC_ENERGY,
    DEFAULT_MODE,
    DEFAULT_PARTICLE,
    DEFAULT_VOLTAGE,
    INJECTION_SPEED,
)
from .errors import InvalidParameterError


class ParticleSpecies(Enum):
    PROTON = "Proton"
    DEUTERON = "Deuteron"
    ALPHA = "Alpha"
    ELECTRON = "Electron"

    @classmethod
    def from_name(cls, name) -> "ParticleSpecies":
        """Look up a species by display name, case-insensitively."""
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        for species in cls:
            if species.value.lower() == key:
                return species
        raise InvalidParameterError(f"unknown particle type: {name!r}")

    @property
    def mass(self) -> float:
        return SPECIES_TABLE[self][0]

    @property
    def charge(self) -> float:
        return SPECIES_TABLE[self][1]


# (mass kg, charge magnitude C)
SPECIES_TABLE: Mapping[ParticleSpecies, Tuple[float, float]] = MappingProxyType({
    ParticleSpecies.PROTON: (1.6726e-27, 1.6022e-19),
    ParticleSpecies.DEUTERON: (3.3435e-27, 1.6022e-19),
    ParticleSpecies.ALPHA: (6.6447e-27, 3.2044e-19),
    ParticleSpecies.ELECTRON: (9.1094e-31, 1.6022e-19),
})


class SimulationMode(Enum):
    """Display mode. Turn events are always computed relativistically."""
    CLASSIC = "Classic"
    RELATIVISTIC = "Relativistic"

    @classmethod
    def from_name(cls, name) -> "SimulationMode":
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        for mode in cls:
            if mode.value.lower() == key:
                return mode
        raise InvalidParameterError(f"unknown mode: {name!r}")


class IntegratorStatus(Enum):
    IDLE = "Idle"
    RUNNING = "Running"
    PAUSED = "Paused"
    EXITED = "Exited"  # reached the device edge
    FAULTED = "Faulted"  # left the valid physical regime


@dataclass(frozen=True)
class DerivedParameters:
    """Classical reference readouts, rounded for display."""
    frequency_mhz: float
    radius_mm: float
    speed_percent_c: float
    period_ns: float


@dataclass(frozen=True)
class SimulationParameters:
    """
    User-facing inputs of one simulation.

    Fields:
    - mode: Classic or Relativistic (informational)
    - magnetic_flux_density: B in tesla
    - particle_type: ParticleSpecies
    - kinetic_energy: reference kinetic energy in keV
    - acceleration_voltage: gap voltage in volts
    """
    mode: SimulationMode = SimulationMode(DEFAULT_MODE)
    magnetic_flux_density: float = DEFAULT_FLUX_DENSITY
    particle_type: ParticleSpecies = ParticleSpecies(DEFAULT_PARTICLE)
    kinetic_energy: float = DEFAULT_KINETIC_ENERGY
    acceleration_voltage: float = DEFAULT_VOLTAGE

    def with_changes(self, **changes) -> "SimulationParameters":
        """Return a new parameter set with the given fields replaced."""
        if "mode" in changes:
            changes["mode"] = SimulationMode.from_name(changes["mode"])
        if "particle_type" in changes:
            changes["particle_type"] = ParticleSpecies.from_name(changes["particle_type"])
        for key in ("magnetic_flux_density", "kinetic_energy", "acceleration_voltage"):
            if key in changes:
                changes[key] = float(changes[key])
        return replace(self, **changes)

    @property
    def derived(self) -> DerivedParameters:
        from .physics import derive
        return derive(self.particle_type, self.magnetic_flux_density, self.kinetic_energy)


@dataclass
class KinematicState:
    """
    Live state of the particle in normalized physics units.

    last_angle holds atan2(y, x) from the previous tick; half_turns counts detected gap crossings.
    """
    x: float = 0.0
    y: float = 0.0
    vx: float = INJECTION_SPEED
    vy: float = 0.0
    t: float = 0.0
    last_angle: float = 0.0
    half_turns: int = 0

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @property
    def velocity(self) -> Tuple[float, float]:
        return (self.vx, self.vy)


@dataclass(frozen=True)
class TurnEvent:
    """
    Relativistic snapshot emitted at a gap crossing.

    Fields:
    - turn: 1-based crossing index
    - t: elapsed simulation time in seconds
    - gamma: Lorentz factor
    - momentum: relativistic momentum magnitude in kg*m/s
    - kinetic_energy: (gamma - 1) * m * c^2 in joules
    - total_energy: gamma * m * c^2 in joules
    - period: cyclotron period 2*pi*m/(q*B) in seconds
    """
    turn: int
    t: float
    gamma: float
    momentum: float
    kinetic_energy: float
    total_energy: float
    period: float
