#!/usr/bin/env python3
"""
Core Physics for Cyclotron Simulator

Responsibilities
- Derive the classical reference readouts (frequency, orbit radius, speed, period) for a
  species, field strength and kinetic energy.
- Compute the relativistic quantities reported at every gap crossing.
- Provide small helpers for the idealized gap energy gain and slider bounds.

Units and conventions
- Masses are in kilograms [kg], charges in coulombs [C], flux density in tesla [T].
- Kinetic energies handed in by the UI are in kiloelectronvolts [keV].
- derive() rounds its outputs once for display; every other function returns unrounded SI values.

Numerical notes
- classical_speed() is the non-relativistic v = sqrt(2K/m). It is not clamped to c, so absurd
  energies on light species report speeds above 100 % of c. This is the classical
  approximation showing its limits, not something to correct here.
- lorentz_factor() refuses speeds at or above c instead of returning NaN or infinity.

Threading
- Every function here is pure and may be called from any thread.
"""

import math
from typing import Tuple

from .constants import (
    ELEMENTARY_CHARGE,
    HZ_PER_MHZ,
    KEV_TO_JOULES,
    MAX_FLUX_DENSITY,
    MAX_VOLTAGE,
    MIN_FLUX_DENSITY,
    MIN_VOLTAGE,
    MM_PER_M,
    NS_PER_S,
    SPEED_OF_LIGHT,
    TWO_PI,
)
from .data_models import DerivedParameters, ParticleSpecies
from .errors import InvalidParameterError, SuperluminalSpeedError
from .vector_utils import clamp


def _require_positive(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value <= 0.0:
        raise InvalidParameterError(f"{name} must be a positive finite number, got {value!r}")
    return value


def _mass_and_charge(species) -> Tuple[float, float]:
    species = ParticleSpecies.from_name(species)
    return (_require_positive("mass", species.mass), _require_positive("charge", species.charge))


def cyclotron_frequency(species, flux_density: float) -> float:
    """
    Classical cyclotron frequency f = qB / (2*pi*m) in Hz.

    Independent of the particle's energy.
    """
    mass, charge = _mass_and_charge(species)
    flux_density = _require_positive("magnetic flux density", flux_density)
    return charge * flux_density / (TWO_PI * mass)


def cyclotron_period(species, flux_density: float) -> float:
    """Cyclotron period T = 2*pi*m / (qB) in seconds."""
    mass, charge = _mass_and_charge(species)
    flux_density = _require_positive("magnetic flux density", flux_density)
    return TWO_PI * mass / (charge * flux_density)


def classical_speed(species, kinetic_energy_kev: float) -> float:
    """
    Non-relativistic speed v = sqrt(2K/m) in m/s for a kinetic energy in keV.

    Args:
        species: ParticleSpecies or its display name
        kinetic_energy_kev: Kinetic energy in keV (>= 0)

    Returns:
        Speed in m/s, not clamped to the speed of light
    """
    mass, _ = _mass_and_charge(species)
    kinetic_energy_kev = float(kinetic_energy_kev)
    if not math.isfinite(kinetic_energy_kev) or kinetic_energy_kev < 0.0:
        raise InvalidParameterError(
            f"kinetic energy must be a non-negative finite number, got {kinetic_energy_kev!r}")
    kinetic_energy_j = kinetic_energy_kev * KEV_TO_JOULES
    return math.sqrt(2.0 * kinetic_energy_j / mass)


def orbit_radius(species, flux_density: float, speed: float) -> float:
    """Orbit radius r = m*v / (qB) in meters."""
    mass, charge = _mass_and_charge(species)
    flux_density = _require_positive("magnetic flux density", flux_density)
    return mass * speed / (charge * flux_density)


def derive(species, flux_density: float, kinetic_energy_kev: float) -> DerivedParameters:
    """
    Compute the classical reference readouts shown next to the simulation.

    Outputs are rounded once here (3 decimals for MHz and mm, 2 for % and ns) and are not
    meant to be fed back into further computation.

    Args:
        species: ParticleSpecies or its display name
        flux_density: Magnetic flux density in tesla (> 0)
        kinetic_energy_kev: Kinetic energy in keV (>= 0)

    Returns:
        DerivedParameters with frequency [MHz], radius [mm], speed [% of c] and period [ns]

    Raises:
        InvalidParameterError: for non-positive field, mass or charge, or negative energy
    """
    speed = classical_speed(species, kinetic_energy_kev)
    frequency = cyclotron_frequency(species, flux_density)
    radius = orbit_radius(species, flux_density, speed)
    period = cyclotron_period(species, flux_density)
    return DerivedParameters(
        frequency_mhz=round(frequency / HZ_PER_MHZ, 3),
        radius_mm=round(radius * MM_PER_M, 3),
        speed_percent_c=round(speed / SPEED_OF_LIGHT * 100.0, 2),
        period_ns=round(period * NS_PER_S, 2),
    )


def gap_energy_gain_kev(species, voltage: float) -> float:
    """Idealized energy gained per gap crossing, dE = qV, in keV."""
    _, charge = _mass_and_charge(species)
    return charge * float(voltage) / ELEMENTARY_CHARGE / 1000.0


def lorentz_factor(speed: float) -> float:
    """
    Lorentz factor gamma = 1 / sqrt(1 - (v/c)^2).

    Raises:
        SuperluminalSpeedError: if speed is not finite or is >= c
    """
    c = SPEED_OF_LIGHT
    if not math.isfinite(speed) or abs(speed) >= c:
        raise SuperluminalSpeedError(speed, c)
    beta = speed / c
    return 1.0 / math.sqrt(1.0 - beta * beta)


def relativistic_quantities(species, flux_density: float,
                            speed: float) -> Tuple[float, float, float, float, float]:
    """
    Quantities recorded at a gap crossing.

    The period is derived from the field, not from the speed.

    Returns:
        (gamma, momentum [kg*m/s], kinetic energy [J], total energy [J], period [s])
    """
    mass, _ = _mass_and_charge(species)
    gamma = lorentz_factor(speed)
    c = SPEED_OF_LIGHT
    rest_energy = mass * c * c
    momentum = gamma * mass * speed
    total_energy = gamma * rest_energy
    kinetic_energy = (gamma - 1.0) * rest_energy
    period = cyclotron_period(species, flux_density)
    return gamma, momentum, kinetic_energy, total_energy, period


def rest_energy(species) -> float:
    """Rest energy m*c^2 in joules."""
    mass, _ = _mass_and_charge(species)
    return mass * SPEED_OF_LIGHT * SPEED_OF_LIGHT


def _require_finite(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise InvalidParameterError(f"{name} must be a finite number, got {value!r}")
    return value


def clamp_flux_density(value: float) -> float:
    """Clamp to the slider range; NaN and infinities are rejected, not clamped."""
    return clamp(_require_finite("magnetic flux density", value), MIN_FLUX_DENSITY, MAX_FLUX_DENSITY)


def clamp_voltage(value: float) -> float:
    return clamp(_require_finite("acceleration voltage", value), MIN_VOLTAGE, MAX_VOLTAGE)
