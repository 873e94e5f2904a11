"""
Tests for the classical reference readouts and relativistic helpers in cyclotron.physics.
"""

import math

import pytest

from cyclotron import physics
from cyclotron.constants import SPEED_OF_LIGHT
from cyclotron.data_models import ParticleSpecies, SimulationParameters
from cyclotron.errors import InvalidParameterError, SuperluminalSpeedError


ALL_SPECIES = list(ParticleSpecies)


def test_default_proton_readouts():
    d = physics.derive(ParticleSpecies.PROTON, 1.0, 0.5)
    assert d.frequency_mhz == pytest.approx(15.245, abs=2e-3)
    assert d.radius_mm == pytest.approx(3.231, abs=1e-3)
    assert d.speed_percent_c == pytest.approx(0.10, abs=1e-2)
    assert d.period_ns == pytest.approx(65.59, abs=1e-2)


def test_default_parameters_expose_derived_readouts():
    assert SimulationParameters().derived == physics.derive("Proton", 1.0, 0.5)


def test_rounding_precision():
    d = physics.derive(ParticleSpecies.DEUTERON, 1.37, 2.5)
    assert d.frequency_mhz == round(d.frequency_mhz, 3)
    assert d.radius_mm == round(d.radius_mm, 3)
    assert d.speed_percent_c == round(d.speed_percent_c, 2)
    assert d.period_ns == round(d.period_ns, 2)


@pytest.mark.parametrize("species", ALL_SPECIES)
def test_derive_is_deterministic(species):
    first = physics.derive(species, 0.73, 1.25)
    for _ in range(5):
        assert physics.derive(species, 0.73, 1.25) == first


@pytest.mark.parametrize("species", ALL_SPECIES)
def test_frequency_independent_of_energy(species):
    frequencies = {physics.derive(species, 1.2, k).frequency_mhz for k in (0.0, 0.5, 3.0, 40.0)}
    assert len(frequencies) == 1


@pytest.mark.parametrize("species", ALL_SPECIES)
def test_speed_and_radius_scale_with_sqrt_energy(species):
    v1 = physics.classical_speed(species, 1.0)
    v4 = physics.classical_speed(species, 4.0)
    assert v4 / v1 == pytest.approx(2.0, rel=1e-12)
    r1 = physics.orbit_radius(species, 0.5, v1)
    r4 = physics.orbit_radius(species, 0.5, v4)
    assert r4 / r1 == pytest.approx(2.0, rel=1e-12)


def test_period_is_inverse_frequency():
    f = physics.cyclotron_frequency(ParticleSpecies.ALPHA, 1.5)
    T = physics.cyclotron_period(ParticleSpecies.ALPHA, 1.5)
    assert f * T == pytest.approx(1.0, rel=1e-12)


def test_species_accepted_by_name():
    assert physics.derive("alpha", 2.0, 1.0) == physics.derive(ParticleSpecies.ALPHA, 2.0, 1.0)


def test_classical_speed_is_not_clamped_to_light_speed():
    d = physics.derive(ParticleSpecies.ELECTRON, 1.0, 1e6)
    assert d.speed_percent_c > 100.0


def test_zero_energy_gives_zero_speed_and_radius():
    d = physics.derive(ParticleSpecies.PROTON, 1.0, 0.0)
    assert d.speed_percent_c == 0.0
    assert d.radius_mm == 0.0


@pytest.mark.parametrize("flux", [0.0, -1.0, float("nan"), float("inf")])
def test_invalid_flux_density(flux):
    with pytest.raises(InvalidParameterError):
        physics.derive(ParticleSpecies.PROTON, flux, 0.5)


@pytest.mark.parametrize("energy", [-0.1, float("nan")])
def test_invalid_kinetic_energy(energy):
    with pytest.raises(InvalidParameterError):
        physics.derive(ParticleSpecies.PROTON, 1.0, energy)


def test_unknown_species():
    with pytest.raises(InvalidParameterError):
        physics.derive("Muon", 1.0, 0.5)


def test_invalid_parameter_is_a_value_error():
    with pytest.raises(ValueError):
        physics.cyclotron_period(ParticleSpecies.PROTON, 0.0)


def test_gap_energy_gain():
    assert physics.gap_energy_gain_kev(ParticleSpecies.PROTON, 5000) == pytest.approx(5.0)
    assert physics.gap_energy_gain_kev(ParticleSpecies.ALPHA, 5000) == pytest.approx(10.0)


def test_lorentz_factor():
    assert physics.lorentz_factor(0.0) == 1.0
    assert physics.lorentz_factor(0.6 * SPEED_OF_LIGHT) == pytest.approx(1.25)


@pytest.mark.parametrize("speed", [SPEED_OF_LIGHT, 2 * SPEED_OF_LIGHT, float("inf"), float("nan")])
def test_lorentz_factor_refuses_superluminal(speed):
    with pytest.raises(SuperluminalSpeedError):
        physics.lorentz_factor(speed)


def test_relativistic_quantities_energy_balance():
    speed = 0.8 * SPEED_OF_LIGHT
    gamma, p, K, E, T = physics.relativistic_quantities(ParticleSpecies.PROTON, 1.0, speed)
    E0 = physics.rest_energy(ParticleSpecies.PROTON)
    assert gamma == pytest.approx(1.0 / 0.6)
    assert E == pytest.approx(K + E0, rel=1e-12)
    assert p == pytest.approx(gamma * ParticleSpecies.PROTON.mass * speed)
    assert T == physics.cyclotron_period(ParticleSpecies.PROTON, 1.0)


def test_clamps():
    assert physics.clamp_flux_density(5.0) == 2.0
    assert physics.clamp_flux_density(0.0) == 0.05
    assert physics.clamp_voltage(100) == 500.0
    assert physics.clamp_voltage(20000) == 10000.0
    assert physics.clamp_voltage(5000) == 5000.0


def test_species_table_is_read_only():
    from cyclotron.data_models import SPECIES_TABLE
    with pytest.raises(TypeError):
        SPECIES_TABLE[ParticleSpecies.PROTON] = (1.0, 1.0)
    assert math.isclose(ParticleSpecies.ALPHA.charge, 2 * ParticleSpecies.PROTON.charge)


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_clamps_reject_non_finite(value):
    with pytest.raises(InvalidParameterError):
        physics.clamp_flux_density(value)
    with pytest.raises(InvalidParameterError):
        physics.clamp_voltage(value)
