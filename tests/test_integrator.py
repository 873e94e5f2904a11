"""
Tests for the fixed-step cyclotron integrator: state machine, Euler update, gap-crossing
detection and the terminal conditions.
"""

import math

import pytest

from cyclotron import physics
from cyclotron.constants import EDGE_RADIUS, INJECTION_SPEED, PHYSICS_DT
from cyclotron.data_models import IntegratorStatus, KinematicState, ParticleSpecies, SimulationParameters
from cyclotron.errors import NonFiniteStateError, SuperluminalSpeedError
from cyclotron.integrator import CyclotronIntegrator, angular_rate


MAX_TICKS = 100000


def run_to_exit(integ):
    events = []
    for _ in range(MAX_TICKS):
        if not integ.is_running:
            break
        event = integ.tick(1 / 60.0)
        if event is not None:
            events.append(event)
    return events


@pytest.fixture
def integ():
    i = CyclotronIntegrator()
    i.reset()
    return i


def test_reset_state(integ):
    assert integ.status is IntegratorStatus.IDLE
    assert integ.state == KinematicState(x=0.0, y=0.0, vx=INJECTION_SPEED, vy=0.0, t=0.0,
                                         last_angle=0.0, half_turns=0)
    assert integ.turn_count == 0
    assert integ.events == ()


def test_tick_does_nothing_unless_running(integ):
    before = integ.state
    assert integ.tick(0.016) is None
    assert integ.state == before
    integ.start()
    integ.tick(0.016)
    integ.pause()
    assert integ.status is IntegratorStatus.PAUSED
    paused = integ.state
    for _ in range(10):
        integ.tick(0.016)
    assert integ.state == paused


def test_first_step_matches_euler_update(integ):
    omega = physics.cyclotron_frequency(ParticleSpecies.PROTON, 1.0) / 1e6 * 0.1
    assert integ.omega == pytest.approx(omega)
    dt = PHYSICS_DT

    integ.start()
    assert integ.tick(0.016) is None

    vx = INJECTION_SPEED + (-omega * 0.0) * dt
    vy = 0.0 + (omega * INJECTION_SPEED) * dt
    s = integ.state
    assert s.vx == pytest.approx(vx, rel=1e-15)
    assert s.vy == pytest.approx(vy, rel=1e-15)
    assert s.x == pytest.approx(vx * dt, rel=1e-15)
    assert s.y == pytest.approx(vy * dt, rel=1e-15)
    assert s.t == pytest.approx(dt)
    assert s.last_angle == pytest.approx(math.atan2(s.y, s.x))
    assert s.half_turns == 0


def test_physics_ignores_wall_clock_delta():
    a = CyclotronIntegrator()
    b = CyclotronIntegrator()
    a.start()
    b.start()
    for _ in range(300):
        a.tick(0.001)
        b.tick(5.0)
    assert a.state == b.state
    assert a.events == b.events


def test_state_accessor_returns_copy(integ):
    s = integ.state
    s.x = 100.0
    assert integ.state.x == 0.0


def test_spirals_out_and_freezes_at_edge(integ):
    integ.start()
    events = run_to_exit(integ)
    assert integ.status is IntegratorStatus.EXITED
    assert integ.radius >= EDGE_RADIUS
    assert len(events) > 0
    assert integ.events == tuple(events)

    frozen = integ.state
    assert integ.start() is False
    for _ in range(10):
        assert integ.tick(0.016) is None
    assert integ.state == frozen


def test_turn_events_are_ordered(integ):
    integ.start()
    events = run_to_exit(integ)
    for i, event in enumerate(events, start=1):
        assert event.turn == i
    times = [e.t for e in events]
    assert all(t2 > t1 for t1, t2 in zip(times, times[1:]))
    assert integ.turn_count == len(events)


def test_turn_count_monotonic(integ):
    integ.start()
    last = integ.turn_count
    for _ in range(2000):
        integ.tick()
        assert integ.turn_count >= last
        last = integ.turn_count


def test_turn_event_energy_balance(integ):
    integ.start()
    events = run_to_exit(integ)
    E0 = physics.rest_energy(ParticleSpecies.PROTON)
    period = physics.cyclotron_period(ParticleSpecies.PROTON, 1.0)
    for e in events:
        assert e.total_energy == pytest.approx(e.kinetic_energy + E0, rel=1e-12)
        assert e.gamma >= 1.0
        assert e.period == period


def test_crossing_requires_negative_previous_angle():
    integ = CyclotronIntegrator()
    integ.start()
    # The first step starts from last_angle == 0 and moves to a small positive angle.
    assert integ.tick() is None
    assert integ.turn_count == 0


def test_reset_clears_run(integ):
    integ.start()
    run_to_exit(integ)
    integ.reset()
    assert integ.status is IntegratorStatus.IDLE
    assert integ.turn_count == 0
    assert integ.events == ()
    assert integ.state == KinematicState()
    assert integ.start() is True


def test_parameter_change_updates_angular_rate(integ):
    params = SimulationParameters().with_changes(magnetic_flux_density=2.0)
    integ.set_parameters(params)
    assert integ.omega == pytest.approx(angular_rate(params))
    assert integ.omega == pytest.approx(2 * angular_rate(SimulationParameters()))
    assert integ.state == KinematicState()


def test_stronger_field_reaches_edge_sooner():
    slow = CyclotronIntegrator(SimulationParameters().with_changes(magnetic_flux_density=0.5))
    fast = CyclotronIntegrator(SimulationParameters().with_changes(magnetic_flux_density=2.0))
    for integ in (slow, fast):
        integ.start()
        run_to_exit(integ)
    assert fast.state.t < slow.state.t


def test_mode_does_not_change_turn_events():
    classic = CyclotronIntegrator(SimulationParameters().with_changes(mode="Classic"))
    relativistic = CyclotronIntegrator(SimulationParameters().with_changes(mode="Relativistic"))
    for integ in (classic, relativistic):
        integ.start()
        run_to_exit(integ)
    assert classic.events == relativistic.events


def test_superluminal_crossing_faults(monkeypatch, integ):
    # Lower c below the injection speed so the first crossing is superluminal.
    monkeypatch.setattr(physics, "SPEED_OF_LIGHT", 0.05)
    integ.start()
    with pytest.raises(SuperluminalSpeedError):
        integ.run(MAX_TICKS)
    assert integ.status is IntegratorStatus.FAULTED
    assert integ.is_terminal
    assert isinstance(integ.last_error, SuperluminalSpeedError)
    assert integ.events == ()

    frozen = integ.state
    assert integ.tick() is None
    assert integ.state == frozen
    assert integ.start() is False

    integ.reset()
    assert integ.status is IntegratorStatus.IDLE
    assert integ.last_error is None


def test_non_finite_state_faults():
    integ = CyclotronIntegrator(dt=float("inf"))
    integ.start()
    with pytest.raises(NonFiniteStateError):
        integ.tick()
    assert integ.status is IntegratorStatus.FAULTED


def test_run_stops_at_edge():
    integ = CyclotronIntegrator()
    integ.start()
    events = integ.run(MAX_TICKS)
    assert integ.status is IntegratorStatus.EXITED
    assert tuple(events) == integ.events
