#!/usr/bin/env python3
"""
Step integrator for the cyclotron particle.

The integrator owns one particle's KinematicState and advances it by a fixed step on every
tick(). The particle's velocity is rotated at an angular rate proportional to the cyclotron
frequency in MHz (omega = f_MHz * OMEGA_PER_MHZ) with an explicit Euler update. Euler does not
preserve the speed of a pure rotation, so every step grows it by sqrt(1 + (omega*dt)^2); that
growth is what spirals the particle outward to the device edge.

States
- IDLE: freshly reset, nothing moves.
- RUNNING: tick() advances the state.
- PAUSED: state frozen, start() resumes.
- EXITED: the particle reached EDGE_RADIUS. Terminal until reset().
- FAULTED: the particle left the valid physical regime (speed >= c or non-finite state).
  Terminal until reset().

Gap crossings
- A crossing is counted when atan2(y, x) moves from negative to non-negative between ticks.
  Each crossing emits an immutable TurnEvent with relativistic values computed from the
  instantaneous speed and the current field.

Threading
- Not thread-safe. One caller at a time; SimulationController guards access with its lock.
"""

import logging
import math
from dataclasses import replace
from typing import List, Optional, Tuple

from .constants import EDGE_RADIUS, HZ_PER_MHZ, INJECTION_SPEED, OMEGA_PER_MHZ, PHYSICS_DT
from .data_models import IntegratorStatus, KinematicState, SimulationParameters, TurnEvent
from .errors import NonFiniteStateError, PhysicalRegimeError
from .physics import cyclotron_frequency, relativistic_quantities
from .vector_utils import vec_is_finite, vec_len, vec_rotate90

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = (IntegratorStatus.EXITED, IntegratorStatus.FAULTED)


def angular_rate(params: SimulationParameters) -> float:
    """Angular rate used by the integrator: classical frequency in MHz times OMEGA_PER_MHZ."""
    frequency_mhz = cyclotron_frequency(params.particle_type, params.magnetic_flux_density) / HZ_PER_MHZ
    return frequency_mhz * OMEGA_PER_MHZ


class CyclotronIntegrator:
    """
    Fixed-step integrator for a single particle.

    The physics step is always PHYSICS_DT: the wall-clock delta passed to tick() is accepted
    for the driver's convenience but never enters the update, so the trajectory depends only
    on the number of ticks.
    """

    def __init__(self, params: Optional[SimulationParameters] = None, dt: float = PHYSICS_DT,
                 edge_radius: float = EDGE_RADIUS):
        """
        Initialize the integrator in the IDLE state.

        Args:
            params: Simulation parameters (defaults if None)
            dt: Fixed physics step in normalized time units
            edge_radius: Radius at which the particle is considered to have exited
        """
        self.dt = float(dt)
        self.edge_radius = float(edge_radius)
        self._params = params if params is not None else SimulationParameters()
        self._omega = angular_rate(self._params)
        self._state = KinematicState()
        self._status = IntegratorStatus.IDLE
        self._events: List[TurnEvent] = []
        self.last_error: Optional[PhysicalRegimeError] = None

    # -----------------------
    # Read accessors
    # -----------------------

    @property
    def params(self) -> SimulationParameters:
        return self._params

    @property
    def state(self) -> KinematicState:
        """A copy of the current kinematic state."""
        return replace(self._state)

    @property
    def status(self) -> IntegratorStatus:
        return self._status

    @property
    def events(self) -> Tuple[TurnEvent, ...]:
        return tuple(self._events)

    @property
    def turn_count(self) -> int:
        return self._state.half_turns

    @property
    def radius(self) -> float:
        return vec_len(self._state.position)

    @property
    def omega(self) -> float:
        return self._omega

    @property
    def is_running(self) -> bool:
        return self._status is IntegratorStatus.RUNNING

    @property
    def is_terminal(self) -> bool:
        return self._status in TERMINAL_STATUSES

    # -----------------------
    # Lifecycle
    # -----------------------

    def set_parameters(self, params: SimulationParameters) -> None:
        """Replace the parameters; the kinematic state is left untouched."""
        omega = angular_rate(params)
        self._params = params
        self._omega = omega

    def reset(self) -> None:
        """Reinitialize the particle at the origin with the injection velocity and go IDLE."""
        self._state = KinematicState(vx=INJECTION_SPEED)
        self._events.clear()
        self._status = IntegratorStatus.IDLE
        self.last_error = None
        logger.info("Integrator reset")

    def start(self) -> bool:
        """Enter RUNNING from IDLE or PAUSED. Returns False if the run has ended."""
        if self.is_terminal:
            logger.info("Start ignored: simulation is %s, reset first", self._status.value.lower())
            return False
        if self._status is not IntegratorStatus.RUNNING:
            self._status = IntegratorStatus.RUNNING
            logger.info("Integrator running")
        return True

    def pause(self) -> None:
        if self._status is IntegratorStatus.RUNNING:
            self._status = IntegratorStatus.PAUSED
            logger.info("Integrator paused at t=%.2f after %d crossings", self._state.t, self._state.half_turns)

    # -----------------------
    # Stepping
    # -----------------------

    def tick(self, real_dt: Optional[float] = None) -> Optional[TurnEvent]:
        """
        Advance the particle by one fixed step.

        Args:
            real_dt: Wall-clock seconds since the previous frame; ignored by the physics

        Returns:
            The TurnEvent emitted by this step, or None

        Raises:
            NonFiniteStateError: if the update produced NaN or infinity
            SuperluminalSpeedError: if a crossing happened at a speed >= c
        """
        if self._status is not IntegratorStatus.RUNNING:
            return None
        s = self._state
        if vec_len(s.position) >= self.edge_radius:
            self._status = IntegratorStatus.EXITED
            logger.info("Particle reached the edge after %d crossings (t=%.2f)", s.half_turns, s.t)
            return None

        dt = self.dt
        ax, ay = vec_rotate90(s.velocity, self._omega)
        s.vx += ax * dt
        s.vy += ay * dt
        s.x += s.vx * dt
        s.y += s.vy * dt
        s.t += dt

        if not (vec_is_finite(s.position) and vec_is_finite(s.velocity)):
            exc = NonFiniteStateError(f"non-finite state at t={s.t}: {s.position}, {s.velocity}")
            self._fault(exc)
            raise exc

        angle = math.atan2(s.y, s.x)
        crossed = s.last_angle < 0.0 <= angle
        s.last_angle = angle
        if not crossed:
            return None

        s.half_turns += 1
        speed = vec_len(s.velocity)
        try:
            gamma, momentum, kinetic, total, period = relativistic_quantities(
                self._params.particle_type, self._params.magnetic_flux_density, speed)
        except PhysicalRegimeError as exc:
            self._fault(exc)
            raise
        event = TurnEvent(
            turn=s.half_turns,
            t=s.t,
            gamma=gamma,
            momentum=momentum,
            kinetic_energy=kinetic,
            total_energy=total,
            period=period,
        )
        self._events.append(event)
        logger.debug("Crossing %d at t=%.2f, gamma=%.6f", event.turn, event.t, event.gamma)
        return event

    def run(self, ticks: int) -> List[TurnEvent]:
        """Call tick() up to `ticks` times, stopping early once the run is over."""
        emitted: List[TurnEvent] = []
        for _ in range(int(ticks)):
            if not self.is_running:
                break
            event = self.tick()
            if event is not None:
                emitted.append(event)
        return emitted

    def _fault(self, exc: PhysicalRegimeError) -> None:
        self._status = IntegratorStatus.FAULTED
        self.last_error = exc
        logger.warning("Particle left the valid regime: %s", exc)
