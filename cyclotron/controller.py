#!/usr/bin/env python3
"""
Simulation controller: the shared state between the renderer thread and the UI thread.

The controller owns one CyclotronIntegrator together with everything the presentation layer
accumulates around it: the current parameters and their derived readouts, the append-only
turn-event log, the particle trail and the auto-export setting. All access goes through
methods that hold a re-entrant lock, so the renderer can drive ticks while the UI edits
parameters and reads snapshots.
"""
import logging
import os
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Tuple

from .constants import (
    MAX_TICKS_PER_FRAME,
    MIN_TICKS_PER_FRAME,
    TRAIL_MAX_POINTS,
    TRAIL_MIN_SPACING,
)
from .data_models import (
    DerivedParameters,
    IntegratorStatus,
    KinematicState,
    SimulationParameters,
    TurnEvent,
)
from .errors import CyclotronError, PhysicalRegimeError, SuperluminalSpeedError
from .export import default_export_name, write_csv
from .integrator import CyclotronIntegrator
from .physics import clamp_flux_density, clamp_voltage, gap_energy_gain_kev
from .vector_utils import clamp, vec_len, vec_sub

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationSnapshot:
    """Consistent copy of everything the renderer and the readouts need for one frame."""
    state: KinematicState
    status: IntegratorStatus
    params: SimulationParameters
    derived: DerivedParameters
    turn_count: int
    turn_log_size: int
    params_revision: int
    lorentz_factor: float
    gap_energy_gain_kev: float
    radius: float
    trail: Tuple[Tuple[float, float], ...]
    latest_event: Optional[TurnEvent]
    message: Optional[str]


class SimulationController:
    """
    Shared state between UI thread (Dear PyGui) and rendering thread (pygame).
    Includes thread-safe operations guarded by a lock.
    """

    def __init__(self, params: Optional[SimulationParameters] = None, export_dir: str = "."):
        self.lock = threading.RLock()
        self.app_running = True
        self.export_dir = export_dir
        self.auto_export = False
        self.ticks_per_frame = MIN_TICKS_PER_FRAME
        self.last_message: Optional[str] = None
        self.last_export_path: Optional[str] = None

        self._params = params if params is not None else SimulationParameters()
        self._derived = self._params.derived
        self.params_revision = 0
        self.integrator = CyclotronIntegrator(self._params)
        self._turn_log: List[TurnEvent] = []
        self._trail: Deque[Tuple[float, float]] = deque(maxlen=TRAIL_MAX_POINTS)

    # -----------------------
    # Parameters
    # -----------------------

    @property
    def params(self) -> SimulationParameters:
        with self.lock:
            return self._params

    @property
    def derived(self) -> DerivedParameters:
        with self.lock:
            return self._derived

    def set_parameters(self, **changes) -> SimulationParameters:
        """
        Replace the parameters with the given fields changed.

        Flux density and voltage are clamped to the slider ranges; the kinematic state and the
        turn log are kept.

        Raises:
            InvalidParameterError: for unknown species/mode names or a negative kinetic energy
        """
        if "magnetic_flux_density" in changes:
            changes["magnetic_flux_density"] = clamp_flux_density(changes["magnetic_flux_density"])
        if "acceleration_voltage" in changes:
            changes["acceleration_voltage"] = clamp_voltage(changes["acceleration_voltage"])
        with self.lock:
            params = self._params.with_changes(**changes)
            derived = params.derived
            self.integrator.set_parameters(params)
            self._params = params
            self._derived = derived
            self.params_revision += 1
            return params

    def replace_parameters(self, params: SimulationParameters) -> None:
        """Install a complete parameter set, e.g. from a preset."""
        self.set_parameters(
            mode=params.mode,
            magnetic_flux_density=params.magnetic_flux_density,
            particle_type=params.particle_type,
            kinetic_energy=params.kinetic_energy,
            acceleration_voltage=params.acceleration_voltage,
        )

    def set_ticks_per_frame(self, n: int) -> None:
        with self.lock:
            self.ticks_per_frame = int(clamp(int(n), MIN_TICKS_PER_FRAME, MAX_TICKS_PER_FRAME))

    def set_auto_export(self, enabled: bool) -> None:
        with self.lock:
            self.auto_export = bool(enabled)

    # -----------------------
    # Run control
    # -----------------------

    @property
    def running(self) -> bool:
        with self.lock:
            return self.integrator.is_running

    def start(self) -> bool:
        with self.lock:
            started = self.integrator.start()
            if not started:
                self.last_message = "Particle has left the cyclotron. Press Reset to run again."
            return started

    def stop(self) -> None:
        with self.lock:
            was_running = self.integrator.is_running
            self.integrator.pause()
            if was_running:
                self._on_stopped()

    def toggle_running(self) -> bool:
        """Start if stopped, stop if running. Returns the new running state."""
        with self.lock:
            if self.integrator.is_running:
                self.stop()
            else:
                self.start()
            return self.integrator.is_running

    def reset(self) -> None:
        """Stop, restore default parameters, and clear the particle, trail and turn log."""
        with self.lock:
            self.integrator.reset()
            self._turn_log.clear()
            self._trail.clear()
            self.replace_parameters(SimulationParameters())
            self.last_message = None

    # -----------------------
    # Frame driver
    # -----------------------

    def step_physics(self, dt_real_seconds: float, ticks: Optional[int] = None) -> List[TurnEvent]:
        """
        Advance the simulation for one rendered frame.

        Performs ticks_per_frame integrator ticks (or `ticks` if given). A regime fault or the
        particle reaching the edge ends the run; the fault is reported through last_message
        rather than raised into the frame loop.

        Returns:
            Turn events emitted during this frame
        """
        emitted: List[TurnEvent] = []
        with self.lock:
            if not self.integrator.is_running:
                return emitted
            n = self.ticks_per_frame if ticks is None else int(ticks)
            for _ in range(n):
                try:
                    event = self.integrator.tick(dt_real_seconds)
                except PhysicalRegimeError as exc:
                    self.last_message = self._describe_fault(exc)
                    break
                if event is not None:
                    self._turn_log.append(event)
                    emitted.append(event)
                self._sample_trail()
                if not self.integrator.is_running:
                    break
            if self.integrator.status is IntegratorStatus.EXITED:
                self.last_message = (
                    f"Particle reached the edge after {self.integrator.turn_count} crossings.")
            if not self.integrator.is_running:
                self._on_stopped()
        return emitted

    def _sample_trail(self) -> None:
        pos = self.integrator.state.position
        if not self._trail or vec_len(vec_sub(pos, self._trail[-1])) > TRAIL_MIN_SPACING:
            self._trail.append(pos)

    @staticmethod
    def _describe_fault(exc: PhysicalRegimeError) -> str:
        if isinstance(exc, SuperluminalSpeedError):
            return "Particle reached the speed of light; simulation stopped. Press Reset."
        return "Numerical state became invalid; simulation stopped. Press Reset."

    # -----------------------
    # Turn log and export
    # -----------------------

    @property
    def turn_log(self) -> Tuple[TurnEvent, ...]:
        with self.lock:
            return tuple(self._turn_log)

    def export_csv(self, path: Optional[str] = None) -> str:
        """
        Write the turn log to CSV.

        Raises:
            NoDataToExportError: if no turns have been recorded
        """
        with self.lock:
            events = list(self._turn_log)
        if path is None:
            path = os.path.join(self.export_dir, default_export_name(time.time() * 1000))
        written = write_csv(events, path)
        with self.lock:
            self.last_export_path = written
            self.last_message = f"Exported {len(events)} turns to {written}"
        return written

    def _on_stopped(self) -> None:
        if not (self.auto_export and self._turn_log):
            return
        try:
            self.export_csv()
        except (CyclotronError, OSError) as exc:
            logger.error("Auto-export failed: %s", exc)
            self.last_message = f"Auto-export failed: {exc}"

    # -----------------------
    # Snapshot
    # -----------------------

    def snapshot(self) -> SimulationSnapshot:
        with self.lock:
            latest = self._turn_log[-1] if self._turn_log else None
            return SimulationSnapshot(
                state=self.integrator.state,
                status=self.integrator.status,
                params=self._params,
                derived=self._derived,
                turn_count=self.integrator.turn_count,
                turn_log_size=len(self._turn_log),
                params_revision=self.params_revision,
                lorentz_factor=latest.gamma if latest else 1.0,
                gap_energy_gain_kev=gap_energy_gain_kev(
                    self._params.particle_type, self._params.acceleration_voltage),
                radius=self.integrator.radius,
                trail=tuple(self._trail),
                latest_event=latest,
                message=self.last_message,
            )
