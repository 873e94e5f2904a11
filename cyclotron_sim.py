#!/usr/bin/env python3
"""
Cyclotron Simulator application entry point and UI/renderer coordination.

What this module does
- Starts two event loops: a Pygame rendering thread (viewport) and the Dear PyGui UI
  (running on the main thread).
- Shares one SimulationController between them; the controller owns the integrator, the
  parameters, the turn log and the trail, and guards them with a re-entrant lock.
- Provides a Dear PyGui control window: parameters, Start/Stop and Reset, live readouts and
  the CSV data export panel.

Threading model
- PygameRenderer runs in a background thread. Each frame it handles viewport input, asks the
  controller to advance the physics (one fixed integrator step per frame by default) and draws.
- The UI class runs in the main thread via Dear PyGui. It refreshes readouts on a periodic
  frame callback and invokes SimulationController methods, which are lock-protected.

Units and conventions
- The particle lives in normalized physics units; the device edge is at radius 2.0.
- Readouts are SI-derived display units: MHz, mm, keV, % of c, ns.

Running
1) Install dependencies: `pip install -e .`
2) Run this module: `python cyclotron_sim.py [--preset default.json] [--export-dir out]`

Windows/OS notes
- Two windows will open: the viewport (Pygame) and the controls (Dear PyGui). Closing either
  will shut down the application cleanly.
"""

import argparse
import logging
import math
import threading
import time
from typing import Optional

# GUI and Rendering libs
import pygame
from pygame import gfxdraw
import dearpygui.dearpygui as dpg

from cyclotron.camera import Camera2D
from cyclotron.constants import (
    BACKGROUND_COLOR,
    DEVICE_OUTLINE_COLOR,
    GAP_LINE_COLOR,
    GRID_DOT_COLOR,
    GRID_SPACING_PX,
    HUD_COLOR,
    MAX_FLUX_DENSITY,
    MAX_TICKS_PER_FRAME,
    MAX_VOLTAGE,
    MIN_FLUX_DENSITY,
    MIN_TICKS_PER_FRAME,
    MIN_VOLTAGE,
    PARTICLE_COLOR,
    PARTICLE_HALO_COLOR,
    TRAIL_COLOR,
    TRAIL_GLOW_COLOR,
    VIEW_HEIGHT,
    VIEW_WIDTH,
    VOLTAGE_STEP,
)
from cyclotron.controller import SimulationController
from cyclotron.data_models import IntegratorStatus, ParticleSpecies, SimulationMode
from cyclotron.errors import CyclotronError, NoDataToExportError
from cyclotron.presets_loader import list_presets, load_preset
from cyclotron.utils import parse_float

logger = logging.getLogger(__name__)

SAFE_COORD_LIMIT = 30000

# ============================================================
# Pygame Renderer Thread
# ============================================================


class PygameRenderer(threading.Thread):
    """
    Pygame loop: drives the physics once per frame and draws the device, trail and particle.
    Mouse wheel zooms; Space toggles Start/Stop; R resets.
    """
    def __init__(self, sim: SimulationController):
        super().__init__(daemon=True)
        self.sim = sim
        self.camera = Camera2D()
        self.surface = None
        self.clock = None
        self.running = True
        self._font = None

    def run(self):
        pygame.init()
        pygame.display.set_caption("Cyclotron Simulator - Viewport")
        self.surface = pygame.display.set_mode((VIEW_WIDTH, VIEW_HEIGHT), pygame.RESIZABLE)
        self.camera.set_viewport_size(VIEW_WIDTH, VIEW_HEIGHT)
        self.clock = pygame.time.Clock()
        logger.info("Viewport started")

        last_time = time.perf_counter()
        while self.running and self.sim.app_running:
            now = time.perf_counter()
            real_dt = now - last_time
            last_time = now

            self.handle_events()

            # Physics step: the controller ignores real_dt for the physics itself
            self.sim.step_physics(real_dt)

            self.draw()

            # Limit FPS
            self.clock.tick(60)

        pygame.quit()
        logger.info("Viewport closed")

    def handle_events(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.sim.app_running = False
                self.running = False

            elif event.type == pygame.VIDEORESIZE:
                self.surface = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
                self.camera.set_viewport_size(event.w, event.h)

            elif event.type == pygame.MOUSEWHEEL:
                self.camera.zoom(1.1 if event.y > 0 else 1.0 / 1.1)

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_SPACE:
                    self.sim.toggle_running()
                elif event.key == pygame.K_r:
                    self.sim.reset()
                elif event.key == pygame.K_0:
                    self.camera.reset_zoom()

    def draw_device(self, surf):
        cx, cy = (int(c) for c in self.camera.center)
        r = int(self.camera.device_radius_px)

        # Grid dots inside the device
        for x in range(cx - r, cx + r + 1, GRID_SPACING_PX):
            for y in range(cy - r, cy + r + 1, GRID_SPACING_PX):
                if math.hypot(x - cx, y - cy) <= r:
                    pt = _safe_point((x, y))
                    if pt:
                        gfxdraw.filled_circle(surf, pt[0], pt[1], 1, GRID_DOT_COLOR)

        # Device outline and the gap between the dees
        if _safe_point((cx + r, cy + r)):
            pygame.draw.circle(surf, DEVICE_OUTLINE_COLOR, (cx, cy), r, 2)
            pygame.draw.line(surf, GAP_LINE_COLOR, (cx, cy - r), (cx, cy + r), 2)

    def draw(self):
        surf = self.surface
        surf.fill(BACKGROUND_COLOR)

        self.draw_device(surf)

        snap = self.sim.snapshot()

        # Trail: wide dim glow under a thin bright line
        pts = []
        for p in snap.trail:
            sp = _safe_point(self.camera.world_to_screen(p))
            if sp:
                pts.append(sp)
        if len(pts) > 1:
            pygame.draw.lines(surf, TRAIL_GLOW_COLOR, False, pts, 6)
            pygame.draw.aalines(surf, TRAIL_COLOR, False, pts)

        # Particle
        pos = _safe_point(self.camera.world_to_screen(snap.state.position))
        if pos:
            gfxdraw.filled_circle(surf, pos[0], pos[1], 9, PARTICLE_HALO_COLOR)
            gfxdraw.filled_circle(surf, pos[0], pos[1], 4, PARTICLE_COLOR)
            gfxdraw.aacircle(surf, pos[0], pos[1], 4, PARTICLE_COLOR)

        # HUD text
        self.draw_text(surf, "Space: Start/Stop | R: Reset | Wheel: zoom | 0: reset zoom", 10, 10)
        self.draw_text(
            surf,
            f"[{snap.status.value}]  crossings: {snap.turn_count}  r = {snap.radius:.3f}  t = {snap.state.t:.2f}",
            10, 30)

        pygame.display.flip()

    def draw_text(self, surface, text, x, y, color=HUD_COLOR):
        if self._font is None:
            if not pygame.font.get_init():
                pygame.font.init()
            try:
                self._font = pygame.font.SysFont("consolas", 16)
            except (OSError, pygame.error):
                self._font = pygame.font.Font(None, 16)
        img = self._font.render(text, True, color)
        surface.blit(img, (x, y))


def _safe_point(pt):
    try:
        x, y = int(pt[0]), int(pt[1])
    except (TypeError, ValueError, OverflowError):
        return None
    if -SAFE_COORD_LIMIT <= x <= SAFE_COORD_LIMIT and -SAFE_COORD_LIMIT <= y <= SAFE_COORD_LIMIT:
        return (x, y)
    return None

# ============================================================
# Dear PyGui UI
# ============================================================


READOUTS = (
    ("radius", "Orbital radius"),
    ("frequency", "Frequency"),
    ("energy", "Kinetic energy"),
    ("speed", "Speed (v/c)"),
    ("period", "Period"),
    ("turns", "Half-turns"),
    ("gamma", "Lorentz gamma"),
    ("gain", "Gain per gap"),
)


class UI:
    """
    Dear PyGui interface: parameter controls, run controls, live readouts, data export.
    """
    def __init__(self, sim: SimulationController):
        self.sim = sim
        self.status_msg_id = None
        self.readout_ids = {}
        self.turns_recorded_id = None
        self.latest_id = None
        self._preset_map = {}
        self._last_message = None
        self._params_revision = None

        self._build_ui()

        dpg.set_frame_callback(1, self._sync_ui_with_sim)

    def _schedule_sync(self):
        """Reschedule the periodic sync callback (~10Hz at 60 FPS)."""
        dpg.set_frame_callback(dpg.get_frame_count() + 6, self._sync_ui_with_sim)

    # -----------------------
    # UI Construction
    # -----------------------

    def _build_ui(self):
        dpg.create_context()
        dpg.create_viewport(title='Cyclotron Simulator - Controls', width=460, height=780)

        params = self.sim.params
        with dpg.window(label="Controls", width=440, height=760, pos=(10, 10), tag="main_window"):
            with dpg.group(horizontal=True):
                dpg.add_text("Preset:")
                for fn, display in list_presets():
                    self._preset_map[display] = fn
                dpg.add_combo(list(self._preset_map.keys()), width=220, tag="preset_combo")
                dpg.add_button(label="Load", callback=lambda: self.load_preset(dpg.get_value("preset_combo")))

            dpg.add_separator()
            dpg.add_text("Parameters")
            dpg.add_combo([m.value for m in SimulationMode], label="Mode", default_value=params.mode.value,
                          tag="mode_combo", callback=lambda s, a, u: self._apply(mode=a))
            dpg.add_slider_float(label="Acceleration voltage (V)", min_value=MIN_VOLTAGE, max_value=MAX_VOLTAGE,
                                 default_value=params.acceleration_voltage, format="%.0f", tag="voltage_slider",
                                 callback=lambda s, a, u: self._apply(
                                     acceleration_voltage=round(a / VOLTAGE_STEP) * VOLTAGE_STEP))
            dpg.add_slider_float(label="Magnetic flux density (T)", min_value=MIN_FLUX_DENSITY,
                                 max_value=MAX_FLUX_DENSITY, default_value=params.magnetic_flux_density,
                                 format="%.3f", tag="field_slider",
                                 callback=lambda s, a, u: self._apply(magnetic_flux_density=a))
            dpg.add_combo([p.value for p in ParticleSpecies], label="Particle type",
                          default_value=params.particle_type.value, tag="particle_combo",
                          callback=lambda s, a, u: self._apply(particle_type=a))
            dpg.add_input_text(label="Kinetic energy (keV)", default_value=f"{params.kinetic_energy:.3f}",
                               tag="energy_input", on_enter=True, callback=self._on_energy_entered)
            dpg.add_slider_int(label="Simulation speed (steps/frame)", min_value=MIN_TICKS_PER_FRAME,
                               max_value=MAX_TICKS_PER_FRAME, default_value=self.sim.ticks_per_frame,
                               callback=lambda s, a, u: self.sim.set_ticks_per_frame(a))

            with dpg.group(horizontal=True):
                dpg.add_button(label="Start", tag="start_button", width=100, callback=self._toggle_play)
                dpg.add_button(label="Reset", width=100, callback=self._reset)

            dpg.add_separator()
            dpg.add_text("Live Readouts")
            with dpg.table(header_row=False):
                dpg.add_table_column()
                dpg.add_table_column()
                for key, label in READOUTS:
                    with dpg.table_row():
                        dpg.add_text(label)
                        self.readout_ids[key] = dpg.add_text("-")

            dpg.add_separator()
            dpg.add_text("Data Export")
            self.turns_recorded_id = dpg.add_text("Turns recorded: 0")
            dpg.add_checkbox(label="Auto-export when complete", default_value=self.sim.auto_export,
                             callback=lambda s, a, u: self.sim.set_auto_export(a))
            dpg.add_button(label="Export CSV", callback=self._export)
            self.latest_id = dpg.add_text("")

            dpg.add_separator()
            self.status_msg_id = dpg.add_text("Ready.", wrap=420)

        dpg.setup_dearpygui()
        dpg.show_viewport()
        dpg.set_primary_window("main_window", True)

    # -----------------------
    # UI Callbacks
    # -----------------------

    def _set_status(self, msg: str, color=(180, 220, 180)):
        dpg.set_value(self.status_msg_id, msg)
        dpg.configure_item(self.status_msg_id, color=color)

    def _set_error(self, msg: str):
        self._set_status(msg, color=(255, 120, 120))

    def _apply(self, **changes):
        try:
            self.sim.set_parameters(**changes)
        except CyclotronError as exc:
            self._set_error(str(exc))

    def _on_energy_entered(self, sender, app_data, user_data=None):
        val = parse_float(app_data)
        if val is None or val < 0:
            self._set_error("Kinetic energy must be a non-negative number (keV).")
            return
        self._apply(kinetic_energy=val)

    def _toggle_play(self):
        running = self.sim.toggle_running()
        self._set_status("Simulation running." if running else "Simulation stopped.")

    def _reset(self):
        self.sim.reset()
        self._sync_widgets_with_params()
        self._set_status("Simulation reset.")

    def _export(self):
        try:
            path = self.sim.export_csv()
        except NoDataToExportError as exc:
            self._set_error(str(exc))
            return
        except OSError as exc:
            self._set_error(f"Export failed: {exc}")
            return
        self._set_status(f"Exported to {path}")

    def load_preset(self, display_name: Optional[str]):
        fn = self._preset_map.get(display_name or "")
        if fn is None:
            self._set_error("Choose a preset first.")
            return
        try:
            params, name = load_preset(fn)
        except CyclotronError as exc:
            self._set_error(str(exc))
            return
        self.sim.replace_parameters(params)
        self._sync_widgets_with_params()
        self._set_status(f"Loaded preset: {name}")

    def _sync_widgets_with_params(self):
        params = self.sim.params
        dpg.set_value("mode_combo", params.mode.value)
        dpg.set_value("voltage_slider", params.acceleration_voltage)
        dpg.set_value("field_slider", params.magnetic_flux_density)
        dpg.set_value("particle_combo", params.particle_type.value)
        dpg.set_value("energy_input", f"{params.kinetic_energy:.3f}")

    def _sync_ui_with_sim(self):
        """
        Periodic UI update of the readouts, the export panel and the Start/Stop label.
        """
        snap = self.sim.snapshot()
        # Parameters changed outside the widgets (viewport reset, preset)
        if snap.params_revision != self._params_revision:
            self._sync_widgets_with_params()
            self._params_revision = snap.params_revision
        d = snap.derived
        values = {
            "radius": f"{d.radius_mm:.3f} mm",
            "frequency": f"{d.frequency_mhz:.3f} MHz",
            "energy": f"{snap.params.kinetic_energy:.3f} keV",
            "speed": f"{d.speed_percent_c:.2f} %",
            "period": f"{d.period_ns:.2f} ns",
            "turns": f"{snap.turn_count} turns",
            "gamma": f"{snap.lorentz_factor:.4f}",
            "gain": f"{snap.gap_energy_gain_kev:.3f} keV",
        }
        for key, text in values.items():
            dpg.set_value(self.readout_ids[key], text)

        dpg.set_value(self.turns_recorded_id, f"Turns recorded: {snap.turn_log_size}")
        ev = snap.latest_event
        if ev is not None:
            dpg.set_value(self.latest_id,
                          f"Latest: turn {ev.turn}, t = {ev.t:.3e} s, gamma = {ev.gamma:.4f}, "
                          f"K = {ev.kinetic_energy:.3e} J")
        else:
            dpg.set_value(self.latest_id, "")

        running = snap.status is IntegratorStatus.RUNNING
        dpg.configure_item("start_button", label="Stop" if running else "Start")

        if snap.message and snap.message != self._last_message:
            if snap.status is IntegratorStatus.FAULTED:
                self._set_error(snap.message)
            else:
                self._set_status(snap.message)
        self._last_message = snap.message

        self._schedule_sync()

# ============================================================
# Application Entry
# ============================================================


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Interactive cyclotron simulator')
    parser.add_argument('--preset', type=str, default=None,
                        help='Preset JSON file name from the presets folder (default: built-in defaults)')
    parser.add_argument('--export-dir', type=str, default='.',
                        help='Directory for exported CSV files (default: current directory)')
    parser.add_argument('--log-level', type=str, default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: INFO)')
    return parser.parse_args(argv)


def setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_level)

    sim = SimulationController(export_dir=args.export_dir)
    if args.preset:
        try:
            params, name = load_preset(args.preset)
        except CyclotronError as exc:
            logger.error("Cannot load preset: %s", exc)
            raise SystemExit(2) from exc
        sim.replace_parameters(params)
        logger.info("Loaded preset: %s", name)

    renderer = PygameRenderer(sim)

    # Start Pygame renderer thread
    renderer.start()

    ui = UI(sim)

    # Keyboard shortcut in UI window to toggle Start/Stop (Space)
    with dpg.handler_registry():
        def key_press(sender, app_data):
            if app_data == dpg.mvKey_Spacebar:
                ui._toggle_play()
        dpg.add_key_press_handler(callback=key_press)

    # Run Dear PyGui event loop
    try:
        dpg.start_dearpygui()
    finally:
        sim.app_running = False
        renderer.running = False
        renderer.join(timeout=2.0)
        dpg.destroy_context()


if __name__ == "__main__":
    main()
