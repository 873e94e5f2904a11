#!/usr/bin/env python3
"""
Shared constants for Cyclotron Simulator (SI units unless stated otherwise).

Keeping constants in one place helps ensure values are consistent across the
codebase and makes tuning easier.
"""
import math

# Physical constants
SPEED_OF_LIGHT = 299792458.0  # m/s
ELEMENTARY_CHARGE = 1.6022e-19  # C
KEV_TO_JOULES = 1000.0 * ELEMENTARY_CHARGE  # J per keV
TWO_PI = 2.0 * math.pi

# Display unit conversions
HZ_PER_MHZ = 1e6
MM_PER_M = 1e3
NS_PER_S = 1e9

# Integrator controls (normalized physics units)
PHYSICS_DT = 0.05  # fixed step per tick, independent of wall-clock time
OMEGA_PER_MHZ = 0.1  # angular rate coupling: omega = frequency_mhz * OMEGA_PER_MHZ
EDGE_RADIUS = 2.0  # particle exits the device at this radius
INJECTION_SPEED = 0.1  # initial vx after reset

# Parameter bounds enforced by the controller before calling into the core
MIN_FLUX_DENSITY = 0.05  # T
MAX_FLUX_DENSITY = 2.0  # T
MIN_VOLTAGE = 500.0  # V
MAX_VOLTAGE = 10000.0  # V
VOLTAGE_STEP = 100.0  # V
MIN_TICKS_PER_FRAME = 1
MAX_TICKS_PER_FRAME = 20

# Default parameters
DEFAULT_MODE = "Classic"
DEFAULT_PARTICLE = "Proton"
DEFAULT_FLUX_DENSITY = 1.0  # T
DEFAULT_KINETIC_ENERGY = 0.5  # keV
DEFAULT_VOLTAGE = 5000.0  # V

# Trail sampling (normalized units)
TRAIL_MIN_SPACING = 0.01
TRAIL_MAX_POINTS = 5000

# Rendering (viewport)
VIEW_WIDTH = 600
VIEW_HEIGHT = 600
DEVICE_FILL_RATIO = 0.4  # device radius as a fraction of min(width, height)
GRID_SPACING_PX = 30
BACKGROUND_COLOR = (10, 10, 10)
DEVICE_OUTLINE_COLOR = (26, 77, 92)
GRID_DOT_COLOR = (26, 58, 71)
GAP_LINE_COLOR = (42, 90, 106)
TRAIL_GLOW_COLOR = (0, 90, 110)
TRAIL_COLOR = (0, 217, 255)
PARTICLE_COLOR = (0, 217, 255)
PARTICLE_HALO_COLOR = (0, 168, 204)
HUD_COLOR = (200, 200, 200)
