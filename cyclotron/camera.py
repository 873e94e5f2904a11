#!/usr/bin/env python3
"""
Camera utilities for mapping normalized physics units to screen pixels.
"""
from typing import Tuple

from .constants import DEVICE_FILL_RATIO, EDGE_RADIUS, VIEW_HEIGHT, VIEW_WIDTH
from .vector_utils import clamp

MIN_ZOOM = 0.25
MAX_ZOOM = 20.0


class Camera2D:
    """
    2D camera centred on the cyclotron axis.

    At zoom 1 the device edge (EDGE_RADIUS) spans DEVICE_FILL_RATIO of the smaller viewport side.
    """

    def __init__(self, viewport_size=(VIEW_WIDTH, VIEW_HEIGHT)):
        self.viewport_size = (int(viewport_size[0]), int(viewport_size[1]))
        self.zoom_level = 1.0

    def set_viewport_size(self, w: int, h: int) -> None:
        self.viewport_size = (w, h)

    @property
    def center(self) -> Tuple[float, float]:
        return (self.viewport_size[0] / 2, self.viewport_size[1] / 2)

    @property
    def device_radius_px(self) -> float:
        return min(self.viewport_size) * DEVICE_FILL_RATIO * self.zoom_level

    @property
    def pixels_per_unit(self) -> float:
        return self.device_radius_px / EDGE_RADIUS

    def world_to_screen(self, pos: Tuple[float, float]) -> Tuple[int, int]:
        cx, cy = self.center
        s = self.pixels_per_unit
        return (int(cx + pos[0] * s), int(cy + pos[1] * s))

    def screen_to_world(self, screen: Tuple[int, int]) -> Tuple[float, float]:
        cx, cy = self.center
        s = self.pixels_per_unit
        return ((screen[0] - cx) / s, (screen[1] - cy) / s)

    def zoom(self, factor: float) -> None:
        self.zoom_level = clamp(self.zoom_level * factor, MIN_ZOOM, MAX_ZOOM)

    def reset_zoom(self) -> None:
        self.zoom_level = 1.0
