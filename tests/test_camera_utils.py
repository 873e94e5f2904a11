"""
Tests for the viewport camera and small helpers used by the UI.
"""

import pytest

from cyclotron.camera import Camera2D
from cyclotron.constants import EDGE_RADIUS
from cyclotron.utils import parse_float


def test_device_edge_maps_to_fill_ratio():
    cam = Camera2D((600, 600))
    assert cam.device_radius_px == pytest.approx(240.0)
    assert cam.world_to_screen((0.0, 0.0)) == (300, 300)
    assert cam.world_to_screen((EDGE_RADIUS, 0.0)) == (540, 300)


def test_screen_round_trip_and_zoom():
    cam = Camera2D((800, 600))
    cam.zoom(2.0)
    assert cam.screen_to_world(cam.world_to_screen((1.0, -0.5))) == pytest.approx((1.0, -0.5), abs=1e-2)
    cam.zoom(1e6)
    assert cam.zoom_level == 20.0
    cam.reset_zoom()
    assert cam.zoom_level == 1.0


@pytest.mark.parametrize("text,expected", [
    ("0.5", 0.5),
    (" 12 ", 12.0),
    ("", None),
    ("abc", None),
    ("nan", None),
    ("inf", None),
])
def test_parse_float(text, expected):
    assert parse_float(text) == expected
