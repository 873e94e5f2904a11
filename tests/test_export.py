"""
Tests for the turn-log CSV format.
"""

import csv

import pytest

from cyclotron.data_models import TurnEvent
from cyclotron.errors import NoDataToExportError
from cyclotron.export import CSV_HEADERS, default_export_name, format_row, format_rows, write_csv


EVENTS = [
    TurnEvent(turn=1, t=4.15, gamma=1.0, momentum=1.5e-28, kinetic_energy=0.0,
              total_energy=1.503277e-10, period=6.559e-8),
    TurnEvent(turn=2, t=8.3, gamma=1.0000000002, momentum=3.25e-28, kinetic_energy=3.0e-20,
              total_energy=1.503277e-10, period=6.559e-8),
]


def test_header_order():
    assert CSV_HEADERS == [
        "Turn", "Time (s)", "Gamma", "Momentum (kg·m/s)",
        "Kinetic Energy (J)", "Total Energy (J)", "Period (s)",
    ]


def test_row_format():
    assert format_row(EVENTS[1]) == [
        "2", "8.300000e+00", "1.000000", "3.250000e-28",
        "3.000000e-20", "1.503277e-10", "6.559000e-08",
    ]


def test_format_rows_keeps_event_order():
    rows = format_rows(EVENTS)
    assert rows[0] == CSV_HEADERS
    assert [r[0] for r in rows[1:]] == ["1", "2"]


def test_write_csv(tmp_path):
    path = write_csv(EVENTS, str(tmp_path / "nested" / "out.csv"))
    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows == format_rows(EVENTS)


def test_write_csv_empty(tmp_path):
    with pytest.raises(NoDataToExportError):
        write_csv([], str(tmp_path / "out.csv"))
    assert not (tmp_path / "out.csv").exists()


def test_default_export_name():
    assert default_export_name(1700000000123.7) == "cyclotron_data_1700000000123.csv"
