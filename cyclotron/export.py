#!/usr/bin/env python3
"""
CSV export of the turn-event log.

Column order and units are fixed so exported files stay comparable across runs:

    Turn,Time (s),Gamma,Momentum (kg·m/s),Kinetic Energy (J),Total Energy (J),Period (s)

Time, momentum, energies and period are written in exponential notation with six fractional
digits; gamma in fixed notation with six decimals.
"""
import csv
import logging
import os
from typing import Iterable, List, Sequence

from .data_models import TurnEvent
from .errors import NoDataToExportError

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "Turn",
    "Time (s)",
    "Gamma",
    "Momentum (kg·m/s)",
    "Kinetic Energy (J)",
    "Total Energy (J)",
    "Period (s)",
]


def format_row(event: TurnEvent) -> List[str]:
    return [
        str(event.turn),
        f"{event.t:.6e}",
        f"{event.gamma:.6f}",
        f"{event.momentum:.6e}",
        f"{event.kinetic_energy:.6e}",
        f"{event.total_energy:.6e}",
        f"{event.period:.6e}",
    ]


def format_rows(events: Iterable[TurnEvent]) -> List[List[str]]:
    """Header row followed by one formatted row per event."""
    rows = [list(CSV_HEADERS)]
    rows.extend(format_row(e) for e in events)
    return rows


def default_export_name(now_ms: int) -> str:
    return f"cyclotron_data_{int(now_ms)}.csv"


def write_csv(events: Sequence[TurnEvent], path: str) -> str:
    """
    Write the turn-event log to a CSV file.

    Args:
        events: Turn events in emission order
        path: Destination file; parent directories are created as needed

    Returns:
        The path written

    Raises:
        NoDataToExportError: if events is empty
    """
    if not events:
        raise NoDataToExportError()
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerows(format_rows(events))
    logger.info("Exported %d turns to %s", len(events), path)
    return path
