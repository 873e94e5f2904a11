#!/usr/bin/env python3
"""
Parameter preset JSON loading utilities.

Schema
======
Preset JSON (cyclotron/presets/*.json):
{
  "name": "Human-friendly preset name",
  "description": "Optional description",
  "mode": "Classic",                 # optional, "Classic" | "Relativistic"
  "particle_type": "Proton",         # optional, "Proton" | "Deuteron" | "Alpha" | "Electron"
  "magnetic_flux_density": 1.0,      # optional, tesla
  "kinetic_energy": 0.5,             # optional, keV
  "acceleration_voltage": 5000       # optional, volts
}

Missing fields fall back to the defaults of SimulationParameters. Users can add their own
JSON files into the presets folder and they'll be picked up by the loader.
"""
import json
import logging
import os
from typing import List, Optional, Tuple

from .data_models import SimulationParameters
from .errors import CyclotronError, PresetError

logger = logging.getLogger(__name__)

PRESETS_DIR = os.path.join(os.path.dirname(__file__), "presets")

PARAMETER_KEYS = (
    "mode",
    "particle_type",
    "magnetic_flux_density",
    "kinetic_energy",
    "acceleration_voltage",
)


def _read_json(path: str) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise PresetError(f"cannot read preset {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise PresetError(f"preset {path} must contain a JSON object")
    return data


def parameters_from_dict(data: dict) -> SimulationParameters:
    """Build SimulationParameters from a preset mapping, ignoring unknown keys."""
    changes = {k: data[k] for k in PARAMETER_KEYS if k in data}
    try:
        return SimulationParameters().with_changes(**changes)
    except (CyclotronError, TypeError, ValueError) as exc:
        raise PresetError(f"invalid preset values: {exc}") from exc


def list_presets(directory: Optional[str] = None) -> List[Tuple[str, str]]:
    """Return list of (file_name, display_name) for available presets."""
    directory = directory or PRESETS_DIR
    items: List[Tuple[str, str]] = []
    if not os.path.isdir(directory):
        return items
    for fn in sorted(os.listdir(directory)):
        if not fn.lower().endswith(".json"):
            continue
        try:
            data = _read_json(os.path.join(directory, fn))
        except PresetError as exc:
            logger.warning("Skipping preset: %s", exc)
            continue
        display = data.get("name") or os.path.splitext(fn)[0]
        items.append((fn, display))
    return items


def load_preset(file_name: str, directory: Optional[str] = None) -> Tuple[SimulationParameters, str]:
    """
    Load a preset JSON by file name.
    Returns (parameters, display_name)
    """
    path = os.path.join(directory or PRESETS_DIR, file_name)
    data = _read_json(path)
    display_name = data.get("name") or os.path.splitext(file_name)[0]
    return parameters_from_dict(data), display_name
