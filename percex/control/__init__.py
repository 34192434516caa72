"""Probe control: safe bounds, speed policy and the probe state machine."""

from percex.control.bounds import OperatingBounds, compute_bounds
from percex.control.speed import speed_for
from percex.control.probe import (
    ContactProbeLoop,
    ProbeState,
    SensorReport,
    format_value,
    toggle_target,
)

__all__ = [
    "OperatingBounds",
    "compute_bounds",
    "speed_for",
    "ContactProbeLoop",
    "ProbeState",
    "SensorReport",
    "format_value",
    "toggle_target",
]
