"""Probe run logging and loading."""

from percex.data.probe_log import ProbeRecorder, load_probe_log

__all__ = [
    "ProbeRecorder",
    "load_probe_log",
]
