"""Visualization of probe runs."""

from percex.viz.probe_viz import plot_probe_log

__all__ = [
    "plot_probe_log",
]
