"""Finger contact detection by oscillating a joint between its safe limits."""

from percex.errors import (
    ConfigurationError,
    ProbeError,
    ResourceAcquisitionError,
    RuntimeHardwareError,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "ProbeError",
    "ResourceAcquisitionError",
    "RuntimeHardwareError",
]
