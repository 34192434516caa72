"""Joint drivers: serial hand controller and simulated hand."""

from percex.hardware.driver import (
    JointDriver,
    SerialJointDriver,
    check_transport,
    find_controller_port,
)
from percex.hardware.sim import SimJointDriver

__all__ = [
    "JointDriver",
    "SerialJointDriver",
    "SimJointDriver",
    "check_transport",
    "find_controller_port",
]
