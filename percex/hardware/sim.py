"""
Simulated hand for dry runs and tests.

Each joint moves toward its commanded target at the reference speed,
integrated on a clock (time.monotonic unless another is injected).
Acceleration is taken as unbounded. With `contact_at` set, an obstacle
sits at that motor position: past it the distal joints stop following the
motor and the fingertip pad loads up.
"""

import time
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from percex.config import Finger
from percex.errors import RuntimeHardwareError
from percex.hardware.driver import JointDriver


# Arm joints 0-6, hand joints 7-15 (degrees)
SIM_LIMITS = {
    0: (-95.0, 10.0),
    1: (0.0, 160.0),
    2: (-37.0, 80.0),
    3: (15.0, 106.0),
    4: (-90.0, 90.0),
    5: (-90.0, 0.0),
    6: (-20.0, 40.0),
    7: (0.0, 60.0),
    8: (10.0, 90.0),
    9: (0.0, 90.0),
    10: (0.0, 180.0),
    11: (0.0, 90.0),
    12: (0.0, 180.0),
    13: (0.0, 90.0),
    14: (0.0, 180.0),
    15: (0.0, 270.0),
}

# Coupling of each distal joint to the finger motor
DISTAL_GAINS = {
    Finger.THUMB: (0.5, 0.45),
    Finger.INDEX: (0.5, 0.45),
    Finger.MIDDLE: (0.5, 0.45),
    Finger.RING: (0.33, 0.3, 0.3),
    Finger.LITTLE: (0.33, 0.3, 0.3),
}

TAXELS_PER_PAD = 12
TAXEL_REST = 10.0
# Relative response of the pad taxels to a centred press
TAXEL_PATTERN = np.array([0.2, 0.4, 0.6, 0.8, 1.0, 1.0, 1.0, 1.0, 0.8, 0.6, 0.4, 0.2])


class SimJointDriver(JointDriver):
    """In-process stand-in for SerialJointDriver."""

    def __init__(
        self,
        contact_at: Optional[float] = None,
        contact_stiffness: float = 2.0,
        noise: float = 0.2,
        seed: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        limits: Optional[Dict[int, Tuple[float, float]]] = None,
    ):
        self.contact_at = contact_at
        self.contact_stiffness = contact_stiffness
        self.noise = noise
        self.clock = clock
        self.limits = dict(limits or SIM_LIMITS)
        self.rng = np.random.default_rng(seed)

        self.positions = {j: lo for j, (lo, hi) in self.limits.items()}
        self.targets = dict(self.positions)
        self.speeds = {j: 10.0 for j in self.limits}
        self.accelerations = {j: 0.0 for j in self.limits}
        self.is_open = False
        self._last_time = self.clock()

    def open(self, options: dict) -> bool:
        self.is_open = True
        self._last_time = self.clock()
        return True

    def close(self):
        self.is_open = False

    def get_limits(self, joint: int) -> Tuple[float, float]:
        self._check(joint)
        return self.limits[joint]

    def set_ref_acceleration(self, joint: int, value: float):
        self._check(joint)
        self.accelerations[joint] = value

    def set_ref_speed(self, joint: int, value: float):
        self._check(joint)
        if value <= 0:
            raise RuntimeHardwareError(f"joint {joint}: speed must be positive, got {value}")
        self._advance()
        self.speeds[joint] = value

    def position_move(self, joint: int, target: float):
        self._check(joint)
        lo, hi = self.limits[joint]
        if not lo <= target <= hi:
            raise RuntimeHardwareError(f"joint {joint}: target {target} outside [{lo}, {hi}]")
        self._advance()
        self.targets[joint] = target

    def get_encoder(self, joint: int) -> float:
        self._check(joint)
        self._advance()
        return float(self.positions[joint])

    def get_distal_encoders(self, finger: str) -> np.ndarray:
        finger = Finger.parse(finger)
        self._check(finger.joint)
        self._advance()

        travel = self._free_travel(finger)
        angles = np.array(DISTAL_GAINS[finger]) * travel
        return angles + self._noise(len(angles))

    def get_taxels(self, finger: str) -> np.ndarray:
        finger = Finger.parse(finger)
        self._check(finger.joint)
        self._advance()

        press = self.contact_stiffness * self._penetration(finger)
        return TAXEL_REST + press * TAXEL_PATTERN + np.abs(self._noise(TAXELS_PER_PAD))

    def _free_travel(self, finger: Finger) -> float:
        lo, _ = self.limits[finger.joint]
        return self.positions[finger.joint] - self._penetration(finger) - lo

    def _penetration(self, finger: Finger) -> float:
        if self.contact_at is None:
            return 0.0
        return max(0.0, self.positions[finger.joint] - self.contact_at)

    def _noise(self, n: int) -> np.ndarray:
        if self.noise <= 0:
            return np.zeros(n)
        return self.rng.normal(0.0, self.noise, size=n)

    def _advance(self):
        now = self.clock()
        dt = max(0.0, now - self._last_time)
        self._last_time = now

        for joint, target in self.targets.items():
            pos = self.positions[joint]
            step = self.speeds[joint] * dt
            self.positions[joint] = pos + float(np.clip(target - pos, -step, step))

    def _check(self, joint: int):
        if not self.is_open:
            raise RuntimeHardwareError("simulated hand is not open")
        if joint not in self.limits:
            raise RuntimeHardwareError(f"no joint {joint} on the simulated arm")
