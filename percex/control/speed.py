"""Reference speed for each finger."""

from percex.config import Finger


# Ring and little share one motor.
FAST_SPEED = 60.0
DEFAULT_SPEED = 30.0

FINGER_SPEEDS = {
    Finger.THUMB: DEFAULT_SPEED,
    Finger.INDEX: DEFAULT_SPEED,
    Finger.MIDDLE: DEFAULT_SPEED,
    Finger.RING: FAST_SPEED,
    Finger.LITTLE: FAST_SPEED,
}


def speed_for(finger) -> float:
    """Commanded joint speed (units/s) for a Finger or finger name."""
    return FINGER_SPEEDS[Finger.parse(finger)]
