"""
Contact probe state machine.

The loop keeps one finger joint travelling back and forth between the two
ends of its operating bounds. The first tick calibrates the perceptive
model and sends the joint to the low bound. Every later tick reports what
the model sees for the finger, reads the joint encoder and flips the
target once the joint is within `threshold` of it.

Arrival is judged by proximity on each tick, not by a motion-done event,
so the loop never blocks waiting for the actuator. There is no debounce:
if the new target happens to sit within the threshold of the current
feedback, the next tick flips it again.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import numpy as np

from percex.config import Finger
from percex.control.bounds import OperatingBounds
from percex.control.speed import speed_for
from percex.errors import ConfigurationError


# Large enough that the actuator reaches the commanded speed at once.
UNBOUNDED_ACCELERATION = 1e9
DEFAULT_THRESHOLD = 5.0


class ProbeState(Enum):
    CALIBRATING = "calibrating"
    OSCILLATING = "oscillating"


@dataclass
class SensorReport:
    """What the model reported for the probed finger on one tick."""

    sensors_data: Any
    output: Any
    label: str

    def format(self) -> str:
        return (
            f"{self.label} sensors data = {format_value(self.sensors_data)}; "
            f"output = {format_value(self.output)}"
        )


def format_value(value) -> str:
    """Render scalars plainly and sequences as (v1 v2 ...)."""
    if isinstance(value, np.ndarray):
        value = value.tolist()
    if isinstance(value, (list, tuple)):
        return "(" + " ".join(format_value(v) for v in value) + ")"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def print_report(report: SensorReport):
    print(report.format())


def toggle_target(target: float, bounds: OperatingBounds) -> float:
    """The other end of the bounds: high when at low, low otherwise."""
    return bounds.high if target == bounds.low else bounds.low


class ContactProbeLoop:
    """
    Two-phase probe driven by an external scheduler, one tick() per period.

    Args:
        driver: Joint driver (set_ref_acceleration, set_ref_speed,
            position_move, get_encoder).
        model: Perceptive model (calibrate, get_node).
        finger: Finger or finger name to probe.
        bounds: Operating bounds of the finger's joint.
        threshold: Distance to the target below which the joint counts as
            arrived.
        sink: Called with each SensorReport. Prints it by default.
        recorder: Optional object whose record() receives every tick.

    Driver and model exceptions are not handled here; they end the tick and
    reach the caller.
    """

    def __init__(
        self,
        driver,
        model,
        finger,
        bounds: OperatingBounds,
        threshold: float = DEFAULT_THRESHOLD,
        sink: Callable[[SensorReport], None] = print_report,
        recorder=None,
    ):
        if threshold <= 0:
            raise ConfigurationError(f"convergence threshold must be positive, got {threshold}")

        self.driver = driver
        self.model = model
        self.finger = Finger.parse(finger)
        self.joint = self.finger.joint
        self.bounds = bounds
        self.threshold = threshold
        self.sink = sink
        self.recorder = recorder

        self._state = ProbeState.CALIBRATING
        self._target: Optional[float] = None
        self.ticks = 0

    @property
    def state(self) -> ProbeState:
        return self._state

    @property
    def target(self) -> Optional[float]:
        """Position currently commanded, None before the first tick."""
        return self._target

    def tick(self) -> Optional[SensorReport]:
        """Run one control step. Returns the report emitted, if any."""
        self.ticks += 1
        state = self._state

        if state is ProbeState.CALIBRATING:
            self._calibrate()
            report, feedback, toggled = None, None, False
        else:
            report, feedback, toggled = self._oscillate()

        if self.recorder is not None:
            self.recorder.record(self.ticks, state, self._target, feedback, toggled, report)

        return report

    def _calibrate(self):
        self.model.calibrate({"finger": self.finger.value})

        self._target = self.bounds.low
        self.driver.set_ref_acceleration(self.joint, UNBOUNDED_ACCELERATION)
        self.driver.set_ref_speed(self.joint, speed_for(self.finger))
        self.driver.position_move(self.joint, self._target)

        self._state = ProbeState.OSCILLATING

    def _oscillate(self):
        report = None
        node = self.model.get_node(self.finger.value)
        if node is not None:
            data = node.get_sensors_data()
            report = SensorReport(sensors_data=data, output=node.get_output(data), label=node.get_name())
            self.sink(report)

        feedback = self.driver.get_encoder(self.joint)
        toggled = abs(self._target - feedback) < self.threshold
        if toggled:
            self._target = toggle_target(self._target, self.bounds)
            self.driver.set_ref_speed(self.joint, speed_for(self.finger))
            self.driver.position_move(self.joint, self._target)

        return report, feedback, toggled
