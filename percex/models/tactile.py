"""
Tactile fingers model.

Reads the fingertip pad directly. Calibration averages the taxels with
the finger at rest to get a per-taxel baseline; the output is the summed
excess pressure over that baseline.
"""

from typing import Optional

import numpy as np

from percex.config import Finger
from percex.models.base import FingerNode, PerceptiveModel


class TactileFinger(FingerNode):
    def __init__(self, finger: Finger, source):
        super().__init__(finger, source)
        self.calib_samples = 10
        self.baseline: Optional[np.ndarray] = None

    def configure(self, group: dict):
        self.name = str(group.get("name", self.name))
        self.calib_samples = int(group.get("calib_samples", self.calib_samples))
        if self.calib_samples < 1:
            raise ValueError(f"{self.name}: calib_samples must be at least 1")

        baseline = group.get("baseline")
        if baseline is not None:
            self.baseline = np.asarray(baseline, dtype=np.float64)

    def to_options(self) -> dict:
        group = {"name": self.name, "calib_samples": self.calib_samples}
        if self.baseline is not None:
            group["baseline"] = self.baseline.tolist()
        return group

    def get_sensors_data(self) -> np.ndarray:
        return np.asarray(self.source.get_taxels(self.finger.value), dtype=np.float64)

    def get_output(self, sensors_data=None) -> float:
        if sensors_data is None:
            sensors_data = self.get_sensors_data()
        return self.pressure(np.asarray(sensors_data, dtype=np.float64))

    def pressure(self, taxels: np.ndarray) -> float:
        # Uncalibrated pads report their raw load
        excess = taxels if self.baseline is None else taxels - self.baseline
        return float(np.clip(excess, 0.0, None).sum())


class TactileFingersModel(PerceptiveModel):
    """Contact from fingertip tactile pads."""

    kind = "tactile"
    SAMPLE_INTERVAL = 0.02

    def _make_node(self, finger: Finger) -> TactileFinger:
        return TactileFinger(finger, self.source)

    def _calibrate_node(self, node: TactileFinger, options: dict):
        samples = []
        for _ in range(node.calib_samples):
            samples.append(node.get_sensors_data())
            self.sleep(self.SAMPLE_INTERVAL)
        node.baseline = np.mean(samples, axis=0)
        if self.verbose:
            print(f"{node.name} baseline: {np.round(node.baseline, 2).tolist()}")
