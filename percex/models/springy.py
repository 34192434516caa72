"""
Springy fingers model.

The distal joints of a finger are not actuated: they follow the motor
through elastic couplings. Calibration sweeps the motor across its range
in free air and fits a linear relation from motor position to each distal
angle. While probing, an object in the way holds the distal joints back
and the measured angles drift away from the fitted prediction; the output
is the norm of that discrepancy.
"""

from typing import Optional

import numpy as np
from tqdm import tqdm

from percex.config import Finger
from percex.control.bounds import compute_bounds
from percex.errors import RuntimeHardwareError
from percex.models.base import FingerNode, PerceptiveModel


class SpringyFinger(FingerNode):
    """Motor-to-distal-joints relation of one finger."""

    def __init__(self, finger: Finger, source):
        super().__init__(finger, source)
        self.calib_points = 20
        self.calib_speed = 30.0
        self.calib_margin = 0.1
        self.calib_tolerance = 2.0
        self.calib_timeout = 10.0  # seconds per sweep point
        # (n_distal, 2) rows of [slope, intercept], None until calibrated
        self.coefficients: Optional[np.ndarray] = None

    def configure(self, group: dict):
        self.name = str(group.get("name", self.name))
        self.calib_points = int(group.get("calib_points", self.calib_points))
        self.calib_speed = float(group.get("calib_speed", self.calib_speed))
        self.calib_margin = float(group.get("calib_margin", self.calib_margin))
        self.calib_tolerance = float(group.get("calib_tolerance", self.calib_tolerance))
        self.calib_timeout = float(group.get("calib_timeout", self.calib_timeout))
        if self.calib_points < 2:
            raise ValueError(f"{self.name}: calib_points must be at least 2")

        coefficients = group.get("coefficients")
        if coefficients is not None:
            coefficients = np.asarray(coefficients, dtype=np.float64)
            if coefficients.ndim != 2 or coefficients.shape[1] != 2:
                raise ValueError(f"{self.name}: coefficients must be rows of [slope, intercept]")
            self.coefficients = coefficients

    def to_options(self) -> dict:
        group = {
            "name": self.name,
            "calib_points": self.calib_points,
            "calib_speed": self.calib_speed,
            "calib_margin": self.calib_margin,
            "calib_tolerance": self.calib_tolerance,
            "calib_timeout": self.calib_timeout,
        }
        if self.coefficients is not None:
            group["coefficients"] = self.coefficients.tolist()
        return group

    @property
    def is_calibrated(self) -> bool:
        return self.coefficients is not None

    def get_sensors_data(self) -> np.ndarray:
        """[motor, distal_1, ..., distal_n]"""
        motor = self.source.get_encoder(self.finger.joint)
        distal = np.asarray(self.source.get_distal_encoders(self.finger.value), dtype=np.float64)
        return np.concatenate([[motor], distal])

    def get_output(self, sensors_data=None) -> float:
        if self.coefficients is None:
            return 0.0
        data = self.get_sensors_data() if sensors_data is None else np.asarray(sensors_data, dtype=np.float64)
        return self.discrepancy(data[0], data[1:])

    def predict(self, motor: float) -> np.ndarray:
        return self.coefficients[:, 0] * motor + self.coefficients[:, 1]

    def discrepancy(self, motor: float, distal: np.ndarray) -> float:
        return float(np.linalg.norm(distal - self.predict(motor)))

    def fit(self, motor: np.ndarray, distal: np.ndarray):
        """Least-squares line per distal joint. distal is (n_samples, n_distal)."""
        motor = np.asarray(motor, dtype=np.float64)
        distal = np.asarray(distal, dtype=np.float64)
        if len(motor) < 2 or np.ptp(motor) == 0:
            raise RuntimeHardwareError(f"{self.name}: motor did not move during calibration")
        self.coefficients = np.array([np.polyfit(motor, distal[:, k], 1) for k in range(distal.shape[1])])


class SpringyFingersModel(PerceptiveModel):
    """Contact from elastic-coupling discrepancies."""

    kind = "springy"
    POLL_INTERVAL = 0.05

    def _make_node(self, finger: Finger) -> SpringyFinger:
        return SpringyFinger(finger, self.source)

    def _calibrate_node(self, node: SpringyFinger, options: dict):
        joint = node.finger.joint
        raw_low, raw_high = self.source.get_limits(joint)
        bounds = compute_bounds(raw_low, raw_high, node.calib_margin)
        targets = np.linspace(bounds.low, bounds.high, node.calib_points)

        self.source.set_ref_speed(joint, node.calib_speed)

        motor, distal = [], []
        for target in tqdm(targets, desc=f"Calibrating {node.name}", disable=not self.verbose):
            self.source.position_move(joint, float(target))
            self._wait_until_reached(node, float(target))
            data = node.get_sensors_data()
            motor.append(data[0])
            distal.append(data[1:])

        node.fit(np.array(motor), np.array(distal))
        if self.verbose:
            print(f"{node.name} calibrated: {node.coefficients.tolist()}")

    def _wait_until_reached(self, node: SpringyFinger, target: float):
        joint = node.finger.joint
        waited = 0.0
        while abs(self.source.get_encoder(joint) - target) >= node.calib_tolerance:
            if waited >= node.calib_timeout:
                raise RuntimeHardwareError(
                    f"{node.name}: joint {joint} did not reach {target:.1f} during calibration"
                )
            self.sleep(self.POLL_INTERVAL)
            waited += self.POLL_INTERVAL
