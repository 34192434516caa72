"""Shared fakes: a scripted joint driver, a scripted model and a manual clock."""

import shutil
import tempfile
from pathlib import Path

import numpy as np
import pytest

from percex.errors import RuntimeHardwareError


class FakeClock:
    """Time that only moves when sleep() is called."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, dt: float):
        self.sleeps.append(dt)
        self.now += dt


class FakeDriver:
    """Records every call; encoder readings are scripted."""

    def __init__(self, limits=(0.0, 100.0), feedback=None, open_ok=True):
        self.limits = limits
        self.feedback = list(feedback or [])
        self.open_ok = open_ok
        self.calls = []
        self.opened = False
        self.closed = False

    def open(self, options):
        self.calls.append(("open", options))
        self.opened = self.open_ok
        return self.open_ok

    def close(self):
        self.calls.append(("close",))
        self.closed = True

    def get_limits(self, joint):
        self.calls.append(("get_limits", joint))
        return self.limits

    def set_ref_acceleration(self, joint, value):
        self.calls.append(("set_ref_acceleration", joint, value))

    def set_ref_speed(self, joint, value):
        self.calls.append(("set_ref_speed", joint, value))

    def position_move(self, joint, target):
        self.calls.append(("position_move", joint, target))

    def get_encoder(self, joint):
        self.calls.append(("get_encoder", joint))
        if not self.feedback:
            raise RuntimeHardwareError(f"joint {joint}: encoder read failed")
        return self.feedback.pop(0)

    def get_distal_encoders(self, finger):
        return np.zeros(2)

    def get_taxels(self, finger):
        return np.zeros(12)

    def commands(self, name):
        return [c for c in self.calls if c[0] == name]

    @property
    def motion_commands(self):
        return [c for c in self.calls if c[0] in ("set_ref_acceleration", "set_ref_speed", "position_move")]


class FakeNode:
    def __init__(self, name, data=(1.0, 2.0), output=0.5):
        self.name = name
        self.data = np.array(data)
        self.output = output
        self.output_inputs = []

    def get_sensors_data(self):
        return self.data

    def get_output(self, sensors_data=None):
        self.output_inputs.append(sensors_data)
        return self.output

    def get_name(self):
        return self.name


class FakeModel:
    def __init__(self, has_node=True, calibrate_error=None):
        self.has_node = has_node
        self.calibrate_error = calibrate_error
        self.calibrations = []
        self.node_queries = []
        self.node = FakeNode("index")

    def calibrate(self, options):
        self.calibrations.append(options)
        if self.calibrate_error:
            raise self.calibrate_error

    def get_node(self, finger_name):
        self.node_queries.append(finger_name)
        if not self.has_node:
            return None
        self.node.name = finger_name
        return self.node


@pytest.fixture
def tmp_dir():
    """Temporary directory cleaned up after test."""
    d = Path(tempfile.mkdtemp())
    yield d
    shutil.rmtree(d)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_driver():
    return FakeDriver()


@pytest.fixture
def fake_model():
    return FakeModel()


@pytest.fixture
def driver_factory():
    return FakeDriver


@pytest.fixture
def model_factory():
    return FakeModel
