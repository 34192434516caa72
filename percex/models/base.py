"""
Perceptive model interface.

A model owns one node per finger named in its options. Nodes read the
sensors they need from a source (a joint driver) and turn them into a
single output that grows with the force an external object exerts on the
finger. Options are plain nested dicts:

    {"name": "percex/springy", "robot": "icub", "type": "right", "verbose": 1,
     "index": {"name": "index"}, ...}

serialize_to() returns the same layout with each node's calibration
state added, so its result can be fed back to configure_from().
"""

import time
from abc import ABC, abstractmethod
from typing import Callable, ClassVar, Dict, Optional

from percex.config import HAND_SIDES, Finger
from percex.errors import ConfigurationError


class FingerNode(ABC):
    """Sensor and output view of one finger."""

    def __init__(self, finger: Finger, source):
        self.finger = finger
        self.source = source
        self.name = finger.value

    def get_name(self) -> str:
        return self.name

    @abstractmethod
    def get_sensors_data(self): ...

    @abstractmethod
    def get_output(self, sensors_data=None) -> float:
        """Contact output from `sensors_data`, or from a fresh reading if None."""

    @abstractmethod
    def configure(self, group: dict):
        """Apply the finger's option group."""

    @abstractmethod
    def to_options(self) -> dict: ...


class PerceptiveModel(ABC):
    """Contact model over the fingers of one hand."""

    kind: ClassVar[str] = ""

    def __init__(self, source, sleep: Callable[[float], None] = time.sleep):
        self.source = source
        self.sleep = sleep
        self.nodes: Dict[str, FingerNode] = {}
        self.name = ""
        self.robot = ""
        self.type = ""
        self.verbose = False

    def configure_from(self, options: dict) -> bool:
        """Build the finger nodes. Returns False if the options are unusable."""
        self.nodes = {}
        try:
            self.name = str(options.get("name", self.kind))
            self.robot = str(options["robot"])
            self.type = str(options.get("type", "right"))
            self.verbose = bool(int(options.get("verbose", 0)))
            if self.type not in HAND_SIDES:
                raise ValueError(f"hand type must be left or right, got {self.type!r}")

            for finger in Finger:
                group = options.get(finger.value)
                if group is None:
                    continue
                if not isinstance(group, dict):
                    raise TypeError(f"options for {finger.value} must be a group")
                node = self._make_node(finger)
                node.configure(group)
                self.nodes[finger.value] = node

        except (KeyError, TypeError, ValueError) as e:
            print(f"invalid {self.kind} model options: {e}")
            self.nodes = {}
            return False

        if not self.nodes:
            print(f"{self.kind} model options name no fingers")
            return False

        return True

    def serialize_to(self) -> dict:
        options = {
            "name": self.name,
            "robot": self.robot,
            "type": self.type,
            "verbose": 1 if self.verbose else 0,
        }
        for name, node in self.nodes.items():
            options[name] = node.to_options()
        return options

    def get_node(self, finger_name: str) -> Optional[FingerNode]:
        return self.nodes.get(finger_name)

    def calibrate(self, options: dict):
        """Calibrate the node named by options["finger"]. Blocks until done."""
        finger = Finger.parse(options.get("finger"))
        node = self.nodes.get(finger.value)
        if node is None:
            raise ConfigurationError(f"{self.kind} model has no node for {finger.value}")
        self._calibrate_node(node, options)

    @abstractmethod
    def _make_node(self, finger: Finger) -> FingerNode: ...

    @abstractmethod
    def _calibrate_node(self, node: FingerNode, options: dict): ...
