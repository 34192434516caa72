"""
Probe configuration.

Settings are resolved from the dataclass defaults, an optional JSON file
(--config) and command-line flags, in increasing order of precedence.
The helpers at the bottom turn a resolved config into the option dicts
handed to the joint driver and to the perceptive model.
"""

import argparse
import json
from dataclasses import asdict, dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Optional, get_args, get_type_hints

from percex.errors import ConfigurationError


MODEL_KINDS = ("springy", "tactile")
HAND_SIDES = ("left", "right")


class Finger(str, Enum):
    """The closed set of fingers the probe can drive."""

    THUMB = "thumb"
    INDEX = "index"
    MIDDLE = "middle"
    RING = "ring"
    LITTLE = "little"

    @property
    def joint(self) -> int:
        """Arm joint index actuating this finger."""
        return FINGER_JOINTS[self]

    @classmethod
    def parse(cls, name) -> "Finger":
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            choices = ", ".join(f.value for f in cls)
            raise ConfigurationError(f"unknown finger {name!r} (choose from {choices})") from None


# Ring and little share the same motor.
FINGER_JOINTS = {
    Finger.THUMB: 10,
    Finger.INDEX: 12,
    Finger.MIDDLE: 14,
    Finger.RING: 15,
    Finger.LITTLE: 15,
}


@dataclass
class ProbeConfig:
    """Configuration for one contact probe module."""

    # Identity
    name: str = "percex"
    robot: str = "icub"
    hand: str = "right"

    # What to probe with
    model: str = "springy"
    finger: str = "index"

    # Loop
    period: float = 0.1  # seconds between ticks
    margin: float = 0.1  # fraction of the joint span trimmed from each end
    threshold: float = 5.0  # convergence distance, joint units
    max_ticks: Optional[int] = None

    # Transport
    port: Optional[str] = None
    baudrate: int = 115200
    sim: bool = False
    contact_at: Optional[float] = None  # simulated obstacle position

    # Output
    log_dir: Optional[str] = None
    verbose: bool = True

    @classmethod
    def from_dict(cls, values: dict) -> "ProbeConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"unknown configuration keys: {', '.join(unknown)}")
        hints = get_type_hints(cls)
        return cls(**{k: _check_field(k, v, hints[k]) for k, v in values.items()})

    @classmethod
    def from_file(cls, path) -> "ProbeConfig":
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"config file not found: {path}")
        try:
            with open(path) as f:
                values = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"malformed config file {path}: {e}") from e
        if not isinstance(values, dict):
            raise ConfigurationError(f"config file {path} must hold a JSON object")
        return cls.from_dict(values)

    def to_dict(self) -> dict:
        return asdict(self)


def _check_field(name: str, value, hint):
    """Validate one config value against its field annotation."""
    args = get_args(hint)
    if type(None) in args:
        if value is None:
            return None
        hint = next(a for a in args if a is not type(None))

    # bool is an int subclass, so match exact types
    if hint is float and type(value) in (int, float):
        return float(value)
    if type(value) is hint:
        return value
    raise ConfigurationError(f"{name} must be {hint.__name__}, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    # Every default is None so that only flags given on the command line
    # override the config file.
    parser = argparse.ArgumentParser(description="Detect finger contacts with a perceptive model")
    parser.add_argument("--config", help="JSON file with configuration values")
    parser.add_argument("--name", default=None, help="Module name (default: percex)")
    parser.add_argument("--robot", default=None, help="Robot name, e.g. icub or icubSim")
    parser.add_argument("--hand", default=None, choices=HAND_SIDES, help="Hand to use (default: right)")
    parser.add_argument("--model", "--modelType", dest="model", default=None,
                        help="Perceptive model: springy or tactile")
    parser.add_argument("--finger", default=None,
                        help="Finger to probe: thumb, index, middle, ring or little")
    parser.add_argument("--period", type=float, default=None, help="Tick period in seconds")
    parser.add_argument("--margin", type=float, default=None,
                        help="Fraction of the joint span kept clear at each end")
    parser.add_argument("--threshold", type=float, default=None,
                        help="Distance to the target considered as arrived")
    parser.add_argument("--max-ticks", type=int, default=None, help="Stop after this many ticks")
    parser.add_argument("--port", default=None, help="Controller serial port (auto-detect if not specified)")
    parser.add_argument("--baudrate", type=int, default=None, help="Controller baud rate")
    parser.add_argument("--sim", action="store_true", default=None, help="Use the simulated hand")
    parser.add_argument("--contact-at", type=float, default=None,
                        help="Simulated obstacle position on the probed joint")
    parser.add_argument("--log-dir", default=None, help="Write a CSV probe log to this directory")
    parser.add_argument("--quiet", dest="verbose", action="store_false", default=None,
                        help="Only print sensor reports")
    return parser


def parse_config(argv=None) -> ProbeConfig:
    """Resolve a ProbeConfig from defaults, --config file and flags."""
    args = vars(build_parser().parse_args(argv))
    config_path = args.pop("config")

    config = ProbeConfig.from_file(config_path) if config_path else ProbeConfig()
    overrides = {k: v for k, v in args.items() if v is not None}
    return ProbeConfig.from_dict({**config.to_dict(), **overrides})


def driver_options(config: ProbeConfig) -> dict:
    return {
        "device": "sim_hand" if config.sim else "serial_controlboard",
        "remote": f"/{config.robot}/{config.hand}_arm",
        "local": f"/{config.name}",
        "port": config.port,
        "baudrate": config.baudrate,
    }


def model_options(config: ProbeConfig) -> dict:
    """General model settings plus one named group per finger."""
    options = {
        "name": f"{config.name}/{config.model}",
        "robot": config.robot,
        "type": config.hand,
        "verbose": 1 if config.verbose else 0,
    }
    for finger in Finger:
        options[finger.value] = {"name": finger.value}
    return options
