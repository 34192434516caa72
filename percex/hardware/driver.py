"""
Joint driver capability and the serial hand controller.

The controller speaks a newline-terminated ASCII protocol, one reply per
request:

    H <remote>          -> ok            select the arm to drive
    L <joint>           -> low,high      travel limits
    A <joint> <value>   -> ok            reference acceleration
    V <joint> <value>   -> ok            reference speed
    P <joint> <target>  -> ok            position move
    E <joint>           -> position      encoder feedback
    D <finger>          -> a1,a2,...     distal joint angles
    T <finger>          -> t1,t2,...     fingertip taxels

Lines starting with '#' are controller chatter and are skipped. A reply
starting with 'err', an empty reply (timeout) or a serial failure raise
RuntimeHardwareError.
"""

import os
import time
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import numpy as np
import serial
import serial.tools.list_ports

from percex.errors import RuntimeHardwareError


class JointDriver(ABC):
    """Position control, encoders and fingertip sensing for one arm."""

    @abstractmethod
    def open(self, options: dict) -> bool:
        """Connect to the arm. Returns False if the device is unavailable."""

    @abstractmethod
    def get_limits(self, joint: int) -> Tuple[float, float]: ...

    @abstractmethod
    def set_ref_acceleration(self, joint: int, value: float): ...

    @abstractmethod
    def set_ref_speed(self, joint: int, value: float): ...

    @abstractmethod
    def position_move(self, joint: int, target: float): ...

    @abstractmethod
    def get_encoder(self, joint: int) -> float: ...

    @abstractmethod
    def get_distal_encoders(self, finger: str) -> np.ndarray:
        """Angles of the passively coupled joints of a finger."""

    @abstractmethod
    def get_taxels(self, finger: str) -> np.ndarray:
        """Raw readings of the fingertip tactile pad."""

    @abstractmethod
    def close(self): ...


# Common USB-serial chip identifiers of hand controller boards
CONTROLLER_IDS = ["CP210", "CH340", "SLAB", "Silicon Labs", "USB Serial", "FTDI"]


def find_controller_port() -> Optional[str]:
    """Auto-detect the hand controller serial port."""
    ports = serial.tools.list_ports.comports()

    for port in ports:
        desc = f"{port.description} {port.manufacturer or ''}"
        if any(id in desc for id in CONTROLLER_IDS):
            return port.device

    # Fallback to first available
    if ports:
        return ports[0].device

    return None


def check_transport(port: Optional[str] = None, sim: bool = False) -> Optional[str]:
    """
    Readiness check run once before anything else is built.

    Returns the port to use ("sim" in simulation), or None when no
    controller is reachable.
    """
    if sim:
        return "sim"
    if port:
        listed = {p.device for p in serial.tools.list_ports.comports()}
        return port if port in listed or os.path.exists(port) else None
    return find_controller_port()


class SerialJointDriver(JointDriver):
    """Drives an arm through a hand controller on a serial port."""

    MAX_CHATTER_LINES = 10

    def __init__(
        self,
        port: Optional[str] = None,
        baudrate: int = 115200,
        timeout: float = 0.5,
        reset_delay: float = 2.0,
    ):
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.reset_delay = reset_delay
        self.serial: Optional[serial.Serial] = None
        self.remote: Optional[str] = None

    def open(self, options: dict) -> bool:
        self.port = options.get("port") or self.port or find_controller_port()
        self.baudrate = options.get("baudrate") or self.baudrate
        if not self.port:
            print("No controller port specified and auto-detect failed")
            return False

        try:
            self.serial = serial.Serial(self.port, self.baudrate, timeout=self.timeout)
            time.sleep(self.reset_delay)  # Board resets when the port opens
            self.serial.reset_input_buffer()
        except serial.SerialException as e:
            print(f"Connection failed: {e}")
            self.serial = None
            return False

        self.remote = options.get("remote")
        if self.remote:
            try:
                self._request_ok(f"H {self.remote}")
            except RuntimeHardwareError as e:
                print(f"Controller handshake failed: {e}")
                self.close()
                return False

        return True

    def close(self):
        if self.serial:
            self.serial.close()
            self.serial = None

    def get_limits(self, joint: int) -> Tuple[float, float]:
        low, high = self._request_floats(f"L {joint}", count=2)
        return low, high

    def set_ref_acceleration(self, joint: int, value: float):
        self._request_ok(f"A {joint} {value:g}")

    def set_ref_speed(self, joint: int, value: float):
        self._request_ok(f"V {joint} {value:g}")

    def position_move(self, joint: int, target: float):
        self._request_ok(f"P {joint} {target:g}")

    def get_encoder(self, joint: int) -> float:
        return self._request_floats(f"E {joint}", count=1)[0]

    def get_distal_encoders(self, finger: str) -> np.ndarray:
        return np.array(self._request_floats(f"D {finger}"))

    def get_taxels(self, finger: str) -> np.ndarray:
        return np.array(self._request_floats(f"T {finger}"))

    def _request(self, command: str) -> str:
        if not self.serial:
            raise RuntimeHardwareError(f"{command!r}: controller not connected")

        try:
            self.serial.write(f"{command}\n".encode("utf-8"))
            for _ in range(self.MAX_CHATTER_LINES):
                line = self.serial.readline().decode("utf-8").strip()
                if not line.startswith("#"):
                    break
            else:
                line = ""
        except (serial.SerialException, UnicodeDecodeError) as e:
            raise RuntimeHardwareError(f"{command!r}: {e}") from e

        if not line:
            raise RuntimeHardwareError(f"{command!r}: no reply from controller")
        if line.startswith("err"):
            raise RuntimeHardwareError(f"{command!r}: {line}")
        return line

    def _request_ok(self, command: str):
        reply = self._request(command)
        if reply != "ok":
            raise RuntimeHardwareError(f"{command!r}: unexpected reply {reply!r}")

    def _request_floats(self, command: str, count: Optional[int] = None) -> List[float]:
        reply = self._request(command)
        try:
            values = [float(v) for v in reply.split(",")]
        except ValueError:
            raise RuntimeHardwareError(f"{command!r}: malformed reply {reply!r}") from None
        if count is not None and len(values) != count:
            raise RuntimeHardwareError(f"{command!r}: expected {count} values, got {reply!r}")
        return values
