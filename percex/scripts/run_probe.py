"""
Finger contact probe module.

Drives one finger back and forth between the safe ends of its joint range
and prints what the perceptive model reports at every tick. With the
springy model a calibration sweep runs first.

Usage:
    percex-probe --finger index --model springy
    percex-probe --sim --finger ring --model tactile --contact-at 150
    percex-probe --config probe.json --max-ticks 600 --log-dir data/probe

Exit status is 0 after a clean shutdown and 1 when the controller is not
reachable, setup fails, or a hardware error stops the loop.
"""

import json
import sys
import time
from typing import Callable, Optional

from percex.config import Finger, ProbeConfig, driver_options, model_options, parse_config
from percex.control.bounds import compute_bounds
from percex.control.probe import ContactProbeLoop, SensorReport, print_report
from percex.data.probe_log import ProbeRecorder
from percex.errors import ProbeError, ResourceAcquisitionError
from percex.hardware.driver import JointDriver, SerialJointDriver, check_transport
from percex.hardware.sim import SimJointDriver
from percex.models import make_model


class ProbeModule:
    """
    Owns the driver, the model and the probe loop for one run.

    configure() builds everything and fails fast, releasing whatever it
    opened. run() ticks the loop at the configured period until max_ticks
    or Ctrl+C, then close() releases the driver and prints the final
    model options.
    """

    def __init__(
        self,
        config: ProbeConfig,
        driver: Optional[JointDriver] = None,
        sink: Callable[[SensorReport], None] = print_report,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.driver = driver
        self.sink = sink
        self.sleep = sleep
        self.clock = clock

        self.model = None
        self.loop: Optional[ContactProbeLoop] = None
        self.recorder: Optional[ProbeRecorder] = None
        self._opened = False

    def configure(self):
        """
        Raises:
            ConfigurationError: unknown finger or model kind, bad limits
            ResourceAcquisitionError: driver did not open, model refused options
        """
        config = self.config
        finger = Finger.parse(config.finger)

        driver = self.driver or self._make_driver()
        model = make_model(config.model, driver, sleep=self.sleep)

        options = driver_options(config)
        if not driver.open(options):
            raise ResourceAcquisitionError(f"could not open {options['device']} for {options['remote']}")

        try:
            raw_low, raw_high = driver.get_limits(finger.joint)
            bounds = compute_bounds(raw_low, raw_high, config.margin)

            options = model_options(config)
            if config.verbose:
                print(f"configuring options: {json.dumps(options)}")
            if not model.configure_from(options):
                raise ResourceAcquisitionError(f"{config.model} model rejected its options")

            loop = ContactProbeLoop(
                driver,
                model,
                finger,
                bounds,
                threshold=config.threshold,
                sink=self.sink,
            )

            recorder = None
            if config.log_dir:
                recorder = ProbeRecorder()
                recorder.start(config.log_dir)
                loop.recorder = recorder
        except Exception:
            driver.close()
            raise

        self.driver = driver
        self.model = model
        self.loop = loop
        self.recorder = recorder
        self._opened = True

        if config.verbose:
            print(f"Finger: {finger.value} (joint {finger.joint})")
            print(f"Raw limits: [{raw_low:.1f}, {raw_high:.1f}] -> bounds [{bounds.low:.1f}, {bounds.high:.1f}]")
            if recorder:
                print(f"Logging to: {recorder.log_file}")

    def run(self):
        """Tick until max_ticks or Ctrl+C. Hardware errors propagate after close()."""
        if self.loop is None:
            self.configure()

        max_ticks = self.config.max_ticks
        try:
            while max_ticks is None or self.loop.ticks < max_ticks:
                start = self.clock()
                self.loop.tick()
                elapsed = self.clock() - start
                self.sleep(max(0.0, self.config.period - elapsed))
        except KeyboardInterrupt:
            pass
        finally:
            self.close()

    def close(self):
        """Close the hardware connection, then report the model state."""
        if not self._opened:
            return
        self._opened = False

        try:
            self.driver.close()
        finally:
            if self.recorder:
                log_file = self.recorder.stop()
                print(f"Probe log: {log_file}")

            options = self.model.serialize_to()
            print(f"model options: {json.dumps(options)}")

    def _make_driver(self) -> JointDriver:
        if self.config.sim:
            return SimJointDriver(contact_at=self.config.contact_at, clock=self.clock)
        return SerialJointDriver(self.config.port, self.config.baudrate)


def main(argv=None) -> int:
    try:
        config = parse_config(argv)
    except ProbeError as e:
        print(f"ERROR: {e}")
        return 1

    port = check_transport(config.port, sim=config.sim)
    if not port:
        print("ERROR: Hand controller not available! Connect device and try again.")
        return 1

    if config.verbose:
        print(f"Module: {config.name}")
        print(f"Controller: {port}")
        print(f"Model: {config.model}")

    if not config.sim:
        config.port = port

    module = ProbeModule(config)
    try:
        module.configure()
    except ProbeError as e:
        print(f"ERROR: {e}")
        return 1

    try:
        module.run()
    except ProbeError as e:
        print(f"\nERROR: probe stopped: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
