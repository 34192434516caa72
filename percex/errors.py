"""Exceptions raised while setting up or running the contact probe."""


class ProbeError(Exception):
    """Base class for contact probe failures."""


class ConfigurationError(ProbeError, ValueError):
    """Unknown finger or model kind, malformed options, inverted limits."""


class ResourceAcquisitionError(ProbeError, RuntimeError):
    """The joint driver could not be opened or the model refused its options."""


class RuntimeHardwareError(ProbeError, RuntimeError):
    """A command or feedback read failed while the probe was running."""
