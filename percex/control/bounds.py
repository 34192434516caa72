"""Safe operating interval of a joint."""

from dataclasses import dataclass

from percex.errors import ConfigurationError


DEFAULT_MARGIN = 0.1


@dataclass(frozen=True)
class OperatingBounds:
    """Margined [low, high] interval the probe oscillates within."""

    low: float
    high: float

    @property
    def span(self) -> float:
        return self.high - self.low

    def __contains__(self, position: float) -> bool:
        return self.low <= position <= self.high


def compute_bounds(raw_low: float, raw_high: float, margin: float = DEFAULT_MARGIN) -> OperatingBounds:
    """
    Trim `margin` of the joint span from each end of the hardware limits.

    With the default margin, limits (0, 100) give bounds (10, 90).

    Raises:
        ConfigurationError: if the limits are degenerate or inverted, or the
            margin would leave no travel.
    """
    if not raw_high > raw_low:
        raise ConfigurationError(f"invalid joint limits [{raw_low}, {raw_high}]: high must exceed low")
    if not 0.0 <= margin < 0.5:
        raise ConfigurationError(f"margin must be in [0, 0.5), got {margin}")

    trim = margin * (raw_high - raw_low)
    return OperatingBounds(low=raw_low + trim, high=raw_high - trim)
