"""Perceptive models for finger contact detection."""

from percex.errors import ConfigurationError
from percex.models.base import FingerNode, PerceptiveModel
from percex.models.springy import SpringyFinger, SpringyFingersModel
from percex.models.tactile import TactileFinger, TactileFingersModel


MODELS = {
    SpringyFingersModel.kind: SpringyFingersModel,
    TactileFingersModel.kind: TactileFingersModel,
}


def make_model(kind: str, source, **kwargs) -> PerceptiveModel:
    """Build an unconfigured model of the given kind reading from `source`."""
    if kind not in MODELS:
        raise ConfigurationError(f"unknown model type {kind!r} (choose from {', '.join(MODELS)})")
    return MODELS[kind](source, **kwargs)


__all__ = [
    "FingerNode",
    "PerceptiveModel",
    "SpringyFinger",
    "SpringyFingersModel",
    "TactileFinger",
    "TactileFingersModel",
    "MODELS",
    "make_model",
]
