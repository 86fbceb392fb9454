from . import environment, estimation, propagation
from .config import CaseSetup
from .errors import (
    FactoryError,
    InvalidSettingsError,
    InvalidLinkEndTopologyError,
    DimensionMismatchError,
    UnsupportedDimensionError,
    MissingEnvironmentModelError,
    UnrecognizedTypeError,
    UnsupportedError,
    LightTimeConvergenceError,
)

__all__ = [
    "environment",
    "estimation",
    "propagation",
    "CaseSetup",
    "FactoryError",
    "InvalidSettingsError",
    "InvalidLinkEndTopologyError",
    "DimensionMismatchError",
    "UnsupportedDimensionError",
    "MissingEnvironmentModelError",
    "UnrecognizedTypeError",
    "UnsupportedError",
    "LightTimeConvergenceError",
]
