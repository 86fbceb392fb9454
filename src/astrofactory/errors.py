class FactoryError(Exception):
    """Base class for configuration errors raised while building models."""


class InvalidSettingsError(FactoryError, ValueError):
    pass


class InvalidLinkEndTopologyError(FactoryError, ValueError):
    pass


class DimensionMismatchError(FactoryError, ValueError):
    pass


class UnsupportedDimensionError(DimensionMismatchError):
    pass


class MissingEnvironmentModelError(FactoryError, LookupError):
    pass


class UnrecognizedTypeError(FactoryError, NotImplementedError):
    pass


class UnsupportedError(FactoryError, NotImplementedError):
    pass


class LightTimeConvergenceError(FactoryError, RuntimeError):
    pass
