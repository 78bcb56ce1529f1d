"""Exceptions and warnings raised by geograd."""


class PreconditionError(ValueError):
    """The problem descriptor is missing its manifold or its cost."""


class ADEngineUnavailableError(EnvironmentError):
    """The automatic differentiation engine is not installed."""


class CachingUnavailableWarning(UserWarning):
    """The AD engine cannot trace and cache the gradient function.

    Gradients are still computed, only without acceleration.
    """
