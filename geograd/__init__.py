"""geograd: Euclidean gradients of manifold costs by automatic differentiation."""

import logging

from .manifold import Manifold, AnchoredManifold
from .manifolds import (
    Euclidean,
    Sphere,
    Rotations,
    AnchoredRotations,
    FixedRankEmbedded,
    FixedRankPoint,
    ProductManifold,
)
from .problem import Problem, as_problem
from .config import AutogradConfig
from .errors import PreconditionError, ADEngineUnavailableError, CachingUnavailableWarning

from . import autodiff
from .autodiff import (
    TorchEngine,
    GradientMode,
    GradientFunction,
    EuclideanGradient,
    FixedRankGradient,
    FactorGradient,
    build,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Core
    'Manifold',
    'AnchoredManifold',
    'Problem',
    'as_problem',
    'AutogradConfig',
    # Manifolds
    'Euclidean',
    'Sphere',
    'Rotations',
    'AnchoredRotations',
    'FixedRankEmbedded',
    'FixedRankPoint',
    'ProductManifold',
    # Autodiff
    'autodiff',
    'TorchEngine',
    'GradientMode',
    'GradientFunction',
    'EuclideanGradient',
    'FixedRankGradient',
    'FactorGradient',
    'build',
    # Errors
    'PreconditionError',
    'ADEngineUnavailableError',
    'CachingUnavailableWarning',
]
