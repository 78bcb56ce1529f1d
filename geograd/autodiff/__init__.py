"""Automatic differentiation of cost functions."""

from .engine import TorchEngine
from .strategies import FactorGradient, euclidean_strategy, fixedrank_strategy, real_part
from .gradient import (
    GradientMode,
    GradientFunction,
    EuclideanGradient,
    FixedRankGradient,
    build,
)

__all__ = [
    'TorchEngine',
    'FactorGradient',
    'euclidean_strategy',
    'fixedrank_strategy',
    'real_part',
    'GradientMode',
    'GradientFunction',
    'EuclideanGradient',
    'FixedRankGradient',
    'build',
]
