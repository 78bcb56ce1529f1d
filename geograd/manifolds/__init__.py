"""Manifold implementations."""

from .euclidean import Euclidean
from .sphere import Sphere
from .rotations import Rotations, AnchoredRotations
from .fixedrank import FixedRankEmbedded, FixedRankPoint
from .product import ProductManifold

__all__ = [
    'Euclidean',
    'Sphere',
    'Rotations',
    'AnchoredRotations',
    'FixedRankEmbedded',
    'FixedRankPoint',
    'ProductManifold',
]
