"""Euclidean space manifold."""

import math

import torch
from torch import Tensor
from ..manifold import Manifold


class Euclidean(Manifold):
    """
    Euclidean space R^{n1 x n2 x ...} with flat metric.

    Every tensor of the right shape is a point and every direction is
    tangent, so the Euclidean gradient returned by autodiff is already the
    Riemannian one.

    Args:
        *shape: Shape of a point, e.g. ``Euclidean(3)`` or ``Euclidean(4, 2)``
    """

    def __init__(self, *shape: int):
        if not shape:
            raise ValueError("Euclidean requires at least one dimension")
        if any(n < 1 for n in shape):
            raise ValueError(f"Invalid Euclidean shape: {shape}")
        self.shape = tuple(shape)

    @property
    def name(self) -> str:
        return "Euclidean space R^({})".format(", ".join(str(n) for n in self.shape))

    @property
    def dim(self) -> int:
        """Intrinsic dimension of the manifold."""
        return math.prod(self.shape)

    def project(self, x: Tensor) -> Tensor:
        """Every point is already on the manifold."""
        return x

    def project_tangent(self, p: Tensor, v: Tensor) -> Tensor:
        """The tangent space is the entire space."""
        return v

    def random_point(self, *, device=None, dtype=None) -> Tensor:
        """Sample a point from the standard normal distribution."""
        return torch.randn(*self.shape, device=device, dtype=dtype)

    def random_tangent(self, p: Tensor) -> Tensor:
        return torch.randn_like(p)
