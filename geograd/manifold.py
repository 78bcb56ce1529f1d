"""Base manifold classes for geograd."""

from abc import ABC, abstractmethod
from typing import Sequence

import torch
from torch import Tensor


class Manifold(ABC):
    """Abstract base class for the search spaces a cost is defined on.

    geograd only needs a manifold to identify itself and, for anchored
    manifolds, to say which blocks of a point are fixed. The geometric
    operations below are what an optimizer uses to turn the Euclidean
    gradient into a step.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable description of the manifold."""
        pass

    @property
    @abstractmethod
    def dim(self) -> int:
        """Intrinsic dimension of the manifold.

        Returns:
            The intrinsic dimension (number of degrees of freedom).
        """
        pass

    @abstractmethod
    def project(self, x):
        """Project ambient space point onto manifold.

        Args:
            x: Point in ambient space

        Returns:
            Closest point on manifold
        """
        pass

    @abstractmethod
    def random_point(self, *, device=None, dtype=None):
        """Generate a random point on the manifold.

        Args:
            device: PyTorch device
            dtype: PyTorch dtype

        Returns:
            Random point on the manifold
        """
        pass

    def project_tangent(self, p, v):
        """Project ambient vector onto tangent space at p.

        Args:
            p: Point on manifold
            v: Vector in ambient space

        Returns:
            Component of v in T_pM
        """
        raise NotImplementedError(f"{self.__class__.__name__} does not implement project_tangent")

    def random_tangent(self, p: Tensor) -> Tensor:
        """Generate random tangent vector at p."""
        return self.project_tangent(p, torch.randn_like(p))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


class AnchoredManifold(ABC):
    """Capability of manifolds whose points contain fixed blocks.

    An anchor is a slice of the point that the optimizer must never move.
    The constraint lives outside the cost function, so automatic
    differentiation cannot see it: gradient slices at the anchors are
    zeroed after the gradient is computed.

    Any class defining ``anchor_indices`` counts as anchored, whether or
    not it inherits from this mixin.

    Attributes:
        anchor_dim: Tensor dimension that ``anchor_indices`` index into.
    """

    anchor_dim: int = 0

    @classmethod
    def __subclasshook__(cls, C):
        if cls is AnchoredManifold:
            if any(callable(B.__dict__.get("anchor_indices")) for B in C.__mro__):
                return True
        return NotImplemented

    @abstractmethod
    def anchor_indices(self) -> Sequence[int]:
        """0-based indices of the anchored slices along ``anchor_dim``."""
        pass
