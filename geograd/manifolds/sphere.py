"""Sphere manifold."""

import torch
from torch import Tensor
from ..manifold import Manifold


class Sphere(Manifold):
    """Unit sphere S^{n-1} embedded in ℝⁿ.

    The sphere consists of all points x in ℝⁿ such that ||x|| = 1.
    Note: Sphere(n) creates the (n-1)-dimensional sphere S^{n-1} embedded in ℝⁿ.

    Args:
        n: Ambient dimension (creates S^{n-1} sphere)

    Examples:
        >>> S = Sphere(3)  # Creates S^2 (2-sphere) in R^3
        >>> p = S.random_point()
        >>> assert torch.allclose(torch.norm(p), torch.tensor(1.0))
    """

    def __init__(self, n: int):
        if n < 2:
            raise ValueError(f"Sphere requires n >= 2, got {n}")
        self._ambient_dim = n
        self._eps = 1e-7  # For numerical stability

    @property
    def name(self) -> str:
        return f"Sphere S^{self._ambient_dim - 1}"

    @property
    def dim(self) -> int:
        """Intrinsic dimension of the sphere (n-1 for S^{n-1})."""
        return self._ambient_dim - 1

    def project(self, x: Tensor) -> Tensor:
        """Project onto the sphere by normalization."""
        norm_x = torch.linalg.norm(x, dim=-1, keepdim=True)
        return x / torch.clamp(norm_x, min=self._eps)

    def project_tangent(self, p: Tensor, v: Tensor) -> Tensor:
        """Project v onto T_pS: v - <v, p> p."""
        dot_vp = (v * p).sum(dim=-1, keepdim=True)
        return v - dot_vp * p

    def random_point(self, *, device=None, dtype=None) -> Tensor:
        """Uniform random point, sampled as a normalized Gaussian vector."""
        x = torch.randn(self._ambient_dim, device=device, dtype=dtype)
        return self.project(x)
