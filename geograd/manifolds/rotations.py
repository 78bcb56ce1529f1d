"""Products of rotation groups, optionally with anchored factors."""

from typing import Sequence, Tuple

import torch
from torch import Tensor
from ..manifold import Manifold, AnchoredManifold


def _skew(A: Tensor) -> Tensor:
    return 0.5 * (A - A.transpose(-1, -2))


class Rotations(Manifold):
    """
    Product SO(n)^k of k rotation groups.

    Points are stacked rotation matrices of shape (k, n, n), so
    ``x[i]`` is the i-th rotation.

    Args:
        n: Size of each rotation matrix
        k: Number of rotations (default: 1)
    """

    def __init__(self, n: int, k: int = 1):
        if n < 1:
            raise ValueError(f"Rotations requires n >= 1, got {n}")
        if k < 1:
            raise ValueError(f"Rotations requires k >= 1, got {k}")
        self.n = n
        self.k = k

    @property
    def name(self) -> str:
        return f"Product rotations manifold SO({self.n})^{self.k}"

    @property
    def dim(self) -> int:
        return self.k * self.n * (self.n - 1) // 2

    @property
    def shape(self) -> Tuple[int, int, int]:
        return (self.k, self.n, self.n)

    def project(self, x: Tensor) -> Tensor:
        """Nearest rotation to each slice, via the polar decomposition.

        A sign flip on the last singular direction keeps det = +1.
        """
        U, _, Vh = torch.linalg.svd(x)
        d = torch.sign(torch.linalg.det(U @ Vh))
        U = torch.cat([U[..., :-1], U[..., -1:] * d[..., None, None]], dim=-1)
        return U @ Vh

    def project_tangent(self, p: Tensor, v: Tensor) -> Tensor:
        """Tangent vectors at p are p times a skew-symmetric matrix."""
        return p @ _skew(p.transpose(-1, -2) @ v)

    def random_point(self, *, device=None, dtype=None) -> Tensor:
        return self.project(torch.randn(*self.shape, device=device, dtype=dtype))


class AnchoredRotations(Rotations, AnchoredManifold):
    """
    SO(n)^k where some rotations are fixed.

    The anchored rotations never move during optimization. Their gradient
    slices along dimension 0 are zeroed by the autodiff strategy.

    Args:
        n: Size of each rotation matrix
        k: Number of rotations
        anchors: 0-based indices of the fixed rotations (default: (0,))

    Example:
        >>> M = AnchoredRotations(3, 4, anchors=[0, 2])
        >>> M.anchor_indices()
        (0, 2)
    """

    anchor_dim = 0

    def __init__(self, n: int, k: int, anchors: Sequence[int] = (0,)):
        super().__init__(n, k)
        anchors = tuple(sorted(set(int(a) for a in anchors)))
        for a in anchors:
            if not 0 <= a < k:
                raise ValueError(f"Anchor index {a} out of range for k={k}")
        self.anchors = anchors

    @property
    def name(self) -> str:
        return f"Product rotations manifold SO({self.n})^{self.k} with {len(self.anchors)} anchors"

    @property
    def dim(self) -> int:
        return (self.k - len(self.anchors)) * self.n * (self.n - 1) // 2

    def anchor_indices(self) -> Tuple[int, ...]:
        return self.anchors

    def project_tangent(self, p: Tensor, v: Tensor) -> Tensor:
        t = super().project_tangent(p, v)
        t[list(self.anchors)] = 0
        return t
