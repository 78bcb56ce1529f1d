"""Fixed-rank matrices with the embedded geometry."""

from typing import NamedTuple

import torch
from torch import Tensor
from ..manifold import Manifold


class FixedRankPoint(NamedTuple):
    """Low-rank point X = U @ S @ V.T.

    U is (m, k) and V is (n, k), both with orthonormal columns. S is (k, k).
    """

    U: Tensor
    S: Tensor
    V: Tensor


class FixedRankEmbedded(Manifold):
    """
    Manifold of m x n real matrices of rank k, embedded in R^{m x n}.

    Points are stored in factored form as :class:`FixedRankPoint` and never
    as full matrices. Costs defined on this manifold receive a
    ``FixedRankPoint`` and typically form ``U @ S @ V.T`` (or a cheaper
    expression of it) themselves.

    Args:
        m: Number of rows
        n: Number of columns
        k: Rank, 1 <= k <= min(m, n)
    """

    def __init__(self, m: int, n: int, k: int):
        if not 1 <= k <= min(m, n):
            raise ValueError(f"Rank must satisfy 1 <= k <= min(m, n), got k={k}")
        self.m = m
        self.n = n
        self.k = k

    @property
    def name(self) -> str:
        return f"Manifold of {self.m}x{self.n} matrices of rank {self.k}"

    @property
    def dim(self) -> int:
        return (self.m + self.n - self.k) * self.k

    @staticmethod
    def to_matrix(x: FixedRankPoint) -> Tensor:
        """Expand a factored point to its full m x n matrix."""
        return x.U @ x.S @ x.V.transpose(-1, -2)

    def project(self, X: Tensor) -> FixedRankPoint:
        """Best rank-k approximation of X (truncated SVD)."""
        U, s, Vh = torch.linalg.svd(X, full_matrices=False)
        k = self.k
        return FixedRankPoint(U[:, :k], torch.diag(s[:k]), Vh[:k].transpose(-1, -2))

    def random_point(self, *, device=None, dtype=None) -> FixedRankPoint:
        U, _ = torch.linalg.qr(torch.randn(self.m, self.k, device=device, dtype=dtype))
        V, _ = torch.linalg.qr(torch.randn(self.n, self.k, device=device, dtype=dtype))
        s = torch.rand(self.k, device=device, dtype=dtype) + 1.0
        return FixedRankPoint(U, torch.diag(s), V)
