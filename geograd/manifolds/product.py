"""
ProductManifold - Cartesian Product of named manifolds.

The product manifold M = M₁ × M₂ × ... × M_k consists of tuples
(p₁, p₂, ..., p_k) where p_i ∈ M_i.

Points are dictionaries keyed by component name, so a cost can read
``x["rotation"]`` and ``x["translation"]`` directly. Autodiff returns the
Euclidean gradient as a dictionary with the same keys.
"""

from typing import Dict

from torch import Tensor
from ..manifold import Manifold


class ProductManifold(Manifold):
    """
    Product of named manifolds.

    Args:
        **components: Component manifolds, keyed by name

    Example:
        >>> from geograd.manifolds import Euclidean, Sphere
        >>> M = ProductManifold(direction=Sphere(3), offset=Euclidean(3))
        >>> x = M.random_point()
        >>> sorted(x)
        ['direction', 'offset']
    """

    def __init__(self, **components: Manifold):
        if not components:
            raise ValueError("ProductManifold requires at least one component")
        self.components = components

    @property
    def name(self) -> str:
        parts = ", ".join(f"{k}: {m.name}" for k, m in self.components.items())
        return f"Product manifold: [{parts}]"

    @property
    def dim(self) -> int:
        return sum(m.dim for m in self.components.values())

    def project(self, x: Dict[str, Tensor]) -> Dict[str, Tensor]:
        return {k: m.project(x[k]) for k, m in self.components.items()}

    def project_tangent(self, p: Dict[str, Tensor], v: Dict[str, Tensor]) -> Dict[str, Tensor]:
        return {k: m.project_tangent(p[k], v[k]) for k, m in self.components.items()}

    def random_point(self, *, device=None, dtype=None) -> Dict[str, Tensor]:
        return {k: m.random_point(device=device, dtype=dtype) for k, m in self.components.items()}

    def random_tangent(self, p: Dict[str, Tensor]) -> Dict[str, Tensor]:
        return {k: m.random_tangent(p[k]) for k, m in self.components.items()}
