"""Differentiation strategies.

A strategy evaluates the cost once at the current point and extracts the
Euclidean gradient. There are two:

- :func:`euclidean_strategy` for points stored as one tensor (or a
  dictionary of tensors on product manifolds)
- :func:`fixedrank_strategy` for low-rank points ``(U, S, V)``, where only
  the products ``egrad @ V`` and ``egrad.T @ U`` are needed

Both expect the point and the factors to be leaf tensors that require
grad. The gradient handles in :mod:`geograd.autodiff.gradient` take care of
that.
"""

import logging
from collections.abc import Mapping
from typing import Any, Callable, NamedTuple, Tuple

import torch
from torch import Tensor

from ..config import AutogradConfig
from ..manifold import AnchoredManifold, Manifold
from ..manifolds.fixedrank import FixedRankPoint

logger = logging.getLogger(__name__)


def real_part(value: Any) -> Any:
    """Real part of a cost value, for costs that forgot to take it.

    Handles complex tensors, ``{"real": ..., "imag": ...}`` mappings and
    objects with ``real``/``imag`` attributes. Real values pass through.
    """
    if isinstance(value, Tensor):
        return value.real if torch.is_complex(value) else value
    if isinstance(value, Mapping) and "real" in value:
        return value["real"]
    if hasattr(value, "real") and hasattr(value, "imag"):
        return value.real
    return value


def _zero_anchors(egrad: Tensor, manifold: AnchoredManifold) -> Tensor:
    anchors = list(manifold.anchor_indices())
    if not anchors:
        return egrad
    index = torch.as_tensor(anchors, dtype=torch.long, device=egrad.device)
    return egrad.index_fill(getattr(manifold, "anchor_dim", 0), index, 0)


def euclidean_strategy(
    cost: Callable,
    manifold: Manifold,
    engine,
    config: AutogradConfig,
) -> Callable[[Any], Tuple[Tensor, Any]]:
    """
    Build ``evaluate(x) -> (value, egrad)`` for single-tensor points.

    Args:
        cost: Cost function of the problem
        manifold: Manifold of the problem; anchored manifolds get the
            gradient slices at their anchors zeroed
        engine: AD engine
        config: Gradient settings (retain_graph, create_graph)
    """
    anchored = isinstance(manifold, AnchoredManifold)

    def evaluate(x):
        value = real_part(cost(x))
        if isinstance(x, Mapping):
            keys = list(x)
            grads = engine.gradient(
                value,
                [x[k] for k in keys],
                retain_graph=config.retain_graph,
                create_graph=config.create_graph,
            )
            return value, dict(zip(keys, grads))

        egrad = engine.gradient(
            value,
            x,
            retain_graph=config.retain_graph,
            create_graph=config.create_graph,
        )
        if anchored:
            egrad = _zero_anchors(egrad, manifold)
        return value, egrad

    return evaluate


class FactorGradient(NamedTuple):
    """Gradients with respect to the two factor variables.

    For a cost f(X) with Euclidean gradient G at X = U S V^T and the default
    factors, ``A = G @ V`` and ``B = G.T @ U``.
    """

    A: Tensor
    B: Tensor


def fixedrank_strategy(
    cost: Callable,
    engine,
    config: AutogradConfig,
) -> Callable[[FixedRankPoint, Tensor, Tensor], Tuple[Tensor, FactorGradient]]:
    """
    Build ``evaluate(x, A, B) -> (value, FactorGradient)`` for low-rank points.

    The cost is evaluated twice, at ``(A, I, V)`` and at ``(U, I, B)``, and
    each value is differentiated with respect to its own factor only. With
    ``A = U S`` and ``B = V S^T`` both evaluations equal the cost at
    ``U S V^T``; only the first value is returned.

    No anchor handling is done here.
    """

    def evaluate(x: FixedRankPoint, A: Tensor, B: Tensor):
        eye = torch.eye(x.S.shape[0], dtype=x.S.dtype, device=x.S.device)
        X1 = FixedRankPoint(A, eye, x.V)
        X2 = FixedRankPoint(x.U, eye, B)
        value1 = real_part(cost(X1))
        value2 = real_part(cost(X2))
        grad_a = engine.gradient(
            value1, A, retain_graph=config.retain_graph, create_graph=config.create_graph
        )
        grad_b = engine.gradient(
            value2, B, retain_graph=config.retain_graph, create_graph=config.create_graph
        )
        if config.check_consistency:
            gap = float(torch.abs(value1.detach() - value2.detach()))
            if gap > config.consistency_atol:
                logger.warning(
                    "Decoupled fixed-rank cost values differ by %.3g (tolerance %.3g)",
                    gap, config.consistency_atol,
                )
        return value1, FactorGradient(grad_a, grad_b)

    return evaluate
