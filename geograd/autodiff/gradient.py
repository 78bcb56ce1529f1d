"""Euclidean gradient functions built by automatic differentiation.

:func:`build` is the entry point. Given a problem it returns a gradient
function, which is an owned handle that an optimizer calls once per
iteration:

    >>> import torch
    >>> from geograd import Problem, build
    >>> from geograd.manifolds import Euclidean
    >>> egrad = build(Problem(Euclidean(3), lambda x: (x ** 2).sum()))
    >>> value, grad = egrad(torch.tensor([1.0, 2.0, 3.0]))
    >>> value.item(), grad.tolist()
    (14.0, [2.0, 4.0, 6.0])

A handle owns its compiled trace (if any). Handles are not thread-safe:
give every thread its own handle.
"""

import enum
import logging
import warnings
from collections.abc import Mapping
from typing import Any, Callable, Optional, Set, Tuple

import numpy as np
import torch
from torch import Tensor

from ..config import AutogradConfig
from ..errors import ADEngineUnavailableError, CachingUnavailableWarning
from ..manifolds.fixedrank import FixedRankPoint
from ..problem import as_problem
from .engine import TorchEngine
from .strategies import FactorGradient, euclidean_strategy, fixedrank_strategy

logger = logging.getLogger(__name__)


class GradientMode(enum.Enum):
    """How points are represented, and therefore how they are differentiated."""

    GENERIC = "generic"
    FIXEDRANK = "fixedrank"

    @classmethod
    def coerce(cls, mode: Any) -> "GradientMode":
        """Accept enum members, names, booleans/ints and ``None``.

        ``None``, ``False``, ``0`` and ``""`` select the generic mode.
        ``True`` and ``1`` select the fixed-rank mode.
        """
        if isinstance(mode, cls):
            return mode
        if mode is None or mode is False or mode == "":
            return cls.GENERIC
        if mode is True:
            return cls.FIXEDRANK
        if isinstance(mode, int):
            if mode in (0, 1):
                return cls.FIXEDRANK if mode else cls.GENERIC
            raise ValueError(f"Invalid gradient mode: {mode!r}")
        if isinstance(mode, str):
            key = mode.lower().replace("_", "-")
            if key == "generic":
                return cls.GENERIC
            if key in ("fixedrank", "fixed-rank", "factorized-embedded"):
                return cls.FIXEDRANK
        raise ValueError(f"Invalid gradient mode: {mode!r}")


def _as_leaf(x: Any) -> Tensor:
    if isinstance(x, np.ndarray):
        x = torch.from_numpy(x)
    x = torch.as_tensor(x)
    if not (x.is_floating_point() or x.is_complex()):
        x = x.to(torch.get_default_dtype())
    return x.detach().clone().requires_grad_(True)


def _signature(x: Any) -> Tuple:
    if isinstance(x, Mapping):
        return tuple((k,) + _signature(v) for k, v in x.items())
    return (tuple(x.shape), x.dtype, x.device)


def _detach(obj: Any) -> Any:
    if isinstance(obj, Tensor):
        return obj.detach()
    if isinstance(obj, FactorGradient):
        return FactorGradient(obj.A.detach(), obj.B.detach())
    if isinstance(obj, dict):
        return {k: _detach(v) for k, v in obj.items()}
    return obj


class GradientFunction:
    """
    Base class of the handles returned by :func:`build`.

    Attributes:
        mode: Representation of points this handle differentiates
        manifold: Manifold of the problem
        config: Settings the handle was built with
    """

    mode: GradientMode

    def __init__(self, manifold, config: AutogradConfig):
        self.manifold = manifold
        self.config = config

    @property
    def cached(self) -> bool:
        """Whether calls go through a compiled trace."""
        return False

    def invalidate(self) -> None:
        """Drop any cached trace; the next call retraces."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(manifold={self.manifold.name!r}, cached={self.cached})"


class EuclideanGradient(GradientFunction):
    """
    Gradient function for points stored as a tensor or a dict of tensors.

    Calling the handle returns ``(value, egrad)``, both detached from the
    autograd graph. When built with an engine that supports caching, the
    strategy is compiled once and reused for every input signature
    (shape, dtype, device) already seen.

    Args:
        strategy: ``evaluate(x) -> (value, egrad)`` from :func:`euclidean_strategy`
        engine: AD engine used to trace the strategy
        manifold: Manifold of the problem
        config: Gradient settings
        accelerate: Trace the strategy with ``engine.trace``
    """

    mode = GradientMode.GENERIC

    def __init__(
        self,
        strategy: Callable,
        engine,
        manifold,
        config: AutogradConfig,
        accelerate: bool = True,
    ):
        super().__init__(manifold, config)
        self._strategy = strategy
        self._engine = engine
        self._traced: Optional[Callable] = None
        self._signatures: Set[Tuple] = set()
        if accelerate:
            self._traced = engine.trace(strategy)
            # A fresh trace must not pick up frames from an earlier problem.
            self.invalidate()

    @property
    def cached(self) -> bool:
        return self._traced is not None

    @property
    def num_traces(self) -> int:
        """Distinct input signatures traced since the last invalidate.

        Always 0 for uncached handles. Counts what this handle has fed to
        the trace, not the recompiles the engine decides to do.
        """
        return len(self._signatures)

    def invalidate(self) -> None:
        if self._traced is not None:
            self._engine.clear_cache(self._traced)
        self._signatures.clear()

    def __call__(self, x):
        if isinstance(x, Mapping):
            x = {k: _as_leaf(v) for k, v in x.items()}
        else:
            x = _as_leaf(x)

        fn = self._strategy
        if self._traced is not None:
            fn = self._traced
            signature = _signature(x)
            if signature not in self._signatures:
                self._signatures.add(signature)
                logger.debug("Tracing gradient of %s for input %s", self.manifold.name, signature)

        with torch.enable_grad():
            value, egrad = fn(x)
        return _detach(value), _detach(egrad)


class FixedRankGradient(GradientFunction):
    """
    Gradient function for low-rank points ``FixedRankPoint(U, S, V)``.

    ``handle(x, A, B)`` returns ``(value, FactorGradient(A=..., B=...))``
    where ``A`` is the gradient of ``cost(A, I, V)`` with respect to ``A``
    and ``B`` the gradient of ``cost(U, I, B)`` with respect to ``B``.
    :meth:`at` picks the factors for which these are ``egrad @ V`` and
    ``egrad.T @ U``.

    The strategy is never compiled: each call evaluates the cost at two
    different synthetic points, which defeats trace reuse.
    """

    mode = GradientMode.FIXEDRANK

    def __init__(self, strategy: Callable, manifold, config: AutogradConfig):
        super().__init__(manifold, config)
        self._strategy = strategy

    def __call__(self, x: FixedRankPoint, A, B) -> Tuple[Tensor, FactorGradient]:
        x = FixedRankPoint(*(torch.as_tensor(f).detach() for f in x))
        A = _as_leaf(A)
        B = _as_leaf(B)
        with torch.enable_grad():
            value, grads = self._strategy(x, A, B)
        return _detach(value), _detach(grads)

    def at(self, x: FixedRankPoint) -> Tuple[Tensor, FactorGradient]:
        """Evaluate at the default factors ``A = U S`` and ``B = V S^T``.

        Both synthetic points then equal ``U S V^T``, so the returned value
        is the cost at ``x``.
        """
        U, S, V = (torch.as_tensor(f).detach() for f in x)
        return self(FixedRankPoint(U, S, V), U @ S, V @ S.transpose(-1, -2))


def _warn_uncached(reason: str) -> None:
    warnings.warn(
        f"{reason}: gradients will be computed without "
        "acceleration and may be slower. Costs relying on second-order "
        "derivatives may not work uncached. Use "
        "AutogradConfig(accelerate=False) to silence this warning.",
        CachingUnavailableWarning,
        stacklevel=3,
    )


def build(
    problem,
    mode: Any = None,
    *,
    engine=None,
    config: Optional[AutogradConfig] = None,
) -> GradientFunction:
    """
    Build the Euclidean gradient function of a problem.

    Args:
        problem: :class:`~geograd.problem.Problem`, or a mapping/object with
            ``cost`` and ``manifold`` (or ``M``)
        mode: ``"generic"`` (default) or ``"fixedrank"``; booleans and
            ``GradientMode`` members are accepted too
        engine: AD engine (default: ``TorchEngine(config)``)
        config: Gradient settings (default: ``AutogradConfig()``)

    Returns:
        :class:`EuclideanGradient` in generic mode, :class:`FixedRankGradient`
        in fixed-rank mode

    Raises:
        PreconditionError: The problem lacks a manifold or a cost
        ADEngineUnavailableError: The AD engine is not installed
        ValueError: Unknown mode

    Warns:
        CachingUnavailableWarning: The engine cannot compile, or setting up
            the compiled trace failed; the gradient function runs uncached
    """
    problem = as_problem(problem).validate()
    config = config if config is not None else AutogradConfig()
    engine = engine if engine is not None else TorchEngine(config)

    if not engine.is_available():
        raise ADEngineUnavailableError(
            f"{getattr(engine, 'name', 'torch')} is needed for automatic differentiation"
        )

    mode = GradientMode.coerce(mode)
    if mode is GradientMode.FIXEDRANK:
        logger.debug("Using uncached fixed-rank gradient for %s", problem.manifold.name)
        strategy = fixedrank_strategy(problem.cost, engine, config)
        return FixedRankGradient(strategy, problem.manifold, config)

    strategy = euclidean_strategy(problem.cost, problem.manifold, engine, config)
    if config.accelerate:
        if not engine.supports_caching():
            _warn_uncached("Trace caching is not available for this AD engine")
        else:
            try:
                egrad = EuclideanGradient(strategy, engine, problem.manifold, config)
            except Exception as e:
                _warn_uncached(f"Setting up the trace cache failed ({e})")
            else:
                logger.debug("Using compiled Euclidean gradient for %s", problem.manifold.name)
                return egrad

    logger.debug("Using uncached Euclidean gradient for %s", problem.manifold.name)
    return EuclideanGradient(strategy, engine, problem.manifold, config, accelerate=False)
