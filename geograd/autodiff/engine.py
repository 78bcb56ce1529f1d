"""PyTorch as the automatic differentiation engine.

The gradient strategies only talk to the engine through four primitives:

- ``gradient(value, wrt)``: reverse-mode gradient of a scalar
- ``trace(fn)``: wrap ``fn`` so repeated calls reuse a compiled trace
- ``clear_cache(traced)``: drop compiled traces
- ``supports_caching()``: whether ``trace`` can be used on this host

Anything implementing these (plus ``is_available``) can stand in for
:class:`TorchEngine`, which is how the tests observe the dispatcher.
"""

import importlib.util
import inspect
import logging
from typing import Callable, Optional, Sequence, Tuple, Union

import torch
from torch import Tensor

from ..config import AutogradConfig

logger = logging.getLogger(__name__)


class TorchEngine:
    """
    ``torch.autograd`` for gradients and ``torch.compile`` for trace caching.

    Args:
        config: Compilation settings (default: ``AutogradConfig()``)
    """

    name = "torch"

    def __init__(self, config: Optional[AutogradConfig] = None):
        self.config = config if config is not None else AutogradConfig()

    def is_available(self) -> bool:
        """True if PyTorch and its autograd module are importable."""
        if importlib.util.find_spec("torch") is None:
            return False
        return hasattr(torch, "autograd") and hasattr(torch.autograd, "grad")

    def supports_caching(self) -> bool:
        """True if TorchDynamo can compile functions on this interpreter."""
        if not hasattr(torch, "compile"):
            return False
        dynamo = getattr(torch, "_dynamo", None)
        if dynamo is None or not hasattr(dynamo, "is_dynamo_supported"):
            return False
        return bool(dynamo.is_dynamo_supported())

    def trace(self, fn: Callable) -> Callable:
        """Compile ``fn``; a new trace is recorded per input signature."""
        logger.debug("Compiling %r with backend=%s dynamic=%s",
                     fn, self.config.backend, self.config.dynamic)
        return torch.compile(fn, backend=self.config.backend, dynamic=self.config.dynamic)

    def clear_cache(self, traced: Callable) -> None:
        """Drop the compiled frames of ``traced`` so it retraces on its next call.

        Only the frames of the function wrapped by ``traced`` are dropped;
        other compiled functions in the process keep their traces. Handles
        built from the same strategy share its code object and retrace once.
        """
        fn = inspect.unwrap(traced)
        code = getattr(fn, "__code__", None)
        logger.debug("Clearing compiled traces for %r", fn)
        if code is not None:
            torch._dynamo.reset_code(code)

    def gradient(
        self,
        value: Tensor,
        wrt: Union[Tensor, Sequence[Tensor]],
        retain_graph: bool = False,
        create_graph: bool = False,
    ) -> Union[Tensor, Tuple[Tensor, ...]]:
        """Reverse-mode gradient of the scalar ``value``.

        Args:
            value: Real scalar tensor
            wrt: Tensor or sequence of tensors requiring grad
            retain_graph: Keep the graph for a later backward pass
            create_graph: Record the backward pass for higher derivatives

        Returns:
            A tensor if ``wrt`` is a tensor, otherwise a tuple of tensors in
            the same order. Inputs the value does not depend on get zeros.
        """
        single = isinstance(wrt, Tensor)
        inputs = (wrt,) if single else tuple(wrt)
        grads = torch.autograd.grad(
            value,
            inputs,
            retain_graph=retain_graph,
            create_graph=create_graph,
            allow_unused=True,
        )
        grads = tuple(
            torch.zeros_like(x) if g is None else g for g, x in zip(grads, inputs)
        )
        return grads[0] if single else grads
