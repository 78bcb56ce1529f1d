"""Configuration for automatic differentiation."""

from dataclasses import dataclass


@dataclass
class AutogradConfig:
    """
    Settings shared by the AD engine and the gradient strategies.

    Args:
        accelerate: Wrap the generic strategy in ``torch.compile`` when the
            host supports it (default: True).
        backend: ``torch.compile`` backend (default: "eager", which needs no
            C++ toolchain).
        dynamic: Let the traced function specialize on dynamic shapes
            instead of retracing per input shape (default: False).
        retain_graph: Keep the autograd graph after the gradient is
            extracted (default: False).
        create_graph: Build a differentiable gradient, for costs that need
            second-order terms (default: False).
        check_consistency: In fixed-rank mode, compare the two decoupled cost
            values and log a warning when they differ (default: False).
        consistency_atol: Absolute tolerance for that comparison.
    """

    accelerate: bool = True
    backend: str = "eager"
    dynamic: bool = False
    retain_graph: bool = False
    create_graph: bool = False
    check_consistency: bool = False
    consistency_atol: float = 1e-6

    def __post_init__(self):
        if not isinstance(self.backend, str) or not self.backend:
            raise ValueError(f"Invalid compile backend: {self.backend!r}")
        if self.consistency_atol < 0.0:
            raise ValueError(f"Invalid consistency_atol value: {self.consistency_atol}")
