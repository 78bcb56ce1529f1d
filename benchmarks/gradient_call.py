#!/usr/bin/env python
"""Benchmark gradient function call time.

Compares a compiled (trace-cached) Euclidean gradient against the uncached
strategy, and reports the cost of the fixed-rank strategy's two traces.

Metrics:
- Time per gradient call (ms)
- Speedup of the compiled gradient vs uncached

Example:
    python -m benchmarks.gradient_call
"""

import time
import warnings

import torch
from geograd import build, Problem, AutogradConfig, Euclidean, FixedRankEmbedded


def benchmark_gradient(egrad, *args, n_calls=200):
    """
    Benchmark gradient call time.

    Args:
        egrad: Gradient function returned by ``build``
        *args: Arguments of each call
        n_calls: Number of calls to time

    Returns:
        Average call time in milliseconds
    """
    # Warmup (includes tracing)
    for _ in range(10):
        egrad(*args)

    start = time.perf_counter()
    for _ in range(n_calls):
        egrad(*args)
    end = time.perf_counter()

    return (end - start) / n_calls * 1000


def run_benchmark():
    """Run gradient call benchmarks."""
    print("Gradient Call Time Benchmark")
    print("=" * 80)
    print()

    n = 256
    W = torch.randn(n, n)
    cost = lambda x: torch.tanh(W @ x).pow(2).sum() + 0.1 * x.pow(4).sum()
    problem = Problem(Euclidean(n), cost)
    x = torch.randn(n)

    with warnings.catch_warnings(record=True):
        warnings.simplefilter('always')
        compiled = build(problem)
    plain = build(problem, config=AutogradConfig(accelerate=False))

    t_compiled = benchmark_gradient(compiled, x)
    t_plain = benchmark_gradient(plain, x)

    print(f"Configuration:")
    print(f"  Manifold: Euclidean({n})")
    print(f"  Compiled gradient available: {compiled.cached}")
    print()
    print(f"{'Gradient':<20} {'Time (ms)':>12}")
    print("-" * 34)
    print(f"{'compiled':<20} {t_compiled:>12.4f}")
    print(f"{'uncached':<20} {t_plain:>12.4f}")
    print(f"Speedup: {t_plain / t_compiled:.2f}x")
    print()

    manifold = FixedRankEmbedded(200, 150, 10)
    target = torch.randn(200, 150)
    fixedrank = build(
        Problem(manifold, lambda p: ((p.U @ p.S @ p.V.T - target) ** 2).sum()),
        'fixedrank',
    )
    point = manifold.random_point()
    t_fixedrank = benchmark_gradient(fixedrank.at, point)
    print(f"{'fixed-rank (2 traces)':<20} {t_fixedrank:>12.4f}")


if __name__ == '__main__':
    run_benchmark()
