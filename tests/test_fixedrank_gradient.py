"""Tests for gradients of low-rank points."""

import logging

import pytest
import torch
from geograd import (
    build,
    Problem,
    AutogradConfig,
    FixedRankPoint,
    FactorGradient,
)


def target_cost(target):
    """f(X) = 0.5 * ||U S V^T - target||^2, with Euclidean gradient X - target."""

    def cost(x):
        return 0.5 * ((x.U @ x.S @ x.V.T - target) ** 2).sum()

    return cost


@pytest.fixture
def target(fixedrank):
    return torch.randn(fixedrank.m, fixedrank.n, dtype=torch.float64)


@pytest.fixture
def point(fixedrank):
    return fixedrank.random_point(dtype=torch.float64)


class TestDecoupledGradients:
    """Gradients with respect to the two factor variables."""

    def test_at_matches_analytic(self, fixedrank, target, point, engine):
        """With A = U S and B = V S^T the factor gradients are G V and G^T U."""
        egrad = build(Problem(fixedrank, target_cost(target)), True, engine=engine)
        value, grads = egrad.at(point)

        X = fixedrank.to_matrix(point)
        G = X - target
        assert isinstance(grads, FactorGradient)
        assert value.item() == pytest.approx(0.5 * ((X - target) ** 2).sum().item())
        assert torch.allclose(grads.A, G @ point.V)
        assert torch.allclose(grads.B, G.T @ point.U)

    def test_gradient_shapes(self, fixedrank, target, point, engine):
        egrad = build(Problem(fixedrank, target_cost(target)), True, engine=engine)
        _, grads = egrad(point, point.U, point.V)
        assert grads.A.shape == (fixedrank.m, fixedrank.k)
        assert grads.B.shape == (fixedrank.n, fixedrank.k)

    def test_two_separate_traces(self, fixedrank, target, point, engine):
        """The cost is evaluated twice and each value is differentiated once."""
        evaluations = []
        base = target_cost(target)

        def cost(x):
            evaluations.append(x)
            return base(x)

        egrad = build(Problem(fixedrank, cost), True, engine=engine)
        egrad(point, point.U, point.V)
        assert len(evaluations) == 2
        assert engine.calls.count('gradient') == 2

    def test_synthetic_points_use_identity(self, fixedrank, target, point, engine):
        """Both synthetic points have S = I and swap in one factor."""
        seen = []
        base = target_cost(target)

        def cost(x):
            seen.append(x)
            return base(x)

        A = torch.randn(fixedrank.m, fixedrank.k, dtype=torch.float64)
        B = torch.randn(fixedrank.n, fixedrank.k, dtype=torch.float64)
        build(Problem(fixedrank, cost), True, engine=engine)(point, A, B)

        X1, X2 = seen
        eye = torch.eye(fixedrank.k, dtype=torch.float64)
        assert torch.equal(X1.S, eye) and torch.equal(X2.S, eye)
        assert torch.equal(X1.U.detach(), A) and torch.equal(X1.V, point.V)
        assert torch.equal(X2.U, point.U) and torch.equal(X2.V.detach(), B)


class TestDecouplingInvariant:
    """Both decoupled evaluations equal the cost at the point."""

    def test_identity_scaling(self, fixedrank, target, engine):
        """For S = I, A = U and B = V give the cost at the original point."""
        x = fixedrank.random_point(dtype=torch.float64)
        x = FixedRankPoint(x.U, torch.eye(fixedrank.k, dtype=torch.float64), x.V)
        values = []
        base = target_cost(target)

        def cost(p):
            v = base(p)
            values.append(v.detach())
            return v

        egrad = build(Problem(fixedrank, cost), True, engine=engine)
        value, _ = egrad(x, x.U, x.V)

        expected = base(x)
        assert len(values) == 2
        assert torch.allclose(values[0], expected)
        assert torch.allclose(values[1], expected)
        assert torch.allclose(value, expected)

    def test_consistency_check_quiet_when_equal(self, fixedrank, target, point, engine, caplog):
        config = AutogradConfig(check_consistency=True)
        egrad = build(Problem(fixedrank, target_cost(target)), True, engine=engine, config=config)
        with caplog.at_level(logging.WARNING, logger='geograd'):
            egrad.at(point)
        assert caplog.records == []

    def test_divergent_values_are_reported(self, fixedrank, target, point, engine, caplog):
        """Arbitrary factors give different values; the first one is returned."""
        config = AutogradConfig(check_consistency=True)
        cost = target_cost(target)
        egrad = build(Problem(fixedrank, cost), True, engine=engine, config=config)
        A = torch.randn(fixedrank.m, fixedrank.k, dtype=torch.float64)
        B = torch.randn(fixedrank.n, fixedrank.k, dtype=torch.float64)

        with caplog.at_level(logging.WARNING, logger='geograd'):
            value, _ = egrad(point, A, B)

        eye = torch.eye(fixedrank.k, dtype=torch.float64)
        assert torch.allclose(value, cost(FixedRankPoint(A, eye, point.V)))
        assert len(caplog.records) == 1
        assert 'differ' in caplog.records[0].getMessage()

    def test_divergence_unchecked_by_default(self, fixedrank, target, point, engine, caplog):
        egrad = build(Problem(fixedrank, target_cost(target)), True, engine=engine)
        A = torch.randn(fixedrank.m, fixedrank.k, dtype=torch.float64)
        with caplog.at_level(logging.WARNING, logger='geograd'):
            egrad(point, A, point.V)
        assert caplog.records == []


class TestFixedRankHandle:
    """Input handling of the fixed-rank gradient function."""

    def test_caller_factors_untouched(self, fixedrank, target, point, engine):
        egrad = build(Problem(fixedrank, target_cost(target)), True, engine=engine)
        A = point.U.clone()
        egrad(point, A, point.V)
        assert not A.requires_grad
        assert A.grad is None

    def test_results_are_detached(self, fixedrank, target, point, engine):
        egrad = build(Problem(fixedrank, target_cost(target)), True, engine=engine)
        value, grads = egrad.at(point)
        assert not value.requires_grad
        assert not grads.A.requires_grad and not grads.B.requires_grad

    def test_complex_cost_uses_real_part(self, fixedrank, target, point, engine):
        base = target_cost(target)
        cost = lambda x: base(x) + 1j * x.U.sum()
        value, grads = build(Problem(fixedrank, cost), True, engine=engine).at(point)
        _, expected = build(Problem(fixedrank, base), True, engine=engine).at(point)
        assert not torch.is_complex(value)
        assert torch.allclose(grads.A, expected.A)
        assert torch.allclose(grads.B, expected.B)

    def test_cost_exception_propagates(self, fixedrank, point, engine):
        def cost(x):
            raise ValueError('bad point')

        egrad = build(Problem(fixedrank, cost), True, engine=engine)
        with pytest.raises(ValueError, match='bad point'):
            egrad.at(point)

    def test_invalidate_is_noop(self, fixedrank, target, point, engine):
        egrad = build(Problem(fixedrank, target_cost(target)), True, engine=engine)
        egrad.invalidate()
        assert 'clear_cache' not in engine.calls
        value, _ = egrad.at(point)
        assert torch.isfinite(value)
