"""Tests for problem descriptors and configuration."""

from types import SimpleNamespace

import pytest
from geograd import Problem, as_problem, AutogradConfig, Euclidean, PreconditionError


class TestProblem:
    """Problem descriptors."""

    def test_from_problem(self, euclidean, quadratic):
        problem = Problem(euclidean, quadratic)
        assert as_problem(problem) is problem

    @pytest.mark.parametrize('key', ['manifold', 'M'])
    def test_from_mapping(self, euclidean, quadratic, key):
        problem = as_problem({key: euclidean, 'cost': quadratic})
        assert problem.manifold is euclidean
        assert problem.cost is quadratic

    def test_from_object(self, euclidean, quadratic):
        problem = as_problem(SimpleNamespace(M=euclidean, cost=quadratic))
        assert problem.manifold is euclidean
        assert problem.validate() is problem

    def test_frozen(self, euclidean, quadratic):
        problem = Problem(euclidean, quadratic)
        with pytest.raises(AttributeError):
            problem.cost = None

    @pytest.mark.parametrize('descriptor', [
        {},
        {'cost': lambda x: x},
        {'M': Euclidean(2)},
        SimpleNamespace(),
    ])
    def test_incomplete(self, descriptor):
        with pytest.raises(PreconditionError):
            as_problem(descriptor).validate()


class TestAutogradConfig:
    """Configuration validation."""

    def test_defaults(self):
        config = AutogradConfig()
        assert config.accelerate
        assert not config.retain_graph
        assert not config.create_graph
        assert not config.check_consistency

    def test_invalid_backend(self):
        with pytest.raises(ValueError):
            AutogradConfig(backend='')

    def test_invalid_tolerance(self):
        with pytest.raises(ValueError):
            AutogradConfig(consistency_atol=-1.0)
