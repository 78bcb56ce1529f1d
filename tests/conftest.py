"""Pytest configuration and fixtures."""

import pytest
import torch
from geograd import Euclidean, AnchoredRotations, FixedRankEmbedded, TorchEngine


class RecordingEngine(TorchEngine):
    """TorchEngine that records every call and can fake missing features."""

    def __init__(self, available=True, caching=True, config=None):
        super().__init__(config)
        self.available = available
        self.caching = caching
        self.calls = []

    def is_available(self):
        self.calls.append('is_available')
        return self.available

    def supports_caching(self):
        self.calls.append('supports_caching')
        return self.caching

    def trace(self, fn):
        self.calls.append('trace')

        def traced(*args):
            self.calls.append('traced_call')
            return fn(*args)

        return traced

    def clear_cache(self, traced):
        self.calls.append('clear_cache')

    def gradient(self, value, wrt, retain_graph=False, create_graph=False):
        self.calls.append('gradient')
        return super().gradient(value, wrt, retain_graph=retain_graph, create_graph=create_graph)


@pytest.fixture
def engine():
    """Recording engine with every feature available."""
    return RecordingEngine()


@pytest.fixture
def uncached_engine():
    """Recording engine without trace caching."""
    return RecordingEngine(caching=False)


@pytest.fixture
def euclidean():
    """Fixture for a 3-dimensional Euclidean space."""
    return Euclidean(3)


@pytest.fixture
def anchored_rotations():
    """SO(3)^4 with rotations 0 and 2 anchored."""
    return AnchoredRotations(3, 4, anchors=[0, 2])


@pytest.fixture
def fixedrank():
    """Rank-2 matrices of size 5 x 4."""
    return FixedRankEmbedded(5, 4, 2)


@pytest.fixture
def quadratic():
    """cost(x) = sum(x^2)"""
    return lambda x: (x ** 2).sum()


@pytest.fixture(autouse=True)
def random_seed():
    """Set random seed for reproducibility."""
    torch.manual_seed(42)
    return 42
