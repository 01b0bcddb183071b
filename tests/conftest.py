"""Pytest fixtures for lsh-is tests."""

import numpy as np
import pytest

from lsh_is.dataset import LabeledDataset


@pytest.fixture
def sample_dataset():
    """200 points in [0, 1]^4 with 3 classes."""
    rng = np.random.default_rng(42)
    features = rng.random((200, 4))
    labels = rng.integers(0, 3, size=200)
    return LabeledDataset.from_arrays(features, labels, num_classes=3)


@pytest.fixture
def sample_vectors():
    """Generate sample vectors for hashing tests."""
    rng = np.random.default_rng(42)
    return rng.random((100, 8))


@pytest.fixture
def sample_vector():
    """Generate a single sample vector."""
    rng = np.random.default_rng(7)
    return rng.random(8)
