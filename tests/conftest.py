# tests/conftest.py
import pytest
import torch

from fitcore.datasets.dataset import LabeledData, WeightedLabeledData
from fitcore.models.linear_model import LinearModel


@pytest.fixture
def generator() -> torch.Generator:
    return torch.Generator().manual_seed(1234)


@pytest.fixture
def regression_data(generator) -> LabeledData:
    """
    20 examples, 3 inputs, 1 continuous label, 4 batches of 5
    """
    inputs = torch.randn(20, 3, generator=generator, dtype=torch.float64)
    true_weights = torch.tensor([[1.5], [-2.0], [0.5]], dtype=torch.float64)
    noise = 0.1 * torch.randn(20, 1, generator=generator, dtype=torch.float64)
    labels = inputs @ true_weights + 0.3 + noise
    return LabeledData(inputs, labels, batch_size=5)


@pytest.fixture
def weighted_regression_data(regression_data, generator) -> WeightedLabeledData:
    weights = torch.rand(20, generator=generator, dtype=torch.float64) + 0.1
    return WeightedLabeledData.from_data(regression_data, weights)


@pytest.fixture
def classification_data(generator) -> LabeledData:
    """
    24 examples, 2 inputs, labels in {0, 1, 2}, 4 batches of 6
    """
    inputs = torch.randn(24, 2, generator=generator, dtype=torch.float64)
    labels = torch.arange(24) % 3
    inputs[:, 0] += labels.to(torch.float64)
    return LabeledData(inputs, labels, batch_size=6)


@pytest.fixture
def linear_model() -> LinearModel:
    torch.manual_seed(0)
    return LinearModel(3, 1, dtype=torch.float64)


@pytest.fixture
def random_point(generator):
    """Factory for random float64 parameter vectors"""
    def make(size: int) -> torch.Tensor:
        return torch.randn(size, generator=generator, dtype=torch.float64)
    return make
