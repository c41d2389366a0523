"""Shared fixtures for tests."""

import pytest
import torch

from zcaw.data import NumericDataset
from zcaw.runtime import set_seed


def correlated_matrix(n: int, d: int, seed: int = 42) -> torch.Tensor:
    """[n, d] samples with a dense, well-conditioned mixing of independent features."""
    set_seed(seed)
    mixing = torch.randn(d, d, dtype=torch.float64) + 2.0 * torch.eye(d, dtype=torch.float64)
    return torch.randn(n, d, dtype=torch.float64) @ mixing


@pytest.fixture
def correlated_X():
    return correlated_matrix(500, 5)


@pytest.fixture
def correlated_dataset(correlated_X):
    categorical = [(i % 3, i % 2) for i in range(correlated_X.shape[0])]
    return NumericDataset.from_tensor(correlated_X, categorical=categorical)


@pytest.fixture
def well_conditioned_cov():
    """SPD covariance [4, 4] with eigenvalues 4, 3, 2, 1 in a random basis."""
    set_seed(7)
    Q, _ = torch.linalg.qr(torch.randn(4, 4, dtype=torch.float64))
    eigenvalues = torch.tensor([4.0, 3.0, 2.0, 1.0], dtype=torch.float64)
    cov = Q @ torch.diag(eigenvalues) @ Q.T
    return (cov + cov.T) / 2


@pytest.fixture
def singular_cov():
    """Exactly singular covariance: one zero-variance direction."""
    return torch.diag(torch.tensor([2.0, 1.0, 0.0], dtype=torch.float64))


@pytest.fixture
def make_correlated():
    """Factory fixture: make_correlated(n, d, seed=42) -> [n, d] tensor."""
    return correlated_matrix
