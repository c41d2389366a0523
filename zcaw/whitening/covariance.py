"""Welford online mean + covariance estimation over feature-vector batches."""

from __future__ import annotations

import torch
from torch import Tensor

from zcaw.constants import DEFAULT_DTYPE


class OnlineCovariance:
    """Streaming covariance accumulator (unbiased, n - 1 denominator).

    Batches are merged with the parallel Welford update, so a dataset can be
    reduced chunk by chunk without materializing all records at once.
    """

    def __init__(self, d: int, dtype: torch.dtype = DEFAULT_DTYPE) -> None:
        if d < 1:
            raise ValueError(f"Feature dimension must be >= 1, got {d}")
        self.d = d
        self.dtype = dtype

        self._n = 0
        self._mean = torch.zeros(d, dtype=dtype)
        self._M2 = torch.zeros(d, d, dtype=dtype)

    def update(self, x: Tensor) -> None:
        """Update statistics with a batch of feature vectors.

        Args:
            x: [batch, d] tensor.
        """
        if x.ndim != 2 or x.shape[1] != self.d:
            raise ValueError(f"Expected a [batch, {self.d}] tensor, got shape {tuple(x.shape)}")
        x = x.to(dtype=self.dtype, device="cpu")
        batch_n = x.shape[0]
        if batch_n == 0:
            return

        batch_mean = x.mean(dim=0)

        delta = batch_mean - self._mean
        new_n = self._n + batch_n
        new_mean = self._mean + delta * (batch_n / new_n)

        batch_centered = x - batch_mean  # [batch, d]
        batch_M2 = batch_centered.T @ batch_centered  # [d, d]
        self._M2 += batch_M2 + torch.outer(delta, delta) * (
            self._n * batch_n / new_n
        )

        self._mean = new_mean
        self._n = new_n

    def get_mean(self) -> Tensor:
        """Return the estimated mean [d]."""
        return self._mean.clone()

    def get_covariance(self) -> Tensor:
        """Return the estimated covariance [d, d]."""
        if self._n < 2:
            raise ValueError(f"Covariance needs at least 2 samples, got {self._n}")
        cov = self._M2 / (self._n - 1)
        # Accumulated outer products drift from exact symmetry
        return (cov + cov.T) / 2

    @property
    def n_samples(self) -> int:
        return self._n
