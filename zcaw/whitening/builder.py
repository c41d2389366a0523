"""Fit a whitening model: covariance → spectral basis → regularization → matrix."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import torch
from torch import Tensor

from zcaw.linalg.spectral import SpectralBasis, SpectralDecomposition, svd_decomposition
from zcaw.whitening.matrix import MatrixBuilder, zca_matrix
from zcaw.whitening.regularization import (
    AUTO,
    Regularization,
    coerce_regularization,
    resolve_regularization,
)

if TYPE_CHECKING:
    from zcaw.data.dataset import Dataset


@dataclass(frozen=True)
class FittedModel:
    """Everything derived at fit time. Never mutated afterwards."""

    basis: SpectralBasis
    regularization: float
    matrix: Tensor  # [d, d]

    @property
    def dim(self) -> int:
        return self.matrix.shape[0]


class WhiteningModelBuilder:
    """Fits whitening models with an injected matrix strategy.

    The strategy (``zca_matrix`` by default, or ``pca_matrix``) turns the
    spectral basis and the resolved regularization into the d×d matrix; the
    decomposition strategy turns the covariance into the spectral basis.
    """

    def __init__(
        self,
        matrix_builder: MatrixBuilder = zca_matrix,
        decomposition: SpectralDecomposition = svd_decomposition,
        dtype: torch.dtype | None = None,
        device: torch.device | None = None,
        verbose: bool = True,
    ) -> None:
        self.matrix_builder = matrix_builder
        self.decomposition = decomposition
        self.dtype = dtype
        self.device = device
        self.verbose = verbose

    def fit(
        self,
        dataset: Dataset,
        regularization: Regularization | float | None = AUTO,
    ) -> FittedModel:
        """Fit on a dataset's numeric features.

        Args:
            dataset: Provides ``num_numeric_features`` and ``covariance()``.
            regularization: ``Fixed(r)``, ``AUTO`` (r = log κ), or shorthand
                float / None.

        Returns:
            FittedModel with a d×d matrix, d = dataset.num_numeric_features.

        Raises:
            NumericalDomainError: If some s_i + r is not positive, or AUTO is
                requested on an exactly singular covariance.
        """
        d = dataset.num_numeric_features
        cov = dataset.covariance()
        if tuple(cov.shape) != (d, d):
            raise ValueError(
                f"Dataset covariance has shape {tuple(cov.shape)}, expected ({d}, {d})"
            )
        return self.fit_covariance(cov, regularization)

    def fit_covariance(
        self,
        cov: Tensor,
        regularization: Regularization | float | None = AUTO,
    ) -> FittedModel:
        """Fit from a precomputed covariance [d, d]."""
        cov = cov.to(
            dtype=self.dtype if self.dtype is not None else cov.dtype,
            device=self.device if self.device is not None else cov.device,
        )
        basis = self.decomposition(cov)
        reg = resolve_regularization(coerce_regularization(regularization), basis)
        matrix = self.matrix_builder(basis, reg)

        if self.verbose:
            s = basis.s
            print(
                f"Whitening fit ({getattr(self.matrix_builder, '__name__', 'custom')}): "
                f"d={basis.dim}, λ_max={float(s.max()):.4f}, λ_min={float(s.min()):.6f}, "
                f"κ={basis.condition_number():.0f}, r={reg:.4f}"
            )

        return FittedModel(basis=basis, regularization=reg, matrix=matrix)
