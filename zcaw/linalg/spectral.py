"""Spectral decomposition of symmetric covariance matrices.

The factorization itself is delegated to ``torch.linalg``; this module only
normalizes its output into a :class:`SpectralBasis` (orthonormal columns,
non-negative weights sorted descending).
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

import torch
from torch import Tensor

from zcaw.constants import SPECTRUM_ATOL


@dataclass(frozen=True)
class SpectralBasis:
    """Orthonormal directions U [d, d] and matching weights s [d].

    Column ``U[:, i]`` pairs with ``s[i]``. Weights are non-negative and
    sorted descending. Orthonormality of U is trusted, not checked.
    """

    U: Tensor
    s: Tensor

    def __post_init__(self) -> None:
        U, s = self.U, self.s
        if U.ndim != 2 or U.shape[0] != U.shape[1] or U.shape[0] < 1:
            raise ValueError(f"U must be a non-empty square matrix, got shape {tuple(U.shape)}")
        if s.ndim != 1 or s.shape[0] != U.shape[0]:
            raise ValueError(
                f"s must have one weight per column of U ({U.shape[0]}), got shape {tuple(s.shape)}"
            )
        if not torch.isfinite(s).all():
            raise ValueError("Spectral weights must be finite")
        tol = SPECTRUM_ATOL * max(1.0, float(s.abs().max()))
        if (s < -tol).any():
            raise ValueError(f"Spectral weights must be non-negative, got min {float(s.min()):.3e}")
        # Round-off negatives from the decomposition
        object.__setattr__(self, "s", s.clamp(min=0.0))

    @property
    def dim(self) -> int:
        return self.U.shape[0]

    def condition_number(self) -> float:
        """Ratio of largest to smallest weight; inf when the smallest is zero."""
        s_max = float(self.s.max())
        s_min = float(self.s.min())
        if s_min <= 0.0:
            return math.inf
        return s_max / s_min


SpectralDecomposition = Callable[[Tensor], SpectralBasis]


def _check_square(matrix: Tensor) -> None:
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError(f"Expected a square matrix, got shape {tuple(matrix.shape)}")


def svd_decomposition(matrix: Tensor) -> SpectralBasis:
    """Spectral basis from the SVD of a symmetric PSD matrix.

    For such matrices the left singular vectors are eigenvectors and the
    singular values are the (already descending) eigenvalues.
    """
    _check_square(matrix)
    U, s, _ = torch.linalg.svd(matrix)
    return SpectralBasis(U=U, s=s)


def eigh_decomposition(matrix: Tensor) -> SpectralBasis:
    """Spectral basis from the symmetric eigendecomposition."""
    _check_square(matrix)
    eigenvalues, eigenvectors = torch.linalg.eigh(matrix)

    # eigh returns ascending order; reverse to descending
    eigenvalues = eigenvalues.flip(0)
    eigenvectors = eigenvectors.flip(1)

    # Clamp small negative eigenvalues (numerical noise)
    eigenvalues = eigenvalues.clamp(min=0.0)

    return SpectralBasis(U=eigenvectors, s=eigenvalues)


DECOMPOSITIONS: dict[str, SpectralDecomposition] = {
    "svd": svd_decomposition,
    "eigh": eigh_decomposition,
}
