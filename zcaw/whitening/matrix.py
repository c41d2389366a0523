"""Whitening-matrix strategies: ZCA (basis-preserving) and plain PCA whitening.

Both consume a :class:`SpectralBasis` (U, s) and a regularization r and
rescale each direction by (s_i + r)^{-1/2}. They differ only in the output
basis:

    ZCA: W = U diag((s + r)^{-1/2}) U^T   (rotated back to original coordinates)
    PCA: W = diag((s + r)^{-1/2}) U^T     (left in eigenvector coordinates)

Both are square d×d; neither drops directions, however small s_i is.
"""

from __future__ import annotations

from collections.abc import Callable

import torch
from torch import Tensor

from zcaw.errors import NumericalDomainError
from zcaw.linalg.constant_vector import ConstantVector
from zcaw.linalg.spectral import SpectralBasis

RegularizationValue = float | ConstantVector | Tensor
MatrixBuilder = Callable[[SpectralBasis, RegularizationValue], Tensor]


def _shifted_weights(basis: SpectralBasis, regularization: RegularizationValue) -> Tensor:
    """s + r as a [d] tensor, validated strictly positive and finite.

    A scalar r is the constant-vector case of per-direction regularization.
    """
    d = basis.dim
    s = basis.s

    if isinstance(regularization, (int, float)):
        regularization = ConstantVector(regularization, d)

    if isinstance(regularization, ConstantVector):
        if len(regularization) != d:
            raise ValueError(f"Regularization has length {len(regularization)}, expected {d}")
        reg = regularization.to_tensor(dtype=s.dtype, device=s.device)
    else:
        reg = torch.as_tensor(regularization, dtype=s.dtype, device=s.device)
        if reg.ndim == 0:
            reg = reg.expand(d)
        if reg.shape != (d,):
            raise ValueError(f"Regularization must be a scalar or shape ({d},), got {tuple(reg.shape)}")

    shifted = s + reg
    if not torch.isfinite(shifted).all():
        raise NumericalDomainError("Spectral weight plus regularization is not finite")
    bad = shifted <= 0
    if bad.any():
        i = int(bad.nonzero()[0])
        raise NumericalDomainError(
            f"Spectral weight {float(s[i]):.3e} plus regularization {float(reg[i]):.3e} "
            f"is not positive (direction {i}); increase the regularization or check the "
            f"conditioning of the dataset"
        )
    return shifted


def _checked(W: Tensor) -> Tensor:
    if not torch.isfinite(W).all():
        raise NumericalDomainError("Whitening matrix has non-finite entries")
    return W


def zca_matrix(basis: SpectralBasis, regularization: RegularizationValue) -> Tensor:
    """ZCA whitening matrix [d, d]: symmetric positive-definite.

    Right-multiplying by U^T rotates the rescaled coordinates back into the
    original basis, so output index i still means input feature i.
    """
    scales = _shifted_weights(basis, regularization).rsqrt()  # [d]
    U = basis.U  # [d, d]
    W = (U * scales) @ U.T  # [d, d], same as U @ diag(scales) @ U.T
    # Round-off leaves W slightly asymmetric
    W = (W + W.T) / 2
    return _checked(W)


def pca_matrix(basis: SpectralBasis, regularization: RegularizationValue) -> Tensor:
    """Plain (PCA) whitening matrix [d, d]: rows are rescaled directions."""
    scales = _shifted_weights(basis, regularization).rsqrt()  # [d]
    W = scales.unsqueeze(1) * basis.U.T  # [d, d], same as diag(scales) @ U.T
    return _checked(W)


MATRIX_BUILDERS: dict[str, MatrixBuilder] = {
    "zca": zca_matrix,
    "pca": pca_matrix,
}
